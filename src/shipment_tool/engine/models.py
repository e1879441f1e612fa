"""
Data models for the pricing engine and tracking normalizer.

Uses dataclasses for structured, type-safe data representation. Value objects
returned to callers are frozen; ``to_dict`` renders the camelCase JSON shape the
web client and stored shipment documents use.
"""
import math
from collections.abc import Mapping
from dataclasses import dataclass, field, fields
from datetime import datetime
from typing import Any, Optional

from .timestamps import format_timestamp

# (attribute, document key) pairs in display order
RATE_FIELDS = (
    ('shipping_rate', 'shippingRate'),
    ('insurance_rate', 'insuranceRate'),
    ('customs_rate', 'customsRate'),
    ('fuel_rate', 'fuelRate'),
    ('discount_rate', 'discountRate'),
    ('tax_rate', 'taxRate'),
)

BREAKDOWN_FIELDS = (
    ('declared_value', 'declaredValue'),
    ('shipping', 'shipping'),
    ('insurance', 'insurance'),
    ('customs', 'customs'),
    ('fuel', 'fuel'),
    ('discount', 'discount'),
    ('subtotal', 'subtotal'),
    ('tax', 'tax'),
    ('total', 'total'),
)


def to_finite_float(value: Any, default: Optional[float] = 0.0) -> Optional[float]:
    """Coerce to a finite float, returning ``default`` for anything else."""
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    if not math.isfinite(number):
        return default
    return number


def text(value: Any) -> str:
    """Stringify a free-text field; ``None`` becomes an empty string."""
    if value is None:
        return ""
    return str(value)


def lookup(data: Mapping, attr: str, key: str) -> Any:
    """Read a field stored under either its document key or attribute name."""
    if key in data:
        return data[key]
    return data.get(attr)


@dataclass
class TraceStep:
    """A single step in the pricing computation trace."""
    step: str
    description: str
    value: Optional[str] = None


@dataclass(frozen=True)
class RateConfiguration:
    """
    Six percentage rates as decimal fractions (0.10 = 10%).

    Shipping is a share of the declared value; insurance, customs, fuel and
    discount are shares of shipping; tax is a share of the subtotal. Values that
    are not finite non-negative numbers are stored as 0.
    """
    shipping_rate: float = 0.0
    insurance_rate: float = 0.0
    customs_rate: float = 0.0
    fuel_rate: float = 0.0
    discount_rate: float = 0.0
    tax_rate: float = 0.0

    def __post_init__(self):
        for attr, _ in RATE_FIELDS:
            rate = to_finite_float(getattr(self, attr))
            object.__setattr__(self, attr, rate if rate > 0 else 0.0)

    @classmethod
    def from_mapping(cls, data: Any) -> 'RateConfiguration':
        """Build from a settings mapping with camelCase or snake_case keys."""
        if not isinstance(data, Mapping):
            return cls()
        return cls(**{attr: lookup(data, attr, key) for attr, key in RATE_FIELDS})

    @classmethod
    def coerce(cls, value: Any) -> 'RateConfiguration':
        """Accept an existing configuration, a mapping, or nothing (all zero)."""
        if isinstance(value, cls):
            return value
        return cls.from_mapping(value)

    def to_dict(self) -> dict:
        return {key: getattr(self, attr) for attr, key in RATE_FIELDS}


DEFAULT_RATES = RateConfiguration(
    shipping_rate=0.10,
    insurance_rate=0.10,
    customs_rate=0.20,
    fuel_rate=0.05,
    discount_rate=0.00,
    tax_rate=0.085,
)


@dataclass(frozen=True)
class InvoiceBreakdown:
    """Itemized invoice amounts, each rounded to cents."""
    declared_value: float
    shipping: float
    insurance: float
    customs: float
    fuel: float
    discount: float
    subtotal: float
    tax: float
    total: float

    @classmethod
    def from_mapping(cls, data: Mapping) -> 'InvoiceBreakdown':
        """Read a breakdown stored on a shipment invoice document."""
        return cls(**{attr: to_finite_float(lookup(data, attr, key)) for attr, key in BREAKDOWN_FIELDS})

    def to_dict(self) -> dict:
        return {key: getattr(self, attr) for attr, key in BREAKDOWN_FIELDS}


@dataclass(frozen=True)
class InvoiceQuote:
    """A breakdown paired with the rates that produced it."""
    declared_value: float
    pricing: RateConfiguration
    breakdown: InvoiceBreakdown
    trace: tuple = ()

    def get_trace_text(self) -> str:
        """Get human-readable trace as formatted text."""
        lines = []
        for t in self.trace:
            if t.value:
                lines.append(f"→ {t.step}: {t.description} = {t.value}")
            else:
                lines.append(f"→ {t.step}: {t.description}")
        return "\n".join(lines)

    def to_dict(self) -> dict:
        return {
            "declaredValue": self.declared_value,
            "pricing": self.pricing.to_dict(),
            "breakdown": self.breakdown.to_dict(),
        }


@dataclass(frozen=True)
class Location:
    """Where a tracking event happened. Missing parts are empty strings."""
    country: str = ""
    state: str = ""
    city: str = ""
    county: str = ""

    @classmethod
    def from_mapping(cls, data: Any) -> 'Location':
        if isinstance(data, Location):
            return data
        if not isinstance(data, Mapping):
            return cls()
        return cls(**{f.name: text(data.get(f.name)).strip() for f in fields(cls)})

    def format(self) -> str:
        """Join as "city, state, country", skipping empty parts."""
        return ", ".join(part for part in (self.city, self.state, self.country) if part)

    def to_dict(self) -> dict:
        return {
            "country": self.country,
            "state": self.state,
            "city": self.city,
            "county": self.county,
        }


@dataclass(frozen=True)
class TrackingEvent:
    """One raw, append-only tracking log entry as entered by an admin."""
    label: str = ""
    key: Optional[str] = None
    note: str = ""
    occurred_at: Any = None  # ISO string, datetime or epoch millis
    color: str = ""
    location: Location = field(default_factory=Location)

    @classmethod
    def from_mapping(cls, data: Mapping) -> 'TrackingEvent':
        key = data.get("key")
        return cls(
            label=text(data.get("label")),
            key=None if key is None else text(key),
            note=text(data.get("note")),
            occurred_at=lookup(data, "occurred_at", "occurredAt"),
            color=text(data.get("color")),
            location=Location.from_mapping(data.get("location")),
        )


@dataclass(frozen=True)
class StatusFallback:
    """Shipment-level status fields used when no tracking events exist yet."""
    status: str = ""
    status_note: str = ""
    created_at: Any = None

    @classmethod
    def coerce(cls, value: Any) -> 'StatusFallback':
        if isinstance(value, cls):
            return value
        if not isinstance(value, Mapping):
            return cls()
        return cls(
            status=text(value.get("status")),
            status_note=text(lookup(value, "status_note", "statusNote")),
            created_at=lookup(value, "created_at", "createdAt"),
        )


@dataclass(frozen=True)
class MilestoneEntry:
    """One occurrence of a milestone in a shipment's history."""
    occurred_at: datetime
    note: str
    color: str
    location: Location

    def to_dict(self) -> dict:
        return {
            "occurredAt": format_timestamp(self.occurred_at),
            "note": self.note,
            "color": self.color,
            "location": self.location.to_dict(),
        }


@dataclass
class MilestoneGroup:
    """
    All events that share a canonical key.

    Display metadata (time, location, color) follows the latest entry while
    ``entries`` keeps the full chronological history.
    """
    key: str
    label: str
    color: str
    occurred_at: datetime
    location: Location
    entries: list[MilestoneEntry] = field(default_factory=list)

    def add_entry(self, entry: MilestoneEntry):
        """Append a later occurrence and take over its display metadata."""
        self.entries.append(entry)
        self.occurred_at = entry.occurred_at
        self.location = entry.location
        if entry.color:
            self.color = entry.color

    def to_dict(self) -> dict:
        return {
            "key": self.key,
            "label": self.label,
            "color": self.color,
            "occurredAt": format_timestamp(self.occurred_at),
            "location": self.location.to_dict(),
            "entries": [entry.to_dict() for entry in self.entries],
        }


@dataclass
class TrackingTimeline:
    """Grouped milestones plus the current-stage summary shown on the tracking page."""
    events: list[MilestoneGroup]
    current_status: str
    current_location: str

    @property
    def current_index(self) -> int:
        return max(0, len(self.events) - 1)

    def to_dict(self) -> dict:
        return {
            "events": [group.to_dict() for group in self.events],
            "currentStatus": self.current_status,
            "currentLocation": self.current_location,
        }
