"""
Rates Service - normalizes saved pricing settings and per-request overrides.

Rates are decimal fractions everywhere past this module. Callers that collect
whole-number percentages (admin forms) pass ``unit="percent"``; the unit is
never guessed from the size of the value.
"""
import logging
from collections.abc import Mapping
from dataclasses import replace
from typing import Any, Optional

from ..engine.models import DEFAULT_RATES, RATE_FIELDS, RateConfiguration, lookup, to_finite_float

logger = logging.getLogger(__name__)

FRACTION = "fraction"
PERCENT = "percent"
RATE_UNITS = (FRACTION, PERCENT)

# Saved settings are rounded to this many places to drop float noise
RATE_PRECISION = 6


class InvalidRateUnitError(ValueError):
    """Raised when a caller names a rate unit other than fraction or percent."""


def resolve_unit(unit: Optional[str]) -> str:
    """Validate a unit name; ``None`` or blank means fraction."""
    name = str(unit or FRACTION).strip().lower() or FRACTION
    if name not in RATE_UNITS:
        raise InvalidRateUnitError(
            f"Unknown rate unit '{unit}'. Expected one of: {', '.join(RATE_UNITS)}"
        )
    return name


def _to_fraction(value: float, unit: str) -> float:
    return value / 100 if unit == PERCENT else value


def normalize_rate(value: Any, fallback: float, unit: str = FRACTION) -> float:
    """
    Normalize one saved rate.

    Non-numeric values take ``fallback``; the rest are converted from ``unit``,
    clamped to [0, 1] and rounded to 6 places.
    """
    unit = resolve_unit(unit)
    raw = to_finite_float(value, default=None)
    if raw is None:
        return fallback

    clamped = min(max(_to_fraction(raw, unit), 0.0), 1.0)
    return round(clamped, RATE_PRECISION)


def normalize_settings(
    doc: Any,
    unit: str = FRACTION,
    base: RateConfiguration = DEFAULT_RATES,
) -> RateConfiguration:
    """
    Normalize a saved or admin-submitted pricing settings document.

    Accepts ``{"settings": {...}}`` or a bare rates mapping. Fields that are
    missing or unreadable keep the value from ``base``.
    """
    unit = resolve_unit(unit)
    incoming = doc.get("settings", doc) if isinstance(doc, Mapping) else None
    if not isinstance(incoming, Mapping):
        incoming = {}

    return RateConfiguration(**{
        attr: normalize_rate(lookup(incoming, attr, key), getattr(base, attr), unit)
        for attr, key in RATE_FIELDS
    })


def merge_override(base: Any, override: Any, unit: str = FRACTION) -> RateConfiguration:
    """
    Merge a per-shipment override over the base rates field by field.

    Only finite, non-negative override values replace a base rate.
    """
    unit = resolve_unit(unit)
    base = RateConfiguration.coerce(base)
    if not isinstance(override, Mapping):
        return base

    changes = {}
    for attr, key in RATE_FIELDS:
        raw = to_finite_float(lookup(override, attr, key), default=None)
        if raw is None or raw < 0:
            continue
        changes[attr] = _to_fraction(raw, unit)

    if changes:
        logger.info("Applying pricing override for %s", ", ".join(sorted(changes)))
    return replace(base, **changes)
