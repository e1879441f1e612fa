"""
Tracking Normalizer - groups a shipment's raw tracking events into milestones.

Resolution order:
1. Synthesize a "created" event when the shipment has no usable history
2. Sort events chronologically (unreadable timestamps sort first)
3. Canonicalize each event's key so label spelling variants collide
4. Group by canonical key in first-seen order, latest entry wins for display
"""
import logging
import re
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from .models import (
    Location,
    MilestoneEntry,
    MilestoneGroup,
    StatusFallback,
    TrackingEvent,
    TrackingTimeline,
    text,
)
from .timestamps import parse_timestamp

logger = logging.getLogger(__name__)

SEPARATOR_RUN = re.compile(r"[\s_-]+")

CREATED_KEY = "created"
CREATED_LABEL = "Created"
CREATED_COLOR = "#22c55e"
DEFAULT_KEY = "update"
DEFAULT_LABEL = "Update"


def normalize_key(value: Any) -> str:
    """Lowercase, trim, and collapse whitespace/underscore/hyphen runs to one hyphen."""
    return SEPARATOR_RUN.sub("-", text(value).lower().strip())


def format_location(location: Any) -> str:
    """Render a location as "city, state, country", skipping empty parts."""
    return Location.from_mapping(location).format()


def _first_text(*values: Any) -> str:
    for value in values:
        candidate = text(value).strip()
        if candidate:
            return candidate
    return ""


def _coerce_events(raw_events: Any) -> list[TrackingEvent]:
    if not isinstance(raw_events, (list, tuple)):
        if raw_events is not None:
            logger.debug("Ignoring non-list tracking events of type %s", type(raw_events).__name__)
        return []

    events = []
    for raw in raw_events:
        if isinstance(raw, TrackingEvent):
            events.append(raw)
        elif isinstance(raw, Mapping):
            events.append(TrackingEvent.from_mapping(raw))
        else:
            logger.debug("Skipping tracking event of type %s", type(raw).__name__)
    return events


def _created_event(fallback: StatusFallback, now: Optional[datetime]) -> TrackingEvent:
    occurred_at = fallback.created_at or now or datetime.now(timezone.utc)
    return TrackingEvent(
        key=CREATED_KEY,
        label=fallback.status.strip() or CREATED_LABEL,
        note=fallback.status_note,
        occurred_at=occurred_at,
        color=CREATED_COLOR,
    )


def normalize_and_group(
    raw_events: Any,
    fallback: Any = None,
    now: Optional[datetime] = None,
) -> list[MilestoneGroup]:
    """
    Normalize raw tracking events and group them into milestones.

    Args:
        raw_events: List of event mappings or TrackingEvent instances
        fallback: StatusFallback or mapping with status, statusNote, createdAt
        now: Timestamp for a synthesized event when createdAt is missing

    Returns:
        MilestoneGroup list in order of each key's first occurrence
    """
    events = _coerce_events(raw_events)
    if not events:
        logger.debug("No tracking events; synthesizing created milestone")
        events = [_created_event(StatusFallback.coerce(fallback), now)]

    # sorted() is stable, so same-time events keep their append order
    stamped = sorted(
        ((parse_timestamp(event.occurred_at), event) for event in events),
        key=lambda pair: pair[0],
    )

    groups: dict[str, MilestoneGroup] = {}
    for occurred_at, event in stamped:
        key = normalize_key(_first_text(event.key, event.label) or DEFAULT_KEY)
        entry = MilestoneEntry(
            occurred_at=occurred_at,
            note=event.note.strip(),
            color=event.color.strip(),
            location=event.location,
        )

        group = groups.get(key)
        if group is None:
            groups[key] = MilestoneGroup(
                key=key,
                label=event.label.strip() or DEFAULT_LABEL,
                color=entry.color,
                occurred_at=occurred_at,
                location=entry.location,
                entries=[entry],
            )
        else:
            group.add_entry(entry)

    return list(groups.values())


class TrackingNormalizer:
    """
    Builds display timelines from shipment tracking history.

    An optional clock supplies "now" for shipments that have neither events
    nor a creation timestamp.
    """

    def __init__(self, clock: Optional[Callable[[], datetime]] = None):
        self.clock = clock

    def group(self, raw_events: Any, fallback: Any = None) -> list[MilestoneGroup]:
        now = self.clock() if self.clock else None
        return normalize_and_group(raw_events, fallback, now=now)

    def timeline(self, raw_events: Any, fallback: Any = None) -> TrackingTimeline:
        """Group events and summarize the current (latest-started) milestone."""
        groups = self.group(raw_events, fallback)
        current = groups[-1]
        status = StatusFallback.coerce(fallback).status.strip()
        return TrackingTimeline(
            events=groups,
            current_status=status or current.label,
            current_location=current.location.format(),
        )
