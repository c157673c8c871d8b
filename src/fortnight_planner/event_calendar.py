from __future__ import annotations

"""Aggregate recurring events into the busy hours ahead of "now"."""

from datetime import datetime
import logging
from typing import Iterable, Sequence

from .blocked_hours import event_blocked_hours
from .hour_ring import RING_HOURS, HourRing
from .models import GeneralEvent

_log = logging.getLogger(__name__)


def split_events(events: Iterable[GeneralEvent]) -> tuple[list[GeneralEvent], list[GeneralEvent]]:
    active: list[GeneralEvent] = []
    inactive: list[GeneralEvent] = []
    for event in events:
        (inactive if event.inactive else active).append(event)
    return active, inactive


def get_next_blocked_hours(now: datetime, events: Sequence[GeneralEvent], ring: HourRing) -> list[int]:
    """Sorted busy slots, each pushed to its next occurrence after ``now``.

    Slots at or before the upcoming hour block belong to the following
    rotation and get ``RING_HOURS`` added, so values fall in
    ``(upcoming, upcoming + RING_HOURS]``. Overlapping events are not merged.
    The first invalid active event aborts the whole call.
    """
    active, _ = split_events(events)
    for event in active:
        event.validate()

    upcoming = ring.to_ring_slot(now)
    hours: list[int] = []
    for event in active:
        for hour in event_blocked_hours(event):
            hour %= RING_HOURS
            if hour <= upcoming:
                hour += RING_HOURS
            hours.append(hour)
    hours.sort()
    _log.debug("%d blocked hours from %d active events", len(hours), len(active), extra={"_json_upcoming": upcoming})
    return hours


__all__ = ["split_events", "get_next_blocked_hours"]
