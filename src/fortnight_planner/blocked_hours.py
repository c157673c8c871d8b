from __future__ import annotations

"""Expand a recurring event into the ring slots it occupies.

Slots are intentionally left unreduced: an event starting at 23:00 on the
second Saturday with an 8 hour duration yields 335..342, running past the end
of the ring. Consumers normalize modulo ``RING_HOURS`` when they compare
against "now".
"""

import logging
from typing import Iterable

from .day_spec import parse_day_spec
from .errors import ParseError
from .hour_ring import DAY_HOURS, WEEK_HOURS
from .models import GeneralEvent, Rotation, Weekday

_log = logging.getLogger(__name__)


def generate_blocked_hours(
    days: Iterable[Weekday], rotation: Rotation, start_hour: int, duration: int
) -> list[int]:
    hours: list[int] = []
    for day in days:
        first_week_base = DAY_HOURS * int(day)
        second_week_base = first_week_base + WEEK_HOURS
        for offset in range(duration):
            if rotation.includes_first:
                hours.append(first_week_base + start_hour + offset)
            if rotation.includes_second:
                hours.append(second_week_base + start_hour + offset)
    hours.sort()
    return hours


def event_blocked_hours(event: GeneralEvent) -> list[int]:
    """Raw blocked slots for a validated event."""
    try:
        days = parse_day_spec(event.days)
    except ParseError as err:
        raise ParseError(err.phrase, f"Event '{event.name}': {err}", subject=event.name) from err
    hours = generate_blocked_hours(days, event.rotation, event.start_hour, event.duration)  # type: ignore[arg-type]
    _log.debug("expanded event %s into %d blocked hours", event.name, len(hours))
    return hours


__all__ = ["generate_blocked_hours", "event_blocked_hours"]
