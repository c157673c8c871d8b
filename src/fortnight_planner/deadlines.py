from __future__ import annotations

"""Deadline parsing and resolution onto the hour ring.

Two formats are accepted, tried in order:

 - absolute: ``"14:00 12/25/2023 EST"`` (24h clock, month/day/year, zone label)
 - repeating: ``"18:00 both Tuesday, Thursday"`` (hour, rotation, day spec)

A resolved deadline is expressed relative to the rotation that contains
"now": a slot in that rotation plus a signed count of intervening
fortnights. Far-future deadlines get a large positive count, long-past ones
a negative count; there is no clamping in either direction.
"""

from datetime import datetime, timedelta, timezone, tzinfo
import logging
import re
from typing import Mapping, Optional

from .blocked_hours import generate_blocked_hours
from .day_spec import parse_day_spec
from .errors import MalformedDeadline, NoOccurrenceFound
from .hour_ring import RING_HOURS, HourRing
from .models import ResolvedDeadline, Rotation, Weekday

_log = logging.getLogger(__name__)

ABSOLUTE_FORMAT = "%H:%M %m/%d/%Y"
_ABSOLUTE_RE = re.compile(r"^\s*(\d{1,2}:\d{2}\s+\d{1,2}/\d{1,2}/\d{4})\s+([A-Za-z]{1,6})\s*$")
_ONE_HOUR = timedelta(hours=1)


def _zone(name: str, hours: int) -> timezone:
    return timezone(timedelta(hours=hours), name)


DEFAULT_ZONES: dict[str, tzinfo] = {
    "UTC": timezone.utc,
    "GMT": _zone("GMT", 0),
    "EST": _zone("EST", -5),
    "EDT": _zone("EDT", -4),
    "CST": _zone("CST", -6),
    "CDT": _zone("CDT", -5),
    "MST": _zone("MST", -7),
    "MDT": _zone("MDT", -6),
    "PST": _zone("PST", -8),
    "PDT": _zone("PDT", -7),
    "AKST": _zone("AKST", -9),
    "AKDT": _zone("AKDT", -8),
    "HST": _zone("HST", -10),
}


# --- Parsing ----------------------------------------------------------------

def parse_absolute_deadline(text: str, zones: Optional[Mapping[str, tzinfo]] = None) -> datetime | None:
    """Return an aware datetime, or None when ``text`` is not in the absolute format."""
    match = _ABSOLUTE_RE.match(text)
    if not match:
        return None
    stamp, label = match.groups()
    zone = (zones or DEFAULT_ZONES).get(label.upper())
    if zone is None:
        raise MalformedDeadline(text, f"Deadline '{text}' uses unknown time zone '{label}'")
    try:
        parsed = datetime.strptime(" ".join(stamp.split()), ABSOLUTE_FORMAT)
    except ValueError as err:
        raise MalformedDeadline(text, f"Deadline '{text}' is not a valid date: {err}") from err
    return parsed.replace(tzinfo=zone)


def parse_repeating_deadline(text: str) -> tuple[int, Rotation, list[Weekday]]:
    """Split ``"HH:MM <rotation> <dayspec>"`` into (hour, rotation, days)."""
    parts = text.split(None, 2)
    if len(parts) < 3:
        raise MalformedDeadline(text, f"Deadline '{text}' needs a time, a rotation and days")
    clock, rotation_text, day_text = parts
    try:
        hour = int(clock.split(":")[0])
    except ValueError as err:
        raise MalformedDeadline(text, f"Deadline '{text}' has an unreadable hour '{clock}'") from err
    if not (0 <= hour <= 23):
        raise MalformedDeadline(text, f"Deadline '{text}' hour must be between 0 and 23")
    try:
        rotation = Rotation.from_text(rotation_text)
    except ValueError as err:
        raise MalformedDeadline(
            text, f"Deadline '{text}' must name a rotation of first, second or both"
        ) from err
    return hour, rotation, parse_day_spec(day_text)


# --- Resolution -------------------------------------------------------------

def _resolve_absolute(deadline: datetime, now: datetime, ring: HourRing) -> ResolvedDeadline:
    # Measure from the rotation holding the block "now" rounds up to, so the
    # slot agrees with ring.to_ring_slot(now) even in a rotation's last hour.
    rotation_start = ring.zero_sunday_of(ring.next_hour(now))
    offset = (ring.next_hour(deadline) - rotation_start) // _ONE_HOUR
    fortnights, slot = divmod(offset, RING_HOURS)
    return ResolvedDeadline(slot=slot, intervening_fortnights=fortnights)


def _resolve_repeating(text: str, now: datetime, ring: HourRing) -> ResolvedDeadline:
    hour, rotation, days = parse_repeating_deadline(text)
    slots = generate_blocked_hours(days, rotation, hour, 1)
    if not slots:
        raise NoOccurrenceFound(f"Deadline '{text}' has no occurrences")
    upcoming = ring.to_ring_slot(now)
    # One pass over this rotation, then one over the next
    for step in range(2 * len(slots)):
        wraps, index = divmod(step, len(slots))
        candidate = slots[index] + wraps * RING_HOURS
        if candidate > upcoming:
            fortnights, slot = divmod(candidate, RING_HOURS)
            return ResolvedDeadline(slot=slot, intervening_fortnights=fortnights)
    raise NoOccurrenceFound(f"Deadline '{text}' has no occurrence after slot {upcoming}")


def resolve_deadline(
    text: str, now: datetime, ring: HourRing, zones: Optional[Mapping[str, tzinfo]] = None
) -> ResolvedDeadline:
    absolute = parse_absolute_deadline(text, zones)
    if absolute is not None:
        resolved = _resolve_absolute(absolute, now, ring)
    else:
        resolved = _resolve_repeating(text, now, ring)
    _log.debug("resolved deadline %r to slot %d", text, resolved.absolute_slot)
    return resolved


__all__ = [
    "ABSOLUTE_FORMAT",
    "DEFAULT_ZONES",
    "parse_absolute_deadline",
    "parse_repeating_deadline",
    "resolve_deadline",
]
