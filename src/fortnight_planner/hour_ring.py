from __future__ import annotations

"""Two-week hour ring anchored on a fixed "prime Sunday".

Slot 0 is the hour from midnight to 1am on the first Sunday of a rotation and
slot 335 the last hour of the second Saturday. The anchor is a civil date; its
midnight is labelled with the UTC offset of whatever instant is being
evaluated, so the same wall-clock midnight is reused across daylight saving
changes instead of tracking transitions.

Instants are quantized to the *upcoming* hour block: anything inside 08:00-08:59
(08:00 itself included) maps to the block that starts at 09:00.
"""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone

RING_HOURS = 336  # 2 weeks * 7 days * 24 hours
WEEK_HOURS = 168
DAY_HOURS = 24

# A first-week Sunday; any Sunday an even number of weeks away is equivalent.
DEFAULT_ANCHOR = date(2022, 1, 2)

_ONE_HOUR = timedelta(hours=1)
_ONE_ROTATION = timedelta(hours=RING_HOURS)
_DAY_NAMES = ("Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday")


def _aware(instant: datetime) -> datetime:
    # Naive datetimes are taken as local wall-clock time
    if instant.tzinfo is None or instant.utcoffset() is None:
        return instant.astimezone()
    return instant


@dataclass(slots=True, frozen=True)
class HourRing:
    anchor: date = DEFAULT_ANCHOR

    def __post_init__(self) -> None:
        if self.anchor.weekday() != 6:  # date.weekday(): Sunday == 6
            raise ValueError(f"Ring anchor {self.anchor.isoformat()} is not a Sunday")

    # --- Instants ------------------------------------------------------
    def anchor_instant(self, reference: datetime) -> datetime:
        """Anchor midnight carrying the UTC offset in effect at ``reference``."""
        offset = _aware(reference).utcoffset()
        return datetime.combine(self.anchor, time(0), tzinfo=timezone(offset))

    def next_hour(self, instant: datetime) -> datetime:
        instant = _aware(instant)
        return instant.replace(minute=0, second=0, microsecond=0) + _ONE_HOUR

    def hours_since_anchor(self, instant: datetime) -> int:
        """Signed, unreduced hour index of the block ``instant`` rounds up to."""
        upcoming = self.next_hour(instant)
        return (upcoming - self.anchor_instant(upcoming)) // _ONE_HOUR

    def to_ring_slot(self, instant: datetime) -> int:
        return self.hours_since_anchor(instant) % RING_HOURS

    def zero_sunday_of(self, instant: datetime) -> datetime:
        """Start of the rotation containing ``instant`` (last anchor step not after it)."""
        instant = _aware(instant)
        anchor = self.anchor_instant(instant)
        return anchor + _ONE_ROTATION * ((instant - anchor) // _ONE_ROTATION)

    # --- Labels --------------------------------------------------------
    def describe_day(self, instant: datetime) -> str:
        instant = _aware(instant)
        days = (instant - self.zero_sunday_of(instant)).days
        week = "First" if days < 7 else "Second"
        return f"{week} {_DAY_NAMES[days % 7]}"


def describe_slot(slot: int) -> str:
    """Human label for a (possibly unreduced) slot, e.g. ``Second Tuesday 18:00``."""
    slot %= RING_HOURS
    week = "First" if slot < WEEK_HOURS else "Second"
    day, hour = divmod(slot % WEEK_HOURS, DAY_HOURS)
    return f"{week} {_DAY_NAMES[day]} {hour:02d}:00"


__all__ = [
    "RING_HOURS",
    "WEEK_HOURS",
    "DAY_HOURS",
    "DEFAULT_ANCHOR",
    "HourRing",
    "describe_slot",
]
