from __future__ import annotations

"""Free hours, urgency and ranking of tasks.

Urgency is estimated hours divided by the free (non-busy) hours left before
the deadline:

 - zero estimated hours means the task is complete: urgency 0.0
 - zero free hours means the deadline is this very hour: urgency +inf
 - negative free hours means the deadline has passed: urgency < 0
"""

from datetime import datetime, tzinfo
import logging
import math
from typing import Mapping, Optional, Sequence

from .deadlines import resolve_deadline
from .errors import PlannerError
from .event_calendar import get_next_blocked_hours
from .hour_ring import RING_HOURS, HourRing
from .models import GeneralEvent, HoursLeft, Ranking, Task, TaskFailure, UrgencyState

_log = logging.getLogger(__name__)

Zones = Optional[Mapping[str, tzinfo]]


def busy_hours_between(blocked_slots: Sequence[int], start: int, stop: int) -> int:
    """Count hours in ``[start, stop)`` that land on a blocked slot.

    Slots are compared modulo ``RING_HOURS``, so raw overflow slots and slots
    already pushed to the next rotation count the same. Overlapping events
    share the hour. Whole rotations inside the window are counted in one step.
    """
    if stop <= start or not blocked_slots:
        return 0
    residues = {slot % RING_HOURS for slot in blocked_slots}
    rotations, rest = divmod(stop - start, RING_HOURS)
    return rotations * len(residues) + sum(1 for r in residues if (r - start) % RING_HOURS < rest)


def get_hours_left(
    task: Task, now: datetime, blocked_slots: Sequence[int], ring: HourRing, zones: Zones = None
) -> HoursLeft:
    try:
        task.validate()
        resolved = resolve_deadline(task.deadline, now, ring, zones)  # type: ignore[arg-type]
    except PlannerError as err:
        if not err.subject:
            err.subject = task.name
        raise

    now_slot = ring.to_ring_slot(now)
    deadline_slot = resolved.absolute_slot
    busy = busy_hours_between(blocked_slots, now_slot, deadline_slot)
    return HoursLeft(deadline_slot - now_slot - busy, busy)


def urgency_for(estimated_hours: int, hours_left: int) -> tuple[UrgencyState, float]:
    if estimated_hours == 0:
        return UrgencyState.COMPLETE, 0.0
    if hours_left == 0:
        return UrgencyState.DUE_NOW, math.inf
    state = UrgencyState.PENDING if hours_left > 0 else UrgencyState.OVERDUE
    return state, estimated_hours / hours_left


def _score(task: Task, now: datetime, blocked_slots: Sequence[int], ring: HourRing, zones: Zones) -> None:
    task.reset_derived()
    left = get_hours_left(task, now, blocked_slots, ring, zones)
    task.state, task.urgency = urgency_for(task.estimated_hours, left.remaining_free_hours)  # type: ignore[arg-type]
    task.remaining_free_hours = left.remaining_free_hours
    task.busy_hours_in_window = left.busy_hours


def calculate_urgency(
    task: Task, now: datetime, events: Sequence[GeneralEvent], ring: HourRing, zones: Zones = None
) -> float:
    blocked = get_next_blocked_hours(now, events, ring)
    _score(task, now, blocked, ring, zones)
    return task.urgency


def sort_tasks(
    tasks: Sequence[Task], now: datetime, events: Sequence[GeneralEvent], ring: HourRing, zones: Zones = None
) -> Ranking:
    """Score every task and rank them most urgent first.

    An invalid event fails the whole pass, since every task depends on the
    busy hours. A task that fails on its own is reported in
    ``Ranking.failures`` and left out of the ranking.
    """
    blocked = get_next_blocked_hours(now, events, ring)
    scored: list[Task] = []
    failures: list[TaskFailure] = []
    for task in tasks:
        try:
            _score(task, now, blocked, ring, zones)
        except PlannerError as err:
            task.reset_derived()
            failures.append(TaskFailure(task, err))
            _log.warning("could not score task", extra={"_json_task": task.name, "_json_error": str(err)})
            continue
        scored.append(task)
    # sorted() is stable with reverse=True, so ties keep input order
    ranked = sorted(scored, key=lambda t: t.urgency, reverse=True)
    return Ranking(tasks=ranked, failures=failures)


__all__ = [
    "busy_hours_between",
    "get_hours_left",
    "urgency_for",
    "calculate_urgency",
    "sort_tasks",
]
