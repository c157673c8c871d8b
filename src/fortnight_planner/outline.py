from __future__ import annotations

"""Read and write the markdown outline ("To Do List.md") holding tasks and events.

Layout (tabs for depth)::

    Updated at 09:00 11/20/2022: First Sunday
    - Upcoming Tasks
    	- Read for book club
    		- Deadline; 18:00 both Tuesday, Thursday
    		- Estimated Hours; 1
    		- *Urgency 0.024: 41 free hours left, 16 busy*
    - Regular Events
    	- Sleeping
    		- Rotation; both
    		- Days; Sun-Sat
    		- Start Time; 23
    		- Duration; 8

Lines we generate are wrapped in ``*`` at depth two and are dropped on read.
Anything outside the recognized sections is carried through untouched.
"""

from dataclasses import dataclass, field
from datetime import datetime
import logging
from pathlib import Path
import re
from typing import Iterable, Optional, Sequence

from .errors import PlannerError
from .event_calendar import split_events
from .hour_ring import HourRing
from .models import GeneralEvent, Ranking, Rotation, Task, UrgencyState

_log = logging.getLogger(__name__)

TASKS_FILE = "To Do List.md"

OVERDUE_TASKS = "Overdue Tasks"
UPCOMING_TASKS = "Upcoming Tasks"
COMPLETED_TASKS = "Completed Tasks"
REGULAR_EVENTS = "Regular Events"
INACTIVE_EVENTS = "Inactive Events"

TASK_SECTIONS = (OVERDUE_TASKS, UPCOMING_TASKS, COMPLETED_TASKS)
EVENT_SECTIONS = (REGULAR_EVENTS, INACTIVE_EVENTS)

UPDATE_LINE_PREFIX = "Updated at "
UPDATE_TIME_FORMAT = "%H:%M %m/%d/%Y"

_GENERATED_RE = re.compile(r"^\t{2}- \*(.+)\*\s*$")
_TRUE = {"true", "yes", "1", "t", "y"}
_FALSE = {"false", "no", "0", "f", "n"}


class OutlineError(PlannerError):
    pass


@dataclass(slots=True)
class Outline:
    events: list[GeneralEvent] = field(default_factory=list)
    tasks: list[Task] = field(default_factory=list)
    other_lines: list[str] = field(default_factory=list)


# --- Reading ----------------------------------------------------------------

def _depth(raw: str) -> int:
    return len(raw) - len(raw.lstrip("\t"))


def _text(raw: str) -> str:
    text = raw.strip()
    if text.startswith("-"):
        text = text[1:].strip()
    return text


def _field(text: str) -> tuple[str, str] | None:
    if ";" not in text:
        return None
    key, value = text.split(";", 1)
    return key.strip(), value.strip()


def _int_field(entry: str, key: str, value: str) -> Optional[int]:
    try:
        return int(value)
    except ValueError:
        _log.warning("ignoring non-numeric field", extra={"_json_entry": entry, "_json_field": key, "_json_value": value})
        return None


def _group_entries(body: Sequence[str]) -> list[list[str]]:
    entries: list[list[str]] = []
    entry_depth = _depth(body[0]) if body else 0
    for raw in body:
        if _GENERATED_RE.match(raw):
            continue
        if _depth(raw) <= entry_depth or not entries:
            entries.append([raw])
        else:
            entries[-1].append(raw)
    return entries


def _to_task(lines: list[str]) -> Task:
    task = Task(name=_text(lines[0]), raw_lines=list(lines))
    for raw in lines[1:]:
        parsed = _field(_text(raw))
        if parsed is None:
            continue
        key, value = parsed
        if key == "Deadline":
            task.deadline = value
        elif key == "Estimated Hours":
            task.estimated_hours = _int_field(task.name, key, value)
    return task


def _to_event(lines: list[str], inactive_section: bool) -> GeneralEvent:
    event = GeneralEvent(name=_text(lines[0]), inactive=inactive_section, raw_lines=list(lines))
    for raw in lines[1:]:
        parsed = _field(_text(raw))
        if parsed is None:
            continue
        key, value = parsed
        if key == "Rotation":
            try:
                event.rotation = Rotation.from_text(value)
            except ValueError:
                _log.warning("unknown rotation", extra={"_json_entry": event.name, "_json_value": value})
        elif key == "Days":
            event.days = value
        elif key == "Start Time":
            event.start_hour = _int_field(event.name, key, value)
        elif key == "Duration":
            event.duration = _int_field(event.name, key, value)
        elif key == "Inactive":
            flag = value.lower()
            if flag in _TRUE:
                event.inactive = True
            elif flag in _FALSE:
                event.inactive = inactive_section
            else:
                _log.warning("unreadable inactive flag", extra={"_json_entry": event.name, "_json_value": value})
    return event


def read_outline(lines: Iterable[str]) -> Outline:
    raw_lines = [line.rstrip("\r\n") for line in lines]
    outline = Outline()
    found_section = False
    index = 0
    while index < len(raw_lines):
        raw = raw_lines[index]
        heading = _text(raw)
        if heading in TASK_SECTIONS or heading in EVENT_SECTIONS:
            found_section = True
            depth = _depth(raw)
            end = index + 1
            while end < len(raw_lines) and raw_lines[end].strip() and _depth(raw_lines[end]) > depth:
                end += 1
            for entry in _group_entries(raw_lines[index + 1 : end]):
                if heading in TASK_SECTIONS:
                    outline.tasks.append(_to_task(entry))
                else:
                    outline.events.append(_to_event(entry, heading == INACTIVE_EVENTS))
            index = end
            continue
        if not raw.startswith(UPDATE_LINE_PREFIX) and raw.strip():
            outline.other_lines.append(raw)
        index += 1
    if not found_section:
        raise OutlineError("Outline has no task or event sections")
    return outline


def load_outline(path: Path) -> Outline:
    return read_outline(path.read_text(encoding="utf-8").splitlines())


# --- Writing ----------------------------------------------------------------

def _task_lines(task: Task) -> list[str]:
    if task.raw_lines:
        return list(task.raw_lines)
    lines = [f"\t- {task.name}"]
    if task.deadline:
        lines.append(f"\t\t- Deadline; {task.deadline}")
    if task.estimated_hours is not None:
        lines.append(f"\t\t- Estimated Hours; {task.estimated_hours}")
    return lines


def _event_lines(event: GeneralEvent) -> list[str]:
    if event.raw_lines:
        return list(event.raw_lines)
    lines = [f"\t- {event.name}"]
    if event.rotation is not None:
        lines.append(f"\t\t- Rotation; {event.rotation.value}")
    if event.days:
        lines.append(f"\t\t- Days; {event.days}")
    if event.start_hour is not None:
        lines.append(f"\t\t- Start Time; {event.start_hour}")
    if event.duration is not None:
        lines.append(f"\t\t- Duration; {event.duration}")
    if event.inactive:
        lines.append("\t\t- Inactive; true")
    return lines


def task_summary(task: Task) -> str:
    if task.state is UrgencyState.COMPLETE:
        return "Complete"
    if task.state is UrgencyState.DUE_NOW:
        return "Due this hour, no free hours left"
    if task.state is UrgencyState.OVERDUE:
        return f"Overdue by {-task.remaining_free_hours} hours"
    return (
        f"Urgency {task.urgency:.3f}: {task.remaining_free_hours} free hours left, "
        f"{task.busy_hours_in_window} busy"
    )


def render_outline(
    ranking: Ranking,
    events: Sequence[GeneralEvent],
    now: datetime,
    ring: HourRing,
    other_lines: Sequence[str] = (),
) -> str:
    overdue = [t for t in ranking.tasks if t.state is UrgencyState.OVERDUE]
    completed = [t for t in ranking.tasks if t.state is UrgencyState.COMPLETE]
    upcoming = [t for t in ranking.tasks if t.state in (UrgencyState.PENDING, UrgencyState.DUE_NOW)]
    summaries: dict[int, str] = {id(t): task_summary(t) for t in ranking.tasks}
    for failure in ranking.failures:
        upcoming.append(failure.task)
        summaries[id(failure.task)] = f"Could not schedule: {failure.error}"

    out = [f"{UPDATE_LINE_PREFIX}{now.strftime(UPDATE_TIME_FORMAT)}: {ring.describe_day(now)}"]
    for heading, tasks in ((OVERDUE_TASKS, overdue), (UPCOMING_TASKS, upcoming), (COMPLETED_TASKS, completed)):
        if not tasks:
            continue
        out.append(f"- {heading}")
        for task in tasks:
            out.extend(_task_lines(task))
            out.append(f"\t\t- *{summaries[id(task)]}*")

    active, inactive = split_events(events)
    for heading, group in ((REGULAR_EVENTS, active), (INACTIVE_EVENTS, inactive)):
        if not group:
            continue
        out.append(f"- {heading}")
        for event in group:
            out.extend(_event_lines(event))
    out.extend(other_lines)
    return "\n".join(out) + "\n"


def write_outline(path: Path, text: str) -> None:
    path.write_text(text, encoding="utf-8")


def task_order_changed(previous: Optional[Sequence[str]], current: Sequence[str]) -> bool:
    return previous is None or list(previous) != list(current)


__all__ = [
    "TASKS_FILE",
    "OutlineError",
    "Outline",
    "read_outline",
    "load_outline",
    "task_summary",
    "render_outline",
    "write_outline",
    "task_order_changed",
]
