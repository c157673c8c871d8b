from datetime import date
import math

import pytest

from fortnight_planner.blocked_hours import event_blocked_hours
from fortnight_planner.deadlines import parse_absolute_deadline
from fortnight_planner.errors import MalformedDeadline, ValidationError
from fortnight_planner.event_calendar import get_next_blocked_hours
from fortnight_planner.models import GeneralEvent, HoursLeft, Rotation, Task, UrgencyState
from fortnight_planner.urgency import (
    busy_hours_between,
    calculate_urgency,
    get_hours_left,
    sort_tasks,
    urgency_for,
)


# --- Hours left -------------------------------------------------------------

@pytest.mark.parametrize("when,expected", [("early", 41), ("mid", 43), ("late", 68)])
def test_repeating_deadline_hours_left(ring, times, sleeping, book_club, when, expected):
    left = get_hours_left(book_club, times[when], event_blocked_hours(sleeping), ring)
    assert left.remaining_free_hours == expected


@pytest.mark.parametrize(
    "when,expected",
    [("early", (136, 616, -1264)), ("mid", (26, 506, -1422)), ("late", (-93, 419, -1557))],
)
def test_absolute_deadline_hours_left(ring, times, sleeping, reports, when, expected):
    blocked = event_blocked_hours(sleeping)
    actual = tuple(get_hours_left(t, times[when], blocked, ring).remaining_free_hours for t in reports)
    assert actual == expected


def test_busy_hours_reported(ring, times, sleeping, book_club):
    left = get_hours_left(book_club, times["early"], event_blocked_hours(sleeping), ring)
    assert left == HoursLeft(remaining_free_hours=41, busy_hours=16)


def test_past_deadline_has_no_busy_hours(ring, times, sleeping, reports):
    syllabus = reports[2]
    assert get_hours_left(syllabus, times["mid"], event_blocked_hours(sleeping), ring).busy_hours == 0


def test_no_blocked_hours(ring, times, book_club):
    assert get_hours_left(book_club, times["early"], [], ring) == HoursLeft(57, 0)


def test_overlapping_busy_hours_counted_once(ring, times, sleeping, book_club):
    double = sorted(event_blocked_hours(sleeping) * 2)
    assert get_hours_left(book_club, times["early"], double, ring).remaining_free_hours == 41


def test_busy_hours_past_end_of_ring(ring, times, sleeping, book_club):
    # From late, the window runs through the end of the ring into the next rotation
    left = get_hours_left(book_club, times["late"], event_blocked_hours(sleeping), ring)
    assert left == HoursLeft(68, 32)


@pytest.mark.parametrize("when,expected", [("early", 41), ("mid", 43), ("late", 68)])
def test_with_next_blocked_hours(ring, times, sleeping, book_club, when, expected):
    blocked = get_next_blocked_hours(times[when], [sleeping], ring)
    assert get_hours_left(book_club, times[when], blocked, ring).remaining_free_hours == expected


@pytest.mark.parametrize("when", ["early", "mid", "late"])
def test_pipeline_matches_raw_blocked_hours(ring, times, sleeping, book_club, reports, when):
    # The hour "now" rounds up to is still busy after being pushed to the next rotation
    raw = event_blocked_hours(sleeping)
    for task in (book_club, *reports):
        expected = get_hours_left(task, times[when], raw, ring).remaining_free_hours
        calculate_urgency(task, times[when], [sleeping], ring)
        assert task.remaining_free_hours == expected


def test_far_future_deadline(ring, times, sleeping):
    # Eight sleeping hours per day between now and the deadline
    days = (date(2400, 12, 28) - date(2022, 11, 20)).days
    task = Task(name="time capsule", deadline="16:00 12/28/2400 EST", estimated_hours=1)
    left = get_hours_left(task, times["early"], get_next_blocked_hours(times["early"], [sleeping], ring), ring)
    assert left == HoursLeft(remaining_free_hours=16 * days + 8, busy_hours=8 * days)


def test_busy_hours_between():
    assert busy_hours_between([], 0, 1000) == 0
    assert busy_hours_between([5, 10], 20, 10) == 0
    assert busy_hours_between([5, 10], 5, 10) == 1
    assert busy_hours_between([5, 10], 5, 11) == 2
    # Raw overflow slot 341 is the same hour as slot 5
    assert busy_hours_between([5, 341, 677], 0, 336) == 1
    assert busy_hours_between([5, 10], 6, 6 + 3 * 336) == 6
    assert busy_hours_between([5, 10], 6, 6 + 3 * 336 + 5) == 7


def test_errors_carry_task_name(ring, times):
    task = Task(name="taxes", deadline="whenever", estimated_hours=3)
    with pytest.raises(MalformedDeadline) as info:
        get_hours_left(task, times["early"], [], ring)
    assert info.value.subject == "taxes"


@pytest.mark.parametrize(
    "task",
    [
        Task(name="", deadline="18:00 both Monday", estimated_hours=1),
        Task(name="no deadline", estimated_hours=1),
        Task(name="no estimate", deadline="18:00 both Monday"),
        Task(name="negative", deadline="18:00 both Monday", estimated_hours=-1),
    ],
)
def test_invalid_tasks(ring, times, task):
    with pytest.raises(ValidationError):
        get_hours_left(task, times["early"], [], ring)


# --- Urgency ----------------------------------------------------------------

def test_urgency_for():
    assert urgency_for(0, 10) == (UrgencyState.COMPLETE, 0.0)
    assert urgency_for(0, -10) == (UrgencyState.COMPLETE, 0.0)
    assert urgency_for(3, 0) == (UrgencyState.DUE_NOW, math.inf)
    assert urgency_for(3, 12) == (UrgencyState.PENDING, 0.25)
    state, urgency = urgency_for(3, -6)
    assert state is UrgencyState.OVERDUE
    assert urgency == -0.5


def test_calculate_urgency(ring, times):
    club = Task(name="book club", deadline="08:00 11/27/2022 EST", estimated_hours=24)
    assert calculate_urgency(club, times["mid"], [], ring) == pytest.approx(2.4)
    assert club.state is UrgencyState.PENDING
    assert club.remaining_free_hours == 10
    assert club.busy_hours_in_window == 0


def test_calculate_urgency_with_events(ring, times, sleeping, book_club):
    assert calculate_urgency(book_club, times["early"], [sleeping], ring) == pytest.approx(1 / 41)
    assert book_club.busy_hours_in_window == 16


def test_due_this_hour(ring):
    now = parse_absolute_deadline("17:20 11/22/2022 EST")
    task = Task(name="submit", deadline="17:00 11/22/2022 EST", estimated_hours=2)
    assert calculate_urgency(task, now, [], ring) == math.inf
    assert task.state is UrgencyState.DUE_NOW


def test_complete_task(ring, times, reports):
    done = Task(name="done", deadline=reports[2].deadline, estimated_hours=0)
    assert calculate_urgency(done, times["late"], [], ring) == 0.0
    assert done.state is UrgencyState.COMPLETE


# --- Ranking ----------------------------------------------------------------

def test_sort_tasks(ring, times, reports):
    club = Task(name="book club", deadline="08:00 11/27/2022 EST", estimated_hours=24)
    report1, report2, syllabus = reports
    tasks = [club, report1, report2, syllabus]

    ranking = sort_tasks(tasks, times["mid"], [], ring)
    assert ranking.tasks == [club, report1, report2, syllabus]
    assert club.urgency == pytest.approx(2.4)
    assert ranking.failures == []

    ranking = sort_tasks(tasks, times["late"], [], ring)
    assert ranking.tasks == [report2, syllabus, report1, club]
    assert club.urgency < 0


def test_sort_is_stable_for_ties(ring, times):
    a = Task(name="a", deadline="18:00 both Monday", estimated_hours=2)
    b = Task(name="b", deadline="18:00 both Monday", estimated_hours=2)
    c = Task(name="c", deadline="18:00 both Monday", estimated_hours=2)
    assert sort_tasks([b, c, a], times["early"], [], ring).tasks == [b, c, a]


def test_sort_collects_task_failures(ring, times, reports):
    report1, report2, _ = reports
    broken = Task(name="broken", deadline="sometime soon", estimated_hours=1)
    ranking = sort_tasks([report1, broken, report2], times["mid"], [], ring)
    assert ranking.tasks == [report1, report2]
    assert [f.name for f in ranking.failures] == ["broken"]
    assert isinstance(ranking.failures[0].error, MalformedDeadline)
    assert ranking.failures[0].error.subject == "broken"
    assert broken.state is None
    assert ranking.all_tasks() == [report1, report2, broken]


def test_sort_aborts_on_bad_event(ring, times, reports):
    broken = GeneralEvent(name="gym", rotation=Rotation.BOTH, days="Mon", start_hour=6)
    with pytest.raises(ValidationError):
        sort_tasks(list(reports), times["mid"], [broken], ring)


def test_recomputation_overwrites_derived_fields(ring, times, sleeping, book_club):
    calculate_urgency(book_club, times["early"], [sleeping], ring)
    calculate_urgency(book_club, times["late"], [sleeping], ring)
    assert book_club.remaining_free_hours == 68
    assert book_club.busy_hours_in_window == 32
