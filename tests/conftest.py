import os
from pathlib import Path
import sys
import pytest

# Ensure src/ is on sys.path for direct test invocation without an editable install
PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_PATH = PROJECT_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

# Qt must not look for a display on CI machines
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from fortnight_planner.deadlines import parse_absolute_deadline
from fortnight_planner.hour_ring import HourRing
from fortnight_planner.models import GeneralEvent, Rotation, Task


@pytest.fixture()
def ring() -> HourRing:
    return HourRing()


@pytest.fixture()
def times():
    # Relative to the rotation starting Sunday 11/20/2022
    return {
        "early": parse_absolute_deadline("08:00 11/20/2022 EST"),  # first Sunday morning
        "mid": parse_absolute_deadline("22:00 11/26/2022 EST"),  # first Saturday night
        "late": parse_absolute_deadline("13:00 12/02/2022 EST"),  # second Friday afternoon
    }


@pytest.fixture()
def sleeping() -> GeneralEvent:
    return GeneralEvent(name="sleeping", rotation=Rotation.BOTH, days="Sun-Sat", start_hour=23, duration=8)


@pytest.fixture()
def book_club() -> Task:
    return Task(name="Read For Book Club", deadline="18:00 both Tuesday, Thursday", estimated_hours=1)


@pytest.fixture()
def reports():
    """(first book report, second book report, syllabus): near, far future, long past."""
    return (
        Task(name="Finish first book report for class", deadline="16:00 11/28/2022 EST", estimated_hours=1),
        Task(name="Finish second book report for class", deadline="16:00 12/28/2022 EST", estimated_hours=1),
        Task(name="Read the syllabus and get it signed", deadline="16:00 09/28/2022 EST", estimated_hours=1),
    )
