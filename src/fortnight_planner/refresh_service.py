from __future__ import annotations

"""Refresh service keeping the tasks outline ranked.

Design:
 - A refresh reads the outline, ranks every task and rewrites the file, but
   only when the task order differs from the previous pass.
 - A QFileSystemWatcher notices edits; each change (re)starts a single-shot
   debounce timer so a burst of saves yields one refresh.
 - A precise single-shot QTimer is re-armed for every top of the hour, when
   the free-hour counts shift.
 - Everything runs on the Qt event loop, so passes never overlap.
"""

from datetime import datetime, timedelta, tzinfo
import logging
from pathlib import Path
from typing import Callable, Mapping, Optional

from PyQt6.QtCore import QFileSystemWatcher, QObject, Qt, QTimer, pyqtSignal

from .errors import PlannerError
from .hour_ring import HourRing
from .models import Ranking
from .outline import load_outline, render_outline, task_order_changed, write_outline
from .urgency import sort_tasks

_log = logging.getLogger(__name__)

TimeProvider = Callable[[], datetime]


def _local_now() -> datetime:
    return datetime.now().astimezone()


def ms_until_top_of_hour(now: datetime) -> int:
    top = now.replace(minute=0, second=0, microsecond=0) + timedelta(hours=1)
    return max(0, int((top - now).total_seconds() * 1000))


class RefreshService(QObject):
    refreshed = pyqtSignal(object)  # Ranking
    written = pyqtSignal(str)  # path of the rewritten outline
    error = pyqtSignal(str)

    def __init__(
        self,
        path: Path,
        ring: HourRing,
        *,
        write_delay_ms: int = 20_000,
        zones: Optional[Mapping[str, tzinfo]] = None,
        time_provider: Optional[TimeProvider] = None,
    ) -> None:
        super().__init__()
        self._path = path
        self._ring = ring
        self._zones = zones
        self._time_provider: TimeProvider = time_provider or _local_now
        self._previous_order: Optional[list[str]] = None
        self._written_mtime: Optional[int] = None

        self._watcher = QFileSystemWatcher(self)
        self._watcher.fileChanged.connect(self._on_file_changed)

        self._debounce = QTimer(self)
        self._debounce.setSingleShot(True)
        self._debounce.setInterval(write_delay_ms)
        self._debounce.timeout.connect(self.refresh)

        self._hourly = QTimer(self)
        self._hourly.setSingleShot(True)
        self._hourly.setTimerType(Qt.TimerType.PreciseTimer)
        self._hourly.timeout.connect(self._on_top_of_hour)

    # --- Public API -----------------------------------------------------
    @property
    def path(self) -> Path:
        return self._path

    def start(self) -> None:
        self._watch()
        self.refresh()
        self._schedule_top_of_hour()

    def stop(self) -> None:
        self._debounce.stop()
        self._hourly.stop()
        files = self._watcher.files()
        if files:
            self._watcher.removePaths(files)

    def refresh(self) -> Optional[Ranking]:
        now = self._time_provider()
        _log.info("Updating task list", extra={"_json_path": str(self._path)})
        try:
            outline = load_outline(self._path)
            ranking = sort_tasks(outline.tasks, now, outline.events, self._ring, self._zones)
        except (OSError, PlannerError) as err:
            _log.error("refresh failed: %s", err, extra={"_json_subject": getattr(err, "subject", "")})
            self.error.emit(str(err))
            return None

        order = [t.name for t in ranking.all_tasks()]
        if task_order_changed(self._previous_order, order):
            text = render_outline(ranking, outline.events, now, self._ring, outline.other_lines)
            try:
                write_outline(self._path, text)
            except OSError as err:
                _log.error("could not write outline: %s", err)
                self.error.emit(str(err))
                return None
            self._written_mtime = self._mtime()
            _log.info("Updated task list file", extra={"_json_tasks": len(order)})
            self.written.emit(str(self._path))
        else:
            _log.debug("Task order unchanged, skipping write")
        self._previous_order = order
        self.refreshed.emit(ranking)
        return ranking

    # --- Internal -------------------------------------------------------
    def _mtime(self) -> Optional[int]:
        try:
            return self._path.stat().st_mtime_ns
        except OSError:
            return None

    def _watch(self) -> None:
        # Editors that save by replacing the file make the watcher drop it
        if str(self._path) not in self._watcher.files() and self._path.exists():
            if not self._watcher.addPath(str(self._path)):
                _log.warning("could not watch tasks file", extra={"_json_path": str(self._path)})

    def _on_file_changed(self, _changed: str) -> None:
        self._watch()
        if self._written_mtime is not None and self._mtime() == self._written_mtime:
            return  # our own write
        _log.debug("tasks file modified, refresh scheduled")
        self._debounce.start()

    def _schedule_top_of_hour(self) -> None:
        self._hourly.start(ms_until_top_of_hour(self._time_provider()))

    def _on_top_of_hour(self) -> None:
        self.refresh()
        self._schedule_top_of_hour()


__all__ = ["RefreshService", "ms_until_top_of_hour"]
