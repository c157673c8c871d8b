from __future__ import annotations

"""Runtime configuration read from environment variables.

 - NOTESDIR: directory holding the tasks outline
 - FORTNIGHT_ANCHOR: ISO date of the prime Sunday (slot 0 of every rotation)
 - FORTNIGHT_WRITE_DELAY: seconds to wait after a file change before refreshing
 - FORTNIGHT_DATA_DIR: where logs are written
 - FORTNIGHT_LOG_LEVEL: logging level name
 - FORTNIGHT_ZONES: extra zone labels for absolute deadlines, e.g. "IST=+05:30,CET=+01:00"
"""

from dataclasses import dataclass, field
from datetime import date, timedelta, timezone, tzinfo
import logging
import os
from pathlib import Path
import re
from typing import Mapping

from .deadlines import DEFAULT_ZONES
from .errors import ConfigError
from .hour_ring import DEFAULT_ANCHOR, HourRing
from .outline import TASKS_FILE

_log = logging.getLogger(__name__)

DEFAULT_NOTES_DIR = "~/Documents/Logseq/personal/pages"
DEFAULT_DATA_DIR = "~/.fortnight_planner"
_ZONE_RE = re.compile(r"^([A-Za-z]{1,6})=([+-])(\d{1,2}):(\d{2})$")


@dataclass(slots=True)
class AppConfig:
    notes_dir: Path
    anchor: date = DEFAULT_ANCHOR
    tasks_file: str = TASKS_FILE
    write_delay_seconds: float = 20.0
    data_dir: Path = field(default_factory=lambda: Path(DEFAULT_DATA_DIR).expanduser())
    log_level: int = logging.INFO
    extra_zones: dict[str, tzinfo] = field(default_factory=dict)

    @property
    def tasks_path(self) -> Path:
        return self.notes_dir / self.tasks_file

    @property
    def write_delay_ms(self) -> int:
        return int(self.write_delay_seconds * 1000)

    def ring(self) -> HourRing:
        try:
            return HourRing(self.anchor)
        except ValueError as err:
            raise ConfigError(str(err)) from err

    def zones(self) -> dict[str, tzinfo]:
        return {**DEFAULT_ZONES, **self.extra_zones}


def parse_zones(text: str) -> dict[str, tzinfo]:
    zones: dict[str, tzinfo] = {}
    for item in filter(None, (part.strip() for part in text.split(","))):
        match = _ZONE_RE.match(item)
        if not match:
            raise ConfigError(f"Zone '{item}' must look like ABBR=+HH:MM")
        label, sign, hours, minutes = match.groups()
        offset = timedelta(hours=int(hours), minutes=int(minutes))
        zones[label.upper()] = timezone(-offset if sign == "-" else offset, label.upper())
    return zones


def load_config(env: Mapping[str, str] | None = None) -> AppConfig:
    env = os.environ if env is None else env

    notes_dir = env.get("NOTESDIR", "")
    if not notes_dir:
        _log.warning("NOTESDIR not set, using default", extra={"_json_default": DEFAULT_NOTES_DIR})
        notes_dir = DEFAULT_NOTES_DIR
    config = AppConfig(notes_dir=Path(notes_dir).expanduser())

    if env.get("FORTNIGHT_ANCHOR"):
        try:
            config.anchor = date.fromisoformat(env["FORTNIGHT_ANCHOR"])
        except ValueError as err:
            raise ConfigError(f"FORTNIGHT_ANCHOR must be an ISO date: {err}") from err
        config.ring()  # fail at startup on a non-Sunday anchor

    if env.get("FORTNIGHT_WRITE_DELAY"):
        try:
            config.write_delay_seconds = float(env["FORTNIGHT_WRITE_DELAY"])
        except ValueError as err:
            raise ConfigError("FORTNIGHT_WRITE_DELAY must be a number of seconds") from err
        if config.write_delay_seconds < 0:
            raise ConfigError("FORTNIGHT_WRITE_DELAY cannot be negative")

    if env.get("FORTNIGHT_DATA_DIR"):
        config.data_dir = Path(env["FORTNIGHT_DATA_DIR"]).expanduser()

    if env.get("FORTNIGHT_LOG_LEVEL"):
        level = logging.getLevelName(env["FORTNIGHT_LOG_LEVEL"].upper())
        if not isinstance(level, int):
            raise ConfigError(f"Unknown log level '{env['FORTNIGHT_LOG_LEVEL']}'")
        config.log_level = level

    if env.get("FORTNIGHT_ZONES"):
        config.extra_zones = parse_zones(env["FORTNIGHT_ZONES"])

    return config


__all__ = ["AppConfig", "load_config", "parse_zones"]
