from __future__ import annotations

import argparse
import logging
import os
import signal
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from PyQt6.QtCore import QCoreApplication, QTimer

from .config import AppConfig, load_config
from .errors import ConfigError
from .hour_ring import HourRing
from .logging_setup import configure_logging
from .refresh_service import RefreshService


APP_NAME = "Fortnight Planner"

_log = logging.getLogger(__name__)


@dataclass(slots=True)
class AppState:
    config: AppConfig
    ring: HourRing
    refresh_service: RefreshService


def get_app_state(config: AppConfig) -> AppState:
    # Logging first so configuration problems below end up in the file
    configure_logging(config.data_dir, config.log_level)
    ring = config.ring()
    service = RefreshService(
        config.tasks_path,
        ring,
        write_delay_ms=config.write_delay_ms,
        zones=config.zones(),
    )
    _log.info(
        "app_state_created",
        extra={"_json_tasks_path": str(config.tasks_path), "_json_anchor": config.anchor.isoformat()},
    )
    return AppState(config=config, ring=ring, refresh_service=service)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="fortnight-planner", description="Rank tasks by urgency against a two-week calendar.")
    parser.add_argument("--notes-dir", type=Path, help="directory holding the tasks outline (overrides NOTESDIR)")
    parser.add_argument("--once", action="store_true", help="refresh the outline once and exit")
    return parser.parse_args(argv)


def run(argv: Optional[list[str]] = None, env: Optional[Mapping[str, str]] = None) -> int:
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    env = dict(os.environ if env is None else env)
    if args.notes_dir is not None:
        env["NOTESDIR"] = str(args.notes_dir)
    try:
        config = load_config(env)
    except ConfigError as err:
        print(f"{APP_NAME}: {err}", file=sys.stderr)
        return 2

    app = QCoreApplication.instance() or QCoreApplication([APP_NAME])
    state = get_app_state(config)
    if args.once:
        return 0 if state.refresh_service.refresh() is not None else 1

    # Python only sees SIGINT between Qt events; the idle timer gives it a chance
    signal.signal(signal.SIGINT, lambda *_: app.quit())
    wake = QTimer()
    wake.timeout.connect(lambda: None)
    wake.start(500)
    state.refresh_service.start()
    try:
        return app.exec()
    finally:
        state.refresh_service.stop()


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(run())
