#!/usr/bin/env python3
"""
feindexer.utils.log
-------------------

Root logging setup for an indexing run. ``main.py`` calls
:func:`configure_logging` once; every module then logs through
``logging.getLogger(__name__)``. Timestamps are rendered in the data
centre's time zone so the console and the per-run log file line up with
the database server's own logs.
"""
from __future__ import annotations

import datetime as dt
import logging
from pathlib import Path
from typing import Optional, Union
from zoneinfo import ZoneInfo

LINE_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DEFAULT_DATEFMT = "%Y-%m-%d %H:%M:%S"
DEFAULT_TZ = "America/New_York"

# chatty third-party loggers capped at WARNING
QUIET_LOGGERS = ("urllib3", "paramiko", "sshtunnel")


class ZonedFormatter(logging.Formatter):
    """Formatter whose ``asctime`` is local to a fixed IANA zone."""

    def __init__(self, fmt: str, datefmt: str, tz: str):
        super().__init__(fmt, datefmt=datefmt)
        self.zone = ZoneInfo(tz)

    def converter(self, timestamp):                              # type: ignore[override]
        return dt.datetime.fromtimestamp(timestamp, self.zone).timetuple()


def _attach(root: logging.Logger, handler: logging.Handler,
            level: Union[int, str], formatter: logging.Formatter) -> None:
    handler.setLevel(level)
    handler.setFormatter(formatter)
    root.addHandler(handler)


def configure_logging(
    log_file: Optional[Union[str, Path]],
    level: Union[int, str] = logging.INFO,
    datefmt: str = DEFAULT_DATEFMT,
    tz: str = DEFAULT_TZ,
) -> None:
    """
    Send every record to stderr and, when *log_file* is given, to that file
    as well. Handlers left by an earlier call are closed and dropped, so
    calling this twice does not double the output.
    """
    root = logging.getLogger()
    for old in list(root.handlers):
        root.removeHandler(old)
        old.close()
    root.setLevel(level)

    formatter = ZonedFormatter(LINE_FORMAT, datefmt, tz)
    _attach(root, logging.StreamHandler(), level, formatter)

    if log_file is not None:
        path = Path(log_file).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        _attach(root, logging.FileHandler(path), level, formatter)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
