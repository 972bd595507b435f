"""Root logger setup for pdnsstats.

Log lines carry a bracketed lowercase level tag (``[info]``, ``[warn]``...)
and, outside syslog, a UTC timestamp taken from the record itself.
"""

from __future__ import annotations

import logging
import logging.handlers
import os
import sys
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

LINE_FORMAT = "%(asctime)s %(level_tag)s %(name)s: %(message)s"
SYSLOG_ADDRESS = "/dev/log"
SYSLOG_TAG = "pdnsstats"

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "crit": logging.CRITICAL,
    "critical": logging.CRITICAL,
}

_TAGS = {
    logging.DEBUG: "[debug]",
    logging.INFO: "[info]",
    logging.WARNING: "[warn]",
    logging.ERROR: "[error]",
    logging.CRITICAL: "[crit]",
}


def _level_tag(levelno: int) -> str:
    return _TAGS.get(levelno, f"[lvl{levelno}]")


class SyslogFormatter(logging.Formatter):
    """Tag and logger name only; syslog stamps its own time."""

    def format(self, record):
        record.level_tag = _level_tag(record.levelno)
        return f"{record.level_tag} {record.name}: {record.getMessage()}"


class BracketLevelFormatter(logging.Formatter):
    """Formatter exposing %(level_tag)s and rendering %(asctime)s in UTC."""

    def formatTime(self, record, datefmt=None):
        stamp = datetime.fromtimestamp(record.created, timezone.utc)
        return stamp.strftime(datefmt or "%Y-%m-%dT%H:%M:%SZ")

    def format(self, record):
        record.level_tag = _level_tag(record.levelno)
        return super().format(record)


def _file_handler(file_path: str) -> logging.Handler:
    path = os.path.abspath(os.path.expanduser(file_path))
    os.makedirs(os.path.dirname(path), exist_ok=True)
    return logging.FileHandler(path, mode="a", encoding="utf-8")


def _syslog_handler(syslog_cfg: Any) -> logging.Handler:
    """Brief: Build a SysLogHandler from ``logging.syslog``.

    Inputs:
      - syslog_cfg: True for defaults, or a mapping with optional
        address, facility (e.g. "local0") and tag.

    Outputs:
      - logging.Handler with SyslogFormatter attached.
    """

    opts = syslog_cfg if isinstance(syslog_cfg, dict) else {}
    handler_cls = logging.handlers.SysLogHandler
    facility_name = "LOG_" + str(opts.get("facility", "daemon")).upper()
    handler = handler_cls(
        address=opts.get("address", SYSLOG_ADDRESS),
        facility=getattr(handler_cls, facility_name, handler_cls.LOG_DAEMON),
    )
    handler.ident = f"{opts.get('tag', SYSLOG_TAG)}: "
    handler.setFormatter(SyslogFormatter())
    return handler


def init_logging(cfg: Optional[Dict[str, Any]]) -> None:
    """
    Replace the root logger's handlers according to the ``logging`` block.

    Args:
        cfg: Mapping with optional keys:
            - level: debug, info, warn, error or crit (default: info)
            - stderr: log to stderr (default: True)
            - file: path of a log file to append to
            - syslog: True, or {address, facility, tag}

    Example:
        >>> init_logging({"level": "debug", "stderr": True})
    """
    cfg = cfg or {}
    root = logging.getLogger()
    root.setLevel(_LEVELS.get(str(cfg.get("level", "info")).lower(), logging.INFO))
    for h in list(root.handlers):
        root.removeHandler(h)

    line_formatter = BracketLevelFormatter(fmt=LINE_FORMAT)
    handlers: List[logging.Handler] = []
    if cfg.get("stderr", True):
        handlers.append(logging.StreamHandler(sys.stderr))
    file_path = cfg.get("file")
    if isinstance(file_path, str) and file_path.strip():
        handlers.append(_file_handler(file_path.strip()))
    for h in handlers:
        h.setFormatter(line_formatter)
        root.addHandler(h)

    if cfg.get("syslog"):
        try:
            root.addHandler(_syslog_handler(cfg["syslog"]))
        except (OSError, ValueError) as e:  # pragma: no cover - no syslog socket
            root.warning(f"Failed to configure syslog: {e}")

    logging.captureWarnings(True)
