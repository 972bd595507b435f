"""Dispatch backend that writes each observation to the logging system.

Inputs:
  - level: Log level name used for observation lines (default "info").
  - logger_name: Logger to write to (default "pdnsstats.metrics").

Outputs:
  - One compact JSON line per observation, so the standard logging handlers
    (stderr, file, syslog) configured by init_logging() carry the metrics.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Optional

from .base import BaseDispatcher, MetricObservation
from .types_db import TypesDB

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "critical": logging.CRITICAL,
}


class LogDispatcher(BaseDispatcher):
    """Write observations as JSON log lines.

    Inputs (constructor):
        types_db: TypesDB used for schema lookups.
        level: Log level name for observation lines.
        logger_name: Name of the logger to use.

    Outputs:
        LogDispatcher instance.

    Example:
        >>> d = LogDispatcher(level="debug")
    """

    aliases = ("log", "logging", "stdout")

    def __init__(
        self,
        types_db: Optional[TypesDB] = None,
        level: str = "info",
        logger_name: str = "pdnsstats.metrics",
        **_: Any,
    ) -> None:
        super().__init__(types_db)
        self.logger = logging.getLogger(logger_name)
        self.log_level = _LEVELS.get(str(level).lower(), logging.INFO)

    def dispatch(self, observation: MetricObservation) -> None:
        self.logger.log(
            self.log_level,
            json.dumps(observation.to_dict(), separators=(",", ":")),
        )
