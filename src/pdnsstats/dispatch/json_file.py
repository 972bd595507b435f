"""JSON-lines file dispatch backend.

Inputs:
  - Constructed via DispatchBackendConfig with a backend-specific field
    ``file_path`` naming the file observations are appended to.

Outputs:
  - A header line marking the start of a session followed by one JSON object
    per observation.
"""

from __future__ import annotations

import json
import logging
import os
import socket
from datetime import datetime, timezone
from typing import Any, Optional

from .base import BaseDispatcher, MetricObservation
from .types_db import TypesDB

logger = logging.getLogger(__name__)


class JsonFileDispatcher(BaseDispatcher):
    """Append observations to a JSON-lines file.

    Inputs (constructor):
        file_path: Path to the output file. Parent directories are created
            if they do not already exist.
        types_db: TypesDB used for schema lookups.

    Outputs:
        Initialized JsonFileDispatcher ready to append records.

    Raises:
        OSError: When the file cannot be opened for appending.
    """

    aliases = ("json", "file")

    def __init__(
        self,
        file_path: str,
        types_db: Optional[TypesDB] = None,
        **_: Any,
    ) -> None:
        super().__init__(types_db)
        path = os.path.abspath(os.path.expanduser(str(file_path)))
        dir_path = os.path.dirname(path)
        if dir_path:
            os.makedirs(dir_path, exist_ok=True)
        self._file_path = path
        self._fh = open(self._file_path, "a", encoding="utf-8")

        # Session header marks restarts.
        self._write(
            {
                "log_start": datetime.now(timezone.utc).isoformat(),
                "hostname": socket.gethostname(),
            }
        )

    @property
    def file_path(self) -> str:
        return self._file_path

    def _write(self, record: dict) -> None:
        if self._fh is None:
            return
        self._fh.write(json.dumps(record, separators=(",", ":")) + "\n")
        self._fh.flush()

    def dispatch(self, observation: MetricObservation) -> None:
        """Append one observation as a JSON line.

        Inputs:
            observation: MetricObservation to record.

        Outputs:
            None; writes after close() are dropped.
        """

        self._write(observation.to_dict())

    def close(self) -> None:
        """Flush and close the file handle."""

        fh = self._fh
        self._fh = None
        if fh is None:
            return
        try:
            fh.flush()
        finally:
            fh.close()
