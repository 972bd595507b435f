"""Metric schemas in collectd ``types.db`` format.

Each non-comment line names a metric kind followed by one or more data
sources::

    dns_question  value:DERIVE:0:U
    io_packets    rx:DERIVE:0:U, tx:DERIVE:0:U

A data source is ``name:TYPE:min:max`` where TYPE is GAUGE, COUNTER, DERIVE
or ABSOLUTE and ``U`` marks an unbounded limit.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Dict, Iterable, Optional, Tuple

logger = logging.getLogger(__name__)

DS_TYPES = ("GAUGE", "COUNTER", "DERIVE", "ABSOLUTE")

DEFAULT_TYPES_DB = """\
cache_result    value:DERIVE:0:U
cache_size      value:GAUGE:0:U
counter         value:COUNTER:U:U
cpu             value:DERIVE:0:U
dns_answer      value:DERIVE:0:U
dns_qtype       value:DERIVE:0:U
dns_question    value:DERIVE:0:U
dns_rcode       value:DERIVE:0:U
io_packets      rx:DERIVE:0:U, tx:DERIVE:0:U
latency         value:GAUGE:0:U
"""


@dataclass(frozen=True)
class DataSource:
    """Brief: One data source of a metric schema.

    Inputs:
      - name: Data source name (usually 'value').
      - ds_type: One of GAUGE, COUNTER, DERIVE, ABSOLUTE.
      - min: Lower bound or NaN when unbounded.
      - max: Upper bound or NaN when unbounded.
    """

    name: str
    ds_type: str
    min: float = math.nan
    max: float = math.nan


@dataclass(frozen=True)
class MetricSchema:
    """Brief: Expected shape of the values submitted for one metric kind."""

    name: str
    sources: Tuple[DataSource, ...]

    @property
    def arity(self) -> int:
        return len(self.sources)

    @property
    def is_gauge(self) -> bool:
        """True when the first data source carries floating point gauge values."""
        return bool(self.sources) and self.sources[0].ds_type == "GAUGE"


def _parse_limit(text: str) -> float:
    if text == "U":
        return math.nan
    return float(text)


def _parse_source(spec: str) -> DataSource:
    parts = spec.split(":")
    if len(parts) != 4:
        raise ValueError(f"invalid data source {spec!r} (expected name:TYPE:min:max)")
    name, ds_type, lo, hi = parts
    ds_type = ds_type.upper()
    if ds_type not in DS_TYPES:
        raise ValueError(f"invalid data source type {ds_type!r} in {spec!r}")
    return DataSource(name, ds_type, _parse_limit(lo), _parse_limit(hi))


def parse_types_db(lines: Iterable[str]) -> Dict[str, MetricSchema]:
    """Brief: Parse types.db lines into a mapping of metric kind to schema.

    Inputs:
      - lines: Iterable of text lines.

    Outputs:
      - dict mapping metric kind to MetricSchema.

    Raises:
      - ValueError: For malformed lines (the line number is included).

    Example:
      >>> parse_types_db(["latency value:GAUGE:0:U"])["latency"].is_gauge
      True
    """

    schemas: Dict[str, MetricSchema] = {}
    for lineno, raw in enumerate(lines, start=1):
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        fields = line.split(None, 1)
        if len(fields) != 2:
            raise ValueError(f"types.db line {lineno}: missing data sources")
        name, rest = fields
        try:
            sources = tuple(
                _parse_source(s.strip())
                for s in rest.replace(",", " ").split()
                if s.strip()
            )
        except ValueError as e:
            raise ValueError(f"types.db line {lineno}: {e}") from e
        schemas[name] = MetricSchema(name, sources)
    return schemas


class TypesDB:
    """Brief: Lookup table of metric schemas.

    Inputs (constructor):
      - schemas: Optional initial mapping; defaults to DEFAULT_TYPES_DB.

    Outputs:
      - TypesDB instance whose get() returns a MetricSchema or None.
    """

    def __init__(self, schemas: Optional[Dict[str, MetricSchema]] = None) -> None:
        if schemas is None:
            schemas = parse_types_db(DEFAULT_TYPES_DB.splitlines())
        self._schemas: Dict[str, MetricSchema] = dict(schemas)

    @classmethod
    def from_file(cls, path: Optional[str]) -> "TypesDB":
        """Brief: Build the default table, extended/overridden by a types.db file.

        Inputs:
          - path: Path to a types.db file or None for defaults only.

        Outputs:
          - TypesDB instance.
        """

        db = cls()
        if path:
            with open(path, "r", encoding="utf-8") as f:
                extra = parse_types_db(f)
            logger.info("Loaded %d metric types from %s", len(extra), path)
            db._schemas.update(extra)
        return db

    def get(self, metric_kind: str) -> Optional[MetricSchema]:
        return self._schemas.get(metric_kind)

    def __contains__(self, metric_kind: object) -> bool:
        return metric_kind in self._schemas

    def __len__(self) -> int:
        return len(self._schemas)
