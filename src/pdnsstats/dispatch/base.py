"""Abstract base class for metric dispatch backends.

This module defines:

- DispatchBackendConfig: Pydantic model describing the configured backend
  (backend identifier, optional types.db path, backend-specific config).
- MetricObservation: One normalized value ready to be stored or forwarded.
- BaseDispatcher: Interface consumed by the submission path. It answers
  schema lookups for metric kinds and accepts observations.

Concrete backends subclass BaseDispatcher and implement dispatch(). Schema
lookups are shared: every backend is handed a TypesDB at construction.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional, Tuple, Union

from pydantic import BaseModel, Field

from .types_db import MetricSchema, TypesDB

logger = logging.getLogger(__name__)


class DispatchBackendConfig(BaseModel):
    """Brief: Typed configuration model for the dispatch backend.

    Inputs (constructor fields):
      - backend: Short alias (for example "log", "json", "memory") or a
        fully-qualified dotted import path to a BaseDispatcher subclass.
      - types_db: Optional path to a collectd-style types.db file whose
        entries extend or override the built-in metric schemas.
      - config: Free-form mapping of backend-specific options.

    Outputs:
      - DispatchBackendConfig instance with normalized types.
    """

    backend: str = Field(default="log", description="Backend alias or dotted import path")
    types_db: Optional[str] = Field(
        default=None, description="Optional types.db file with extra metric schemas"
    )
    config: Dict[str, Any] = Field(
        default_factory=dict,
        description="Backend-specific configuration options",
    )

    class Config:
        extra = "forbid"


@dataclass(frozen=True)
class MetricObservation:
    """Brief: One value of one metric kind at one point in time.

    Inputs:
      - time: Epoch seconds at which the value was read.
      - host: Local hostname.
      - plugin: Collector name ('powerdns').
      - plugin_instance: Instance label of the polled target.
      - metric_kind: Canonical metric kind (types.db name).
      - type_instance: Optional sub-label, None when the kind has no instances.
      - values: Tuple with one int (counter kinds) or float (gauge kinds).
    """

    time: float
    host: str
    plugin: str
    plugin_instance: str
    metric_kind: str
    type_instance: Optional[str]
    values: Tuple[Union[int, float], ...]

    def to_dict(self) -> Dict[str, Any]:
        out = asdict(self)
        out["values"] = list(self.values)
        return out

    @property
    def identifier(self) -> str:
        """Brief: collectd-style identifier host/plugin-instance/type-instance."""
        plugin = self.plugin
        if self.plugin_instance:
            plugin = f"{plugin}-{self.plugin_instance}"
        kind = self.metric_kind
        if self.type_instance:
            kind = f"{kind}-{self.type_instance}"
        return f"{self.host}/{plugin}/{kind}"


class BaseDispatcher:
    """Brief: Base class for metric dispatch backends.

    Inputs (constructor):
      - types_db: TypesDB used for schema lookups; defaults to built-ins.
      - **config: Backend-specific options, ignored by the base class.

    Outputs:
      - Initialized dispatcher.

    Notes:
      - Subclasses must implement dispatch(); close() is optional.
      - aliases is read by the dispatch registry.
    """

    aliases: Tuple[str, ...] = ()

    def __init__(self, types_db: Optional[TypesDB] = None, **config: object) -> None:
        self.types_db = types_db if types_db is not None else TypesDB()

    def lookup_schema(self, metric_kind: str) -> Optional[MetricSchema]:
        """Brief: Return the schema for a metric kind, or None when unknown.

        Inputs:
          - metric_kind: Canonical metric kind.

        Outputs:
          - MetricSchema or None.
        """

        return self.types_db.get(metric_kind)

    def dispatch(self, observation: MetricObservation) -> None:  # pragma: no cover - interface only
        """Brief: Accept one observation.

        Inputs:
          - observation: MetricObservation built by the submitter.

        Outputs:
          - None.
        """

        raise NotImplementedError("BaseDispatcher.dispatch must be implemented")

    def close(self) -> None:
        """Brief: Release backend resources. Default is a no-op."""

        return None
