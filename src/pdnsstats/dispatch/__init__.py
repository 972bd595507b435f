"""Metric dispatch backends and metric schemas."""

from .base import BaseDispatcher, DispatchBackendConfig, MetricObservation
from .registry import discover_dispatchers, get_dispatcher_class, load_dispatcher
from .types_db import DEFAULT_TYPES_DB, DataSource, MetricSchema, TypesDB

__all__ = [
    "BaseDispatcher",
    "DEFAULT_TYPES_DB",
    "DataSource",
    "DispatchBackendConfig",
    "MetricObservation",
    "MetricSchema",
    "TypesDB",
    "discover_dispatchers",
    "get_dispatcher_class",
    "load_dispatcher",
]
