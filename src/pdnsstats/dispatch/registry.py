"""Registry and alias resolution for dispatch backends.

Inputs:
  - None directly; helper functions are used by load_dispatcher() to
    discover BaseDispatcher implementations and resolve backend identifiers.

Outputs:
  - discover_dispatchers(): Build a mapping of normalized aliases to
    BaseDispatcher subclasses by walking pdnsstats.dispatch.* modules.
  - get_dispatcher_class(): Resolve a backend identifier to a concrete
    BaseDispatcher subclass, supporting both aliases and dotted import paths.
  - load_dispatcher(): Construct a dispatcher from a DispatchBackendConfig.
"""

from __future__ import annotations

import difflib
import functools
import importlib
import inspect
import logging
import pkgutil
import re
from typing import Dict, Iterable, Type

from .base import BaseDispatcher, DispatchBackendConfig
from .types_db import TypesDB

logger = logging.getLogger(__name__)

_CAMEL_1 = re.compile(r"(.)([A-Z][a-z]+)")
_CAMEL_2 = re.compile(r"([a-z0-9])([A-Z])")


def _default_alias_for(cls: Type[BaseDispatcher]) -> str:
    """Brief: snake_case class name without the Dispatcher suffix.

    Example:
      >>> _default_alias_for(JsonFileDispatcher)
      'json_file'
    """

    name = cls.__name__
    if name.endswith("Dispatcher"):
        name = name[: -len("Dispatcher")]
    return _CAMEL_2.sub(r"\1_\2", _CAMEL_1.sub(r"\1_\2", name)).lower()


def _normalize(alias: str) -> str:
    """Brief: Normalize backend alias strings for registry keys.

    Inputs:
      - alias: Raw alias string.

    Outputs:
      - Normalized alias: lowercase, trimmed, with dashes replaced by underscores.
    """

    return alias.strip().lower().replace("-", "_")


def _iter_backend_modules(
    package_name: str = "pdnsstats.dispatch",
) -> Iterable[str]:
    pkg = importlib.import_module(package_name)
    for modinfo in pkgutil.walk_packages(pkg.__path__, pkg.__name__ + "."):
        yield modinfo.name


@functools.lru_cache(maxsize=8)
def discover_dispatchers(
    package_name: str = "pdnsstats.dispatch",
) -> Dict[str, Type[BaseDispatcher]]:
    """Brief: Discover BaseDispatcher subclasses and register them by alias.

    Inputs:
      - package_name: Package path to scan for backends.

    Outputs:
      - Dict mapping normalized aliases to classes.

    Raises:
      - ValueError: When two classes claim the same alias.
    """

    registry: Dict[str, Type[BaseDispatcher]] = {}

    for modname in _iter_backend_modules(package_name):
        module = importlib.import_module(modname)

        for _, obj in inspect.getmembers(module, inspect.isclass):
            if not issubclass(obj, BaseDispatcher) or obj is BaseDispatcher:
                continue

            claimed = set(_normalize(a) for a in (getattr(obj, "aliases", ()) or ()))
            claimed.add(_normalize(_default_alias_for(obj)))

            for alias in claimed:
                if not alias:
                    continue
                if alias in registry and registry[alias] is not obj:
                    other = registry[alias]
                    raise ValueError(
                        "Duplicate dispatch backend alias '%s' claimed by %s.%s and %s.%s"
                        % (
                            alias,
                            obj.__module__,
                            obj.__name__,
                            other.__module__,
                            other.__name__,
                        )
                    )
                registry[alias] = obj

    return registry


def get_dispatcher_class(
    identifier: str, registry: Dict[str, Type[BaseDispatcher]] | None = None
) -> Type[BaseDispatcher]:
    """Brief: Resolve identifier to a BaseDispatcher subclass.

    Inputs:
      - identifier: Dotted import path ("pkg.mod.Class") or alias.
      - registry: Optional precomputed alias registry from discover_dispatchers.

    Outputs:
      - BaseDispatcher subclass corresponding to the identifier.

    Raises:
      - ValueError/TypeError when the identifier is invalid or does not
        correspond to a BaseDispatcher subclass.
      - KeyError for unknown aliases (with close-match suggestions).
    """

    ident = str(identifier or "").strip()
    if "." in ident:
        modname, _, classname = ident.rpartition(".")
        if not modname or not classname:
            raise ValueError(f"Invalid dispatch backend path '{identifier}'")
        module = importlib.import_module(modname)
        cls = getattr(module, classname)
        if not (inspect.isclass(cls) and issubclass(cls, BaseDispatcher)):
            raise TypeError(f"{identifier} is not a BaseDispatcher subclass")
        return cls

    reg = registry or discover_dispatchers()
    key = _normalize(ident)
    try:
        return reg[key]
    except KeyError:
        suggestions = difflib.get_close_matches(key, list(reg.keys()), n=3)
        raise KeyError(
            "Unknown dispatch backend alias '%s'. Known aliases: %s. Suggestions: %s"
            % (identifier, ", ".join(sorted(reg.keys())), suggestions)
        )


def load_dispatcher(cfg: DispatchBackendConfig) -> BaseDispatcher:
    """Brief: Build the configured dispatcher with its metric schemas.

    Inputs:
      - cfg: DispatchBackendConfig.

    Outputs:
      - Constructed BaseDispatcher instance.
    """

    cls = get_dispatcher_class(cfg.backend)
    types_db = TypesDB.from_file(cfg.types_db)
    logger.debug("Using dispatch backend %s.%s", cls.__module__, cls.__name__)
    return cls(types_db=types_db, **cfg.config)
