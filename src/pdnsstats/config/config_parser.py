"""Configuration parsing and normalization helpers for pdnsstats.

Brief:
  This module contains the configuration-parsing utilities used by the CLI
  entrypoint. It centralizes:
    - reading YAML config files
    - merging variables from config/env/CLI
    - JSON Schema validation (via validate_config)
    - building collection targets from ``powerdns.targets`` blocks
    - collector and dispatch backend settings

Inputs:
  - YAML config dicts and paths

Outputs:
  - Normalized config dicts, CollectorSettings, DispatchBackendConfig and a
    populated TargetRegistry
"""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, List, Optional, Tuple

import yaml
from pydantic import BaseModel, Field, StrictStr, ValidationError

from ..dispatch.base import DispatchBackendConfig
from ..targets import CollectionTarget, TargetRegistry, create_target
from ..transports import DEFAULT_LOCAL_SOCKET
from .config_schema import VAR_NAME, validate_config

logger = logging.getLogger(__name__)

_TARGET_KINDS = ("server", "recursor")
_TARGET_OPTIONS = ("command", "socket")


class ConfigError(ValueError):
    """Brief: Invalid configuration block.

    Inputs:
      - message: description of the offending block/option.

    Outputs:
      - Exception instance.
    """


class CollectorSettings(BaseModel):
    """Brief: Typed settings of the ``powerdns`` block.

    Inputs:
      - interval: Seconds between collection cycles.
      - timeout_ms: Per-operation socket timeout in milliseconds; None (or 0)
        waits indefinitely.
      - local_socket: Path bound by datagram requests so the recursor can
        answer.

    Outputs:
      - CollectorSettings instance.
    """

    interval: float = Field(default=10.0, gt=0)
    timeout_ms: Optional[int] = Field(default=2000, ge=0)
    local_socket: str = Field(default=DEFAULT_LOCAL_SOCKET, min_length=1)

    class Config:
        extra = "ignore"


class TargetConfig(BaseModel):
    """Brief: Typed form of one ``powerdns.targets`` entry.

    Inputs:
      - kind: 'server' or 'recursor'.
      - instance: Instance label (the block's single string argument).
      - command: Optional command override.
      - socket: Optional control socket path override.

    Outputs:
      - TargetConfig instance.
    """

    kind: StrictStr
    instance: StrictStr = Field(..., min_length=1)
    command: Optional[StrictStr] = None
    socket: Optional[StrictStr] = None

    class Config:
        extra = "forbid"


def _is_var_key(key: str) -> bool:
    """Brief: True when key is ALL_UPPERCASE and matches [A-Z_][A-Z0-9_]*."""

    return bool(key) and VAR_NAME.fullmatch(key) is not None


def _parse_yaml_value(text: str) -> Any:
    """Brief: Parse a CLI/environment variable value as YAML.

    Inputs:
      - text: String containing YAML scalar/list/dict.

    Outputs:
      - Any: Parsed value (falls back to original string on parse errors).
    """

    try:
        return yaml.safe_load(text)
    except yaml.YAMLError:
        return text


def parse_config_variables(
    cfg: Dict[str, Any],
    *,
    cli_vars: Optional[List[str]] = None,
    environ: Optional[Dict[str, str]] = None,
) -> Dict[str, Any]:
    """Brief: Merge config/environment/CLI variables into cfg['vars'].

    Inputs:
      - cfg: Parsed YAML configuration mapping (mutated in-place).
      - cli_vars: Optional list of CLI `KEY=YAML` assignments.
      - environ: Optional environment mapping (defaults to os.environ).

    Outputs:
      - dict: The merged variables mapping stored back onto cfg['vars'].

    Precedence:
      - CLI (-v/--var) overrides environment overrides config-file variables.
      - Only environment names prefixed with ``PDNSSTATS_`` are imported, so
        unrelated environment variables never shadow config values.

    Example:
      >>> cfg = {'vars': {'SOCK': '/a'}}
      >>> parse_config_variables(cfg, cli_vars=['SOCK=/b'], environ={})['SOCK']
      '/b'
    """

    base = cfg.get("vars", cfg.get("variables"))
    if base is None:
        merged: Dict[str, Any] = {}
    elif isinstance(base, dict):
        merged = dict(base)
    else:
        raise ValueError("config.vars must be a mapping when present")

    env = dict(os.environ) if environ is None else environ
    for k, v in env.items():
        if not isinstance(k, str) or not k.startswith("PDNSSTATS_"):
            continue
        if not _is_var_key(k):
            continue
        merged[k] = _parse_yaml_value(str(v))

    for assignment in cli_vars or []:
        if "=" not in assignment:
            raise ValueError(
                "Invalid -v/--var value (expected KEY=YAML), got: %r" % assignment
            )
        k, raw = assignment.split("=", 1)
        k = str(k).strip()
        if not _is_var_key(k):
            raise ValueError(
                "Invalid variable name %r (must be ALL_UPPERCASE and match [A-Z_][A-Z0-9_]*)"
                % k
            )
        merged[k] = _parse_yaml_value(raw)

    cfg.pop("variables", None)
    cfg["vars"] = merged
    return merged


def parse_config_file(
    config_path: str,
    *,
    cli_vars: Optional[List[str]] = None,
    environ: Optional[Dict[str, str]] = None,
) -> Dict[str, Any]:
    """Brief: Read, variable-merge, and schema-validate a YAML config file.

    Inputs:
      - config_path: Path to the YAML configuration file.
      - cli_vars: Optional list of CLI `KEY=YAML` assignments (from -v/--var).
      - environ: Optional environment mapping (defaults to os.environ).

    Outputs:
      - dict: Parsed and normalized configuration mapping.

    Raises:
      - ValueError: When schema validation fails or variables are invalid.
      - OSError / yaml.YAMLError: When the file cannot be read or parsed.
    """

    with open(config_path, "r") as f:
        cfg = yaml.safe_load(f) or {}

    if not isinstance(cfg, dict):
        raise ValueError("Configuration root must be a mapping")

    parse_config_variables(cfg, cli_vars=list(cli_vars or []), environ=environ)
    validate_config(cfg, config_path=config_path)
    return cfg


def load_collector_settings(cfg: Dict[str, Any]) -> CollectorSettings:
    """Brief: Build CollectorSettings from the validated ``powerdns`` block.

    Inputs:
      - cfg: Validated configuration mapping.

    Outputs:
      - CollectorSettings (defaults when the block is absent).

    Raises:
      - ValueError: When field values are out of range.
    """

    block = cfg.get("powerdns") or {}
    try:
        return CollectorSettings(**block)
    except ValidationError as e:
        raise ValueError(f"Invalid powerdns settings: {e}") from e


def load_dispatch_config(cfg: Dict[str, Any]) -> DispatchBackendConfig:
    """Brief: Build DispatchBackendConfig from the validated ``dispatch`` block.

    Inputs:
      - cfg: Validated configuration mapping.

    Outputs:
      - DispatchBackendConfig; the "log" backend when the block is absent.
    """

    block = dict(cfg.get("dispatch") or {})
    if block.get("config") is None:
        block.pop("config", None)
    try:
        return DispatchBackendConfig(**block)
    except ValidationError as e:
        raise ValueError(f"Invalid dispatch settings: {e}") from e


def parse_target_block(block: Any) -> TargetConfig:
    """Brief: Validate one ``powerdns.targets`` entry.

    Inputs:
      - block: Mapping such as ``{"Server": "local", "Socket": "/path"}``.
        Keys are matched case-insensitively.

    Outputs:
      - TargetConfig.

    Raises:
      - ConfigError: Missing or multiple kind keys, an argument that is not a
        single non-empty string, unknown options, or non-string option
        values.

    Example:
      >>> parse_target_block({"Recursor": "rec", "Command": "get questions"}).command
      'get questions'
    """

    if not isinstance(block, dict):
        raise ConfigError(f"target block must be a mapping, got {type(block).__name__}")

    kinds: List[Tuple[str, Any]] = []
    options: Dict[str, Any] = {}
    for key, value in block.items():
        lkey = str(key).lower()
        if lkey in _TARGET_KINDS:
            kinds.append((lkey, value))
        elif lkey in _TARGET_OPTIONS:
            options[lkey] = value
        else:
            raise ConfigError(f"Option `{key}' not allowed here.")

    if not kinds:
        raise ConfigError(
            "target block needs exactly one of `Server' or `Recursor', got keys: %s"
            % ", ".join(str(k) for k in block.keys())
        )
    if len(kinds) > 1:
        raise ConfigError(
            "target block names more than one kind: %s" % ", ".join(k for k, _ in kinds)
        )

    kind, instance = kinds[0]
    if not isinstance(instance, str) or not instance:
        raise ConfigError(f"`{kind}' needs exactly one string argument.")
    try:
        return TargetConfig(kind=kind, instance=instance, **options)
    except ValidationError as e:
        raise ConfigError(f"invalid `{kind}' block {instance!r}: {e}") from e


def build_target(block: Any) -> CollectionTarget:
    """Brief: Turn one target block into a CollectionTarget.

    Raises:
      - ConfigError: When the block is invalid.
    """

    tc = parse_target_block(block)
    try:
        return create_target(
            tc.kind, tc.instance, command=tc.command, socket_path=tc.socket
        )
    except ValueError as e:
        raise ConfigError(str(e)) from e


def build_registry(cfg: Dict[str, Any]) -> TargetRegistry:
    """Brief: Build a TargetRegistry from ``powerdns.targets``.

    Inputs:
      - cfg: Validated configuration mapping.

    Outputs:
      - TargetRegistry holding every valid target in configuration order.
        Invalid blocks are logged and skipped.
    """

    registry = TargetRegistry()
    blocks = (cfg.get("powerdns") or {}).get("targets") or []
    for index, block in enumerate(blocks):
        try:
            target = build_target(block)
        except ConfigError as e:
            logger.error("powerdns.targets[%d]: %s", index, e)
            continue
        registry.add(target)
    return registry
