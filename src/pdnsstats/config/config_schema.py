"""JSON Schema-based validation for pdnsstats YAML configuration.

The schema ships next to this module as ``config-schema.json``. Before it is
applied, ``vars`` are expanded into the rest of the document and the keys of
the ``powerdns`` block are canonicalized. Target blocks are only checked for
being mappings here; config_parser validates their contents one block at a
time so a bad block does not reject the whole file.
"""

from __future__ import annotations

import copy
import json
import logging
import re
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from jsonschema import Draft202012Validator, ValidationError
from jsonschema.exceptions import SchemaError

logger = logging.getLogger(__name__)

VAR_NAME = re.compile(r"[A-Z_][A-Z0-9_]*")
_VAR_REFERENCE = re.compile(r"\$\{([A-Z_][A-Z0-9_]*)\}")

# Spellings accepted for keys of the powerdns block, matched case-insensitively
# with underscores ignored.
_POWERDNS_KEYS = {
    "interval": "interval",
    "timeoutms": "timeout_ms",
    "localsocket": "local_socket",
    "targets": "targets",
}

_UNKNOWN_KEY_POLICIES = ("ignore", "warn", "error")


class _VariableExpander:
    """Brief: Substitute ``vars`` into configuration values.

    Inputs (constructor):
      - variables: Mapping of NAME -> YAML value.

    Behavior:
      - A string that is exactly ``$NAME`` or ``${NAME}`` becomes a copy of
        the variable's value, keeping its type (list, dict, int...).
      - Such a string used as a list item splices a list value in place.
      - ``${NAME}`` inside a longer string is replaced by the value's text
        (JSON for containers, ``true``/``false``/``null`` for YAML scalars).
      - Unknown ``${NAME}`` references are left as they are.
      - Variables may reference each other; cycles raise ValueError.
    """

    def __init__(self, variables: Dict[str, Any]) -> None:
        self.variables = variables
        self._resolved: Dict[str, Any] = {}

    def resolve(self, name: str, chain: Tuple[str, ...] = ()) -> Any:
        if name in self._resolved:
            return self._resolved[name]
        if name in chain:
            path = " -> ".join(chain + (name,))
            raise ValueError(f"config.vars contains a cycle: {path}")
        value = self.expand(self.variables[name], chain + (name,))
        self._resolved[name] = value
        return value

    def resolve_all(self) -> None:
        for name in self.variables:
            self.resolve(name)

    def whole_reference(self, text: str) -> Optional[str]:
        if text.startswith("${") and text.endswith("}"):
            name = text[2:-1]
        elif text.startswith("$"):
            name = text[1:]
        else:
            return None
        return name if name in self.variables else None

    def _as_text(self, value: Any) -> str:
        if isinstance(value, bool):
            return "true" if value else "false"
        if value is None:
            return "null"
        if isinstance(value, (int, float, str)):
            return str(value)
        return json.dumps(value)

    def expand(self, obj: Any, chain: Tuple[str, ...] = ()) -> Any:
        if isinstance(obj, dict):
            return {k: self.expand(v, chain) for k, v in obj.items()}
        if isinstance(obj, list):
            items: List[Any] = []
            for item in obj:
                value = self.expand(item, chain)
                if (
                    isinstance(item, str)
                    and self.whole_reference(item) is not None
                    and isinstance(value, list)
                ):
                    items.extend(value)
                else:
                    items.append(value)
            return items
        if not isinstance(obj, str):
            return obj

        name = self.whole_reference(obj)
        if name is not None:
            return copy.deepcopy(self.resolve(name, chain))

        def _substitute(match: re.Match[str]) -> str:
            ref = match.group(1)
            if ref not in self.variables:
                return match.group(0)
            return self._as_text(self.resolve(ref, chain))

        return _VAR_REFERENCE.sub(_substitute, obj)


def _normalize_variables_for_validation(cfg: Dict[str, Any]) -> None:
    """Brief: Expand ``vars`` (or legacy ``variables``) and drop the group.

    Inputs:
      - cfg: Parsed YAML configuration mapping (mutated in-place).

    Outputs:
      - None.

    Raises:
      - ValueError: When the group is not a mapping, a name is not
        ALL_UPPERCASE, or variables reference each other in a cycle.
    """

    if "vars" in cfg:
        variables = cfg.pop("vars")
        cfg.pop("variables", None)
    else:
        variables = cfg.pop("variables", None)
    if variables is None:
        return
    if not isinstance(variables, dict):
        raise ValueError("config.vars must be a mapping when present")
    for name in variables:
        if not isinstance(name, str) or not VAR_NAME.fullmatch(name):
            raise ValueError(f"config.vars key {name!r} must match [A-Z_][A-Z0-9_]*")

    expander = _VariableExpander(variables)
    expander.resolve_all()
    for key in list(cfg):
        cfg[key] = expander.expand(cfg[key])


def _normalize_powerdns_keys_for_validation(cfg: Dict[str, Any]) -> None:
    """Brief: Canonicalize key spelling inside the powerdns block.

    ``LocalSocket``, ``localsocket`` and ``local_socket`` all become
    ``local_socket``; ``TimeoutMs`` becomes ``timeout_ms``. Unknown keys are
    kept verbatim so the schema reports them.
    """

    block = cfg.get("powerdns")
    if not isinstance(block, dict):
        return
    cfg["powerdns"] = {
        _POWERDNS_KEYS.get(str(key).lower().replace("_", ""), key): value
        for key, value in block.items()
    }


def get_default_schema_path() -> Path:
    """Brief: Path of the ``config-schema.json`` shipped with this package."""

    return Path(__file__).resolve().with_name("config-schema.json")


def _load_validator(schema_path: Path) -> Draft202012Validator:
    with schema_path.open("r", encoding="utf-8") as f:
        schema = json.load(f)
    Draft202012Validator.check_schema(schema)
    return Draft202012Validator(schema)


def _format_errors(errors: List[ValidationError], *, config_path: Optional[str]) -> str:
    """Brief: Render validation errors, one ``- path: message`` line each.

    Inputs:
      - errors: jsonschema ValidationError instances.
      - config_path: Path of the YAML file, or None for in-memory configs.

    Outputs:
      - Multi-line string for logs or CLI output.
    """

    lines = [f"Invalid configuration in {config_path or '<config dict>'}:"]
    for err in errors:
        where = "/".join(str(p) for p in err.path) or "<root>"
        rule = "/".join(str(p) for p in err.schema_path)
        lines.append(f"- {where}: {err.message} (schema: {rule})")
    return "\n".join(lines)


def validate_config(
    cfg: Dict[str, Any],
    *,
    schema_path: Optional[Path] = None,
    config_path: Optional[str] = "./config.yaml",
    unknown_keys: str = "warn",
) -> None:
    """Brief: Normalize and validate a parsed YAML configuration mapping.

    Inputs:
      - cfg: Dict loaded from YAML (mutated in-place by normalization).
      - schema_path: Optional explicit path to the JSON Schema file.
      - config_path: Optional path of the YAML file, used in error messages.
      - unknown_keys: "ignore", "warn" (default) or "error" for keys the
        schema does not describe.

    Outputs:
      - None on success.

    Raises:
      - ValueError: when validation fails, or when ``unknown_keys`` is
        "error" and there are unknown keys.

    Example:
      >>> import yaml
      >>> data = yaml.safe_load("powerdns: {LocalSocket: /tmp/x.sock, targets: []}")
      >>> validate_config(data)
      >>> data["powerdns"]["local_socket"]
      '/tmp/x.sock'
    """

    if unknown_keys not in _UNKNOWN_KEY_POLICIES:
        raise ValueError(
            f"unknown_keys policy must be 'ignore', 'warn', or 'error', got {unknown_keys!r}"
        )

    _normalize_variables_for_validation(cfg)
    _normalize_powerdns_keys_for_validation(cfg)

    path = schema_path or get_default_schema_path()
    try:
        validator = _load_validator(path)
    except (OSError, json.JSONDecodeError, SchemaError) as exc:
        logger.warning(
            "Cannot load configuration schema %s (%s); skipping validation", path, exc
        )
        return

    errors = sorted(validator.iter_errors(cfg), key=lambda e: list(e.path))
    unknown = [e for e in errors if e.validator == "additionalProperties"]
    invalid = [e for e in errors if e.validator != "additionalProperties"]

    if invalid:
        raise ValueError(_format_errors(invalid + unknown, config_path=config_path))
    if not unknown or unknown_keys == "ignore":
        return
    message = _format_errors(unknown, config_path=config_path)
    if unknown_keys == "error":
        raise ValueError(message)
    logger.warning(message)
