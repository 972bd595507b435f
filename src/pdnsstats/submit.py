"""
Normalize raw PowerDNS statistics and hand them to the dispatch backend.
"""

from __future__ import annotations

import logging
import re
import socket
import time
from typing import Callable, Optional, Union

from .dispatch.base import BaseDispatcher, MetricObservation
from .lookup import resolve

logger = logging.getLogger(__name__)

PLUGIN_NAME = "powerdns"

# C strtoll(..., 0) accepts decimal, 0x-prefixed hex and 0-prefixed octal.
_INT_PREFIX = re.compile(r"\s*([+-]?)(0[xX][0-9a-fA-F]+|0[0-7]*|[1-9][0-9]*)")
_FLOAT_PREFIX = re.compile(
    r"\s*[+-]?(?:(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?|inf(?:inity)?|nan)",
    re.IGNORECASE,
)


def parse_integer_prefix(text: str) -> Optional[int]:
    """
    Parse the longest leading integer of text the way strtoll(base=0) does.

    Inputs:
        text: Raw value token.

    Outputs:
        int, or None when no digits could be consumed.

    Example:
        >>> parse_integer_prefix("42")
        42
        >>> parse_integer_prefix("0x1f")
        31
        >>> parse_integer_prefix("12abc")
        12
        >>> parse_integer_prefix("N/A") is None
        True
    """
    m = _INT_PREFIX.match(text)
    if m is None:
        return None
    sign, digits = m.group(1), m.group(2)
    if digits[:2] in ("0x", "0X"):
        value = int(digits[2:], 16)
    elif len(digits) > 1 and digits[0] == "0":
        value = int(digits[1:], 8)
    else:
        value = int(digits, 10)
    return -value if sign == "-" else value


def parse_float_prefix(text: str) -> Optional[float]:
    """
    Parse the longest leading floating point number of text (strtod style).

    Inputs:
        text: Raw value token.

    Outputs:
        float, or None when no characters could be consumed.

    Example:
        >>> parse_float_prefix("1.5ms")
        1.5
        >>> parse_float_prefix("N/A") is None
        True
    """
    m = _FLOAT_PREFIX.match(text)
    if m is None:
        return None
    return float(m.group(0))


class Submitter:
    """
    Resolve, type-convert and dispatch raw statistics.

    Inputs (constructor):
        dispatcher: BaseDispatcher providing schema lookups and dispatch().
        plugin: Plugin name stamped on every observation.
        clock: Callable returning the current epoch time.
        hostname: Host name stamped on observations (defaults to the local
            host name).

    Outputs:
        Submitter instance; submit() returns True when a value was
        dispatched.

    Example:
        >>> from pdnsstats.dispatch.memory import MemoryDispatcher
        >>> sub = Submitter(MemoryDispatcher())
        >>> sub.submit("local", "udp-queries", "17")
        True
    """

    def __init__(
        self,
        dispatcher: BaseDispatcher,
        *,
        plugin: str = PLUGIN_NAME,
        clock: Callable[[], float] = time.time,
        hostname: Optional[str] = None,
    ) -> None:
        self.dispatcher = dispatcher
        self.plugin = plugin
        self.clock = clock
        self.hostname = hostname or socket.gethostname()

    def submit(self, instance: str, raw_name: str, raw_value: str) -> bool:
        """
        Submit one (name, value) pair read from a target.

        Inputs:
            instance: Instance label of the target that produced the pair.
            raw_name: Statistic name as emitted by PowerDNS.
            raw_value: Unparsed value token.

        Outputs:
            bool: True when an observation was dispatched; False when the
            pair was ignored (unknown name) or dropped (schema or value
            problems, dispatcher failure).
        """
        resolved = resolve(raw_name)
        if resolved is None:
            logger.debug("Not found in lookup table: %s = %s", raw_name, raw_value)
            return False
        kind, sub_label = resolved

        schema = self.dispatcher.lookup_schema(kind)
        if schema is None:
            logger.error(
                "The lookup table returned type %r, but no metric schema exists for it",
                kind,
            )
            return False
        if schema.arity != 1:
            logger.error(
                "Type %r has %d data sources, but only one is supported",
                kind,
                schema.arity,
            )
            return False

        value: Union[int, float, None]
        if schema.is_gauge:
            value = parse_float_prefix(raw_value)
            if value is None:
                logger.error(
                    "Cannot convert %r to a floating point number (%s)",
                    raw_value,
                    raw_name,
                )
                return False
        else:
            value = parse_integer_prefix(raw_value)
            if value is None:
                logger.error(
                    "Cannot convert %r to an integer number (%s)", raw_value, raw_name
                )
                return False

        observation = MetricObservation(
            time=self.clock(),
            host=self.hostname,
            plugin=self.plugin,
            plugin_instance=instance,
            metric_kind=kind,
            type_instance=sub_label,
            values=(value,),
        )
        try:
            self.dispatcher.dispatch(observation)
        except Exception as e:
            logger.error("Dispatch of %s failed: %s", observation.identifier, e)
            return False
        return True
