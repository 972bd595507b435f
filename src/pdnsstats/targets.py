"""
Configured PowerDNS control sockets and the registry that polls them.

Two target kinds exist:

- ServerTarget: pdns_server, stream socket, ``SHOW *``, comma separated
  ``name=value`` reply.
- RecursorTarget: pdns_recursor, datagram socket, ``get name ...``, reply of
  bare values in request order.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, Iterator, List, Optional

from .decoders import RawStat, decode_comma_pairs, decode_positional
from .submit import Submitter
from .transports import DEFAULT_LOCAL_SOCKET, TransportError, TransportKind, fetch_reply

logger = logging.getLogger(__name__)

SERVER_SOCKET = "/var/run/pdns.controlsocket"
SERVER_COMMAND = "SHOW *"

RECURSOR_SOCKET = "/var/run/pdns_recursor.controlsocket"
RECURSOR_COMMAND = (
    "get all-outqueries answers0-1 "
    "answers100-1000 answers10-100 answers1-10 answers-slow cache-entries "
    "cache-hits cache-misses chain-resends client-parse-errors "
    "concurrent-queries dlg-only-drops ipv6-outqueries negcache-entries "
    "noerror-answers nsset-invalidations nsspeeds-entries nxdomain-answers "
    "outgoing-timeouts qa-latency questions resource-limits "
    "server-parse-errors servfail-answers spoof-prevents sys-msec "
    "tcp-client-overflow tcp-outqueries tcp-questions throttled-out "
    "throttled-outqueries throttle-entries unauthorized-tcp unauthorized-udp "
    "unexpected-packets unreachables user-msec"
)


class CollectionTarget:
    """
    One configured control socket.

    Inputs (constructor):
        instance: Instance label stamped on every metric from this target.
        command: Command sent on each poll (defaults per target kind).
        socket_path: Remote control socket path (defaults per target kind).

    Outputs:
        Target whose collect() performs transport, decoding and submission.

    Subclasses set kind, transport, default_command and default_socket and
    implement decode().
    """

    kind: str = ""
    transport: TransportKind
    default_command: str = ""
    default_socket: str = ""

    def __init__(
        self,
        instance: str,
        command: Optional[str] = None,
        socket_path: Optional[str] = None,
    ) -> None:
        self._instance = instance
        self._command = command if command is not None else self.default_command
        self._socket_path = (
            socket_path if socket_path is not None else self.default_socket
        )

    @property
    def instance(self) -> str:
        return self._instance

    @property
    def command(self) -> str:
        return self._command

    @property
    def socket_path(self) -> str:
        return self._socket_path

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(instance={self._instance!r}, "
            f"socket_path={self._socket_path!r})"
        )

    def decode(self, command: str, reply: str) -> Iterator[RawStat]:  # pragma: no cover - interface only
        raise NotImplementedError

    def fetch(
        self,
        *,
        local_path: str = DEFAULT_LOCAL_SOCKET,
        timeout_ms: Optional[int] = None,
    ) -> str:
        """
        Send the command and return the decoded reply text.

        Raises:
            TransportError: On any socket failure.
        """
        data = fetch_reply(
            self.transport,
            self._socket_path,
            self._command,
            local_path=local_path,
            timeout_ms=timeout_ms,
        )
        # Replies are plain ASCII; some servers NUL-terminate them.
        return data.decode("ascii", "replace").rstrip("\0")

    def collect(
        self,
        submitter: Submitter,
        *,
        local_path: str = DEFAULT_LOCAL_SOCKET,
        timeout_ms: Optional[int] = None,
    ) -> int:
        """
        Poll this target once and submit every decoded statistic.

        Inputs:
            submitter: Submitter receiving (instance, name, value) triples.
            local_path: Bind path for datagram requests.
            timeout_ms: Optional per-operation socket timeout.

        Outputs:
            int: Number of observations dispatched.

        Raises:
            TransportError: When the reply could not be fetched.
        """
        command = self._command
        reply = self.fetch(local_path=local_path, timeout_ms=timeout_ms)
        sent = 0
        for stat in self.decode(command, reply):
            if submitter.submit(self._instance, stat.name, stat.value):
                sent += 1
        return sent


class ServerTarget(CollectionTarget):
    """pdns_server control socket."""

    kind = "server"
    transport = TransportKind.STREAM
    default_command = SERVER_COMMAND
    default_socket = SERVER_SOCKET

    def decode(self, command: str, reply: str) -> Iterator[RawStat]:
        return decode_comma_pairs(reply)


class RecursorTarget(CollectionTarget):
    """pdns_recursor control socket."""

    kind = "recursor"
    transport = TransportKind.DGRAM
    default_command = RECURSOR_COMMAND
    default_socket = RECURSOR_SOCKET

    def decode(self, command: str, reply: str) -> Iterator[RawStat]:
        return decode_positional(command, reply)


TARGET_KINDS: Dict[str, type] = {
    "server": ServerTarget,
    "recursor": RecursorTarget,
}


def create_target(
    kind: str,
    instance: str,
    command: Optional[str] = None,
    socket_path: Optional[str] = None,
) -> CollectionTarget:
    """
    Build a target for a configuration block kind.

    Inputs:
        kind: 'Server' or 'Recursor' (case-insensitive).
        instance: Instance label.
        command: Optional command override.
        socket_path: Optional socket path override.

    Outputs:
        CollectionTarget subclass instance.

    Raises:
        ValueError: For unknown kinds.

    Example:
        >>> create_target("Recursor", "rec").command.split()[0]
        'get'
    """
    try:
        cls = TARGET_KINDS[str(kind).lower()]
    except KeyError:
        raise ValueError(
            f"Unknown target kind {kind!r} (expected one of: Server, Recursor)"
        )
    return cls(instance, command=command, socket_path=socket_path)


class TargetRegistry:
    """
    Ordered collection of targets polled on every cycle.

    Inputs (constructor):
        None

    Outputs:
        TargetRegistry; iterate it for targets in insertion order.

    Example:
        >>> reg = TargetRegistry()
        >>> reg.add(create_target("Server", "local"))
        >>> len(reg)
        1
    """

    def __init__(self) -> None:
        self._targets: List[CollectionTarget] = []

    def add(self, target: CollectionTarget) -> None:
        self._targets.append(target)
        logger.debug("Add %s: instance = %s", target.kind, target.instance)

    def __iter__(self) -> Iterator[CollectionTarget]:
        return iter(list(self._targets))

    def __len__(self) -> int:
        return len(self._targets)

    def for_each(self, visit: Callable[[CollectionTarget], object]) -> None:
        for target in list(self._targets):
            visit(target)

    def clear(self) -> None:
        self._targets.clear()

    def collect_all(
        self,
        submitter: Submitter,
        *,
        local_path: str = DEFAULT_LOCAL_SOCKET,
        timeout_ms: Optional[int] = None,
    ) -> Dict[str, bool]:
        """
        Run one collection cycle over every target.

        Inputs:
            submitter: Submitter shared by all targets.
            local_path: Bind path for datagram requests.
            timeout_ms: Optional per-operation socket timeout.

        Outputs:
            dict mapping "kind/instance" to True when the target was polled
            successfully. A failing target is logged and skipped; the rest
            are still polled.
        """
        results: Dict[str, bool] = {}

        def _visit(target: CollectionTarget) -> None:
            key = f"{target.kind}/{target.instance}"
            try:
                sent = target.collect(
                    submitter, local_path=local_path, timeout_ms=timeout_ms
                )
            except TransportError as e:
                logger.error("Polling %s failed: %s", key, e)
                results[key] = False
                return
            except Exception:
                logger.exception("Unexpected error while polling %s", key)
                results[key] = False
                return
            logger.debug("Polled %s: %d values dispatched", key, sent)
            results[key] = True

        self.for_each(_visit)
        return results
