"""Control socket transports for pdns_server (stream) and pdns_recursor (datagram)."""

from typing import Optional

from .base import TransportError, TransportKind, timeout_seconds
from .dgram import DEFAULT_LOCAL_SOCKET, DGRAM_LOCK, DgramError, dgram_query
from .stream import StreamError, stream_query

__all__ = [
    "DEFAULT_LOCAL_SOCKET",
    "DGRAM_LOCK",
    "DgramError",
    "StreamError",
    "TransportError",
    "TransportKind",
    "dgram_query",
    "fetch_reply",
    "stream_query",
    "timeout_seconds",
]


def fetch_reply(
    kind: TransportKind,
    remote_path: str,
    command: str,
    *,
    local_path: str = DEFAULT_LOCAL_SOCKET,
    timeout_ms: Optional[int] = None,
) -> bytes:
    """
    Brief: Fetch one reply using the strategy matching the transport kind.

    Inputs:
    - kind: TransportKind of the target
    - remote_path: control socket path
    - command: command text
    - local_path: datagram bind path (ignored for stream targets)
    - timeout_ms: optional per-operation timeout

    Outputs:
    - bytes: raw reply

    Raises:
    - TransportError: transport failure, or an unknown transport kind
    """
    if kind is TransportKind.DGRAM:
        return dgram_query(
            remote_path, command, local_path=local_path, timeout_ms=timeout_ms
        )
    if kind is TransportKind.STREAM:
        return stream_query(remote_path, command, timeout_ms=timeout_ms)
    raise TransportError(f"Unknown socket type: {kind!r}")
