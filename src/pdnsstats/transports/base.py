import enum
from typing import Optional


class TransportError(Exception):
    """
    Brief: Control socket transport error.

    Inputs:
    - message: description

    Outputs:
    - Exception instance
    """

    pass


class TransportKind(enum.Enum):
    """
    Brief: Socket type used to talk to a PowerDNS control socket.

    Members:
    - STREAM: connection-oriented AF_UNIX socket (pdns_server)
    - DGRAM: connectionless AF_UNIX socket (pdns_recursor)
    """

    STREAM = "stream"
    DGRAM = "dgram"


def timeout_seconds(timeout_ms: Optional[int]) -> Optional[float]:
    """
    Brief: Convert an optional millisecond timeout to socket.settimeout() units.

    Inputs:
    - timeout_ms: milliseconds, or None/0 for fully blocking sockets

    Outputs:
    - float seconds, or None

    Example:
        >>> timeout_seconds(1500)
        1.5
        >>> timeout_seconds(None) is None
        True
    """
    if not timeout_ms:
        return None
    return int(timeout_ms) / 1000.0
