import logging
import socket
from typing import Optional

from .base import TransportError, timeout_seconds

logger = logging.getLogger(__name__)


class StreamError(TransportError):
    """
    A stream control socket transport error.

    Inputs:
      - message: Error description.
    Outputs:
      - Exception instance.

    Brief: Raised for socket/connect/send/recv errors on SOCK_STREAM sockets.
    """

    pass


def stream_query(
    remote_path: str,
    command: str,
    *,
    timeout_ms: Optional[int] = None,
    bufsize: int = 4096,
) -> bytes:
    """
    Send one command to a pdns_server control socket and read the full reply.

    Inputs:
      - remote_path: Filesystem path of the server's control socket.
      - command: Command text, e.g. 'SHOW *'. A NUL terminator is appended on
        the wire.
      - timeout_ms: Optional per-operation timeout; None blocks indefinitely.
      - bufsize: Size of each recv() call.
    Outputs:
      - bytes: Concatenation of every chunk received until the server closed
        the connection. An empty reply is returned as b"".

    Raises:
      - StreamError: On any socket error; partially read data is discarded.

    Example:
      >>> reply = stream_query('/var/run/pdns.controlsocket', 'SHOW *')
    """
    try:
        sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
    except OSError as e:
        raise StreamError(f"socket failed: {e}")
    try:
        sock.settimeout(timeout_seconds(timeout_ms))
        try:
            sock.connect(remote_path)
        except OSError as e:
            raise StreamError(f"connect to {remote_path} failed: {e}")
        try:
            sock.sendall(command.encode("ascii", "replace") + b"\0")
        except OSError as e:
            raise StreamError(f"send to {remote_path} failed: {e}")
        return _recv_until_eof(sock, bufsize)
    finally:
        try:
            sock.close()
        except OSError:  # pragma: no cover
            pass


def _recv_until_eof(sock: socket.socket, bufsize: int) -> bytes:
    """
    Receive from a blocking socket until the peer closes the connection.

    Inputs:
      - sock: Connected socket
      - bufsize: Maximum bytes per recv()
    Outputs:
      - bytes: All data received before EOF.

    Example:
      >>> _recv_until_eof(sock, 4096)
    """
    chunks = []
    while True:
        try:
            chunk = sock.recv(bufsize)
        except OSError as e:
            raise StreamError(f"recv failed: {e}")
        if not chunk:
            break
        chunks.append(chunk)
    data = b"".join(chunks)
    logger.debug("stream reply: %d bytes in %d chunks", len(data), len(chunks))
    return data
