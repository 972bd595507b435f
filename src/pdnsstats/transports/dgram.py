import logging
import os
import socket
import threading
from typing import Optional

from .base import TransportError, timeout_seconds

logger = logging.getLogger(__name__)

# Every datagram request binds the same local path, so only one may be in
# flight at a time.
DGRAM_LOCK = threading.Lock()

DEFAULT_LOCAL_SOCKET = "/var/run/pdnsstats-powerdns"


class DgramError(TransportError):
    """
    Brief: Datagram control socket transport error.

    Inputs:
    - message: description

    Outputs:
    - Exception instance
    """

    pass


def dgram_query(
    remote_path: str,
    command: str,
    *,
    local_path: str = DEFAULT_LOCAL_SOCKET,
    timeout_ms: Optional[int] = None,
    bufsize: int = 4096,
) -> bytes:
    """
    Brief: Send one command to a pdns_recursor control socket and read one reply datagram.

    Inputs:
    - remote_path: filesystem path of the recursor's control socket
    - command: command text, sent without a terminator
    - local_path: path to bind so the recursor has an address to answer to
    - timeout_ms: optional per-operation timeout; None blocks indefinitely
    - bufsize: maximum reply size; longer datagrams are truncated

    Outputs:
    - bytes: exactly the bytes of the reply datagram

    Raises:
    - DgramError: on any unlink/bind/chmod/connect/send/recv error. The local
      path is removed before the error propagates.

    Example:
        >>> dgram_query('/var/run/pdns_recursor.controlsocket', 'get questions',
        ...             local_path='/tmp/pdnsstats.sock')
    """
    with DGRAM_LOCK:
        try:
            s = socket.socket(socket.AF_UNIX, socket.SOCK_DGRAM)
        except OSError as e:
            raise DgramError(f"socket failed: {e}")
        try:
            _remove_stale(local_path)
            s.settimeout(timeout_seconds(timeout_ms))
            try:
                s.bind(local_path)
                # The recursor runs as another user and must be able to
                # write its answer to our socket.
                os.chmod(local_path, 0o666)
                s.connect(remote_path)
                s.send(command.encode("ascii", "replace"))
                data = s.recv(bufsize)
            except OSError as e:
                raise DgramError(f"request to {remote_path} failed: {e}")
            logger.debug("dgram reply from %s: %d bytes", remote_path, len(data))
            return data
        finally:
            try:
                s.close()
            except OSError:  # pragma: no cover
                pass
            _unlink_local(local_path)


def _remove_stale(path: str) -> None:
    """
    Brief: Remove a socket file left behind by an earlier request.

    Inputs:
    - path: local bind path

    Outputs:
    - None; a missing file is not an error

    Raises:
    - DgramError: when the file exists but cannot be removed
    """
    try:
        os.unlink(path)
    except FileNotFoundError:
        return
    except OSError as e:
        raise DgramError(f"unlink {path} failed: {e}")


def _unlink_local(path: str) -> None:
    """
    Brief: Remove the local bind path after a request, ignoring failures.

    Inputs:
    - path: local bind path

    Outputs:
    - None
    """
    try:
        os.unlink(path)
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.warning("Could not remove local socket %s: %s", path, e)
