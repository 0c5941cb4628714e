"""Client for clockboundd.

Each client binds its own private datagram socket in the temp directory,
connects it to the daemon's socket and does one blocking request/reply
round trip per call. There is no request id on the wire, so replies are
matched to requests purely by order: a client must not be shared between
threads without external locking.

Usage:
    with ClockBoundClient() as client:
        now = client.now()
        print(now.time, now.bound.earliest, now.bound.latest)
"""

import base64
import logging
import os
import secrets
import socket
import tempfile
from pathlib import Path
from typing import Optional, Union

from clockboundc.errors import CleanupError, ConnectError, TransportError
from clockboundc.protocol import (
    BOOL_RESPONSE_SIZE,
    NOW_RESPONSE_SIZE,
    After,
    Before,
    Now,
    deserialize_after_response,
    deserialize_before_response,
    deserialize_now_response,
    serialize_after_request,
    serialize_before_request,
    serialize_now_request,
)
from clockboundc.timestamp import TimeLike, as_timestamp

logger = logging.getLogger(__name__)

DEFAULT_SOCKET_PATH = "/run/clockboundd/clockboundd.sock"

# Prefix for paths of private unixgram sockets.
SOCKET_NAME_PREFIX = "clockboundc"

# Mode of the private socket, so a daemon running as another user can reply.
CLIENT_SOCKET_MODE = 0o666


def new_socket_path(temp_dir: Optional[str] = None) -> str:
    """
    Generate a fresh path for a private socket.

    The name carries 16 bytes from the OS CSPRNG, base64url-encoded without
    padding. Collisions are not checked for.

    Args:
        temp_dir: Directory for the socket (default: system temp directory)

    Returns:
        e.g. /tmp/clockboundc-q8ZpY3wXx0m1bQp5k2Yt_A.sock
    """
    token = base64.urlsafe_b64encode(secrets.token_bytes(16)).rstrip(b"=").decode("ascii")
    name = f"{SOCKET_NAME_PREFIX}-{token}.sock"
    return os.path.join(temp_dir or tempfile.gettempdir(), name)


class ClockBoundClient:
    """
    Connection to clockboundd.

    Owns exactly one private socket for its whole lifetime. The client sets
    no timeout of its own; use settimeout() to bound how long a call may
    block.
    """

    def __init__(
        self,
        socket_path: Union[str, Path] = DEFAULT_SOCKET_PATH,
        temp_dir: Optional[str] = None,
    ):
        """
        Open a private socket and connect it to the daemon.

        Args:
            socket_path: Path of the daemon's socket
            temp_dir: Directory for the private socket (default: system temp)

        Raises:
            ConnectError: If the socket cannot be created, bound, connected or
                made writable for the daemon. Nothing is left behind.
        """
        self.socket_path = str(socket_path)
        self.local_path = new_socket_path(temp_dir)
        self._closed = False

        bound = False
        try:
            sock = socket.socket(socket.AF_UNIX, socket.SOCK_DGRAM)
        except OSError as e:
            raise ConnectError(f"clockboundc: cannot create socket: {e}") from e

        try:
            sock.bind(self.local_path)
            bound = True
            sock.connect(self.socket_path)
            os.chmod(self.local_path, CLIENT_SOCKET_MODE)
        except OSError as e:
            sock.close()
            if bound:
                self._remove_local_path_quietly()
            raise ConnectError(
                f"clockboundc: cannot connect to {self.socket_path}: {e}"
            ) from e

        self._sock: socket.socket = sock
        logger.debug(f"Connected {self.local_path} -> {self.socket_path}")

    def _remove_local_path_quietly(self) -> None:
        try:
            Path(self.local_path).unlink(missing_ok=True)
        except OSError as e:
            logger.warning(f"Failed to remove {self.local_path}: {e}")

    @property
    def closed(self) -> bool:
        return self._closed

    def settimeout(self, seconds: Optional[float]) -> None:
        """
        Apply a deadline to every send and receive (None blocks forever).

        A call that runs past it raises TransportError.
        """
        self._sock.settimeout(seconds)

    def _roundtrip(self, request: bytes, bufsize: int) -> bytes:
        """
        Send one request and wait for exactly one reply datagram.

        Raises:
            TransportError: If the client is closed or the socket fails
        """
        if self._closed:
            raise TransportError("clockboundc: client is closed")

        try:
            self._sock.send(request)
        except OSError as e:
            raise TransportError(f"clockboundc: send failed: {e}") from e

        try:
            return self._sock.recv(bufsize)
        except OSError as e:
            raise TransportError(f"clockboundc: receive failed: {e}") from e

    def now(self) -> Now:
        """
        Get the current system time with its error bound.

        Returns:
            Now whose time is the midpoint of the bound

        Raises:
            TransportError: If send or receive fails
            ProtocolError: If the reply is not exactly 20 bytes
        """
        # One spare byte so an oversized datagram is reported, not truncated.
        data = self._roundtrip(serialize_now_request(), NOW_RESPONSE_SIZE + 1)
        return deserialize_now_response(data)

    def before(self, t: TimeLike) -> Before:
        """
        Ask whether t happened before the earliest bound of the current time.

        A receive failure raises TransportError instead of yielding a
        false result.

        Args:
            t: Timestamp, or datetime (naive values are taken as UTC)

        Raises:
            ValueError: If t is outside the range the protocol can encode
            TransportError: If send or receive fails
            ProtocolError: If the reply is shorter than 5 bytes
        """
        request = serialize_before_request(as_timestamp(t))
        return deserialize_before_response(self._roundtrip(request, BOOL_RESPONSE_SIZE))

    def after(self, t: TimeLike) -> After:
        """
        Ask whether t happened after the latest bound of the current time.

        Error behavior matches before().
        """
        request = serialize_after_request(as_timestamp(t))
        return deserialize_after_response(self._roundtrip(request, BOOL_RESPONSE_SIZE))

    def close(self) -> None:
        """
        Close the socket and remove the private socket file.

        Both steps are always attempted. Calling close() again is a no-op.

        Raises:
            CleanupError: Wrapping the first failure
        """
        if self._closed:
            return
        self._closed = True

        error: Optional[OSError] = None
        try:
            self._sock.close()
        except OSError as e:
            error = e
        try:
            os.remove(self.local_path)
        except OSError as e:
            if error is None:
                error = e

        logger.debug(f"Closed {self.local_path}")
        if error is not None:
            raise CleanupError(f"clockboundc: close failed: {error}") from error

    def __enter__(self) -> "ClockBoundClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __repr__(self) -> str:
        state = "closed" if self._closed else "open"
        return f"<ClockBoundClient {self.local_path} -> {self.socket_path} ({state})>"


def new() -> ClockBoundClient:
    """Connect to clockboundd at DEFAULT_SOCKET_PATH."""
    return ClockBoundClient(DEFAULT_SOCKET_PATH)


def new_with_path(path: Union[str, Path]) -> ClockBoundClient:
    """Connect to clockboundd at path."""
    return ClockBoundClient(path)
