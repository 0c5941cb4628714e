"""Stand-in for clockboundd in tests.

MockDaemon binds a private datagram socket, records every request it
receives and answers each one with the same canned payload. Point a
ClockBoundClient at MockDaemon.socket_path to exercise the client without a
real daemon.

Usage:
    response = serialize_bool_response(CommandType.BEFORE, True)
    with MockDaemon(response) as daemon:
        with ClockBoundClient(daemon.socket_path) as client:
            client.before(Timestamp.now())
        request = daemon.next_request()
"""

import logging
import os
import queue
import socket
import threading
from typing import Iterator, Optional

from clockboundc.client import new_socket_path
from clockboundc.errors import CleanupError, ProtocolError
from clockboundc.protocol import deserialize_request

logger = logging.getLogger(__name__)

# Mode of the daemon socket, so clients running as any user can send to it.
DAEMON_SOCKET_MODE = 0o777

# Recorded requests not yet consumed. A full queue means the test forgot to
# drain it; the serve loop then blocks until there is room or close().
REQUEST_QUEUE_SIZE = 8

# Receive buffer; large enough that oversized requests are recorded whole.
MAX_REQUEST_SIZE = 65536

# How often blocking calls wake up to check for close().
POLL_INTERVAL = 0.05


class MockDaemon:
    """
    Minimal clockboundd replaying one fixed response.

    The serve loop runs on a daemon thread owned by this instance.
    """

    def __init__(self, response: bytes, temp_dir: Optional[str] = None):
        """
        Bind the socket and start serving.

        Args:
            response: Payload sent back for every request
            temp_dir: Directory for the socket (default: system temp)

        Raises:
            OSError: If the socket cannot be created, bound or chmod-ed
        """
        self.response = bytes(response)
        self.socket_path = new_socket_path(temp_dir)

        self._requests: "queue.Queue[bytes]" = queue.Queue(maxsize=REQUEST_QUEUE_SIZE)
        self._closed = threading.Event()

        sock = socket.socket(socket.AF_UNIX, socket.SOCK_DGRAM)
        try:
            sock.bind(self.socket_path)
        except OSError:
            sock.close()
            raise
        try:
            os.chmod(self.socket_path, DAEMON_SOCKET_MODE)
        except OSError:
            sock.close()
            os.remove(self.socket_path)
            raise
        sock.settimeout(POLL_INTERVAL)
        self._sock = sock

        self._thread = threading.Thread(
            target=self._serve,
            name=f"mock-clockboundd-{os.path.basename(self.socket_path)}",
            daemon=True,
        )
        self._thread.start()
        logger.debug(f"Mock daemon listening on {self.socket_path}")

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def _serve(self) -> None:
        """Receive, record and answer requests until close()."""
        while not self._closed.is_set():
            try:
                data, address = self._sock.recvfrom(MAX_REQUEST_SIZE)
            except socket.timeout:
                continue
            except OSError as e:
                if self._closed.is_set():
                    return
                logger.warning(f"Mock daemon receive failed: {e}")
                continue

            self._log_request(data)
            if not self._record(data):
                return

            try:
                self._sock.sendto(self.response, address)
            except OSError as e:
                if self._closed.is_set():
                    return
                logger.warning(f"Mock daemon reply to {address!r} failed: {e}")

    def _log_request(self, data: bytes) -> None:
        try:
            command, t = deserialize_request(data)
        except ProtocolError as e:
            logger.debug(f"Mock daemon got malformed request {data.hex()}: {e}")
            return
        if t is None:
            logger.debug(f"Mock daemon got {command!r}")
        else:
            logger.debug(f"Mock daemon got {command!r} for {t}")

    def _record(self, data: bytes) -> bool:
        """Queue a request, blocking while full. False if closed meanwhile."""
        while not self._closed.is_set():
            try:
                self._requests.put(data, timeout=POLL_INTERVAL)
                return True
            except queue.Full:
                continue
        return False

    def next_request(self, timeout: Optional[float] = 1.0) -> bytes:
        """
        Pop the oldest recorded request.

        Raises:
            queue.Empty: If none arrives within timeout
        """
        return self._requests.get(timeout=timeout)

    def requests(self) -> Iterator[bytes]:
        """
        Yield recorded requests in arrival order.

        Blocks waiting for the next one; ends once the daemon is closed and
        every recorded request has been consumed.
        """
        while True:
            try:
                yield self._requests.get(timeout=POLL_INTERVAL)
            except queue.Empty:
                if self._closed.is_set():
                    return

    def close(self) -> None:
        """
        Stop the serve loop, close the socket and remove its path.

        Calling close() again is a no-op.

        Raises:
            CleanupError: Wrapping the first failure
        """
        if self._closed.is_set():
            return
        self._closed.set()
        self._thread.join()

        error: Optional[OSError] = None
        try:
            self._sock.close()
        except OSError as e:
            error = e
        try:
            os.remove(self.socket_path)
        except OSError as e:
            if error is None:
                error = e

        logger.debug(f"Mock daemon on {self.socket_path} stopped")
        if error is not None:
            raise CleanupError(f"clockboundc: mock daemon close failed: {error}") from error

    def __enter__(self) -> "MockDaemon":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
