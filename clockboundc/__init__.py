"""Client for clockboundd, the local clock-bound daemon.

clockboundd answers over a Unix datagram socket with the current time and a
bound [earliest, latest] guaranteed to contain true time, and tells whether
a given instant is certainly before or after that bound.

Modules:
- protocol: Wire format encode/decode (no I/O)
- client: ClockBoundClient, one private socket per instance
- mock_daemon: MockDaemon, a stand-in for clockboundd in tests
"""

from clockboundc.client import (
    DEFAULT_SOCKET_PATH,
    ClockBoundClient,
    new,
    new_with_path,
)
from clockboundc.errors import (
    CleanupError,
    ClockBoundError,
    ConnectError,
    ProtocolError,
    TransportError,
)
from clockboundc.protocol import After, Before, Bound, CommandType, Header, Now
from clockboundc.timestamp import Timestamp

__all__ = [
    "DEFAULT_SOCKET_PATH",
    "ClockBoundClient",
    "new",
    "new_with_path",
    "After",
    "Before",
    "Bound",
    "CommandType",
    "Header",
    "Now",
    "Timestamp",
    "ClockBoundError",
    "ConnectError",
    "TransportError",
    "ProtocolError",
    "CleanupError",
]
