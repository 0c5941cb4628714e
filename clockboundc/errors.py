"""Exception types raised by clockboundc.

Every error derives from ClockBoundError so callers can catch the whole
family at once. The OS-level ones also derive from OSError, and the decode
error derives from ValueError, so existing handlers keep working.
"""


class ClockBoundError(Exception):
    """Base class for all clockboundc errors."""


class ConnectError(ClockBoundError, OSError):
    """Creating, binding or connecting the private socket failed."""


class TransportError(ClockBoundError, OSError):
    """Sending a request or receiving a reply failed."""


class ProtocolError(ClockBoundError, ValueError):
    """A datagram does not have the shape the protocol requires."""


class CleanupError(ClockBoundError, OSError):
    """Closing the socket or removing its filesystem entry failed."""
