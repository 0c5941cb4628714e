"""Binary protocol spoken by clockboundd over its Unix datagram socket.

All multi-byte integers are big-endian. Instants are unsigned 64-bit
nanosecond counts since the Unix epoch, which reaches the year 2554 instead
of stopping in 2262 like a signed count would.

Request format:
    Now:          version | type=1 | reserved | reserved                 (4 bytes)
    Before/After: version | type=2/3 | reserved | reserved | instant(8)  (12 bytes)

Response format:
    Now:          version | type | unsync | reserved | earliest(8) | latest(8)  (20 bytes)
    Before/After: version | type | unsync | reserved | result(1)               (>= 5 bytes)

Only the first 5 bytes of a Before/After response are consulted.
"""

import struct
from dataclasses import dataclass
from enum import IntEnum
from typing import Optional, Tuple, Union

from clockboundc.errors import ProtocolError
from clockboundc.timestamp import NANOS_PER_SECOND, Timestamp

PROTOCOL_VERSION = 1

MAX_UNSIGNED_NANOS = 0xFFFF_FFFF_FFFF_FFFF

NOW_REQUEST_SIZE = 4
TIME_REQUEST_SIZE = 12
NOW_RESPONSE_SIZE = 20
BOOL_RESPONSE_SIZE = 5

_NOW_REQUEST = struct.Struct(">BBxx")
_HEADER = struct.Struct(">BBBx")
_TIME_REQUEST = struct.Struct(">BBxxQ")
_NOW_RESPONSE = struct.Struct(">BBBxQQ")
_BOOL_RESPONSE = struct.Struct(">BBBxB")


class CommandType(IntEnum):
    ERROR = 0
    NOW = 1
    BEFORE = 2
    AFTER = 3


@dataclass(frozen=True)
class Header:
    """Header present on every clockboundd response."""

    version: int
    type: Union[CommandType, int]
    # True when the daemon's upstream time source is not synchronized.
    # Bound values are still returned but should be treated as unreliable.
    unsynchronized: bool


@dataclass(frozen=True)
class Bound:
    """Clock error bound: true time lies within [earliest, latest]."""

    earliest: Timestamp
    latest: Timestamp

    @property
    def width_ns(self) -> int:
        return self.latest - self.earliest


@dataclass(frozen=True)
class Now:
    """Current system time with its error bound."""

    time: Timestamp
    header: Header
    bound: Bound


@dataclass(frozen=True)
class Before:
    """True if the queried instant is before the earliest bound of now."""

    header: Header
    before: bool


@dataclass(frozen=True)
class After:
    """True if the queried instant is after the latest bound of now."""

    header: Header
    after: bool


def _command_type(code: int) -> Union[CommandType, int]:
    try:
        return CommandType(code)
    except ValueError:
        return code


def encode_time(t: Timestamp) -> int:
    """
    Convert an instant to unsigned nanoseconds since the epoch.

    Raises:
        ValueError: If the instant is before the epoch or after
            2554-07-21T23:34:33.709551615Z
    """
    nanos = t.seconds * NANOS_PER_SECOND + t.nanoseconds
    if not 0 <= nanos <= MAX_UNSIGNED_NANOS:
        raise ValueError(
            f"Instant not representable as unsigned nanoseconds: "
            f"{t.seconds}s {t.nanoseconds}ns"
        )
    return nanos


def decode_time(nanos: int) -> Timestamp:
    """Convert unsigned nanoseconds since the epoch to an instant."""
    seconds, fraction = divmod(nanos, NANOS_PER_SECOND)
    return Timestamp(seconds, fraction)


def midpoint(earliest: int, latest: int) -> int:
    """
    Midpoint of a bound in unsigned 64-bit arithmetic.

    Truncates toward earliest. If latest < earliest the difference wraps
    modulo 2**64 exactly as the daemon's own arithmetic would.
    """
    return (latest - ((latest - earliest) & MAX_UNSIGNED_NANOS) // 2) & MAX_UNSIGNED_NANOS


# ============================================================================
# Requests
# ============================================================================

def serialize_now_request() -> bytes:
    """Serialize the 4-byte Now request."""
    return _NOW_REQUEST.pack(PROTOCOL_VERSION, CommandType.NOW)


def _serialize_time_request(command: CommandType, t: Timestamp) -> bytes:
    return _TIME_REQUEST.pack(PROTOCOL_VERSION, command, encode_time(t))


def serialize_before_request(t: Timestamp) -> bytes:
    """Serialize the 12-byte Before request for instant t."""
    return _serialize_time_request(CommandType.BEFORE, t)


def serialize_after_request(t: Timestamp) -> bytes:
    """Serialize the 12-byte After request for instant t."""
    return _serialize_time_request(CommandType.AFTER, t)


def deserialize_request(data: bytes) -> Tuple[Union[CommandType, int], Optional[Timestamp]]:
    """
    Parse a request as the daemon sees it.

    Args:
        data: Raw request datagram

    Returns:
        (command type, queried instant or None for Now)

    Raises:
        ProtocolError: If the length does not match the command type
    """
    if len(data) < NOW_REQUEST_SIZE:
        raise ProtocolError(f"clockboundc: request too short: {len(data)}")

    command = _command_type(data[1])
    if command == CommandType.NOW:
        if len(data) != NOW_REQUEST_SIZE:
            raise ProtocolError(f"clockboundc: invalid Now request length: {len(data)}")
        return command, None

    if len(data) != TIME_REQUEST_SIZE:
        raise ProtocolError(f"clockboundc: invalid request length: {len(data)}")
    _, _, nanos = _TIME_REQUEST.unpack(data)
    return command, decode_time(nanos)


# ============================================================================
# Responses
# ============================================================================

def serialize_response_header(
    command: Union[CommandType, int],
    unsynchronized: bool = False,
    version: int = PROTOCOL_VERSION,
) -> bytes:
    """Serialize the 4-byte header that starts every response."""
    return _HEADER.pack(version, command, 1 if unsynchronized else 0)


def serialize_now_response(
    earliest: Union[Timestamp, int],
    latest: Union[Timestamp, int],
    unsynchronized: bool = False,
) -> bytes:
    """
    Serialize a 20-byte Now response.

    Args:
        earliest: Lower bound, as a Timestamp or raw unsigned nanoseconds
        latest: Upper bound, as a Timestamp or raw unsigned nanoseconds
        unsynchronized: Value of the unsync flag

    Returns:
        Response bytes as clockboundd would send them
    """
    if isinstance(earliest, Timestamp):
        earliest = encode_time(earliest)
    if isinstance(latest, Timestamp):
        latest = encode_time(latest)
    return _NOW_RESPONSE.pack(
        PROTOCOL_VERSION,
        CommandType.NOW,
        1 if unsynchronized else 0,
        earliest,
        latest,
    )


def serialize_bool_response(
    command: Union[CommandType, int],
    value: bool,
    unsynchronized: bool = False,
) -> bytes:
    """Serialize a 5-byte Before or After response."""
    return _BOOL_RESPONSE.pack(
        PROTOCOL_VERSION,
        command,
        1 if unsynchronized else 0,
        1 if value else 0,
    )


def deserialize_header(data: bytes) -> Header:
    """
    Parse the 4-byte response header.

    Raises:
        ProtocolError: If fewer than 4 bytes are given
    """
    if len(data) < _HEADER.size:
        raise ProtocolError(f"clockboundc: response too short for header: {len(data)}")
    version, command, unsync = _HEADER.unpack_from(data)
    return Header(
        version=version,
        type=_command_type(command),
        unsynchronized=unsync != 0,
    )


def deserialize_now_response(data: bytes) -> Now:
    """
    Parse a Now response.

    Args:
        data: Raw response datagram

    Returns:
        Now with the bound and its midpoint

    Raises:
        ProtocolError: If data is not exactly 20 bytes
    """
    if len(data) != NOW_RESPONSE_SIZE:
        raise ProtocolError(f"clockboundc: invalid response length: {len(data)}")

    _, _, _, earliest, latest = _NOW_RESPONSE.unpack(data)
    return Now(
        time=decode_time(midpoint(earliest, latest)),
        header=deserialize_header(data),
        bound=Bound(
            earliest=decode_time(earliest),
            latest=decode_time(latest),
        ),
    )


def _deserialize_bool_response(data: bytes) -> Tuple[Header, bool]:
    if len(data) < BOOL_RESPONSE_SIZE:
        raise ProtocolError(f"clockboundc: invalid response length: {len(data)}")
    return deserialize_header(data), data[4] != 0


def deserialize_before_response(data: bytes) -> Before:
    """Parse a Before response; bytes past the fifth are ignored."""
    header, value = _deserialize_bool_response(data)
    return Before(header=header, before=value)


def deserialize_after_response(data: bytes) -> After:
    """Parse an After response; bytes past the fifth are ignored."""
    header, value = _deserialize_bool_response(data)
    return After(header=header, after=value)
