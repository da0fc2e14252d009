# Copyright (c) 2026 Firefly Software Solutions Inc.
# Licensed under the Apache License, Version 2.0

"""
Tokyo Tyrant Binary Protocol Primitives.

Request Format:
    +-------+-------+-------------------------------+-------------------+
    | Magic | Cmd   | Arg fields (4/8 bytes each)   | Payload bytes ... |
    +-------+-------+-------------------------------+-------------------+

Response Format:
    +--------+-------------------------------+-------------------+
    | Status | Result fields (4/8 bytes each)| Payload bytes ... |
    +--------+-------------------------------+-------------------+

Header Fields:
    - Magic (1 byte): 0xC8 - Identifies a Tyrant request
    - Cmd (1 byte): Command code
    - Status (1 byte): 0 on success, any other value is a command failure

All integers are fixed width and big-endian. Payload lengths are always
declared by a preceding field; nothing is delimited.
"""

from __future__ import annotations

import operator
import struct
from dataclasses import dataclass
from typing import TYPE_CHECKING

from .exceptions import InvalidArgumentError
from .types import Command

if TYPE_CHECKING:
    from typing import BinaryIO

# Protocol constants
MAGIC_BYTE: int = 0xC8
HEADER_SIZE: int = 2
STATUS_SUCCESS: int = 0

_INT32 = struct.Struct(">i")
_INT64 = struct.Struct(">q")
_UINT64 = struct.Struct(">Q")
_UINT8 = struct.Struct(">B")


@dataclass(frozen=True)
class Header:
    """Request header."""

    command: Command
    magic: int = MAGIC_BYTE

    def to_bytes(self) -> bytes:
        """Serialize header to bytes."""
        return struct.pack(">BB", self.magic, self.command)

    @classmethod
    def from_bytes(cls, data: bytes) -> Header:
        """Deserialize header from bytes."""
        if len(data) != HEADER_SIZE:
            raise ValueError(f"Invalid header size: {len(data)}, expected {HEADER_SIZE}")

        magic, command = struct.unpack(">BB", data)

        if magic != MAGIC_BYTE:
            raise InvalidMagicError(magic)

        try:
            code = Command(command)
        except ValueError:
            raise UnknownCommandError(command)

        return cls(command=code, magic=magic)


class ProtocolError(Exception):
    """Base exception for protocol errors."""


class InvalidMagicError(ProtocolError):
    """Raised when magic byte doesn't match."""

    def __init__(self, received: int) -> None:
        super().__init__(f"Invalid magic byte: 0x{received:02X}, expected 0x{MAGIC_BYTE:02X}")
        self.received = received


class UnknownCommandError(ProtocolError):
    """Raised when a command code is not part of the command table."""

    def __init__(self, received: int) -> None:
        super().__init__(f"Unknown command code: 0x{received:02X}")
        self.received = received


class NegativeLengthError(ProtocolError):
    """Raised when a declared length field is negative."""

    def __init__(self, length: int) -> None:
        super().__init__(f"Negative length field: {length}")
        self.length = length


def _pack(codec: struct.Struct, low: int, high: int, value: int, kind: str) -> bytes:
    try:
        number = operator.index(value)
    except TypeError as e:
        raise InvalidArgumentError(
            f"{kind} field requires an integer, got {type(value).__name__}"
        ) from e
    if not low <= number <= high:
        raise InvalidArgumentError(f"{number} does not fit a {kind} field ({low}..{high})")
    return codec.pack(number)


def pack_int32(value: int) -> bytes:
    """
    Encode a signed 32-bit big-endian integer.

    Raises:
        InvalidArgumentError: If the value is not an integer in range.
    """
    return _pack(_INT32, -(2**31), 2**31 - 1, value, "signed 32-bit")


def pack_int64(value: int) -> bytes:
    """Encode a signed 64-bit big-endian integer."""
    return _pack(_INT64, -(2**63), 2**63 - 1, value, "signed 64-bit")


def pack_uint64(value: int) -> bytes:
    """Encode an unsigned 64-bit big-endian integer."""
    return _pack(_UINT64, 0, 2**64 - 1, value, "unsigned 64-bit")


def unpack_int32(data: bytes) -> int:
    return _INT32.unpack(data)[0]


def unpack_int64(data: bytes) -> int:
    return _INT64.unpack(data)[0]


def unpack_uint8(data: bytes) -> int:
    return _UINT8.unpack(data)[0]


def read_exact(reader: BinaryIO, size: int) -> bytes:
    """
    Read exactly ``size`` bytes from a binary stream.

    Args:
        reader: Binary stream to read from.
        size: Number of bytes to read.

    Returns:
        The bytes read.

    Raises:
        EOFError: If the stream ends before ``size`` bytes arrive.
    """
    if size == 0:
        return b""
    data = reader.read(size)
    if not data:
        raise EOFError("Connection closed")
    if len(data) < size:
        raise EOFError(f"Incomplete read: got {len(data)} bytes, expected {size}")
    return data


def read_status(reader: BinaryIO) -> int:
    """Read the one-byte response status code."""
    return unpack_uint8(read_exact(reader, 1))


def read_int32(reader: BinaryIO) -> int:
    return unpack_int32(read_exact(reader, 4))


def read_int64(reader: BinaryIO) -> int:
    return unpack_int64(read_exact(reader, 8))


def read_length(reader: BinaryIO) -> int:
    """
    Read a declared length or count field.

    Raises:
        NegativeLengthError: If the field is negative.
        EOFError: If the stream ends unexpectedly.
    """
    length = read_int32(reader)
    if length < 0:
        raise NegativeLengthError(length)
    return length


def read_sized(reader: BinaryIO) -> bytes:
    """Read a 32-bit length field followed by that many payload bytes."""
    return read_exact(reader, read_length(reader))


def build_request(command: Command, fields: tuple[bytes, ...] = (), *payloads: bytes) -> bytes:
    """
    Assemble a complete request frame.

    Args:
        command: Command code.
        fields: Already packed fixed-width argument fields.
        *payloads: Variable-length payloads, in declaration order.

    Returns:
        Header, fields and payloads joined into one buffer.
    """
    return b"".join((Header(command).to_bytes(), *fields, *payloads))
