# Copyright (c) 2026 Firefly Software Solutions Inc.
# Licensed under the Apache License, Version 2.0

"""
Tyrant Command Encoding/Decoding.

This module provides one request dataclass and encode function per command
envelope, and one decode function per response shape. Decoders run after
the status byte has been read and consume the rest of the response from
a binary stream.

Binary Format Conventions:
- All multi-byte integers are big-endian and fixed width
- Lengths and counts are signed 32-bit; a negative value is corruption
- Every payload's length is declared before any payload is sent
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from .exceptions import InvalidArgumentError
from .protocol import (
    Command,
    build_request,
    pack_int32,
    pack_int64,
    pack_uint64,
    read_exact,
    read_int32,
    read_int64,
    read_length,
    read_sized,
)

if TYPE_CHECKING:
    from typing import BinaryIO


# Scale of the fractional part of adddouble operands and results
FRACTION_SCALE: int = 1_000_000_000_000


# =============================================================================
# Requests
# =============================================================================

@dataclass
class KeyValueRequest:
    """put, putkeep, putcat and putnr request."""
    command: Command
    key: bytes
    value: bytes


def encode_key_value_request(req: KeyValueRequest) -> bytes:
    """
    Encode a key/value storage request.

    Format: [4B ksiz][4B vsiz][key][value]
    """
    return build_request(
        req.command,
        (pack_int32(len(req.key)), pack_int32(len(req.value))),
        req.key,
        req.value,
    )


@dataclass
class PutShlRequest:
    """putshl request."""
    key: bytes
    value: bytes
    width: int


def encode_putshl_request(req: PutShlRequest) -> bytes:
    """
    Encode putshl request.

    Format: [4B ksiz][4B vsiz][4B width][key][value]
    """
    return build_request(
        Command.PUTSHL,
        (pack_int32(len(req.key)), pack_int32(len(req.value)), pack_int32(req.width)),
        req.key,
        req.value,
    )


@dataclass
class KeyRequest:
    """out, get and vsiz request."""
    command: Command
    key: bytes


def encode_key_request(req: KeyRequest) -> bytes:
    """
    Encode a single-key request.

    Format: [4B ksiz][key]
    """
    return build_request(req.command, (pack_int32(len(req.key)),), req.key)


@dataclass
class MGetRequest:
    """mget request."""
    keys: list[bytes] = field(default_factory=list)


def encode_mget_request(req: MGetRequest) -> bytes:
    """
    Encode mget request.

    Format: [4B rnum]([4B ksiz][key])*
    """
    parts: list[bytes] = []
    for key in req.keys:
        parts.append(pack_int32(len(key)))
        parts.append(key)
    return build_request(Command.MGET, (pack_int32(len(req.keys)),), *parts)


def encode_bare_request(command: Command) -> bytes:
    """
    Encode a request with no fields.

    Used by iterinit, iternext, sync, vanish, rnum, size and stat.
    """
    return build_request(command)


@dataclass
class FwmKeysRequest:
    """fwmkeys request."""
    prefix: bytes
    max: int = -1  # -1 = no limit


def encode_fwmkeys_request(req: FwmKeysRequest) -> bytes:
    """
    Encode fwmkeys request.

    Format: [4B psiz][4B max][prefix]
    """
    return build_request(
        Command.FWMKEYS,
        (pack_int32(len(req.prefix)), pack_int32(req.max)),
        req.prefix,
    )


@dataclass
class AddIntRequest:
    """addint request."""
    key: bytes
    num: int


def encode_addint_request(req: AddIntRequest) -> bytes:
    """
    Encode addint request.

    Format: [4B ksiz][4B num][key]
    """
    return build_request(
        Command.ADDINT,
        (pack_int32(len(req.key)), pack_int32(req.num)),
        req.key,
    )


@dataclass
class AddDoubleRequest:
    """adddouble request."""
    key: bytes
    num: float


def split_double(num: float) -> tuple[int, int]:
    """
    Split a real number into its integral part and its fraction scaled by 10^12.

    Both parts carry the sign of ``num``.

    Raises:
        InvalidArgumentError: If ``num`` is not finite or its integral part
            does not fit a signed 64-bit field.
    """
    if not math.isfinite(num) or not -(2**63) <= num < 2**63:
        raise InvalidArgumentError(f"{num!r} cannot be sent as an adddouble operand")
    fract, integ = math.modf(num)
    return int(integ), int(fract * FRACTION_SCALE)


def join_double(integ: int, fract: int) -> float:
    """Inverse of split_double()."""
    return integ + fract / FRACTION_SCALE


def encode_adddouble_request(req: AddDoubleRequest) -> bytes:
    """
    Encode adddouble request.

    Format: [4B ksiz][8B integ][8B fract][key]
    """
    integ, fract = split_double(req.num)
    return build_request(
        Command.ADDDOUBLE,
        (pack_int32(len(req.key)), pack_int64(integ), pack_int64(fract)),
        req.key,
    )


@dataclass
class ExtRequest:
    """ext request (call a server-side script function)."""
    name: bytes
    key: bytes = b""
    value: bytes = b""
    opts: int = 0


def encode_ext_request(req: ExtRequest) -> bytes:
    """
    Encode ext request.

    Format: [4B nsiz][4B opts][4B ksiz][4B vsiz][name][key][value]
    """
    return build_request(
        Command.EXT,
        (
            pack_int32(len(req.name)),
            pack_int32(req.opts),
            pack_int32(len(req.key)),
            pack_int32(len(req.value)),
        ),
        req.name,
        req.key,
        req.value,
    )


@dataclass
class PathRequest:
    """optimize and copy request."""
    command: Command
    path: bytes


def encode_path_request(req: PathRequest) -> bytes:
    """
    Encode a request carrying one string argument.

    Format: [4B psiz][path]
    """
    return build_request(req.command, (pack_int32(len(req.path)),), req.path)


@dataclass
class RestoreRequest:
    """restore request."""
    path: bytes
    ts: int
    opts: int = 0


def encode_restore_request(req: RestoreRequest) -> bytes:
    """
    Encode restore request.

    Format: [4B psiz][8B ts][4B opts][path]
    """
    return build_request(
        Command.RESTORE,
        (pack_int32(len(req.path)), pack_uint64(req.ts), pack_int32(req.opts)),
        req.path,
    )


@dataclass
class SetMasterRequest:
    """setmst request."""
    host: bytes
    port: int
    ts: int
    opts: int = 0


def encode_setmst_request(req: SetMasterRequest) -> bytes:
    """
    Encode setmst request.

    Format: [4B hsiz][4B port][8B ts][4B opts][host]
    """
    return build_request(
        Command.SETMST,
        (
            pack_int32(len(req.host)),
            pack_int32(req.port),
            pack_uint64(req.ts),
            pack_int32(req.opts),
        ),
        req.host,
    )


@dataclass
class MiscRequest:
    """misc request."""
    name: bytes
    args: list[bytes] = field(default_factory=list)
    opts: int = 0


def encode_misc_request(req: MiscRequest) -> bytes:
    """
    Encode misc request.

    Format: [4B nsiz][4B opts][4B argc][name]([4B asiz][arg])*
    """
    parts: list[bytes] = [req.name]
    for arg in req.args:
        parts.append(pack_int32(len(arg)))
        parts.append(arg)
    return build_request(
        Command.MISC,
        (pack_int32(len(req.name)), pack_int32(req.opts), pack_int32(len(req.args))),
        *parts,
    )


# =============================================================================
# Responses
# =============================================================================

def decode_value_response(reader: BinaryIO) -> bytes:
    """
    Decode a single sized payload (get, iternext, ext).

    Format: [4B size][payload]
    """
    return read_sized(reader)


def decode_records_response(reader: BinaryIO) -> list[tuple[bytes, bytes]]:
    """
    Decode mget response.

    Format: [4B rnum]([4B ksiz][4B vsiz][key][value])*
    """
    records: list[tuple[bytes, bytes]] = []
    for _ in range(read_length(reader)):
        ksiz = read_length(reader)
        vsiz = read_length(reader)
        key = read_exact(reader, ksiz)
        value = read_exact(reader, vsiz)
        records.append((key, value))
    return records


def decode_list_response(reader: BinaryIO) -> list[bytes]:
    """
    Decode a counted list of sized payloads (fwmkeys, misc).

    Format: [4B count]([4B size][payload])*
    """
    return [read_sized(reader) for _ in range(read_length(reader))]


def decode_int32_response(reader: BinaryIO) -> int:
    """Format: [4B value]"""
    return read_int32(reader)


def decode_int64_response(reader: BinaryIO) -> int:
    """Format: [8B value]"""
    return read_int64(reader)


def decode_double_response(reader: BinaryIO) -> float:
    """
    Decode adddouble response.

    Format: [8B integ][8B fract]
    """
    integ = read_int64(reader)
    fract = read_int64(reader)
    return join_double(integ, fract)


def decode_stat_response(reader: BinaryIO) -> dict[str, str]:
    """
    Decode stat response into an ordered name -> value map.

    Format: [4B ssiz][text]
    """
    return parse_stat(read_sized(reader))


def parse_stat(data: bytes) -> dict[str, str]:
    """Parse the server's tab-separated ``name\\tvalue`` status lines."""
    stats: dict[str, str] = {}
    for line in data.decode("utf-8", errors="replace").splitlines():
        if not line:
            continue
        name, _, value = line.partition("\t")
        stats[name] = value
    return stats
