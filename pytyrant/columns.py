# Copyright (c) 2026 Firefly Software Solutions Inc.
# Licensed under the Apache License, Version 2.0

"""
Table Record Encoding/Decoding.

A table record is an ordered map of column name to column value. When a
record travels inside a single byte string (table mget values and
searchget hits) it is flattened into alternating name/value tokens joined
by NUL:

    name1 \\0 value1 \\0 name2 \\0 value2 ...

The primary key is carried under the empty column name.

Names and values must not contain the NUL byte. This is a protocol
restriction: encode_columns() refuses such input, and decode_columns()
fails on any buffer that does not split into whole pairs.
"""

from __future__ import annotations

from typing import Any, Iterable, Mapping, Sequence, Union

from .exceptions import MalformedRecordError
from .serde import as_bytes
from .types import ColumnMap

SEPARATOR: bytes = b"\x00"

Columns = Union[Mapping[Any, Any], Iterable[tuple[Any, Any]]]


def _pairs(columns: Columns) -> Iterable[tuple[Any, Any]]:
    if isinstance(columns, Mapping):
        return columns.items()
    return columns


def normalize_columns(columns: Columns) -> ColumnMap:
    """Coerce names and values to bytes, keeping their order."""
    return {as_bytes(name): as_bytes(value) for name, value in _pairs(columns)}


def flatten_columns(columns: Columns) -> list[bytes]:
    """
    Flatten a column map into alternating name/value arguments.

    Used for misc arguments, where every token is length-prefixed and so
    may hold any byte.
    """
    args: list[bytes] = []
    for name, value in normalize_columns(columns).items():
        args.append(name)
        args.append(value)
    return args


def encode_columns(columns: Columns) -> bytes:
    """
    Encode a column map as one NUL-joined byte string.

    Raises:
        MalformedRecordError: If a name or value contains NUL.
    """
    tokens = flatten_columns(columns)
    for token in tokens:
        if SEPARATOR in token:
            raise MalformedRecordError(f"Column token contains NUL: {token!r}")
    return SEPARATOR.join(tokens)


def columns_from_pairs(tokens: Sequence[bytes]) -> ColumnMap:
    """
    Build a column map from a flat name, value, name, value ... list.

    Raises:
        MalformedRecordError: If the list holds an odd number of tokens or
            names a column twice.
    """
    if len(tokens) % 2:
        raise MalformedRecordError(
            f"Column list has an odd number of tokens ({len(tokens)})"
        )
    columns: ColumnMap = {}
    it = iter(tokens)
    for name, value in zip(it, it):
        if name in columns:
            raise MalformedRecordError(f"Duplicate column name: {name!r}")
        columns[name] = value
    return columns


def decode_columns(data: bytes) -> ColumnMap:
    """
    Decode a NUL-joined byte string into a column map.

    An empty buffer is an empty record.

    Raises:
        MalformedRecordError: If the buffer does not split into whole pairs.
    """
    if not data:
        return {}
    return columns_from_pairs(data.split(SEPARATOR))
