# Copyright (c) 2026 Firefly Software Solutions Inc.
# Licensed under the Apache License, Version 2.0

"""Type definitions for the pytyrant client."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum

# Ordered column name -> column value mapping of one table record.
# The primary key travels under the empty column name.
ColumnMap = dict[bytes, bytes]


class Command(IntEnum):
    """Command codes for Tyrant protocol requests."""

    # Storage (0x10-0x1F)
    PUT = 0x10
    PUTKEEP = 0x11
    PUTCAT = 0x12
    PUTSHL = 0x13
    PUTNR = 0x18

    # Removal and retrieval (0x20-0x3F)
    OUT = 0x20
    GET = 0x30
    MGET = 0x31
    VSIZ = 0x38

    # Iteration (0x50-0x5F)
    ITERINIT = 0x50
    ITERNEXT = 0x51
    FWMKEYS = 0x58

    # Arithmetic (0x60-0x67)
    ADDINT = 0x60
    ADDDOUBLE = 0x61

    # Script extension
    EXT = 0x68

    # Database management (0x70-0x7F)
    SYNC = 0x70
    OPTIMIZE = 0x71
    VANISH = 0x72
    COPY = 0x73
    RESTORE = 0x74
    SETMST = 0x78

    # Introspection (0x80-0x8F)
    RNUM = 0x80
    SIZE = 0x81
    STAT = 0x88

    # Versatile functions
    MISC = 0x90


class ConnectFailure(str, Enum):
    """Why a connection attempt failed."""

    UNREACHABLE = "unreachable"
    REFUSED = "refused"
    OTHER = "other"


class MiscOption(IntEnum):
    """Option flags for the misc command."""

    NONE = 0
    NOULOG = 1  # omit the update log


class ExtOption(IntEnum):
    """Locking flags for server-side script calls."""

    NONE = 0
    LOCK_RECORD = 1
    LOCK_GLOBAL = 2


class RestoreOption(IntEnum):
    """Option flags for restore and setmst."""

    NONE = 0
    CHECK_CONSISTENCY = 1


class IndexType(IntEnum):
    """Column index types for table databases."""

    LEXICAL = 0
    DECIMAL = 1
    TOKEN = 2
    QGRAM = 3
    OPTIMIZE = 9998
    VOID = 9999
    KEEP = 1 << 24  # flag: fail if the index already exists


class QueryCondition(IntEnum):
    """Condition operators for table queries."""

    STREQ = 0
    STRINC = 1
    STRBW = 2
    STREW = 3
    STRAND = 4
    STROR = 5
    STROREQ = 6
    STRRX = 7
    NUMEQ = 8
    NUMGT = 9
    NUMGE = 10
    NUMLT = 11
    NUMLE = 12
    NUMBT = 13
    NUMOREQ = 14
    FTSPH = 15
    FTSAND = 16
    FTSOR = 17
    FTSEX = 18

    # Flags, combined with an operator by bitwise OR
    NEGATE = 1 << 24
    NOIDX = 1 << 25


class QueryOrder(IntEnum):
    """Result ordering for table queries."""

    STRASC = 0
    STRDESC = 1
    NUMASC = 2
    NUMDESC = 3


@dataclass(frozen=True)
class Record:
    """A key and its value, both raw bytes."""

    key: bytes
    value: bytes

    def decode(self, encoding: str = "utf-8") -> str:
        """Decode the value as string."""
        return self.value.decode(encoding)

    def decode_key(self, encoding: str = "utf-8") -> str:
        """Decode the key as string."""
        return self.key.decode(encoding)
