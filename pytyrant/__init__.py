# Copyright (c) 2026 Firefly Software Solutions Inc.
# Licensed under the Apache License, Version 2.0

"""
pytyrant - Python Client for the Tokyo Tyrant Remote Database Protocol.

A client library for Tokyo Tyrant with support for:
- Every primitive command of the binary protocol
- Table databases with column maps
- Table search queries
- Server-side iteration
- Thread-safe request/response cycles

Quick Start (Simplest):
    >>> from pytyrant import connect
    >>>
    >>> client = connect("localhost", 1978)
    >>> client.put(b"greeting", b"Hello, Tyrant!")
    >>> client.get(b"greeting")
    b'Hello, Tyrant!'

Context Manager (Recommended for applications):
    >>> from pytyrant import TyrantClient
    >>>
    >>> with TyrantClient("localhost", 1978) as client:
    ...     client.addint(b"counter", 1)
    1

Table Databases:
    >>> from pytyrant import TableClient, QCNUMGE
    >>>
    >>> with TableClient("localhost", 1978) as table:
    ...     table.put("alice", {"name": "Alice", "age": "31"})
    ...     query = table.query().addcond("age", QCNUMGE, "18")
    ...     query.search()
    [b'alice']

Error Handling:
    >>> from pytyrant import RecordNotFoundError
    >>>
    >>> try:
    ...     client.get(b"missing")
    ... except RecordNotFoundError:
    ...     print("no such record")
"""

from .client import (
    MONOULOG,
    ROCHKCON,
    XOLCKGLB,
    XOLCKREC,
    KeyIterator,
    TyrantClient,
    connect,
)
from .columns import (
    columns_from_pairs,
    decode_columns,
    encode_columns,
    flatten_columns,
)
from .exceptions import (
    ConnectFailedError,
    ConnectRefusedError,
    HostUnreachableError,
    InvalidArgumentError,
    InvalidOperationError,
    MalformedRecordError,
    NotConnectedError,
    ReceiveError,
    RecordExistsError,
    RecordNotFoundError,
    SendError,
    ServerError,
    TyrantError,
    error_for_status,
)
from .models import ClientConfig
from .query import (
    QCFTSAND,
    QCFTSEX,
    QCFTSOR,
    QCFTSPH,
    QCNEGATE,
    QCNOIDX,
    QCNUMBT,
    QCNUMEQ,
    QCNUMGE,
    QCNUMGT,
    QCNUMLE,
    QCNUMLT,
    QCNUMOREQ,
    QCSTRAND,
    QCSTRBW,
    QCSTREQ,
    QCSTREW,
    QCSTRINC,
    QCSTROR,
    QCSTROREQ,
    QCSTRRX,
    QONUMASC,
    QONUMDESC,
    QOSTRASC,
    QOSTRDESC,
    Query,
)
from .reactive import observe_keys, observe_records, observe_search
from .serde import BytesSerializer, JsonSerializer, Serializer, StringSerializer
from .table import (
    ITDECIMAL,
    ITKEEP,
    ITLEXICAL,
    ITOPT,
    ITQGRAM,
    ITTOKEN,
    ITVOID,
    TableClient,
)
from .types import (
    ColumnMap,
    Command,
    ConnectFailure,
    ExtOption,
    IndexType,
    MiscOption,
    QueryCondition,
    QueryOrder,
    Record,
    RestoreOption,
)

__version__ = "0.1.0"

__all__ = [
    # Version
    "__version__",
    # Clients
    "TyrantClient",
    "TableClient",
    "KeyIterator",
    "Query",
    "connect",
    # Reactive
    "observe_keys",
    "observe_records",
    "observe_search",
    # Configuration
    "ClientConfig",
    # Serializers
    "Serializer",
    "BytesSerializer",
    "StringSerializer",
    "JsonSerializer",
    # Codec
    "Command",
    "encode_columns",
    "decode_columns",
    "flatten_columns",
    "columns_from_pairs",
    # Types
    "ColumnMap",
    "ConnectFailure",
    "ExtOption",
    "IndexType",
    "MiscOption",
    "QueryCondition",
    "QueryOrder",
    "Record",
    "RestoreOption",
    # Option flags
    "MONOULOG",
    "XOLCKREC",
    "XOLCKGLB",
    "ROCHKCON",
    # Query constants
    "QCSTREQ",
    "QCSTRINC",
    "QCSTRBW",
    "QCSTREW",
    "QCSTRAND",
    "QCSTROR",
    "QCSTROREQ",
    "QCSTRRX",
    "QCNUMEQ",
    "QCNUMGT",
    "QCNUMGE",
    "QCNUMLT",
    "QCNUMLE",
    "QCNUMBT",
    "QCNUMOREQ",
    "QCFTSPH",
    "QCFTSAND",
    "QCFTSOR",
    "QCFTSEX",
    "QCNEGATE",
    "QCNOIDX",
    "QOSTRASC",
    "QOSTRDESC",
    "QONUMASC",
    "QONUMDESC",
    # Index constants
    "ITLEXICAL",
    "ITDECIMAL",
    "ITTOKEN",
    "ITQGRAM",
    "ITOPT",
    "ITVOID",
    "ITKEEP",
    # Exceptions
    "TyrantError",
    "NotConnectedError",
    "InvalidOperationError",
    "InvalidArgumentError",
    "ConnectFailedError",
    "HostUnreachableError",
    "ConnectRefusedError",
    "SendError",
    "ReceiveError",
    "ServerError",
    "RecordExistsError",
    "RecordNotFoundError",
    "MalformedRecordError",
    "error_for_status",
]
