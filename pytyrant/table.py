# Copyright (c) 2026 Firefly Software Solutions Inc.
# Licensed under the Apache License, Version 2.0

"""
Table database client.

A Tokyo Tyrant table database stores records as ordered column maps under
a primary key. Its record operations travel through the generic misc
command; everything else is the plain key/value protocol. TableClient
therefore contains a TyrantClient, overrides the record operations and
forwards the rest explicitly.

Example:
    >>> with TableClient("localhost", 1978) as table:
    ...     table.put("alice", {"name": "Alice", "age": "31"})
    ...     table.get("alice")
    {b'name': b'Alice', b'age': b'31'}
"""

from __future__ import annotations

from typing import Any, Iterable, Iterator

from .client import KeyIterator, StatusError, TyrantClient
from .columns import Columns, columns_from_pairs, decode_columns, flatten_columns
from .exceptions import RecordExistsError, RecordNotFoundError, ServerError
from .models import ClientConfig
from .query import Query
from .serde import as_bytes
from .types import ColumnMap, IndexType, MiscOption, Record

# Index types
ITLEXICAL = IndexType.LEXICAL
ITDECIMAL = IndexType.DECIMAL
ITTOKEN = IndexType.TOKEN
ITQGRAM = IndexType.QGRAM
ITOPT = IndexType.OPTIMIZE
ITVOID = IndexType.VOID
ITKEEP = IndexType.KEEP


class TableClient:
    """
    Client for a remote Tokyo Tyrant table database.

    Overrides: put, putkeep, putcat, out, get, mget.
    Adds: setindex, genuid, query.
    Forwards everything else to the contained TyrantClient.
    """

    def __init__(
        self,
        host: str | None = None,
        port: int | None = None,
        *,
        client: TyrantClient | None = None,
        config: ClientConfig | None = None,
        **kwargs: Any,
    ) -> None:
        """
        Initialize a table client.

        Args:
            host: Server host.
            port: Server port.
            client: An existing TyrantClient to wrap; host, port, config and
                kwargs are then ignored.
            config: Optional ClientConfig object.
            **kwargs: Passed on to TyrantClient.
        """
        if client is None:
            client = TyrantClient(host, port, config=config, **kwargs)
        self._client = client

    @property
    def client(self) -> TyrantClient:
        """The contained key/value client."""
        return self._client

    # =========================================================================
    # Record Operations
    # =========================================================================

    def _put(self, name: str, pkey: Any, columns: Columns, error: StatusError) -> None:
        args = [as_bytes(pkey), *flatten_columns(columns)]
        self._client.misc(name, args, MiscOption.NONE, error=error)

    def put(self, pkey: Any, columns: Columns) -> None:
        """Store a record, overwriting any existing record."""
        self._put("put", pkey, columns, ServerError)

    def putkeep(self, pkey: Any, columns: Columns) -> None:
        """
        Store a new record; an existing record is left unchanged.

        Raises:
            RecordExistsError: If the primary key already exists.
        """
        self._put("putkeep", pkey, columns, RecordExistsError)

    def putcat(self, pkey: Any, columns: Columns) -> None:
        """Merge columns into an existing record, creating it if missing."""
        self._put("putcat", pkey, columns, ServerError)

    def out(self, pkey: Any) -> None:
        """
        Remove a record.

        Raises:
            RecordNotFoundError: If no record has that primary key.
        """
        self._client.misc("out", [as_bytes(pkey)], MiscOption.NONE, error=RecordNotFoundError)

    def get(self, pkey: Any) -> ColumnMap:
        """
        Retrieve the columns of a record.

        Raises:
            RecordNotFoundError: If no record has that primary key.
            MalformedRecordError: If the server returns an odd column list.
        """
        result = self._client.misc("get", [as_bytes(pkey)], error=RecordNotFoundError)
        return columns_from_pairs(result)

    def mget(self, pkeys: Iterable[Any]) -> dict[bytes, ColumnMap]:
        """
        Retrieve several records at once.

        Records whose columns contain NUL cannot be returned this way.

        Raises:
            MalformedRecordError: If a returned record does not decode.
        """
        return {pkey: decode_columns(value) for pkey, value in self._client.mget(pkeys).items()}

    def setindex(self, name: Any, index_type: int) -> None:
        """
        Set a column index.

        Args:
            name: Column name; empty means the primary key. An existing index
                of that name is rebuilt.
            index_type: An IT* type; ITKEEP may be OR-ed in to fail when the
                index already exists.
        """
        self._client.misc("setindex", [as_bytes(name), str(int(index_type))], MiscOption.NONE)

    def genuid(self) -> int:
        """Generate a unique ID number for use as a primary key."""
        result = self._client.misc("genuid", [], MiscOption.NONE)
        if not result:
            raise ServerError("misc(genuid)", 0, "misc(genuid): empty result")
        return int(result[0])

    def query(self) -> Query:
        """Create a search query bound to this table."""
        return Query(self)

    # =========================================================================
    # Forwarded Operations
    # =========================================================================

    @property
    def is_open(self) -> bool:
        return self._client.is_open

    def open(self) -> None:
        self._client.open()

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> TableClient:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def vsiz(self, pkey: Any) -> int:
        return self._client.vsiz(pkey)

    def iterinit(self) -> None:
        self._client.iterinit()

    def iternext(self) -> bytes:
        return self._client.iternext()

    def iterator(self) -> KeyIterator:
        return self._client.iterator()

    def keys(self) -> list[bytes]:
        return self._client.keys()

    def items(self) -> Iterator[Record]:
        """Iterate over every record; values are encoded column buffers."""
        return self._client.items()

    def fwmkeys(self, prefix: Any, max: int = -1) -> list[bytes]:
        return self._client.fwmkeys(prefix, max)

    def addint(self, pkey: Any, num: int = 0) -> int:
        return self._client.addint(pkey, num)

    def adddouble(self, pkey: Any, num: float = 0.0) -> float:
        return self._client.adddouble(pkey, num)

    def ext(self, name: Any, key: Any = b"", value: Any = b"", opts: int = 0) -> bytes:
        return self._client.ext(name, key, value, opts)

    def sync(self) -> None:
        self._client.sync()

    def optimize(self, params: Any = b"") -> None:
        self._client.optimize(params)

    def vanish(self) -> None:
        self._client.vanish()

    def copy(self, path: Any) -> None:
        self._client.copy(path)

    def restore(self, path: Any, ts: int, opts: int = 0) -> None:
        self._client.restore(path, ts, opts)

    def setmst(self, host: Any, port: int, ts: int, opts: int = 0) -> None:
        self._client.setmst(host, port, ts, opts)

    def rnum(self) -> int:
        return self._client.rnum()

    def size(self) -> int:
        return self._client.size()

    def stat(self) -> dict[str, str]:
        return self._client.stat()

    def misc(
        self,
        name: Any,
        args: Iterable[Any] = (),
        opts: int = 0,
        *,
        error: StatusError = ServerError,
    ) -> list[bytes]:
        return self._client.misc(name, args, opts, error=error)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self._client!r}>"
