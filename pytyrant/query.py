# Copyright (c) 2026 Firefly Software Solutions Inc.
# Licensed under the Apache License, Version 2.0

"""
Table Query Builder.

A Query accumulates directives client-side and executes them through the
table database's ``search`` misc function. Each directive is a NUL-joined
byte string:

    addcond  \\0 <column> \\0 <operator> \\0 <expression>
    setorder \\0 <column> \\0 <order type>
    setlimit \\0 <max> \\0 <skip>

Execution appends one mode directive (``get``, ``count`` or ``out``) to a
copy of the stored directives; the stored state is never modified by an
execution, so a Query can be run repeatedly.

Example:
    >>> query = table.query()
    >>> query.addcond("age", QCNUMGE, "18")
    >>> query.setorder("name", QOSTRASC)
    >>> query.setlimit(10)
    >>> for columns in query.searchget(["name"]):
    ...     print(columns[b"name"])
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Iterable

from .columns import SEPARATOR, decode_columns
from .exceptions import InvalidArgumentError, ServerError
from .serde import as_bytes
from .types import ColumnMap, MiscOption, QueryCondition, QueryOrder

if TYPE_CHECKING:
    from .table import TableClient

# Condition operators
QCSTREQ = QueryCondition.STREQ
QCSTRINC = QueryCondition.STRINC
QCSTRBW = QueryCondition.STRBW
QCSTREW = QueryCondition.STREW
QCSTRAND = QueryCondition.STRAND
QCSTROR = QueryCondition.STROR
QCSTROREQ = QueryCondition.STROREQ
QCSTRRX = QueryCondition.STRRX
QCNUMEQ = QueryCondition.NUMEQ
QCNUMGT = QueryCondition.NUMGT
QCNUMGE = QueryCondition.NUMGE
QCNUMLT = QueryCondition.NUMLT
QCNUMLE = QueryCondition.NUMLE
QCNUMBT = QueryCondition.NUMBT
QCNUMOREQ = QueryCondition.NUMOREQ
QCFTSPH = QueryCondition.FTSPH
QCFTSAND = QueryCondition.FTSAND
QCFTSOR = QueryCondition.FTSOR
QCFTSEX = QueryCondition.FTSEX
QCNEGATE = QueryCondition.NEGATE
QCNOIDX = QueryCondition.NOIDX

# Order types
QOSTRASC = QueryOrder.STRASC
QOSTRDESC = QueryOrder.STRDESC
QONUMASC = QueryOrder.NUMASC
QONUMDESC = QueryOrder.NUMDESC

SEARCH = "search"


def directive(*tokens: Any) -> bytes:
    """
    Join directive tokens with NUL.

    Integers are sent in decimal.

    Raises:
        InvalidArgumentError: If a token contains NUL.
    """
    parts = []
    for token in tokens:
        if isinstance(token, int):
            token = str(int(token))
        part = as_bytes(token)
        if SEPARATOR in part:
            raise InvalidArgumentError(f"Query token contains NUL: {part!r}")
        parts.append(part)
    return SEPARATOR.join(parts)


class Query:
    """
    Search query over a table database.

    Conditions combine as a conjunction in the order they were added.
    setorder() and setlimit() keep only their most recent call.
    A Query shares its table's connection and is not thread-safe.
    """

    def __init__(self, table: TableClient) -> None:
        self._table = table
        self._conditions: list[bytes] = []
        self._order: bytes | None = None
        self._limit: bytes | None = None

    def addcond(self, name: Any, op: int, expr: Any) -> Query:
        """
        Add a narrowing condition.

        Args:
            name: Column name; empty means the primary key.
            op: A QC* operator, optionally OR-ed with QCNEGATE and QCNOIDX.
            expr: Operand expression.

        Returns:
            The query, for chaining.
        """
        self._conditions.append(directive("addcond", name, op, expr))
        return self

    def setorder(self, name: Any, order: int = QOSTRASC) -> Query:
        """
        Set the result order, replacing any earlier order.

        Args:
            name: Column name; empty means the primary key.
            order: A QO* order type.
        """
        self._order = directive("setorder", name, order)
        return self

    def setlimit(self, max: int | None = None, skip: int | None = None) -> Query:
        """
        Limit the result, replacing any earlier limit.

        Args:
            max: Maximum number of records; None or negative means no limit.
            skip: Number of leading records to skip; None or negative skips none.
        """
        max = -1 if max is None or max < 0 else max
        skip = -1 if skip is None or skip < 0 else skip
        self._limit = directive("setlimit", max, skip)
        return self

    def directives(self) -> list[bytes]:
        """The stored directives: conditions, then order, then limit."""
        args = list(self._conditions)
        if self._order is not None:
            args.append(self._order)
        if self._limit is not None:
            args.append(self._limit)
        return args

    def _run(self, mode: bytes | None, opts: int) -> list[bytes]:
        args = self.directives()
        if mode is not None:
            args.append(mode)
        return self._table.misc(SEARCH, args, opts, error=ServerError)

    def search(self) -> list[bytes]:
        """Execute the search and return the primary keys of matching records."""
        return self._run(None, MiscOption.NONE)

    def searchget(self, columns: Iterable[Any] | None = None) -> list[ColumnMap]:
        """
        Execute the search and return the columns of matching records.

        The primary key is returned under the empty column name.

        Args:
            columns: Column names to fetch; None fetches every column.

        Raises:
            MalformedRecordError: If a returned record does not decode. Records
                whose columns contain NUL cannot be returned this way.
        """
        names = list(columns or ())
        mode = directive("get", *names) if names else b"get"
        return [decode_columns(hit) for hit in self._run(mode, MiscOption.NOULOG)]

    def searchcount(self) -> int:
        """Execute the search and return the number of matching records."""
        result = self._run(b"count", MiscOption.NOULOG)
        if not result:
            return 0
        return int(result[0])

    def searchout(self) -> None:
        """
        Remove every matching record.

        Raises:
            ServerError: If the server fails to remove the records.
        """
        self._run(b"out", MiscOption.NONE)

    def __repr__(self) -> str:
        return f"<Query {self.directives()!r}>"
