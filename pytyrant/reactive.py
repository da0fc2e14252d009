# Copyright (c) 2026 Firefly Software Solutions Inc.
# Licensed under the Apache License, Version 2.0

"""
Reactive Streams support for the pytyrant client.

Provides RxPY Observables over server-side iteration and table searches,
enabling stream composition on top of the blocking client.

Each subscription drives the connection's server-side cursor, so two
subscriptions on the same client at the same time interleave and must be
avoided.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import reactivex as rx
from reactivex import Observable
from reactivex.disposable import Disposable

from .exceptions import TyrantError
from .types import ColumnMap, Record

if TYPE_CHECKING:
    from .client import TyrantClient
    from .query import Query
    from .table import TableClient


def observe_keys(client: TyrantClient | TableClient) -> Observable[bytes]:
    """
    Observable stream of every key in the database.

    Subscribing resets the server-side iterator. The stream completes when
    the iterator is exhausted and errors with the client exception if a
    command fails.

    Example:
        >>> observe_keys(client).pipe(
        ...     ops.filter(lambda k: k.startswith(b"user:")),
        ...     ops.count(),
        ... ).subscribe(on_next=print)
    """

    def subscribe(observer: Any, scheduler: Any = None) -> Disposable:
        try:
            for key in client.iterator():
                observer.on_next(key)
        except TyrantError as e:
            observer.on_error(e)
        else:
            observer.on_completed()
        return Disposable()

    return rx.create(subscribe)


def observe_records(client: TyrantClient | TableClient) -> Observable[Record]:
    """
    Observable stream of every record in the database.

    Records removed while the stream is running are skipped.
    """

    def subscribe(observer: Any, scheduler: Any = None) -> Disposable:
        try:
            for record in client.items():
                observer.on_next(record)
        except TyrantError as e:
            observer.on_error(e)
        else:
            observer.on_completed()
        return Disposable()

    return rx.create(subscribe)


def observe_search(query: Query, columns: list[Any] | None = None) -> Observable[ColumnMap]:
    """
    Observable stream of the records matched by a query.

    The search runs once per subscription; each hit is emitted as its
    column map, primary key under the empty column name.
    """

    def subscribe(observer: Any, scheduler: Any = None) -> Disposable:
        try:
            hits = query.searchget(columns)
        except TyrantError as e:
            observer.on_error(e)
            return Disposable()
        for hit in hits:
            observer.on_next(hit)
        observer.on_completed()
        return Disposable()

    return rx.create(subscribe)
