# Copyright (c) 2026 Firefly Software Solutions Inc.
# Licensed under the Apache License, Version 2.0

"""
Tokyo Tyrant Python Client.

A client for the Tokyo Tyrant remote database protocol with support for:
- Every primitive command of the binary protocol
- Server-side iteration through an explicit iterator object
- Versatile (misc) functions, including list operations
- Thread-safe request/response cycles

Usage Patterns:

    # Pattern 1: Simple usage (recommended for scripts)
    from pytyrant import connect
    client = connect("localhost", 1978)
    client.put(b"key", b"value")

    # Pattern 2: Context manager (recommended for applications)
    from pytyrant import TyrantClient
    with TyrantClient("localhost", 1978) as client:
        value = client.get(b"key")
    # Connection auto-closes when exiting the block

    # Pattern 3: Explicit lifecycle management
    client = TyrantClient("localhost", 1978, connect=False)
    client.open()
    try:
        client.put(b"key", b"value")
    finally:
        client.close()
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, Any, Callable, Iterable, Iterator, Mapping, TypeVar

from .binary import (
    AddDoubleRequest,
    AddIntRequest,
    ExtRequest,
    FwmKeysRequest,
    KeyRequest,
    KeyValueRequest,
    MGetRequest,
    MiscRequest,
    PathRequest,
    PutShlRequest,
    RestoreRequest,
    SetMasterRequest,
    decode_double_response,
    decode_int32_response,
    decode_int64_response,
    decode_list_response,
    decode_records_response,
    decode_stat_response,
    decode_value_response,
    encode_adddouble_request,
    encode_addint_request,
    encode_bare_request,
    encode_ext_request,
    encode_fwmkeys_request,
    encode_key_request,
    encode_key_value_request,
    encode_mget_request,
    encode_misc_request,
    encode_path_request,
    encode_putshl_request,
    encode_restore_request,
    encode_setmst_request,
)
from .exceptions import (
    InvalidArgumentError,
    InvalidOperationError,
    NotConnectedError,
    ReceiveError,
    RecordNotFoundError,
    SendError,
    ServerError,
    error_for_status,
)
from .models import ClientConfig
from .protocol import STATUS_SUCCESS, ProtocolError, read_status
from .serde import Serializer, StringSerializer, as_bytes
from .transport import SocketTransport
from .types import Command, ExtOption, MiscOption, Record, RestoreOption

if TYPE_CHECKING:
    from typing import BinaryIO

    from .transport import Transport

_LOGGER = logging.getLogger(__name__)

T = TypeVar("T")

# Failure class for a non-zero status: called with (command label, status)
StatusError = Callable[[Any, int], ServerError]

# Option flags
MONOULOG = MiscOption.NOULOG
XOLCKREC = ExtOption.LOCK_RECORD
XOLCKGLB = ExtOption.LOCK_GLOBAL
ROCHKCON = RestoreOption.CHECK_CONSISTENCY


class TyrantClient:
    """
    Client for a remote Tokyo Tyrant key/value database.

    One client owns one connection. Every request/response cycle holds the
    client's lock, so a client may be shared between threads. The server's
    iterator is per connection, so iteration from two threads on one client
    still interleaves and must be serialized by the caller.

    Example:
        >>> client = TyrantClient("localhost", 1978)
        >>> client.put(b"greeting", b"hello")
        >>> client.get(b"greeting")
        b'hello'
        >>> client.close()
    """

    def __init__(
        self,
        host: str | None = None,
        port: int | None = None,
        *,
        config: ClientConfig | None = None,
        transport: Transport | None = None,
        connect: bool = True,
        key_serializer: Serializer | None = None,
        value_serializer: Serializer | None = None,
        **kwargs: Any,
    ) -> None:
        """
        Initialize a client.

        Args:
            host: Server host; overrides config.host.
            port: Server port; overrides config.port.
            config: Optional ClientConfig object.
            transport: An already open transport to use instead of a socket.
            connect: Open the connection immediately (ignored with transport).
            key_serializer: Converts keys to bytes (default StringSerializer).
            value_serializer: Converts values to bytes (default StringSerializer).
            **kwargs: Override config options (connect_timeout_ms, etc.)
        """
        overrides = dict(kwargs)
        if host is not None:
            overrides["host"] = host
        if port is not None:
            overrides["port"] = port

        if config is None:
            config = ClientConfig(**overrides)
        else:
            config = config.model_copy()
            for key, value in overrides.items():
                setattr(config, key, value)

        self._config = config
        self._keys = key_serializer or StringSerializer()
        self._values = value_serializer or StringSerializer()
        self._lock = threading.RLock()
        self._transport: Transport | None = transport

        if transport is None and connect:
            self.open()

    @property
    def config(self) -> ClientConfig:
        return self._config

    @property
    def is_open(self) -> bool:
        """Whether the connection is open."""
        return self._transport is not None

    # =========================================================================
    # Connection Lifecycle
    # =========================================================================

    def open(self) -> None:
        """
        Open the connection to the configured server.

        Raises:
            InvalidOperationError: If the connection is already open.
            ConnectFailedError: If the server cannot be reached.
        """
        with self._lock:
            if self._transport is not None:
                raise InvalidOperationError(
                    "Connection is already open",
                    hint="Call close() before opening it again",
                )
            self._transport = SocketTransport.from_config(self._config)
            _LOGGER.info("Connected to %s", self._config.address)

    def close(self) -> None:
        """
        Close the connection. Safe to call on a closed client.

        May be called from another thread while a command is waiting for its
        response; that command then fails with ReceiveError.
        """
        transport = self._transport
        if transport is not None:
            transport.abort()
        with self._lock:
            transport, self._transport = self._transport, None
            if transport is not None:
                transport.close()
                _LOGGER.info("Closed connection to %s", self._config.address)

    def __enter__(self) -> TyrantClient:
        """Context manager entry."""
        return self

    def __exit__(self, *args: Any) -> None:
        """Context manager exit."""
        self.close()

    def __repr__(self) -> str:
        state = "open" if self.is_open else "closed"
        return f"<{type(self).__name__} {self._config.address} {state}>"

    # =========================================================================
    # Request/Response Cycle
    # =========================================================================

    def _require_transport(self) -> Transport:
        if self._transport is None:
            raise NotConnectedError()
        return self._transport

    def _abort(self, command: Command, error: Exception) -> None:
        """Drop a connection whose framing can no longer be trusted."""
        _LOGGER.warning(
            "%s to %s failed, closing connection: %s",
            command.name.lower(),
            self._config.address,
            error,
        )
        transport, self._transport = self._transport, None
        if transport is not None:
            try:
                transport.close()
            except OSError as e:
                _LOGGER.debug("Error while closing broken connection: %s", e)

    def _send(self, command: Command, request: bytes) -> Transport:
        transport = self._require_transport()
        _LOGGER.debug("-> %s (%d bytes)", command.name.lower(), len(request))
        try:
            transport.write_all(request)
        except SendError as e:
            self._abort(command, e)
            raise
        return transport

    def _receive(self, command: Command, transport: Transport, read: Callable[[BinaryIO], T]) -> T:
        try:
            return read(transport)
        except (EOFError, ProtocolError, OSError, ValueError) as e:
            # ValueError: the stream was closed under a blocked read
            self._abort(command, e)
            raise ReceiveError(f"{command.name.lower()}: {e}") from e

    def _call(
        self,
        command: Command,
        request: bytes,
        decoder: Callable[[BinaryIO], T] | None = None,
        *,
        error: StatusError | None = None,
        label: Any = None,
    ) -> T | None:
        """
        Run one full request/response cycle.

        Args:
            command: Command being sent.
            request: Complete request frame.
            decoder: Reads the result fields after a successful status.
            error: Failure class for a non-zero status; defaults to the
                command's mapping in error_for_status().
            label: Name reported in the failure; defaults to the command.

        Returns:
            The decoder's result, or None without a decoder.
        """
        with self._lock:
            transport = self._send(command, request)
            status = self._receive(command, transport, read_status)
            if status != STATUS_SUCCESS:
                _LOGGER.debug("<- %s status %d", command.name.lower(), status)
                if error is None:
                    raise error_for_status(command, status)
                raise error(label if label is not None else command, status)
            if decoder is None:
                return None
            return self._receive(command, transport, decoder)

    # =========================================================================
    # Storage
    # =========================================================================

    def _store(self, command: Command, key: Any, value: Any) -> None:
        req = KeyValueRequest(command, self._keys.serialize(key), self._values.serialize(value))
        self._call(command, encode_key_value_request(req))

    def put(self, key: Any, value: Any) -> None:
        """
        Store a record, overwriting any existing value.

        Raises:
            ServerError: If the server rejects the write.
        """
        self._store(Command.PUT, key, value)

    def putkeep(self, key: Any, value: Any) -> None:
        """
        Store a new record; an existing record is left unchanged.

        Raises:
            RecordExistsError: If the key already exists.
        """
        self._store(Command.PUTKEEP, key, value)

    def putcat(self, key: Any, value: Any) -> None:
        """Append to the value of a record, creating it if missing."""
        self._store(Command.PUTCAT, key, value)

    def putshl(self, key: Any, value: Any, width: int = 0) -> None:
        """
        Append to the value of a record and keep only its last ``width`` bytes.

        Creates the record if missing.
        """
        req = PutShlRequest(self._keys.serialize(key), self._values.serialize(value), width)
        self._call(Command.PUTSHL, encode_putshl_request(req))

    def putnr(self, key: Any, value: Any) -> None:
        """
        Store a record without waiting for a response.

        The server sends nothing back, so a failed write on the server side
        is never reported.
        """
        req = KeyValueRequest(Command.PUTNR, self._keys.serialize(key), self._values.serialize(value))
        with self._lock:
            self._send(Command.PUTNR, encode_key_value_request(req))

    def out(self, key: Any) -> None:
        """
        Remove a record.

        Raises:
            RecordNotFoundError: If no record has that key.
        """
        req = KeyRequest(Command.OUT, self._keys.serialize(key))
        self._call(Command.OUT, encode_key_request(req))

    # =========================================================================
    # Retrieval
    # =========================================================================

    def get(self, key: Any) -> bytes:
        """
        Retrieve the value of a record.

        Raises:
            RecordNotFoundError: If no record has that key.
        """
        req = KeyRequest(Command.GET, self._keys.serialize(key))
        return self._call(Command.GET, encode_key_request(req), decode_value_response)

    def mget(self, keys: Iterable[Any]) -> dict[bytes, bytes]:
        """
        Retrieve several records at once.

        Keys without a record are simply missing from the result.

        Returns:
            Mapping of key to value, in the order the server sent them.
        """
        req = MGetRequest([self._keys.serialize(key) for key in keys])
        records = self._call(Command.MGET, encode_mget_request(req), decode_records_response)
        return dict(records)

    def vsiz(self, key: Any) -> int:
        """
        Get the size of a record's value.

        Raises:
            RecordNotFoundError: If no record has that key.
        """
        req = KeyRequest(Command.VSIZ, self._keys.serialize(key))
        return self._call(Command.VSIZ, encode_key_request(req), decode_int32_response)

    # =========================================================================
    # Iteration
    # =========================================================================

    def iterinit(self) -> None:
        """Reset the server-side iterator of this connection."""
        self._call(Command.ITERINIT, encode_bare_request(Command.ITERINIT))

    def iternext(self) -> bytes:
        """
        Get the next key of the server-side iterator.

        Raises:
            RecordNotFoundError: When every key has been returned.
        """
        return self._call(
            Command.ITERNEXT, encode_bare_request(Command.ITERNEXT), decode_value_response
        )

    def iterator(self) -> KeyIterator:
        """Reset the server-side iterator and return a KeyIterator over it."""
        return KeyIterator(self)

    def keys(self) -> list[bytes]:
        """Collect every key of the database through the server-side iterator."""
        return list(self.iterator())

    def items(self) -> Iterator[Record]:
        """
        Iterate over every record through the server-side iterator.

        Records removed between iternext and get are skipped.
        """
        for key in self.iterator():
            try:
                value = self.get(key)
            except RecordNotFoundError:
                continue
            yield Record(key, value)

    def fwmkeys(self, prefix: Any, max: int = -1) -> list[bytes]:
        """
        Get keys beginning with ``prefix``.

        Args:
            prefix: Key prefix.
            max: Maximum number of keys; negative means no limit.

        Returns:
            Matching keys, possibly empty.
        """
        req = FwmKeysRequest(self._keys.serialize(prefix), max)
        return self._call(Command.FWMKEYS, encode_fwmkeys_request(req), decode_list_response)

    # =========================================================================
    # Arithmetic
    # =========================================================================

    def addint(self, key: Any, num: int = 0) -> int:
        """
        Add an integer to a record stored as a 4-byte binary integer.

        A missing record is created with ``num``.

        Returns:
            The new total.

        Raises:
            RecordExistsError: If the record does not hold an integer.
        """
        req = AddIntRequest(self._keys.serialize(key), num)
        return self._call(Command.ADDINT, encode_addint_request(req), decode_int32_response)

    def adddouble(self, key: Any, num: float = 0.0) -> float:
        """
        Add a real number to a record stored as a binary double.

        A missing record is created with ``num``.

        Returns:
            The new total.

        Raises:
            RecordExistsError: If the record does not hold a real number.
        """
        try:
            addend = float(num)
        except (TypeError, ValueError, OverflowError) as e:
            raise InvalidArgumentError(f"adddouble operand is not a real number: {num!r}") from e
        req = AddDoubleRequest(self._keys.serialize(key), addend)
        return self._call(Command.ADDDOUBLE, encode_adddouble_request(req), decode_double_response)

    # =========================================================================
    # Script Extension
    # =========================================================================

    def ext(self, name: Any, key: Any = b"", value: Any = b"", opts: int = 0) -> bytes:
        """
        Call a function of the server-side script extension.

        Args:
            name: Function name.
            key: Key argument.
            value: Value argument.
            opts: ExtOption flags by bitwise OR (record or global locking).

        Returns:
            The function's result.
        """
        req = ExtRequest(as_bytes(name), self._keys.serialize(key), self._values.serialize(value), opts)
        return self._call(Command.EXT, encode_ext_request(req), decode_value_response)

    # =========================================================================
    # Database Management
    # =========================================================================

    def sync(self) -> None:
        """Synchronize updated contents with the file and device."""
        self._call(Command.SYNC, encode_bare_request(Command.SYNC))

    def optimize(self, params: Any = b"") -> None:
        """Optimize the storage with the given tuning parameters."""
        req = PathRequest(Command.OPTIMIZE, as_bytes(params))
        self._call(Command.OPTIMIZE, encode_path_request(req))

    def vanish(self) -> None:
        """Remove all records."""
        self._call(Command.VANISH, encode_bare_request(Command.VANISH))

    def copy(self, path: Any) -> None:
        """
        Copy the database file on the server.

        A path beginning with ``@`` is executed on the server as a command
        line instead.
        """
        req = PathRequest(Command.COPY, as_bytes(path))
        self._call(Command.COPY, encode_path_request(req))

    def restore(self, path: Any, ts: int, opts: int = 0) -> None:
        """
        Restore the database from update log files.

        Args:
            path: Update log directory on the server.
            ts: Beginning timestamp in microseconds.
            opts: RestoreOption flags.
        """
        req = RestoreRequest(as_bytes(path), ts, opts)
        self._call(Command.RESTORE, encode_restore_request(req))

    def setmst(self, host: Any, port: int, ts: int, opts: int = 0) -> None:
        """
        Set the replication master of the server.

        Args:
            host: Master host; empty disables replication.
            port: Master port.
            ts: Beginning timestamp in microseconds.
            opts: RestoreOption flags.
        """
        req = SetMasterRequest(as_bytes(host), port, ts, opts)
        self._call(Command.SETMST, encode_setmst_request(req))

    # =========================================================================
    # Introspection
    # =========================================================================

    def rnum(self) -> int:
        """Get the number of records."""
        return self._call(Command.RNUM, encode_bare_request(Command.RNUM), decode_int64_response)

    def size(self) -> int:
        """Get the size of the database in bytes."""
        return self._call(Command.SIZE, encode_bare_request(Command.SIZE), decode_int64_response)

    def stat(self) -> dict[str, str]:
        """Get the server's status as a name -> value map."""
        return self._call(Command.STAT, encode_bare_request(Command.STAT), decode_stat_response)

    # =========================================================================
    # Versatile Functions
    # =========================================================================

    def misc(
        self,
        name: Any,
        args: Iterable[Any] = (),
        opts: int = 0,
        *,
        error: StatusError = ServerError,
    ) -> list[bytes]:
        """
        Call a versatile function.

        Args:
            name: Function name, e.g. ``putlist``, ``getlist``, ``outlist``,
                or for table databases ``put``, ``get``, ``search`` etc.
            args: Function arguments.
            opts: MiscOption flags.
            error: Failure class raised for a non-zero status.

        Returns:
            The function's result list.
        """
        name_bytes = as_bytes(name)
        req = MiscRequest(name_bytes, [as_bytes(arg) for arg in args], opts)
        return self._call(
            Command.MISC,
            encode_misc_request(req),
            decode_list_response,
            error=error,
            label=f"misc({name_bytes.decode('utf-8', errors='replace')})",
        )

    def putlist(self, records: Mapping[Any, Any], opts: int = 0) -> None:
        """Store several records at once."""
        args: list[bytes] = []
        for key, value in records.items():
            args.append(self._keys.serialize(key))
            args.append(self._values.serialize(value))
        self.misc("putlist", args, opts)

    def getlist(self, keys: Iterable[Any], opts: int = 0) -> dict[bytes, bytes]:
        """Retrieve several records at once; missing keys are left out."""
        result = self.misc("getlist", [self._keys.serialize(key) for key in keys], opts)
        it = iter(result)
        return dict(zip(it, it))

    def outlist(self, keys: Iterable[Any], opts: int = 0) -> None:
        """Remove several records at once."""
        self.misc("outlist", [self._keys.serialize(key) for key in keys], opts)


class KeyIterator:
    """
    Iterator over the keys of a database, driven by the server-side cursor.

    Creating the iterator resets the cursor. Each step fetches exactly one
    key. The traversal order is unspecified, and records added or removed
    while iterating may or may not be seen. The cursor belongs to the
    connection, so any other iterinit on the same client restarts it.

    Example:
        >>> it = client.iterator()
        >>> while (key := it.next()) is not None:
        ...     print(key)
    """

    def __init__(self, client: TyrantClient) -> None:
        self._client = client
        self._exhausted = False
        client.iterinit()

    def next(self) -> bytes | None:
        """Return the next key, or None when every key has been returned."""
        if self._exhausted:
            return None
        try:
            return self._client.iternext()
        except RecordNotFoundError:
            self._exhausted = True
            return None

    def __iter__(self) -> KeyIterator:
        return self

    def __next__(self) -> bytes:
        key = self.next()
        if key is None:
            raise StopIteration
        return key


def connect(
    host: str = "localhost",
    port: int = 1978,
    **kwargs: Any,
) -> TyrantClient:
    """
    Create and connect a Tyrant client.

    Args:
        host: Server host name or address.
        port: Server port.
        **kwargs: Additional configuration options.

    Returns:
        Connected TyrantClient instance.

    Raises:
        ConnectFailedError: If connection fails.

    Example:
        >>> with connect("localhost", 1978) as client:
        ...     client.put(b"key", b"value")
    """
    return TyrantClient(host, port, **kwargs)
