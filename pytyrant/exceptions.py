# Copyright (c) 2026 Firefly Software Solutions Inc.
# Licensed under the Apache License, Version 2.0

"""
Custom exceptions for the pytyrant client.

All exceptions inherit from TyrantError, making it easy to catch all
client-related errors with a single except clause:

    try:
        client.put(b"key", b"value")
    except TyrantError as e:
        print(f"Tyrant error: {e}")

For more granular error handling, catch specific exception types:

    try:
        value = client.get(b"key")
    except RecordNotFoundError:
        value = None
    except ReceiveError:
        client.close()
        client.open()

A failed or short read is always a ReceiveError and never masquerades as a
server-reported failure. Server-reported failures are ServerError subclasses
chosen per command by error_for_status().
"""

from __future__ import annotations

from .types import Command, ConnectFailure


class TyrantError(Exception):
    """
    Base exception for all pytyrant errors.

    All pytyrant exceptions inherit from this class, allowing you to catch
    all client errors with a single except clause.
    """

    def __init__(self, message: str, *, hint: str | None = None) -> None:
        self.hint = hint
        if hint:
            message = f"{message}\n\n  Hint: {hint}"
        super().__init__(message)


class NotConnectedError(TyrantError):
    """
    Raised when an operation is attempted on a closed connection.

    This happens when:
    - open() was never called (or connect=False was passed)
    - close() was called
    - A previous send or receive failure closed the connection
    """

    def __init__(self, message: str = "Not connected") -> None:
        super().__init__(message, hint="Call open() to establish a new connection")


class InvalidOperationError(TyrantError):
    """Raised when an operation is not valid in the client's current state."""


class InvalidArgumentError(InvalidOperationError):
    """
    Raised when an argument cannot be represented on the wire.

    Integers must fit their fixed-width field, real numbers must be finite,
    and query tokens must not contain NUL. Nothing is sent to the server.
    """


class ConnectFailedError(TyrantError):
    """
    Raised when a connection to the Tyrant server cannot be established.

    Common causes:
    - Server is not running
    - Wrong host or port
    - Firewall blocking connection
    """

    def __init__(
        self,
        message: str,
        host: str | None = None,
        port: int | None = None,
        *,
        reason: ConnectFailure = ConnectFailure.OTHER,
        hint: str | None = None,
    ) -> None:
        self.host = host
        self.port = port
        self.reason = reason
        if hint is None and host:
            hint = f"Check that ttserver is running on {host}:{port}"
        super().__init__(message, hint=hint)


class HostUnreachableError(ConnectFailedError):
    """Raised when the host cannot be resolved or routed to."""

    def __init__(self, message: str, host: str | None = None, port: int | None = None) -> None:
        super().__init__(
            message,
            host,
            port,
            reason=ConnectFailure.UNREACHABLE,
            hint=f"Check that the host name {host!r} resolves and is reachable",
        )


class ConnectRefusedError(ConnectFailedError):
    """Raised when the server actively refuses the connection."""

    def __init__(self, message: str, host: str | None = None, port: int | None = None) -> None:
        super().__init__(message, host, port, reason=ConnectFailure.REFUSED)


class SendError(TyrantError):
    """
    Raised when a request could not be written completely.

    The connection is closed afterwards; reopen it before issuing more
    commands.
    """

    def __init__(self, message: str = "Send failed") -> None:
        super().__init__(message, hint="The connection was closed. Reopen it and retry if appropriate.")


class ReceiveError(TyrantError):
    """
    Raised when a response could not be read completely.

    This covers short reads, timeouts, a peer that closed the stream and
    corrupt length fields. The connection is closed afterwards.
    """

    def __init__(self, message: str = "Receive failed") -> None:
        super().__init__(message, hint="The connection was closed. Reopen it and retry if appropriate.")


class ServerError(TyrantError):
    """
    Raised when the server answers with a non-zero status.

    This is the generic ("miscellaneous") failure class. The connection
    stays usable.
    """

    def __init__(self, command: Command | str, status: int, message: str | None = None) -> None:
        self.command = command
        self.status = status
        if message is None:
            message = f"{_command_name(command)} failed with status {status}"
        super().__init__(message)


class RecordExistsError(ServerError):
    """Raised when an insert-only or arithmetic operation conflicts with an existing record."""

    def __init__(self, command: Command | str, status: int) -> None:
        super().__init__(command, status, f"{_command_name(command)}: existing record")


class RecordNotFoundError(ServerError):
    """Raised when the addressed record does not exist, or iteration has ended."""

    def __init__(self, command: Command | str, status: int) -> None:
        super().__init__(command, status, f"{_command_name(command)}: no record found")


class MalformedRecordError(TyrantError):
    """
    Raised when a NUL-delimited column buffer cannot be encoded or decoded.

    Column names and values may not contain the NUL byte, and a decoded
    buffer must split into name/value pairs. This error is always local.
    """


_STATUS_ERRORS: dict[Command, type[ServerError]] = {
    Command.PUTKEEP: RecordExistsError,
    Command.OUT: RecordNotFoundError,
    Command.GET: RecordNotFoundError,
    Command.MGET: RecordNotFoundError,
    Command.VSIZ: RecordNotFoundError,
    Command.ITERNEXT: RecordNotFoundError,
    Command.FWMKEYS: RecordNotFoundError,
    Command.ADDINT: RecordExistsError,
    Command.ADDDOUBLE: RecordExistsError,
}


def error_for_status(command: Command, status: int) -> ServerError:
    """
    Map a non-zero response status to the command's failure class.

    Args:
        command: The command that produced the status.
        status: The non-zero status byte.

    Returns:
        An exception instance; ServerError when the command defines no
        more specific failure.
    """
    error_cls = _STATUS_ERRORS.get(command, ServerError)
    return error_cls(command, status)


def _command_name(command: Command | str) -> str:
    if isinstance(command, Command):
        return command.name.lower()
    return str(command)
