# Copyright (c) 2026 Firefly Software Solutions Inc.
# Licensed under the Apache License, Version 2.0

"""
Socket transport for the Tyrant client.

A transport owns one reliable, ordered byte stream and offers exactly what
the command layer needs: write_all(), read(), abort() and close().
Connect failures are classified into the client's exception taxonomy here,
so the command layer never sees raw socket errors from open().
"""

from __future__ import annotations

import errno
import logging
import socket
from typing import TYPE_CHECKING, Protocol

from .exceptions import (
    ConnectFailedError,
    ConnectRefusedError,
    HostUnreachableError,
    SendError,
)

if TYPE_CHECKING:
    from .models import ClientConfig

_LOGGER = logging.getLogger(__name__)


class Transport(Protocol):
    """
    What the client needs from a byte stream.

    read() may return fewer bytes than asked only at end of stream; the
    response decoders build read-exact semantics on top of it with
    protocol.read_exact().
    """

    def write_all(self, data: bytes) -> None: ...

    def read(self, size: int) -> bytes: ...

    def abort(self) -> None: ...

    def close(self) -> None: ...


_UNREACHABLE_ERRNOS = frozenset(
    code
    for code in (
        getattr(errno, "EHOSTUNREACH", None),
        getattr(errno, "ENETUNREACH", None),
        getattr(errno, "EHOSTDOWN", None),
    )
    if code is not None
)


class SocketTransport:
    """
    TCP stream to a Tyrant server.

    Example:
        >>> transport = SocketTransport.open("localhost", 1978)
        >>> transport.write_all(b"\\xc8\\x80")
        >>> status = read_status(transport)
        >>> transport.close()
    """

    def __init__(self, sock: socket.socket) -> None:
        self._sock = sock
        self._reader = sock.makefile("rb")
        self._closed = False

    @classmethod
    def open(
        cls,
        host: str,
        port: int,
        *,
        connect_timeout: float | None = None,
        request_timeout: float | None = None,
        nodelay: bool = True,
    ) -> SocketTransport:
        """
        Connect to a server, trying every address the host resolves to.

        Raises:
            HostUnreachableError: If the host cannot be resolved or routed to.
            ConnectRefusedError: If the server refuses the connection.
            ConnectFailedError: For any other connect failure.
        """
        try:
            addrs = socket.getaddrinfo(host, port, socket.AF_UNSPEC, socket.SOCK_STREAM)
        except socket.gaierror as e:
            raise HostUnreachableError(f"Failed to resolve {host}: {e}", host, port) from e

        last_error: ConnectFailedError | None = None
        for family, socktype, proto, _canonname, sockaddr in addrs:
            sock = None
            try:
                sock = socket.socket(family, socktype, proto)
                sock.settimeout(connect_timeout)
                sock.connect(sockaddr)
                sock.settimeout(request_timeout)
                if nodelay:
                    sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
                _LOGGER.debug("Connected to %s:%s via %s", host, port, sockaddr)
                return cls(sock)
            except socket.timeout as e:
                last_error = ConnectFailedError(f"Connection to {host}:{port} timed out", host, port)
                last_error.__cause__ = e
            except OSError as e:
                last_error = _classify_connect_error(e, host, port)
                last_error.__cause__ = e
            if sock is not None:
                sock.close()

        if last_error is not None:
            raise last_error
        raise HostUnreachableError(f"No addresses found for {host}", host, port)

    @classmethod
    def from_config(cls, config: ClientConfig) -> SocketTransport:
        """Open a transport using a client configuration."""
        request_timeout = None
        if config.request_timeout_ms is not None:
            request_timeout = config.request_timeout_ms / 1000.0
        return cls.open(
            config.host,
            config.port,
            connect_timeout=config.connect_timeout_ms / 1000.0,
            request_timeout=request_timeout,
            nodelay=config.tcp_nodelay,
        )

    @property
    def closed(self) -> bool:
        return self._closed

    def write_all(self, data: bytes) -> None:
        """
        Write the whole buffer.

        Raises:
            SendError: If the stream rejects the write.
        """
        try:
            self._sock.sendall(data)
        except OSError as e:
            raise SendError(f"Failed to send {len(data)} bytes: {e}") from e

    def read(self, size: int) -> bytes:
        """Read up to ``size`` bytes; fewer only at end of stream."""
        return self._reader.read(size)

    def abort(self) -> None:
        """
        Shut the stream down without waiting for a call in progress.

        A thread blocked reading a response wakes up at end of stream. Safe
        to call from any thread, and more than once.
        """
        try:
            self._sock.shutdown(socket.SHUT_RDWR)
        except OSError:
            # Already shut down or closed.
            pass

    def close(self) -> None:
        """Close the stream. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        try:
            self._reader.close()
        finally:
            try:
                self._sock.shutdown(socket.SHUT_RDWR)
            except OSError:
                # Already disconnected by the peer.
                pass
            self._sock.close()


def _classify_connect_error(error: OSError, host: str, port: int) -> ConnectFailedError:
    if error.errno == errno.ECONNREFUSED:
        return ConnectRefusedError(f"Connection to {host}:{port} refused", host, port)
    if error.errno in _UNREACHABLE_ERRNOS:
        return HostUnreachableError(f"Host {host} unreachable: {error}", host, port)
    return ConnectFailedError(f"Failed to connect to {host}:{port}: {error}", host, port)
