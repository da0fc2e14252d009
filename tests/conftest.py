# Copyright (c) 2026 Firefly Software Solutions Inc.
# Licensed under the Apache License, Version 2.0

"""Shared fixtures for pytyrant tests."""

from __future__ import annotations

from typing import Iterator

import pytest

from pytyrant import TableClient, TyrantClient

from .emulator import TyrantEmulator


@pytest.fixture
def server() -> Iterator[TyrantEmulator]:
    """A running emulator with an empty database."""
    emulator = TyrantEmulator()
    emulator.start()
    yield emulator
    emulator.stop()


@pytest.fixture
def client(server: TyrantEmulator) -> Iterator[TyrantClient]:
    """A key/value client connected to the emulator."""
    host, port = server.address
    c = TyrantClient(host, port)
    yield c
    c.close()


@pytest.fixture
def table(server: TyrantEmulator) -> Iterator[TableClient]:
    """A table client connected to the emulator."""
    host, port = server.address
    t = TableClient(host, port)
    yield t
    t.close()
