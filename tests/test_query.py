# Copyright (c) 2026 Firefly Software Solutions Inc.
# Licensed under the Apache License, Version 2.0

"""Tests for the table query builder."""

import pytest

from pytyrant import (
    QCNEGATE,
    QCNUMEQ,
    QCNUMGE,
    QCSTRBW,
    QCSTREQ,
    QONUMASC,
    QONUMDESC,
    QOSTRASC,
    InvalidArgumentError,
    TableClient,
)
from pytyrant.protocol import pack_int32
from pytyrant.query import directive

from .scripted import scripted_client


@pytest.fixture
def people(table: TableClient) -> TableClient:
    table.put("alice", {"name": "Alice", "age": "31"})
    table.put("bob", {"name": "Bob", "age": "17"})
    table.put("carol", {"name": "Carol", "age": "45"})
    return table


def offline_table(response: bytes = b"\x00" + pack_int32(0)) -> tuple[TableClient, bytearray]:
    c, transport = scripted_client(response)
    return TableClient(client=c), transport.sent


class TestDirectives:
    """Tests for directive encoding and query state."""

    def test_addcond_bytes(self) -> None:
        table, _ = offline_table()
        query = table.query().addcond("age", QCNUMEQ, 18)
        assert query.directives() == [b"addcond\x00age\x008\x0018"]

    def test_negated_operator(self) -> None:
        table, _ = offline_table()
        query = table.query().addcond("name", QCSTREQ | QCNEGATE, "x")
        assert query.directives() == [b"addcond\x00name\x0016777216\x00x"]

    def test_directive_order(self) -> None:
        table, _ = offline_table()
        query = table.query().setlimit(5).setorder("age", QONUMASC).addcond("age", QCNUMGE, 1)
        kinds = [d.split(b"\x00")[0] for d in query.directives()]
        assert kinds == [b"addcond", b"setorder", b"setlimit"]

    def test_setorder_last_call_wins(self) -> None:
        table, _ = offline_table()
        query = table.query().setorder("name", QOSTRASC).setorder("age", QONUMDESC)
        assert query.directives() == [b"setorder\x00age\x003"]

    def test_setlimit_last_call_wins(self) -> None:
        table, _ = offline_table()
        query = table.query().setlimit(10, 2).setlimit(3)
        assert query.directives() == [b"setlimit\x003\x00-1"]

    def test_setlimit_defaults(self) -> None:
        table, _ = offline_table()
        assert table.query().setlimit().directives() == [b"setlimit\x00-1\x00-1"]

    def test_nul_in_token(self) -> None:
        with pytest.raises(InvalidArgumentError, match="NUL"):
            directive("addcond", "a\x00b", 0, "x")

    def test_mode_not_stored(self) -> None:
        table, sent = offline_table(b"\x00" + pack_int32(1) + pack_int32(1) + b"0")
        query = table.query().addcond("age", QCNUMGE, 18)
        assert query.searchcount() == 0
        assert sent.endswith(pack_int32(5) + b"count")
        assert query.directives() == [b"addcond\x00age\x0010\x0018"]

    def test_searchget_skips_update_log(self) -> None:
        table, sent = offline_table()
        table.query().searchget()
        assert bytes(sent[6:10]) == pack_int32(1)
        assert sent.endswith(pack_int32(3) + b"get")

    def test_search_logs_updates(self) -> None:
        table, sent = offline_table()
        table.query().search()
        assert bytes(sent[6:10]) == pack_int32(0)
        assert sent.endswith(pack_int32(0) + b"search")

    def test_repr(self) -> None:
        table, _ = offline_table()
        assert "addcond" in repr(table.query().addcond("a", QCSTREQ, "b"))


class TestSearch:
    """Tests for query execution against the emulator."""

    def test_search_all(self, people: TableClient) -> None:
        assert sorted(people.query().search()) == [b"alice", b"bob", b"carol"]

    def test_numeric_condition(self, people: TableClient) -> None:
        keys = people.query().addcond("age", QCNUMGE, 18).search()
        assert sorted(keys) == [b"alice", b"carol"]

    def test_conditions_are_conjunctive(self, people: TableClient) -> None:
        query = people.query().addcond("age", QCNUMGE, 18).addcond("name", QCSTRBW, "C")
        assert query.search() == [b"carol"]

    def test_negation(self, people: TableClient) -> None:
        keys = people.query().addcond("name", QCSTREQ | QCNEGATE, "Alice").search()
        assert sorted(keys) == [b"bob", b"carol"]

    def test_primary_key_condition(self, people: TableClient) -> None:
        assert people.query().addcond("", QCSTRBW, "al").search() == [b"alice"]

    def test_order(self, people: TableClient) -> None:
        keys = people.query().setorder("age", QONUMDESC).search()
        assert keys == [b"carol", b"alice", b"bob"]

    def test_limit_and_skip(self, people: TableClient) -> None:
        keys = people.query().setorder("age", QONUMASC).setlimit(1, 1).search()
        assert keys == [b"alice"]

    def test_searchget(self, people: TableClient) -> None:
        hits = people.query().addcond("name", QCSTREQ, "Bob").searchget()
        assert hits == [{b"": b"bob", b"name": b"Bob", b"age": b"17"}]

    def test_searchget_columns(self, people: TableClient) -> None:
        query = people.query().setorder("age", QONUMASC)
        assert query.searchget(["name"]) == [
            {b"name": b"Bob"},
            {b"name": b"Alice"},
            {b"name": b"Carol"},
        ]

    def test_searchcount(self, people: TableClient) -> None:
        assert people.query().addcond("age", QCNUMGE, 18).searchcount() == 2

    def test_searchout(self, people: TableClient) -> None:
        people.query().addcond("age", QCNUMGE, 18).searchout()
        assert people.keys() == [b"bob"]

    def test_reusable_after_execution(self, people: TableClient) -> None:
        query = people.query().addcond("age", QCNUMGE, 18)
        assert query.searchcount() == 2
        assert sorted(query.search()) == [b"alice", b"carol"]
        assert len(query.searchget()) == 2
