"""Tests for async query dispatch."""

import pytest
from sqlalchemy.exc import OperationalError

from chainsql import insert, select
from chainsql_db import AsyncSqlCon, Connection, aretry, query


class FakeConnection:
    def __init__(self):
        self.calls = []

    async def query(self, sql, params=None):
        self.calls.append((sql, params))
        return "done"


def test_fake_connection_satisfies_protocol():
    assert isinstance(FakeConnection(), Connection)


@pytest.mark.anyio
async def test_query_builds_builders():
    conn = FakeConnection()
    assert await query(conn, select("a").from_("t").where({"b": 1})) == "done"
    assert conn.calls == [("SELECT `a` FROM `t` WHERE `b`=1", None)]


@pytest.mark.anyio
async def test_query_passes_text_and_params():
    conn = FakeConnection()
    await query(conn, "SELECT * FROM t WHERE a = ?", [1])
    assert conn.calls == [("SELECT * FROM t WHERE a = ?", [1])]


@pytest.mark.anyio
async def test_query_rejects_other_types():
    with pytest.raises(TypeError):
        await query(FakeConnection(), 123)


@pytest.mark.anyio
async def test_async_connection_against_sqlite(tmp_path):
    async with AsyncSqlCon(f"sqlite+aiosqlite:///{tmp_path}/async.db") as conn:
        assert isinstance(conn, Connection)
        await query(conn, "CREATE TABLE items (id INTEGER PRIMARY KEY, label TEXT)")
        await query(conn, insert([{"id": 1, "label": "x"}, {"id": 2, "label": "y"}]).into("items"))
        rows = await query(conn, select("label").from_("items").where({"id": {"$gt": 1}}))
        assert rows == [{"label": "y"}]
        assert await conn.query("SELECT label FROM items WHERE id = ?", [1]) == [{"label": "x"}]


@pytest.mark.anyio
async def test_aretry_recovers_from_transient_errors():
    calls = []

    @aretry(tries=2, delay=0)
    async def flaky():
        calls.append(1)
        if len(calls) == 1:
            raise OperationalError("SELECT 1", {}, Exception("boom"))
        return "ok"

    assert await flaky() == "ok"
    assert len(calls) == 2
