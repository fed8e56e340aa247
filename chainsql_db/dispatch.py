"""Run a query builder or SQL text through any async connection."""

from typing import Any, Optional, Protocol, Sequence, Union, runtime_checkable

from chainsql import Renderable

from .conn import to_sql_text


@runtime_checkable
class Connection(Protocol):
    """Anything with ``async query(sql, params)``, such as AsyncSqlCon."""

    async def query(self, sql: str, params: Optional[Sequence[Any]] = None) -> Any:
        ...


async def query(conn: Connection, q: Union[str, Renderable], params: Optional[Sequence[Any]] = None) -> Any:
    """Build ``q`` if needed and hand the SQL to ``conn.query``."""
    return await conn.query(to_sql_text(q), params)
