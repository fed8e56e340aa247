"""asyncio SQLAlchemy connection wrapper."""

import logging
from typing import Any, Dict, List, Union

from sqlalchemy.engine.url import make_url
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import AsyncAdaptedQueuePool

from chainsql import Renderable

from .conn import Params, driver_params, to_sql_text
from .retry import aretry

logger = logging.getLogger(__name__)


class AsyncSqlCon:
    """Async counterpart of SqlCon; its query() satisfies the Connection protocol."""
    def __init__(self, conn: str, pool_size: int = 5, pool_timeout: int = 30,
                 echo: bool = False, debug: bool = False):
        self.url = make_url(conn)
        self.debug = debug
        self.engine = create_async_engine(
            conn, poolclass=AsyncAdaptedQueuePool, pool_size=pool_size, pool_timeout=pool_timeout,
            pool_recycle=3600, echo=echo
        )
        self.db = self.engine.dialect.name

    @aretry()
    async def query(self, sql: Union[str, Renderable], params: Params = None) -> List[Dict[str, Any]]:
        """Execute a statement and return result rows as dicts."""
        sql = to_sql_text(sql)
        if self.debug:
            logger.debug(f'SQL: {sql} | Params: {params}')
        async with self.engine.begin() as conn:
            if params:
                result = await conn.exec_driver_sql(sql, driver_params(params))
            else:
                result = await conn.exec_driver_sql(sql, execution_options={'no_parameters': True})
            return [dict(row) for row in result.mappings().all()] if result.returns_rows else []

    async def close(self):
        await self.engine.dispose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *args):
        await self.close()
