"""Synchronous SQLAlchemy connection wrapper for built statements."""

import logging
from collections.abc import Mapping
from typing import Any, Dict, List, Optional, Sequence, Union

import pandas as pd
from sqlalchemy import create_engine
from sqlalchemy.engine.url import make_url
from sqlalchemy.pool import QueuePool

from chainsql import Renderable, df_sql

from .retry import retry

logger = logging.getLogger(__name__)

Params = Optional[Union[Sequence[Any], Mapping]]


def to_sql_text(q: Union[str, Renderable]) -> str:
    """Build a query builder, or pass SQL text through."""
    if isinstance(q, str):
        return q
    if isinstance(q, Renderable):
        return q.build()
    raise TypeError(f'Query must be SQL text or a query builder, got {type(q).__name__}')


def driver_params(params: Params) -> Union[tuple, Dict[str, Any]]:
    return dict(params) if isinstance(params, Mapping) else tuple(params)


class SqlCon:
    """Runs SQL text or query builders on a pooled SQLAlchemy engine."""
    def __init__(self, conn: str, pool_size: int = 5, pool_timeout: int = 30,
                 echo: bool = False, debug: bool = False):
        self.url = make_url(conn)
        self.debug = debug
        self.engine = create_engine(
            conn, poolclass=QueuePool, pool_size=pool_size,
            pool_timeout=pool_timeout, pool_recycle=3600, echo=echo
        )
        self.db = self.engine.dialect.name

    def _log(self, sql: str, params: Any):
        """Log SQL and params if debug enabled."""
        if self.debug:
            logger.debug(f'SQL: {sql} | Params: {params}')

    @retry()
    def execute(self, q: Union[str, Renderable], params: Params = None) -> List[Dict[str, Any]]:
        """Execute a statement and return result rows as dicts.

        Without params the text is sent with ``no_parameters`` so that
        literal ``%`` and ``?`` in escaped values reach the driver untouched.
        """
        sql = to_sql_text(q)
        self._log(sql, params)
        with self.engine.begin() as conn:
            if params:
                result = conn.exec_driver_sql(sql, driver_params(params))
            else:
                result = conn.exec_driver_sql(sql, execution_options={'no_parameters': True})
            return [dict(row) for row in result.mappings().all()] if result.returns_rows else []

    def fetch_df(self, q: Union[str, Renderable], params: Params = None) -> pd.DataFrame:
        """Fetch query results as DataFrame."""
        return pd.DataFrame(self.execute(q, params))

    def insert_df(self, df: pd.DataFrame, table: str, columns: Optional[List[str]] = None, *,
                  update_columns: Optional[List[str]] = None, chunk_size: int = 1000) -> int:
        """Insert (or upsert) DataFrame rows; returns the number of statements run."""
        statements = df_sql(df, table, columns, update_columns=update_columns, chunk_size=chunk_size)
        for sql in statements:
            self.execute(sql)
        return len(statements)

    def close(self):
        """Dispose of engine resources."""
        self.engine.dispose()

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()
