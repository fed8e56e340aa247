"""DataFrame-based SQL query generation."""

import logging
from typing import Any, Dict, List, Optional

import pandas as pd

from .query_builder import QueryBuilder

logger = logging.getLogger(__name__)


def df_records(df: pd.DataFrame) -> List[Dict[str, Any]]:
    """Rows as dicts of plain Python values, with NaN/NaT/NA turned into None."""
    return df.astype(object).where(df.notna(), None).to_dict('records')


def df_sql(df: pd.DataFrame, table: str, columns: Optional[List[str]] = None, *,
           update_columns: Optional[List[str]] = None, chunk_size: int = 1000) -> List[str]:
    """Generate INSERT statements from a DataFrame.

    Without ``update_columns`` rows are grouped into multi-row INSERTs of at
    most ``chunk_size`` rows. With them, every row becomes an
    INSERT ... ON DUPLICATE KEY UPDATE that rewrites those columns.
    """
    if not isinstance(df, pd.DataFrame):
        raise TypeError('Input must be a pandas DataFrame')
    if chunk_size < 1:
        raise ValueError(f'chunk_size must be >= 1, got {chunk_size}')
    if df.empty:
        return []
    cols = list(columns) if columns else list(df.columns)
    missing = [c for c in cols if c not in df.columns]
    if missing:
        raise ValueError(f'Columns not found in DataFrame: {missing}')
    unknown = [c for c in update_columns or [] if c not in cols]
    if unknown:
        raise ValueError(f'Update columns must be inserted columns: {unknown}')
    rows = df_records(df[cols])
    out = []
    if update_columns:
        for row in rows:
            q = QueryBuilder().insert(row).into(table).on_duplicate_key_update()
            out.append(q.set({c: row[c] for c in update_columns}).build())
    else:
        for start in range(0, len(rows), chunk_size):
            out.append(QueryBuilder().insert(rows[start:start + chunk_size]).into(table).build())
    logger.debug(f'Generated {len(out)} statement(s) for {len(rows)} row(s) into {table}')
    return out
