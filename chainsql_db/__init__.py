from .conn import SqlCon, to_sql_text
from .aconn import AsyncSqlCon
from .dispatch import Connection, query
from .retry import retry, aretry

__all__ = ['SqlCon', 'AsyncSqlCon', 'Connection', 'query', 'to_sql_text', 'retry', 'aretry']
