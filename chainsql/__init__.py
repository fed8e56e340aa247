"""Fluent SQL statement builder with MySQL-style escaping."""

from .escape import MISSING, Raw, raw, escape_id, escape_value, escape_string, date_to_string
from .formatter import Renderable, sql_format, sql_format_object, format_template
from .conditions import Condition, condition_strings, update_string, check_undefined
from .expression import Expression
from .query_builder import QueryBuilder, table, select, select_distinct, insert, update, delete, expr
from .mappings import QueryType
from .json_handler import json_select, json_insert, json_update, json_delete
from .df_handler import df_sql

__all__ = [
    'MISSING', 'Raw', 'raw', 'escape_id', 'escape_value', 'escape_string', 'date_to_string',
    'Renderable', 'sql_format', 'sql_format_object', 'format_template',
    'Condition', 'condition_strings', 'update_string', 'check_undefined',
    'Expression', 'QueryBuilder', 'QueryType',
    'table', 'select', 'select_distinct', 'insert', 'update', 'delete', 'expr',
    'json_select', 'json_insert', 'json_update', 'json_delete', 'df_sql',
]
