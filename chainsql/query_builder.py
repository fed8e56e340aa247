"""Fluent SQL statement builder for the backtick-quoted MySQL dialect."""

import copy
import re
from collections.abc import Mapping
from typing import Any, Dict, List, Optional, Sequence, Union

from .conditions import check_undefined, condition_strings, update_string
from .escape import escape_id, escape_value
from .expression import Expression
from .formatter import Values, format_template, sql_format_object
from .mappings import QueryType, max_unsigned_bigint, select_types

_direction_re = re.compile(r"'(ASC|DESC)'", re.IGNORECASE)

empty_condition_message = 'Modification condition cannot be empty'

Where = Union[str, Mapping, Expression]


def format_fields(prefix: str, fields: Sequence[str]) -> List[str]:
    """Escape field names and qualify them with ``prefix``.

    ``*`` becomes ``prefix.*``, aliased expressions (containing " as ") are
    kept verbatim and already-quoted names only receive the prefix.
    """
    p = f'{prefix}.' if prefix else ''
    out = []
    for name in fields:
        name = str(name)
        if name == '*':
            out.append(f'{p}*')
        elif ' as ' in name.lower():
            out.append(name)
        elif name.startswith('`'):
            out.append(f'{p}{name}')
        else:
            out.append(f'{p}{escape_id(name)}')
    return out


def limit_clause(offset: int, limit: int) -> str:
    """LIMIT text for the given offset/row count, empty when neither is set."""
    if limit > 0:
        return f'LIMIT {offset},{limit}' if offset > 0 else f'LIMIT {limit}'
    if offset > 0:
        return f'LIMIT {offset},{max_unsigned_bigint}'
    return ''


def _join_parts(*parts: str) -> str:
    return ' '.join(p.strip() for p in parts if p and p.strip())


class QueryBuilder:
    """Accumulates clauses through chained calls and renders one SQL statement with build()."""

    def __init__(self):
        self._table: Optional[str] = None
        self._table_escaped: Optional[str] = None
        self._type: Optional[QueryType] = None
        self._fields: List[str] = []
        self._conditions: List[str] = []
        self._update: List[str] = []
        self._insert = ''
        self._insert_rows = 0
        self._sql_tpl = ''
        self._sql_values: Optional[Values] = None
        self._order_by = ''
        self._group_by = ''
        self._offset_rows = 0
        self._limit_rows = 0
        self._alias: Optional[str] = None
        self._alias_to_table: Dict[str, str] = {}
        self._joins: List[Dict[str, Any]] = []

    def __repr__(self) -> str:
        return f'<QueryBuilder type={self._type} table={self._table!r}>'

    def clone(self) -> 'QueryBuilder':
        """Independent deep copy, for branching variants off a shared prefix."""
        return copy.deepcopy(self)

    def format(self, tpl: str, values: Optional[Values] = None) -> str:
        return format_template(tpl, values)

    def _set_type(self, query_type: QueryType):
        if self._type is not None:
            raise ValueError(f'Cannot change query type after it was set to "{self._type}"')
        self._type = query_type

    # tables, aliases and joins

    def table(self, name: str) -> 'QueryBuilder':
        if self._table:
            raise ValueError(f'Cannot change table name after it was set to "{self._table}"')
        if not isinstance(name, str) or not name:
            raise ValueError(f'Invalid table name: {name!r}')
        self._table = name
        self._table_escaped = escape_id(name)
        return self

    def from_(self, name: str) -> 'QueryBuilder':
        return self.table(name)

    def into(self, name: str) -> 'QueryBuilder':
        return self.table(name)

    def _set_alias(self, table: str, alias: str):
        if alias in self._alias_to_table:
            raise ValueError(f'Alias name "{alias}" is already registered for table "{self._alias_to_table[alias]}"')
        self._alias_to_table[alias] = table

    def as_(self, alias: str) -> 'QueryBuilder':
        """Alias the most recent join, or the primary table if nothing was joined yet."""
        if not isinstance(alias, str) or not alias:
            raise TypeError(f'Alias must be a non-empty string, got {alias!r}')
        if self._joins:
            last = self._joins[-1]
            if last['alias']:
                raise ValueError(f'Join "{last["table"]}" already has alias "{last["alias"]}"')
            self._set_alias(last['table'], alias)
            last['alias'] = alias
        elif self._table:
            if self._alias:
                raise ValueError(f'Table "{self._table}" already has alias "{self._alias}"')
            self._set_alias(self._table, alias)
            self._alias = alias
        else:
            raise ValueError('as_() needs a table or a join to alias')
        return self

    def _add_join(self, name: str, kind: str, fields: Optional[Sequence[str]]) -> 'QueryBuilder':
        if not isinstance(name, str) or not name:
            raise TypeError(f'Join table must be a non-empty string, got {name!r}')
        self._joins.append({'table': name, 'kind': kind, 'fields': list(fields or []), 'on': '', 'alias': ''})
        return self

    def join(self, name: str, fields: Optional[Sequence[str]] = None) -> 'QueryBuilder':
        return self._add_join(name, 'JOIN', fields)

    def left_join(self, name: str, fields: Optional[Sequence[str]] = None) -> 'QueryBuilder':
        return self._add_join(name, 'LEFT JOIN', fields)

    def right_join(self, name: str, fields: Optional[Sequence[str]] = None) -> 'QueryBuilder':
        return self._add_join(name, 'RIGHT JOIN', fields)

    def on(self, condition: str, values: Optional[Values] = None) -> 'QueryBuilder':
        """Set the ON clause of the most recent join."""
        if not self._joins:
            raise ValueError('Missing join(), left_join() or right_join() before on()')
        last = self._joins[-1]
        if last['on']:
            raise ValueError(f'Join condition already registered. Previous condition is "{last["on"]}"')
        last['on'] = self.format(condition, values)
        return self

    # conditions

    def _allows_empty_condition(self) -> bool:
        return self._type in select_types

    def where(self, condition: Where, values: Optional[Values] = None) -> 'QueryBuilder':
        return self.and_(condition, values)

    def and_(self, condition: Where, values: Optional[Values] = None) -> 'QueryBuilder':
        """Append a condition; all conditions are joined with AND."""
        if condition is None:
            raise ValueError('Missing condition')
        if isinstance(condition, str):
            if not condition.strip() and not self._allows_empty_condition():
                raise ValueError(empty_condition_message)
            self._conditions.append(self.format(condition, values))
        elif isinstance(condition, Expression):
            self._conditions.append(condition.build())
        elif isinstance(condition, Mapping):
            check_undefined(condition)
            if not condition and not self._allows_empty_condition():
                raise ValueError(empty_condition_message)
            self._conditions.extend(condition_strings(condition))
        else:
            raise TypeError(f'Condition must be a string, mapping or Expression, got {type(condition).__name__}')
        return self

    # statement types

    def select(self, *fields: str) -> 'QueryBuilder':
        self._set_type(QueryType.SELECT)
        if fields:
            self.fields(*fields)
        return self

    def select_distinct(self, *fields: str) -> 'QueryBuilder':
        self._set_type(QueryType.SELECT_DISTINCT)
        if not fields:
            raise ValueError('select_distinct() expects one or more fields')
        return self.fields(*fields)

    def fields(self, *fields: str) -> 'QueryBuilder':
        if self._fields:
            raise ValueError('Cannot change fields after they have been set')
        self._fields.extend(format_fields('', fields))
        return self

    def count(self, name: str = 'count', field: str = '*') -> 'QueryBuilder':
        """SELECT COUNT(field) AS `name`."""
        self._set_type(QueryType.SELECT)
        self._fields.append(f'COUNT({field}) AS {escape_id(name)}')
        return self

    def update(self, data: Union[str, Mapping, None] = None, values: Optional[Values] = None) -> 'QueryBuilder':
        self._set_type(QueryType.UPDATE)
        self._update = []
        if data:
            self.set(data, values)
        return self

    def set(self, data: Union[str, Mapping], values: Optional[Values] = None) -> 'QueryBuilder':
        """Add SET assignments from a template or an update mapping."""
        if self._type not in (QueryType.UPDATE, QueryType.INSERT_OR_UPDATE):
            raise ValueError('Query type must be UPDATE, call update() first')
        if data is None:
            raise ValueError('Missing update data')
        if isinstance(data, str):
            self._update.append(self.format(data, values))
        elif isinstance(data, Mapping):
            sql = update_string(data)
            if sql:
                self._update.append(sql)
        else:
            raise TypeError(f'Update data must be a string or mapping, got {type(data).__name__}')
        return self

    def insert(self, data: Union[Mapping, Sequence[Mapping]]) -> 'QueryBuilder':
        """INSERT one row or many; every row must have the first row's columns."""
        self._set_type(QueryType.INSERT)
        if isinstance(data, Mapping):
            rows = [data]
        elif isinstance(data, (list, tuple)):
            rows = list(data)
            if not rows:
                raise ValueError('Insert data list must have at least 1 item')
        else:
            raise TypeError(f'Insert data must be a mapping or list of mappings, got {type(data).__name__}')
        if not isinstance(rows[0], Mapping):
            raise TypeError(f'Every insert row must be a mapping, row 0 is {type(rows[0]).__name__}')
        columns = list(rows[0].keys())
        lines = []
        for i, row in enumerate(rows):
            if not isinstance(row, Mapping):
                raise TypeError(f'Every insert row must be a mapping, row {i} is {type(row).__name__}')
            missing = [c for c in columns if c not in row]
            if missing:
                raise ValueError(f'Insert row {i} is missing fields: {missing}')
            extra = [c for c in row if c not in columns]
            if extra:
                raise ValueError(f'Insert row {i} has fields not in the first row: {extra}')
            lines.append('(' + ', '.join(escape_value(row[c]) for c in columns) + ')')
        self._insert = f'({escape_id(columns)}) VALUES ' + ',\n'.join(lines)
        self._insert_rows = len(rows)
        return self

    def on_duplicate_key_update(self) -> 'QueryBuilder':
        if self._type is not QueryType.INSERT:
            raise ValueError('on_duplicate_key_update() must be called after insert()')
        if self._insert_rows != 1:
            raise ValueError(
                f'on_duplicate_key_update() must have inserted one row, but actually inserted {self._insert_rows} rows'
            )
        self._type = QueryType.INSERT_OR_UPDATE
        return self

    def delete(self) -> 'QueryBuilder':
        self._set_type(QueryType.DELETE)
        return self

    def sql(self, tpl: str, values: Optional[Values] = None) -> 'QueryBuilder':
        """Custom statement; :$table, :$fields, :$orderBy, :$limit, :$skipRows,
        :$offsetRows and :$limitRows are expanded at build time.

        Macros expand before ``values`` are applied, so a literal ``?`` or
        ``:name`` inside an expanded field, order or table text is also
        treated as a placeholder.
        """
        if not isinstance(tpl, str):
            raise TypeError(f'SQL template must be a string, got {type(tpl).__name__}')
        self._set_type(QueryType.CUSTOM)
        self._sql_tpl = tpl
        if isinstance(values, Mapping):
            self._sql_values = dict(values)
        elif values is not None:
            self._sql_values = list(values)
        return self

    # ordering, grouping and paging

    def order_by(self, tpl: str, values: Optional[Values] = None) -> 'QueryBuilder':
        order = f'ORDER BY {self.format(tpl, values)}'
        self._order_by = _direction_re.sub(lambda m: m.group(1).upper(), order)
        return self

    def group_by(self, *fields: str) -> 'QueryBuilder':
        if not fields:
            raise ValueError('group_by() expects one or more fields')
        self._group_by = 'GROUP BY ' + ', '.join(format_fields('', fields))
        return self

    def having(self, tpl: str, values: Optional[Values] = None) -> 'QueryBuilder':
        if not self._group_by:
            raise ValueError('Call group_by() before having()')
        self._group_by += ' HAVING ' + self.format(tpl, values)
        return self

    def offset(self, rows: int) -> 'QueryBuilder':
        if rows < 0:
            raise ValueError(f'rows must be >= 0, got {rows}')
        self._offset_rows = int(rows)
        return self

    def skip(self, rows: int) -> 'QueryBuilder':
        return self.offset(rows)

    def limit(self, rows: int) -> 'QueryBuilder':
        if rows < 0:
            raise ValueError(f'rows must be >= 0, got {rows}')
        self._limit_rows = int(rows)
        return self

    def options(self, options: Mapping) -> 'QueryBuilder':
        """Apply skip/offset/limit/order_by/group_by/fields from one mapping."""
        if not isinstance(options, Mapping):
            raise TypeError(f'options must be a mapping, got {type(options).__name__}')
        if options.get('skip') is not None:
            self.offset(options['skip'])
        if options.get('offset') is not None:
            self.offset(options['offset'])
        if options.get('limit') is not None:
            self.limit(options['limit'])
        if options.get('order_by') is not None:
            self.order_by(options['order_by'])
        group_by = options.get('group_by')
        if group_by is not None:
            self.group_by(*([group_by] if isinstance(group_by, str) else group_by))
        if options.get('fields') is not None:
            self.fields(*options['fields'])
        return self

    # rendering

    def _build_select(self, where: str, limit: str) -> str:
        fields = list(self._fields)
        tail = []
        alias = self._alias
        if alias:
            tail.append(f'AS {escape_id(alias)}')
        if self._joins:
            fields = format_fields(escape_id(alias) if alias else self._table_escaped, fields)
            for j in self._joins:
                name = escape_id(j['table'])
                clause = f'{j["kind"]} {name}'
                prefix = j['alias']
                if prefix:
                    prefix = escape_id(prefix)
                    clause += f' AS {prefix}'
                else:
                    prefix = name
                if j['on']:
                    clause += f' ON {j["on"]}'
                fields.extend(format_fields(prefix, j['fields']))
                tail.append(clause)
        if not fields:
            fields = ['*']
        return _join_parts(
            f'{self._type} {", ".join(fields)} FROM {self._table_escaped}',
            *tail, where, self._group_by, self._order_by, limit,
        )

    def _build_custom(self, limit: str) -> str:
        macros = {
            '$table': self._table_escaped,
            '$fields': ', '.join(self._fields),
            '$orderBy': self._order_by,
            '$limit': limit,
            '$skipRows': self._offset_rows,
            '$offsetRows': self._offset_rows,
            '$limitRows': self._limit_rows,
        }
        sql = sql_format_object(self._sql_tpl, macros, disable_escape=True)
        return self.format(sql, self._sql_values)

    def build(self) -> str:
        """Render the statement. Does not change builder state."""
        if not self._table:
            raise ValueError('Missing table name')
        conditions = [c.strip() for c in self._conditions if c.strip()]
        where = f'WHERE {" AND ".join(conditions)}' if conditions else ''
        limit = limit_clause(self._offset_rows, self._limit_rows)
        table = self._table_escaped

        if self._type in select_types:
            sql = self._build_select(where, limit)
        elif self._type is QueryType.INSERT:
            sql = f'INSERT INTO {table} {self._insert}'
        elif self._type is QueryType.UPDATE:
            if not self._update:
                raise ValueError('Update data cannot be empty')
            sql = _join_parts(f'UPDATE {table} SET {", ".join(self._update)}', where, self._order_by, limit)
        elif self._type is QueryType.INSERT_OR_UPDATE:
            if not self._update:
                raise ValueError('Update data cannot be empty')
            sql = f'INSERT INTO {table} {self._insert} ON DUPLICATE KEY UPDATE {", ".join(self._update)}'
        elif self._type is QueryType.DELETE:
            sql = _join_parts(f'DELETE FROM {table}', where, self._order_by, limit)
        elif self._type is QueryType.CUSTOM:
            sql = self._build_custom(limit)
        else:
            raise ValueError(f'Invalid query type "{self._type or ""}"')
        return sql.strip()


def table(name: str) -> QueryBuilder:
    return QueryBuilder().table(name)


def select(*fields: str) -> QueryBuilder:
    return QueryBuilder().select(*fields)


def select_distinct(*fields: str) -> QueryBuilder:
    return QueryBuilder().select_distinct(*fields)


def insert(data: Union[Mapping, Sequence[Mapping]]) -> QueryBuilder:
    return QueryBuilder().insert(data)


def update(data: Union[str, Mapping, None] = None, values: Optional[Values] = None) -> QueryBuilder:
    return QueryBuilder().update(data, values)


def delete() -> QueryBuilder:
    return QueryBuilder().delete()


def expr() -> Expression:
    return Expression()
