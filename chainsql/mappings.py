"""Escape tables, operator mappings and query type constants."""

from enum import Enum

# Largest unsigned BIGINT, used as the row count for "skip without limit"
max_unsigned_bigint = 18446744073709551615

# Characters that must be backslash-escaped inside quoted string literals
escape_chars = {
    '\0': '\\0',
    '\b': '\\b',
    '\t': '\\t',
    '\n': '\\n',
    '\r': '\\r',
    '\x1a': '\\Z',
    '"': '\\"',
    "'": "\\'",
    '\\': '\\\\',
}

# Comparison operators taking a single escaped right-hand side
comparison_operators = {
    '$eq': '=',
    '$ne': '<>',
    '$lt': '<',
    '$lte': '<=',
    '$gt': '>',
    '$gte': '>=',
}

list_operators = {
    '$in': 'IN',
    '$notIn': 'NOT IN',
}

like_operators = {
    '$like': 'LIKE',
    '$notLike': 'NOT LIKE',
}

null_operators = {
    '$isNull': 'IS NULL',
    '$isNotNull': 'IS NOT NULL',
}

# Literal guards rendered in place of "IN ()" for an empty list
empty_list_guards = {
    '$in': '0',
    '$notIn': '1',
}

update_operators = {
    '$incr': '+',
    '$decr': '-',
}

raw_key = '$raw'


class QueryType(str, Enum):
    """Statement kinds a query builder can render."""
    SELECT = 'SELECT'
    SELECT_DISTINCT = 'SELECT DISTINCT'
    INSERT = 'INSERT'
    INSERT_OR_UPDATE = 'INSERT_OR_UPDATE'
    UPDATE = 'UPDATE'
    DELETE = 'DELETE'
    CUSTOM = 'CUSTOM'

    def __str__(self) -> str:
        return self.value


select_types = (QueryType.SELECT, QueryType.SELECT_DISTINCT)
