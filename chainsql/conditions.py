"""Condition and update mappings compiled into WHERE and SET fragments."""

import logging
from collections.abc import Mapping
from typing import Any, List, Optional

from .escape import MISSING, escape_id, escape_value
from .formatter import Renderable
from .mappings import (comparison_operators, empty_list_guards, like_operators, list_operators,
                       null_operators, raw_key, update_operators)

logger = logging.getLogger(__name__)

EQUALS = 'EQUALS'
OPERATOR = 'OPERATOR'
RAW = 'RAW'

condition_operators = {**comparison_operators, **list_operators, **like_operators, **null_operators}


def is_operator_object(info: Any) -> bool:
    """True for a non-empty mapping whose keys all start with '$'."""
    return (
        isinstance(info, Mapping) and len(info) > 0
        and all(isinstance(k, str) and k.startswith('$') for k in info)
    )


def _raw_text(value: Any) -> str:
    to_sql = getattr(value, 'to_sql_string', None)
    return str(to_sql()) if callable(to_sql) else str(value)


class Condition:
    """One predicate on one field: plain equality, an operator, or a raw right-hand side."""
    __slots__ = ('field', 'kind', 'op', 'value')

    def __init__(self, field: str, kind: str, value: Any, op: Optional[str] = None):
        if kind == OPERATOR and op not in condition_operators:
            raise ValueError(f'Unsupported condition operator: {op}')
        self.field = field
        self.kind = kind
        self.op = op
        self.value = value

    def __repr__(self) -> str:
        return f'Condition({self.field!r}, {self.kind}, {self.value!r}, op={self.op!r})'

    @classmethod
    def from_item(cls, field: str, info: Any) -> List['Condition']:
        """Resolve one mapping entry into its condition variants."""
        if not is_operator_object(info):
            return [cls(field, EQUALS, info)]
        out = []
        for op, value in info.items():
            if op == raw_key:
                out.append(cls(field, RAW, value, op))
            else:
                out.append(cls(field, OPERATOR, value, op))
        return out

    def to_sql(self) -> str:
        """Render the predicate fragment."""
        name = escape_id(self.field)
        if self.kind == EQUALS:
            return f'{name}={escape_value(self.value)}'
        if self.kind == RAW:
            return f'{name}={_raw_text(self.value)}'

        op = self.op
        if op in comparison_operators:
            return f'{name}{comparison_operators[op]}{escape_value(self.value)}'

        if op in null_operators:
            if self.value is not True:
                raise ValueError(f'value of {op} in field {self.field} must be True')
            return f'{name} {null_operators[op]}'

        if op in like_operators:
            if not isinstance(self.value, str):
                raise TypeError(f'value for condition type {op} in field {self.field} must be a string')
            return f'{name} {like_operators[op]} {escape_value(self.value)}'

        # $in / $notIn
        sql_op = list_operators[op]
        if isinstance(self.value, Renderable):
            sql = self.value.build()
            if not isinstance(sql, str):
                raise TypeError(f'values[{self.field!r}].{op}.build() must return a string')
            return f'{name} {sql_op} ({sql})'
        if isinstance(self.value, (list, tuple)):
            line = f'{name} {sql_op} ({", ".join(escape_value(v) for v in self.value)})'
            if self.value:
                return line
            logger.warning(f'Empty list for {op} on field {self.field}, rendering constant guard')
            return f'{empty_list_guards[op]} /* empty list warn: {line} */'
        raise TypeError(f'value for condition type {op} in field {self.field} must be a list or query builder')


def condition_strings(condition: Mapping) -> List[str]:
    """Compile a condition mapping into AND-able fragments.

    A top-level ``$raw`` entry is emitted first, verbatim. The caller's
    mapping is left untouched.
    """
    items = dict(condition)
    out = []
    if raw_key in items:
        out.append(_raw_text(items.pop(raw_key)))
    for field, info in items.items():
        out.extend(c.to_sql() for c in Condition.from_item(field, info))
    return out


def find_undefined_keys(data: Mapping) -> List[str]:
    return [k for k, v in data.items() if v is MISSING]


def check_undefined(data: Mapping) -> None:
    """Reject condition mappings holding MISSING values."""
    keys = find_undefined_keys(data)
    if keys:
        raise ValueError(
            f'Found undefined value for condition keys {", ".join(map(str, keys))}; '
            'it may cause unexpected errors'
        )


def update_string(data: Mapping) -> str:
    """Compile update data into a comma-joined SET list.

    A value that is a single-key ``$`` mapping uses ``$incr``, ``$decr`` or
    ``$raw``; any other mapping is escaped as an ordinary value.
    """
    parts = []
    for field, info in data.items():
        name = escape_id(field)
        if not is_operator_object(info):
            parts.append(f'{name}={escape_value(info)}')
            continue
        if len(info) != 1:
            raise ValueError(f'Update of field {field} must use exactly one operator, got {", ".join(info)}')
        (op, value), = info.items()
        if op in update_operators:
            parts.append(f'{name}={name}{update_operators[op]}({escape_value(value)})')
        elif op == raw_key:
            parts.append(f'{name}={_raw_text(value)}')
        else:
            raise ValueError(f'Unsupported update operator: {op}')
    return ', '.join(parts)
