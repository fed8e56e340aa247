"""Positional (?) and named (:name) placeholder substitution."""

import re
from collections.abc import Mapping
from typing import Any, Optional, Protocol, Sequence, Union, runtime_checkable

from .escape import escape_id, escape_value

_positional_re = re.compile(r'\?+')
_named_re = re.compile(r':(:{0,2}[\w$]+)')


@runtime_checkable
class Renderable(Protocol):
    """Anything that renders itself to SQL text, e.g. a query or expression builder."""

    def build(self) -> str:
        ...


Values = Union[Sequence[Any], Mapping]


def _splice(value: Any, label: str) -> str:
    """Return raw text verbatim or a builder's SQL in parentheses."""
    if isinstance(value, str):
        return value
    if isinstance(value, Renderable):
        sql = value.build()
        if not isinstance(sql, str):
            raise TypeError(f'{label}.build() must return a string, got {type(sql).__name__}')
        return f'({sql})'
    raise TypeError(f'{label} must be a string or query builder, got {value!r}')


def sql_format(tpl: str, values: Sequence[Any]) -> str:
    """Fill ?, ?? and ??? placeholders from a list of values, left to right.

    ``?`` takes an escaped value, ``??`` an escaped identifier and ``???``
    raw text or a parenthesised sub-query. Placeholders past the end of
    ``values`` are left as they are, and so are runs of four or more ``?``.
    """
    values = list(values)
    index = 0

    def repl(m: re.Match) -> str:
        nonlocal index
        token = m.group(0)
        if len(token) > 3 or index >= len(values):
            return token
        v = values[index]
        index += 1
        if len(token) == 1:
            return escape_value(v)
        if len(token) == 2:
            return escape_id(v)
        return _splice(v, f'sql_format: values[{index - 1}]')

    return _positional_re.sub(repl, tpl)


def sql_format_object(tpl: str, values: Mapping, disable_escape: bool = False) -> str:
    """Fill :name, ::name and :::name placeholders from a mapping.

    Names missing from ``values`` keep their placeholder text. With
    ``disable_escape`` every form is replaced by ``str(value)`` unchanged.
    """
    def repl(m: re.Match) -> str:
        key = m.group(1)
        if key.startswith('::'):
            kind, name = 'raw', key[2:]
        elif key.startswith(':'):
            kind, name = 'id', key[1:]
        else:
            kind, name = 'value', key
        if name not in values:
            return m.group(0)
        v = values[name]
        if disable_escape:
            return str(v)
        if kind == 'id':
            return escape_id(v)
        if kind == 'raw':
            return _splice(v, f'sql_format_object: values[{name!r}]')
        return escape_value(v)

    return _named_re.sub(repl, tpl)


def format_template(tpl: str, values: Optional[Values] = None) -> str:
    """Dispatch to positional or named formatting based on the type of ``values``."""
    if not isinstance(tpl, str):
        raise TypeError(f'template must be a string, got {type(tpl).__name__}')
    if values is None:
        return tpl
    if isinstance(values, (list, tuple)):
        return sql_format(tpl, values)
    if isinstance(values, Mapping):
        return sql_format_object(tpl, values)
    raise TypeError(f'values must be a list or mapping, got {type(values).__name__}')
