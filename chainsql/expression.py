"""Boolean expression builder for grouped AND/OR conditions."""

from collections.abc import Mapping
from typing import Optional, Union

from .conditions import check_undefined, condition_strings
from .formatter import Values, format_template


class Expression:
    """Accumulates AND/OR fragments and renders them as one parenthesised expression.

    Example::

        expr().and_('a=?', [1]).or_({'b': 2}).build()  # "(a=1 OR `b`=2)"
    """

    def __init__(self):
        self._data = ''

    def format(self, tpl: str, values: Optional[Values] = None) -> str:
        """Format a template with positional or named values."""
        return format_template(tpl, values)

    def _combine(self, connector: str, condition: Union[str, Mapping, 'Expression'], values: Optional[Values]) -> 'Expression':
        if condition is None:
            raise ValueError('Missing condition')
        if isinstance(condition, str):
            if not condition.strip():
                raise ValueError('Missing condition')
            fragment = self.format(condition, values)
        elif isinstance(condition, Expression):
            fragment = condition.build()
        elif isinstance(condition, Mapping):
            if not condition:
                raise ValueError('Missing condition')
            check_undefined(condition)
            fragment = ' AND '.join(condition_strings(condition))
        else:
            raise TypeError(f'Condition must be a string, mapping or Expression, got {type(condition).__name__}')
        self._data += f' {connector} {fragment}'
        return self

    def and_(self, condition: Union[str, Mapping, 'Expression'], values: Optional[Values] = None) -> 'Expression':
        return self._combine('AND', condition, values)

    def or_(self, condition: Union[str, Mapping, 'Expression'], values: Optional[Values] = None) -> 'Expression':
        return self._combine('OR', condition, values)

    def build(self) -> str:
        """Render as "(...)" with the leading connector removed."""
        text = self._data.strip()
        if not text:
            raise ValueError('Expression cannot be empty')
        if text.startswith('AND '):
            text = text[4:]
        elif text.startswith('OR '):
            text = text[3:]
        return f'({text})'

    def __repr__(self) -> str:
        return f'Expression({self._data.strip()!r})'
