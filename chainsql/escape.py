"""Value and identifier escaping for backtick-quoted MySQL SQL."""

import math
import numbers
import re
from collections.abc import Mapping
from datetime import date, datetime, timedelta, timezone, tzinfo
from decimal import Decimal
from typing import Any, Optional, Union

from .mappings import escape_chars

_chars_re = re.compile('[\0\b\t\n\r\x1a"\'\\\\]')
_tz_re = re.compile(r'([+\-\s])(\d\d):?(\d\d)?')

TimeZone = Union[str, tzinfo]


class _Missing:
    """Marker for an explicitly absent value."""
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return 'MISSING'

    def __bool__(self) -> bool:
        return False

    def __copy__(self):
        return self

    def __deepcopy__(self, memo):
        return self


MISSING = _Missing()


class Raw:
    """SQL text that is spliced verbatim wherever a value is expected."""
    __slots__ = ('sql',)

    def __init__(self, sql: str):
        if not isinstance(sql, str):
            raise TypeError(f'argument sql must be a string, got {type(sql).__name__}')
        self.sql = sql

    def to_sql_string(self) -> str:
        return self.sql

    def __eq__(self, other: Any) -> bool:
        return isinstance(other, Raw) and other.sql == self.sql

    def __hash__(self) -> int:
        return hash(self.sql)

    def __repr__(self) -> str:
        return f'Raw({self.sql!r})'


def raw(sql: str) -> Raw:
    """Mark SQL text to bypass value escaping."""
    return Raw(sql)


def escape_id(value: Any, forbid_qualified: bool = False) -> str:
    """Quote an identifier (or list of identifiers) with backticks.

    Embedded backticks are doubled. Unless ``forbid_qualified`` is set, a
    dotted name such as ``table.column`` becomes `` `table`.`column` ``.
    Nested lists are flattened into one comma-separated list.
    """
    if isinstance(value, (list, tuple)):
        return ', '.join(escape_id(v, forbid_qualified) for v in value)
    name = str(value).replace('`', '``')
    if not forbid_qualified:
        name = name.replace('.', '`.`')
    return f'`{name}`'


def escape_string(value: str) -> str:
    """Backslash-escape SQL-significant characters and single-quote the result."""
    return "'" + _chars_re.sub(lambda m: escape_chars[m.group(0)], value) + "'"


def _number_to_string(value: Any) -> str:
    if isinstance(value, float):
        if math.isnan(value):
            return 'NaN'
        if math.isinf(value):
            return 'Infinity' if value > 0 else '-Infinity'
        if value.is_integer() and abs(value) < 1e21:
            return str(int(value))
        return repr(value)
    if isinstance(value, Decimal):
        if value.is_nan():
            return 'NaN'
        if value.is_infinite():
            return 'Infinity' if value > 0 else '-Infinity'
        return str(value)
    if isinstance(value, numbers.Integral):
        return str(int(value))
    return str(value)


def convert_timezone(tz: str) -> Optional[float]:
    """Return the offset in minutes for "Z" or "+HH[:MM]" strings, None if unknown."""
    if tz == 'Z':
        return 0
    m = _tz_re.search(tz)
    if m:
        sign = -1 if m.group(1) == '-' else 1
        hours = int(m.group(2))
        minutes = int(m.group(3)) if m.group(3) else 0
        return sign * (hours + minutes / 60) * 60
    return None


def date_to_string(value: Union[date, datetime], time_zone: TimeZone = 'local') -> str:
    """Render a date as a quoted 'YYYY-MM-DD HH:MM:SS.mmm' literal."""
    if value != value:
        # pandas NaT
        return 'NULL'
    if not isinstance(value, datetime):
        dt = datetime(value.year, value.month, value.day)
    elif isinstance(time_zone, tzinfo):
        dt = value.astimezone(time_zone)
    elif time_zone == 'local':
        dt = value.astimezone() if value.tzinfo is not None else value
    else:
        # naive datetimes are local wall-clock time; astimezone() assumes the same
        dt = value.astimezone(timezone.utc)
        offset = convert_timezone(time_zone)
        if offset:
            dt = dt + timedelta(minutes=offset)
    text = (
        f'{dt.year:04d}-{dt.month:02d}-{dt.day:02d} '
        f'{dt.hour:02d}:{dt.minute:02d}:{dt.second:02d}.{dt.microsecond // 1000:03d}'
    )
    return escape_string(text)


def array_to_list(values: Union[list, tuple], time_zone: TimeZone = 'local') -> str:
    """Render a list as comma-joined values; nested lists become (tuples)."""
    parts = []
    for v in values:
        if isinstance(v, (list, tuple)):
            parts.append(f'({array_to_list(v, time_zone)})')
        else:
            parts.append(escape_value(v, True, time_zone))
    return ', '.join(parts)


def object_to_values(obj: Mapping, time_zone: TimeZone = 'local') -> str:
    """Render a mapping as `` `key` = value `` pairs, skipping callables."""
    return ', '.join(
        f'{escape_id(k)} = {escape_value(v, True, time_zone)}'
        for k, v in obj.items() if not callable(v)
    )


def escape_value(value: Any, stringify_objects: bool = False, time_zone: TimeZone = 'local') -> str:
    """Convert a Python value into a SQL literal."""
    if value is None or value is MISSING:
        return 'NULL'
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, (date, datetime)):
        return date_to_string(value, time_zone)
    if isinstance(value, numbers.Number) and not isinstance(value, complex):
        return _number_to_string(value)
    if isinstance(value, (list, tuple)):
        return array_to_list(value, time_zone)
    to_sql = getattr(value, 'to_sql_string', None)
    if callable(to_sql):
        return str(to_sql())
    if isinstance(value, Mapping):
        if stringify_objects:
            return escape_string(str(value))
        return object_to_values(value, time_zone)
    return escape_string(str(value))
