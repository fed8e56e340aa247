"""JSON payload handling for SQL queries."""

import logging
from typing import Any, Dict, List

from .query_builder import QueryBuilder

logger = logging.getLogger(__name__)

_join_kinds = {'join': 'join', 'inner': 'join', 'left': 'left_join', 'right': 'right_join'}


def _require(payload: Dict[str, Any], required: List[str]):
    if not isinstance(payload, dict):
        raise ValueError(f'Payload must be an object, got {type(payload).__name__}')
    missing = [k for k in required if k not in payload]
    if missing:
        raise ValueError(f'Missing required fields: {missing}')


def _apply_conditions(q: QueryBuilder, payload: Dict[str, Any]):
    """AND every entry of 'condition' (a string, an object or a list of them) onto q."""
    condition = payload.get('condition')
    if condition is None:
        return
    conditions = condition if isinstance(condition, list) else [condition]
    values = payload.get('values')
    for c in conditions:
        q.where(c, values if isinstance(c, str) else None)


def _refuse_full_table(payload: Dict[str, Any], statement: str):
    if not payload.get('condition') and not payload.get('allow_full'):
        raise ValueError(f'{statement} without WHERE refused; set allow_full if intended')


def _apply_order(q: QueryBuilder, order: Any):
    if isinstance(order, str):
        q.order_by(order)
        return
    if not all(isinstance(o, dict) and 'field' in o and str(o.get('direction', 'ASC')).upper() in ('ASC', 'DESC') for o in order):
        raise ValueError(f'Invalid orderby: {order}')
    tpl = ', '.join(f'?? {str(o.get("direction", "ASC")).upper()}' for o in order)
    q.order_by(tpl, [o['field'] for o in order])


def _apply_paging(q: QueryBuilder, payload: Dict[str, Any]):
    if payload.get('start') is not None:
        q.offset(int(payload['start']))
    if payload.get('limit') is not None:
        q.limit(int(payload['limit']))


def json_select(payload: Dict[str, Any]) -> str:
    """Generate SELECT query from JSON payload."""
    _require(payload, ['table'])
    fields = payload.get('fields') or []
    if isinstance(fields, str):
        fields = [] if fields == '*' else [fields]
    q = QueryBuilder().table(payload['table'])
    if payload.get('distinct'):
        q.select_distinct(*fields)
    else:
        q.select(*fields)
    if payload.get('alias'):
        q.as_(payload['alias'])
    for j in payload.get('joins', []):
        kind = _join_kinds.get(str(j.get('type', 'left')).lower())
        if kind is None or 'table' not in j:
            raise ValueError(f'Invalid join: {j}')
        getattr(q, kind)(j['table'], j.get('fields'))
        if j.get('alias'):
            q.as_(j['alias'])
        if j.get('on'):
            q.on(j['on'], j.get('values'))
    _apply_conditions(q, payload)
    if payload.get('groupby'):
        group_by = payload['groupby']
        q.group_by(*([group_by] if isinstance(group_by, str) else group_by))
        if payload.get('having'):
            q.having(payload['having'], payload.get('having_values'))
    if payload.get('orderby'):
        _apply_order(q, payload['orderby'])
    _apply_paging(q, payload)
    return q.build()


def json_insert(rows: List[Dict[str, Any]], multi_row: bool = True) -> List[str]:
    """Generate INSERT queries from JSON payload.

    Rows sharing one table are merged into a single multi-row INSERT when
    ``multi_row`` is set; a row carrying 'updateValues' becomes its own
    INSERT ... ON DUPLICATE KEY UPDATE.
    """
    if not rows:
        raise ValueError('No rows provided for insert')
    for r in rows:
        _require(r, ['table', 'insertValues'])
    upserts = [r for r in rows if r.get('updateValues')]
    plain = [r for r in rows if not r.get('updateValues')]
    out = []
    if multi_row and plain and len({r['table'] for r in plain}) == 1:
        out.append(QueryBuilder().insert([r['insertValues'] for r in plain]).into(plain[0]['table']).build())
    else:
        out.extend(QueryBuilder().insert(r['insertValues']).into(r['table']).build() for r in plain)
    for r in upserts:
        q = QueryBuilder().insert(r['insertValues']).into(r['table']).on_duplicate_key_update()
        out.append(q.set(r['updateValues']).build())
    logger.debug(f'Generated {len(out)} insert statement(s) for {len(rows)} row(s)')
    return out


def json_update(payload: Dict[str, Any]) -> str:
    """Generate UPDATE query from JSON payload."""
    _require(payload, ['table', 'updateValues'])
    _refuse_full_table(payload, 'UPDATE')
    q = QueryBuilder().table(payload['table']).update(payload['updateValues'], payload.get('updateParams'))
    _apply_conditions(q, payload)
    if payload.get('orderby'):
        _apply_order(q, payload['orderby'])
    _apply_paging(q, payload)
    return q.build()


def json_delete(payload: Dict[str, Any]) -> str:
    """Generate DELETE query from JSON payload."""
    _require(payload, ['table'])
    _refuse_full_table(payload, 'DELETE')
    q = QueryBuilder().table(payload['table']).delete()
    _apply_conditions(q, payload)
    if payload.get('orderby'):
        _apply_order(q, payload['orderby'])
    _apply_paging(q, payload)
    return q.build()
