"""Flask app for chainsql query generation and execution."""

import logging
from typing import Any, Dict, List, Optional

import pandas as pd
from flask import Flask, Response, current_app, g, jsonify, request
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException

from chainsql import df_sql, json_delete, json_insert, json_select, json_update
from chainsql_db import SqlCon
from config import DB_CONFIG

app = Flask(__name__)
app.config['DB_CONFIG'] = dict(DB_CONFIG)
logger = logging.getLogger(__name__)


def get_db() -> SqlCon:
    """Get or create SqlCon instance in Flask context."""
    if 'db' not in g:
        cfg = current_app.config['DB_CONFIG']
        g.db = SqlCon(
            cfg['conn_str'], pool_size=cfg.get('pool_size', 5),
            pool_timeout=cfg.get('pool_timeout', 30), debug=cfg.get('debug', False)
        )
    return g.db


def validate_payload(payload: Optional[Dict[str, Any]], required: List[str]) -> Dict[str, Any]:
    """Ensure the request body is a JSON object holding the required keys."""
    if not isinstance(payload, dict):
        raise ValueError('Request body must be a JSON object')
    missing = [k for k in required if k not in payload]
    if missing:
        raise ValueError(f'Missing required fields: {missing}')
    return payload


def run_statements(statements: List[str], what: str) -> List[List[Dict[str, Any]]]:
    con = get_db()
    try:
        return [con.execute(sql) for sql in statements]
    except SQLAlchemyError as e:
        raise ValueError(f'{what} execution failed: {e}') from e


@app.errorhandler(ValueError)
@app.errorhandler(TypeError)
def handle_value_error(e: Exception) -> Response:
    """Handle invalid input with 400 response."""
    return jsonify({'error': str(e)}), 400


@app.errorhandler(Exception)
def handle_general_error(e: Exception) -> Response:
    """Handle unexpected errors with 500 response."""
    if isinstance(e, HTTPException):
        return e
    logger.error(f'Server error: {e}')
    return jsonify({'error': 'Internal server error'}), 500


@app.route('/query/select', methods=['POST'])
def select_query():
    """Generate or execute SELECT query from JSON payload."""
    payload = validate_payload(request.get_json(silent=True), ['table'])
    sql = json_select(payload)
    if not payload.get('execute', False):
        return jsonify({'sql': sql})
    rows, = run_statements([sql], 'Query')
    return jsonify({'sql': sql, 'result': rows})


@app.route('/query/insert', methods=['POST'])
def insert_query():
    """Generate or execute INSERT queries from JSON payload."""
    payload = validate_payload(request.get_json(silent=True), ['rows'])
    statements = json_insert(payload['rows'], multi_row=payload.get('multi_row', True))
    if not payload.get('execute', False):
        return jsonify({'sql': statements})
    run_statements(statements, 'Insert')
    return jsonify({'status': 'success', 'rows_affected': len(payload['rows'])})


@app.route('/query/update', methods=['POST'])
def update_query():
    """Generate or execute UPDATE query from JSON payload."""
    payload = validate_payload(request.get_json(silent=True), ['table', 'updateValues'])
    sql = json_update(payload)
    if not payload.get('execute', False):
        return jsonify({'sql': sql})
    run_statements([sql], 'Update')
    return jsonify({'status': 'success'})


@app.route('/query/delete', methods=['POST'])
def delete_query():
    """Generate or execute DELETE query from JSON payload."""
    payload = validate_payload(request.get_json(silent=True), ['table'])
    sql = json_delete(payload)
    if not payload.get('execute', False):
        return jsonify({'sql': sql})
    run_statements([sql], 'Delete')
    return jsonify({'status': 'success'})


@app.route('/query/dataframe', methods=['POST'])
def dataframe_query():
    """Generate or execute INSERT statements for tabular data."""
    payload = validate_payload(request.get_json(silent=True), ['data', 'table'])
    df = pd.DataFrame(payload['data'])
    statements = df_sql(
        df, payload['table'], payload.get('columns'),
        update_columns=payload.get('update_columns'),
        chunk_size=payload.get('chunk_size', 1000)
    )
    if not payload.get('execute', False):
        return jsonify({'sql': statements})
    run_statements(statements, 'DataFrame insert')
    return jsonify({'status': 'success', 'statements': len(statements)})


@app.teardown_appcontext
def close_db(error):
    """Close SqlCon instance on app context teardown."""
    if 'db' in g:
        g.pop('db').close()


if __name__ == '__main__':
    logging.basicConfig(level=DB_CONFIG['log_level'])
    app.run(debug=DB_CONFIG['debug'])
