"""Application configuration read from environment variables."""

import os

DB_CONFIG = {
    'conn_str': os.environ.get('CHAINSQL_DB_URL', 'sqlite:///chainsql.db'),
    'pool_size': int(os.environ.get('CHAINSQL_POOL_SIZE', '5')),
    'pool_timeout': int(os.environ.get('CHAINSQL_POOL_TIMEOUT', '30')),
    'debug': os.environ.get('CHAINSQL_DEBUG', '').lower() in ('1', 'true', 'yes'),
    'log_level': os.environ.get('CHAINSQL_LOG_LEVEL', 'INFO').upper(),
}
