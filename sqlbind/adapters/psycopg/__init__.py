from sqlbind.adapters.psycopg._typing import PsycopgConnection
from sqlbind.adapters.psycopg.config import (
    DATABASE_URL_ENV,
    DEFAULT_DATABASE_URL,
    PsycopgConfig,
    PsycopgConnectionConfig,
    database_url,
)
from sqlbind.adapters.psycopg.core import create_mapped_exception, map_sqlstate_to_exception
from sqlbind.adapters.psycopg.driver import PsycopgDriver

__all__ = (
    "DATABASE_URL_ENV",
    "DEFAULT_DATABASE_URL",
    "PsycopgConfig",
    "PsycopgConnection",
    "PsycopgConnectionConfig",
    "PsycopgDriver",
    "create_mapped_exception",
    "database_url",
    "map_sqlstate_to_exception",
)
