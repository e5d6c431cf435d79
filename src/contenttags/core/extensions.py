"""Create all standard extensions."""
import sqlite3
from typing import Any

import sqlalchemy as sa
import sqlalchemy.event
from flask import current_app
from flask_sqlalchemy import SQLAlchemy
from sqlalchemy.engine import Connection, Engine

__all__ = ("db", "get_extension")

db = SQLAlchemy()


def get_extension(name: str):
    """Get the named extension from the current app, returning None if not
    found."""
    return current_app.extensions.get(name)


#
# Make Sqlite a bit more well-behaved.
#
# pysqlite emits its own BEGIN/COMMIT statements, which kill savepoints. We
# disable that and emit BEGIN ourselves, so that `session.begin_nested()`
# works as on other databases. Only connections of the stdlib driver are
# changed: they are marked in the pool record info.
#
_MANUAL_BEGIN = "contenttags.sqlite_manual_begin"


@sa.event.listens_for(Engine, "connect")
def _set_sqlite_pragma(dbapi_connection: Any, connection_record: Any) -> None:
    if isinstance(dbapi_connection, sqlite3.Connection):  # pragma: no cover
        dbapi_connection.isolation_level = None
        connection_record.info[_MANUAL_BEGIN] = True
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON;")
        cursor.close()


@sa.event.listens_for(Engine, "begin")
def _sqlite_begin(connection: Connection) -> None:
    if connection.info.get(_MANUAL_BEGIN):
        connection.exec_driver_sql("BEGIN")
