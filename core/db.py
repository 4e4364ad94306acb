"""
core/db.py -- Shared SQLAlchemy engine factory and schema metadata.

Both stores (auth/store.py and blog/store.py) register their tables on the
single MetaData object below. posts.author_id is a real foreign key to
users.id, so both tables must live in one database and one MetaData. Each
store calls metadata.create_all() on construction; create_all is idempotent.

SQLite PRAGMAs are per-connection and are not inherited by new pool
connections, so they are applied from a "connect" event listener.
"""

from __future__ import annotations

import logging

from sqlalchemy import MetaData, create_engine, event
from sqlalchemy.engine import Engine

logger = logging.getLogger("inkpost.db")

metadata = MetaData()


def _set_sqlite_pragmas(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode and foreign key enforcement.

    SQLite ships with foreign keys OFF; without this pragma a post could
    reference a user id that does not exist.
    """
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_db_engine(db_url: str) -> Engine:
    """Create the process-wide Engine for db_url."""
    connect_args: dict = {}
    if db_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    engine = create_engine(db_url, connect_args=connect_args)
    if db_url.startswith("sqlite"):
        event.listen(engine, "connect", _set_sqlite_pragmas)
    logger.debug("Engine created (%s)", engine.url.drivername)
    return engine

