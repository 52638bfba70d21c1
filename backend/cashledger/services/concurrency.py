# Overview: Service-layer operations for concurrency; row locks and read snapshots.

from __future__ import annotations

from contextlib import contextmanager

from sqlalchemy import event
from sqlalchemy.pool import StaticPool

from ..extensions import db


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    """
    return query.with_for_update()


def enable_sqlite_snapshots(engine) -> None:
    """
    Make pysqlite open its transaction on the first statement, reads included.

    The driver defers BEGIN until the first write, so a group of SELECTs
    would each see the latest committed state instead of one snapshot.
    In-memory databases share a single connection between sessions and
    are left on the driver default.
    """
    if engine.dialect.name != "sqlite" or isinstance(engine.pool, StaticPool):
        return

    @event.listens_for(engine, "connect")
    def _disable_driver_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _begin(conn):
        conn.exec_driver_sql("BEGIN")


@contextmanager
def read_snapshot():
    """
    Run a group of reads on one connection inside one transaction.

    Cut history, sales, credit payments, expenses and refunds for a single
    reconciliation must come from the same view of the store. The read
    transaction is closed afterwards unless the caller has pending writes.
    File-backed SQLite only gives a real snapshot once
    enable_sqlite_snapshots has been applied to its engine; in-memory
    SQLite gives none.
    """
    session = db.session
    session.connection()
    try:
        yield session
    finally:
        if not (session.new or session.dirty or session.deleted):
            session.rollback()


def commit_or_rollback() -> None:
    """
    Commit the current money write exactly once.

    Financial writes are never retried: a retried payment or cut could be
    counted twice. On failure the session is rolled back and the error
    propagates to the caller.
    """
    try:
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
