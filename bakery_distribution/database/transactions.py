from __future__ import annotations

import sqlite3
from contextlib import contextmanager

from ..errors import map_sqlite_error


@contextmanager
def immediate_tx(conn: sqlite3.Connection):
    """
    Start an IMMEDIATE transaction (takes the write lock up front),
    commit on success, rollback on error.

    Joins the caller's transaction when one is already open, so engines can
    wrap several repository writes in one unit.

    sqlite3.IntegrityError / OperationalError (trigger RAISE(ABORT), UNIQUE,
    "database is locked") surface as DomainError subclasses.
    """
    if conn.in_transaction:
        try:
            yield
        except (sqlite3.IntegrityError, sqlite3.OperationalError) as e:
            raise map_sqlite_error(e) from e
        return

    try:
        conn.execute("BEGIN IMMEDIATE")
    except sqlite3.OperationalError as e:
        raise map_sqlite_error(e) from e

    try:
        yield
        conn.commit()
    except (sqlite3.IntegrityError, sqlite3.OperationalError) as e:
        conn.rollback()
        raise map_sqlite_error(e) from e
    except BaseException:
        conn.rollback()
        raise


__all__ = ["immediate_tx"]
