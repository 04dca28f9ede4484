# database/__init__.py
from __future__ import annotations

from pathlib import Path
import sqlite3

from ..config import DB_PATH
from ..constants import SCHEMA_VERSION, TABLE_SCHEMA_VERSION
from ..errors import DomainError, map_sqlite_error
from . import schema as schema_module


def _schema_version(conn: sqlite3.Connection) -> str | None:
    has_table = conn.execute(
        "SELECT 1 FROM sqlite_master WHERE type='table' AND name=?;",
        (TABLE_SCHEMA_VERSION,),
    ).fetchone()
    if has_table is None:
        return None
    row = conn.execute(
        f"SELECT version FROM {TABLE_SCHEMA_VERSION} WHERE id=1;"
    ).fetchone()
    return row["version"] if row else None


def get_connection(db_path: Path | str | None = None) -> sqlite3.Connection:
    """
    Returns a sqlite3.Connection with:
      - WAL mode
      - foreign_keys ON
      - row_factory = sqlite3.Row (so rows behave like dicts and tuples)
      - isolation_level=None, so repositories own BEGIN/COMMIT explicitly
    Applies the schema when the stored version differs from SCHEMA_VERSION.
    sqlite errors while opening surface as DomainError (locked -> ConflictError).
    """
    path = Path(db_path) if db_path is not None else DB_PATH
    path.parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(path, timeout=5.0, isolation_level=None)
    conn.row_factory = sqlite3.Row
    try:
        conn.execute("PRAGMA foreign_keys = ON;")
        conn.execute("PRAGMA journal_mode = WAL;")
        if _schema_version(conn) != SCHEMA_VERSION:
            schema_module.init_schema(conn)
    except sqlite3.Error as e:
        conn.close()
        raise map_sqlite_error(e) from e
    except DomainError:
        conn.close()
        raise
    return conn


__all__ = [
    "get_connection",
]
