"""
Local Store.

Manages the local SQLite connection.  The REST API is the only
authoritative store; SQLite holds client-side state that must survive
a restart:

- ``app_settings``: last settings document fetched from the server,
  used when the server cannot be reached.
- ``audit_log``: queryable copy of auth audit events.

Data access lives in the services; this module only manages the
connection and its write lock.

Usage::

    store = LocalStore(
        sqlite_path=Path("familyaid_local.db"),
        logger=StructuredLogger(name="database"),
    )
"""

from __future__ import annotations

import sqlite3
import threading
from pathlib import Path

from familyaid.logger import StructuredLogger


class LocalStore:
    """Owns the SQLite connection shared by the client services.

    Parameters
    ----------
    sqlite_path:
        Filesystem path for the database file, or ``":memory:"``.
    logger:
        A ``StructuredLogger`` instance.
    """

    def __init__(self, sqlite_path: Path | str, logger: StructuredLogger) -> None:
        self._logger: StructuredLogger = logger
        self._write_lock: threading.RLock = threading.RLock()
        self._closed: bool = False
        self._sqlite_conn: sqlite3.Connection = self._connect_sqlite(sqlite_path)

    @property
    def sqlite(self) -> sqlite3.Connection:
        """Return the SQLite connection."""
        return self._sqlite_conn

    @property
    def write_lock(self) -> threading.RLock:
        """Lock to hold around every write + ``commit()`` pair::

            with store.write_lock:
                store.sqlite.execute("INSERT ...")
                store.sqlite.commit()
        """
        return self._write_lock

    def close(self) -> None:
        """Close the connection.  Safe to call multiple times."""
        with self._write_lock:
            if self._closed:
                return
            try:
                self._sqlite_conn.close()
                self._logger.info("SQLite connection closed.")
            except sqlite3.ProgrammingError:
                pass
            self._closed = True

    def _connect_sqlite(self, path: Path | str) -> sqlite3.Connection:
        """Open (or create) the database.

        Raises
        ------
        PermissionError
            If the OS denies access to the file or its directory.
        """
        try:
            conn = sqlite3.connect(str(path), check_same_thread=False)
            conn.row_factory = sqlite3.Row
            if str(path) != ":memory:":
                conn.execute("PRAGMA journal_mode=WAL;")
            self._logger.info("SQLite database opened at %s", path)
            return conn
        except PermissionError as exc:
            msg = (
                f"Cannot open the local database at '{path}'. "
                "The file or its directory may be read-only or locked by "
                "another process."
            )
            self._logger.error(msg)
            raise PermissionError(msg) from exc
