"""Session state stores.

The engine keeps no collections of its own: reminders and the shopping list
live in a session-keyed store read and written through get / set /
append_state_delta. Values must be JSON-compatible.
"""

import copy
import json
import sqlite3
import threading
import time
from abc import ABC, abstractmethod
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Optional

from logger import logger


class StoreUnavailableError(RuntimeError):
    """The session does not exist or the backing store cannot be reached."""


class StateStore(ABC):
    """Session-keyed key/value state."""

    @abstractmethod
    def create_session(self, session_key: str) -> None:
        """Create an empty session if it does not exist."""

    @abstractmethod
    def get_session(self, session_key: str) -> Optional[dict]:
        """Full state of a session, or None when there is no such session."""

    @abstractmethod
    def get(self, session_key: str, field: str, default: Any = None) -> Any:
        """Read one field (a copy), creating nothing."""

    @abstractmethod
    def set(self, session_key: str, field: str, value: Any) -> None:
        """Write one field, creating the session if needed."""

    @abstractmethod
    def append_state_delta(self, session_key: str, delta: dict) -> None:
        """Write several fields atomically to an existing session.

        Raises:
            StoreUnavailableError: if the session does not exist
        """


class MemoryStateStore(StateStore):
    """In-process store. Values are deep-copied in and out."""

    def __init__(self):
        self._sessions: dict[str, dict] = {}
        self._lock = threading.Lock()

    def create_session(self, session_key: str) -> None:
        with self._lock:
            self._sessions.setdefault(session_key, {})

    def get_session(self, session_key: str) -> Optional[dict]:
        with self._lock:
            state = self._sessions.get(session_key)
            return copy.deepcopy(state) if state is not None else None

    def get(self, session_key: str, field: str, default: Any = None) -> Any:
        with self._lock:
            state = self._sessions.get(session_key, {})
            return copy.deepcopy(state.get(field, default))

    def set(self, session_key: str, field: str, value: Any) -> None:
        with self._lock:
            self._sessions.setdefault(session_key, {})[field] = copy.deepcopy(value)

    def append_state_delta(self, session_key: str, delta: dict) -> None:
        with self._lock:
            state = self._sessions.get(session_key)
            if state is None:
                raise StoreUnavailableError(f"No active session: {session_key}")
            state.update(copy.deepcopy(delta))


class SqliteStateStore(StateStore):
    """Durable store on SQLite (WAL mode), one JSON value per (session, field)."""

    def __init__(self, db_path: str):
        self.db_path = db_path
        self._connection: Optional[sqlite3.Connection] = None
        self._lock = threading.Lock()

    def _get_connection(self) -> sqlite3.Connection:
        """Get or create database connection with WAL mode."""
        if self._connection is not None:
            return self._connection

        try:
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(self.db_path, check_same_thread=False, timeout=10.0)
            conn.execute("PRAGMA journal_mode=WAL")
            conn.execute("PRAGMA busy_timeout=5000")
            self._init_schema(conn)
        except (sqlite3.Error, OSError) as e:
            raise StoreUnavailableError(f"Cannot open state store {self.db_path}: {e}") from e

        self._connection = conn
        logger.info(f"State store initialized: {self.db_path}")
        return conn

    @staticmethod
    def _init_schema(conn: sqlite3.Connection) -> None:
        conn.executescript("""
            CREATE TABLE IF NOT EXISTS sessions (
                session_key TEXT PRIMARY KEY,
                created_at INTEGER NOT NULL
            );

            CREATE TABLE IF NOT EXISTS session_state (
                session_key TEXT NOT NULL,
                field TEXT NOT NULL,
                value TEXT NOT NULL,
                updated_at INTEGER NOT NULL,
                PRIMARY KEY (session_key, field)
            );
        """)
        conn.commit()

    @contextmanager
    def _transaction(self):
        """Serialized transaction; sqlite errors surface as StoreUnavailableError."""
        with self._lock:
            conn = self._get_connection()
            try:
                yield conn
                conn.commit()
            except sqlite3.Error as e:
                conn.rollback()
                raise StoreUnavailableError(f"State store error: {e}") from e
            except Exception:
                conn.rollback()
                raise

    @staticmethod
    def _ensure_session(conn: sqlite3.Connection, session_key: str) -> None:
        conn.execute(
            "INSERT OR IGNORE INTO sessions (session_key, created_at) VALUES (?, ?)",
            (session_key, int(time.time())),
        )

    @staticmethod
    def _write_field(conn: sqlite3.Connection, session_key: str, field: str, value: Any) -> None:
        conn.execute(
            """
            INSERT INTO session_state (session_key, field, value, updated_at)
            VALUES (?, ?, ?, ?)
            ON CONFLICT(session_key, field) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at
            """,
            (session_key, field, json.dumps(value), int(time.time())),
        )

    def create_session(self, session_key: str) -> None:
        with self._transaction() as conn:
            self._ensure_session(conn, session_key)

    def get_session(self, session_key: str) -> Optional[dict]:
        with self._transaction() as conn:
            exists = conn.execute(
                "SELECT 1 FROM sessions WHERE session_key = ?", (session_key,)
            ).fetchone()
            if not exists:
                return None
            rows = conn.execute(
                "SELECT field, value FROM session_state WHERE session_key = ?", (session_key,)
            ).fetchall()
        return {field: json.loads(value) for field, value in rows}

    def get(self, session_key: str, field: str, default: Any = None) -> Any:
        with self._transaction() as conn:
            row = conn.execute(
                "SELECT value FROM session_state WHERE session_key = ? AND field = ?",
                (session_key, field),
            ).fetchone()
        return json.loads(row[0]) if row else default

    def set(self, session_key: str, field: str, value: Any) -> None:
        with self._transaction() as conn:
            self._ensure_session(conn, session_key)
            self._write_field(conn, session_key, field, value)

    def append_state_delta(self, session_key: str, delta: dict) -> None:
        with self._transaction() as conn:
            exists = conn.execute(
                "SELECT 1 FROM sessions WHERE session_key = ?", (session_key,)
            ).fetchone()
            if not exists:
                raise StoreUnavailableError(f"No active session: {session_key}")
            for field, value in delta.items():
                self._write_field(conn, session_key, field, value)

    def close(self) -> None:
        """Close the database connection."""
        with self._lock:
            if self._connection is not None:
                self._connection.close()
                self._connection = None
