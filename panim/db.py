from __future__ import annotations
import sqlite3
from pathlib import Path
from typing import Dict, Optional, Protocol

SCHEMA = r'''
PRAGMA journal_mode=WAL;
PRAGMA synchronous=NORMAL;

CREATE TABLE IF NOT EXISTS kv (
  key TEXT PRIMARY KEY,
  value BLOB NOT NULL
);
'''

class Backend(Protocol):
    def get(self, key: str) -> Optional[bytes]: ...
    def put(self, key: str, value: bytes) -> None: ...

class MemoryBackend:
    def __init__(self, data: Optional[Dict[str, bytes]] = None):
        self.data: Dict[str, bytes] = dict(data or {})

    def get(self, key: str) -> Optional[bytes]:
        return self.data.get(key)

    def put(self, key: str, value: bytes) -> None:
        self.data[key] = bytes(value)

def connect(db_path: str | Path) -> sqlite3.Connection:
    conn = sqlite3.connect(str(db_path))
    conn.row_factory = sqlite3.Row
    return conn

def init_db(conn: sqlite3.Connection) -> None:
    conn.executescript(SCHEMA)
    conn.commit()

class SQLiteBackend:
    """Key-value byte store in a single SQLite table."""

    def __init__(self, db_path: str | Path):
        self.db_path = Path(db_path)
        conn = connect(self.db_path)
        try:
            init_db(conn)
        finally:
            conn.close()

    def get(self, key: str) -> Optional[bytes]:
        conn = connect(self.db_path)
        try:
            row = conn.execute("SELECT value FROM kv WHERE key=?", (key,)).fetchone()
        finally:
            conn.close()
        if row is None:
            return None
        value = row["value"]
        return value.encode("utf-8") if isinstance(value, str) else bytes(value)

    def put(self, key: str, value: bytes) -> None:
        conn = connect(self.db_path)
        try:
            conn.execute(
                "INSERT INTO kv(key,value) VALUES (?,?) "
                "ON CONFLICT(key) DO UPDATE SET value=excluded.value",
                (key, sqlite3.Binary(value)),
            )
            conn.commit()
        finally:
            conn.close()
