"""
SQLite-based cache store for responses that should survive restarts.
"""

import json
import logging
import sqlite3
import threading
import time
from pathlib import Path
from typing import Any, Callable, Optional, Union

from .base import CacheStore


logger = logging.getLogger(__name__)


class SqliteCacheStore(CacheStore):
    """
    SQLite-based implementation of the cache store.
    
    Values are stored as JSON text with an absolute expiry timestamp; expired
    rows are removed when they are read.
    """

    def __init__(
        self,
        db_path: Union[str, Path],
        auto_init: bool = True,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize the SQLite cache store.
        
        Args:
            db_path: Path to the SQLite database file (":memory:" for a
                throwaway database)
            auto_init: Whether to create tables automatically
            clock: Wall clock used for expiry
        """
        self.db_path = db_path
        self.conn = None
        self._clock = clock
        self._lock = threading.Lock()
        self._connect()
        
        if auto_init:
            self._init_schema()

    def _connect(self) -> None:
        """Establish database connection."""
        if str(self.db_path) != ":memory:":
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        self.conn = sqlite3.connect(
            str(self.db_path),
            check_same_thread=False
        )
        self.conn.row_factory = sqlite3.Row
        logger.debug(f"Connected to SQLite cache store: {self.db_path}")

    def _init_schema(self) -> None:
        """Initialize database schema."""
        with self._lock:
            cursor = self.conn.cursor()
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS response_cache (
                    cache_key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    expires_at REAL
                )
            """)
            self.conn.commit()
        logger.debug("Initialized cache store schema")

    def has(self, key: str) -> bool:
        return self._fetch(key) is not None

    def get(self, key: str) -> Optional[Any]:
        value = self._fetch(key)
        if value is None:
            return None
        return json.loads(value)

    def set(self, key: str, value: Any, ttl: int) -> bool:
        expires_at = self._clock() + ttl if ttl and ttl > 0 else None
        with self._lock:
            cursor = self.conn.cursor()
            cursor.execute("""
                INSERT OR REPLACE INTO response_cache (cache_key, value, expires_at)
                VALUES (?, ?, ?)
            """, (key, json.dumps(value), expires_at))
            self.conn.commit()
        logger.debug(f"Stored cache entry {key[:16]}")
        return True

    def _fetch(self, key: str) -> Optional[str]:
        """Return the stored JSON text for a live key, purging it if expired."""
        with self._lock:
            cursor = self.conn.cursor()
            cursor.execute(
                "SELECT value, expires_at FROM response_cache WHERE cache_key = ?",
                (key,),
            )
            row = cursor.fetchone()
            if row is None:
                return None
            if row["expires_at"] is not None and row["expires_at"] <= self._clock():
                cursor.execute("DELETE FROM response_cache WHERE cache_key = ?", (key,))
                self.conn.commit()
                return None
            return row["value"]

    def close(self) -> None:
        """Close the database connection."""
        if self.conn:
            self.conn.close()
            self.conn = None
