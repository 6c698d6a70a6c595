"""Disk tier of the image cache, backed by SQLite.

Every operation, reads included, runs on one dedicated worker thread that owns
the SQLite connection, so operations complete strictly in submission order.
Each mutation is a single transaction. Failures are logged and absorbed:
a failed read is a miss, a failed write is a no-op. Callers never see a
StorageError.
"""

import asyncio
import logging
import sqlite3
import time
from concurrent.futures import Future, ThreadPoolExecutor
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Callable, Iterator, Optional, Tuple

from catinfo.domain.models.cache import CacheEntry
from catinfo.domain.models.common import CacheKey
from catinfo.domain.models.errors import StorageError

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1
DEFAULT_DB_PATH = Path.home() / ".catinfo" / "cache" / "images.sqlite3"

_CREATE_TABLE = """
CREATE TABLE IF NOT EXISTS cached_images (
    key TEXT PRIMARY KEY,
    data BLOB NOT NULL,
    created_at REAL NOT NULL,
    last_accessed_at REAL NOT NULL
)
"""
_CREATE_INDEX = "CREATE INDEX IF NOT EXISTS idx_cached_images_last_accessed ON cached_images (last_accessed_at)"

# created_at is left untouched on conflict
_UPSERT = """
INSERT INTO cached_images (key, data, created_at, last_accessed_at)
VALUES (?, ?, ?, ?)
ON CONFLICT(key) DO UPDATE SET
    data = excluded.data,
    last_accessed_at = excluded.last_accessed_at
"""


class PersistentStore:
    """SQLite key/blob store serialized through a single worker thread."""

    def __init__(self, db_path: Path = DEFAULT_DB_PATH, clock: Callable[[], float] = time.time):
        """Initializes the store. The database is opened lazily by the worker.

        Args:
            db_path: Location of the SQLite database file.
            clock: Source of POSIX timestamps for created/last-accessed times.
        """
        self.db_path = Path(db_path)
        self._clock = clock
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="catinfo-disk-cache")
        self._conn: Optional[sqlite3.Connection] = None
        self._disabled = False
        self._closed = False
        logger.info(f"PersistentStore initialized: db={self.db_path}")

    # --- Worker-side helpers (only ever run on the worker thread) ---

    def _connection(self) -> sqlite3.Connection:
        if self._conn is None:
            self._conn = self._open()
        return self._conn

    def _open(self) -> sqlite3.Connection:
        """Opens the database, recreating it once if the file is unreadable."""
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Cannot create cache directory {self.db_path.parent}: {e}") from e

        try:
            return self._connect_and_migrate()
        except sqlite3.DatabaseError as e:
            logger.warning(f"Disk cache at {self.db_path} is unreadable ({e}). Recreating it.")
            try:
                for suffix in ("", "-wal", "-shm"):
                    Path(f"{self.db_path}{suffix}").unlink(missing_ok=True)
                return self._connect_and_migrate()
            except (sqlite3.Error, OSError) as retry_error:
                raise StorageError(f"Cannot open disk cache {self.db_path}: {retry_error}") from retry_error
        except OSError as e:
            raise StorageError(f"Cannot open disk cache {self.db_path}: {e}") from e

    def _connect_and_migrate(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self.db_path))
        try:
            conn.execute("PRAGMA journal_mode=WAL")
            version = conn.execute("PRAGMA user_version").fetchone()[0]
            if version != SCHEMA_VERSION:
                if version:
                    logger.warning(f"Disk cache schema v{version} != v{SCHEMA_VERSION}; dropping cached images.")
                conn.execute("DROP TABLE IF EXISTS cached_images")
            conn.execute(_CREATE_TABLE)
            conn.execute(_CREATE_INDEX)
            conn.execute(f"PRAGMA user_version = {SCHEMA_VERSION}")
            conn.commit()
        except sqlite3.Error:
            conn.close()
            raise
        return conn

    @contextmanager
    def _transaction(self, operation: str) -> Iterator[sqlite3.Connection]:
        """Runs the body in one transaction, wrapping sqlite errors in StorageError."""
        conn = self._connection()
        try:
            with conn: # commits on success, rolls back on error
                yield conn
        except sqlite3.Error as e:
            raise StorageError(f"Disk cache {operation} failed: {e}") from e

    def _guarded(self, operation: str, func: Callable[..., Any], default: Any, *args: Any) -> Any:
        """Executes a worker operation, absorbing storage failures."""
        if self._disabled:
            return default
        try:
            return func(*args)
        except StorageError as e:
            if self._conn is None:
                # Could not even open the database: behave as an empty cache from now on
                self._disabled = True
                logger.error(f"Disk cache disabled: {e}")
            else:
                logger.error(str(e))
            return default
        except (sqlite3.Error, OSError) as e:
            logger.error(f"Disk cache {operation} failed: {e}", exc_info=True)
            return default

    def _read_sync(self, key: CacheKey) -> Optional[bytes]:
        with self._transaction("read") as conn:
            row = conn.execute("SELECT data FROM cached_images WHERE key = ?", (key,)).fetchone()
            if row is None:
                return None
            conn.execute(
                "UPDATE cached_images SET last_accessed_at = ? WHERE key = ?",
                (self._clock(), key),
            )
        return bytes(row[0])

    def _read_entry_sync(self, key: CacheKey) -> Optional[CacheEntry]:
        with self._transaction("read_entry") as conn:
            row = conn.execute(
                "SELECT key, data, created_at, last_accessed_at FROM cached_images WHERE key = ?",
                (key,),
            ).fetchone()
        if row is None:
            return None
        return CacheEntry(key=CacheKey(row[0]), data=bytes(row[1]), created_at=row[2], last_accessed_at=row[3])

    def _write_sync(self, key: CacheKey, data: bytes) -> None:
        now = self._clock()
        with self._transaction("write") as conn:
            conn.execute(_UPSERT, (key, sqlite3.Binary(data), now, now))
        logger.debug(f"Stored {len(data)} bytes on disk: key={key}")

    def _touch_sync(self, key: CacheKey) -> None:
        with self._transaction("touch") as conn:
            conn.execute(
                "UPDATE cached_images SET last_accessed_at = ? WHERE key = ?",
                (self._clock(), key),
            )

    def _delete_older_than_sync(self, threshold: float) -> int:
        with self._transaction("delete_older_than") as conn:
            cursor = conn.execute("DELETE FROM cached_images WHERE last_accessed_at < ?", (threshold,))
        return cursor.rowcount

    def _delete_all_sync(self) -> int:
        with self._transaction("delete_all") as conn:
            cursor = conn.execute("DELETE FROM cached_images")
        return cursor.rowcount

    def _stats_sync(self) -> Tuple[int, int]:
        with self._transaction("stats") as conn:
            count, total = conn.execute(
                "SELECT COUNT(*), COALESCE(SUM(LENGTH(data)), 0) FROM cached_images"
            ).fetchone()
        return int(count), int(total)

    # --- Submission API (callable from any thread, never blocks) ---

    def _submit(self, operation: str, func: Callable[..., Any], default: Any, *args: Any) -> "Future[Any]":
        if not self._closed:
            try:
                return self._executor.submit(self._guarded, operation, func, default, *args)
            except RuntimeError:
                pass # executor shut down between the check and the submit
        logger.debug(f"Disk cache closed; skipping {operation}")
        future: "Future[Any]" = Future()
        future.set_result(default)
        return future

    def submit_write(self, key: CacheKey, data: bytes) -> "Future[None]":
        return self._submit("write", self._write_sync, None, key, data)

    def submit_touch(self, key: CacheKey) -> "Future[None]":
        return self._submit("touch", self._touch_sync, None, key)

    def submit_delete_older_than(self, threshold: float) -> "Future[int]":
        return self._submit("delete_older_than", self._delete_older_than_sync, 0, threshold)

    def submit_delete_all(self) -> "Future[int]":
        return self._submit("delete_all", self._delete_all_sync, 0)

    # --- Async API ---

    async def read(self, key: CacheKey) -> Optional[bytes]:
        """Returns the stored bytes and refreshes last_accessed_at, or None on a miss."""
        return await asyncio.wrap_future(self._submit("read", self._read_sync, None, key))

    async def read_entry(self, key: CacheKey) -> Optional[CacheEntry]:
        """Returns the full row without refreshing last_accessed_at."""
        return await asyncio.wrap_future(self._submit("read_entry", self._read_entry_sync, None, key))

    async def write(self, key: CacheKey, data: bytes) -> None:
        await asyncio.wrap_future(self.submit_write(key, data))

    async def touch(self, key: CacheKey) -> None:
        await asyncio.wrap_future(self.submit_touch(key))

    async def delete_older_than(self, threshold: float) -> int:
        """Deletes entries last accessed before threshold. Returns the count removed."""
        return await asyncio.wrap_future(self.submit_delete_older_than(threshold))

    async def delete_all(self) -> int:
        return await asyncio.wrap_future(self.submit_delete_all())

    async def stats(self) -> Tuple[int, int]:
        """Returns (entry count, total stored bytes)."""
        return await asyncio.wrap_future(self._submit("stats", self._stats_sync, (0, 0)))

    async def flush(self) -> None:
        """Waits until every operation submitted so far has completed."""
        await asyncio.wrap_future(self._submit("flush", lambda: None, None))

    def close(self) -> None:
        """Drains pending operations and closes the connection."""
        if self._closed:
            return
        self._submit("close", self._close_sync, None).result()
        self._closed = True
        self._executor.shutdown(wait=True)
        logger.info(f"PersistentStore closed: db={self.db_path}")

    def _close_sync(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None
