"""Signal persistence layer for restoring tracked signals across restarts."""

import asyncio
import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator, Optional, Protocol

import orjson
import structlog

from ..errors import PersistenceError
from ..utils.time import format_timestamp, utc_now

logger = structlog.get_logger(__name__)


class SignalRepository(Protocol):
    """Asynchronous store the SignalManager writes through."""

    async def load_active(self) -> list[dict[str, Any]]:
        """Signals not yet completed, as dictionaries."""

    async def save(self, signal: dict[str, Any]) -> None:
        """Insert or replace a full signal."""

    async def update(self, signal_id: str, patch: dict[str, Any]) -> None:
        """Merge ``patch`` into a stored signal."""


class SqliteSignalStore:
    """
    SQLite-backed SignalRepository.

    The full signal is kept as an orjson document beside indexed status and
    symbol columns. Blocking sqlite calls run in a worker thread.
    """

    def __init__(self, db_path: str = "signals.db"):
        self.db_path = Path(db_path)
        self._lock = threading.Lock()

        self._init_database()

    def _init_database(self) -> None:
        """Initialize database schema."""
        with self._get_connection() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS signals (
                    id TEXT PRIMARY KEY,
                    symbol TEXT NOT NULL,
                    strategy TEXT NOT NULL,
                    status TEXT NOT NULL,
                    signal_data BLOB NOT NULL,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            """)

            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_signals_status ON signals(status)
            """)

            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_signals_symbol ON signals(symbol)
            """)

            conn.commit()

    @contextmanager
    def _get_connection(self) -> Iterator[sqlite3.Connection]:
        """Get database connection, translating sqlite failures."""
        conn = None
        try:
            conn = sqlite3.connect(self.db_path, timeout=30.0)
            conn.row_factory = sqlite3.Row
            yield conn
        except sqlite3.Error as e:
            if conn:
                conn.rollback()
            logger.error("Database error", error=str(e), db_path=str(self.db_path))
            raise PersistenceError(
                f"Database error: {e}",
                operation="sqlite",
                target=str(self.db_path),
            ) from e
        finally:
            if conn:
                conn.close()

    async def load_active(self) -> list[dict[str, Any]]:
        return await asyncio.to_thread(self._load_active_sync)

    async def save(self, signal: dict[str, Any]) -> None:
        await asyncio.to_thread(self._save_sync, signal)

    async def update(self, signal_id: str, patch: dict[str, Any]) -> None:
        await asyncio.to_thread(self._update_sync, signal_id, patch)

    def _load_active_sync(self) -> list[dict[str, Any]]:
        with self._get_connection() as conn:
            rows = conn.execute("""
                SELECT signal_data FROM signals
                WHERE status != 'COMPLETED' ORDER BY created_at
            """).fetchall()

        return [orjson.loads(row["signal_data"]) for row in rows]

    def _save_sync(self, signal: dict[str, Any]) -> None:
        if not signal.get("id"):
            raise PersistenceError("Signal has no id", operation="save", target=str(self.db_path))

        now = format_timestamp(utc_now())
        with self._lock:
            with self._get_connection() as conn:
                conn.execute("""
                    INSERT OR REPLACE INTO signals (
                        id, symbol, strategy, status, signal_data, created_at, updated_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?)
                """, (
                    signal["id"],
                    signal.get("symbol", ""),
                    signal.get("strategy", ""),
                    signal.get("status", "PENDING"),
                    orjson.dumps(signal),
                    signal.get("created_at") or now,
                    now,
                ))
                conn.commit()

        logger.debug("Signal stored", signal_id=signal["id"], status=signal.get("status"))

    def _update_sync(self, signal_id: str, patch: dict[str, Any]) -> None:
        with self._lock:
            with self._get_connection() as conn:
                row = conn.execute(
                    "SELECT signal_data FROM signals WHERE id = ?", (signal_id,)
                ).fetchone()
                if row is None:
                    raise PersistenceError(
                        f"Signal {signal_id} not found",
                        operation="update",
                        target=str(self.db_path),
                    )

                data = orjson.loads(row["signal_data"])
                data.update(patch)
                conn.execute("""
                    UPDATE signals SET status = ?, signal_data = ?, updated_at = ?
                    WHERE id = ?
                """, (
                    data.get("status", "PENDING"),
                    orjson.dumps(data),
                    format_timestamp(utc_now()),
                    signal_id,
                ))
                conn.commit()

        logger.debug("Signal updated", signal_id=signal_id, fields=sorted(patch))

    def get_signal(self, signal_id: str) -> Optional[dict[str, Any]]:
        """Get a stored signal by id."""
        with self._get_connection() as conn:
            row = conn.execute(
                "SELECT signal_data FROM signals WHERE id = ?", (signal_id,)
            ).fetchone()
        return orjson.loads(row["signal_data"]) if row else None

    def get_stats(self) -> dict[str, Any]:
        """Stored signal counts by status."""
        with self._get_connection() as conn:
            total = conn.execute("SELECT COUNT(*) FROM signals").fetchone()[0]
            by_status = {
                row[0]: row[1]
                for row in conn.execute("SELECT status, COUNT(*) FROM signals GROUP BY status")
            }
        return {"total_signals": total, "signals_by_status": by_status}
