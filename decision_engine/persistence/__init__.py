"""Signal persistence backends."""

from .signal_store import SignalRepository, SqliteSignalStore

__all__ = ["SignalRepository", "SqliteSignalStore"]
