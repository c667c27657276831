"""
Utility functions module.

Time handling shared by the signal lifecycle and persistence layers.

Time Semantics:
- All signal timestamps are timezone-aware UTC datetimes
- The signal manager takes an injectable clock so tests control time
- Persisted timestamps are ISO8601 strings
"""
