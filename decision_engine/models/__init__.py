"""
Data models and contracts module.

Immutable market-state snapshots, candles and the directional vocabulary
shared by strategy evaluation, scenario weighting and signal tracking.
"""
