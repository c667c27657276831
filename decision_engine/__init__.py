"""
Decision Engine - Strategy Decision Engine for trading analysis

Evaluates pluggable strategy modules against market-state snapshots, ranks
competing trade hypotheses with confluence scoring, resolves directional
conflicts into a dominant bias, and tracks accepted trade ideas through their
price-driven lifecycle.
"""

__version__ = "0.1.0"
__author__ = "Decision Engine Team"
