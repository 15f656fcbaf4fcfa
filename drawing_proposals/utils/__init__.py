"""
Utility functions module.

Interval arithmetic, timeframe hierarchy and time helpers shared across
the engine.

Time Semantics:
- Candle open times (unix seconds) are authoritative for all geometry
- Wall-clock time is only used to stamp proposals and groups
"""
