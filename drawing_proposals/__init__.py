"""
Drawing Proposals - Technical Analysis Drawing Engine

Analyzes OHLCV candle series and proposes chart drawings (trendlines,
support/resistance levels, Fibonacci retracements and chart patterns),
each scored with a confidence and a human-readable justification.
"""

__version__ = "0.1.0"
