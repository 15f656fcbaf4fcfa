"""
Detection and scoring components.

Leaf-first: extrema, line fitting and touch counting feed the candlestick
and chart pattern detectors; the confidence scorer combines their factors
with higher timeframe confluence.
"""

from .candle_patterns import CandlePatternMatcher
from .chart_patterns import ChartPatternDetector
from .extrema import ExtremaDetector
from .line_fit import LineFitter
from .scoring import ConfidenceScorer
from .timeframes import MultiTimeframeAnalyzer
from .touches import TouchDetector

__all__ = [
    "CandlePatternMatcher",
    "ChartPatternDetector",
    "ConfidenceScorer",
    "ExtremaDetector",
    "LineFitter",
    "MultiTimeframeAnalyzer",
    "TouchDetector",
]
