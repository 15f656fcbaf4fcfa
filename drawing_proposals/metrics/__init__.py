"""Candle-level metrics: volatility, volume and candle anatomy"""

from .atr import ATRCalculator, calculate_atr, calculate_natr, calculate_true_range
from .candle_structure import CandleStructure, analyze_candle_structure
from .volume import mean_volume, normalize_volume_ratio, volume_ratio

__all__ = [
    "ATRCalculator",
    "calculate_atr",
    "calculate_natr",
    "calculate_true_range",
    "CandleStructure",
    "analyze_candle_structure",
    "mean_volume",
    "normalize_volume_ratio",
    "volume_ratio",
]
