"""Proposal generators, one per analysis type."""

from .base import BaseProposalGenerator, GenerationContext
from .fibonacci import FibonacciGenerator
from .pattern import PatternGenerator
from .support_resistance import SupportResistanceGenerator
from .trendline import TrendlineGenerator

__all__ = [
    "BaseProposalGenerator",
    "GenerationContext",
    "FibonacciGenerator",
    "PatternGenerator",
    "SupportResistanceGenerator",
    "TrendlineGenerator",
]
