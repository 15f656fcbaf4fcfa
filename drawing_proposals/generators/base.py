"""Base class and shared context for proposal generators."""

from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass
from typing import ClassVar, Optional

from ..analysis.candle_patterns import CandlePatternMatcher
from ..analysis.market_condition import MarketCondition
from ..analysis.scoring import ConfidenceFactors, ConfidenceScorer, assign_priority
from ..analysis.touches import TouchDetector, normalize_touch_count
from ..config.defaults import EngineConfig
from ..data.models import Candle
from ..logging.config import get_detector_logger, log_candidate_dropped
from ..metrics.volume import normalize_volume_ratio, volume_ratio
from ..models.enums import Direction
from ..models.proposals import DrawingProposal, Priority
from ..models.request import AnalysisType


@dataclass(frozen=True)
class GenerationContext:
    """Everything a generator needs for one request, built once by the engine"""
    symbol: str
    interval: str
    candles: Sequence[Candle]
    config: EngineConfig
    created_at: int
    atr: float
    tolerance: float
    mean_volume: float
    timeframe_score: float
    market_condition: MarketCondition
    touches: TouchDetector
    candle_patterns: CandlePatternMatcher
    scorer: ConfidenceScorer

    @property
    def last_close(self) -> float:
        return self.candles[-1].close

    @property
    def last_time(self) -> int:
        return self.candles[-1].time


class BaseProposalGenerator(ABC):
    """Base class for generators of one analysis type."""

    analysis_type: ClassVar[AnalysisType]

    def __init__(self, name: Optional[str] = None):
        self.name = name or self.analysis_type.value
        self.logger = get_detector_logger(f"generators.{self.name}")

    @abstractmethod
    def generate(self, context: GenerationContext) -> list[DrawingProposal]:
        """
        Produce scored proposals for the context's candle series.

        Args:
            context: Request-scoped inputs and components

        Returns:
            Proposals in no particular order; the engine filters and ranks
        """
        pass

    def score(
        self,
        context: GenerationContext,
        *,
        touch_count: int,
        indices: Sequence[int],
        role: Direction,
        statistical_fit: float,
        pattern_confirmation: Optional[float] = None,
    ) -> tuple[float, ConfidenceFactors]:
        """
        Confidence of one candidate from its touches, volume and fit.

        Args:
            context: Generation context
            touch_count: Touches confirming the candidate
            indices: Candle indices whose volume and candle patterns count
            role: Direction candle patterns must agree with
            statistical_fit: Fit quality already in [0, 1]
            pattern_confirmation: Overrides the candlestick confirmation

        Returns:
            (confidence, factors)
        """
        if pattern_confirmation is None:
            pattern_confirmation = context.candle_patterns.confirmation_ratio(context.candles, indices, role)

        ratio = volume_ratio((context.candles[i].volume for i in indices), context.mean_volume)
        factors = ConfidenceFactors(
            touch_points=normalize_touch_count(touch_count, context.config.scoring.touch_saturation),
            volume_weight=normalize_volume_ratio(ratio),
            timeframe_confluence=context.timeframe_score,
            pattern_confirmation=pattern_confirmation,
            statistical_fit=statistical_fit,
        )
        return context.scorer.score(factors), factors

    def priority(self, context: GenerationContext, confidence: float,
                 touches: Optional[int] = None) -> Priority:
        return assign_priority(confidence, touches, context.config.priority)

    def drop(self, reason: str, **context) -> None:
        log_candidate_dropped(self.logger, self.name, reason, context or None)
