"""Horizontal support and resistance levels"""

import math
from collections.abc import Sequence

from ..analysis.extrema import ExtremaDetector
from ..config.defaults import SupportResistanceParams
from ..data.models import Candle
from ..models.enums import Direction
from ..models.lines import LineKind, TouchPoint
from ..models.proposals import DrawingProposal, HorizontalLineProposal, ProposalKind, make_proposal_id
from ..models.request import AnalysisType
from ..utils.time import format_market_time
from .base import BaseProposalGenerator, GenerationContext


def histogram_levels(candles: Sequence[Candle], params: SupportResistanceParams) -> list[float]:
    """
    Prices where highs and lows concentrate.

    Highs and lows are bucketed into ``histogram_bins`` equal-width bins;
    bins whose count reaches the ``histogram_percentile`` of non-empty bins
    (and at least two prices) contribute their mean price. A series with no
    price range yields its single price.
    """
    prices = [c.high for c in candles] + [c.low for c in candles]
    if not prices:
        return []

    lo, hi = min(prices), max(prices)
    if hi <= lo:
        return [lo]

    bins = max(1, params.histogram_bins)
    width = (hi - lo) / bins
    buckets: list[list[float]] = [[] for _ in range(bins)]
    for price in prices:
        buckets[min(bins - 1, int((price - lo) / width))].append(price)

    counts = sorted(len(b) for b in buckets if b)
    rank = max(0, math.ceil(params.histogram_percentile / 100.0 * len(counts)) - 1)
    threshold = max(2, counts[rank])
    return [sum(b) / len(b) for b in buckets if len(b) >= threshold]


def cluster_levels(prices: Sequence[float], threshold: float) -> list[float]:
    """Merge sorted prices lying within ``threshold`` of their running cluster mean"""
    clusters: list[list[float]] = []
    for price in sorted(prices):
        if clusters:
            current = clusters[-1]
            if abs(price - sum(current) / len(current)) <= threshold:
                current.append(price)
                continue
        clusters.append([price])
    return [sum(c) / len(c) for c in clusters]


class SupportResistanceGenerator(BaseProposalGenerator):
    """
    Horizontal levels from swing points and the price histogram.

    A level below the last close is support, above it resistance; a level
    within the touch tolerance of the last close is reported as a plain
    horizontal line with neutral direction.
    """

    analysis_type = AnalysisType.SUPPORT_RESISTANCE

    def generate(self, context: GenerationContext) -> list[DrawingProposal]:
        candles = context.candles
        params = context.config.support_resistance

        swings = ExtremaDetector(params.swing_window, volume_weighted=False)
        candidates = histogram_levels(candles, params)
        candidates += [p.value for p in swings.find_peaks(candles)]
        candidates += [t.value for t in swings.find_troughs(candles)]

        merge_distance = max(context.tolerance, context.last_close * params.cluster_pct)
        levels = cluster_levels(candidates, merge_distance)

        proposals = [p for p in (self._build(context, level) for level in levels) if p is not None]
        proposals.sort(key=lambda p: (-p.confidence, p.price))

        self.logger.debug("Levels generated", symbol=context.symbol, interval=context.interval,
                          candidates=len(candidates), levels=len(levels), proposals=len(proposals))
        return proposals[:params.max_levels]

    def _build(self, context: GenerationContext, level: float):
        params = context.config.support_resistance
        candles = context.candles
        tolerance = context.tolerance

        if level <= 0:
            self.drop("non-positive level", level=level)
            return None

        touches = context.touches.detect(candles, price=level, tolerance=tolerance)
        if len(touches) < params.min_touches:
            self.drop("not enough touches", level=level, touches=len(touches))
            return None

        if abs(level - context.last_close) <= tolerance:
            level_type, direction = LineKind.HORIZONTAL, Direction.NEUTRAL
        elif level < context.last_close:
            level_type, direction = LineKind.SUPPORT, Direction.BULLISH
        else:
            level_type, direction = LineKind.RESISTANCE, Direction.BEARISH

        touched = [candles[t.index] for t in touches]
        deviation = sum(min(abs(c.high - level), abs(c.low - level)) / level for c in touched) / len(touched)
        accuracy = max(0.0, 1.0 - deviation * params.accuracy_scale)

        if level_type is LineKind.SUPPORT:
            respected = sum(1 for c in touched if c.close >= level - tolerance)
        elif level_type is LineKind.RESISTANCE:
            respected = sum(1 for c in touched if c.close <= level + tolerance)
        else:
            respected = len(touched)
        respect = respected / len(touched)

        confidence, _ = self.score(
            context,
            touch_count=len(touches),
            indices=[t.index for t in touches],
            role=direction,
            statistical_fit=0.5 * accuracy + 0.5 * respect,
        )
        if confidence < context.config.generation.min_confidence:
            self.drop("confidence below minimum", level=level, confidence=confidence)
            return None

        first, last = touches[0], touches[-1]
        return HorizontalLineProposal(
            id=make_proposal_id(ProposalKind.HORIZONTAL_LINE, context.symbol, context.interval, level),
            points=(TouchPoint(first.time, level, first.index), TouchPoint(last.time, level, last.index)),
            confidence=confidence,
            priority=self.priority(context, confidence, len(touches)),
            reasoning=(
                f"{level_type.value.capitalize()} at {level:.6g} touched {len(touches)} times "
                f"between {format_market_time(first.time)} and {format_market_time(last.time)}; "
                f"{respect:.0%} of touches held"
            ),
            symbol=context.symbol,
            interval=context.interval,
            created_at=context.created_at,
            direction=direction,
            touch_count=len(touches),
            price=level,
            level_type=level_type,
        )
