"""Ascending and descending trendlines from swing pairs and regression"""

from dataclasses import dataclass
from typing import Optional

from ..analysis.extrema import ExtremaDetector, Extremum
from ..analysis.line_fit import fit_line
from ..errors import ComputationError
from ..models.enums import Direction
from ..models.lines import LineFit, TouchPoint
from ..models.proposals import (
    DrawingProposal,
    ProposalKind,
    RayProposal,
    TrendLineProposal,
    make_proposal_id,
)
from ..models.request import AnalysisType
from ..utils.time import format_market_time
from .base import BaseProposalGenerator, GenerationContext


@dataclass(frozen=True)
class _LineCandidate:
    """Initial line to refine: ``price = slope * time + intercept`` from ``start_index``"""
    slope: float
    intercept: float
    start_index: int
    ascending: bool
    source: str                      # 'swing_pair' or 'regression'


class TrendlineGenerator(BaseProposalGenerator):
    """
    Trendlines anchored on swing lows (ascending) and swing highs (descending).

    Each candidate line is refined by refitting the lows (highs) of the
    candles it touches, then rejected if too many later closes break
    through it. A whole-series regression on closes adds one more candidate
    for clean trends that produce no swing points.
    """

    analysis_type = AnalysisType.TRENDLINE

    def generate(self, context: GenerationContext) -> list[DrawingProposal]:
        candles = context.candles
        extrema = ExtremaDetector(context.config.extrema.window, context.config.extrema.volume_weighted)

        candidates = self._pair_candidates(context, extrema.find_troughs(candles), ascending=True)
        candidates += self._pair_candidates(context, extrema.find_peaks(candles), ascending=False)
        trend = self._regression_candidate(context)
        if trend is not None:
            candidates.append(trend)

        proposals = []
        for candidate in candidates:
            try:
                proposal = self._build(context, candidate)
            except ComputationError as e:
                self.drop(str(e), source=candidate.source, start_index=candidate.start_index)
                continue
            if proposal is not None:
                proposals.append(proposal)

        self.logger.debug("Trendlines generated", symbol=context.symbol, interval=context.interval,
                          candidates=len(candidates), proposals=len(proposals))
        return proposals

    def _pair_candidates(self, context: GenerationContext, points: list[Extremum],
                         ascending: bool) -> list[_LineCandidate]:
        """Best swing pairs moving in the line's direction, ranked by volume weight and recency"""
        params = context.config.trendline
        n = len(context.candles)
        ordered = sorted(points, key=lambda p: p.index)
        scored = []

        for i, first in enumerate(ordered):
            for second in ordered[i + 1:]:
                if second.index - first.index < params.min_span_bars:
                    continue
                if ascending and second.value <= first.value:
                    continue
                if not ascending and second.value >= first.value:
                    continue
                score = (first.volume_weight + second.volume_weight) * (1.0 + second.index / n)
                scored.append((score, first, second))

        scored.sort(key=lambda s: (-s[0], s[1].index, s[2].index))
        candidates = []
        for _, first, second in scored[:params.max_candidates]:
            slope = (second.value - first.value) / (second.time - first.time)
            candidates.append(_LineCandidate(
                slope=slope,
                intercept=first.value - slope * first.time,
                start_index=first.index,
                ascending=ascending,
                source="swing_pair",
            ))
        return candidates

    def _regression_candidate(self, context: GenerationContext) -> Optional[_LineCandidate]:
        """Support (resistance) line under (over) a clean linear trend of closes"""
        params = context.config.trendline
        candles = context.candles

        try:
            closes = fit_line([(c.time, c.close) for c in candles])
        except ComputationError as e:
            self.drop(str(e), source="regression")
            return None

        first_price = closes.price_at(candles[0].time)
        move = (closes.price_at(candles[-1].time) - first_price) / first_price if first_price else 0.0
        if closes.r_squared < params.min_trend_r_squared or abs(move) < params.min_trend_move_pct:
            return None

        ascending = closes.slope > 0
        edge = fit_line([(c.time, c.low if ascending else c.high) for c in candles])
        return _LineCandidate(
            slope=edge.slope,
            intercept=edge.intercept,
            start_index=0,
            ascending=ascending,
            source="regression",
        )

    def _build(self, context: GenerationContext, candidate: _LineCandidate) -> Optional[DrawingProposal]:
        candles = context.candles
        params = context.config.trendline
        tolerance = context.tolerance
        start = candidate.start_index

        anchors = context.touches.detect(candles, slope=candidate.slope, intercept=candidate.intercept,
                                         tolerance=tolerance, start_index=start)
        if len(anchors) >= 2:
            edge = [(candles[t.index].time, candles[t.index].low if candidate.ascending else candles[t.index].high)
                    for t in anchors]
            fit = fit_line(edge)
        else:
            fit = LineFit(candidate.slope, candidate.intercept, 0.0, len(anchors))

        if candidate.ascending and fit.slope <= 0 or not candidate.ascending and fit.slope >= 0:
            self.drop("slope reversed after refit", source=candidate.source, start_index=start)
            return None

        touches = context.touches.detect(candles, slope=fit.slope, intercept=fit.intercept,
                                         tolerance=tolerance, start_index=start)
        if len(touches) < 2:
            self.drop("fewer than two touches", source=candidate.source, start_index=start)
            return None

        if self._break_ratio(context, fit, start, candidate.ascending) > params.max_break_ratio:
            self.drop("line broken by closes", source=candidate.source, start_index=start)
            return None

        role = Direction.BULLISH if candidate.ascending else Direction.BEARISH
        confidence, factors = self.score(
            context,
            touch_count=len(touches),
            indices=[t.index for t in touches],
            role=role,
            statistical_fit=fit.r_squared,
        )
        if confidence < context.config.generation.min_confidence:
            self.drop("confidence below minimum", source=candidate.source, confidence=confidence)
            return None

        first, last = touches[0], touches[-1]
        points = (TouchPoint(first.time, fit.price_at(first.time), first.index),
                  TouchPoint(last.time, fit.price_at(last.time), last.index))
        active = last.index >= len(candles) - params.recent_bars
        as_ray = params.project_active_as_ray and active
        kind = ProposalKind.RAY if as_ray else ProposalKind.TREND_LINE
        label = "Ascending" if candidate.ascending else "Descending"

        reasoning = (
            f"{label} trendline with {len(touches)} touches from {format_market_time(first.time)} "
            f"to {format_market_time(last.time)} (R² {fit.r_squared:.2f}); "
            f"projects to {fit.price_at(context.last_time):.6g} at the latest candle"
        )
        if active:
            reasoning += " and is still being respected"

        fields = dict(
            id=make_proposal_id(kind, context.symbol, context.interval,
                                points[0].time, points[0].value, points[1].time, points[1].value),
            points=points,
            confidence=confidence,
            priority=self.priority(context, confidence, len(touches)),
            reasoning=reasoning,
            symbol=context.symbol,
            interval=context.interval,
            created_at=context.created_at,
            direction=role,
            touch_count=len(touches),
            slope=fit.slope,
            intercept=fit.intercept,
            r_squared=fit.r_squared,
        )
        self.logger.debug("Trendline candidate scored", source=candidate.source,
                          confidence=confidence, factors=factors.as_dict())
        return RayProposal(**fields) if as_ray else TrendLineProposal(**fields)

    def _break_ratio(self, context: GenerationContext, fit: LineFit, start: int, ascending: bool) -> float:
        """Share of closes after ``start`` beyond the line by more than the tolerance"""
        closes = context.candles[start + 1:]
        if not closes:
            return 0.0
        if ascending:
            breaks = sum(1 for c in closes if c.close < fit.price_at(c.time) - context.tolerance)
        else:
            breaks = sum(1 for c in closes if c.close > fit.price_at(c.time) + context.tolerance)
        return breaks / len(closes)
