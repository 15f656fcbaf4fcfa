"""Fibonacci retracements between recent swing pairs"""

from typing import Optional

from ..analysis.extrema import ExtremaDetector, Extremum, ExtremumKind
from ..analysis.line_fit import fit_line
from ..errors import ComputationError
from ..models.enums import Direction
from ..models.lines import TouchPoint
from ..models.proposals import (
    DrawingProposal,
    FibonacciLevel,
    FibonacciProposal,
    ProposalKind,
    make_proposal_id,
)
from ..models.request import AnalysisType
from ..utils.time import format_market_time
from .base import BaseProposalGenerator, GenerationContext

# Swings examined after each starting pivot
_PAIR_LOOKAHEAD = 4


def retracement_levels(start: float, end: float, ratios: tuple[float, ...]) -> tuple[FibonacciLevel, ...]:
    """
    Retracement prices of the move ``start`` -> ``end``.

    Ratio 0 sits at the swing end and ratio 1 at the swing start, so
    retracements of an up move are measured down from the high.
    """
    diff = end - start
    return tuple(FibonacciLevel(ratio=r, price=end - r * diff) for r in ratios)


def extension_levels(start: float, end: float, ratios: tuple[float, ...]) -> tuple[FibonacciLevel, ...]:
    """Extension prices beyond the swing end; non-positive prices are omitted"""
    diff = end - start
    levels = (FibonacciLevel(ratio=r, price=start + r * diff) for r in ratios)
    return tuple(lvl for lvl in levels if lvl.price > 0)


class FibonacciGenerator(BaseProposalGenerator):
    """Retracement grids over significant swings among the most recent pivots"""

    analysis_type = AnalysisType.FIBONACCI

    def generate(self, context: GenerationContext) -> list[DrawingProposal]:
        params = context.config.fibonacci
        pivots = ExtremaDetector(context.config.extrema.window, volume_weighted=False).alternating(context.candles)
        pivots = pivots[-params.recent_swings:]

        proposals = []
        for start, end in self._swing_pairs(context, pivots):
            try:
                proposal = self._build(context, start, end)
            except ComputationError as e:
                self.drop(str(e), start_index=start.index, end_index=end.index)
                continue
            if proposal is not None:
                proposals.append(proposal)
        return proposals

    def _swing_pairs(self, context: GenerationContext, pivots: list[Extremum]) -> list[tuple[Extremum, Extremum]]:
        """Opposite-kind pivot pairs with enough span and move, largest recent moves first"""
        params = context.config.fibonacci
        n = len(context.candles)
        scored = []

        for i, start in enumerate(pivots):
            for end in pivots[i + 1:i + 1 + _PAIR_LOOKAHEAD]:
                if end.kind is start.kind:
                    continue
                if end.index - start.index < params.min_span_bars:
                    continue
                move = abs(end.value - start.value) / start.value
                if move < params.min_move_pct:
                    continue
                scored.append((move * (1.0 + end.index / n), start, end))

        scored.sort(key=lambda s: (-s[0], s[1].index))
        return [(start, end) for _, start, end in scored[:params.max_pairs]]

    def _build(self, context: GenerationContext, start: Extremum, end: Extremum) -> Optional[DrawingProposal]:
        params = context.config.fibonacci
        candles = context.candles
        up = start.kind is ExtremumKind.TROUGH
        move = abs(end.value - start.value)

        levels = retracement_levels(start.value, end.value, params.levels)
        major = retracement_levels(start.value, end.value, params.major_levels)

        touch_indices: set[int] = set()
        for level in major:
            touches = context.touches.detect(candles, price=level.price, tolerance=context.tolerance,
                                             start_index=end.index + 1)
            touch_indices.update(t.index for t in touches)

        segment = candles[start.index:end.index + 1]
        swing_fit = fit_line([(c.time, c.close) for c in segment])

        direction = Direction.BULLISH if up else Direction.BEARISH
        indices = sorted({start.index, end.index} | touch_indices)
        confidence, _ = self.score(
            context,
            touch_count=len(touch_indices) + 2,
            indices=indices,
            role=direction,
            statistical_fit=swing_fit.r_squared,
        )
        if confidence < context.config.generation.min_confidence:
            self.drop("confidence below minimum", start_index=start.index, confidence=confidence)
            return None

        if up:
            current = (end.value - context.last_close) / move
        else:
            current = (context.last_close - end.value) / move

        label = "up" if up else "down"
        return FibonacciProposal(
            id=make_proposal_id(ProposalKind.FIBONACCI, context.symbol, context.interval,
                                start.time, start.value, end.time, end.value),
            points=(TouchPoint(start.time, start.value, start.index), TouchPoint(end.time, end.value, end.index)),
            confidence=confidence,
            priority=self.priority(context, confidence),
            reasoning=(
                f"Retracement of the {label} swing from {start.value:.6g} "
                f"({format_market_time(start.time)}) to {end.value:.6g} ({format_market_time(end.time)}); "
                f"price has retraced {current:.1%} with {len(touch_indices)} reactions at major levels"
            ),
            symbol=context.symbol,
            interval=context.interval,
            created_at=context.created_at,
            direction=direction,
            touch_count=len(touch_indices),
            levels=levels,
            extensions=extension_levels(start.value, end.value, params.extension_levels),
            current_retracement=current,
        )
