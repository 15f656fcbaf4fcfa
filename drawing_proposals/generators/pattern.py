"""Chart pattern proposals"""

from ..analysis.chart_patterns import ChartPatternDetector
from ..models.lines import TouchPoint
from ..models.proposals import DrawingProposal, PatternProposal, ProposalKind, make_proposal_id
from ..models.request import AnalysisType
from .base import BaseProposalGenerator, GenerationContext


class PatternGenerator(BaseProposalGenerator):
    """Wraps ChartPatternDetector results that clear the pattern confidence bar"""

    analysis_type = AnalysisType.PATTERN

    def generate(self, context: GenerationContext) -> list[DrawingProposal]:
        params = context.config.pattern
        detector = ChartPatternDetector(params, context.touches)
        proposals = []

        for pattern in detector.detect(context.candles):
            if pattern.confidence < params.min_confidence:
                self.drop("pattern confidence below minimum", pattern=pattern.name,
                          confidence=pattern.confidence)
                continue

            confidence, _ = self.score(
                context,
                touch_count=pattern.touches,
                indices=[p.index for p in pattern.key_points if p.index is not None],
                role=pattern.implication,
                statistical_fit=1.0 - pattern.symmetry_error,
                pattern_confirmation=pattern.confidence,
            )
            if confidence < context.config.generation.min_confidence:
                self.drop("confidence below minimum", pattern=pattern.name, confidence=confidence)
                continue

            points = tuple(TouchPoint(p.time, p.value, p.index) for p in pattern.key_points)
            metrics = pattern.metrics
            reasoning = f"{pattern.name.capitalize()} across {len(points)} swing points"
            if metrics.breakout_level is not None:
                reasoning += f"; breakout level {metrics.breakout_level:.6g}"
            if metrics.target is not None:
                reasoning += f", target {metrics.target:.6g}"
            if metrics.stop_loss is not None:
                reasoning += f", invalidated beyond {metrics.stop_loss:.6g}"

            proposals.append(PatternProposal(
                id=make_proposal_id(ProposalKind.PATTERN, context.symbol, context.interval,
                                    pattern.kind.value, pattern.variant or "",
                                    *[v for p in points for v in (p.time, p.value)]),
                points=points,
                confidence=confidence,
                priority=self.priority(context, confidence),
                reasoning=reasoning,
                symbol=context.symbol,
                interval=context.interval,
                created_at=context.created_at,
                direction=pattern.implication,
                touch_count=pattern.touches,
                pattern_kind=pattern.kind,
                variant=pattern.variant,
                metrics=metrics,
                roles=tuple(p.role for p in pattern.key_points),
            ))

        return proposals
