"""
Drawing proposals and proposal groups.

``DrawingProposal`` is a closed union of one frozen dataclass per drawing
kind. Each variant knows its own drawing geometry, so serialization and
deduplication never branch on a type tag.
"""

import hashlib
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Optional, Union

from .enums import Direction
from .lines import LineKind, TouchPoint
from .patterns import ChartPatternKind, PatternMetrics


class ProposalKind(str, Enum):
    TREND_LINE = "trendline"
    HORIZONTAL_LINE = "horizontal"
    FIBONACCI = "fibonacci"
    RAY = "ray"
    PATTERN = "pattern"


class Priority(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class ProposalStatus(str, Enum):
    """Approval state; this engine only ever emits PENDING"""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


@dataclass(frozen=True)
class DrawingStyle:
    color: str
    line_width: int
    line_style: str                  # solid, dashed or dotted
    show_labels: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "color": self.color,
            "line_width": self.line_width,
            "line_style": self.line_style,
            "show_labels": self.show_labels,
        }


DEFAULT_STYLES: dict[ProposalKind, DrawingStyle] = {
    ProposalKind.TREND_LINE: DrawingStyle("#888888", 2, "solid", True),
    ProposalKind.HORIZONTAL_LINE: DrawingStyle("#ffff00", 1, "solid", False),
    ProposalKind.FIBONACCI: DrawingStyle("#ff9800", 1, "dashed", True),
    ProposalKind.RAY: DrawingStyle("#2196f3", 2, "dashed", True),
    ProposalKind.PATTERN: DrawingStyle("#9c27b0", 2, "solid", True),
}


def make_proposal_id(kind: ProposalKind, symbol: str, interval: str, *geometry: Any) -> str:
    """
    Deterministic proposal id from kind, market and rounded geometry.

    The same drawing found on a later call gets the same id, which is what
    lets callers pass previously shown ids back as ``exclude_ids``.
    """
    parts = [kind.value, symbol, interval]
    for value in geometry:
        parts.append(f"{value:.8g}" if isinstance(value, float) else str(value))
    digest = hashlib.sha256("|".join(parts).encode("utf-8")).hexdigest()
    return f"{kind.value}_{digest[:12]}"


@dataclass(frozen=True)
class FibonacciLevel:
    ratio: float
    price: float

    def to_dict(self) -> dict[str, float]:
        return {"ratio": self.ratio, "price": self.price}


@dataclass(frozen=True)
class _ProposalBase:
    """Fields shared by every proposal variant"""
    kind: ClassVar[ProposalKind]

    id: str
    points: tuple[TouchPoint, ...]
    confidence: float
    priority: Priority
    reasoning: str
    symbol: str
    interval: str
    created_at: int                  # Milliseconds since the epoch
    direction: Direction
    touch_count: int

    @property
    def style(self) -> DrawingStyle:
        return DEFAULT_STYLES[self.kind]

    def dedup_key(self) -> tuple:
        """Proposals are only compared for duplication when these keys match"""
        return (self.kind, self.direction)

    def anchor_prices(self) -> tuple[float, ...]:
        return tuple(p.value for p in self.points)

    def drawing_data(self) -> dict[str, Any]:
        return {}

    def to_dict(self) -> dict[str, Any]:
        drawing = {
            "type": self.kind.value,
            "points": [p.to_dict() for p in self.points],
            "style": self.style.to_dict(),
        }
        drawing.update(self.drawing_data())
        return {
            "id": self.id,
            "type": self.kind.value,
            "confidence": self.confidence,
            "priority": self.priority.value,
            "reasoning": self.reasoning,
            "symbol": self.symbol,
            "interval": self.interval,
            "created_at": self.created_at,
            "direction": self.direction.value,
            "touch_count": self.touch_count,
            "drawing_data": drawing,
        }


@dataclass(frozen=True)
class TrendLineProposal(_ProposalBase):
    """Segment between the first and last touch of a fitted trendline"""
    kind: ClassVar[ProposalKind] = ProposalKind.TREND_LINE

    slope: float = 0.0
    intercept: float = 0.0
    r_squared: float = 0.0

    def anchor_prices(self) -> tuple[float, ...]:
        return (self.points[-1].value,)

    def drawing_data(self) -> dict[str, Any]:
        return {"slope": self.slope, "intercept": self.intercept, "r_squared": self.r_squared}


@dataclass(frozen=True)
class RayProposal(_ProposalBase):
    """Trendline still respected at the last candle, drawn open-ended"""
    kind: ClassVar[ProposalKind] = ProposalKind.RAY

    slope: float = 0.0
    intercept: float = 0.0
    r_squared: float = 0.0

    def anchor_prices(self) -> tuple[float, ...]:
        return (self.points[-1].value,)

    def drawing_data(self) -> dict[str, Any]:
        return {
            "slope": self.slope,
            "intercept": self.intercept,
            "r_squared": self.r_squared,
            "extend": "right",
        }


@dataclass(frozen=True)
class HorizontalLineProposal(_ProposalBase):
    kind: ClassVar[ProposalKind] = ProposalKind.HORIZONTAL_LINE

    price: float = 0.0
    level_type: LineKind = LineKind.HORIZONTAL

    def anchor_prices(self) -> tuple[float, ...]:
        return (self.price,)

    def drawing_data(self) -> dict[str, Any]:
        return {"price": self.price, "level_type": self.level_type.value}


@dataclass(frozen=True)
class FibonacciProposal(_ProposalBase):
    """Retracement between a swing start (points[0]) and swing end (points[1])"""
    kind: ClassVar[ProposalKind] = ProposalKind.FIBONACCI

    levels: tuple[FibonacciLevel, ...] = ()
    extensions: tuple[FibonacciLevel, ...] = ()
    current_retracement: Optional[float] = None

    def drawing_data(self) -> dict[str, Any]:
        return {
            "levels": [lvl.ratio for lvl in self.levels],
            "level_prices": [lvl.to_dict() for lvl in self.levels],
            "extensions": [lvl.to_dict() for lvl in self.extensions],
            "current_retracement": self.current_retracement,
        }


@dataclass(frozen=True)
class PatternProposal(_ProposalBase):
    kind: ClassVar[ProposalKind] = ProposalKind.PATTERN

    pattern_kind: ChartPatternKind = ChartPatternKind.TRIANGLE
    variant: Optional[str] = None
    metrics: PatternMetrics = field(default_factory=PatternMetrics)
    roles: tuple[str, ...] = ()

    def dedup_key(self) -> tuple:
        return (self.kind, self.direction, self.pattern_kind, self.variant)

    def anchor_prices(self) -> tuple[float, ...]:
        if self.metrics.breakout_level is not None:
            return (self.metrics.breakout_level,)
        return super().anchor_prices()

    def drawing_data(self) -> dict[str, Any]:
        return {
            "pattern": self.pattern_kind.value,
            "variant": self.variant,
            "roles": list(self.roles),
            "metrics": self.metrics.to_dict(),
        }


DrawingProposal = Union[
    TrendLineProposal,
    HorizontalLineProposal,
    FibonacciProposal,
    RayProposal,
    PatternProposal,
]


@dataclass(frozen=True)
class GroupSummary:
    market_bias: Direction
    average_confidence: float
    market_condition: Optional[str] = None
    timeframe_confluence: Optional[float] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "market_bias": self.market_bias.value,
            "average_confidence": self.average_confidence,
            "market_condition": self.market_condition,
            "timeframe_confluence": self.timeframe_confluence,
        }


@dataclass(frozen=True)
class ProposalGroup:
    """Ranked proposals produced by one request; never mutated after assembly"""
    id: str
    title: str
    description: str
    proposals: tuple[DrawingProposal, ...]
    summary: GroupSummary
    symbol: str
    interval: str
    analysis_type: str
    created_at: int
    status: ProposalStatus = ProposalStatus.PENDING

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "proposals": [p.to_dict() for p in self.proposals],
            "status": self.status.value,
            "summary": self.summary.to_dict(),
            "symbol": self.symbol,
            "interval": self.interval,
            "analysis_type": self.analysis_type,
            "created_at": self.created_at,
        }
