"""Candlestick and chart pattern models"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from .enums import Direction


class CandlePattern(str, Enum):
    PIN_BAR = "pin_bar"
    ENGULFING = "engulfing"
    DOJI = "doji"
    HAMMER = "hammer"
    SHOOTING_STAR = "shooting_star"
    MORNING_STAR = "morning_star"
    EVENING_STAR = "evening_star"


@dataclass(frozen=True)
class CandlePatternMatch:
    """A candlestick pattern ending on candle ``index``"""
    pattern: CandlePattern
    direction: Direction
    index: int
    time: int


class ChartPatternKind(str, Enum):
    TRIANGLE = "triangle"
    WEDGE = "wedge"
    HEAD_AND_SHOULDERS = "head_and_shoulders"
    INVERSE_HEAD_AND_SHOULDERS = "inverse_head_and_shoulders"
    DOUBLE_TOP = "double_top"
    DOUBLE_BOTTOM = "double_bottom"
    FLAG = "flag"


@dataclass(frozen=True)
class KeyPoint:
    """Pattern anchor: ``role`` names the point, e.g. 'head' or 'left_shoulder'"""
    time: int
    value: float
    role: str
    index: Optional[int] = None

    def to_dict(self) -> dict[str, Any]:
        return {"time": self.time, "value": self.value, "role": self.role}


@dataclass(frozen=True)
class PatternMetrics:
    """Price levels derived from pattern geometry"""
    target: Optional[float] = None
    stop_loss: Optional[float] = None
    breakout_level: Optional[float] = None

    def to_dict(self) -> dict[str, Optional[float]]:
        return {
            "target": self.target,
            "stop_loss": self.stop_loss,
            "breakout_level": self.breakout_level,
        }


@dataclass(frozen=True)
class ChartPattern:
    """A detected chart pattern"""
    kind: ChartPatternKind
    key_points: tuple[KeyPoint, ...]
    confidence: float
    metrics: PatternMetrics
    implication: Direction = Direction.NEUTRAL
    variant: Optional[str] = None              # e.g. 'symmetric', 'rising', 'bull'
    start_index: int = 0
    end_index: int = 0
    symmetry_error: float = 0.0
    touches: int = 0

    @property
    def name(self) -> str:
        label = self.kind.value.replace("_", " ")
        return f"{self.variant} {label}" if self.variant else label

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "variant": self.variant,
            "key_points": [p.to_dict() for p in self.key_points],
            "confidence": self.confidence,
            "metrics": self.metrics.to_dict(),
            "implication": self.implication.value,
        }
