"""Touch points, line fits and detected lines"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class LineKind(str, Enum):
    SUPPORT = "support"
    RESISTANCE = "resistance"
    TRENDLINE = "trendline"
    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"


@dataclass(frozen=True)
class TouchPoint:
    """A point on a line at a candle's time; ``index`` refers into the analyzed series"""
    time: int
    value: float
    index: Optional[int] = None

    def to_dict(self) -> dict[str, Any]:
        return {"time": self.time, "value": self.value}


@dataclass(frozen=True)
class LineFit:
    """Least-squares line ``price = slope * time + intercept``"""
    slope: float
    intercept: float
    r_squared: float
    point_count: int

    def price_at(self, time: float) -> float:
        return self.slope * time + self.intercept


@dataclass(frozen=True)
class DetectedLine:
    """A line or level found in a candle series.

    Sloped lines carry ``slope``/``intercept``; horizontal levels carry
    ``price``. Instances are ephemeral and rebuilt on every analysis call.
    """
    kind: LineKind
    touch_points: tuple[TouchPoint, ...]
    confidence: float
    timeframe: str
    price: Optional[float] = None
    r_squared: Optional[float] = None
    slope: Optional[float] = None
    intercept: Optional[float] = None

    @property
    def touch_count(self) -> int:
        return len(self.touch_points)

    @property
    def is_horizontal(self) -> bool:
        return self.price is not None

    def price_at(self, time: float) -> float:
        """Projected price of the line at ``time``"""
        if self.price is not None:
            return self.price
        if self.slope is None or self.intercept is None:
            raise ValueError(f"{self.kind.value} line has neither price nor slope")
        return self.slope * time + self.intercept
