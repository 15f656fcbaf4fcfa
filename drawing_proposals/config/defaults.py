"""Default configuration parameters for the drawing proposal engine."""

from dataclasses import dataclass


@dataclass(frozen=True)
class ExtremaParams:
    """Swing point detection parameters."""
    window: int = 10                                 # Bars on each side of a swing
    volume_weighted: bool = True                     # Rank swings by relative volume


@dataclass(frozen=True)
class ATRParams:
    """ATR calculation parameters."""
    period: int = 14
    touch_multiplier: float = 0.5                    # Touch tolerance = ATR * multiplier


@dataclass(frozen=True)
class CandleParams:
    """Candlestick pattern thresholds (ratios against body or range)."""
    doji_threshold: float = 0.1
    pin_wick_body_ratio: float = 2.0
    pin_opposite_wick_ratio: float = 0.5
    hammer_wick_body_ratio: float = 2.0
    hammer_upper_wick_ratio: float = 0.3
    star_small_body_ratio: float = 0.3
    confirmation_saturation: int = 3                 # Confirming candles for full score


@dataclass(frozen=True)
class TrendlineParams:
    """Trendline generation parameters."""
    min_span_bars: int = 10
    max_candidates: int = 5                          # Swing pairs examined per direction
    min_trend_move_pct: float = 0.01                 # Regression line needs a 1% move
    min_trend_r_squared: float = 0.6
    max_break_ratio: float = 0.2                     # Closes beyond the line before rejection
    project_active_as_ray: bool = False
    recent_bars: int = 20


@dataclass(frozen=True)
class SupportResistanceParams:
    """Horizontal level parameters."""
    swing_window: int = 5
    histogram_bins: int = 50
    histogram_percentile: float = 70.0
    cluster_pct: float = 0.005
    min_touches: int = 2
    max_levels: int = 10
    accuracy_scale: float = 50.0


@dataclass(frozen=True)
class FibonacciParams:
    """Fibonacci retracement parameters."""
    levels: tuple[float, ...] = (0.0, 0.236, 0.382, 0.5, 0.618, 0.786, 1.0)
    extension_levels: tuple[float, ...] = (1.272, 1.414, 1.618, 2.0, 2.618)
    major_levels: tuple[float, ...] = (0.382, 0.5, 0.618)
    min_span_bars: int = 10
    max_pairs: int = 5
    recent_swings: int = 10
    min_move_pct: float = 0.01


@dataclass(frozen=True)
class PatternParams:
    """Chart pattern geometry parameters."""
    extrema_window: int = 3
    max_pivots: int = 8
    flat_slope_pct: float = 0.0005                   # Per-bar slope treated as flat
    shoulder_tolerance: float = 0.03
    neckline_tolerance: float = 0.02
    double_tolerance: float = 0.01
    min_height_pct: float = 0.02
    min_separation_bars: int = 5
    pole_atr_multiple: float = 3.0
    pole_max_bars: int = 10
    flag_min_bars: int = 5
    flag_max_bars: int = 15
    flag_max_retrace: float = 0.5
    min_confidence: float = 0.6


@dataclass(frozen=True)
class TimeframeParams:
    """Higher timeframe confirmation parameters."""
    trend_threshold_pct: float = 0.02
    fetch_timeout_seconds: float = 3.0
    candle_limit: int = 100
    neutral_confluence: float = 0.5
    max_workers: int = 4


@dataclass(frozen=True)
class ScoringParams:
    """Confidence factor weights."""
    touch_weight: float = 0.25
    volume_weight: float = 0.20
    confluence_weight: float = 0.20
    pattern_weight: float = 0.15
    fit_weight: float = 0.20
    touch_saturation: int = 10


@dataclass(frozen=True)
class PriorityParams:
    """Priority thresholds."""
    high_confidence: float = 0.8
    high_min_touches: int = 5
    medium_confidence: float = 0.6
    medium_min_touches: int = 3


@dataclass(frozen=True)
class GenerationParams:
    """Orchestration parameters."""
    min_candles: int = 20
    default_max_proposals: int = 5
    max_proposals_limit: int = 50
    default_klines: int = 500
    max_klines: int = 1000
    dedup_price_pct: float = 0.005
    min_confidence: float = 0.3


@dataclass(frozen=True)
class CacheParams:
    """Analysis cache parameters."""
    max_entries: int = 256
    min_ttl_seconds: float = 5.0
    max_ttl_seconds: float = 300.0
    ttl_fraction: float = 0.25                       # Fraction of the interval length


@dataclass(frozen=True)
class EngineConfig:
    """Complete engine configuration."""
    extrema: ExtremaParams
    atr: ATRParams
    candle: CandleParams
    trendline: TrendlineParams
    support_resistance: SupportResistanceParams
    fibonacci: FibonacciParams
    pattern: PatternParams
    timeframe: TimeframeParams
    scoring: ScoringParams
    priority: PriorityParams
    generation: GenerationParams
    cache: CacheParams


def get_default_config() -> EngineConfig:
    """Get the default configuration instance."""
    return EngineConfig(
        extrema=ExtremaParams(),
        atr=ATRParams(),
        candle=CandleParams(),
        trendline=TrendlineParams(),
        support_resistance=SupportResistanceParams(),
        fibonacci=FibonacciParams(),
        pattern=PatternParams(),
        timeframe=TimeframeParams(),
        scoring=ScoringParams(),
        priority=PriorityParams(),
        generation=GenerationParams(),
        cache=CacheParams(),
    )
