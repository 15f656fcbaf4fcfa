"""Shared fixtures for proposal generator tests"""

from typing import Optional

import pytest

from drawing_proposals.analysis.candle_patterns import CandlePatternMatcher
from drawing_proposals.analysis.market_condition import analyze_market_condition
from drawing_proposals.analysis.scoring import ConfidenceScorer
from drawing_proposals.analysis.touches import TouchDetector
from drawing_proposals.config.defaults import EngineConfig, get_default_config
from drawing_proposals.generators import GenerationContext
from drawing_proposals.metrics.volume import mean_volume

CREATED_AT = 1_700_000_000_000


@pytest.fixture
def generation_context():
    """Build the context the engine would hand to generators, with neutral confluence."""

    def build(candles, config: Optional[EngineConfig] = None, timeframe_score: float = 0.5,
              symbol: str = "BTCUSDT", interval: str = "1h") -> GenerationContext:
        config = config or get_default_config()
        touches = TouchDetector(config.atr.period, config.atr.touch_multiplier)
        atr = touches.atr.calculate(candles)
        return GenerationContext(
            symbol=symbol,
            interval=interval,
            candles=candles,
            config=config,
            created_at=CREATED_AT,
            atr=atr,
            tolerance=atr * config.atr.touch_multiplier,
            mean_volume=mean_volume(candles),
            timeframe_score=timeframe_score,
            market_condition=analyze_market_condition(candles, config.atr.period),
            touches=touches,
            candle_patterns=CandlePatternMatcher(config.candle),
            scorer=ConfidenceScorer(config.scoring),
        )

    return build


@pytest.fixture
def swing_candles(candle_factory):
    """Rally 100 -> 130 over 20 bars, drop to 110 by bar 40, recover to 125 by bar 55."""
    mids = []
    for i in range(56):
        if i <= 20:
            mids.append(100.0 + 1.5 * i)
        elif i <= 40:
            mids.append(130.0 - (i - 20))
        else:
            mids.append(110.0 + (i - 40))
    return [candle_factory(i, m - 0.05, m + 0.3, m - 0.3, m + 0.05) for i, m in enumerate(mids)]
