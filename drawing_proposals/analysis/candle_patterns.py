"""Candlestick pattern classification over 1-3 candle windows"""

from collections.abc import Iterable, Sequence
from typing import Optional

from ..config.defaults import CandleParams
from ..data.models import Candle
from ..metrics.candle_structure import CandleStructure, analyze_candle_structure
from ..models.enums import Direction
from ..models.patterns import CandlePattern, CandlePatternMatch

# Minimum body share of range for the outer candles of a star pattern
_STAR_OUTER_BODY_PCT = 0.5


class CandlePatternMatcher:
    """
    Classifies the candle ending a window into named patterns.

    Patterns are independent predicates; one candle may be both a doji and
    the end of an evening star, and every match is returned.
    """

    def __init__(self, params: Optional[CandleParams] = None):
        self.params = params or CandleParams()

    def _structure(self, candle: Candle) -> CandleStructure:
        return analyze_candle_structure(candle, self.params.doji_threshold)

    def match(self, window: Sequence[Candle], index: Optional[int] = None) -> list[CandlePatternMatch]:
        """
        Patterns ending on the last candle of a 1-3 candle window.

        Args:
            window: Up to three consecutive candles, oldest first
            index: Series index of the last candle, recorded on each match

        Returns:
            All matching patterns
        """
        if not window:
            return []

        window = list(window)[-3:]
        last = window[-1]
        idx = index if index is not None else len(window) - 1
        p = self.params
        s = self._structure(last)
        matches = []

        def add(pattern: CandlePattern, direction: Direction) -> None:
            matches.append(CandlePatternMatch(pattern=pattern, direction=direction, index=idx, time=last.time))

        if s.lower_wick > p.pin_wick_body_ratio * s.body and s.upper_wick < p.pin_opposite_wick_ratio * s.body:
            add(CandlePattern.PIN_BAR, Direction.BULLISH)

        if s.upper_wick > p.pin_wick_body_ratio * s.body and s.lower_wick < p.pin_opposite_wick_ratio * s.body:
            add(CandlePattern.SHOOTING_STAR, Direction.BEARISH)

        if s.is_doji:
            add(CandlePattern.DOJI, Direction.NEUTRAL)

        if (s.is_bull and s.lower_wick >= p.hammer_wick_body_ratio * s.body
                and s.upper_wick < p.hammer_upper_wick_ratio * s.body):
            add(CandlePattern.HAMMER, Direction.BULLISH)

        if len(window) >= 2:
            prev = window[-2]
            if prev.is_bearish and last.is_bullish and last.open <= prev.close and last.close >= prev.open:
                add(CandlePattern.ENGULFING, Direction.BULLISH)
            elif prev.is_bullish and last.is_bearish and last.open >= prev.close and last.close <= prev.open:
                add(CandlePattern.ENGULFING, Direction.BEARISH)

        if len(window) == 3:
            star = self._match_star(window[0], window[1], last)
            if star is not None:
                add(*star)

        return matches

    def _match_star(self, first: Candle, middle: Candle,
                    last: Candle) -> Optional[tuple[CandlePattern, Direction]]:
        s1 = self._structure(first)
        s2 = self._structure(middle)
        s3 = self._structure(last)

        if s1.body_pct < _STAR_OUTER_BODY_PCT or s2.body > self.params.star_small_body_ratio * s1.body:
            return None

        if s1.is_bear and s3.is_bull and last.close > s1.body_mid:
            return CandlePattern.MORNING_STAR, Direction.BULLISH
        if s1.is_bull and s3.is_bear and last.close < s1.body_mid:
            return CandlePattern.EVENING_STAR, Direction.BEARISH
        return None

    def match_at(self, candles: Sequence[Candle], index: int) -> list[CandlePatternMatch]:
        """Patterns ending on ``candles[index]``"""
        return self.match(candles[max(0, index - 2):index + 1], index=index)

    def scan(self, candles: Sequence[Candle],
             indices: Optional[Iterable[int]] = None) -> list[CandlePatternMatch]:
        """Matches ending on each of ``indices`` (every candle by default)"""
        if indices is None:
            indices = range(len(candles))
        matches = []
        for i in indices:
            matches.extend(self.match_at(candles, i))
        return matches

    def confirmation_ratio(self, candles: Sequence[Candle], indices: Iterable[int],
                           role: Direction) -> float:
        """
        Pattern confirmation factor in [0, 1].

        Counts candles among ``indices`` that end a pattern agreeing with
        ``role`` (neutral patterns agree with every role). Reaching
        ``confirmation_saturation`` such candles scores 1.
        """
        confirming = set()
        for m in self.scan(candles, indices):
            if role is Direction.NEUTRAL or m.direction in (role, Direction.NEUTRAL):
                confirming.add(m.index)
        return min(1.0, len(confirming) / max(1, self.params.confirmation_saturation))
