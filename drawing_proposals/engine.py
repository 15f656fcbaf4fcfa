"""
Main proposal engine coordinator.

Orchestrates the drawing proposal pipeline, coordinating request
validation, candle retrieval, higher timeframe confirmation, the
per-analysis generators and the final ranking of their proposals.
"""

import hashlib
from collections.abc import Mapping, Sequence
from typing import Any, Optional, Union

import structlog

from .analysis.candle_patterns import CandlePatternMatcher
from .analysis.market_condition import MarketCondition, analyze_market_condition
from .analysis.scoring import ConfidenceScorer
from .analysis.timeframes import MultiTimeframeAnalyzer, TimeframeConfluence
from .analysis.touches import TouchDetector
from .config.defaults import EngineConfig, get_default_config
from .config.loader import ConfigLoader
from .data.market_data import CachingMarketDataClient, MarketDataClient
from .data.models import Candle
from .data.validators import DataValidator
from .errors import (
    DataFetchError,
    DataQualityError,
    DetectorFailureError,
    InsufficientDataError,
    RecoverableError,
    ValidationError,
)
from .generators import (
    BaseProposalGenerator,
    FibonacciGenerator,
    GenerationContext,
    PatternGenerator,
    SupportResistanceGenerator,
    TrendlineGenerator,
)
from .logging.config import get_generation_logger, log_detector_failure
from .metrics.volume import mean_volume
from .models.enums import Direction
from .models.proposals import DrawingProposal, GroupSummary, ProposalGroup
from .models.request import AnalysisType, FailureKind, GenerationResult, ProposalRequest
from .persistence.analysis_cache import AnalysisCache
from .utils.time import Clock, now_ms
from .validation.proposal_schema import ProposalValidationError, ProposalValidator

logger = structlog.get_logger(__name__)
generation_logger = get_generation_logger(__name__)

_TITLES = {
    AnalysisType.TRENDLINE: "Trendline analysis",
    AnalysisType.SUPPORT_RESISTANCE: "Support and resistance analysis",
    AnalysisType.FIBONACCI: "Fibonacci analysis",
    AnalysisType.PATTERN: "Chart pattern analysis",
    AnalysisType.ALL: "Full technical analysis",
}


def rank_proposals(proposals: Sequence[DrawingProposal]) -> list[DrawingProposal]:
    """Confidence descending; ties broken by earlier ``created_at``, then id"""
    return sorted(proposals, key=lambda p: (-p.confidence, p.created_at, p.id))


def dedupe_proposals(proposals: Sequence[DrawingProposal], price_distance: float) -> list[DrawingProposal]:
    """
    Drop near-duplicate proposals, keeping the more confident one.

    Two proposals are duplicates when their ``dedup_key`` matches and every
    pair of anchor prices lies within ``price_distance``.

    Returns:
        Surviving proposals in ranked order
    """
    kept: list[DrawingProposal] = []
    for proposal in rank_proposals(proposals):
        key = proposal.dedup_key()
        anchors = proposal.anchor_prices()
        duplicate = any(
            k.dedup_key() == key
            and len(k.anchor_prices()) == len(anchors)
            and all(abs(a - b) <= price_distance for a, b in zip(k.anchor_prices(), anchors))
            for k in kept
        )
        if not duplicate:
            kept.append(proposal)
    return kept


def market_bias(proposals: Sequence[DrawingProposal]) -> Direction:
    """Majority direction among directional proposals; neutral on a tie"""
    bullish = sum(1 for p in proposals if p.direction is Direction.BULLISH)
    bearish = sum(1 for p in proposals if p.direction is Direction.BEARISH)
    if bullish > bearish:
        return Direction.BULLISH
    if bearish > bullish:
        return Direction.BEARISH
    return Direction.NEUTRAL


class ProposalGenerator:
    """
    Main coordinator for the drawing proposal system.

    Manages the generation pipeline:
    Request → Candles → Timeframe confluence → Generators → Rank → Group

    Public entry points never raise; every outcome is a GenerationResult.
    """

    def __init__(
        self,
        market_data: Optional[MarketDataClient] = None,
        config: Optional[EngineConfig] = None,
        config_loader: Optional[ConfigLoader] = None,
        generators: Optional[Sequence[BaseProposalGenerator]] = None,
        cache: Optional[AnalysisCache] = None,
        clock: Optional[Clock] = None,
        timeframe_analyzer: Optional[MultiTimeframeAnalyzer] = None,
    ) -> None:
        """
        Initialize the proposal engine.

        Args:
            market_data: Source of candle series; required by ``generate``
            config: Fixed configuration used for every symbol
            config_loader: Per-symbol configuration (ignored when ``config`` is set)
            generators: Generators to run, one per analysis type
            cache: Shared TTL cache for fetched candle series
            clock: Wall-clock source in seconds, used to stamp proposals
            timeframe_analyzer: Overrides the default higher timeframe analyzer
        """
        self.logger = logger
        self.generation_logger = generation_logger

        if market_data is not None and cache is not None:
            market_data = CachingMarketDataClient(market_data, cache)
        self.market_data = market_data
        self.config = config
        self.config_loader = config_loader
        self.clock = clock
        self.timeframe_analyzer = timeframe_analyzer
        self.validator = DataValidator()
        self.proposal_validator = ProposalValidator()

        if generators is None:
            generators = (
                TrendlineGenerator(),
                SupportResistanceGenerator(),
                FibonacciGenerator(),
                PatternGenerator(),
            )
        self.generators: dict[AnalysisType, BaseProposalGenerator] = {
            g.analysis_type: g for g in generators
        }

        self.logger.info(
            "Proposal engine initialized",
            generators=[g.name for g in self.generators.values()],
            has_market_data=self.market_data is not None,
        )

    def generate(self, request: Union[ProposalRequest, Mapping[str, Any]]) -> GenerationResult:
        """
        Fetch candles for the request and generate proposals from them.

        Args:
            request: ProposalRequest or its dictionary form

        Returns:
            GenerationResult with the proposal group or the failure reason
        """
        try:
            request = self._coerce_request(request)
        except ValidationError as e:
            return self._validation_failure(e)

        if self.market_data is None:
            return GenerationResult.failure(FailureKind.DATA_FETCH, "No market data source configured")

        try:
            config = self._resolve_config(request.symbol)
            candles = self._fetch(request, config)
        except (DataFetchError, ValidationError) as e:
            self.logger.warning(
                "Candle fetch failed",
                symbol=request.symbol,
                interval=request.interval,
                error=str(e),
                error_type=type(e).__name__,
            )
            return GenerationResult.failure(FailureKind.DATA_FETCH, f"Failed to fetch candles: {e}")
        except Exception as e:
            return self._internal_failure(request, e)

        if not candles:
            return GenerationResult.failure(
                FailureKind.DATA_FETCH,
                f"No candles available for {request.symbol} {request.interval}",
            )

        return self.generate_from_candles(request, candles)

    def generate_from_candles(
        self,
        request: Union[ProposalRequest, Mapping[str, Any]],
        candles: Sequence[Candle],
    ) -> GenerationResult:
        """
        Generate proposals from a caller-supplied candle series.

        Args:
            request: ProposalRequest or its dictionary form
            candles: Candles in chronological order

        Returns:
            GenerationResult with the proposal group or the failure reason
        """
        try:
            request = self._coerce_request(request)
        except ValidationError as e:
            return self._validation_failure(e)

        try:
            config = self._resolve_config(request.symbol)

            series, skipped = self.validator.split_non_finite(candles)
            if skipped:
                self.logger.warning(
                    "Non-finite candles skipped",
                    symbol=request.symbol,
                    interval=request.interval,
                    skipped_indices=skipped,
                )
            self.validator.validate_series(series)

            if request.since_timestamp is not None:
                series = [c for c in series if c.time >= request.since_timestamp]

            required = config.generation.min_candles
            if len(series) < required:
                raise InsufficientDataError(
                    f"At least {required} candles are required, got {len(series)}",
                    required_count=required,
                    available_count=len(series),
                )

            return self._analyze(request, config, series, skipped_candles=len(skipped))

        except InsufficientDataError as e:
            self.logger.info(
                "Not enough candles for analysis",
                symbol=request.symbol,
                interval=request.interval,
                required=e.required_count,
                available=e.available_count,
            )
            return GenerationResult.failure(
                FailureKind.INSUFFICIENT_DATA,
                str(e),
                {"required": e.required_count, "available": e.available_count},
            )

        except DataQualityError as e:
            self.logger.warning(
                "Data quality issue during proposal generation",
                symbol=request.symbol,
                interval=request.interval,
                error=str(e),
                error_type=type(e).__name__,
                context=getattr(e, 'context', {})
            )
            return GenerationResult.failure(FailureKind.MALFORMED_DATA, str(e), dict(e.context))

        except RecoverableError as e:
            self.logger.warning(
                "Recoverable error during proposal generation",
                symbol=request.symbol,
                interval=request.interval,
                error=str(e),
                error_type=type(e).__name__,
                retry_count=getattr(e, 'retry_count', 0)
            )
            return GenerationResult.failure(FailureKind.INTERNAL, str(e))

        except Exception as e:
            return self._internal_failure(request, e)

    def _analyze(self, request: ProposalRequest, config: EngineConfig,
                 candles: list[Candle], skipped_candles: int = 0) -> GenerationResult:
        created_at = now_ms(self.clock)
        touches = TouchDetector(config.atr.period, config.atr.touch_multiplier)
        atr = touches.atr.calculate(candles)
        condition = analyze_market_condition(candles, config.atr.period)
        confluence = self._confluence(request, config, candles)
        neutral = config.timeframe.neutral_confluence

        context = GenerationContext(
            symbol=request.symbol,
            interval=request.interval,
            candles=candles,
            config=config,
            created_at=created_at,
            atr=atr,
            tolerance=atr * config.atr.touch_multiplier,
            mean_volume=mean_volume(candles),
            timeframe_score=confluence.score(neutral) if confluence is not None else neutral,
            market_condition=condition,
            touches=touches,
            candle_patterns=CandlePatternMatcher(config.candle),
            scorer=ConfidenceScorer(config.scoring),
        )

        generated: list[DrawingProposal] = []
        failed_detectors: list[str] = []

        for analysis_type in request.analysis_types:
            generator = self.generators.get(analysis_type)
            if generator is None:
                self.generation_logger.warning("No generator registered", analysis_type=analysis_type.value)
                continue
            try:
                generated.extend(generator.generate(context))
            except Exception as e:
                failure = DetectorFailureError(
                    f"{generator.name} generator failed: {e}",
                    detector=generator.name,
                    cause=e,
                )
                log_detector_failure(self.generation_logger, generator.name, failure,
                                     request.symbol, request.interval)
                failed_detectors.append(generator.name)

        generated = [p for p in generated if self._is_valid(p)]
        remaining = [p for p in generated if p.id not in request.exclude_ids]
        unique = dedupe_proposals(remaining, context.last_close * config.generation.dedup_price_pct)
        selected = unique[:request.max_proposals]

        group = self._assemble(request, selected, condition, confluence, created_at)
        diagnostics = {
            "candle_count": len(candles),
            "skipped_candles": skipped_candles,
            "atr": atr,
            "tolerance": context.tolerance,
            "generated": len(generated),
            "excluded": len(generated) - len(remaining),
            "duplicates": len(remaining) - len(unique),
            "failed_detectors": failed_detectors,
            "failed_timeframes": list(confluence.failed) if confluence is not None else [],
        }

        self.generation_logger.info(
            "Proposal group generated",
            symbol=request.symbol,
            interval=request.interval,
            analysis_type=request.analysis_type.value,
            proposals=len(selected),
            **{k: v for k, v in diagnostics.items() if k in ("generated", "excluded", "duplicates")},
        )
        return GenerationResult.ok(group, diagnostics)

    def _is_valid(self, proposal: DrawingProposal) -> bool:
        try:
            return self.proposal_validator.validate_proposal(proposal.to_dict())
        except ProposalValidationError as e:
            self.generation_logger.warning("Invalid proposal dropped", proposal_id=proposal.id, error=str(e))
            return False

    def _confluence(self, request: ProposalRequest, config: EngineConfig,
                    candles: Sequence[Candle]) -> Optional[TimeframeConfluence]:
        """Higher timeframe confluence; None (neutral scoring) when it cannot be computed"""
        analyzer = self.timeframe_analyzer or MultiTimeframeAnalyzer(self.market_data, config.timeframe)
        try:
            return analyzer.analyze(request.symbol, request.interval, candles)
        except Exception as e:
            self.logger.warning(
                "Timeframe confluence unavailable, scoring as neutral",
                symbol=request.symbol,
                interval=request.interval,
                error=str(e),
                error_type=type(e).__name__,
            )
            return None

    def _assemble(self, request: ProposalRequest, proposals: list[DrawingProposal],
                  condition: MarketCondition, confluence: Optional[TimeframeConfluence],
                  created_at: int) -> ProposalGroup:
        average = sum(p.confidence for p in proposals) / len(proposals) if proposals else 0.0
        confluence_value = confluence.confluence if confluence is not None and confluence.available else None

        if proposals:
            description = (
                f"{len(proposals)} drawing proposal{'s' if len(proposals) != 1 else ''} "
                f"for {request.symbol} on {request.interval}; {condition.describe()}"
            )
        else:
            description = f"No drawing proposals met the confidence threshold for {request.symbol} on {request.interval}"
        if confluence_value is not None:
            description += f"; higher timeframe confluence {confluence_value:.0%}"

        digest = hashlib.sha256(
            "|".join([request.symbol, request.interval, request.analysis_type.value, str(created_at)]
                     + [p.id for p in proposals]).encode("utf-8")
        ).hexdigest()

        return ProposalGroup(
            id=f"group_{digest[:12]}",
            title=f"{_TITLES[request.analysis_type]}: {request.symbol} {request.interval}",
            description=description,
            proposals=tuple(proposals),
            summary=GroupSummary(
                market_bias=market_bias(proposals),
                average_confidence=average,
                market_condition=condition.condition.value,
                timeframe_confluence=confluence_value,
            ),
            symbol=request.symbol,
            interval=request.interval,
            analysis_type=request.analysis_type.value,
            created_at=created_at,
        )

    def _fetch(self, request: ProposalRequest, config: EngineConfig) -> list[Candle]:
        params = config.generation
        if request.since_timestamp is not None:
            return self.market_data.fetch_klines(request.symbol, request.interval, params.max_klines,
                                                 start=request.since_timestamp)
        return self.market_data.fetch_klines(request.symbol, request.interval, params.default_klines)

    def _resolve_config(self, symbol: str) -> EngineConfig:
        if self.config is not None:
            return self.config
        if self.config_loader is not None:
            return self.config_loader.load(symbol)
        return get_default_config()

    def _coerce_request(self, request: Union[ProposalRequest, Mapping[str, Any]]) -> ProposalRequest:
        limit = (self.config or get_default_config()).generation.max_proposals_limit
        if isinstance(request, ProposalRequest):
            request.validate(limit)
            return request
        return ProposalRequest.from_dict(request, limit)

    def _validation_failure(self, error: ValidationError) -> GenerationResult:
        self.logger.info("Request rejected", field=error.field, error=str(error))
        return GenerationResult.failure(
            FailureKind.VALIDATION,
            str(error),
            {"field": error.field} if error.field else None,
        )

    def _internal_failure(self, request: ProposalRequest, error: BaseException) -> GenerationResult:
        self.logger.error(
            "Unexpected error during proposal generation",
            symbol=request.symbol,
            interval=request.interval,
            error=str(error),
            error_type=type(error).__name__,
        )
        return GenerationResult.failure(FailureKind.INTERNAL, f"Internal error: {error}")
