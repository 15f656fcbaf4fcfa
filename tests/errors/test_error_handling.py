"""Tests for the error taxonomy and its logging helpers"""

import pytest
import structlog
from structlog.testing import capture_logs

from drawing_proposals.errors import (
    ComputationError,
    ConfigurationError,
    DataFetchError,
    DataQualityError,
    DetectorFailureError,
    GracefulDegradationError,
    InsufficientDataError,
    MalformedDataError,
    MissingDataError,
    PartialTimeframeFailure,
    SystemFailureError,
    TemporalDataError,
    ValidationError,
)
from drawing_proposals.logging.config import log_candidate_dropped, log_detector_failure


class TestDataQualityErrors:
    """Test recoverable data errors"""

    @pytest.mark.parametrize("error", [
        TemporalDataError("out of order", timestamp=2, previous_timestamp=3),
        MalformedDataError("bad candle", expected_format="ohlc"),
        MissingDataError("no volume column", data_type="volume"),
        InsufficientDataError("short", required_count=20, available_count=5),
        DataFetchError("down", symbol="BTCUSDT", interval="1h"),
        ComputationError("vertical", operation="fit_line"),
    ])
    def test_recoverable(self, error):
        assert isinstance(error, DataQualityError)
        assert error.recoverable

    def test_context_defaults_to_empty(self):
        assert MalformedDataError("bad").context == {}

    def test_context_is_kept(self):
        error = DataFetchError("down", symbol="BTCUSDT", context={"attempt": 1})
        assert error.context == {"attempt": 1}
        assert error.symbol == "BTCUSDT"

    def test_insufficient_counts(self):
        error = InsufficientDataError("short", required_count=20, available_count=5)
        assert (error.required_count, error.available_count) == (20, 5)


class TestSystemFailures:
    """Test non-recoverable failures"""

    def test_detector_failure_keeps_cause(self):
        cause = ZeroDivisionError("division by zero")
        error = DetectorFailureError("fibonacci failed", detector="fibonacci", cause=cause)

        assert isinstance(error, SystemFailureError)
        assert not error.recoverable
        assert error.cause is cause

    def test_configuration_error_section(self):
        assert ConfigurationError("bad", config_section="atr").config_section == "atr"

    def test_validation_error_is_not_recoverable(self):
        error = ValidationError("bad interval", field="interval", value="2h")
        assert (error.field, error.value, error.recoverable) == ("interval", "2h", False)


class TestRecovery:
    """Test degradation classifications"""

    def test_partial_timeframe_failure(self):
        error = PartialTimeframeFailure("4h timed out", interval="4h", reason="timeout")

        assert isinstance(error, GracefulDegradationError)
        assert error.degraded_functionality == "timeframe_confluence"
        assert error.fallback_strategy == "exclude_timeframe"
        assert error.interval == "4h"


class TestLoggingHelpers:
    """Test structured logging of dropped candidates and failed detectors"""

    def test_candidate_dropped(self):
        logger = structlog.get_logger("test")
        with capture_logs() as logs:
            log_candidate_dropped(logger, "trendline", "too few touches", {"touches": 1})

        assert logs[0]["detector"] == "trendline"
        assert logs[0]["reason"] == "too few touches"

    def test_detector_failure(self):
        logger = structlog.get_logger("test")
        error = DetectorFailureError("boom", detector="pattern", cause=RuntimeError("boom"))
        with capture_logs() as logs:
            log_detector_failure(logger, "pattern", error, "BTCUSDT", "1h")

        assert logs[0]["log_level"] == "error"
        assert logs[0]["symbol"] == "BTCUSDT"
