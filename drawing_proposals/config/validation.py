"""Configuration validation utilities."""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class ConfigIssue:
    """Represents a configuration validation problem."""
    field: str
    message: str
    value: Any


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _positive_int(params: dict[str, Any], name: str, issues: list[ConfigIssue]) -> None:
    if name in params:
        value = params[name]
        if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
            issues.append(ConfigIssue(field=name, message="Must be a positive integer", value=value))


def _fraction(params: dict[str, Any], name: str, issues: list[ConfigIssue]) -> None:
    if name in params:
        value = params[name]
        if not _is_number(value) or value < 0 or value > 1:
            issues.append(ConfigIssue(field=name, message="Must be a number between 0 and 1", value=value))


class ConfigValidator:
    """Validates configuration parameters."""

    @staticmethod
    def validate_extrema_params(params: dict[str, Any]) -> list[ConfigIssue]:
        """Validate swing detection parameters."""
        issues: list[ConfigIssue] = []
        _positive_int(params, "window", issues)

        if "volume_weighted" in params and not isinstance(params["volume_weighted"], bool):
            issues.append(ConfigIssue(
                field="volume_weighted",
                message="Must be a boolean",
                value=params["volume_weighted"]
            ))

        return issues

    @staticmethod
    def validate_atr_params(params: dict[str, Any]) -> list[ConfigIssue]:
        """Validate ATR parameters."""
        issues: list[ConfigIssue] = []
        _positive_int(params, "period", issues)

        if "touch_multiplier" in params:
            value = params["touch_multiplier"]
            if not _is_number(value) or value < 0:
                issues.append(ConfigIssue(
                    field="touch_multiplier",
                    message="Must be a non-negative number",
                    value=value
                ))

        return issues

    @staticmethod
    def validate_scoring_params(params: dict[str, Any]) -> list[ConfigIssue]:
        """Validate confidence weights; all present weights must sum to 1."""
        issues: list[ConfigIssue] = []
        weight_names = ("touch_weight", "volume_weight", "confluence_weight", "pattern_weight", "fit_weight")

        for name in weight_names:
            _fraction(params, name, issues)

        if not issues and all(name in params for name in weight_names):
            total = sum(params[name] for name in weight_names)
            if abs(total - 1.0) > 1e-6:
                issues.append(ConfigIssue(
                    field="weights",
                    message="Weights must sum to 1",
                    value=total
                ))

        _positive_int(params, "touch_saturation", issues)
        return issues

    @staticmethod
    def validate_timeframe_params(params: dict[str, Any]) -> list[ConfigIssue]:
        """Validate higher timeframe parameters."""
        issues: list[ConfigIssue] = []

        if "fetch_timeout_seconds" in params:
            value = params["fetch_timeout_seconds"]
            if not _is_number(value) or value <= 0:
                issues.append(ConfigIssue(
                    field="fetch_timeout_seconds",
                    message="Must be a positive number",
                    value=value
                ))

        _fraction(params, "trend_threshold_pct", issues)
        _fraction(params, "neutral_confluence", issues)
        _positive_int(params, "candle_limit", issues)
        _positive_int(params, "max_workers", issues)
        return issues

    @staticmethod
    def validate_generation_params(params: dict[str, Any]) -> list[ConfigIssue]:
        """Validate orchestration parameters."""
        issues: list[ConfigIssue] = []
        _positive_int(params, "min_candles", issues)
        _positive_int(params, "default_max_proposals", issues)
        _positive_int(params, "max_proposals_limit", issues)
        _fraction(params, "dedup_price_pct", issues)
        _fraction(params, "min_confidence", issues)
        return issues

    @staticmethod
    def validate_config(config: dict[str, Any]) -> list[ConfigIssue]:
        """Validate complete configuration."""
        issues = []

        if "extrema" in config:
            issues.extend(ConfigValidator.validate_extrema_params(config["extrema"]))

        if "atr" in config:
            issues.extend(ConfigValidator.validate_atr_params(config["atr"]))

        if "scoring" in config:
            issues.extend(ConfigValidator.validate_scoring_params(config["scoring"]))

        if "timeframe" in config:
            issues.extend(ConfigValidator.validate_timeframe_params(config["timeframe"]))

        if "generation" in config:
            issues.extend(ConfigValidator.validate_generation_params(config["generation"]))

        return issues
