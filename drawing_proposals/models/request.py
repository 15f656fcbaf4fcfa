"""Request and result contract of the proposal engine"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from ..errors import ValidationError
from ..utils.time import SUPPORTED_INTERVALS
from .proposals import ProposalGroup


class AnalysisType(str, Enum):
    TRENDLINE = "trendline"
    SUPPORT_RESISTANCE = "support-resistance"
    FIBONACCI = "fibonacci"
    PATTERN = "pattern"
    ALL = "all"


# Order in which ALL runs the individual analyses
ANALYSIS_SEQUENCE: tuple[AnalysisType, ...] = (
    AnalysisType.TRENDLINE,
    AnalysisType.SUPPORT_RESISTANCE,
    AnalysisType.FIBONACCI,
    AnalysisType.PATTERN,
)

# Accepted spellings for each request field
_FIELD_ALIASES = {
    "symbol": ("symbol",),
    "interval": ("interval",),
    "analysis_type": ("analysis_type", "analysisType"),
    "max_proposals": ("max_proposals", "maxProposals"),
    "since_timestamp": ("since_timestamp", "sinceTimestamp"),
    "exclude_ids": ("exclude_ids", "excludeIds"),
}


@dataclass(frozen=True)
class ProposalRequest:
    """Parameters of one proposal generation request"""
    symbol: str
    interval: str
    analysis_type: AnalysisType = AnalysisType.ALL
    max_proposals: int = 5
    since_timestamp: Optional[int] = None
    exclude_ids: frozenset[str] = field(default_factory=frozenset)

    @property
    def analysis_types(self) -> tuple[AnalysisType, ...]:
        if self.analysis_type is AnalysisType.ALL:
            return ANALYSIS_SEQUENCE
        return (self.analysis_type,)

    def validate(self, max_proposals_limit: int = 50) -> None:
        """
        Check every parameter before any computation runs.

        Raises:
            ValidationError: On the first invalid parameter
        """
        if not isinstance(self.symbol, str) or not self.symbol.strip():
            raise ValidationError("symbol must be a non-empty string", field="symbol", value=self.symbol)

        if self.interval not in SUPPORTED_INTERVALS:
            raise ValidationError(
                f"interval must be one of {', '.join(SUPPORTED_INTERVALS)}",
                field="interval",
                value=self.interval,
            )

        if not isinstance(self.analysis_type, AnalysisType):
            raise ValidationError("unknown analysis type", field="analysis_type", value=self.analysis_type)

        if (not isinstance(self.max_proposals, int) or isinstance(self.max_proposals, bool)
                or not 1 <= self.max_proposals <= max_proposals_limit):
            raise ValidationError(
                f"max_proposals must be an integer between 1 and {max_proposals_limit}",
                field="max_proposals",
                value=self.max_proposals,
            )

        if self.since_timestamp is not None and (
                not isinstance(self.since_timestamp, int) or isinstance(self.since_timestamp, bool)
                or self.since_timestamp < 0):
            raise ValidationError(
                "since_timestamp must be a non-negative integer (unix seconds)",
                field="since_timestamp",
                value=self.since_timestamp,
            )

        if not all(isinstance(i, str) for i in self.exclude_ids):
            raise ValidationError("exclude_ids must contain strings", field="exclude_ids", value=self.exclude_ids)

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any], max_proposals_limit: int = 50) -> "ProposalRequest":
        """
        Build and validate a request from camelCase or snake_case keys.

        Raises:
            ValidationError: If a parameter is missing or malformed
        """
        if not isinstance(payload, Mapping):
            raise ValidationError("request must be an object", value=payload)

        values: dict[str, Any] = {}
        for name, aliases in _FIELD_ALIASES.items():
            for alias in aliases:
                if alias in payload:
                    values[name] = payload[alias]
                    break

        for required in ("symbol", "interval"):
            if required not in values:
                raise ValidationError(f"{required} is required", field=required)

        raw_type = values.get("analysis_type", AnalysisType.ALL.value)
        try:
            values["analysis_type"] = AnalysisType(raw_type)
        except ValueError:
            raise ValidationError(
                f"analysis_type must be one of {', '.join(t.value for t in AnalysisType)}",
                field="analysis_type",
                value=raw_type,
            )

        exclude = values.get("exclude_ids") or ()
        if isinstance(exclude, str) or not hasattr(exclude, "__iter__"):
            raise ValidationError("exclude_ids must be a list of strings", field="exclude_ids", value=exclude)
        exclude = list(exclude)
        if not all(isinstance(i, str) for i in exclude):
            raise ValidationError("exclude_ids must be a list of strings", field="exclude_ids", value=exclude)
        values["exclude_ids"] = frozenset(exclude)

        if values.get("max_proposals") is None:
            values.pop("max_proposals", None)

        request = cls(**values)
        request.validate(max_proposals_limit)
        return request


class FailureKind(str, Enum):
    VALIDATION = "validation"
    DATA_FETCH = "data_fetch"
    INSUFFICIENT_DATA = "insufficient_data"
    MALFORMED_DATA = "malformed_data"
    INTERNAL = "internal"


@dataclass(frozen=True)
class GenerationResult:
    """Tagged outcome of a generation request: a group on success, a reason otherwise"""
    success: bool
    proposal_group: Optional[ProposalGroup] = None
    error: Optional[str] = None
    error_kind: Optional[FailureKind] = None
    diagnostics: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def ok(cls, group: ProposalGroup, diagnostics: Optional[dict[str, Any]] = None) -> "GenerationResult":
        return cls(success=True, proposal_group=group, diagnostics=diagnostics or {})

    @classmethod
    def failure(cls, kind: FailureKind, reason: str,
                diagnostics: Optional[dict[str, Any]] = None) -> "GenerationResult":
        return cls(success=False, error=reason, error_kind=kind, diagnostics=diagnostics or {})

    def to_dict(self) -> dict[str, Any]:
        if self.success and self.proposal_group is not None:
            return {
                "success": True,
                "proposal_group": self.proposal_group.to_dict(),
                "diagnostics": dict(self.diagnostics),
            }
        return {
            "success": False,
            "error": self.error,
            "error_kind": self.error_kind.value if self.error_kind else None,
            "diagnostics": dict(self.diagnostics),
        }
