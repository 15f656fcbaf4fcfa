"""Schema validation for serialized drawing proposals."""

import math
import re
from typing import Any

import structlog

from ..models.enums import Direction
from ..models.proposals import Priority, ProposalKind

logger = structlog.get_logger(__name__)

_COLOR_PATTERN = re.compile(r"^#[0-9a-fA-F]{6}$")

# Serialized proposal schema
PROPOSAL_SCHEMA = {
    "type": "object",
    "required": ["id", "type", "confidence", "priority", "reasoning", "symbol", "interval",
                 "created_at", "direction", "drawing_data"],
    "properties": {
        "id": {"type": "string", "minLength": 1},
        "type": {"type": "string", "enum": [k.value for k in ProposalKind]},
        "confidence": {"type": "number", "minimum": 0, "maximum": 1},
        "priority": {"type": "string", "enum": [p.value for p in Priority]},
        "direction": {"type": "string", "enum": [d.value for d in Direction]},
        "created_at": {"type": "integer", "minimum": 0, "description": "Milliseconds since the epoch"},
        "drawing_data": {
            "type": "object",
            "required": ["type", "points", "style"],
            "properties": {
                "points": {"type": "array", "items": {"required": ["time", "value"]}},
                "style": {"type": "object", "required": ["color", "line_width", "line_style"]},
            },
        },
    },
    "additionalProperties": True,
}

# Exact point counts per drawing type; None means any non-zero count
_POINT_COUNTS = {
    ProposalKind.TREND_LINE.value: 2,
    ProposalKind.RAY.value: 2,
    ProposalKind.FIBONACCI.value: 2,
    ProposalKind.HORIZONTAL_LINE.value: None,
    ProposalKind.PATTERN.value: None,
}


class ProposalValidationError(Exception):
    """Proposal validation error."""
    pass


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


class ProposalValidator:
    """Validates serialized proposals (``DrawingProposal.to_dict()``) before they leave the engine."""

    def __init__(self):
        self.logger = logger
        self.schema = PROPOSAL_SCHEMA

    def validate_proposal(self, proposal: dict[str, Any]) -> bool:
        """
        Validate a proposal against the schema.

        Args:
            proposal: Serialized proposal

        Returns:
            True if valid

        Raises:
            ProposalValidationError: If validation fails
        """
        try:
            self._validate_required_fields(proposal)
            self._validate_field_values(proposal)
            self._validate_drawing(proposal)
            return True

        except (ValueError, TypeError, KeyError) as e:
            error_msg = f"Proposal validation failed: {e}"
            self.logger.error(error_msg, proposal_id=proposal.get("id") if isinstance(proposal, dict) else None)
            raise ProposalValidationError(error_msg) from e

    def _validate_required_fields(self, proposal: dict[str, Any]) -> None:
        if not isinstance(proposal, dict):
            raise TypeError("proposal must be an object")
        missing = [f for f in self.schema["required"] if f not in proposal]
        if missing:
            raise ValueError(f"Missing required fields: {missing}")

    def _validate_field_values(self, proposal: dict[str, Any]) -> None:
        props = self.schema["properties"]

        if not isinstance(proposal["id"], str) or not proposal["id"]:
            raise ValueError("id must be a non-empty string")

        if proposal["type"] not in props["type"]["enum"]:
            raise ValueError(f"Invalid type: {proposal['type']}")

        confidence = proposal["confidence"]
        if not _is_number(confidence) or not 0 <= confidence <= 1:
            raise ValueError(f"confidence must be a number between 0-1, got: {confidence}")

        if proposal["priority"] not in props["priority"]["enum"]:
            raise ValueError(f"Invalid priority: {proposal['priority']}")

        if proposal["direction"] not in props["direction"]["enum"]:
            raise ValueError(f"Invalid direction: {proposal['direction']}")

        created_at = proposal["created_at"]
        if not isinstance(created_at, int) or isinstance(created_at, bool) or created_at < 0:
            raise ValueError(f"created_at must be a non-negative integer, got: {created_at}")

    def _validate_drawing(self, proposal: dict[str, Any]) -> None:
        drawing = proposal["drawing_data"]
        if not isinstance(drawing, dict):
            raise ValueError("drawing_data must be an object")

        kind = drawing.get("type")
        if kind != proposal["type"]:
            raise ValueError(f"drawing type {kind} does not match proposal type {proposal['type']}")

        points = drawing.get("points")
        if not isinstance(points, list) or not points:
            raise ValueError("drawing must have at least one point")

        expected = _POINT_COUNTS[kind]
        if expected is not None and len(points) != expected:
            raise ValueError(f"{kind} requires exactly {expected} points, got {len(points)}")

        for i, point in enumerate(points):
            time_value, price = point.get("time"), point.get("value")
            if not isinstance(time_value, int) or isinstance(time_value, bool) or time_value <= 0:
                raise ValueError(f"point {i} time must be a positive integer, got: {time_value}")
            if not _is_number(price) or price <= 0:
                raise ValueError(f"point {i} value must be a positive number, got: {price}")

        if kind == ProposalKind.HORIZONTAL_LINE.value:
            price = drawing.get("price")
            if not _is_number(price) or price <= 0:
                raise ValueError(f"horizontal line requires a positive price, got: {price}")

        if kind == ProposalKind.FIBONACCI.value and not drawing.get("levels"):
            raise ValueError("fibonacci drawing requires levels")

        style = drawing.get("style")
        if not isinstance(style, dict):
            raise ValueError("style must be an object")
        if not isinstance(style.get("color"), str) or not _COLOR_PATTERN.match(style["color"]):
            raise ValueError(f"Invalid style color: {style.get('color')}")
        if not isinstance(style.get("line_width"), int) or style["line_width"] <= 0:
            raise ValueError(f"line_width must be a positive integer, got: {style.get('line_width')}")
        if style.get("line_style") not in ("solid", "dashed", "dotted"):
            raise ValueError(f"Invalid line_style: {style.get('line_style')}")

    def validate_proposals(self, proposals: list[dict[str, Any]]) -> list[bool]:
        """
        Validate multiple proposals.

        Returns:
            List of boolean validation results
        """
        results = []
        for proposal in proposals:
            try:
                results.append(self.validate_proposal(proposal))
            except ProposalValidationError:
                results.append(False)
        return results

    def get_schema(self) -> dict[str, Any]:
        """Get the schema for serialized proposals."""
        return self.schema.copy()


def validate_proposal(proposal: dict[str, Any]) -> bool:
    """Convenience function to validate one serialized proposal."""
    return ProposalValidator().validate_proposal(proposal)
