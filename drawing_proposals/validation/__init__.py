"""Output validation for serialized drawing proposals."""

from .proposal_schema import ProposalValidationError, ProposalValidator, validate_proposal

__all__ = ["ProposalValidationError", "ProposalValidator", "validate_proposal"]
