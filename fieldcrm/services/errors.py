"""
Lead engine errors.

Every engine failure carries a human-readable message naming the entity
and the reason; the API layer maps each kind to an HTTP status.
"""
from __future__ import annotations

from typing import Any, Dict, Optional


class LeadEngineError(Exception):
    """Base error for lead lifecycle operations."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotAuthenticated(LeadEngineError):
    """Raised when no active acting user is available."""

    status_code = 401

    def __init__(self, message: str = "User not authenticated."):
        super().__init__(message)


class NotFound(LeadEngineError):
    """Raised when a lead, user or customer does not exist."""

    status_code = 404


class TargetNotFound(LeadEngineError):
    """Raised when an assignment target is missing, inactive or has the wrong role."""

    status_code = 404


class ValidationFailed(LeadEngineError):
    """Raised before any store call when required fields are missing or invalid."""

    status_code = 400


class DuplicateDetected(LeadEngineError):
    """Raised when lead creation is blocked by an existing lead with the same phone."""

    status_code = 409

    def __init__(self, message: str, existing_lead: Any = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.existing_lead = existing_lead
        # Snapshot of the existing lead, readable after the session is closed
        self.details = details


class PersistenceError(LeadEngineError):
    """Raised when the store rejects or fails a statement."""

    status_code = 503

    def __init__(self, message: str, retryable: bool = False, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.retryable = retryable
        self.cause = cause


class ConversionFailed(LeadEngineError):
    """Raised when converting a lead to a customer could not be applied as a whole."""

    status_code = 500


class AssignmentConflict(LeadEngineError):
    """Raised by strict reassignment when the lead no longer belongs to the expected operator."""

    status_code = 409
