"""Custom exceptions for StreamWarden.

Provides a hierarchy of exceptions for different error types.
All StreamWarden exceptions inherit from StreamWardenException.
"""

from typing import Any, Dict, Optional


class StreamWardenException(Exception):
    """Base exception for all StreamWarden errors.

    Attributes:
        message: Human-readable error message
        code: Machine-readable error code
        details: Additional context about the error
    """

    def __init__(
        self,
        message: str,
        code: str = "STREAMWARDEN_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }


class CollaboratorError(StreamWardenException):
    """Raised when an external collaborator (store, notifier, media server) fails."""

    def __init__(
        self,
        message: str,
        collaborator: str,
        details: Optional[Dict[str, Any]] = None
    ):
        details = details or {}
        details["collaborator"] = collaborator
        super().__init__(message, code="COLLABORATOR_ERROR", details=details)


class LegacyRuleConversionError(StreamWardenException):
    """Raised when a legacy rule cannot be converted."""

    def __init__(
        self,
        message: str,
        rule_id: str,
        details: Optional[Dict[str, Any]] = None
    ):
        details = details or {}
        details["rule_id"] = rule_id
        super().__init__(message, code="MIGRATION_ERROR", details=details)


class AuditError(StreamWardenException):
    """Raised when audit logging fails."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code="AUDIT_ERROR", details=details)


class ConfirmationError(StreamWardenException):
    """Raised when a confirmation request cannot be queued or resolved."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code="CONFIRMATION_ERROR", details=details)
