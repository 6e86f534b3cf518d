"""
Exception hierarchy for the gateway.

Every error carries an error code for monitoring, a context dict for
debugging and, when it wraps another exception, the original cause.
"""

from typing import Optional, Dict, Any
from enum import Enum


class ErrorCode(str, Enum):
    """Error codes for monitoring and alerting."""

    # Configuration errors (1xxx)
    CONFIG_INVALID = "E1001"

    # Security errors (6xxx)
    AUTHENTICATION_FAILED = "E6001"
    VERIFICATION_FAILED = "E6002"

    # Network errors (8xxx)
    FORWARD_FAILED = "E8001"


class GatewayError(Exception):
    """
    Base exception for all gateway errors.

    Provides:
    - Error code for monitoring
    - Context for debugging
    - The wrapped exception, if any
    """

    def __init__(
        self,
        message: str,
        error_code: ErrorCode,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None
    ):
        """
        Initialize gateway error.

        Args:
            message: Human-readable error message
            error_code: Machine-readable error code
            context: Additional context for debugging
            cause: Original exception if this is a wrapped error
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.context = context or {}
        self.cause = cause

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for logging."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "code": self.error_code.value,
            "context": self.context,
            "cause": str(self.cause) if self.cause else None
        }

    def __str__(self) -> str:
        """String representation with error code."""
        return f"[{self.error_code.value}] {self.message}"


class ConfigurationError(GatewayError):
    """Configuration-related errors."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message, ErrorCode.CONFIG_INVALID, context)


class CredentialError(GatewayError):
    """Access token could not be obtained from the authorization server."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        cause: Optional[Exception] = None
    ):
        super().__init__(
            f"Token request failed: {message}",
            ErrorCode.AUTHENTICATION_FAILED,
            {"status_code": status_code} if status_code is not None else {},
            cause
        )
        self.status_code = status_code


class ForwardError(GatewayError):
    """Downstream webhook call failed or answered with a non-2xx status."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        cause: Optional[Exception] = None
    ):
        super().__init__(
            f"Forwarding failed: {message}",
            ErrorCode.FORWARD_FAILED,
            {"status_code": status_code} if status_code is not None else {},
            cause
        )
        self.status_code = status_code
