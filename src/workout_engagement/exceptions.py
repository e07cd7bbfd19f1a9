"""
Custom exceptions for the workout engagement engine.

Guard conditions (a spin without enough points, a duplicate workout on the
same day) are reported as typed outcomes, not exceptions. The classes below
cover the remaining failures:
- invalid input passed to a calculator
- static reward configuration that fails validation at startup
- unknown catalog entries requested at runtime
- persistence backends that could not load or save a document
"""

from typing import Any, Dict, Optional
from enum import Enum


class ErrorCode(str, Enum):
    """Error codes for consistent error reporting."""

    # General errors
    INTERNAL_ERROR = "INTERNAL_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"

    # Configuration errors
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"

    # Reward errors
    COUPON_NOT_FOUND = "COUPON_NOT_FOUND"

    # Persistence errors
    PERSISTENCE_ERROR = "PERSISTENCE_ERROR"


class EngagementError(Exception):
    """
    Base exception for all engagement engine errors.

    Attributes:
        message: Human-readable error message
        code: Error code from ErrorCode enum
        details: Optional dictionary with additional error details
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to a dictionary for reporting to the caller."""
        result: Dict[str, Any] = {
            "error": {
                "code": self.code.value,
                "message": self.message,
            }
        }
        if self.details:
            result["error"]["details"] = self.details
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code.value}, message={self.message!r})"


class ValidationError(EngagementError):
    """Raised when input passed to a calculator is out of range."""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        error_details = details or {}
        if field:
            error_details["field"] = field
        super().__init__(
            message=message,
            code=ErrorCode.VALIDATION_ERROR,
            details=error_details,
        )


class ConfigurationError(EngagementError):
    """Raised when the static reward tables are malformed.

    The tables are validated once at startup; this error is fatal.
    """

    def __init__(
        self,
        message: str,
        entry_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        error_details = details or {}
        if entry_id:
            error_details["entry_id"] = entry_id
        super().__init__(
            message=message,
            code=ErrorCode.CONFIGURATION_ERROR,
            details=error_details,
        )


class NotFoundError(EngagementError):
    """Raised when a requested resource is not found."""

    def __init__(
        self,
        resource_type: str,
        resource_id: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        message = f"{resource_type} with ID '{resource_id}' not found"
        error_details = details or {}
        error_details["resource_type"] = resource_type
        error_details["resource_id"] = resource_id
        super().__init__(
            message=message,
            code=ErrorCode.NOT_FOUND,
            details=error_details,
        )


class CouponNotFoundError(NotFoundError):
    """Raised when a coupon id is not in the catalog."""

    def __init__(self, coupon_id: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(
            resource_type="Coupon",
            resource_id=coupon_id,
            details=details,
        )
        self.code = ErrorCode.COUPON_NOT_FOUND


class PersistenceError(EngagementError):
    """Raised by a persistence backend when a load or save fails."""

    def __init__(
        self,
        message: str,
        backend: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        error_details = details or {}
        if backend:
            error_details["backend"] = backend
        super().__init__(
            message=message,
            code=ErrorCode.PERSISTENCE_ERROR,
            details=error_details,
        )
        self.backend = backend
