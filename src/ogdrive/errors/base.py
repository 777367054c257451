"""
Base exception class for the 0G Drive SDK.

All drive-specific exceptions inherit from DriveError, which provides
structured error information including an error code, an error category
used for retry and HTTP mapping decisions, and additional context details.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional


class ErrorCategory(str, Enum):
    """
    Coarse classification of every drive failure.

    The category decides propagation: INPUT_VALIDATION and DUPLICATE_NAME
    are resolved at the boundary, TRANSIENT is retried with backoff,
    NOT_FOUND and FATAL are surfaced immediately.
    """

    INPUT_VALIDATION = "input_validation"
    DUPLICATE_NAME = "duplicate_name"
    NOT_FOUND = "not_found"
    TRANSIENT = "transient"
    FATAL = "fatal"


_CATEGORY_HTTP_STATUS: Dict[ErrorCategory, int] = {
    ErrorCategory.INPUT_VALIDATION: 400,
    ErrorCategory.DUPLICATE_NAME: 409,
    ErrorCategory.NOT_FOUND: 404,
    ErrorCategory.TRANSIENT: 504,
    ErrorCategory.FATAL: 500,
}


class DriveError(Exception):
    """
    Base exception for all 0G Drive errors.

    Provides structured error information that can be serialized and logged.

    Attributes:
        message: Human-readable error description.
        code: Machine-readable error code (e.g., "DUPLICATE_NAME").
        category: Error category driving retry and status mapping.
        details: Optional dictionary with additional error context.

    Example:
        >>> raise DriveError(
        ...     "Upload failed",
        ...     code="UPLOAD_FAILED",
        ...     details={"root_hash": "0xabc..."}
        ... )
    """

    category: ErrorCategory = ErrorCategory.FATAL

    def __init__(
        self,
        message: str,
        *,
        code: str = "DRIVE_ERROR",
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}

    @property
    def http_status(self) -> int:
        """HTTP status equivalent of this error's category."""
        return _CATEGORY_HTTP_STATUS[self.category]

    @property
    def is_retryable(self) -> bool:
        """Whether the orchestrators may retry after this error."""
        return self.category is ErrorCategory.TRANSIENT

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"code={self.code!r}, "
            f"category={self.category.value!r}, "
            f"details={self.details!r})"
        )

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert exception to a dictionary for JSON serialization.

        Returns:
            Dictionary representation of the error.
        """
        return {
            "error": self.__class__.__name__,
            "code": self.code,
            "category": self.category.value,
            "message": self.message,
            "details": self.details,
        }


def user_message(error: BaseException) -> str:
    """
    Render a human-readable message for a failure shown to the user.

    Distinguishes not-found, timeout and size-exceeded failures from
    everything else.
    """
    code = getattr(error, "code", "")
    category = getattr(error, "category", None)

    if category is ErrorCategory.NOT_FOUND:
        return str(getattr(error, "message", error))
    if code in ("DOWNLOAD_TIMEOUT", "RELAY_TIMEOUT") or isinstance(error, TimeoutError):
        return "The storage network took too long to respond. Please try again."
    if code == "FILE_TOO_LARGE":
        return str(getattr(error, "message", error))
    if category in (ErrorCategory.INPUT_VALIDATION, ErrorCategory.DUPLICATE_NAME):
        return str(getattr(error, "message", error))
    return f"Something went wrong: {getattr(error, 'message', str(error))}"
