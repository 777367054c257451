"""
Input validation exceptions.

Raised before any I/O when an identity, name, extension, size or
root hash is malformed. Never retried.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from ogdrive.errors.base import DriveError, ErrorCategory


class ValidationError(DriveError):
    """
    Raised when user-supplied input fails validation.

    Example:
        >>> raise ValidationError("Name is required", field="name")
    """

    category = ErrorCategory.INPUT_VALIDATION

    def __init__(
        self,
        message: str,
        *,
        field: Optional[str] = None,
        value: Optional[Any] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        details = details or {}
        if field:
            details["field"] = field
        if value is not None:
            details["value"] = value

        super().__init__(message, code="VALIDATION_ERROR", details=details)
        self.field = field
        self.value = value


class InvalidAddressError(ValidationError):
    """Raised when a wallet address is not a 0x-prefixed 20-byte hex string."""

    def __init__(self, address: str, *, field: str = "address") -> None:
        super().__init__(
            f"Invalid wallet address for {field}: {address!r}",
            field=field,
            value=address,
        )
        self.code = "INVALID_ADDRESS"
        self.address = address


class InvalidNameError(ValidationError):
    """Raised when an entry name is empty, too long, or uses reserved characters."""

    def __init__(self, name: str, reason: str) -> None:
        super().__init__(f"Invalid name {name!r}: {reason}", field="name", value=name)
        self.code = "INVALID_NAME"
        self.reason = reason


class InvalidExtensionError(ValidationError):
    """Raised when a file extension is not in the allow-list."""

    def __init__(self, extension: str) -> None:
        super().__init__(
            f"File type .{extension} is not allowed",
            field="extension",
            value=extension,
        )
        self.code = "INVALID_EXTENSION"
        self.extension = extension


class FileTooLargeError(ValidationError):
    """
    Raised when a file size is outside 0 < size <= max_size.

    Example:
        >>> raise FileTooLargeError(6 * 1024**3, 5 * 1024**3)
    """

    def __init__(self, file_size: int, max_size: int) -> None:
        if file_size <= 0:
            message = "File is empty"
        else:
            message = f"File size ({file_size} bytes) exceeds limit ({max_size} bytes)"
        super().__init__(
            message,
            field="file_size",
            value=file_size,
            details={"max_size_bytes": max_size},
        )
        self.code = "FILE_TOO_LARGE"
        self.file_size = file_size
        self.max_size = max_size


class InvalidRootHashError(ValidationError):
    """Raised when a root hash is not 0x followed by 64 hex characters."""

    def __init__(self, root_hash: str) -> None:
        super().__init__(
            f"Invalid root hash: {root_hash!r}",
            field="root_hash",
            value=root_hash,
        )
        self.code = "INVALID_ROOT_HASH"
        self.root_hash = root_hash
