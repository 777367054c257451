"""
Namespace exceptions raised by the local metadata store.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from ogdrive.errors.base import DriveError, ErrorCategory


class NamespaceError(DriveError):
    """Base exception for local metadata store operations."""

    def __init__(
        self,
        message: str,
        *,
        entry_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        details = details or {}
        if entry_id:
            details["entry_id"] = entry_id
        super().__init__(message, code="NAMESPACE_ERROR", details=details)
        self.entry_id = entry_id


class DuplicateNameError(NamespaceError):
    """
    Raised when a sibling with the same name (and extension, for files) exists.

    Example:
        >>> raise DuplicateNameError("report", parent_id=None)
    """

    category = ErrorCategory.DUPLICATE_NAME

    def __init__(self, name: str, *, parent_id: Optional[str] = None) -> None:
        super().__init__(
            "File/Folder with this name already exists in this folder",
            details={"name": name, "parent_id": parent_id},
        )
        self.code = "DUPLICATE_NAME"
        self.name = name
        self.parent_id = parent_id


class EntryNotFoundError(NamespaceError):
    """Raised when an entry id does not exist or is not visible to the identity."""

    category = ErrorCategory.NOT_FOUND

    def __init__(self, entry_id: str) -> None:
        super().__init__(f"Entry not found: {entry_id}", entry_id=entry_id)
        self.code = "ENTRY_NOT_FOUND"


class InvalidMoveError(NamespaceError):
    """Raised when a move would create a cycle or target a file as parent."""

    category = ErrorCategory.INPUT_VALIDATION

    def __init__(self, entry_id: str, reason: str) -> None:
        super().__init__(f"Cannot move {entry_id}: {reason}", entry_id=entry_id)
        self.code = "INVALID_MOVE"
        self.reason = reason


class PermissionDeniedError(NamespaceError):
    """Raised when an identity mutates an entry it does not own."""

    category = ErrorCategory.INPUT_VALIDATION

    def __init__(self, entry_id: str, identity: str) -> None:
        super().__init__(
            f"{identity} is not the owner of {entry_id}",
            entry_id=entry_id,
            details={"identity": identity},
        )
        self.code = "PERMISSION_DENIED"

    @property
    def http_status(self) -> int:
        return 403


class StoreError(NamespaceError):
    """Raised when the underlying database fails; no partial mutation is left behind."""

    def __init__(self, message: str, *, operation: Optional[str] = None) -> None:
        super().__init__(message, details={"operation": operation} if operation else None)
        self.code = "STORE_ERROR"
        self.operation = operation


class StoreClosedError(NamespaceError):
    """Raised when an operation is attempted before open() or after close()."""

    def __init__(self) -> None:
        super().__init__("Metadata store is not open")
        self.code = "STORE_CLOSED"
