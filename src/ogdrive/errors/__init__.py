"""
Exception hierarchy for the 0G Drive SDK.

All exceptions inherit from DriveError and carry an ErrorCategory.
"""

from ogdrive.errors.base import DriveError, ErrorCategory, user_message
from ogdrive.errors.namespace import (
    DuplicateNameError,
    EntryNotFoundError,
    InvalidMoveError,
    NamespaceError,
    PermissionDeniedError,
    StoreClosedError,
    StoreError,
)
from ogdrive.errors.storage import (
    DataAlreadyExistsError,
    DownloadError,
    DownloadErrorKind,
    DownloadNetworkError,
    DownloadNotFoundError,
    DownloadServerError,
    DownloadTimeoutError,
    EmptyDownloadError,
    HashDerivationError,
    MissingInputError,
    ProviderUnavailableError,
    RemoteFatalError,
    RemoteTransientError,
    SignerUnavailableError,
    StorageError,
    SubmissionConstructionError,
)
from ogdrive.errors.validation import (
    FileTooLargeError,
    InvalidAddressError,
    InvalidExtensionError,
    InvalidNameError,
    InvalidRootHashError,
    ValidationError,
)

__all__ = [
    # Base
    "DriveError",
    "ErrorCategory",
    "user_message",
    # Validation
    "ValidationError",
    "InvalidAddressError",
    "InvalidNameError",
    "InvalidExtensionError",
    "InvalidRootHashError",
    "FileTooLargeError",
    # Namespace
    "NamespaceError",
    "DuplicateNameError",
    "EntryNotFoundError",
    "InvalidMoveError",
    "PermissionDeniedError",
    "StoreError",
    "StoreClosedError",
    # Storage
    "StorageError",
    "MissingInputError",
    "HashDerivationError",
    "SubmissionConstructionError",
    "ProviderUnavailableError",
    "SignerUnavailableError",
    "DataAlreadyExistsError",
    "RemoteTransientError",
    "RemoteFatalError",
    # Download
    "DownloadError",
    "DownloadErrorKind",
    "DownloadNotFoundError",
    "DownloadTimeoutError",
    "DownloadNetworkError",
    "DownloadServerError",
    "EmptyDownloadError",
]
