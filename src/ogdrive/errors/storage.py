"""
Storage network exceptions.

Raised while hashing, submitting and fetching content on the 0G
storage network. Download failures carry a DownloadErrorKind and
the list of attempts made before giving up.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional

from ogdrive.errors.base import DriveError, ErrorCategory
from ogdrive.utils.format import truncate_hash


class StorageError(DriveError):
    """
    Base exception for storage operations.

    Example:
        >>> raise StorageError("Indexer unreachable", endpoint="https://indexer...")
    """

    def __init__(
        self,
        message: str,
        *,
        root_hash: Optional[str] = None,
        endpoint: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        details = details or {}
        if root_hash:
            details["root_hash"] = root_hash
        if endpoint:
            details["endpoint"] = endpoint

        super().__init__(message, code="STORAGE_ERROR", details=details)
        self.root_hash = root_hash
        self.endpoint = endpoint


# ============================================================================
# Upload errors
# ============================================================================


class MissingInputError(StorageError):
    """Raised when there is no blob to hash or upload."""

    category = ErrorCategory.INPUT_VALIDATION

    def __init__(self, message: str = "No file selected for upload") -> None:
        super().__init__(message)
        self.code = "MISSING_INPUT"


class HashDerivationError(StorageError):
    """Raised when the Merkle root cannot be computed for a blob."""

    def __init__(self, message: str, *, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(f"Failed to derive root hash: {message}", details=details)
        self.code = "HASH_DERIVATION_FAILED"


class SubmissionConstructionError(StorageError):
    """Raised when a submission descriptor cannot be built for a blob."""

    def __init__(self, message: str) -> None:
        super().__init__(f"Failed to build submission: {message}")
        self.code = "SUBMISSION_CONSTRUCTION_FAILED"


class ProviderUnavailableError(StorageError):
    """Raised when no chain or indexer provider is reachable."""

    def __init__(self, message: str = "Storage provider unavailable", *, endpoint: Optional[str] = None) -> None:
        super().__init__(message, endpoint=endpoint)
        self.code = "PROVIDER_UNAVAILABLE"


class SignerUnavailableError(StorageError):
    """Raised when no signing credential was configured."""

    def __init__(self, message: str = "No signer configured for upload") -> None:
        super().__init__(message)
        self.code = "SIGNER_UNAVAILABLE"


class DataAlreadyExistsError(StorageError):
    """
    Raised by the network client when the content is already stored.

    The upload orchestrator turns this into a successful result.
    """

    def __init__(self, root_hash: str) -> None:
        super().__init__("Data already exists", root_hash=root_hash)
        self.code = "DATA_ALREADY_EXISTS"


class RemoteTransientError(StorageError):
    """
    Raised when a remote submission failed in a way that may succeed on retry.

    Examples: underpriced transaction, nonce collision, indexer hiccup.
    """

    category = ErrorCategory.TRANSIENT

    def __init__(
        self,
        message: str,
        *,
        root_hash: Optional[str] = None,
        attempts: int = 1,
    ) -> None:
        super().__init__(message, root_hash=root_hash, details={"attempts": attempts})
        self.code = "REMOTE_TRANSIENT"
        self.attempts = attempts


class RemoteFatalError(StorageError):
    """Raised when the remote network rejects a submission permanently."""

    def __init__(self, message: str, *, root_hash: Optional[str] = None) -> None:
        super().__init__(message, root_hash=root_hash)
        self.code = "REMOTE_FATAL"


# ============================================================================
# Download errors
# ============================================================================


class DownloadErrorKind(str, Enum):
    """Classified outcome of a failed download."""

    NOT_FOUND = "NotFound"
    TIMEOUT = "Timeout"
    NETWORK_ERROR = "NetworkError"
    SERVER_ERROR = "ServerError"
    EMPTY = "Empty"


class DownloadError(StorageError):
    """
    Base exception for download failures.

    Attributes:
        kind: Classified failure kind.
        status: HTTP status observed (already clamped to 200..599), if any.
        attempts: Attempt records collected before the failure surfaced.
    """

    kind: DownloadErrorKind = DownloadErrorKind.SERVER_ERROR

    def __init__(
        self,
        message: str,
        *,
        root_hash: Optional[str] = None,
        status: Optional[int] = None,
        transient: Optional[bool] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        details = details or {}
        details["kind"] = self.kind.value
        if status is not None:
            details["status"] = status
        super().__init__(message, root_hash=root_hash, details=details)
        self.code = "DOWNLOAD_FAILED"
        self.status = status
        self.attempts: List[Any] = []
        if transient is not None:
            self.category = ErrorCategory.TRANSIENT if transient else ErrorCategory.FATAL


class DownloadNotFoundError(DownloadError):
    """Raised when the network confirms no file exists for a root hash."""

    kind = DownloadErrorKind.NOT_FOUND
    category = ErrorCategory.NOT_FOUND

    def __init__(self, root_hash: str, *, message: Optional[str] = None) -> None:
        message = message or (
            f'File not found: The file with root hash "{truncate_hash(root_hash)}" '
            "does not exist in storage or may be on a different network mode"
        )
        super().__init__(message, root_hash=root_hash, status=404)
        self.code = "FILE_NOT_FOUND"


class DownloadTimeoutError(DownloadError):
    """Raised when a fetch attempt exceeded its timeout or was aborted."""

    kind = DownloadErrorKind.TIMEOUT
    category = ErrorCategory.TRANSIENT

    def __init__(
        self,
        root_hash: str,
        timeout_s: float,
        *,
        status: int = 504,
        message: Optional[str] = None,
    ) -> None:
        super().__init__(
            message or f"Download timed out after {timeout_s:g}s",
            root_hash=root_hash,
            status=status,
            details={"timeout_s": timeout_s},
        )
        self.code = "DOWNLOAD_TIMEOUT"
        self.timeout_s = timeout_s


class DownloadNetworkError(DownloadError):
    """Raised when the transport failed before any response arrived."""

    kind = DownloadErrorKind.NETWORK_ERROR
    category = ErrorCategory.TRANSIENT

    def __init__(self, message: str, *, root_hash: Optional[str] = None) -> None:
        super().__init__(message, root_hash=root_hash)
        self.code = "DOWNLOAD_NETWORK_ERROR"


class DownloadServerError(DownloadError):
    """Raised when the server answered with an error status or error envelope."""

    kind = DownloadErrorKind.SERVER_ERROR


class EmptyDownloadError(DownloadError):
    """Raised when the server answered successfully with no bytes."""

    kind = DownloadErrorKind.EMPTY

    def __init__(self, root_hash: str) -> None:
        super().__init__("Downloaded file is empty", root_hash=root_hash)
        self.code = "DOWNLOAD_EMPTY"
