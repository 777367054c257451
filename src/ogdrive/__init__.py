"""
0G Drive SDK.

Wallet-scoped file drive over the 0G content-addressed storage network:
a local hierarchical metadata store plus upload/download orchestration.

Example:
    >>> from ogdrive import DriveClient
    >>> client = DriveClient.from_private_key("0x...")
    >>> await client.open()
    >>> result, entry = await client.upload_file("notes.txt")
"""

from ogdrive.config import NETWORKS, NetworkConfig, NetworkTier, get_network_config
from ogdrive.drive import DriveClient
from ogdrive.errors import DriveError, ErrorCategory, user_message
from ogdrive.namespace import EntryType, MetadataStore, NamespaceEntry, StoreConfig
from ogdrive.storage import (
    Blob,
    DownloadConfig,
    Downloader,
    DownloadResult,
    UploadConfig,
    Uploader,
    UploadResult,
    UploadStatus,
)

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "DriveClient",
    # Config
    "NETWORKS",
    "NetworkConfig",
    "NetworkTier",
    "get_network_config",
    # Errors
    "DriveError",
    "ErrorCategory",
    "user_message",
    # Namespace
    "MetadataStore",
    "NamespaceEntry",
    "EntryType",
    "StoreConfig",
    # Storage
    "Blob",
    "Uploader",
    "UploadConfig",
    "UploadResult",
    "UploadStatus",
    "Downloader",
    "DownloadConfig",
    "DownloadResult",
]
