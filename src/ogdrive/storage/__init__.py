"""
Storage Module - content-addressed transfer to the 0G storage network.

- Merkle hash engine (root hash + submission descriptor)
- Fee estimation from the flow/market contracts
- Upload with tiered gas escalation
- Download through a relay/direct strategy ladder

Example:
    ```python
    from ogdrive.storage import Blob, Downloader, DownloadConfig

    blob = Blob.from_path("report.pdf")
    print(blob.root_hash)

    downloader = Downloader(network, DownloadConfig(relay_url="http://localhost:8000/relay"))
    result = await downloader.download(blob.root_hash)
    ```
"""

from ogdrive.storage.downloader import Downloader
from ogdrive.storage.fees import FeeEstimator, calculate_price
from ogdrive.storage.indexer_client import IndexerClient, classify_remote_error
from ogdrive.storage.merkle import (
    Blob,
    MerkleTree,
    Submission,
    SubmissionNode,
    root_hash_of,
    unique_tag,
    verify_proof,
)
from ogdrive.storage.types import (
    DownloadAttempt,
    DownloadConfig,
    DownloadResult,
    DownloadState,
    DownloadStrategy,
    FeeInfo,
    UploadConfig,
    UploadResult,
    UploadStatus,
)
from ogdrive.storage.uploader import Uploader

__all__ = [
    # Hash engine
    "Blob",
    "MerkleTree",
    "Submission",
    "SubmissionNode",
    "root_hash_of",
    "unique_tag",
    "verify_proof",
    # Fees
    "FeeEstimator",
    "FeeInfo",
    "calculate_price",
    # Network client
    "IndexerClient",
    "classify_remote_error",
    # Upload
    "Uploader",
    "UploadConfig",
    "UploadResult",
    "UploadStatus",
    # Download
    "Downloader",
    "DownloadConfig",
    "DownloadResult",
    "DownloadState",
    "DownloadStrategy",
    "DownloadAttempt",
]
