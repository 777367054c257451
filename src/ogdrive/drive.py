"""
0G Drive client.

This module provides the DriveClient class, which ties the local
metadata store to the storage network:

- Folder navigation and file records per wallet identity
- Upload with local root hash derivation and gas escalation
- Download through the relay/direct strategy ladder
- Namespace backup and restore through the storage network

Example:
    >>> from ogdrive import DriveClient
    >>> client = DriveClient.from_private_key("0x...", tier="turbo")
    >>> await client.open()
    >>> docs = await client.store.create_folder("Docs")
    >>> result, entry = await client.upload_file("a.txt", parent_id=docs.id)
    >>> data = (await client.download(entry.id)).data
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Optional, Tuple, Union

from eth_account import Account
from eth_account.signers.local import LocalAccount
from web3 import AsyncHTTPProvider, AsyncWeb3

from ogdrive.config import NetworkConfig, NetworkTier, get_network_config
from ogdrive.errors import (
    DuplicateNameError,
    MissingInputError,
    SignerUnavailableError,
    ValidationError,
)
from ogdrive.namespace import (
    EntryType,
    MetadataStore,
    NamespaceEntry,
    StoreConfig,
    encode_snapshot,
    export_snapshot,
    restore_snapshot,
)
from ogdrive.storage.downloader import Downloader
from ogdrive.storage.fees import FeeEstimator
from ogdrive.storage.indexer_client import IndexerClient
from ogdrive.storage.merkle import Blob
from ogdrive.storage.types import (
    DownloadConfig,
    DownloadResult,
    FeeInfo,
    UploadConfig,
    UploadResult,
)
from ogdrive.storage.uploader import Uploader
from ogdrive.utils.logging import get_logger
from ogdrive.utils.validation import (
    split_filename,
    validate_extension,
    validate_file_size,
    validate_name,
    validate_root_hash,
)

_logger = get_logger(__name__)

RPC_TIMEOUT_SECONDS = 30


class DriveClient:
    """Wallet-scoped drive over the 0G storage network."""

    def __init__(
        self,
        network: NetworkConfig,
        store: MetadataStore,
        uploader: Uploader,
        downloader: Downloader,
        identity: Optional[str] = None,
        fee_estimator: Optional[FeeEstimator] = None,
    ):
        self.network = network
        self.store = store
        self.uploader = uploader
        self.downloader = downloader
        self.identity = identity
        self.fees = fee_estimator

    @classmethod
    def from_private_key(
        cls,
        private_key: str,
        tier: Union[NetworkTier, str] = NetworkTier.STANDARD,
        store_config: Optional[StoreConfig] = None,
        upload_config: Optional[UploadConfig] = None,
        download_config: Optional[DownloadConfig] = None,
    ) -> "DriveClient":
        network = get_network_config(tier)
        # Sanitize private key errors to prevent key leakage in stack traces
        try:
            account: LocalAccount = Account.from_key(private_key)
        except Exception:
            raise SignerUnavailableError("Invalid private key format (key not shown for security)") from None
        w3 = AsyncWeb3(AsyncHTTPProvider(
            network.l1_rpc,
            request_kwargs={"timeout": RPC_TIMEOUT_SECONDS},
        ))
        fees = FeeEstimator(w3, network, sender=account.address)
        indexer = IndexerClient(network, w3=w3, account=account)
        return cls(
            network=network,
            store=MetadataStore(store_config),
            uploader=Uploader(indexer, fees, upload_config),
            downloader=Downloader(network, download_config),
            identity=account.address,
            fee_estimator=fees,
        )

    async def open(self, identity: Optional[str] = None) -> None:
        """Open the metadata store for ``identity`` (defaults to the signer)."""
        identity = identity or self.identity
        if not identity:
            raise SignerUnavailableError("No identity to open the drive for")
        await self.store.open(identity)
        self.identity = self.store.identity

    async def close(self) -> None:
        await self.store.close()

    # ------------------------------------------------------------------
    # Upload
    # ------------------------------------------------------------------

    async def estimate_fees(self, source: Union[str, Path, bytes]) -> FeeInfo:
        """Fees for uploading ``source`` right now."""
        if self.fees is None:
            raise SignerUnavailableError("No fee estimator configured")
        blob = Blob(source) if isinstance(source, bytes) else Blob.from_path(source)
        return await self.fees.estimate(blob.create_submission())

    async def upload_file(
        self,
        source: Union[str, Path, bytes],
        name: Optional[str] = None,
        parent_id: Optional[str] = None,
    ) -> Tuple[UploadResult, NamespaceEntry]:
        """
        Upload a file and record it in the namespace.

        Name, extension and size are validated before any I/O. Uploading
        the same bytes under the same name into the same folder returns
        the existing entry.

        Args:
            source: File path or raw bytes
            name: Display name; defaults to the file's basename
            parent_id: Destination folder, None for the root

        Returns:
            (upload result, namespace entry)
        """
        if isinstance(source, bytes):
            if not name:
                raise ValidationError("A name is required for in-memory uploads", field="name")
            size = len(source)
        else:
            path = Path(source)
            if not path.is_file():
                raise MissingInputError(f"File not found: {path.name}")
            name = name or path.name
            size = path.stat().st_size

        if size == 0:
            raise MissingInputError("File is empty")
        name = validate_name(name)
        validate_extension(split_filename(name)[1])
        validate_file_size(size, self.store.config.max_file_size)

        existing = await self.store.find(name, parent_id, EntryType.FILE)
        if isinstance(source, bytes):
            blob = Blob(source, name=name)
        else:
            blob = await asyncio.to_thread(Blob.from_path, source)
        if existing is not None and existing.root_hash != blob.root_hash:
            raise DuplicateNameError(name, parent_id=parent_id)

        result = await self.uploader.upload(blob)
        if existing is not None:
            _logger.info(
                "Re-upload of identical file, keeping existing entry",
                extra={"entry_id": existing.id, "root_hash": result.root_hash},
            )
            return result, existing

        entry = await self.store.create_file(
            name,
            size=result.size,
            root_hash=result.root_hash,
            network_tier=result.network_tier,
            parent_id=parent_id,
        )
        return result, entry

    # ------------------------------------------------------------------
    # Download
    # ------------------------------------------------------------------

    async def download(self, entry_id: str) -> DownloadResult:
        """Download the bytes behind a file entry."""
        entry = await self.store.get(entry_id)
        if not entry.is_file or not entry.root_hash:
            raise ValidationError("Only files can be downloaded", field="entry_id", value=entry_id)
        return await self.downloader.download(entry.root_hash)

    async def download_hash(self, root_hash: str) -> DownloadResult:
        """Download by root hash, e.g. from a share link."""
        return await self.downloader.download(root_hash)

    async def save(
        self,
        entry_id: Optional[str] = None,
        dest_dir: Union[str, Path] = ".",
        root_hash: Optional[str] = None,
    ) -> DownloadResult:
        """
        Download to ``dest_dir``, streaming large files to disk.

        The file keeps its entry name; hash-only downloads are saved as
        ``download-<hash prefix>.bin``.
        """
        if entry_id is not None:
            entry = await self.store.get(entry_id)
            root_hash, filename = entry.root_hash, entry.name
        elif root_hash is not None:
            root_hash = validate_root_hash(root_hash)
            filename = f"download-{root_hash[:8]}.bin"
        else:
            raise MissingInputError("Nothing to download")
        if not root_hash:
            raise ValidationError("Only files can be downloaded", field="entry_id", value=entry_id)
        return await self.downloader.download_to_file(root_hash, Path(dest_dir) / filename)

    def share_url(self, root_hash: str, base_url: str) -> str:
        """Link a recipient can open to fetch ``root_hash`` on this tier."""
        root_hash = validate_root_hash(root_hash)
        return f"{base_url.rstrip('/')}/share/{root_hash}?network={self.network.tier.value}"

    def explorer_url(self, tx_hash: str) -> str:
        return self.network.explorer_tx_url(tx_hash)

    # ------------------------------------------------------------------
    # Backup
    # ------------------------------------------------------------------

    async def backup(self) -> UploadResult:
        """Upload a snapshot of every owned entry; returns its upload result."""
        snapshot = await export_snapshot(self.store, self.network.tier.value)
        data = encode_snapshot(snapshot)
        _logger.info("Uploading namespace backup", extra={"entries": len(snapshot["files"])})
        return await self.uploader.upload(Blob(data, name="backup.json"))

    async def restore(self, root_hash: str) -> int:
        """Restore a snapshot by root hash; returns the number of entries imported."""
        result = await self.downloader.download(root_hash)
        imported = await restore_snapshot(self.store, result.data)
        _logger.info("Restored namespace backup", extra={"root_hash": root_hash, "imported": imported})
        return imported
