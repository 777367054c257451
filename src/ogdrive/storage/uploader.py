"""
Upload Orchestrator

Turns a local file into a submission, derives its root hash locally and
drives the submission to the storage network with an escalating gas
schedule. "Already stored" is a success path.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Optional, Union

from web3 import Web3

from ogdrive.errors.storage import (
    DataAlreadyExistsError,
    MissingInputError,
    RemoteTransientError,
)
from ogdrive.storage.fees import FeeEstimator
from ogdrive.storage.indexer_client import IndexerClient
from ogdrive.storage.merkle import Blob
from ogdrive.storage.types import FeeInfo, UploadConfig, UploadResult, UploadStatus
from ogdrive.utils.logging import get_logger

_logger = get_logger(__name__)

UploadSource = Union[Blob, bytes, str, Path]


async def _load_blob(source: Optional[UploadSource]) -> Blob:
    if source is None:
        raise MissingInputError()
    if isinstance(source, Blob):
        return source
    if isinstance(source, (bytes, bytearray)):
        return Blob(bytes(source))
    return await asyncio.to_thread(Blob.from_path, source)


class Uploader:
    """
    Uploads blobs with tiered gas escalation.

    Every attempt builds a fresh submission (new uniqueness tag) and uses
    the next, strictly higher, ``(gas price, gas limit)`` pair from the
    schedule. The root hash is derived before any network call and is the
    value reported whatever the remote outcome.

    Example:
        ```python
        uploader = Uploader(IndexerClient(network, w3=w3, account=account),
                            FeeEstimator(w3, network, account.address))
        result = await uploader.upload("report.pdf")
        if result.status is UploadStatus.UNCONFIRMED:
            print("Stored locally as", result.root_hash, "but not confirmed")
        ```
    """

    def __init__(
        self,
        client: IndexerClient,
        fee_estimator: Optional[FeeEstimator] = None,
        config: Optional[UploadConfig] = None,
    ) -> None:
        self._client = client
        self._fees = fee_estimator
        self._config = config or UploadConfig()

    @property
    def config(self) -> UploadConfig:
        return self._config

    async def upload(
        self,
        source: Optional[UploadSource],
        fee: Optional[FeeInfo] = None,
    ) -> UploadResult:
        """
        Upload a blob, a byte string, or a file path.

        Args:
            source: What to upload
            fee: Precomputed fees; estimated per attempt when omitted

        Returns:
            UploadResult with status CONFIRMED, ALREADY_EXISTS or UNCONFIRMED

        Raises:
            MissingInputError: If there is nothing to upload
            HashDerivationError: If the root hash cannot be computed
            RemoteTransientError: If all attempts failed and unconfirmed
                results are disallowed
            RemoteFatalError, ProviderUnavailableError, SignerUnavailableError:
                Non-retryable failures
        """
        blob = await _load_blob(source)
        root_hash = await asyncio.to_thread(lambda: blob.root_hash)
        tier = self._client.network.tier.value
        schedule = self._config.gas_schedule

        _logger.info(
            "Starting upload",
            extra={"root_hash": root_hash, "size": blob.size, "tier": tier},
        )

        last_error: Optional[RemoteTransientError] = None
        for attempt, (gas_price_gwei, gas_limit) in enumerate(schedule, start=1):
            submission = blob.create_submission()
            attempt_fee = fee
            if attempt_fee is None and self._fees is not None:
                attempt_fee = await self._fees.estimate(submission)
            value = attempt_fee.raw_storage_fee if attempt_fee else 0

            try:
                tx_hash = await self._client.upload(
                    blob,
                    submission,
                    value=value,
                    gas_price=Web3.to_wei(gas_price_gwei, "gwei"),
                    gas_limit=gas_limit,
                    task_size=self._config.task_size,
                    finality_required=self._config.finality_required,
                )
            except DataAlreadyExistsError:
                _logger.info("Content already stored", extra={"root_hash": root_hash})
                return UploadResult(
                    root_hash=root_hash,
                    status=UploadStatus.ALREADY_EXISTS,
                    attempts=attempt,
                    size=blob.size,
                    network_tier=tier,
                )
            except RemoteTransientError as e:
                last_error = e
                _logger.warning(
                    "Upload attempt failed",
                    extra={
                        "root_hash": root_hash,
                        "attempt": attempt,
                        "gas_price_gwei": gas_price_gwei,
                        "gas_limit": gas_limit,
                        "error": e.message,
                    },
                )
                continue

            _logger.info(
                "Upload confirmed",
                extra={"root_hash": root_hash, "tx_hash": tx_hash, "attempt": attempt},
            )
            return UploadResult(
                root_hash=root_hash,
                status=UploadStatus.CONFIRMED,
                tx_hash=tx_hash,
                attempts=attempt,
                size=blob.size,
                network_tier=tier,
            )

        if not self._config.allow_unconfirmed:
            raise RemoteTransientError(
                f"Upload failed after {len(schedule)} attempts: "
                f"{last_error.message if last_error else 'unknown error'}",
                root_hash=root_hash,
                attempts=len(schedule),
            )

        _logger.warning(
            "All submission attempts failed; reporting unconfirmed upload",
            extra={"root_hash": root_hash, "attempts": len(schedule)},
        )
        return UploadResult(
            root_hash=root_hash,
            status=UploadStatus.UNCONFIRMED,
            attempts=len(schedule),
            size=blob.size,
            network_tier=tier,
        )
