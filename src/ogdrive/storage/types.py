"""
Storage Types

Configuration and result models for uploading to and downloading from
the 0G storage network.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ogdrive.constants import (
    BACKOFF_STEP_SECONDS,
    DIRECT_TIMEOUT_SECONDS,
    DOWNLOAD_CHUNK_SIZE,
    GAS_SCHEDULE,
    LONG_RELAY_TIMEOUT_SECONDS,
    RELAY_RETRY_BUDGET,
    RELAY_TIMEOUT_SECONDS,
    STREAMING_THRESHOLD,
    UPLOAD_EXPECTED_REPLICA,
    UPLOAD_TASK_SIZE,
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ============================================================================
# Fees
# ============================================================================

class FeeInfo(BaseModel):
    """
    Storage and gas fees for one submission.

    Display values are ether-denominated decimal strings; raw values are wei.
    """

    model_config = ConfigDict(frozen=True)

    storage_fee: str = Field(description="Storage price in ether")
    gas_fee: str = Field(description="Estimated gas cost in ether")
    total_fee: str = Field(description="storage_fee + gas_fee in ether")
    raw_storage_fee: int = Field(ge=0, description="Storage price in wei")
    raw_gas_fee: int = Field(ge=0, description="Gas cost in wei")
    raw_total_fee: int = Field(ge=0, description="Total in wei")
    gas_estimate: int = Field(ge=0, description="Gas units")
    gas_price: int = Field(ge=0, description="Gas price in wei")
    used_fallback_gas: bool = Field(
        default=False,
        description="True when gas estimation failed and the fixed fallback was used",
    )


# ============================================================================
# Upload
# ============================================================================

class UploadStatus(str, Enum):
    """Outcome of an upload that produced a usable root hash."""

    CONFIRMED = "confirmed"
    """The flow submission was mined and segments were accepted."""

    ALREADY_EXISTS = "already_exists"
    """The network already stores this content."""

    UNCONFIRMED = "unconfirmed"
    """Every submission attempt failed transiently; only the local hash is known."""


class UploadConfig(BaseModel):
    """
    Upload orchestration settings.

    Each entry of ``gas_schedule`` is ``(gas_price_gwei, gas_limit)`` for one
    attempt; prices and limits must strictly increase.
    """

    model_config = ConfigDict(frozen=True)

    gas_schedule: Tuple[Tuple[int, int], ...] = Field(
        default=GAS_SCHEDULE,
        min_length=1,
        description="Per-attempt (gas price gwei, gas limit)",
    )
    allow_unconfirmed: bool = Field(
        default=True,
        description="Report UNCONFIRMED success when all attempts fail transiently",
    )
    task_size: int = Field(default=UPLOAD_TASK_SIZE, ge=1, description="Segments per upload task")
    expected_replica: int = Field(default=UPLOAD_EXPECTED_REPLICA, ge=1)
    finality_required: bool = Field(default=True)
    timeout_ms: int = Field(default=120000, ge=1000, description="Per-request timeout in ms")

    @field_validator("gas_schedule")
    @classmethod
    def _check_escalation(cls, schedule: Tuple[Tuple[int, int], ...]) -> Tuple[Tuple[int, int], ...]:
        prices = [p for p, _ in schedule]
        limits = [g for _, g in schedule]
        if any(b <= a for a, b in zip(prices, prices[1:])) or any(
            b <= a for a, b in zip(limits, limits[1:])
        ):
            raise ValueError("gas_schedule must strictly increase in price and limit")
        return schedule


class UploadResult(BaseModel):
    """Result of an upload."""

    model_config = ConfigDict(frozen=True)

    root_hash: str = Field(description="Locally derived Merkle root")
    status: UploadStatus
    tx_hash: Optional[str] = Field(default=None, description="Flow submission tx, if mined")
    attempts: int = Field(ge=0, description="Remote submission attempts made")
    size: int = Field(ge=1, description="Blob size in bytes")
    network_tier: str
    uploaded_at: datetime = Field(default_factory=_utcnow)

    @property
    def success(self) -> bool:
        return True

    @property
    def already_exists(self) -> bool:
        return self.status is UploadStatus.ALREADY_EXISTS

    @property
    def confirmed(self) -> bool:
        return self.status is not UploadStatus.UNCONFIRMED


# ============================================================================
# Download
# ============================================================================

class DownloadState(str, Enum):
    """States of one logical download request."""

    IDLE = "idle"
    RESOLVING = "resolving"
    FETCHING = "fetching"
    STREAMING = "streaming"
    BUFFERING = "buffering"
    DONE = "done"
    FAILED = "failed"


class DownloadStrategy(BaseModel):
    """One rung of the download ladder."""

    model_config = ConfigDict(frozen=True)

    name: str
    via_relay: bool = Field(description="Fetch through the same-origin relay")
    timeout_s: float = Field(gt=0)
    retry_budget: int = Field(ge=0, description="Extra attempts after the first")


DEFAULT_LADDER: Tuple[DownloadStrategy, ...] = (
    DownloadStrategy(
        name="relay", via_relay=True,
        timeout_s=RELAY_TIMEOUT_SECONDS, retry_budget=RELAY_RETRY_BUDGET,
    ),
    DownloadStrategy(
        name="direct", via_relay=False,
        timeout_s=DIRECT_TIMEOUT_SECONDS, retry_budget=0,
    ),
    DownloadStrategy(
        name="relay-long", via_relay=True,
        timeout_s=LONG_RELAY_TIMEOUT_SECONDS, retry_budget=RELAY_RETRY_BUDGET,
    ),
)


class DownloadConfig(BaseModel):
    """Download orchestration settings."""

    model_config = ConfigDict(frozen=True)

    relay_url: Optional[str] = Field(
        default=None,
        description="Relay endpoint, e.g. http://localhost:8000/relay; relay rungs are skipped when unset",
    )
    ladder: Tuple[DownloadStrategy, ...] = Field(default=DEFAULT_LADDER, min_length=1)
    backoff_step_s: float = Field(
        default=BACKOFF_STEP_SECONDS, ge=0, description="Linear backoff step (attempt x step)"
    )
    streaming_threshold: int = Field(default=STREAMING_THRESHOLD, ge=0)
    chunk_size: int = Field(default=DOWNLOAD_CHUNK_SIZE, ge=1024)


class DownloadAttempt(BaseModel):
    """Record of one network attempt."""

    model_config = ConfigDict(frozen=True)

    strategy: str
    attempt: int = Field(ge=1, description="1-based attempt within the strategy")
    url: str
    status: Optional[int] = None
    ok: bool
    error_kind: Optional[str] = None
    elapsed_ms: int = Field(ge=0)


class DownloadResult(BaseModel):
    """Result of a successful download."""

    model_config = ConfigDict(frozen=True)

    root_hash: str
    data: bytes = Field(default=b"", description="Payload, empty when streamed to a file")
    size: int = Field(ge=1)
    strategy: str = Field(description="Ladder rung that produced the bytes")
    streamed: bool = False
    path: Optional[str] = Field(default=None, description="Destination when streamed to a file")
    attempts: List[DownloadAttempt] = Field(default_factory=list)
    downloaded_at: datetime = Field(default_factory=_utcnow)
