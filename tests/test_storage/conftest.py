"""
Shared fixtures for storage module tests.
"""

from typing import List, Sequence, Union
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from ogdrive.storage.types import DownloadConfig, FeeInfo


# =============================================================================
# Test Constants
# =============================================================================

VALID_SENDER = "0x1234567890123456789012345678901234567890"

# Well-formed but unknown root hash
VALID_ROOT_HASH = "0x" + "a" * 64

RELAY_URL = "http://relay.test/relay"

# 1 KiB payload that does not look like JSON
PAYLOAD_1K = bytes(range(256)) * 4


# =============================================================================
# Helpers - httpx transports
# =============================================================================


Reply = Union[httpx.Response, Exception]


class ScriptedTransport(httpx.MockTransport):
    """
    MockTransport replaying a script of responses (or exceptions).

    The last reply is repeated once the script runs out. Every request
    is recorded in ``requests``.
    """

    def __init__(self, replies: Sequence[Reply]) -> None:
        self.replies: List[Reply] = list(replies)
        self.requests: List[httpx.Request] = []
        super().__init__(self._handle)

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        reply = self.replies.pop(0) if len(self.replies) > 1 else self.replies[0]
        if isinstance(reply, Exception):
            raise reply
        return reply


def rpc_result(result) -> httpx.Response:
    return httpx.Response(200, json={"jsonrpc": "2.0", "id": 1, "result": result})


def rpc_error(message: str) -> httpx.Response:
    return httpx.Response(200, json={"jsonrpc": "2.0", "id": 1, "error": {"code": -1, "message": message}})


# =============================================================================
# Fixtures - Configurations
# =============================================================================


@pytest.fixture
def download_config() -> DownloadConfig:
    """Relay-enabled ladder with no backoff delay."""
    return DownloadConfig(relay_url=RELAY_URL, backoff_step_s=0)


@pytest.fixture
def direct_config() -> DownloadConfig:
    """No relay configured: only the direct rung runs."""
    return DownloadConfig(backoff_step_s=0)


@pytest.fixture
def fee_info() -> FeeInfo:
    return FeeInfo(
        storage_fee="0.000001",
        gas_fee="0.0005",
        total_fee="0.000501",
        raw_storage_fee=10**12,
        raw_gas_fee=5 * 10**14,
        raw_total_fee=10**12 + 5 * 10**14,
        gas_estimate=500000,
        gas_price=10**9,
    )


# =============================================================================
# Fixtures - Mocks
# =============================================================================


@pytest.fixture
def mock_indexer(network) -> MagicMock:
    """IndexerClient stand-in whose upload() succeeds with a tx hash."""
    client = MagicMock()
    client.network = network
    client.upload = AsyncMock(return_value="0x" + "1" * 64)
    return client


@pytest.fixture
def mock_fee_estimator(fee_info) -> MagicMock:
    estimator = MagicMock()
    estimator.estimate = AsyncMock(return_value=fee_info)
    return estimator
