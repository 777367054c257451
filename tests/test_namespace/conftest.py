"""
Shared fixtures for namespace tests.
"""

import pytest
import pytest_asyncio

from ogdrive.namespace import MetadataStore


# =============================================================================
# Test Constants
# =============================================================================

# Mixed case on purpose: identities are normalized to lowercase
OWNER = "0xAbCdEf0123456789abcdef0123456789ABCDEF01"
OWNER_LOWER = OWNER.lower()
FRIEND = "0x1111111111111111111111111111111111111111"
STRANGER = "0x2222222222222222222222222222222222222222"

ROOT_HASH_A = "0x" + "a" * 64
ROOT_HASH_B = "0x" + "b" * 64


# =============================================================================
# Fixtures
# =============================================================================


@pytest_asyncio.fixture
async def store(store_config):
    """Store opened for OWNER."""
    store = MetadataStore(store_config)
    await store.open(OWNER)
    yield store
    await store.close()


@pytest.fixture
def file_kwargs():
    """Minimal valid create_file keyword arguments."""
    return {"size": 10, "root_hash": ROOT_HASH_A, "network_tier": "standard"}
