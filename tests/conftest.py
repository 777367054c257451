"""
Fixtures shared by every test package.
"""

import pytest

from ogdrive.config import NetworkConfig, NetworkTier, get_network_config
from ogdrive.namespace import StoreConfig


@pytest.fixture
def network() -> NetworkConfig:
    """Standard tier config, ignoring any developer .env overrides."""
    return get_network_config(NetworkTier.STANDARD, use_env=False)


@pytest.fixture
def turbo_network() -> NetworkConfig:
    return get_network_config(NetworkTier.TURBO, use_env=False)


@pytest.fixture
def store_config(tmp_path) -> StoreConfig:
    """Metadata store on a throwaway SQLite file."""
    return StoreConfig(db_path=str(tmp_path / "drive" / "metadata.db"), cache_size=32)
