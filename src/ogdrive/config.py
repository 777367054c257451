"""Network configuration for the 0G storage tiers.

Both tiers live on the 0G Galileo testnet and share the flow and market
contracts; they differ in the indexer that serves uploads and downloads.
Any field can be overridden through environment variables (a ``.env``
file is honoured via python-dotenv).
"""
import os
from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional, Union

from dotenv import load_dotenv

__all__ = ["NetworkTier", "NetworkConfig", "NETWORKS", "get_network_config"]


class NetworkTier(str, Enum):
    STANDARD = "standard"
    TURBO = "turbo"


@dataclass(frozen=True)
class NetworkConfig:
    tier: NetworkTier
    chain_name: str
    chain_id: int
    l1_rpc: str
    storage_rpc: str
    flow_address: str
    market_address: str
    explorer_url: str

    def explorer_tx_url(self, tx_hash: str) -> str:
        return f"{self.explorer_url}{tx_hash}"

    def download_url(self, root_hash: str) -> str:
        return f"{self.storage_rpc.rstrip('/')}/file?root={root_hash}"


_FLOW = "0xbD75117F80b4E22698D0Cd7612d92BDb8eaff628"
_MARKET = "0x53191725d260221bBa307D8EeD6e2Be8DD265e19"

NETWORKS: dict[NetworkTier, NetworkConfig] = {
    NetworkTier.STANDARD: NetworkConfig(
        tier=NetworkTier.STANDARD,
        chain_name="0G-Galileo-Testnet",
        chain_id=16601,
        l1_rpc="https://evmrpc-testnet.0g.ai",
        storage_rpc="https://indexer-storage-testnet-standard.0g.ai",
        flow_address=_FLOW,
        market_address=_MARKET,
        explorer_url="https://chainscan-galileo.0g.ai/tx/",
    ),
    NetworkTier.TURBO: NetworkConfig(
        tier=NetworkTier.TURBO,
        chain_name="0G-Galileo-Testnet",
        chain_id=16601,
        l1_rpc="https://evmrpc-testnet.0g.ai",
        storage_rpc="https://indexer-storage-testnet-turbo.0g.ai",
        flow_address=_FLOW,
        market_address=_MARKET,
        explorer_url="https://chainscan-galileo.0g.ai/tx/",
    ),
}

# field -> env var; tier-specific variables win over the shared ones
_ENV_OVERRIDES = {
    "l1_rpc": "OGDRIVE_L1_RPC",
    "storage_rpc": "OGDRIVE_STORAGE_RPC",
    "flow_address": "OGDRIVE_FLOW_ADDRESS",
    "market_address": "OGDRIVE_MARKET_ADDRESS",
    "explorer_url": "OGDRIVE_EXPLORER_URL",
}


def _env_overrides(tier: NetworkTier) -> dict:
    overrides = {}
    for field_name, var in _ENV_OVERRIDES.items():
        value = os.environ.get(f"{var}_{tier.value.upper()}") or os.environ.get(var)
        if value:
            overrides[field_name] = value
    chain_id = os.environ.get("OGDRIVE_CHAIN_ID")
    if chain_id:
        overrides["chain_id"] = int(chain_id)
    return overrides


def get_network_config(
    tier: Union[NetworkTier, str] = NetworkTier.STANDARD,
    storage_rpc: Optional[str] = None,
    l1_rpc: Optional[str] = None,
    use_env: bool = True,
) -> NetworkConfig:
    tier = NetworkTier(tier)
    cfg = NETWORKS[tier]
    overrides = {}
    if use_env:
        load_dotenv()
        overrides.update(_env_overrides(tier))
    if storage_rpc:
        overrides["storage_rpc"] = storage_rpc
    if l1_rpc:
        overrides["l1_rpc"] = l1_rpc
    return replace(cfg, **overrides) if overrides else cfg
