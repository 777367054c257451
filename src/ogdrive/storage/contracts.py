"""Flow and market contract bindings.

The ABIs ship with the package under ``ogdrive/abis``; only the
functions the drive calls are listed.
"""
import json
from functools import lru_cache
from pathlib import Path

from web3 import AsyncWeb3
from web3.contract import AsyncContract

ABI_DIR = Path(__file__).resolve().parent.parent / "abis"


@lru_cache(maxsize=None)
def load_abi(contract: str) -> tuple:
    """Parsed ABI for ``contract`` ("flow" or "market")."""
    return tuple(json.loads((ABI_DIR / f"{contract}.json").read_text()))


def _bind(w3: AsyncWeb3, contract: str, address: str) -> AsyncContract:
    return w3.eth.contract(
        address=AsyncWeb3.to_checksum_address(address),
        abi=list(load_abi(contract)),
    )


def flow_contract(w3: AsyncWeb3, address: str) -> AsyncContract:
    """Flow contract: ``submit`` and ``market``."""
    return _bind(w3, "flow", address)


def market_contract(w3: AsyncWeb3, address: str) -> AsyncContract:
    """Market contract: ``pricePerSector``."""
    return _bind(w3, "market", address)
