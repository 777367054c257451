"""
Fee Estimator

Derives the storage price and gas cost of a submission from the live
market price per sector and the chain's gas price. Nothing is cached:
both inputs can change between calls.
"""

from __future__ import annotations

from typing import Optional

from web3 import AsyncWeb3, Web3

from ogdrive.config import NetworkConfig
from ogdrive.constants import FALLBACK_GAS_ESTIMATE
from ogdrive.errors.storage import ProviderUnavailableError
from ogdrive.storage.contracts import flow_contract, market_contract
from ogdrive.storage.merkle import Submission
from ogdrive.storage.types import FeeInfo
from ogdrive.utils.logging import get_logger

_logger = get_logger(__name__)


def calculate_price(submission: Submission, price_per_sector: int) -> int:
    """Storage price in wei: sectors x price per sector."""
    return submission.sectors * price_per_sector


def format_ether(wei: int) -> str:
    """Render wei as a plain decimal ether string."""
    value = Web3.from_wei(wei, "ether")
    text = format(value, "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text or "0"


class FeeEstimator:
    """
    Computes FeeInfo for a submission.

    Example:
        ```python
        estimator = FeeEstimator(w3, get_network_config("standard"))
        fees = await estimator.estimate(blob.create_submission())
        print(fees.total_fee, "OG")
        ```
    """

    def __init__(
        self,
        w3: AsyncWeb3,
        network: NetworkConfig,
        sender: Optional[str] = None,
        fallback_gas: int = FALLBACK_GAS_ESTIMATE,
    ) -> None:
        self._w3 = w3
        self._network = network
        self._sender = sender
        self._fallback_gas = fallback_gas
        self._flow = flow_contract(w3, network.flow_address)

    async def price_per_sector(self) -> int:
        """
        Read the market's current price per sector.

        Raises:
            ProviderUnavailableError: If the chain cannot be queried
        """
        try:
            market_address = await self._flow.functions.market().call()
            market = market_contract(self._w3, market_address)
            return int(await market.functions.pricePerSector().call())
        except Exception as e:
            raise ProviderUnavailableError(
                f"Failed to read storage price: {e}",
                endpoint=self._network.l1_rpc,
            ) from e

    async def gas_price(self) -> int:
        try:
            return int(await self._w3.eth.gas_price)
        except Exception as e:
            raise ProviderUnavailableError(
                f"Failed to read gas price: {e}",
                endpoint=self._network.l1_rpc,
            ) from e

    async def estimate_gas(self, submission: Submission, value: int) -> Optional[int]:
        """Gas units for ``submit``, or None when estimation fails."""
        tx: dict = {"value": value}
        if self._sender:
            tx["from"] = self._sender
        try:
            return int(
                await self._flow.functions.submit(submission.as_contract_arg()).estimate_gas(tx)
            )
        except Exception as e:
            _logger.warning(
                "Gas estimation failed, using fallback",
                extra={"fallback_gas": self._fallback_gas, "error": str(e)},
            )
            return None

    async def estimate(self, submission: Submission) -> FeeInfo:
        """
        Estimate fees for one submission.

        Gas estimation failures fall back to a fixed estimate rather
        than aborting.

        Raises:
            ProviderUnavailableError: If price or gas price cannot be read
        """
        storage_fee = calculate_price(submission, await self.price_per_sector())
        gas_price = await self.gas_price()
        gas_estimate = await self.estimate_gas(submission, storage_fee)
        used_fallback = gas_estimate is None
        if gas_estimate is None:
            gas_estimate = self._fallback_gas

        gas_fee = gas_estimate * gas_price
        total = storage_fee + gas_fee

        _logger.debug(
            "Estimated fees",
            extra={
                "sectors": submission.sectors,
                "storage_wei": storage_fee,
                "gas_wei": gas_fee,
            },
        )
        return FeeInfo(
            storage_fee=format_ether(storage_fee),
            gas_fee=format_ether(gas_fee),
            total_fee=format_ether(total),
            raw_storage_fee=storage_fee,
            raw_gas_fee=gas_fee,
            raw_total_fee=total,
            gas_estimate=gas_estimate,
            gas_price=gas_price,
            used_fallback_gas=used_fallback,
        )
