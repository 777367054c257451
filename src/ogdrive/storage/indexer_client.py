"""
0G Storage Network Client

Talks to the storage indexer and storage nodes over JSON-RPC (httpx) and
submits flow entries on chain (web3). Remote failures are classified into
DataAlreadyExistsError, RemoteTransientError and RemoteFatalError so the
upload orchestrator can decide whether to retry.
"""

from __future__ import annotations

import asyncio
import base64
import itertools
from typing import Any, Dict, List, Optional

import httpx
from eth_account.signers.local import LocalAccount
from web3 import AsyncWeb3
from web3.exceptions import ContractLogicError

from ogdrive.config import NetworkConfig
from ogdrive.errors.storage import (
    DataAlreadyExistsError,
    ProviderUnavailableError,
    RemoteFatalError,
    RemoteTransientError,
    SignerUnavailableError,
)
from ogdrive.storage.contracts import flow_contract
from ogdrive.storage.merkle import Blob, Submission, to_hex
from ogdrive.utils.logging import get_logger

_logger = get_logger(__name__)

TRANSIENT_MARKERS = (
    "failed to submit transaction",
    "underpriced",
    "replacement transaction",
    "nonce too low",
    "already known",
    "timeout",
    "timed out",
    "too many requests",
)
ALREADY_EXISTS_MARKERS = ("data already exists", "already exists")


def classify_remote_error(message: str, root_hash: Optional[str] = None) -> Exception:
    """
    Map remote error text to the upload error taxonomy.

    Returns:
        DataAlreadyExistsError, RemoteTransientError or RemoteFatalError
    """
    lowered = message.lower()
    if any(marker in lowered for marker in ALREADY_EXISTS_MARKERS):
        return DataAlreadyExistsError(root_hash or "")
    if any(marker in lowered for marker in TRANSIENT_MARKERS):
        return RemoteTransientError(message, root_hash=root_hash)
    return RemoteFatalError(message, root_hash=root_hash)


def _error_text(e: Exception) -> str:
    if e.args and isinstance(e.args[0], dict):
        return str(e.args[0].get("message") or e.args[0].get("reason") or e)
    return str(e)


class IndexerClient:
    """
    Remote storage network surface used by the orchestrators.

    Example:
        ```python
        client = IndexerClient(network, w3=w3, account=Account.from_key(key))
        tx_hash = await client.upload(blob, blob.create_submission(), fee, gas_price, gas_limit)
        ```
    """

    def __init__(
        self,
        network: NetworkConfig,
        w3: Optional[AsyncWeb3] = None,
        account: Optional[LocalAccount] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout_ms: int = 120000,
        finality_poll_s: float = 1.0,
        finality_max_polls: int = 60,
    ) -> None:
        self._network = network
        self._w3 = w3
        self._account = account
        self._transport = transport
        self._timeout = httpx.Timeout(timeout_ms / 1000)
        self._finality_poll_s = finality_poll_s
        self._finality_max_polls = finality_max_polls
        self._ids = itertools.count(1)

    @property
    def network(self) -> NetworkConfig:
        return self._network

    # ------------------------------------------------------------------
    # JSON-RPC
    # ------------------------------------------------------------------

    async def _rpc(self, url: str, method: str, params: List[Any]) -> Any:
        payload = {"jsonrpc": "2.0", "id": next(self._ids), "method": method, "params": params}
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.post(url, json=payload)
        except httpx.TimeoutException as e:
            raise RemoteTransientError(f"{method} timed out") from e
        except httpx.TransportError as e:
            raise ProviderUnavailableError(f"{method} failed: {e}", endpoint=url) from e

        if response.status_code >= 500 or response.status_code == 429:
            raise RemoteTransientError(f"{method} failed: HTTP {response.status_code}")
        if response.status_code != 200:
            raise RemoteFatalError(f"{method} failed: HTTP {response.status_code}")

        body = response.json()
        if body.get("error"):
            raise classify_remote_error(str(body["error"].get("message", body["error"])))
        return body.get("result")

    async def select_nodes(self) -> List[str]:
        """
        Ask the indexer for storage node URLs.

        Raises:
            ProviderUnavailableError: If the indexer returns no nodes
        """
        result = await self._rpc(self._network.storage_rpc, "indexer_getShardedNodes", [])
        nodes = [node["url"] for node in (result or {}).get("trusted") or [] if node.get("url")]
        if not nodes:
            raise ProviderUnavailableError(
                "Indexer returned no storage nodes",
                endpoint=self._network.storage_rpc,
            )
        return nodes

    async def file_info(self, node_url: str, root_hash: str) -> Optional[Dict[str, Any]]:
        """File info from a storage node, or None if the node has never seen it."""
        return await self._rpc(node_url, "zgs_getFileInfo", [root_hash])

    async def upload_segment(self, node_url: str, blob: Blob, index: int) -> None:
        segment_root = blob.segment_tree(index).root
        proof = blob.segment_proof(index)
        lemma = [to_hex(segment_root)] + [to_hex(sibling) for sibling, _ in proof]
        if proof:
            lemma.append(blob.root_hash)
        segment = {
            "root": blob.root_hash,
            "data": base64.b64encode(blob.segment(index)).decode("ascii"),
            "index": index,
            "proof": {"lemma": lemma, "path": [not left for _, left in proof]},
            "fileSize": blob.size,
        }
        await self._rpc(node_url, "zgs_uploadSegment", [segment])

    async def upload_segments(self, node_url: str, blob: Blob, task_size: int) -> None:
        indices = list(range(blob.num_segments))
        for start in range(0, len(indices), task_size):
            batch = indices[start:start + task_size]
            await asyncio.gather(*(self.upload_segment(node_url, blob, i) for i in batch))

    async def wait_for_finality(self, node_url: str, root_hash: str) -> None:
        for _ in range(self._finality_max_polls):
            info = await self.file_info(node_url, root_hash)
            if info and info.get("finalized"):
                return
            await asyncio.sleep(self._finality_poll_s)
        raise RemoteTransientError("File was not finalized in time", root_hash=root_hash)

    # ------------------------------------------------------------------
    # Chain
    # ------------------------------------------------------------------

    async def submit(
        self,
        submission: Submission,
        value: int,
        gas_price: int,
        gas_limit: int,
    ) -> str:
        """
        Sign and send the flow ``submit`` transaction, waiting for its receipt.

        Returns:
            Transaction hash (0x-prefixed)

        Raises:
            SignerUnavailableError: If no account or web3 instance is set
            RemoteTransientError / RemoteFatalError: Classified send failure
        """
        if self._account is None:
            raise SignerUnavailableError()
        if self._w3 is None:
            raise ProviderUnavailableError("No chain provider configured", endpoint=self._network.l1_rpc)

        flow = flow_contract(self._w3, self._network.flow_address)
        try:
            nonce = await self._w3.eth.get_transaction_count(self._account.address, "pending")
            tx = await flow.functions.submit(submission.as_contract_arg()).build_transaction({
                "from": self._account.address,
                "nonce": nonce,
                "chainId": self._network.chain_id,
                "gas": gas_limit,
                "gasPrice": gas_price,
                "value": value,
            })
            signed = self._account.sign_transaction(tx)
            tx_hash = await self._w3.eth.send_raw_transaction(signed.raw_transaction)
            receipt = await self._w3.eth.wait_for_transaction_receipt(tx_hash)
        except ContractLogicError as e:
            raise RemoteFatalError(f"Flow submission reverted: {_error_text(e)}") from e
        except Exception as e:
            reason = _error_text(e)
            if any(marker in reason.lower() for marker in ALREADY_EXISTS_MARKERS):
                raise DataAlreadyExistsError("") from e
            raise RemoteTransientError(f"Failed to submit transaction: {reason}") from e

        tx_hex = tx_hash.hex() if isinstance(tx_hash, (bytes, bytearray)) else str(tx_hash)
        if not tx_hex.startswith("0x"):
            tx_hex = "0x" + tx_hex
        if receipt["status"] != 1:
            raise RemoteTransientError(f"Failed to submit transaction: reverted {tx_hex}")
        return tx_hex

    # ------------------------------------------------------------------
    # Upload / download surface
    # ------------------------------------------------------------------

    async def upload(
        self,
        blob: Blob,
        submission: Submission,
        value: int,
        gas_price: int,
        gas_limit: int,
        task_size: int = 10,
        finality_required: bool = True,
    ) -> Optional[str]:
        """
        Upload a blob: check for duplicates, submit on chain, push segments.

        Returns:
            Flow transaction hash, or None if the entry was already on chain

        Raises:
            DataAlreadyExistsError: If the network already stores this content
        """
        root_hash = blob.root_hash
        nodes = await self.select_nodes()
        node = nodes[0]

        info = await self.file_info(node, root_hash)
        if info and info.get("finalized"):
            raise DataAlreadyExistsError(root_hash)

        tx_hash = None
        if info is None:
            tx_hash = await self.submit(submission, value, gas_price, gas_limit)
            _logger.info(
                "Flow submission mined",
                extra={"root_hash": root_hash, "tx_hash": tx_hash},
            )

        await self.upload_segments(node, blob, task_size)
        if finality_required:
            await self.wait_for_finality(node, root_hash)
        return tx_hash

    def download_url(self, root_hash: str) -> str:
        return self._network.download_url(root_hash)
