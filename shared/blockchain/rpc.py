"""
JSON-RPC Chain Client
=====================

Chain client for Istanbul-BFT nodes (e.g. Celo) over JSON-RPC/HTTP.

Methods used:
- eth_blockNumber
- eth_getBlockByNumber
- istanbul_getValidators

Failures are raised as ChainProviderError; retries are left to the caller.

Version: 0.1.0
"""

import itertools
import time
from typing import Any

import httpx

from shared.blockchain.client import (
    Block,
    BlockNotFoundError,
    ChainClient,
    ChainProviderError,
    MalformedBlockError,
    RpcError,
)
from shared.blockchain.istanbul import parse_istanbul_extra
from shared.config import BlockchainMode, EpochBoundary, settings
from shared.logging import get_logger


logger = get_logger(__name__)


def _parse_quantity(value: Any, field: str) -> int:
    """Decode a hex-encoded JSON-RPC quantity."""
    if not isinstance(value, str) or not value.startswith("0x"):
        raise MalformedBlockError(f"{field} is not a hex quantity: {value!r}")
    try:
        return int(value, 16)
    except ValueError as e:
        raise MalformedBlockError(f"{field} is not a hex quantity: {value!r}") from e


class RpcChainClient(ChainClient):
    """
    JSON-RPC chain client.

    Epoch size is not exposed over JSON-RPC, so it is read from
    settings (BLOCKCHAIN_EPOCH_SIZE) unless given explicitly. Boundary
    blocks close their epoch unless BLOCKCHAIN_EPOCH_BOUNDARY says
    otherwise.
    """

    def __init__(
        self,
        rpc_url: str | None = None,
        epoch_size: int | None = None,
        timeout: float | None = None,
        epoch_boundary: EpochBoundary | None = None,
    ) -> None:
        """
        Initialize the client.

        Args:
            rpc_url: Node URL (default from settings)
            epoch_size: Blocks per epoch (default from settings)
            timeout: Request timeout in seconds
            epoch_boundary: Boundary policy (default from settings, else
                LAST_BLOCK, the Istanbul-BFT convention)
        """
        self._rpc_url = rpc_url or settings.blockchain.rpc_url
        self._epoch_size = epoch_size or settings.blockchain.epoch_size
        self._timeout = timeout or settings.blockchain.request_timeout_seconds
        self._epoch_boundary = (
            epoch_boundary or settings.blockchain.epoch_boundary or EpochBoundary.LAST_BLOCK
        )
        self._client: httpx.AsyncClient | None = None
        self._ids = itertools.count(1)

        logger.debug(
            "rpc_client_initialized",
            rpc_url=self._rpc_url,
            epoch_size=self._epoch_size,
            epoch_boundary=self._epoch_boundary.value,
        )

    @property
    def mode(self) -> BlockchainMode:
        return BlockchainMode.RPC

    @property
    def epoch_boundary(self) -> EpochBoundary:
        return self._epoch_boundary

    async def connect(self) -> None:
        """Create the HTTP client."""
        self._http()

    def _http(self) -> httpx.AsyncClient:
        """Get the HTTP client, creating it on first use."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self._timeout),
                headers={"Content-Type": "application/json"},
            )
            logger.debug("rpc_client_connected", rpc_url=self._rpc_url)
        return self._client

    async def disconnect(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
            logger.debug("rpc_client_disconnected")

    async def health_check(self) -> dict[str, Any]:
        """Check node reachability and head."""
        start = time.perf_counter()
        try:
            head = await self.get_latest_block_number()
        except ChainProviderError as e:
            return {
                "status": "unhealthy",
                "mode": self.mode.value,
                "error": str(e),
            }
        return {
            "status": "healthy",
            "mode": self.mode.value,
            "block_number": head,
            "latency_ms": round((time.perf_counter() - start) * 1000, 2),
        }

    async def _call(self, method: str, params: list[Any]) -> Any:
        """
        Perform a JSON-RPC call.

        Raises:
            ChainProviderError: On transport or HTTP failure
            RpcError: If the node returned an error object
        """
        payload = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": method,
            "params": params,
        }

        try:
            response = await self._http().post(self._rpc_url, json=payload)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            raise ChainProviderError(
                f"{method}: HTTP {e.response.status_code} from node"
            ) from e
        except httpx.HTTPError as e:
            raise ChainProviderError(f"{method}: {type(e).__name__}: {e}") from e
        except ValueError as e:
            raise ChainProviderError(f"{method}: response is not JSON") from e

        if not isinstance(data, dict):
            raise ChainProviderError(f"{method}: unexpected response {data!r}")

        error = data.get("error")
        if error is not None and not isinstance(error, dict):
            raise ChainProviderError(f"{method}: malformed error {error!r}")
        if error:
            raise RpcError(method, error.get("code", 0), error.get("message", ""))

        return data.get("result")

    # =========================================================================
    # Blocks
    # =========================================================================

    async def get_block(self, block_number: int) -> Block:
        """Fetch a block header and decode its aggregated seals."""
        result = await self._call("eth_getBlockByNumber", [hex(block_number), False])
        if result is None:
            raise BlockNotFoundError(block_number)
        return self._parse_block(result)

    def _parse_block(self, data: dict[str, Any]) -> Block:
        """Build a Block from an eth_getBlockByNumber result."""
        if "extraData" not in data:
            raise MalformedBlockError("block is missing extraData")

        extra = parse_istanbul_extra(data["extraData"])

        return Block(
            number=_parse_quantity(data.get("number"), "number"),
            hash=data.get("hash"),
            timestamp=_parse_quantity(data.get("timestamp", "0x0"), "timestamp"),
            aggregated_seal=extra.aggregated_seal,
            parent_aggregated_seal=extra.parent_aggregated_seal,
        )

    async def get_latest_block_number(self) -> int:
        """Get the chain head."""
        result = await self._call("eth_blockNumber", [])
        return _parse_quantity(result, "eth_blockNumber")

    # =========================================================================
    # Elections
    # =========================================================================

    async def get_epoch_size(self) -> int:
        return self._epoch_size

    async def get_elected_signers(self, block_number: int) -> list[str]:
        """Get the validator signer set in effect at a block."""
        result = await self._call("istanbul_getValidators", [hex(block_number)])
        if not isinstance(result, list):
            raise ChainProviderError(
                f"istanbul_getValidators: expected a list, got {result!r}"
            )
        logger.debug(
            "rpc_validators_fetched",
            block_number=block_number,
            count=len(result),
        )
        return [str(address) for address in result]
