"""
Chain Client Interface
======================

Abstract base class, models and errors for chain data access.

Version: 0.1.0
"""

from abc import ABC, abstractmethod
from typing import Any

from pydantic import BaseModel, Field

from shared.config import BlockchainMode, EpochBoundary, settings
from shared.logging import get_logger

logger = get_logger(__name__)


class ChainProviderError(Exception):
    """Chain query failed (transport error, bad response, missing data)."""


class BlockNotFoundError(ChainProviderError):
    """Requested block does not exist on the chain."""

    def __init__(self, block_number: int) -> None:
        super().__init__(f"block {block_number} not found")
        self.block_number = block_number


class MalformedBlockError(ChainProviderError):
    """Block data could not be decoded."""


class RpcError(ChainProviderError):
    """JSON-RPC error object returned by the node."""

    def __init__(self, method: str, code: int, message: str) -> None:
        super().__init__(f"{method} failed ({code}): {message}")
        self.method = method
        self.code = code


class AggregatedSeal(BaseModel):
    """Aggregated committee signature over a block."""

    bitmap: int = Field(default=0, ge=0, description="Bit i set if committee member i signed")
    signature: str = Field(default="0x", description="Aggregated BLS signature (hex)")
    round: int = Field(default=0, ge=0, description="Consensus round")

    def is_set(self, index: int) -> bool:
        """Check whether committee member `index` contributed a signature."""
        if index < 0:
            return False
        return bool((self.bitmap >> index) & 1)

    @property
    def signer_count(self) -> int:
        """Number of committee members in the seal."""
        return bin(self.bitmap).count("1")


class Block(BaseModel):
    """Block header fields used for signature checks."""

    number: int = Field(..., ge=0, description="Block number")
    hash: str | None = Field(default=None, description="Block hash")
    timestamp: int = Field(default=0, description="Unix timestamp")

    # Committed seals for this block
    aggregated_seal: AggregatedSeal = Field(default_factory=AggregatedSeal)

    # Committed seals for the parent block, carried in this header
    parent_aggregated_seal: AggregatedSeal | None = None


class ChainClient(ABC):
    """
    Abstract base class for chain clients.

    Implements the Strategy pattern for different chain data sources.
    """

    @property
    @abstractmethod
    def mode(self) -> BlockchainMode:
        """Get the blockchain mode."""
        ...

    @property
    def epoch_boundary(self) -> EpochBoundary:
        """Epoch boundary convention of the chain behind this client."""
        return EpochBoundary.FIRST_BLOCK

    @abstractmethod
    async def connect(self) -> None:
        """Open connections to the chain data source."""
        ...

    @abstractmethod
    async def disconnect(self) -> None:
        """Release connections."""
        ...

    @abstractmethod
    async def health_check(self) -> dict[str, Any]:
        """Check chain data source health."""
        ...

    async def __aenter__(self) -> "ChainClient":
        await self.connect()
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.disconnect()

    # =========================================================================
    # Blocks
    # =========================================================================

    @abstractmethod
    async def get_block(self, block_number: int) -> Block:
        """
        Fetch a block header.

        Args:
            block_number: Block to fetch

        Returns:
            Block with its aggregated seal

        Raises:
            BlockNotFoundError: If the block does not exist
            ChainProviderError: On any other query failure
        """
        ...

    @abstractmethod
    async def get_latest_block_number(self) -> int:
        """Get the current chain head's block number."""
        ...

    # =========================================================================
    # Elections
    # =========================================================================

    @abstractmethod
    async def get_epoch_size(self) -> int:
        """Get the number of blocks per epoch."""
        ...

    @abstractmethod
    async def get_elected_signers(self, block_number: int) -> list[str]:
        """
        Get the validator signers elected for the epoch containing a block.

        The order is the committee order used by seal bitmaps.

        Args:
            block_number: Any block of the epoch, typically its first

        Returns:
            Ordered list of signer addresses
        """
        ...


# Global client instance
_client: ChainClient | None = None


def get_chain_client() -> ChainClient:
    """
    Get the configured chain client instance.

    Returns:
        ChainClient instance based on settings
    """
    global _client

    if _client is None:
        mode = settings.blockchain.mode

        if mode == BlockchainMode.MOCK:
            from shared.blockchain.mock import MockChainClient

            _client = MockChainClient(
                epoch_size=settings.blockchain.epoch_size,
                boundary=settings.blockchain.epoch_boundary or EpochBoundary.FIRST_BLOCK,
            )
        elif mode == BlockchainMode.RPC:
            from shared.blockchain.rpc import RpcChainClient

            _client = RpcChainClient()
        else:
            raise ValueError(f"Unknown blockchain mode: {mode}")

        logger.info(
            "chain_client_initialized",
            mode=mode.value,
        )

    return _client


def set_chain_client(client: ChainClient) -> None:
    """
    Set a custom chain client.

    Args:
        client: ChainClient instance
    """
    global _client
    _client = client
    logger.info(
        "chain_client_set",
        mode=client.mode.value,
    )


def reset_chain_client() -> None:
    """Reset the client to be re-initialized."""
    global _client
    _client = None
