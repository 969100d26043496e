"""
Mock Chain Client
=================

In-memory mock implementation for development and testing.

Version: 0.1.0
"""

import hashlib
from collections import Counter
from typing import Any

from shared.blockchain.address import normalize_address
from shared.blockchain.client import (
    AggregatedSeal,
    Block,
    BlockNotFoundError,
    ChainClient,
    ChainProviderError,
)
from shared.blockchain.epochs import epoch_number
from shared.config import BlockchainMode, EpochBoundary
from shared.logging import get_logger

logger = get_logger(__name__)


def mock_address(seed: str) -> str:
    """Derive a deterministic address from a seed string."""
    return "0x" + hashlib.sha256(seed.encode()).hexdigest()[:40]


class MockChainClient(ChainClient):
    """
    In-memory mock chain client.

    Every epoch elects the default committee unless overridden with
    `set_election`. Every elected signer signs every block unless marked
    with `set_missed`. Blocks exist from genesis up to `head`.

    `calls` counts queries per method so tests can assert caching.
    """

    def __init__(
        self,
        epoch_size: int = 100,
        head: int = 1000,
        validators: list[str] | None = None,
        boundary: EpochBoundary = EpochBoundary.FIRST_BLOCK,
    ) -> None:
        """Initialize mock chain with a default committee."""
        if epoch_size <= 0:
            raise ValueError(f"epoch_size must be positive, got {epoch_size}")

        self._connected = False
        self._epoch_size = epoch_size
        self._head = head
        self._boundary = boundary
        self._default_validators = validators or [
            mock_address(f"validator-{i}") for i in range(5)
        ]

        # In-memory storage
        self._elections: dict[int, list[str]] = {}
        self._missed: dict[int, set[str]] = {}
        self._failures: dict[int, Exception] = {}

        self.calls: Counter[str] = Counter()

        logger.debug("mock_chain_initialized", epoch_size=epoch_size, head=head)

    @property
    def mode(self) -> BlockchainMode:
        return BlockchainMode.MOCK

    @property
    def epoch_boundary(self) -> EpochBoundary:
        return self._boundary

    @property
    def validators(self) -> list[str]:
        """Default committee."""
        return list(self._default_validators)

    async def connect(self) -> None:
        """Simulate connection."""
        self._connected = True
        logger.debug("mock_chain_connected")

    async def disconnect(self) -> None:
        """Simulate disconnection."""
        self._connected = False
        logger.debug("mock_chain_disconnected")

    async def health_check(self) -> dict[str, Any]:
        """Check mock chain health."""
        return {
            "status": "healthy",
            "mode": self.mode.value,
            "connected": self._connected,
            "block_number": self._head,
            "epoch_size": self._epoch_size,
        }

    def _committee(self, block_number: int) -> list[str]:
        epoch = epoch_number(block_number, self._epoch_size, self._boundary)
        return self._elections.get(epoch, self._default_validators)

    def _check_failure(self, block_number: int) -> None:
        if block_number in self._failures:
            raise self._failures[block_number]

    # =========================================================================
    # Blocks
    # =========================================================================

    async def get_block(self, block_number: int) -> Block:
        """Build a block whose seal covers every non-missing signer."""
        self.calls["get_block"] += 1
        self._check_failure(block_number)
        if block_number < 0 or block_number > self._head:
            raise BlockNotFoundError(block_number)

        missed = self._missed.get(block_number, set())
        bitmap = 0
        for index, signer in enumerate(self._committee(block_number)):
            if signer.lower() not in missed:
                bitmap |= 1 << index

        digest = hashlib.sha256(f"block-{block_number}".encode()).hexdigest()
        return Block(
            number=block_number,
            hash="0x" + digest,
            timestamp=1_600_000_000 + block_number * 5,
            aggregated_seal=AggregatedSeal(bitmap=bitmap, signature="0x" + digest[:48]),
        )

    async def get_latest_block_number(self) -> int:
        self.calls["get_latest_block_number"] += 1
        return self._head

    # =========================================================================
    # Elections
    # =========================================================================

    async def get_epoch_size(self) -> int:
        self.calls["get_epoch_size"] += 1
        return self._epoch_size

    async def get_elected_signers(self, block_number: int) -> list[str]:
        self.calls["get_elected_signers"] += 1
        self._check_failure(block_number)
        return list(self._committee(block_number))

    # =========================================================================
    # Test Utilities
    # =========================================================================

    def set_head(self, block_number: int) -> None:
        """Move the chain head."""
        self._head = block_number

    def set_election(self, epoch: int, signers: list[str]) -> None:
        """Override the committee elected for an epoch."""
        self._elections[epoch] = [normalize_address(s) for s in signers]

    def set_missed(self, signer: str, block_numbers: list[int] | range) -> None:
        """Leave a signer out of the seals of the given blocks."""
        address = normalize_address(signer)
        for number in block_numbers:
            self._missed.setdefault(number, set()).add(address)

    def fail_block(self, block_number: int, error: Exception | None = None) -> None:
        """Make queries touching a block raise."""
        self._failures[block_number] = error or ChainProviderError(
            f"mock failure at block {block_number}"
        )

    def clear_all(self) -> None:
        """Clear all overrides and counters (for testing)."""
        self._elections.clear()
        self._missed.clear()
        self._failures.clear()
        self.calls.clear()
        logger.debug("mock_chain_cleared")

    def get_stats(self) -> dict[str, int]:
        """Get storage statistics."""
        return {
            "elections": len(self._elections),
            "missed_blocks": len(self._missed),
            "failures": len(self._failures),
            "block_number": self._head,
        }
