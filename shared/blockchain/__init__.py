"""
Blockchain Module
=================

Abstraction layer for chain data access.

Supports:
- Mock (development/testing)
- JSON-RPC (Istanbul-BFT nodes such as Celo)

Features:
- Block headers with decoded aggregated seals
- Elected validator signers per epoch
- Epoch boundary arithmetic

Usage:
    from shared.blockchain import get_chain_client

    client = get_chain_client()

    async with client:
        head = await client.get_latest_block_number()
        block = await client.get_block(head)
        signers = await client.get_elected_signers(head)
"""

from shared.blockchain.address import is_address, normalize_address
from shared.blockchain.client import (
    AggregatedSeal,
    Block,
    BlockNotFoundError,
    ChainClient,
    ChainProviderError,
    MalformedBlockError,
    RpcError,
    get_chain_client,
    reset_chain_client,
    set_chain_client,
)
from shared.blockchain.epochs import epoch_number, first_block_of_epoch, last_block_of_epoch
from shared.blockchain.mock import MockChainClient

__all__ = [
    # Client
    "ChainClient",
    "get_chain_client",
    "set_chain_client",
    "reset_chain_client",
    # Models
    "AggregatedSeal",
    "Block",
    # Errors
    "ChainProviderError",
    "BlockNotFoundError",
    "MalformedBlockError",
    "RpcError",
    # Epochs
    "epoch_number",
    "first_block_of_epoch",
    "last_block_of_epoch",
    # Addresses
    "is_address",
    "normalize_address",
    # Implementations
    "MockChainClient",
]
