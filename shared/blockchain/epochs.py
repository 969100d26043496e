"""
Epoch Arithmetic
================

Mapping between block numbers and election epochs.

The epoch a boundary block belongs to differs between chains, so every
function takes an explicit EpochBoundary policy:

    size = 100, FIRST_BLOCK:  epoch 1 = blocks 100..199
    size = 100, LAST_BLOCK:   epoch 1 = blocks 1..100 (epoch 0 = genesis)

Version: 0.1.0
"""

from shared.config import EpochBoundary


def _check(value: int, name: str) -> None:
    if value < 0:
        raise ValueError(f"{name} must be non-negative, got {value}")


def epoch_number(
    block_number: int,
    epoch_size: int,
    boundary: EpochBoundary = EpochBoundary.FIRST_BLOCK,
) -> int:
    """
    Get the epoch whose election governs a block.

    Args:
        block_number: Block to resolve
        epoch_size: Blocks per epoch
        boundary: Epoch boundary policy

    Returns:
        Epoch number
    """
    _check(block_number, "block_number")
    if epoch_size <= 0:
        raise ValueError(f"epoch_size must be positive, got {epoch_size}")

    if boundary == EpochBoundary.LAST_BLOCK:
        return -(-block_number // epoch_size)
    return block_number // epoch_size


def first_block_of_epoch(
    epoch: int,
    epoch_size: int,
    boundary: EpochBoundary = EpochBoundary.FIRST_BLOCK,
) -> int:
    """Get the first block of an epoch, used to query its election."""
    _check(epoch, "epoch")
    if boundary == EpochBoundary.LAST_BLOCK:
        return 0 if epoch == 0 else (epoch - 1) * epoch_size + 1
    return epoch * epoch_size


def last_block_of_epoch(
    epoch: int,
    epoch_size: int,
    boundary: EpochBoundary = EpochBoundary.FIRST_BLOCK,
) -> int:
    """Get the last block of an epoch."""
    _check(epoch, "epoch")
    if boundary == EpochBoundary.LAST_BLOCK:
        return epoch * epoch_size
    return (epoch + 1) * epoch_size - 1
