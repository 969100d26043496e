"""
Election Results Cache
======================

Memoized answers to "was this signer elected for block N" and
"did this signer seal block N".

Elected sets are cached per epoch and aggregated seals per block. Both caches
live as long as the instance; the command builds one per run.

Version: 0.1.0
"""

from shared.blockchain import AggregatedSeal, Block, ChainClient, epoch_number, first_block_of_epoch
from shared.config import EpochBoundary
from shared.logging import get_logger


logger = get_logger(__name__)


class ElectionResultsCache:
    """
    Per-epoch elected signer sets and per-block aggregated seals.

    Not safe for concurrent lookups of the same epoch; the heartbeat
    command consumes blocks sequentially.

    Example:
        >>> cache = ElectionResultsCache(client, epoch_size=17280)
        >>> if await cache.elected(signer, block.number):
        ...     signed = await cache.signed(signer, block)
    """

    def __init__(
        self,
        client: ChainClient,
        epoch_size: int,
        boundary: EpochBoundary = EpochBoundary.FIRST_BLOCK,
    ) -> None:
        if epoch_size <= 0:
            raise ValueError(f"epoch_size must be positive, got {epoch_size}")

        self._client = client
        self.epoch_size = epoch_size
        self.boundary = boundary

        self._elected: dict[int, tuple[str, ...]] = {}
        self._seals: dict[int, AggregatedSeal] = {}

    def epoch_number(self, block_number: int) -> int:
        """Epoch whose election governs a block."""
        return epoch_number(block_number, self.epoch_size, self.boundary)

    async def elected_signers(self, block_number: int) -> tuple[str, ...]:
        """
        Get the ordered elected signer set for a block's epoch.

        Queries the chain at the epoch's first block on a miss.

        Args:
            block_number: Any block in the epoch

        Returns:
            Lowercased signer addresses in committee order
        """
        epoch = self.epoch_number(block_number)
        signers = self._elected.get(epoch)
        if signers is None:
            representative = first_block_of_epoch(epoch, self.epoch_size, self.boundary)
            result = await self._client.get_elected_signers(representative)
            signers = tuple(address.lower() for address in result)
            self._elected[epoch] = signers
            logger.debug(
                "election_cache_miss",
                epoch=epoch,
                block_number=representative,
                signers=len(signers),
            )
        return signers

    async def elected(self, address: str, block_number: int) -> bool:
        """Check whether an address was elected for the block's epoch."""
        signers = await self.elected_signers(block_number)
        return address.lower() in signers

    async def signed(self, address: str, block: Block) -> bool:
        """
        Check whether an address's signature is in a block's seal.

        The bit index is the address's position in the elected set of
        the block's epoch. Addresses outside that set return False.

        Args:
            address: Signer address
            block: Fetched block with its aggregated seal

        Returns:
            True if the address's bit is set
        """
        signers = await self.elected_signers(block.number)
        try:
            index = signers.index(address.lower())
        except ValueError:
            return False

        seal = self._seals.setdefault(block.number, block.aggregated_seal)
        return seal.is_set(index)

    def stats(self) -> dict[str, int]:
        """Get cache sizes."""
        return {
            "epochs": len(self._elected),
            "seals": len(self._seals),
        }
