"""
Validator Heartbeat Command
===========================

Shows, for a window of recent blocks, whether a signer was elected and
whether its signature made it into each block's seal:

    $ validator-heartbeat --signer 0x5409ED021D9299bf6814279A6A1411A7e866A631

        120 ..........✘.............................
        160 ........................................
        200 ~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~

    .  elected and signed
    ✘  elected, signature missing
    ~  not elected

Exit codes: 0 on success, 1 on chain errors, 2 on usage errors.

Version: 0.1.0
"""

import argparse
import asyncio
import sys
from dataclasses import dataclass, field

from rich.console import Console
from rich.text import Text

from shared.blockchain import (
    ChainClient,
    ChainProviderError,
    get_chain_client,
    is_address,
)
from shared.blockchain.rpc import RpcChainClient
from shared.config import EpochBoundary, LogLevel, settings
from shared.logging import bind_context, clear_context, get_logger, setup_logging
from services.heartbeat.election import ElectionResultsCache
from services.heartbeat.fetch import concurrent_map
from services.heartbeat.printer import MarkOrderError, MarkPrinter


logger = get_logger(__name__)

EXIT_OK = 0
EXIT_CHAIN_ERROR = 1
EXIT_USAGE_ERROR = 2


@dataclass
class HeartbeatResult:
    """Counts for a rendered window."""

    first_block: int
    last_block: int
    blocks: int = 0
    elected: int = 0
    signed: int = 0
    cache_stats: dict[str, int] = field(default_factory=dict)

    @property
    def missed(self) -> int:
        return self.elected - self.signed


async def run_heartbeat(
    client: ChainClient,
    signer: str,
    at_block: int | None = None,
    lookback: int = 120,
    width: int = 40,
    concurrency: int = 10,
    boundary: EpochBoundary | None = None,
    console: Console | None = None,
) -> HeartbeatResult:
    """
    Render the signing timeline for a window of blocks.

    Blocks are fetched concurrently, then checked and printed one at a
    time in block order. The printer's trailing newline is written even
    when a fetch or lookup fails.

    Args:
        client: Chain data source
        signer: Signer address to check
        at_block: Last block of the window (default: chain head)
        lookback: Number of blocks in the window
        width: Marks per row
        concurrency: Maximum block fetches in flight
        boundary: Epoch boundary policy (default: the client's convention)
        console: Output console (default: stdout)

    Returns:
        HeartbeatResult with counts for the window
    """
    printer = MarkPrinter(width, console)
    try:
        epoch_size = await client.get_epoch_size()
        cache = ElectionResultsCache(client, epoch_size, boundary or client.epoch_boundary)

        latest = at_block if at_block is not None else await client.get_latest_block_number()
        first = max(latest - lookback + 1, 0)
        result = HeartbeatResult(first_block=first, last_block=latest)

        blocks = await concurrent_map(concurrency, range(first, latest + 1), client.get_block)
        logger.debug(
            "blocks_fetched",
            first=first,
            last=latest,
            count=len(blocks),
            concurrency=concurrency,
        )

        for block in blocks:
            elected = await cache.elected(signer, block.number)
            signed = elected and await cache.signed(signer, block)
            printer.add_mark(block.number, elected, signed)

            result.blocks += 1
            result.elected += int(elected)
            result.signed += int(signed)

        # TODO: implement follow mode by subscribing to new block headers
        # once the chain client exposes a subscription API.
    finally:
        printer.done()

    result.cache_stats = cache.stats()
    logger.info(
        "heartbeat_complete",
        first=result.first_block,
        last=result.last_block,
        blocks=result.blocks,
        elected=result.elected,
        signed=result.signed,
        missed=result.missed,
        **result.cache_stats,
    )
    return result


def _address(value: str) -> str:
    if not is_address(value):
        raise argparse.ArgumentTypeError(f"invalid address: {value!r}")
    return value


def _positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected an integer, got {value!r}") from None
    if number <= 0:
        raise argparse.ArgumentTypeError(f"expected a positive integer, got {number}")
    return number


def _block_number(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected a block number, got {value!r}") from None
    if number < 0:
        raise argparse.ArgumentTypeError(f"block number must be non-negative, got {number}")
    return number


def build_parser() -> argparse.ArgumentParser:
    """Build the command-line parser."""
    parser = argparse.ArgumentParser(
        prog="validator-heartbeat",
        description="Display a grid of marks showing whether a validator signer "
        "was elected and signed each block in a recent window.",
        epilog="example: validator-heartbeat "
        "--signer 0x5409ED021D9299bf6814279A6A1411A7e866A631",
    )
    parser.add_argument(
        "--signer",
        required=True,
        type=_address,
        help="address of the signer to check for signatures",
    )

    window = parser.add_mutually_exclusive_group()
    window.add_argument(
        "--at-block",
        type=_block_number,
        default=None,
        help="latest block to examine for signer activity (default: chain head)",
    )
    window.add_argument(
        "-f",
        "--follow",
        action="store_true",
        help=argparse.SUPPRESS,
    )

    parser.add_argument(
        "--lookback",
        type=_positive_int,
        default=settings.heartbeat.lookback,
        help="how many blocks to look back for signer activity (default: %(default)s)",
    )
    parser.add_argument(
        "--width",
        type=_positive_int,
        default=settings.heartbeat.width,
        help="line width for printing marks (default: %(default)s)",
    )
    parser.add_argument(
        "--concurrency",
        type=_positive_int,
        default=settings.heartbeat.fetch_concurrency,
        help="maximum block fetches in flight (default: %(default)s)",
    )
    parser.add_argument(
        "--rpc-url",
        default=None,
        help="JSON-RPC node to query (default: BLOCKCHAIN_* settings)",
    )
    parser.add_argument(
        "--epoch-boundary",
        choices=[boundary.value for boundary in EpochBoundary],
        default=None,
        help="epoch a boundary block belongs to (default: BLOCKCHAIN_EPOCH_BOUNDARY, "
        "else the chain client's convention)",
    )
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=[level.value for level in LogLevel],
        default=settings.log_level.value,
        help="log level for stderr diagnostics (default: %(default)s)",
    )
    parser.add_argument(
        "--no-color",
        action="store_true",
        help="disable colored marks",
    )
    return parser


def main(argv: list[str] | None = None, console: Console | None = None) -> int:
    """
    Run the heartbeat command.

    Args:
        argv: Command-line arguments (default: sys.argv[1:])
        console: Output console (default: stdout)

    Returns:
        Process exit code
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(args.log_level, json_logs=settings.json_logs)

    if args.follow:
        parser.error("--follow is not implemented")

    console = console or Console(
        highlight=False,
        no_color=args.no_color or not settings.heartbeat.color,
    )
    client = RpcChainClient(rpc_url=args.rpc_url) if args.rpc_url else get_chain_client()

    async def _run() -> HeartbeatResult:
        async with client:
            return await run_heartbeat(
                client,
                args.signer,
                at_block=args.at_block,
                lookback=args.lookback,
                width=args.width,
                concurrency=args.concurrency,
                boundary=EpochBoundary(args.epoch_boundary) if args.epoch_boundary else None,
                console=console,
            )

    bind_context(signer=args.signer)
    try:
        asyncio.run(_run())
    except ChainProviderError as e:
        logger.error("heartbeat_failed", error=str(e), error_type=type(e).__name__)
        _report_error(e)
        return EXIT_CHAIN_ERROR
    except MarkOrderError as e:
        logger.error("heartbeat_usage_error", error=str(e))
        _report_error(e)
        return EXIT_USAGE_ERROR
    finally:
        clear_context()

    return EXIT_OK


def _report_error(error: Exception) -> None:
    Console(stderr=True, highlight=False).print(
        Text(f"Error: {error}", style="bold red"),
    )


def cli() -> None:
    """Console script entry point."""
    sys.exit(main())


if __name__ == "__main__":
    cli()
