"""
Tests for the validator heartbeat command
=========================================

End-to-end runs against the mock chain.
"""

import io
from unittest.mock import AsyncMock, patch

import pytest
from rich.console import Console

from services.heartbeat.main import (
    EXIT_CHAIN_ERROR,
    EXIT_OK,
    EXIT_USAGE_ERROR,
    build_parser,
    main,
    run_heartbeat,
)
from shared.blockchain import ChainProviderError, MockChainClient, set_chain_client
from shared.config import EpochBoundary
from tests.conftest import OTHER_SIGNER, SIGNER


@pytest.fixture
def short_epochs() -> MockChainClient:
    """
    Chain where the signer signs 120, misses 121 and loses its seat at 122.

    Epoch size 2: blocks 120-121 are epoch 60, 122-123 epoch 61.
    """
    client = MockChainClient(epoch_size=2, head=200, validators=[SIGNER, OTHER_SIGNER])
    client.set_election(61, [OTHER_SIGNER])
    client.set_missed(SIGNER, [121])
    return client


class TestRunHeartbeat:
    """Tests for run_heartbeat."""

    @pytest.mark.asyncio
    async def test_three_states(
        self,
        short_epochs: MockChainClient,
        console: Console,
        output: io.StringIO,
    ) -> None:
        """Test positive, negative and neutral marks in one row."""
        result = await run_heartbeat(
            short_epochs,
            SIGNER,
            at_block=122,
            lookback=3,
            width=40,
            console=console,
        )

        assert output.getvalue() == "\n    120 .✘~\n"
        assert result.blocks == 3
        assert result.elected == 2
        assert result.signed == 1
        assert result.missed == 1

    @pytest.mark.asyncio
    async def test_defaults_to_chain_head(
        self,
        mock_client: MockChainClient,
        console: Console,
        output: io.StringIO,
    ) -> None:
        """Test a full default window ending at the head."""
        result = await run_heartbeat(mock_client, SIGNER, console=console)

        rows = [line for line in output.getvalue().split("\n") if line]

        assert (result.first_block, result.last_block) == (881, 1000)
        assert result.blocks == 120
        assert result.signed == 120
        assert [row.split()[0] for row in rows] == ["880", "920", "960", "1000"]
        assert rows[0] == "    880  " + "." * 39
        assert rows[-1] == "   1000 ."

    @pytest.mark.asyncio
    async def test_caches_elections_per_epoch(
        self,
        mock_client: MockChainClient,
        console: Console,
    ) -> None:
        """Test that each epoch's election is queried once."""
        result = await run_heartbeat(mock_client, SIGNER, at_block=1000, console=console)

        assert mock_client.calls["get_block"] == 120
        assert mock_client.calls["get_elected_signers"] == 3
        assert result.cache_stats["epochs"] == 3

    @pytest.mark.asyncio
    async def test_clips_window_at_genesis(
        self,
        mock_client: MockChainClient,
        console: Console,
        output: io.StringIO,
    ) -> None:
        result = await run_heartbeat(mock_client, SIGNER, at_block=5, lookback=120, console=console)

        assert result.first_block == 0
        assert result.blocks == 6
        assert output.getvalue() == "\n      0 ......\n"

    @pytest.mark.asyncio
    async def test_boundary_policy(self, console: Console, output: io.StringIO) -> None:
        """Test that the boundary block follows the configured policy."""
        client = MockChainClient(
            epoch_size=100,
            validators=[SIGNER],
            boundary=EpochBoundary.LAST_BLOCK,
        )
        client.set_election(2, [OTHER_SIGNER])

        await run_heartbeat(
            client,
            SIGNER,
            at_block=201,
            lookback=3,
            width=10,
            boundary=EpochBoundary.LAST_BLOCK,
            console=console,
        )

        assert output.getvalue() == "\n    190 " + " " * 9 + "~\n    200 ~.\n"

    @pytest.mark.asyncio
    async def test_boundary_follows_client(self, console: Console, output: io.StringIO) -> None:
        """Test that without an explicit policy the client's convention is used."""
        client = MockChainClient(
            epoch_size=100,
            validators=[SIGNER],
            boundary=EpochBoundary.LAST_BLOCK,
        )
        client.set_election(2, [OTHER_SIGNER])

        await run_heartbeat(client, SIGNER, at_block=201, lookback=3, width=10, console=console)

        assert output.getvalue() == "\n    190 " + " " * 9 + "~\n    200 ~.\n"

    @pytest.mark.asyncio
    async def test_fetch_failure_flushes_newline(
        self,
        mock_client: MockChainClient,
        console: Console,
        output: io.StringIO,
    ) -> None:
        """Test that a failed fetch aborts the run but ends the output line."""
        mock_client.fail_block(990)

        with pytest.raises(ChainProviderError):
            await run_heartbeat(mock_client, SIGNER, at_block=1000, lookback=20, console=console)

        assert output.getvalue() == "\n"

    @pytest.mark.asyncio
    async def test_election_failure_keeps_partial_output(
        self,
        mock_client: MockChainClient,
        console: Console,
        output: io.StringIO,
    ) -> None:
        """Test that marks printed before a lookup failure stay on screen."""
        original = mock_client.get_elected_signers

        async def fail_for_epoch_ten(block_number: int) -> list[str]:
            if block_number == 1000:
                raise ChainProviderError("election lookup failed")
            return await original(block_number)

        with patch.object(mock_client, "get_elected_signers", new=fail_for_epoch_ten):
            with pytest.raises(ChainProviderError, match="election lookup failed"):
                await run_heartbeat(
                    mock_client, SIGNER, at_block=1000, lookback=4, width=10, console=console
                )

        assert output.getvalue() == "\n    990 " + " " * 7 + "...\n"


class TestParser:
    """Tests for command-line parsing."""

    def test_defaults(self) -> None:
        args = build_parser().parse_args(["--signer", SIGNER])

        assert args.lookback == 120
        assert args.width == 40
        assert args.concurrency == 10
        assert args.at_block is None
        assert args.follow is False
        assert args.epoch_boundary is None

    def test_signer_required(self) -> None:
        with pytest.raises(SystemExit) as exc_info:
            build_parser().parse_args([])
        assert exc_info.value.code == 2

    def test_invalid_signer(self) -> None:
        with pytest.raises(SystemExit):
            build_parser().parse_args(["--signer", "0x1234"])

    def test_follow_excludes_at_block(self) -> None:
        with pytest.raises(SystemExit):
            build_parser().parse_args(["--signer", SIGNER, "--follow", "--at-block", "10"])

    @pytest.mark.parametrize("flag", ["--lookback", "--width", "--concurrency"])
    def test_positive_ints(self, flag: str) -> None:
        with pytest.raises(SystemExit):
            build_parser().parse_args(["--signer", SIGNER, flag, "0"])


class TestMain:
    """Tests for the command entry point."""

    def test_success(
        self,
        short_epochs: MockChainClient,
        console: Console,
        output: io.StringIO,
    ) -> None:
        set_chain_client(short_epochs)

        code = main(["--signer", SIGNER, "--at-block", "122", "--lookback", "3"], console=console)

        assert code == EXIT_OK
        assert output.getvalue() == "\n    120 .✘~\n"

    def test_chain_error_exit_code(
        self,
        mock_client: MockChainClient,
        console: Console,
        output: io.StringIO,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        mock_client.fail_block(995)
        set_chain_client(mock_client)

        code = main(["--signer", SIGNER, "--lookback", "10"], console=console)

        assert code == EXIT_CHAIN_ERROR
        assert output.getvalue() == "\n"
        assert "mock failure at block 995" in capsys.readouterr().err

    def test_order_error_exit_code(
        self,
        mock_client: MockChainClient,
        console: Console,
        output: io.StringIO,
    ) -> None:
        """Test that a printer ordering error is reported as a usage error."""
        set_chain_client(mock_client)

        async def out_of_order(limit: int, items: range, fn: object) -> list:
            return [await mock_client.get_block(n) for n in reversed(items)]

        with patch("services.heartbeat.main.concurrent_map", new=out_of_order):
            code = main(["--signer", SIGNER, "--at-block", "100", "--lookback", "3"], console=console)

        assert code == EXIT_USAGE_ERROR
        assert output.getvalue().endswith("\n")
        assert output.getvalue().count("\n") == 2

    def test_follow_not_implemented(self, console: Console) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["--signer", SIGNER, "--follow"], console=console)

        assert exc_info.value.code == 2

    def test_rpc_url_selects_rpc_client(
        self,
        mock_client: MockChainClient,
        console: Console,
    ) -> None:
        with patch("services.heartbeat.main.RpcChainClient") as rpc_cls:
            rpc_cls.return_value = mock_client

            code = main(
                ["--signer", SIGNER, "--rpc-url", "http://node.test:8545", "--lookback", "1"],
                console=console,
            )

        assert code == EXIT_OK
        rpc_cls.assert_called_once_with(rpc_url="http://node.test:8545")

    def test_unhandled_error_propagates(
        self,
        mock_client: MockChainClient,
        console: Console,
        output: io.StringIO,
    ) -> None:
        """Test that unexpected errors are not swallowed."""
        set_chain_client(mock_client)

        with patch.object(
            mock_client, "get_epoch_size", new_callable=AsyncMock, side_effect=KeyError("boom")
        ):
            with pytest.raises(KeyError):
                main(["--signer", SIGNER, "--lookback", "1"], console=console)

        assert output.getvalue() == "\n"
