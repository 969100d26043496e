"""
Test Configuration
==================

Pytest fixtures for validator heartbeat tests.
"""

import io
import os
from collections.abc import Iterator

import pytest
from rich.console import Console

# Set test environment
os.environ["ENVIRONMENT"] = "testing"
os.environ["BLOCKCHAIN_MODE"] = "mock"

from shared.blockchain import MockChainClient, reset_chain_client  # noqa: E402


SIGNER = "0x5409ED021D9299bf6814279A6A1411A7e866A631"
OTHER_SIGNER = "0x6Ecbe1DB9EF729CBe972C83Fb886247691Fb6beb"
OUTSIDER = "0xE36Ea790bc9d7AB70C55260C66D52b1eca985f84"


@pytest.fixture(scope="session")
def anyio_backend() -> str:
    """Use asyncio backend for async tests."""
    return "asyncio"


@pytest.fixture
def signer() -> str:
    """Signer address under test."""
    return SIGNER


@pytest.fixture
def mock_client() -> MockChainClient:
    """Mock chain with a two-member committee, epoch size 100, head 1000."""
    return MockChainClient(
        epoch_size=100,
        head=1000,
        validators=[SIGNER, OTHER_SIGNER],
    )


@pytest.fixture
def output() -> io.StringIO:
    """Buffer capturing printed marks."""
    return io.StringIO()


@pytest.fixture
def console(output: io.StringIO) -> Console:
    """Uncolored console writing to the output buffer."""
    return Console(file=output, color_system=None, highlight=False, width=200)


@pytest.fixture(autouse=True)
def _reset_chain_client() -> Iterator[None]:
    """Drop any globally configured chain client between tests."""
    yield
    reset_chain_client()
