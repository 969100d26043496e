"""
Validator Heartbeat.

Reconstructs, for a window of blocks, whether a signer was elected to
the validator committee and whether it signed each block, and renders
the result as a grid of marks.

Key Features:
- Per-epoch election cache and per-block seal bitmaps
- Bounded-concurrency block fetching
- Fixed-width timeline with block-number row labels
"""

from services.heartbeat.election import ElectionResultsCache
from services.heartbeat.printer import (
    MarkOrderError,
    MarkPrinter,
    PrinterState,
    TimelinePrinter,
)

__all__ = [
    "ElectionResultsCache",
    "MarkOrderError",
    "MarkPrinter",
    "PrinterState",
    "TimelinePrinter",
]
