"""
Mark Printer
============

Renders per-block signing status as a fixed-width grid of glyphs:

         80 ~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~
        120 ..✘.....................................

Each row starts at a multiple of the width and is labelled with that
block number.

Version: 0.1.0
"""

from enum import Enum
from typing import Any

from rich.console import Console
from rich.text import Text


LABEL_WIDTH = 8

NEUTRAL = Text("~", style="yellow")
POSITIVE = Text(".", style="green")
NEGATIVE = Text("✘", style="red")
BLANK = Text(" ")


class PrinterState(str, Enum):
    """Printer lifecycle."""

    UNINITIALIZED = "uninitialized"
    ACTIVE = "active"
    DONE = "done"


class MarkOrderError(ValueError):
    """Mark added for a block before the printer's cursor."""


def mark_for(elected: bool, signed: bool) -> Text:
    """Select the glyph for a block's status."""
    if not elected:
        return NEUTRAL
    return POSITIVE if signed else NEGATIVE


class MarkPrinter:
    """
    Printer object to output marks in a grid to indicate signing status.

    Blocks must be added in increasing order. Skipped block numbers are
    rendered as blanks.
    """

    def __init__(self, width: int, console: Console | None = None) -> None:
        if width <= 0:
            raise ValueError(f"width must be positive, got {width}")

        self.width = width
        self._console = console or Console(highlight=False)
        self._cursor: int | None = None
        self._done = False

    @property
    def state(self) -> PrinterState:
        if self._done:
            return PrinterState.DONE
        if self._cursor is None:
            return PrinterState.UNINITIALIZED
        return PrinterState.ACTIVE

    @property
    def cursor(self) -> int | None:
        """Last block number rendered, None before the first mark."""
        return self._cursor

    def add_mark(self, block_number: int, elected: bool, signed: bool) -> None:
        """
        Render marks up to and including a block.

        Args:
            block_number: Block being reported
            elected: Signer was in the block's elected set
            signed: Signer's signature is in the block's seal

        Raises:
            MarkOrderError: If block_number precedes the cursor
        """
        if self._done:
            raise MarkOrderError("cannot add marks after done()")

        if self._cursor is None:
            # Start at the row boundary so the first label is aligned
            self._cursor = (block_number // self.width) * self.width - 1

        if block_number <= self._cursor - 1:
            raise MarkOrderError(
                f"cannot add mark for {block_number} which is not after {self._cursor}"
            )

        for i in range(self._cursor + 1, block_number + 1):
            if i % self.width == 0:
                self._print_line_label(i)
            if i < block_number:
                self._write(BLANK)
            else:
                self._write(mark_for(elected, signed))

        self._cursor = block_number

    def done(self) -> None:
        """Print a final newline to complete the line. Repeat calls are no-ops."""
        if self._done:
            return
        self._done = True
        self._write(Text("\n"))

    def __enter__(self) -> "MarkPrinter":
        return self

    def __exit__(self, *args: Any) -> None:
        self.done()

    def _print_line_label(self, block_number: int) -> None:
        self._write(Text("\n" + f"{block_number} ".rjust(LABEL_WIDTH)))

    def _write(self, text: Text) -> None:
        self._console.print(text, end="", soft_wrap=True, highlight=False)


# The timeline printer is the mark printer
TimelinePrinter = MarkPrinter
