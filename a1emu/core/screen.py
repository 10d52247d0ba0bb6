"""
Text screen of the Apple-1 style terminal.

A fixed grid of character cells plus a cursor.  Characters are stored as
the 7-bit codes the character ROM is indexed with; code 0 is a blank cell.
"""

from __future__ import annotations

from typing import List

SCREEN_COLS: int = 60
SCREEN_ROWS: int = 36

CR: int = 0x0D
LF: int = 0x0A


class Screen:
    """Character cell grid with a write cursor.

    Parameters
    ----------
    cols, rows:
        Grid geometry.  Both must be positive.
    """

    def __init__(self, cols: int = SCREEN_COLS, rows: int = SCREEN_ROWS) -> None:
        if cols <= 0 or rows <= 0:
            raise ValueError(f"Invalid screen geometry {cols}x{rows}")
        self.cols: int = cols
        self.rows: int = rows
        self.cells: bytearray = bytearray(cols * rows)
        self.col: int = 0
        self.row: int = 0

    def clear(self) -> None:
        self.cells[:] = bytes(len(self.cells))
        self.col = 0
        self.row = 0

    def cell(self, col: int, row: int) -> int:
        return self.cells[row * self.cols + col]

    def scroll(self) -> None:
        """Move every row up by one and blank the bottom row."""
        cols = self.cols
        self.cells[:-cols] = self.cells[cols:]
        self.cells[-cols:] = bytes(cols)

    def put_char(self, ch: int) -> None:
        """Write *ch* at the cursor and advance it."""
        ch &= 0x7F
        if ch in (CR, LF):
            self.col = 0
            self.row += 1
        else:
            # no lower case in the character ROM
            if ch > 0x5F:
                ch &= 0x5F
            self.cells[self.row * self.cols + self.col] = ch
            self.col += 1

        if self.col == self.cols:
            self.col = 0
            self.row += 1

        if self.row == self.rows:
            self.scroll()
            self.row -= 1

    def lines(self) -> List[str]:
        out = []
        for r in range(self.rows):
            row = self.cells[r * self.cols:(r + 1) * self.cols]
            out.append("".join(chr(c) if c >= 0x20 else " " for c in row).rstrip())
        return out

    def text(self) -> str:
        """The grid as text, trailing blank lines dropped."""
        lines = self.lines()
        while lines and not lines[-1]:
            lines.pop()
        return "\n".join(lines)

    def __repr__(self) -> str:
        return f"Screen({self.cols}x{self.rows}, cursor=({self.col},{self.row}))"
