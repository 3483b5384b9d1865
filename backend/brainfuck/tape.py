"""The Brainfuck memory tape: cell storage, pointer and growth policy."""

import logging
from typing import List

from .cells import U8, CellKind
from .errors import PointerOverflowError, PointerUnderflowError

logger = logging.getLogger(__name__)


class Tape:
    """A row of wrapping cells with a pointer that starts at cell 0.

    Args:
        length: initial number of cells (must be >= 1).
        extensible: when True, moving right off the last cell doubles the tape
            instead of failing.
        kind: the cell width strategy, 8-bit by default.

    Movement errors are raised without a position; the interpreter attaches the
    source location of the instruction that caused them.
    """

    def __init__(self, length: int = 30000, extensible: bool = False, kind: CellKind = U8):
        if length < 1:
            raise ValueError("Tape length must be at least 1")
        self.kind = kind
        self.extensible = extensible
        self.cells: List[int] = [kind.zero] * length
        self.pointer = 0

    def __len__(self) -> int:
        return len(self.cells)

    @property
    def current(self) -> int:
        return self.cells[self.pointer]

    def move_left(self) -> None:
        if self.pointer == 0:
            raise PointerUnderflowError()
        self.pointer -= 1

    def move_right(self) -> None:
        if self.pointer == len(self.cells) - 1:
            if not self.extensible:
                raise PointerOverflowError()
            # double the length; new cells start at zero
            self.cells.extend([self.kind.zero] * len(self.cells))
            logger.debug("Tape extended to %d cells", len(self.cells))
        self.pointer += 1

    def increment(self) -> None:
        self.cells[self.pointer] = self.kind.increment(self.cells[self.pointer])

    def decrement(self) -> None:
        self.cells[self.pointer] = self.kind.decrement(self.cells[self.pointer])

    def get_value(self) -> int:
        return self.kind.to_byte(self.cells[self.pointer])

    def set_value(self, byte: int) -> None:
        self.cells[self.pointer] = self.kind.from_byte(byte)
