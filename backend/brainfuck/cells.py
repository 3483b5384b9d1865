"""Cell kinds: the wrapping unsigned integer widths a tape can hold.

A `CellKind` is a small strategy object; the tape stores plain ints and asks
its kind how to step, wrap and convert them to and from bytes.
"""

from dataclasses import dataclass
from typing import Dict


@dataclass(frozen=True)
class CellKind:
    bits: int

    zero = 0
    one = 1
    min = 0

    @property
    def max(self) -> int:
        return (1 << self.bits) - 1

    def increment(self, value: int) -> int:
        if value < self.max:
            return value + self.one
        return self.min

    def decrement(self, value: int) -> int:
        if value > self.min:
            return value - self.one
        return self.max

    def from_byte(self, byte: int) -> int:
        # every supported width is at least 8 bits wide
        return byte

    def to_byte(self, value: int) -> int:
        return value & 0xFF


U8 = CellKind(8)
U16 = CellKind(16)
U32 = CellKind(32)
U64 = CellKind(64)

CELL_KINDS: Dict[int, CellKind] = {k.bits: k for k in (U8, U16, U32, U64)}


def cell_kind(bits: int) -> CellKind:
    """Look up a supported cell kind by width in bits."""
    try:
        return CELL_KINDS[int(bits)]
    except KeyError:
        supported = ", ".join(str(b) for b in sorted(CELL_KINDS))
        raise ValueError(f"Unsupported cell width {bits}; expected one of {supported}") from None
