"""Opcodes and position-tagged instructions for Brainfuck programs."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class RawOpcode(Enum):
    """The eight Brainfuck commands, keyed by their source character."""

    MOVE_LEFT = "<"
    MOVE_RIGHT = ">"
    INCREMENT = "+"
    DECREMENT = "-"
    INPUT = ","
    OUTPUT = "."
    BEGIN_LOOP = "["
    END_LOOP = "]"

    @classmethod
    def from_char(cls, char: str) -> Optional["RawOpcode"]:
        """Return the opcode for `char`, or None when it is commentary."""
        return _BY_CHAR.get(char)

    @property
    def description(self) -> str:
        return _DESCRIPTIONS[self]


_BY_CHAR = {op.value: op for op in RawOpcode}

_DESCRIPTIONS = {
    RawOpcode.MOVE_LEFT: "Move pointer to left",
    RawOpcode.MOVE_RIGHT: "Move pointer to right",
    RawOpcode.INCREMENT: "Increment current location",
    RawOpcode.DECREMENT: "Decrement current location",
    RawOpcode.INPUT: "Input ASCII to current location",
    RawOpcode.OUTPUT: "Output current location as ASCII",
    RawOpcode.BEGIN_LOOP: "Start looping",
    RawOpcode.END_LOOP: "End looping",
}


@dataclass(frozen=True)
class Instruction:
    """A single opcode plus the 1-based row/column it was read from."""

    row: int
    col: int
    opcode: RawOpcode
