"""Loading Brainfuck source into position-tagged instructions.

Loading never fails: any character that is not one of the eight commands is
commentary and only advances the column counter. Bracket structure is checked
separately by `Program.validate`, which must succeed before the program is
handed to an `Interpreter`.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import List, Tuple, Union

from .errors import UnmatchedCloseBracketError, UnmatchedOpenBracketError
from .instructions import Instruction, RawOpcode


def parse_instructions(text: str) -> List[Instruction]:
    """Scan `text` and return its instructions in source order.

    Rows and columns are 1-based. Columns count characters, not bytes, so a
    multi-byte character occupies a single column.
    """
    instructions: List[Instruction] = []
    for row, line in enumerate(text.split("\n"), start=1):
        for col, char in enumerate(line, start=1):
            opcode = RawOpcode.from_char(char)
            if opcode is not None:
                instructions.append(Instruction(row, col, opcode))
    return instructions


@dataclass(frozen=True)
class Program:
    """An ordered, read-only sequence of instructions plus where they came from."""

    source: str
    instructions: Tuple[Instruction, ...]

    @classmethod
    def from_source(cls, source: str, text: str) -> "Program":
        return cls(source, tuple(parse_instructions(text)))

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "Program":
        """Read a UTF-8 source file; the path becomes the source identifier."""
        text = Path(path).read_text(encoding="utf-8")
        return cls.from_source(str(path), text)

    def __len__(self) -> int:
        return len(self.instructions)

    def validate(self) -> None:
        """Check that every '[' has a matching ']' and vice versa.

        Raises:
            UnmatchedCloseBracketError: for the first ']' with nothing open.
            UnmatchedOpenBracketError: for the earliest '[' left unclosed.
        """
        open_loops: List[Instruction] = []
        for ins in self.instructions:
            if ins.opcode is RawOpcode.BEGIN_LOOP:
                open_loops.append(ins)
            elif ins.opcode is RawOpcode.END_LOOP:
                if not open_loops:
                    raise UnmatchedCloseBracketError(self.source, ins)
                open_loops.pop()
        if open_loops:
            raise UnmatchedOpenBracketError(self.source, open_loops[0])

    def listing(self) -> str:
        """One line per instruction: ``[source:row:col] description``."""
        return "\n".join(
            f"[{self.source}:{ins.row}:{ins.col}] {ins.opcode.description}" for ins in self.instructions
        )
