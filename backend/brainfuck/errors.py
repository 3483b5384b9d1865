"""Error taxonomy for loading and running Brainfuck programs.

Every user-facing failure is a `BrainfuckError`. Errors carry structured
fields (a stable `code`, the source identifier and the offending
`Instruction`) instead of pre-formatted text, so callers decide how to present
them: the CLI prints `str(err)`, the HTTP API returns `err.to_dict()`.

Errors raised by the tape do not know which instruction triggered them; the
interpreter fills the position in with `with_position` before re-raising.
"""

from typing import Any, Dict, Optional

from .instructions import Instruction


class BrainfuckError(Exception):
    """Base class for all Brainfuck load and run failures.

    Attributes:
        code: short stable identifier, e.g. ``POINTER_UNDERFLOW``
        source: program identifier (file path or label), if known
        instruction: the instruction being executed or validated, if known
    """

    code = "BRAINFUCK_ERROR"

    def __init__(self, source: Optional[str] = None, instruction: Optional[Instruction] = None):
        super().__init__(self.code)
        self.source = source
        self.instruction = instruction

    def with_position(self, source: str, instruction: Instruction) -> "BrainfuckError":
        # Keep whatever position was recorded first.
        if self.source is None:
            self.source = source
        if self.instruction is None:
            self.instruction = instruction
        return self

    @property
    def location(self) -> str:
        source = "?" if self.source is None else self.source
        if self.instruction is None:
            return f"[{source}]"
        return f"[{source}:{self.instruction.row}:{self.instruction.col}]"

    def describe(self) -> str:
        return "Brainfuck error at " + self.location

    def __str__(self) -> str:
        return self.describe()

    def to_dict(self) -> Dict[str, Any]:
        ins = self.instruction
        return {
            "code": self.code,
            "message": self.describe(),
            "source": self.source,
            "line": ins.row if ins else None,
            "column": ins.col if ins else None,
            "opcode": ins.opcode.value if ins else None,
        }


class BracketError(BrainfuckError):
    """Raised by validation when loop brackets are not properly nested."""


class UnmatchedOpenBracketError(BracketError):
    code = "UNMATCHED_OPEN"

    def describe(self) -> str:
        return f"Found '[' at {self.location} but no matching ']' found"


class UnmatchedCloseBracketError(BracketError):
    code = "UNMATCHED_CLOSE"

    def describe(self) -> str:
        return f"Found ']' at {self.location} but no matching '[' found"


class BrainfuckRuntimeError(BrainfuckError):
    """Raised while a validated program is executing."""


class PointerUnderflowError(BrainfuckRuntimeError):
    code = "POINTER_UNDERFLOW"

    def describe(self) -> str:
        return f"Pointer already at 0 but {self.location} still wants to move it left"


class PointerOverflowError(BrainfuckRuntimeError):
    code = "POINTER_OVERFLOW"

    def describe(self) -> str:
        return (
            "Pointer already at right edge and tape is not extensible, "
            f"but {self.location} still wants to move it right"
        )


class _IOFailure(BrainfuckRuntimeError):
    action = "access the stream"

    def __init__(self, reason: str, source: Optional[str] = None, instruction: Optional[Instruction] = None):
        super().__init__(source, instruction)
        self.reason = reason

    def describe(self) -> str:
        return f"{self.location} wants to {self.action} but failed due to {self.reason}"

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d["reason"] = self.reason
        return d


class InputReadError(_IOFailure):
    code = "READ_ERROR"
    action = "read a value"


class OutputWriteError(_IOFailure):
    code = "WRITE_ERROR"
    action = "write a value"


class StepLimitError(BrainfuckRuntimeError):
    code = "STEP_LIMIT"

    def __init__(self, limit: int, source: Optional[str] = None, instruction: Optional[Instruction] = None):
        super().__init__(source, instruction)
        self.limit = limit

    def describe(self) -> str:
        return f"Step limit of {self.limit} exceeded at {self.location}"


class OutputLimitError(BrainfuckRuntimeError):
    code = "OUTPUT_LIMIT"

    def __init__(self, limit: int, source: Optional[str] = None, instruction: Optional[Instruction] = None):
        super().__init__(source, instruction)
        self.limit = limit

    def describe(self) -> str:
        return f"Output limit of {self.limit} bytes reached at {self.location}"
