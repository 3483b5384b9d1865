"""Brainfuck interpreter module.

This module implements the fetch-decode-execute loop for validated Brainfuck
programs. An `Interpreter` is built once per `Program`:

- construction validates bracket structure and resolves every loop jump into
  a bidirectional jump table, so loop iterations never rescan the source,
- each `interpret` call starts from a fresh `Tape` and runs until the program
  counter walks off the end of the program or the first error is raised,
- output goes through an `AutoNewlineWriter`, so the sink always ends on a
  line boundary, including after a failure.

Runtime errors coming from the tape are annotated with the source location of
the instruction that triggered them before they reach the caller. Nothing is
retried or swallowed; output already written stays written.

`run_code` is the one-shot helper used by the HTTP API: it runs source text
against in-memory streams and returns a JSON-friendly result dict.
"""

import io
import logging
from typing import Any, BinaryIO, Callable, Dict, List, Optional, Union

from .cells import cell_kind
from .errors import (
    BrainfuckError,
    InputReadError,
    OutputLimitError,
    OutputWriteError,
    StepLimitError,
)
from .instructions import RawOpcode
from .newline_writer import AutoNewlineWriter
from .program import Program
from .tape import Tape

logger = logging.getLogger(__name__)

DEFAULT_CELLS = 30000
DEFAULT_CELL_BITS = 8


def build_jump_table(program: Program) -> Dict[int, int]:
    """Map each '[' index to its matching ']' index and back.

    Uses an explicit stack of pending '[' indices, so nesting depth is bounded
    only by memory. `program` must already be validated.
    """
    jumps: Dict[int, int] = {}
    pending: List[int] = []
    for idx, ins in enumerate(program.instructions):
        if ins.opcode is RawOpcode.BEGIN_LOOP:
            pending.append(idx)
        elif ins.opcode is RawOpcode.END_LOOP:
            open_idx = pending.pop()
            jumps[open_idx] = idx
            jumps[idx] = open_idx
    return jumps


class Interpreter:
    """Runs one validated `Program` against byte streams.

    Tunable attributes (set from keyword arguments):
    - cells, extensible, kind: shape of the tape created for each run
    - max_steps, max_output_bytes: optional safety caps, None means unlimited

    After a run, `tape`, `pc` and `steps` describe where execution stopped.

    Raises:
        BracketError: from construction, if the program is not well nested.
        ValueError: for a tape length below 1 or an unsupported cell width.
    """

    def __init__(
        self,
        program: Program,
        *,
        cells: int = DEFAULT_CELLS,
        extensible: bool = False,
        cell_bits: int = DEFAULT_CELL_BITS,
        max_steps: Optional[int] = None,
        max_output_bytes: Optional[int] = None,
    ):
        if cells < 1:
            raise ValueError("Tape length must be at least 1")
        program.validate()
        self.program = program
        self.cells = cells
        self.extensible = extensible
        self.kind = cell_kind(cell_bits)
        self.max_steps = max_steps
        self.max_output_bytes = max_output_bytes
        self.jumps = build_jump_table(program)
        self._handlers: Dict[RawOpcode, Callable[[BinaryIO, BinaryIO], int]] = {
            RawOpcode.MOVE_LEFT: self._move_left,
            RawOpcode.MOVE_RIGHT: self._move_right,
            RawOpcode.INCREMENT: self._increment,
            RawOpcode.DECREMENT: self._decrement,
            RawOpcode.INPUT: self._read_value,
            RawOpcode.OUTPUT: self._write_value,
            RawOpcode.BEGIN_LOOP: self._begin_loop,
            RawOpcode.END_LOOP: self._end_loop,
        }
        self.reset()

    def reset(self) -> None:
        """Discard run state: fresh tape, program counter and counters at zero."""
        self.tape = Tape(self.cells, self.extensible, self.kind)
        self.pc = 0
        self.steps = 0
        self.output_bytes = 0

    @property
    def finished(self) -> bool:
        return self.pc >= len(self.program)

    def interpret(self, reader: BinaryIO, writer: BinaryIO) -> None:
        """Run the program from the start until it ends or fails.

        `reader` and `writer` are binary streams. The writer is wrapped in an
        `AutoNewlineWriter` for the duration of the run.
        """
        self.reset()
        logger.debug(
            "Running %s: %d instructions, %d cells (%d-bit, extensible=%s)",
            self.program.source,
            len(self.program),
            self.cells,
            self.kind.bits,
            self.extensible,
        )
        with AutoNewlineWriter(writer) as out:
            while not self.finished:
                self.step(reader, out)
        logger.debug("Finished %s after %d steps", self.program.source, self.steps)

    def step(self, reader: BinaryIO, writer: BinaryIO) -> int:
        """Execute the instruction at the program counter and return the new one.

        Once the program has finished this is a no-op returning the final pc.
        """
        if self.finished:
            return self.pc
        ins = self.program.instructions[self.pc]
        if self.max_steps is not None and self.steps >= self.max_steps:
            raise StepLimitError(self.max_steps, self.program.source, ins)
        try:
            self.pc = self._handlers[ins.opcode](reader, writer)
        except BrainfuckError as e:
            e.with_position(self.program.source, ins)
            raise
        self.steps += 1
        return self.pc

    # --- Instruction handlers ------------------------------------------
    # Each handler returns the next program counter.

    def _move_left(self, reader: BinaryIO, writer: BinaryIO) -> int:
        self.tape.move_left()
        return self.pc + 1

    def _move_right(self, reader: BinaryIO, writer: BinaryIO) -> int:
        self.tape.move_right()
        return self.pc + 1

    def _increment(self, reader: BinaryIO, writer: BinaryIO) -> int:
        self.tape.increment()
        return self.pc + 1

    def _decrement(self, reader: BinaryIO, writer: BinaryIO) -> int:
        self.tape.decrement()
        return self.pc + 1

    def _read_value(self, reader: BinaryIO, writer: BinaryIO) -> int:
        try:
            data = reader.read(1)
        except (OSError, ValueError) as e:
            raise InputReadError(str(e)) from e
        if not data:
            raise InputReadError("unexpected end of input")
        self.tape.set_value(data[0])
        return self.pc + 1

    def _write_value(self, reader: BinaryIO, writer: BinaryIO) -> int:
        if self.max_output_bytes is not None and self.output_bytes >= self.max_output_bytes:
            raise OutputLimitError(self.max_output_bytes)
        try:
            writer.write(bytes([self.tape.get_value()]))
            writer.flush()
        except (OSError, ValueError) as e:
            raise OutputWriteError(str(e)) from e
        self.output_bytes += 1
        return self.pc + 1

    def _begin_loop(self, reader: BinaryIO, writer: BinaryIO) -> int:
        if self.tape.current == self.kind.zero:
            return self.jumps[self.pc] + 1
        return self.pc + 1

    def _end_loop(self, reader: BinaryIO, writer: BinaryIO) -> int:
        if self.tape.current != self.kind.zero:
            return self.jumps[self.pc] + 1
        return self.pc + 1


def run_code(
    code: str,
    *,
    source: str = "<input>",
    stdin: Union[bytes, str] = b"",
    settings: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """Load, validate and run `code` against in-memory streams.

    Args:
        code: Brainfuck source text.
        source: identifier used in error locations.
        stdin: bytes (or text, encoded as UTF-8) the program can read.
        settings: optional ``cells``, ``extensible``, ``cell_bits``,
            ``max_steps`` and ``max_output_bytes`` overrides.

    Returns:
        ``{"output": str, "output_bytes": int, "steps": int, "errors": dict | None}``.
        On failure `output` holds whatever was written before the error.
    """
    settings = settings or {}
    if isinstance(stdin, str):
        stdin = stdin.encode("utf-8")
    out = io.BytesIO()
    steps = 0
    try:
        program = Program.from_source(source, code)
        it = Interpreter(
            program,
            cells=int(settings.get("cells", DEFAULT_CELLS)),
            extensible=bool(settings.get("extensible", False)),
            cell_bits=int(settings.get("cell_bits", DEFAULT_CELL_BITS)),
            max_steps=settings.get("max_steps"),
            max_output_bytes=settings.get("max_output_bytes"),
        )
        try:
            it.interpret(io.BytesIO(stdin), out)
        finally:
            steps = it.steps
    except BrainfuckError as e:
        return _result(out, steps, e.to_dict())
    return _result(out, steps, None)


def _result(buf: io.BytesIO, steps: int, errors: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    raw = buf.getvalue()
    return {
        "output": raw.decode("utf-8", errors="replace"),
        "output_bytes": len(raw),
        "steps": steps,
        "errors": errors,
    }
