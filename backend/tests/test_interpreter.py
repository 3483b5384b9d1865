"""Unit tests for the execution loop: loops, I/O, errors and tape growth."""

import io

import pytest

from backend.brainfuck.errors import (
    InputReadError,
    OutputWriteError,
    PointerOverflowError,
    PointerUnderflowError,
    UnmatchedOpenBracketError,
)
from backend.brainfuck.instructions import Instruction, RawOpcode
from backend.brainfuck.interpreter import Interpreter, build_jump_table
from backend.brainfuck.program import Program

HELLO_WORLD = (
    "++++++++[>++++[>++>+++>+++>+<<<<-]>+>+>->>+[<]<-]"
    ">>.>---.+++++++..+++.>>.<-.<.+++.------.--------.>>+.>++."
)


def _run(code, stdin=b"", **kwargs):
    it = Interpreter(Program.from_source("", code), **kwargs)
    out = io.BytesIO()
    it.interpret(io.BytesIO(stdin), out)
    return it, out.getvalue()


def test_output_gets_trailing_newline():
    _, out = _run("+++.", cells=1)
    assert out == b"\x03\n"


def test_echo_input_byte():
    it, out = _run(",.", stdin=b"A")
    assert out == b"A\n"
    assert it.tape.current == 65


def test_empty_loop_skipped_without_touching_cell():
    it, out = _run("[]")
    assert it.pc == 2
    assert it.steps == 1
    assert it.tape.cells[0] == 0
    assert out == b"\n"


def test_loop_body_runs_once():
    it, _ = _run("+[-]", cells=1)
    assert it.steps == 4
    assert it.tape.current == 0
    assert it.finished


def test_hello_world():
    _, out = _run(HELLO_WORLD)
    assert out == b"Hello World!\n"


def test_move_left_at_start_fails_with_position():
    it = Interpreter(Program.from_source("prog.bf", "><<"), cells=10)
    with pytest.raises(PointerUnderflowError) as exc:
        it.interpret(io.BytesIO(), io.BytesIO())
    err = exc.value
    assert err.source == "prog.bf"
    assert err.instruction == Instruction(1, 3, RawOpcode.MOVE_LEFT)
    assert "[prog.bf:1:3]" in str(err)
    assert it.tape.pointer == 0


def test_move_right_off_fixed_tape_fails_with_position():
    it = Interpreter(Program.from_source("", "\n >>"), cells=2)
    with pytest.raises(PointerOverflowError) as exc:
        it.interpret(io.BytesIO(), io.BytesIO())
    assert exc.value.instruction == Instruction(2, 3, RawOpcode.MOVE_RIGHT)
    assert it.tape.pointer == 1


def test_extensible_tape_doubles_on_demand():
    it, _ = _run("+>+>+", cells=2, extensible=True)
    assert len(it.tape) == 4
    assert it.tape.pointer == 2
    assert it.tape.cells == [1, 1, 1, 0]


def test_read_at_end_of_input_fails():
    it = Interpreter(Program.from_source("", ","), cells=2)
    with pytest.raises(InputReadError) as exc:
        it.interpret(io.BytesIO(b""), io.BytesIO())
    assert exc.value.code == "READ_ERROR"
    assert exc.value.instruction == Instruction(1, 1, RawOpcode.INPUT)
    assert it.tape.current == 0


class _BrokenStream(io.RawIOBase):
    def read(self, size=-1):
        raise OSError("device gone")

    def write(self, data):
        raise OSError("disk full")


def test_read_failure_is_chained():
    it = Interpreter(Program.from_source("", ",."))
    with pytest.raises(InputReadError) as exc:
        it.interpret(_BrokenStream(), io.BytesIO())
    assert isinstance(exc.value.__cause__, OSError)
    assert "device gone" in str(exc.value)


def test_write_failure_reports_position():
    it = Interpreter(Program.from_source("w.bf", "+."))
    with pytest.raises(OutputWriteError) as exc:
        it.interpret(io.BytesIO(), _BrokenStream())
    assert exc.value.instruction == Instruction(1, 2, RawOpcode.OUTPUT)
    assert exc.value.to_dict()["reason"] == "disk full"


def test_output_before_failure_is_kept():
    it = Interpreter(Program.from_source("", "+.<"))
    out = io.BytesIO()
    with pytest.raises(PointerUnderflowError):
        it.interpret(io.BytesIO(), out)
    assert out.getvalue() == b"\x01\n"


def test_invalid_program_rejected_at_construction():
    with pytest.raises(UnmatchedOpenBracketError):
        Interpreter(Program.from_source("", "[[]"))


def test_jump_table_is_bidirectional():
    jumps = build_jump_table(Program.from_source("", "[[]][]"))
    assert jumps == {0: 3, 3: 0, 1: 2, 2: 1, 4: 5, 5: 4}


def test_deep_nesting_needs_no_recursion():
    depth = 5000
    it, _ = _run("[" * depth + "]" * depth)
    assert it.jumps[0] == 2 * depth - 1
    assert it.pc == 2 * depth


def test_program_reused_across_runs():
    it = Interpreter(Program.from_source("", ",+."))
    first, second = io.BytesIO(), io.BytesIO()
    it.interpret(io.BytesIO(b"a"), first)
    it.interpret(io.BytesIO(b"a"), second)
    assert first.getvalue() == second.getvalue() == b"b\n"


def test_cell_width_changes_wraparound():
    it, out = _run("-.", cell_bits=16)
    assert it.tape.current == 65535
    assert out == b"\xff\n"


def test_eight_bit_cells_wrap_after_256_increments():
    it, _ = _run("+" * 256)
    assert it.tape.current == 0


def test_invalid_configuration():
    program = Program.from_source("", "+")
    with pytest.raises(ValueError):
        Interpreter(program, cells=0)
    with pytest.raises(ValueError):
        Interpreter(program, cell_bits=7)


def test_step_advances_program_counter():
    it = Interpreter(Program.from_source("", "+[]"), cells=2)
    reader, writer = io.BytesIO(), io.BytesIO()
    assert it.step(reader, writer) == 1
    assert it.step(reader, writer) == 2
    # cell is 1, so ']' jumps back to just after '['
    assert it.step(reader, writer) == 2


class _FlushFailingSink(io.BytesIO):
    fail_flush = True

    def flush(self):
        if self.fail_flush:
            raise OSError("flush failed")
        super().flush()


def test_flush_failure_is_write_error():
    sink = _FlushFailingSink()
    it = Interpreter(Program.from_source("f.bf", "+."))
    with pytest.raises(OutputWriteError) as exc:
        it.interpret(io.BytesIO(), sink)
    assert exc.value.instruction == Instruction(1, 2, RawOpcode.OUTPUT)
    assert "flush failed" in str(exc.value)
    # the byte was written before flush failed; the trailing newline too
    assert sink.getvalue() == b"\x01\n"
    sink.fail_flush = False


def test_closed_writer_is_write_error():
    out = io.BytesIO()
    out.close()
    it = Interpreter(Program.from_source("p.bf", "+."))
    with pytest.raises(OutputWriteError) as exc:
        it.interpret(io.BytesIO(), out)
    assert exc.value.instruction == Instruction(1, 2, RawOpcode.OUTPUT)
    assert isinstance(exc.value.__cause__, ValueError)


def test_closed_reader_is_read_error():
    reader = io.BytesIO(b"A")
    reader.close()
    out = io.BytesIO()
    it = Interpreter(Program.from_source("p.bf", ",."))
    with pytest.raises(InputReadError) as exc:
        it.interpret(reader, out)
    assert exc.value.instruction == Instruction(1, 1, RawOpcode.INPUT)
    assert isinstance(exc.value.__cause__, ValueError)
    assert out.getvalue() == b"\n"


def test_step_after_finish_keeps_program_counter():
    it = Interpreter(Program.from_source("", "+"))
    reader, writer = io.BytesIO(), io.BytesIO()
    assert it.step(reader, writer) == 1
    assert it.finished
    assert it.step(reader, writer) == 1
    assert it.steps == 1
    assert it.tape.current == 1
