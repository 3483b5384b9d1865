"""Command-line front end: run a Brainfuck source file against stdin/stdout.

Usage:
  bfvm hello.bf
  bfvm program.bf --cells 100 --extensible
  bfvm program.bf --dump

Exit status is 0 on success and 1 when the file cannot be read, the brackets
do not match, or the program fails at run time; the error text goes to stderr.
"""
from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional

from backend.brainfuck.cells import CELL_KINDS
from backend.brainfuck.errors import BrainfuckError
from backend.brainfuck.interpreter import DEFAULT_CELL_BITS, DEFAULT_CELLS, Interpreter
from backend.brainfuck.program import Program

logger = logging.getLogger("bfvm")


def positive_int(text: str) -> int:
    try:
        value = int(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid integer: {text!r}") from None
    if value < 1:
        raise argparse.ArgumentTypeError("must be a positive integer")
    return value


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="bfvm", description="A Brainfuck interpreter.")
    p.add_argument("program", help="Path to the Brainfuck source file")
    p.add_argument(
        "-c",
        "--cells",
        type=positive_int,
        default=DEFAULT_CELLS,
        help=f"Number of cells on the tape (default {DEFAULT_CELLS})",
    )
    p.add_argument(
        "-e",
        "--extensible",
        action="store_true",
        help="Double the tape instead of failing when the pointer runs off its right end",
    )
    p.add_argument(
        "--cell-bits",
        type=int,
        choices=sorted(CELL_KINDS),
        default=DEFAULT_CELL_BITS,
        help="Width of each cell in bits",
    )
    p.add_argument("--dump", action="store_true", help="Print the parsed instructions instead of running")
    p.add_argument("--debug", action="store_true", help="Log interpreter activity to stderr")
    return p.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        program = Program.from_file(args.program)
    except (OSError, UnicodeDecodeError) as e:
        print(f"error: cannot read {args.program}: {e}", file=sys.stderr)
        return 1

    if args.dump:
        listing = program.listing()
        if listing:
            print(listing)
        return 0

    try:
        vm = Interpreter(
            program,
            cells=args.cells,
            extensible=args.extensible,
            cell_bits=args.cell_bits,
        )
        vm.interpret(sys.stdin.buffer, sys.stdout.buffer)
    except BrainfuckError as e:
        logger.debug("Run failed with %s", e.code)
        print(f"error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
