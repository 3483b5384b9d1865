"""A binary writer wrapper that guarantees output ends on a line boundary.

`AutoNewlineWriter` is used as a context manager around the sink a program
writes to. When the block exits, normally or through an exception, it appends
a single ``b"\\n"`` unless the last byte written already was one. Nothing that
was written before is touched.
"""

import logging
from typing import BinaryIO, Optional

logger = logging.getLogger(__name__)

NEWLINE = b"\n"


class AutoNewlineWriter:
    def __init__(self, writer: BinaryIO):
        self.writer = writer
        self.ends_with_newline = False

    def write(self, data: bytes) -> int:
        written = self.writer.write(data)
        if data:
            self.ends_with_newline = data.endswith(NEWLINE)
        return written

    def flush(self) -> None:
        self.writer.flush()

    def finalize(self) -> None:
        if not self.ends_with_newline:
            self.write(NEWLINE)
            self.flush()

    def __enter__(self) -> "AutoNewlineWriter":
        return self

    def __exit__(self, exc_type, exc, tb) -> Optional[bool]:
        if exc_type is None:
            self.finalize()
            return None
        try:
            self.finalize()
        except (OSError, ValueError) as e:
            # keep the original exception
            logger.warning("Could not write trailing newline: %s", e)
        return None
