"""Error types and reporting helpers."""

from __future__ import annotations

import sys
from typing import TextIO


class TaggedError(RuntimeError):
    """An error that records which operation was attempted and why it failed."""

    def __init__(self, attempt: str, message: str, code: int | None = None) -> None:
        super().__init__(f"{attempt}: {message}")
        self.attempt = attempt
        self.message = message
        self.code = code


def print_exception(error: BaseException, output: TextIO | None = None) -> None:
    """Report an exception that ended an operation, by type and message."""
    stream = sys.stderr if output is None else output
    stream.write(f"Died on {type(error).__name__}: {error}\n")
    stream.flush()