"""A fixed-size ring buffer that carries a byte stream between two descriptors."""

from __future__ import annotations

import enum

from netshell.file_descriptor import FileDescriptor


class PushResult(enum.Enum):
    SUCCESS = "success"
    END_OF_FILE = "end_of_file"


class ByteStreamQueue:
    """Ring buffer filled by reading one descriptor and drained by writing another.

    One slot is always left free, so a queue of size n holds at most n - 1 bytes.
    """

    def __init__(self, size: int) -> None:
        if size <= 1:
            raise ValueError(f"ByteStreamQueue size must be greater than 1, not {size}")
        self._buffer = bytearray(size)
        self._next_push = 0
        self._next_pop = 0

    def available_to_pop(self) -> int:
        """Number of bytes waiting to be written out."""
        wrap = len(self._buffer) if self._next_pop > self._next_push else 0
        return self._next_push - self._next_pop + wrap

    def available_to_push(self) -> int:
        """Number of bytes that can still be read in."""
        wrap = 0 if self._next_pop > self._next_push else len(self._buffer)
        return self._next_pop - self._next_push - 1 + wrap

    def space_available(self) -> bool:
        return self.available_to_push() > 0

    def non_empty(self) -> bool:
        return self.available_to_pop() > 0

    def push(self, fd: FileDescriptor) -> PushResult:
        """Read from fd into the free space after the write position."""
        if not self.space_available():
            raise RuntimeError("ByteStreamQueue: push to a full queue")

        size = len(self._buffer)
        contiguous = min(self.available_to_push(), size - self._next_push)

        chunk = fd.read(contiguous)
        if not chunk:
            return PushResult.END_OF_FILE
        if len(chunk) > contiguous:
            raise RuntimeError("ByteStreamQueue: read returned more than requested")

        start = self._next_push
        self._buffer[start:start + len(chunk)] = chunk
        self._next_push = (start + len(chunk)) % size
        return PushResult.SUCCESS

    def pop(self, fd: FileDescriptor) -> None:
        """Write as much of the contiguous queued data to fd as it accepts."""
        if not self.non_empty():
            raise RuntimeError("ByteStreamQueue: pop from an empty queue")

        size = len(self._buffer)
        contiguous = min(self.available_to_pop(), size - self._next_pop)

        start = self._next_pop
        written = fd.write(bytes(self._buffer[start:start + contiguous]), write_all=False)
        self._next_pop = (start + written) % size