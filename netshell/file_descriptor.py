"""Owned operating-system file descriptors with read and write accounting."""

from __future__ import annotations

import os
from contextlib import contextmanager
from typing import Iterator

from netshell.errors import TaggedError, print_exception

BUFFER_SIZE = 1024 * 1024
"""Largest number of bytes returned by one read."""


@contextmanager
def _os_call(attempt: str) -> Iterator[None]:
    """Turn an OSError raised inside the block into a TaggedError naming the attempt."""
    try:
        yield
    except OSError as exc:
        raise TaggedError(attempt, exc.strerror or str(exc), exc.errno) from exc


class FileDescriptor:
    """An open file descriptor that is closed when this object is closed."""

    def __init__(self, fd: int) -> None:
        self._fd = -1
        self._eof = False
        self._read_count = 0
        self._write_count = 0

        if fd <= 2:
            raise TaggedError("FileDescriptor", "fd <= 2")

        # Keep descriptors from leaking into unrelated children.
        with _os_call("fcntl FD_CLOEXEC"):
            os.set_inheritable(fd, False)
        self._fd = fd

    def fileno(self) -> int:
        """Return the descriptor number, or -1 once closed."""
        return self._fd

    def eof(self) -> bool:
        return self._eof

    def read_count(self) -> int:
        return self._read_count

    def write_count(self) -> int:
        return self._write_count

    def register_read(self) -> None:
        self._read_count += 1

    def register_write(self) -> None:
        self._write_count += 1

    def set_eof(self) -> None:
        self._eof = True

    def _require_open(self) -> int:
        if self._fd < 0:
            raise ValueError("I/O on closed file descriptor")
        return self._fd

    def read(self, limit: int = BUFFER_SIZE) -> bytes:
        """Read at most limit bytes; an empty result marks end of file."""
        fd = self._require_open()
        with _os_call("read"):
            data = os.read(fd, min(BUFFER_SIZE, limit))
        if not data:
            self.set_eof()
        self.register_read()
        return data

    def write(self, data: bytes | str, write_all: bool = True) -> int:
        """Write data, all of it unless write_all is false; return bytes written."""
        fd = self._require_open()
        view = memoryview(data.encode() if isinstance(data, str) else data)
        if not view:
            raise ValueError("nothing to write")

        total = 0
        while view:
            with _os_call("write"):
                written = os.write(fd, view)
            if written == 0:
                raise RuntimeError("write returned 0")
            self.register_write()
            total += written
            view = view[written:]
            if not write_all:
                break
        return total

    def close(self) -> None:
        """Close the descriptor; further calls do nothing."""
        if self._fd < 0:
            return
        fd, self._fd = self._fd, -1
        with _os_call("close"):
            os.close(fd)

    def __enter__(self) -> FileDescriptor:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __del__(self) -> None:
        try:
            self.close()
        except Exception as exc:  # never raise from a finalizer
            print_exception(exc)