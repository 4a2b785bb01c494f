"""Uniquely named files, optionally removed when closed."""

from __future__ import annotations

import errno
import os
import random
import string

from netshell.errors import print_exception

_SUFFIX_CHARS = string.ascii_letters + string.digits
_ATTEMPTS = 62**3


class UniqueFile:
    """A newly created file named from a template plus a random suffix."""

    def __init__(self, filename_template: str) -> None:
        self._fd: int | None = None
        self._name = ""
        rng = random.SystemRandom()
        for _ in range(_ATTEMPTS):
            candidate = f"{filename_template}.{''.join(rng.choices(_SUFFIX_CHARS, k=6))}"
            try:
                fd = os.open(candidate, os.O_RDWR | os.O_CREAT | os.O_EXCL, 0o600)
            except FileExistsError:
                continue
            self._fd = fd
            self._name = candidate
            return
        raise FileExistsError(errno.EEXIST, "mkstemp: no unique name available",
                              f"{filename_template}.XXXXXX")

    def name(self) -> str:
        return self._name

    def write(self, contents: bytes | str) -> None:
        """Write all of contents to the file."""
        if self._fd is None:
            raise ValueError("write to closed file")
        data = contents.encode() if isinstance(contents, str) else bytes(contents)
        if not data:
            raise ValueError("nothing to write")
        view = memoryview(data)
        while view:
            written = os.write(self._fd, view)
            if written == 0:
                raise RuntimeError("write returned 0")
            view = view[written:]

    def close(self) -> None:
        """Close the file, leaving it on disk."""
        if self._fd is not None:
            fd, self._fd = self._fd, None
            os.close(fd)

    def __enter__(self) -> UniqueFile:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __del__(self) -> None:
        if getattr(self, "_fd", None) is not None:
            self.close()


class TempFile(UniqueFile):
    """A unique file that is deleted when closed."""

    _unlinked = False

    def close(self) -> None:
        """Close the file and remove it from disk."""
        super().close()
        if self._unlinked or not self._name:
            return
        self._unlinked = True
        try:
            os.unlink(self._name)
        except OSError as exc:
            print_exception(exc)

    def __del__(self) -> None:
        if getattr(self, "_name", "") and not self._unlinked:
            self.close()