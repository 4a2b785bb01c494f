"""Millisecond timestamps relative to the first time they were taken."""

from __future__ import annotations

import functools
import time


def raw_timestamp() -> int:
    """Return wall-clock time in whole milliseconds since the epoch."""
    return time.time_ns() // 1_000_000


@functools.lru_cache(maxsize=None)
def initial_timestamp() -> int:
    """Return the raw timestamp taken on the first call, fixed afterwards."""
    return raw_timestamp()


def timestamp() -> int:
    """Return milliseconds elapsed since the initial timestamp."""
    return raw_timestamp() - initial_timestamp()