"""Packet queues: unbounded, drop-tail and drop-head."""

from __future__ import annotations

import abc
from collections import deque
from dataclasses import dataclass

from netshell.ezio import parse_int

_DIGITS = "0123456789"
_U32 = 0xFFFFFFFF


@dataclass(frozen=True)
class QueuedPacket:
    """A packet and the time, in milliseconds, at which it arrived."""

    contents: bytes
    arrival_time: int


def get_arg(args: str, name: str) -> int:
    """Return the value of "name=<digits>" in args, or 0 if name is absent."""
    offset = args.find(name)
    if offset == -1:
        return 0

    offset += len(name)
    if args[offset:offset + 1] != "=":
        raise ValueError(f"could not parse queue arguments: {args}")
    offset += 1

    rest = args[offset:]
    end = next((i for i, ch in enumerate(rest) if ch not in _DIGITS), len(rest))
    digits = rest[:end]
    if not digits:
        raise ValueError(f"could not parse queue arguments: {args}")
    return parse_int(digits) & _U32


class AbstractPacketQueue(abc.ABC):
    """A first-in, first-out queue of packets."""

    @abc.abstractmethod
    def enqueue(self, packet: QueuedPacket) -> None:
        """Offer a packet to the queue, which may drop it."""

    @abc.abstractmethod
    def dequeue(self) -> QueuedPacket:
        """Remove and return the packet at the head of the queue."""

    @abc.abstractmethod
    def empty(self) -> bool:
        """Whether the queue holds no packets."""

    @abc.abstractmethod
    def size_bytes(self) -> int:
        """Total size of the queued packets."""

    @abc.abstractmethod
    def size_packets(self) -> int:
        """Number of queued packets."""

    @abc.abstractmethod
    def __str__(self) -> str:
        """Describe the queue and its configuration."""


class _FifoStore:
    """Packet storage with running byte and packet counts."""

    def __init__(self) -> None:
        self._packets: deque[QueuedPacket] = deque()
        self._bytes = 0

    def push(self, packet: QueuedPacket) -> None:
        self._packets.append(packet)
        self._bytes += len(packet.contents)

    def pop(self) -> QueuedPacket:
        if not self._packets:
            raise IndexError("dequeue from an empty packet queue")
        packet = self._packets.popleft()
        self._bytes -= len(packet.contents)
        return packet

    def __len__(self) -> int:
        return len(self._packets)

    @property
    def byte_count(self) -> int:
        return self._bytes


class DroppingPacketQueue(AbstractPacketQueue):
    """A queue limited by bytes, packets or both, given as "bytes=N, packets=M"."""

    kind = "dropping"

    def __init__(self, args: str) -> None:
        self.packet_limit = get_arg(args, "packets")
        self.byte_limit = get_arg(args, "bytes")
        if self.packet_limit == 0 and self.byte_limit == 0:
            raise ValueError("Dropping queue must have a byte or packet limit.")
        self._store = _FifoStore()

    def accept(self, packet: QueuedPacket) -> None:
        """Put a packet on the back of the queue."""
        self._store.push(packet)

    def good_with(self, size_in_bytes: int, size_in_packets: int) -> bool:
        """Whether the given sizes are within the configured limits."""
        if self.byte_limit and size_in_bytes > self.byte_limit:
            return False
        if self.packet_limit and size_in_packets > self.packet_limit:
            return False
        return True

    def good(self) -> bool:
        """Whether the queue is currently within its limits."""
        return self.good_with(self.size_bytes(), self.size_packets())

    def dequeue(self) -> QueuedPacket:
        return self._store.pop()

    def empty(self) -> bool:
        return len(self._store) == 0

    def size_bytes(self) -> int:
        return self._store.byte_count

    def size_packets(self) -> int:
        return len(self._store)

    def __str__(self) -> str:
        limits = []
        if self.byte_limit:
            limits.append(f"bytes={self.byte_limit}")
        if self.packet_limit:
            limits.append(f"packets={self.packet_limit}")
        return f"{self.kind} [{', '.join(limits)}]"


class DropTailPacketQueue(DroppingPacketQueue):
    """Drops arriving packets that would exceed the limits."""

    kind = "droptail"

    def enqueue(self, packet: QueuedPacket) -> None:
        if self.good_with(self.size_bytes() + len(packet.contents), self.size_packets() + 1):
            self.accept(packet)


class DropHeadPacketQueue(DroppingPacketQueue):
    """Always accepts arriving packets, dropping from the head to stay within limits."""

    kind = "drophead"

    def enqueue(self, packet: QueuedPacket) -> None:
        self.accept(packet)
        while not self.good():
            self.dequeue()


class InfinitePacketQueue(AbstractPacketQueue):
    """A queue without limits."""

    def __init__(self, args: str = "") -> None:
        if args:
            raise ValueError("InfinitePacketQueue does not take arguments.")
        self._store = _FifoStore()

    def enqueue(self, packet: QueuedPacket) -> None:
        self._store.push(packet)

    def dequeue(self) -> QueuedPacket:
        return self._store.pop()

    def empty(self) -> bool:
        return len(self._store) == 0

    def size_bytes(self) -> int:
        return self._store.byte_count

    def size_packets(self) -> int:
        return len(self._store)

    def __str__(self) -> str:
        return "infinite"