"""Controlled Delay (CoDel) active queue management."""

from __future__ import annotations

import math
from typing import Callable

from netshell.packet_queue import DroppingPacketQueue, QueuedPacket, get_arg
from netshell.timestamp import timestamp

PACKET_SIZE = 1504
_U32 = 0xFFFFFFFF
_U64 = 2**64


class CoDelPacketQueue(DroppingPacketQueue):
    """A limited queue that drops packets whose sojourn time stays above a target.

    Arguments are "target=<ms>, interval=<ms>" plus the byte or packet limits.
    Drop decisions are made on dequeue; the last packet is never dropped.
    """

    kind = "codel"

    def __init__(self, args: str, clock: Callable[[], int] = timestamp) -> None:
        super().__init__(args)
        self._target = get_arg(args, "target")
        self._interval = get_arg(args, "interval")
        if self._target == 0 or self._interval == 0:
            raise ValueError("CoDel queue must have target and interval arguments.")
        self._clock = clock
        self._first_above_time = 0
        self._drop_next = 0
        self._count = 0
        self._lastcount = 0
        self._dropping = False

    def _dodequeue(self, now: int) -> tuple[QueuedPacket, bool]:
        packet = DroppingPacketQueue.dequeue(self)
        if self.empty():
            self._first_above_time = 0
            return packet, False

        sojourn_time = (now - packet.arrival_time) % _U64
        ok_to_drop = False
        if sojourn_time < self._target or self.size_bytes() <= PACKET_SIZE:
            self._first_above_time = 0
        elif self._first_above_time == 0:
            self._first_above_time = now + self._interval
        elif now >= self._first_above_time:
            ok_to_drop = True
        return packet, ok_to_drop

    def control_law(self, t: int, count: int) -> int:
        """Time of the next drop: t plus interval divided by the square root of count."""
        return t + int(self._interval / math.sqrt(count))

    def dequeue(self) -> QueuedPacket:
        now = self._clock()
        packet, ok_to_drop = self._dodequeue(now)

        if self._dropping:
            if not ok_to_drop:
                self._dropping = False
            while now >= self._drop_next and self._dropping:
                _, still_ok = self._dodequeue(now)
                self._count = (self._count + 1) & _U32
                if not still_ok:
                    self._dropping = False
                else:
                    self._drop_next = self.control_law(self._drop_next, self._count)
        elif ok_to_drop:
            self._dodequeue(now)
            self._dropping = True
            delta = (self._count - self._lastcount) & _U32
            recent = (now - self._drop_next) % _U64 < 16 * self._interval
            self._count = delta if delta > 1 and recent else 1
            self._drop_next = self.control_law(now, self._count)
            self._lastcount = self._count

        return packet

    def enqueue(self, packet: QueuedPacket) -> None:
        if self.good_with(self.size_bytes() + len(packet.contents), self.size_packets() + 1):
            self.accept(packet)