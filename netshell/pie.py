"""Proportional Integral controller Enhanced (PIE) active queue management."""

from __future__ import annotations

import random
from typing import Callable, Protocol

from netshell.packet_queue import DroppingPacketQueue, QueuedPacket, get_arg
from netshell.timestamp import timestamp

PACKET_SIZE = 1504
DQ_COUNT_INVALID = 0xFFFFFFFF
_U32 = 0xFFFFFFFF


class _Random(Protocol):
    def random(self) -> float: ...


def _int32(value: int) -> int:
    """Reinterpret the low 32 bits of value as a signed integer."""
    return ((value + 2**31) % 2**32) - 2**31


class PIEPacketQueue(DroppingPacketQueue):
    """A limited queue that drops arriving packets with a probability driven by queue delay.

    Arguments are "qdelay_ref=<ms>, max_burst=<ms>" plus the byte or packet limits.
    """

    kind = "pie"

    def __init__(
        self,
        args: str,
        clock: Callable[[], int] = timestamp,
        rng: _Random | None = None,
    ) -> None:
        super().__init__(args)
        self._qdelay_ref = get_arg(args, "qdelay_ref")
        self._max_burst = get_arg(args, "max_burst")
        if self._qdelay_ref == 0 or self._max_burst == 0:
            raise ValueError("PIE AQM queue must have qdelay_ref and max_burst parameters")

        self._alpha = 0.125
        self._beta = 1.25
        self._t_update = 30
        self._dq_threshold = 16384

        self._drop_prob = 0.0
        self._burst_allowance = 0
        self._qdelay_old = 0
        self._current_qdelay = 0
        self._dq_count = DQ_COUNT_INVALID
        self._dq_tstamp = 0
        self._avg_dq_rate = 0

        self._clock = clock
        self._rng = rng if rng is not None else random.Random()
        self._last_update = clock()

    def enqueue(self, packet: QueuedPacket) -> None:
        self.calculate_drop_prob()
        if not self.good_with(self.size_bytes() + len(packet.contents), self.size_packets() + 1):
            return
        if not self.drop_early():
            self.accept(packet)

    def drop_early(self) -> bool:
        """Whether an arriving packet should be dropped."""
        if self._burst_allowance > 0:
            return False
        if self._qdelay_old < self._qdelay_ref // 2 and self._drop_prob < 0.2:
            return False
        if self.size_bytes() < 2 * PACKET_SIZE:
            return False
        return self._rng.random() < self._drop_prob

    def dequeue(self) -> QueuedPacket:
        packet = super().dequeue()
        now = self._clock() & _U32

        if self.size_bytes() >= self._dq_threshold and self._dq_count == DQ_COUNT_INVALID:
            self._dq_tstamp = now
            self._dq_count = 0

        if self._dq_count != DQ_COUNT_INVALID:
            self._dq_count = (self._dq_count + len(packet.contents)) & _U32
            if self._dq_count > self._dq_threshold:
                dtime = (now - self._dq_tstamp) & _U32
                if dtime > 0:
                    self._update_rate(now, dtime)

        self.calculate_drop_prob()
        return packet

    def _update_rate(self, now: int, dtime: int) -> None:
        rate_sample = self._dq_count // dtime
        if self._avg_dq_rate == 0:
            self._avg_dq_rate = rate_sample
        else:
            self._avg_dq_rate = (
                (self._avg_dq_rate - (self._avg_dq_rate >> 3)) + (rate_sample >> 3)
            ) & _U32

        if self.size_bytes() < self._dq_threshold:
            self._dq_count = DQ_COUNT_INVALID
        else:
            self._dq_count = 0
            self._dq_tstamp = now

        if self._burst_allowance > 0:
            self._burst_allowance = max(self._burst_allowance - dtime, 0)

    def calculate_drop_prob(self) -> None:
        """Run the periodic drop-probability update once for every period elapsed."""
        now = self._clock()
        # Periods missed since the last update saw no change in occupancy,
        # so replaying them matches a timer-driven update.
        while now - self._last_update > self._t_update:
            update_prob = True
            self._qdelay_old = self._current_qdelay

            if self._avg_dq_rate > 0:
                self._current_qdelay = self.size_bytes() // self._avg_dq_rate
            else:
                self._current_qdelay = 0

            if self._current_qdelay == 0 and self.size_bytes() != 0:
                update_prob = False

            p = self._alpha * _int32(self._current_qdelay - self._qdelay_ref) + self._beta * _int32(
                self._current_qdelay - self._qdelay_old
            )

            if self._drop_prob < 0.01:
                p /= 128
            elif self._drop_prob < 0.1:
                p /= 32
            else:
                p /= 16

            self._drop_prob += p
            if self._drop_prob < 0:
                self._drop_prob = 0.0
            elif self._drop_prob > 1:
                self._drop_prob = 1.0
                update_prob = False

            if self._current_qdelay == 0 and self._qdelay_old == 0 and update_prob:
                self._drop_prob *= 0.98

            self._burst_allowance = max(0, _int32(self._burst_allowance) - self._t_update)
            self._last_update += self._t_update

            half_ref = self._qdelay_ref // 2
            if (
                self._drop_prob == 0
                and self._current_qdelay < half_ref
                and self._qdelay_old < half_ref
                and self._avg_dq_rate > 0
            ):
                self._dq_count = DQ_COUNT_INVALID
                self._avg_dq_rate = 0
                self._burst_allowance = self._max_burst