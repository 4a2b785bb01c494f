"""Callback dispatch over readiness of file descriptors."""

from __future__ import annotations

import enum
import select
from dataclasses import dataclass, field
from typing import Callable, Union

from netshell.file_descriptor import FileDescriptor, _os_call

_ERROR_EVENTS = select.POLLERR | select.POLLHUP | select.POLLNVAL


class Direction(enum.IntEnum):
    IN = select.POLLIN
    OUT = select.POLLOUT


class ResultType(enum.Enum):
    CONTINUE = "continue"
    EXIT = "exit"
    CANCEL = "cancel"


@dataclass(frozen=True)
class ActionResult:
    """What a callback asks the poller to do next."""

    result: ResultType = ResultType.CONTINUE
    exit_status: int = 0


Callback = Callable[[], Union[ActionResult, ResultType]]


def _always() -> bool:
    return True


@dataclass
class Action:
    """A callback run when fd is ready in the given direction and the action is interested."""

    fd: FileDescriptor
    direction: Direction
    callback: Callback
    when_interested: Callable[[], bool] = field(default=_always)
    active: bool = True

    def service_count(self) -> int:
        """Number of reads or writes, matching the direction, done on the fd."""
        if self.direction is Direction.IN:
            return self.fd.read_count()
        return self.fd.write_count()


class PollResultType(enum.Enum):
    SUCCESS = "success"
    TIMEOUT = "timeout"
    EXIT = "exit"


@dataclass(frozen=True)
class PollResult:
    result: PollResultType
    exit_status: int = 0


def _as_result(value: ActionResult | ResultType) -> ActionResult:
    if isinstance(value, ActionResult):
        return value
    if isinstance(value, ResultType):
        return ActionResult(value)
    raise TypeError(f"callback returned {value!r}, not an ActionResult or ResultType")


class Poller:
    """Waits on a set of actions and runs the callbacks of those that are ready."""

    def __init__(self) -> None:
        self._actions: list[Action] = []

    def add_action(self, action: Action) -> None:
        self._actions.append(action)

    @staticmethod
    def _interest(action: Action) -> int:
        if not (action.active and action.when_interested()):
            return 0
        # Never poll for input on a descriptor that has reached end of file.
        if action.direction is Direction.IN and action.fd.eof():
            return 0
        return int(action.direction)

    def poll(self, timeout_ms: int) -> PollResult:
        """Wait up to timeout_ms (negative: forever) and dispatch ready callbacks."""
        interests = [self._interest(action) for action in self._actions]
        if not any(interests):
            return PollResult(PollResultType.EXIT)

        fds = [action.fd.fileno() for action in self._actions]
        masks: dict[int, int] = {}
        for fd, events in zip(fds, interests):
            if fd >= 0:
                masks[fd] = masks.get(fd, 0) | events

        waiter = select.poll()
        for fd, mask in masks.items():
            waiter.register(fd, mask)

        with _os_call("poll"):
            ready = dict(waiter.poll(timeout_ms))
        if not ready:
            return PollResult(PollResultType.TIMEOUT)

        for action, fd, events in zip(self._actions, fds, interests):
            revents = ready.get(fd, 0) & (events | _ERROR_EVENTS)
            if revents & _ERROR_EVENTS:
                return PollResult(PollResultType.EXIT)
            if not revents & events:
                continue

            count_before = action.service_count()
            result = _as_result(action.callback())
            if result.result is ResultType.EXIT:
                return PollResult(PollResultType.EXIT, result.exit_status)
            if result.result is ResultType.CANCEL:
                action.active = False
            if count_before == action.service_count():
                raise RuntimeError("Poller: busy wait detected: callback did not read/write fd")

        return PollResult(PollResultType.SUCCESS)