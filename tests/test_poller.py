import os

import pytest

from netshell.file_descriptor import FileDescriptor
from netshell.poller import (
    Action,
    ActionResult,
    Direction,
    Poller,
    PollResult,
    PollResultType,
    ResultType,
)


@pytest.fixture
def pipe():
    read_fd, write_fd = os.pipe()
    reader, writer = FileDescriptor(read_fd), FileDescriptor(write_fd)
    yield reader, writer
    reader.close()
    writer.close()


def test_no_interested_actions_means_exit(pipe):
    reader, _ = pipe
    poller = Poller()
    poller.add_action(Action(reader, Direction.IN, lambda: ResultType.CONTINUE, lambda: False))
    assert poller.poll(0) == PollResult(PollResultType.EXIT)


def test_empty_poller_exits():
    assert Poller().poll(0).result is PollResultType.EXIT


def test_readable_fd_runs_callback(pipe):
    reader, writer = pipe
    received = []

    def on_read():
        received.append(reader.read())
        return ResultType.CONTINUE

    poller = Poller()
    poller.add_action(Action(reader, Direction.IN, on_read))
    writer.write(b"payload")
    assert poller.poll(1000) == PollResult(PollResultType.SUCCESS)
    assert received == [b"payload"]


def test_idle_fd_times_out(pipe):
    reader, _ = pipe
    poller = Poller()
    poller.add_action(Action(reader, Direction.IN, lambda: ResultType.CONTINUE))
    assert poller.poll(0).result is PollResultType.TIMEOUT


def test_callback_exit_status_is_reported(pipe):
    _, writer = pipe
    poller = Poller()
    poller.add_action(Action(writer, Direction.OUT, lambda: ActionResult(ResultType.EXIT, 7)))
    assert poller.poll(1000) == PollResult(PollResultType.EXIT, 7)


def test_callback_without_io_is_busy_wait(pipe):
    _, writer = pipe
    poller = Poller()
    poller.add_action(Action(writer, Direction.OUT, lambda: ResultType.CONTINUE))
    with pytest.raises(RuntimeError, match="busy wait"):
        poller.poll(1000)


def test_cancel_deactivates_action(pipe):
    _, writer = pipe

    def on_write():
        writer.write(b"x")
        return ResultType.CANCEL

    action = Action(writer, Direction.OUT, on_write)
    poller = Poller()
    poller.add_action(action)
    assert poller.poll(1000).result is PollResultType.SUCCESS
    assert action.active is False
    assert poller.poll(0).result is PollResultType.EXIT


def test_input_at_eof_is_not_polled(pipe):
    reader, writer = pipe
    writer.write(b"last")
    writer.close()
    reader.read()
    reader.read()
    assert reader.eof() is True
    poller = Poller()
    poller.add_action(Action(reader, Direction.IN, lambda: ResultType.CONTINUE))
    assert poller.poll(0).result is PollResultType.EXIT


def test_hangup_means_exit(pipe):
    reader, writer = pipe
    writer.close()
    calls = []
    poller = Poller()
    poller.add_action(Action(reader, Direction.IN, lambda: calls.append(1) or ResultType.CONTINUE))
    assert poller.poll(1000).result is PollResultType.EXIT
    assert calls == []


def test_service_count_follows_direction(pipe):
    reader, writer = pipe
    writer.write(b"abc")
    reader.read()
    assert Action(reader, Direction.IN, lambda: ResultType.CONTINUE).service_count() == 1
    assert Action(reader, Direction.OUT, lambda: ResultType.CONTINUE).service_count() == 0


def test_bad_callback_return_is_type_error(pipe):
    _, writer = pipe
    poller = Poller()
    poller.add_action(Action(writer, Direction.OUT, lambda: None))
    with pytest.raises(TypeError):
        poller.poll(1000)