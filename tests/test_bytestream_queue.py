import os

import pytest

from netshell.bytestream_queue import ByteStreamQueue, PushResult
from netshell.file_descriptor import FileDescriptor


@pytest.fixture
def pipes():
    opened = []

    def make():
        read_fd, write_fd = os.pipe()
        pair = (FileDescriptor(read_fd), FileDescriptor(write_fd))
        opened.extend(pair)
        return pair

    yield make
    for fd in opened:
        fd.close()


def test_size_must_exceed_one():
    with pytest.raises(ValueError):
        ByteStreamQueue(1)


def test_new_queue_is_empty_with_room():
    queue = ByteStreamQueue(8)
    assert queue.available_to_pop() == 0
    assert queue.available_to_push() == 8 - 1
    assert queue.space_available()
    assert not queue.non_empty()


def test_round_trip(pipes):
    source_read, source_write = pipes()
    sink_read, sink_write = pipes()
    queue = ByteStreamQueue(64)

    source_write.write(b"hello world")
    assert queue.push(source_read) is PushResult.SUCCESS
    assert queue.available_to_pop() == len(b"hello world")

    queue.pop(sink_write)
    assert not queue.non_empty()
    assert sink_read.read() == b"hello world"


def test_push_reports_end_of_file(pipes):
    source_read, source_write = pipes()
    source_write.close()
    queue = ByteStreamQueue(16)
    assert queue.push(source_read) is PushResult.END_OF_FILE
    assert source_read.eof()
    assert not queue.non_empty()


def test_pop_from_empty_queue_raises(pipes):
    _, sink_write = pipes()
    with pytest.raises(RuntimeError):
        ByteStreamQueue(4).pop(sink_write)


def test_push_into_full_queue_raises(pipes):
    source_read, source_write = pipes()
    source_write.write(b"abcdef")
    queue = ByteStreamQueue(4)
    while queue.space_available():
        queue.push(source_read)
    assert queue.available_to_push() == 0
    with pytest.raises(RuntimeError):
        queue.push(source_read)


def test_wraparound_preserves_order(pipes):
    source_read, source_write = pipes()
    sink_read, sink_write = pipes()
    data = b"the quick brown fox jumps over the lazy dog"
    source_write.write(data)
    size = 5
    queue = ByteStreamQueue(size)

    received = b""
    while len(received) < len(data):
        if queue.space_available() and not source_read.eof():
            queue.push(source_read)
        assert queue.available_to_push() + queue.available_to_pop() == size - 1
        if queue.non_empty():
            queue.pop(sink_write)
            received += sink_read.read()
        assert queue.available_to_push() + queue.available_to_pop() == size - 1

    assert received == data
    assert not queue.non_empty()