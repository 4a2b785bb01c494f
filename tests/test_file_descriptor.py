import os

import pytest

from netshell.errors import TaggedError
from netshell.file_descriptor import FileDescriptor


@pytest.fixture
def pipe():
    read_fd, write_fd = os.pipe()
    reader, writer = FileDescriptor(read_fd), FileDescriptor(write_fd)
    yield reader, writer
    reader.close()
    writer.close()


def test_low_descriptor_numbers_are_rejected():
    with pytest.raises(TaggedError) as info:
        FileDescriptor(2)
    assert info.value.attempt == "FileDescriptor"


def test_descriptor_is_not_inheritable(pipe):
    reader, writer = pipe
    assert os.get_inheritable(reader.fileno()) is False
    assert os.get_inheritable(writer.fileno()) is False


def test_write_then_read_round_trip(pipe):
    reader, writer = pipe
    assert writer.write(b"hello world") == len(b"hello world")
    assert reader.read() == b"hello world"
    assert writer.write_count() == 1
    assert reader.read_count() == 1
    assert reader.eof() is False


def test_string_is_written_as_bytes(pipe):
    reader, writer = pipe
    writer.write("text")
    assert reader.read() == b"text"


def test_read_respects_limit(pipe):
    reader, writer = pipe
    writer.write(b"abcdefghij")
    assert reader.read(4) == b"abcd"
    assert reader.read() == b"efghij"
    assert reader.read_count() == 2


def test_empty_read_sets_eof(pipe):
    reader, writer = pipe
    writer.close()
    assert reader.read() == b""
    assert reader.eof() is True
    assert reader.read_count() == 1


def test_empty_write_is_an_error(pipe):
    _, writer = pipe
    with pytest.raises(ValueError, match="nothing to write"):
        writer.write(b"")
    assert writer.write_count() == 0


def test_partial_write_mode_returns_count(pipe):
    reader, writer = pipe
    written = writer.write(b"xyz", write_all=False)
    assert written == 3
    assert reader.read() == b"xyz"


def test_close_releases_descriptor():
    read_fd, write_fd = os.pipe()
    os.close(write_fd)
    with FileDescriptor(read_fd) as fd:
        assert fd.fileno() == read_fd
    assert fd.fileno() == -1
    with pytest.raises(OSError):
        os.fstat(read_fd)


def test_io_after_close_is_an_error(pipe):
    reader, _ = pipe
    reader.close()
    with pytest.raises(ValueError):
        reader.read()


def test_write_to_broken_pipe_is_tagged(pipe):
    reader, writer = pipe
    reader.close()
    with pytest.raises((TaggedError, BrokenPipeError)) as info:
        writer.write(b"data")
    if isinstance(info.value, TaggedError):
        assert info.value.attempt == "write"