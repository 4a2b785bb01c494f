import pytest

from netshell.packet_queue import (
    DropHeadPacketQueue,
    DropTailPacketQueue,
    InfinitePacketQueue,
    QueuedPacket,
    get_arg,
)


def packet(contents: bytes, arrival: int = 0) -> QueuedPacket:
    return QueuedPacket(contents, arrival)


def drain(queue):
    out = []
    while not queue.empty():
        out.append(queue.dequeue().contents)
    return out


def test_get_arg_reads_value():
    assert get_arg("packets=100", "packets") == 100
    assert get_arg("bytes=3000, packets=10", "bytes") == 3000
    assert get_arg("bytes=3000, packets=10", "packets") == 10


def test_get_arg_missing_is_zero():
    assert get_arg("bytes=3000", "packets") == 0
    assert get_arg("", "bytes") == 0


@pytest.mark.parametrize("args", ["packets:5", "packets=", "packets=x"])
def test_get_arg_malformed(args):
    with pytest.raises(ValueError, match="could not parse queue arguments"):
        get_arg(args, "packets")


def test_dropping_queue_needs_a_limit():
    with pytest.raises(ValueError, match="byte or packet limit"):
        DropTailPacketQueue("")


def test_drop_tail_keeps_first_packets():
    queue = DropTailPacketQueue("packets=2")
    for contents in (b"a", b"b", b"c"):
        queue.enqueue(packet(contents))
    assert queue.size_packets() == 2
    assert drain(queue) == [b"a", b"b"]


def test_drop_tail_byte_limit():
    queue = DropTailPacketQueue("bytes=5")
    queue.enqueue(packet(b"abc"))
    queue.enqueue(packet(b"defg"))
    queue.enqueue(packet(b"hi"))
    assert queue.size_bytes() == 5
    assert drain(queue) == [b"abc", b"hi"]


def test_drop_head_keeps_last_packets():
    queue = DropHeadPacketQueue("packets=2")
    for contents in (b"a", b"b", b"c"):
        queue.enqueue(packet(contents))
    assert queue.size_packets() == 2
    assert drain(queue) == [b"b", b"c"]


def test_drop_head_byte_limit_drops_several():
    queue = DropHeadPacketQueue("bytes=4")
    queue.enqueue(packet(b"a"))
    queue.enqueue(packet(b"b"))
    queue.enqueue(packet(b"cdef"))
    assert drain(queue) == [b"cdef"]


def test_dropping_queue_good_with():
    queue = DropTailPacketQueue("bytes=10, packets=2")
    assert queue.good_with(10, 2)
    assert not queue.good_with(11, 1)
    assert not queue.good_with(1, 3)
    assert queue.good()


def test_sizes_track_contents():
    queue = DropTailPacketQueue("packets=10")
    queue.enqueue(packet(b"abc"))
    queue.enqueue(packet(b"de"))
    assert (queue.size_bytes(), queue.size_packets()) == (5, 2)
    queue.dequeue()
    assert (queue.size_bytes(), queue.size_packets()) == (2, 1)


def test_dropping_queue_str():
    assert str(DropTailPacketQueue("bytes=3000, packets=10")) == "droptail [bytes=3000, packets=10]"
    assert str(DropHeadPacketQueue("packets=5")) == "drophead [packets=5]"
    assert str(DropTailPacketQueue("bytes=7")) == "droptail [bytes=7]"


def test_dequeue_empty_raises():
    with pytest.raises(IndexError):
        DropTailPacketQueue("packets=1").dequeue()
    with pytest.raises(IndexError):
        InfinitePacketQueue().dequeue()


def test_infinite_queue_keeps_everything_in_order():
    queue = InfinitePacketQueue("")
    items = [bytes([i]) * (i + 1) for i in range(50)]
    for contents in items:
        queue.enqueue(packet(contents))
    assert queue.size_packets() == 50
    assert queue.size_bytes() == sum(len(c) for c in items)
    assert drain(queue) == items
    assert queue.size_bytes() == 0


def test_infinite_queue_rejects_args():
    with pytest.raises(ValueError, match="does not take arguments"):
        InfinitePacketQueue("packets=1")


def test_infinite_queue_str():
    assert str(InfinitePacketQueue()) == "infinite"