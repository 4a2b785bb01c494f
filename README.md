# netshell

Building blocks for emulating network links in Python on Linux: IPv4
addresses, socket wrappers that count their reads and writes, a
callback-driven poller, a DNS forwarding proxy and a family of packet
queues with active queue management.

## Installation

```
pip install netshell
```

To run the test suite:

```
pip install "netshell[test]"
pytest
```

## Packet queues

Every queue holds `QueuedPacket` objects (`contents` as bytes plus
`arrival_time` in milliseconds). The limited queues are configured from an
argument string such as `"packets=100"` or `"bytes=30000, packets=20"`; at
least one of the two limits is required, otherwise `ValueError` is raised.

```python
from netshell.packet_queue import QueuedPacket, DropTailPacketQueue

queue = DropTailPacketQueue("packets=2")
for n in range(3):
    queue.enqueue(QueuedPacket(b"x" * 100, n))

print(queue.size_packets())   # 2 -- the third packet was dropped at the tail
print(queue.size_bytes())     # 200
print(str(queue))             # droptail [packets=2]
```

In `netshell.packet_queue`:

* `DropTailPacketQueue` refuses packets that would exceed a limit.
* `DropHeadPacketQueue` always accepts and then drops from the head until
  the limits hold.
* `InfinitePacketQueue` takes no arguments (a non-empty string is a
  `ValueError`) and never drops.
* `get_arg(args, name)` returns the number following `name=` in an argument
  string, or 0 when the name is absent.

Active queue management:

* `netshell.codel.CoDelPacketQueue` additionally needs `target` and
  `interval` (milliseconds) and makes its drop decisions on dequeue; the
  last packet in the queue is never dropped.
* `netshell.pie.PIEPacketQueue` additionally needs `qdelay_ref` and
  `max_burst` and drops arriving packets early with a probability it
  updates every 30 ms from the measured dequeue rate.

Both accept an optional `clock` (a callable returning milliseconds, by
default `netshell.timestamp.timestamp`), and PIE an optional `rng` (any
object with a `random()` method), so their behaviour can be driven
deterministically in tests or simulations.

```python
from netshell.codel import CoDelPacketQueue
from netshell.packet_queue import QueuedPacket

now = 0
queue = CoDelPacketQueue("bytes=100000, target=5, interval=100", clock=lambda: now)
queue.enqueue(QueuedPacket(b"x" * 1500, 0))
print(queue.dequeue().arrival_time)   # 0
```

## Addresses and sockets

```python
from netshell.address import Address
from netshell.socket_io import UDPSocket

addr = Address("127.0.0.1", 5353)
print(addr.text())            # 127.0.0.1:5353
print(Address.cgnat(7).ip())  # 100.64.0.7

with UDPSocket() as sock:
    sock.bind(Address("127.0.0.1", 0))
    print(sock.local_address().port())
```

`Address` takes a numeric IPv4 address and port; `Address.resolve(hostname,
service)` looks names up. Failures raise `netshell.errors.TaggedError`,
whose message names the attempted operation.

`netshell.socket_io` has `UDPSocket` (`recvfrom`, `sendto`, `send`) and
`TCPSocket` (`listen`, `accept`, and `original_dest` for connections
redirected by the kernel). All of them are `netshell.file_descriptor.FileDescriptor`
objects: they count reads and writes, remember end of file, and close as
context managers. `netshell.socketpair.UnixDomainSocket.make_pair()` returns
a connected pair that can pass file descriptors with `send_fd` and `recv_fd`.

## Polling

`netshell.poller.Poller` runs callbacks when file descriptors are ready.
Each `Action` names a descriptor, a `Direction` (`IN` or `OUT`), a callback
returning a `ResultType` or an `ActionResult`, and an optional
`when_interested` predicate. `poll(timeout_ms)` returns a `PollResult` whose
type is `SUCCESS`, `TIMEOUT` or `EXIT`; it exits when no action is
interested or a descriptor reports an error. A callback that neither reads
nor writes its descriptor raises `RuntimeError` as a busy wait.

`netshell.bytestream_queue.ByteStreamQueue` is a fixed-size ring buffer
that carries a byte stream from one descriptor to another.

## DNS proxy

`netshell.dns_proxy.DNSProxy` relays queries arriving on a UDP and a TCP
listener to upstream servers, each query in a background thread:

```python
from netshell.address import Address
from netshell.dns_proxy import DNSProxy
from netshell.poller import Poller

upstream = Address("127.0.0.1", 53)
proxy = DNSProxy.bound(Address("127.0.0.1", 0), upstream, upstream)
poller = Poller()
proxy.register_handlers(poller)
# while poller.poll(-1) ...: serve
```

`DNSProxy.maybe_proxy` returns `None` instead of raising when the listen
address cannot be bound.

## Helpers

* `netshell.ezio.parse_int` / `parse_float` — strict parsing of a whole
  string as a number.
* `netshell.timestamp.timestamp()` — milliseconds since the first call.
* `netshell.interfaces.two_unassigned_addresses()` — two free 100.64.0.x
  addresses not used by local interfaces or as destinations in
  `/proc/net/route`; `parse_route_table` reads that table's text.
* `netshell.temp_file.UniqueFile` / `TempFile` — a uniquely named file;
  a `TempFile` is removed when closed.
* `netshell.util` — privilege handling (`drop_privileges`,
  `TemporarilyUnprivileged`, `check_requirements`), nameservers from
  `/etc/resolv.conf`, directory listing, the shell prompt prefix.
* `netshell.errors.print_exception` — report an error by type and message.

## What it does not do

netshell is a library only: it has no command to run. It does not create
network namespaces, TUN or virtual Ethernet devices, or NAT rules; it does
not start shells, child processes or a caching nameserver; and it does not
record or replay HTTP traffic. The packet queues are plain data structures
and are not attached to any network interface.