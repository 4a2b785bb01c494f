"""UDP and TCP sockets over IPv4."""

from __future__ import annotations

import socket
import struct

from netshell.address import Address
from netshell.file_descriptor import FileDescriptor, _os_call

RECEIVE_MTU = 65536
SO_ORIGINAL_DST = 80
_SO_TIMESTAMPNS = getattr(socket, "SO_TIMESTAMPNS", 35)
_SOCKADDR_IN_SIZE = 16


class Socket(FileDescriptor):
    """A network socket owned through its file descriptor."""

    def __init__(self, family: int, kind: int, fd: int | None = None) -> None:
        if fd is None:
            with _os_call("socket"):
                sock = socket.socket(family, kind)
        else:
            with _os_call("getsockopt"):
                sock = socket.socket(fileno=fd)
            if sock.family != family:
                sock.close()
                raise RuntimeError("socket domain mismatch")
            if sock.type != kind:
                sock.close()
                raise RuntimeError("socket type mismatch")
        super().__init__(sock.fileno())
        self._sock: socket.socket | None = sock

    def _socket(self) -> socket.socket:
        if self._sock is None:
            raise ValueError("I/O on closed socket")
        return self._sock

    def bind(self, address: Address) -> None:
        """Bind to a local address."""
        with _os_call("bind"):
            self._socket().bind(address.to_sockaddr())

    def connect(self, address: Address) -> None:
        """Connect to a peer address."""
        with _os_call("connect"):
            self._socket().connect(address.to_sockaddr())

    def local_address(self) -> Address:
        with _os_call("getsockname"):
            name = self._socket().getsockname()
        return Address.from_sockaddr(name)

    def peer_address(self) -> Address:
        with _os_call("getpeername"):
            name = self._socket().getpeername()
        return Address.from_sockaddr(name)

    def set_reuseaddr(self) -> None:
        """Allow the local address to be reused sooner."""
        with _os_call("setsockopt"):
            self._socket().setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)

    def close(self) -> None:
        sock = getattr(self, "_sock", None)
        if sock is not None:
            self._sock = None
            sock.detach()
        super().close()


class UDPSocket(Socket):
    """A UDP datagram socket."""

    def __init__(self) -> None:
        super().__init__(socket.AF_INET, socket.SOCK_DGRAM)

    def recvfrom(self) -> tuple[Address, bytes]:
        """Receive one datagram and the address it came from."""
        with _os_call("recvfrom"):
            data, _, flags, source = self._socket().recvmsg(RECEIVE_MTU)
        if flags & socket.MSG_TRUNC:
            raise RuntimeError("recvfrom (oversized datagram)")
        self.register_read()
        return Address.from_sockaddr(source), data

    def sendto(self, destination: Address, payload: bytes) -> None:
        """Send a datagram to the given address."""
        with _os_call("sendto"):
            sent = self._socket().sendto(payload, destination.to_sockaddr())
        self.register_write()
        if sent != len(payload):
            raise RuntimeError("datagram payload too big for sendto()")

    def send(self, payload: bytes) -> None:
        """Send a datagram to the connected address."""
        with _os_call("send"):
            sent = self._socket().send(payload)
        self.register_write()
        if sent != len(payload):
            raise RuntimeError("datagram payload too big for send()")

    def set_timestamps(self) -> None:
        """Turn on timestamps on receipt."""
        with _os_call("setsockopt"):
            self._socket().setsockopt(socket.SOL_SOCKET, _SO_TIMESTAMPNS, 1)


class TCPSocket(Socket):
    """A TCP stream socket."""

    def __init__(self) -> None:
        super().__init__(socket.AF_INET, socket.SOCK_STREAM)

    @classmethod
    def _adopt(cls, fd: int) -> TCPSocket:
        adopted = cls.__new__(cls)
        Socket.__init__(adopted, socket.AF_INET, socket.SOCK_STREAM, fd)
        return adopted

    def listen(self, backlog: int = 16) -> None:
        """Mark the socket as accepting connections."""
        with _os_call("listen"):
            self._socket().listen(backlog)

    def accept(self) -> TCPSocket:
        """Accept one incoming connection."""
        self.register_read()
        with _os_call("accept"):
            connection, _ = self._socket().accept()
        return TCPSocket._adopt(connection.detach())

    def original_dest(self) -> Address:
        """Return the destination a redirected connection was originally sent to."""
        with _os_call("getsockopt"):
            raw = self._socket().getsockopt(socket.SOL_IP, SO_ORIGINAL_DST, _SOCKADDR_IN_SIZE)
        (port,) = struct.unpack("!H", raw[2:4])
        return Address(socket.inet_ntoa(raw[4:8]), port)