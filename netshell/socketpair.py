"""Connected pairs of Unix datagram sockets that can pass file descriptors."""

from __future__ import annotations

import array
import socket

from netshell.file_descriptor import FileDescriptor, _os_call

_INT_SIZE = array.array("i").itemsize


class UnixDomainSocket(FileDescriptor):
    """One end of a Unix datagram socket pair."""

    def __init__(self, fd: int) -> None:
        super().__init__(fd)
        self._sock: socket.socket | None = socket.socket(fileno=fd)

    @staticmethod
    def make_pair() -> tuple[UnixDomainSocket, UnixDomainSocket]:
        """Create two connected sockets."""
        with _os_call("socketpair"):
            first, second = socket.socketpair(socket.AF_UNIX, socket.SOCK_DGRAM)
        return UnixDomainSocket(first.detach()), UnixDomainSocket(second.detach())

    def _socket(self) -> socket.socket:
        if self._sock is None:
            raise ValueError("I/O on closed socket")
        return self._sock

    def send_fd(self, fd: FileDescriptor) -> None:
        """Pass a file descriptor to the other end."""
        rights = array.array("i", [fd.fileno()])
        with _os_call("sendmsg"):
            sent = self._socket().sendmsg([], [(socket.SOL_SOCKET, socket.SCM_RIGHTS, rights)])
        if sent != 0:
            raise RuntimeError("send_fd: sendmsg unexpectedly sent data")
        self.register_write()

    def recv_fd(self) -> FileDescriptor:
        """Receive a file descriptor passed from the other end."""
        with _os_call("recvmsg"):
            data, ancillary, flags, _ = self._socket().recvmsg(0, socket.CMSG_SPACE(_INT_SIZE))
        if data:
            raise RuntimeError("recv_fd: recvmsg unexpectedly received data")
        if flags & socket.MSG_CTRUNC:
            raise RuntimeError("recvmsg: control data was truncated")
        if not ancillary:
            raise RuntimeError("recvmsg: unexpected control message")
        level, kind, payload = ancillary[0]
        if level != socket.SOL_SOCKET or kind != socket.SCM_RIGHTS:
            raise RuntimeError("recvmsg: unexpected control message")
        if len(payload) != _INT_SIZE:
            raise RuntimeError("recvmsg: unexpected control message length")

        self.register_read()
        received = array.array("i")
        received.frombytes(payload)
        return FileDescriptor(received[0])

    def close(self) -> None:
        sock = getattr(self, "_sock", None)
        if sock is not None:
            self._sock = None
            sock.detach()
        super().close()