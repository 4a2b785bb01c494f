"""A DNS forwarder that relays UDP and TCP queries to upstream servers."""

from __future__ import annotations

import threading

from netshell.address import Address
from netshell.bytestream_queue import ByteStreamQueue, PushResult
from netshell.errors import print_exception
from netshell.poller import Action, Direction, Poller, PollResultType, ResultType
from netshell.socket_io import TCPSocket, UDPSocket

BUFFER_SIZE = 1024 * 1024
REPLY_TIMEOUT_MS = 60000


def _start_detached(target, *args) -> None:
    threading.Thread(target=target, args=args, daemon=True).start()


class DNSProxy:
    """Relays DNS queries arriving on bound UDP and TCP listeners to target servers."""

    def __init__(
        self,
        udp_listener: UDPSocket,
        tcp_listener: TCPSocket,
        udp_target: Address,
        tcp_target: Address,
    ) -> None:
        if udp_listener.local_address() == Address():
            raise RuntimeError("DNSProxy internal error: udp_listener must be bound")
        if tcp_listener.local_address() == Address():
            raise RuntimeError("DNSProxy internal error: tcp_listener must be bound")

        self._udp_listener = udp_listener
        self._tcp_listener = tcp_listener
        self._udp_target = udp_target
        self._tcp_target = tcp_target
        tcp_listener.listen()

    @classmethod
    def bound(cls, listen_address: Address, udp_target: Address, tcp_target: Address) -> DNSProxy:
        """Create a proxy listening on new sockets bound to listen_address."""
        udp_listener = UDPSocket()
        tcp_listener = TCPSocket()
        try:
            udp_listener.bind(listen_address)
            tcp_listener.bind(listen_address)
            return cls(udp_listener, tcp_listener, udp_target, tcp_target)
        except BaseException:
            udp_listener.close()
            tcp_listener.close()
            raise

    @classmethod
    def maybe_proxy(
        cls, listen_address: Address, udp_target: Address, tcp_target: Address
    ) -> DNSProxy | None:
        """Like bound(), but return None if the listen address cannot be bound."""
        try:
            return cls.bound(listen_address, udp_target, tcp_target)
        except Exception as exc:
            if str(exc).startswith("bind:"):
                return None
            raise

    @property
    def udp_listener(self) -> UDPSocket:
        return self._udp_listener

    @property
    def tcp_listener(self) -> TCPSocket:
        return self._tcp_listener

    def handle_udp(self) -> None:
        """Receive one UDP query and answer it from a background thread."""
        request = self._udp_listener.recvfrom()
        _start_detached(self._relay_udp, request)

    def _relay_udp(self, request: tuple[Address, bytes]) -> None:
        source, payload = request
        try:
            with UDPSocket() as dns_server:
                dns_server.connect(self._udp_target)
                dns_server.write(payload)

                def forward_reply():
                    self._udp_listener.sendto(source, dns_server.read())
                    return ResultType.CONTINUE

                poller = Poller()
                poller.add_action(Action(dns_server, Direction.IN, forward_reply))
                poller.poll(REPLY_TIMEOUT_MS)
        except Exception as exc:
            print_exception(exc)

    def handle_tcp(self) -> None:
        """Accept one TCP connection and relay it from a background thread."""
        client = self._tcp_listener.accept()
        _start_detached(self._relay_tcp, client)

    def _relay_tcp(self, client: TCPSocket) -> None:
        try:
            with client, TCPSocket() as dns_server:
                dns_server.connect(self._tcp_target)
                from_client = ByteStreamQueue(BUFFER_SIZE)
                from_server = ByteStreamQueue(BUFFER_SIZE)

                def pusher(queue, fd):
                    def push():
                        if queue.push(fd) is PushResult.END_OF_FILE:
                            return ResultType.CANCEL
                        return ResultType.CONTINUE
                    return push

                def popper(queue, fd):
                    def pop():
                        queue.pop(fd)
                        return ResultType.CONTINUE
                    return pop

                poller = Poller()
                poller.add_action(Action(dns_server, Direction.IN,
                                         pusher(from_server, dns_server),
                                         from_server.space_available))
                poller.add_action(Action(client, Direction.IN,
                                         pusher(from_client, client),
                                         from_client.space_available))
                poller.add_action(Action(dns_server, Direction.OUT,
                                         popper(from_client, dns_server),
                                         from_client.non_empty))
                poller.add_action(Action(client, Direction.OUT,
                                         popper(from_server, client),
                                         from_server.non_empty))

                while poller.poll(REPLY_TIMEOUT_MS).result is not PollResultType.EXIT:
                    pass
        except Exception as exc:
            print_exception(exc)

    def register_handlers(self, poller: Poller) -> None:
        """Have poller hand incoming UDP and TCP queries to this proxy."""

        def on_udp():
            self.handle_udp()
            return ResultType.CONTINUE

        def on_tcp():
            self.handle_tcp()
            return ResultType.CONTINUE

        poller.add_action(Action(self._udp_listener, Direction.IN, on_udp))
        poller.add_action(Action(self._tcp_listener, Direction.IN, on_tcp))

    def close(self) -> None:
        self._udp_listener.close()
        self._tcp_listener.close()

    def __enter__(self) -> DNSProxy:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()