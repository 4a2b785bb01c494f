"""IPv4 socket addresses."""

from __future__ import annotations

import socket

from netshell.errors import TaggedError

_NUMERIC = socket.AI_NUMERICHOST | socket.AI_NUMERICSERV


def _lookup(node: str, service: str, flags: int) -> tuple[str, int]:
    try:
        results = socket.getaddrinfo(node, service, socket.AF_INET, 0, 0, flags)
    except socket.gaierror as exc:
        raise TaggedError(
            f"getaddrinfo({node}:{service}, numeric)", exc.strerror or str(exc), exc.errno
        ) from exc
    if not results:
        raise RuntimeError("getaddrinfo returned successfully but with no results")
    host, port = results[0][4][:2]
    return host, port


class Address:
    """An IPv4 address and port."""

    __slots__ = ("_ip", "_port", "_packed")

    def __init__(self, ip: str = "0", port: int = 0) -> None:
        if not 0 <= port <= 0xFFFF:
            raise ValueError(f"port out of range: {port}")
        host, resolved = _lookup(ip, str(port), _NUMERIC)
        self._assign(host, resolved)

    def _assign(self, host: str, port: int) -> None:
        self._ip = host
        self._port = port
        self._packed = socket.inet_aton(host)

    @classmethod
    def resolve(cls, hostname: str, service: str) -> Address:
        """Look up a host name and service name."""
        host, port = _lookup(hostname, service, 0)
        address = cls.__new__(cls)
        address._assign(host, port)
        return address

    @classmethod
    def from_sockaddr(cls, sockaddr: tuple) -> Address:
        """Build an address from a (host, port) socket address tuple."""
        host, port = sockaddr[:2]
        return cls(host, port)

    def ip_port(self) -> tuple[str, int]:
        return self._ip, self._port

    def ip(self) -> str:
        return self._ip

    def port(self) -> int:
        return self._port

    def text(self, port_separator: str = ":") -> str:
        """Render as ip, separator, port."""
        return f"{self._ip}{port_separator}{self._port}"

    def to_sockaddr(self) -> tuple[str, int]:
        return self._ip, self._port

    @staticmethod
    def cgnat(last_octet: int) -> Address:
        """Return the carrier-grade NAT address 100.64.0.<last_octet>."""
        return Address(f"100.64.0.{last_octet}", 0)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Address):
            return NotImplemented
        return (self._packed, self._port) == (other._packed, other._port)

    def __lt__(self, other: Address) -> bool:
        # Raw socket address order: port (network byte order) before the address.
        if not isinstance(other, Address):
            return NotImplemented
        return (self._port, self._packed) < (other._port, other._packed)

    def __hash__(self) -> int:
        return hash((self._packed, self._port))

    def __repr__(self) -> str:
        return f"Address({self._ip!r}, {self._port})"

    def __str__(self) -> str:
        return self.text()