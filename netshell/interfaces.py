"""Finding IPv4 addresses not yet used by local interfaces or routes."""

from __future__ import annotations

import socket
import sys

import psutil

from netshell.address import Address
from netshell.ezio import parse_int
from netshell.file_descriptor import _os_call

ROUTE_TABLE = "/proc/net/route"


def _route_destination(line: str) -> Address:
    start = line.find("\t")
    end = line.find("\t", start + 1) if start != -1 else -1
    if start == -1 or end == -1:
        raise RuntimeError("/proc/net/route line: unknown format")

    destination = line[start + 1:end]
    if len(destination) != 8:
        raise RuntimeError("/proc/net/route destination address: unknown format")

    # The kernel prints the in-memory (network order) word as a host-order integer.
    value = parse_int(destination, 16) & 0xFFFFFFFF
    return Address(socket.inet_ntoa(value.to_bytes(4, sys.byteorder)), 0)


def parse_route_table(text: str) -> list[Address]:
    """Return the destination addresses listed in a kernel route table."""
    if not text:
        # With no routes there is not even a header line.
        return []

    lines = text.split("\n")
    if lines[-1] == "":
        lines.pop()
    header, *rows = lines
    if not header.startswith("Iface"):
        raise RuntimeError("/proc/net/route: unknown format")
    return [_route_destination(row) for row in rows]


class Interfaces:
    """The IPv4 addresses in use by interfaces and as route destinations."""

    def __init__(self, route_table_path: str = ROUTE_TABLE) -> None:
        self._addresses: list[Address] = [
            Address(entry.address, 0)
            for entries in psutil.net_if_addrs().values()
            for entry in entries
            if entry.family == socket.AF_INET
        ]

        with _os_call(f"open {route_table_path}"):
            with open(route_table_path, encoding="ascii", errors="replace") as handle:
                text = handle.read()
        self._addresses.extend(parse_route_table(text))

    def add_address(self, addr: Address) -> None:
        self._addresses.append(addr)

    def address_in_use(self, addr: Address) -> bool:
        return any(addr.ip() == used.ip() for used in self._addresses)

    def first_unassigned_address(self, last_octet: int) -> tuple[Address, int]:
        """Return the first free 100.64.0.x address with x >= last_octet, and x."""
        for octet in range(last_octet, 256):
            candidate = Address.cgnat(octet)
            if not self.address_in_use(candidate):
                return candidate, octet
        raise RuntimeError("Interfaces: could not find free interface address")


def two_unassigned_addresses(avoid: Address | None = None) -> tuple[Address, Address]:
    """Return two distinct free carrier-grade NAT addresses, neither equal to avoid."""
    interfaces = Interfaces()
    interfaces.add_address(Address() if avoid is None else avoid)

    first, octet = interfaces.first_unassigned_address(1)
    second, _ = interfaces.first_unassigned_address(octet + 1)
    return first, second