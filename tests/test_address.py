import pytest

from netshell.address import Address
from netshell.errors import TaggedError


def test_default_address_is_any():
    address = Address()
    assert address.ip() == "0.0.0.0"
    assert address.port() == 0
    assert address == Address("0.0.0.0", 0)


def test_ip_port_and_text():
    address = Address("127.0.0.1", 8080)
    assert address.ip_port() == ("127.0.0.1", 8080)
    assert address.text() == "127.0.0.1:8080"
    assert address.text("#") == "127.0.0.1#8080"
    assert str(address) == address.text()


def test_sockaddr_round_trip():
    address = Address("10.1.2.3", 4321)
    assert Address.from_sockaddr(address.to_sockaddr()) == address


def test_equality_and_hash():
    a = Address("192.168.1.1", 80)
    b = Address("192.168.1.1", 80)
    c = Address("192.168.1.1", 81)
    assert a == b
    assert hash(a) == hash(b)
    assert a != c
    assert len({a, b, c}) == 2


def test_ordering_is_by_port_then_ip():
    assert Address("10.0.0.2", 1) < Address("10.0.0.1", 2)
    assert Address("10.0.0.1", 5) < Address("10.0.0.2", 5)
    assert not Address("10.0.0.1", 5) < Address("10.0.0.1", 5)


def test_cgnat_address():
    address = Address.cgnat(7)
    assert address.ip() == "100.64.0.7"
    assert address.port() == 0


def test_resolve_numeric():
    address = Address.resolve("127.0.0.1", "80")
    assert address == Address("127.0.0.1", 80)


def test_invalid_ip_raises_tagged_error():
    with pytest.raises(TaggedError) as info:
        Address("not-an-ip", 80)
    assert str(info.value).startswith("getaddrinfo(not-an-ip:80, numeric): ")


def test_cgnat_out_of_range():
    with pytest.raises(TaggedError):
        Address.cgnat(300)


def test_port_out_of_range():
    with pytest.raises(ValueError):
        Address("127.0.0.1", 70000)