"""Process, privilege, environment and nameserver helpers."""

from __future__ import annotations

import os
import pwd
import socket
import sys
from typing import Sequence

from netshell.address import Address
from netshell.errors import TaggedError

NAMESERVER_PORT = 53
MAX_NAMESERVERS = 3
DEFAULT_RESOLV_CONF = "/etc/resolv.conf"
DEFAULT_SHELL = "/bin/sh"
SHELL_PREFIX_VARIABLE = "NETSHELL_SHELL_PREFIX"


def shell_path() -> str:
    """Return the current user's login shell."""
    try:
        entry = pwd.getpwuid(os.getuid())
    except KeyError as exc:
        raise TaggedError("getpwuid", str(exc)) from exc
    return entry.pw_shell or DEFAULT_SHELL


def _succeeds(call, value: int) -> bool:
    try:
        call(value)
    except OSError:
        return False
    return True


def _abort(message: str) -> None:
    sys.stderr.write(message + "\n")
    sys.stderr.flush()
    os._exit(1)


def drop_privileges() -> None:
    """Permanently give up the effective user and group ids."""
    real_gid, eff_gid = os.getgid(), os.getegid()
    real_uid, eff_uid = os.getuid(), os.geteuid()

    if real_gid != eff_gid:
        os.setregid(real_gid, real_gid)
    if real_uid != eff_uid:
        os.setreuid(real_uid, real_uid)

    if real_gid != eff_gid and (_succeeds(os.setegid, eff_gid) or os.getegid() != real_gid):
        _abort("BUG: dropping privileged gid failed")
    if real_uid != eff_uid and (_succeeds(os.seteuid, eff_uid) or os.geteuid() != real_uid):
        _abort("BUG: dropping privileged uid failed")


def check_requirements(argv: Sequence[str]) -> None:
    """Check the process is set up to run as an unprivileged setuid-root program."""
    if len(argv) <= 0:
        raise RuntimeError("missing argv[ 0 ]: argc <= 0")

    fd = os.open("/dev/null", os.O_RDONLY)
    os.close(fd)
    if fd <= 2:
        raise TaggedError("FileDescriptor", "fd <= 2")

    if os.geteuid() != 0:
        raise RuntimeError(f"{argv[0]}: needs to be installed setuid root")
    if os.getuid() == 0 or os.getgid() == 0:
        raise RuntimeError(f"{argv[0]}: please run as non-root")
    if os.environ:
        raise RuntimeError("BUG: environment not cleared in sensitive region")

    with open("/proc/sys/net/ipv4/ip_forward", encoding="ascii") as handle:
        if handle.read() != "1\n":
            raise RuntimeError(
                f'{argv[0]}: Please run "sudo sysctl -w net.ipv4.ip_forward=1" '
                "to enable IP forwarding"
            )


def assert_not_root() -> None:
    if os.geteuid() == 0 or os.getegid() == 0:
        raise RuntimeError("BUG: privileges not dropped in sensitive region")


def make_directory(directory: str) -> None:
    """Create a private directory; the path must end with "/"."""
    assert_not_root()
    if not directory:
        raise ValueError("make_directory: empty directory name")
    if not directory.endswith("/"):
        raise ValueError(f"make_directory: {directory} must end with /")
    os.mkdir(directory, 0o700)


def _is_ipv6(text: str) -> bool:
    try:
        socket.inet_pton(socket.AF_INET6, text)
    except (OSError, ValueError):
        return False
    return True


def _read_nameservers(resolv_conf: str) -> tuple[list[Address], int]:
    try:
        with open(resolv_conf, encoding="utf-8", errors="replace") as handle:
            lines = handle.read().splitlines()
    except OSError:
        lines = []

    found: list[Address] = []
    count = 0
    for line in lines:
        if count >= MAX_NAMESERVERS:
            break
        if not line.startswith("nameserver") or line[10:11] not in (" ", "\t"):
            continue
        fields = line[10:].split()
        if not fields:
            continue
        try:
            found.append(Address(fields[0], NAMESERVER_PORT))
        except TaggedError:
            if not _is_ipv6(fields[0]):
                continue
        count += 1

    if count == 0:
        return [Address("127.0.0.1", NAMESERVER_PORT)], 1
    return found, count


def all_nameservers(resolv_conf: str = DEFAULT_RESOLV_CONF) -> list[Address]:
    """Return the IPv4 nameservers configured in resolv.conf."""
    return _read_nameservers(resolv_conf)[0]


def first_nameserver(resolv_conf: str = DEFAULT_RESOLV_CONF) -> Address:
    """Return the first IPv4 nameserver configured in resolv.conf."""
    servers = all_nameservers(resolv_conf)
    if not servers:
        raise RuntimeError("no IPv4 nameserver configured")
    return servers[0]


def list_directory_contents(directory: str) -> list[str]:
    """Return the entries of a directory, each prefixed with the directory path."""
    assert_not_root()
    return [directory + name for name in os.listdir(directory)]


def prepend_shell_prefix(text: str) -> None:
    """Append text to the shell prompt prefix and make the prompt show it."""
    prefix = os.environ.get(SHELL_PREFIX_VARIABLE, "") + text
    os.environ[SHELL_PREFIX_VARIABLE] = prefix
    os.environ["PROMPT_COMMAND"] = f'PS1="${SHELL_PREFIX_VARIABLE}$PS1" PROMPT_COMMAND='


def join(command: Sequence[str]) -> str:
    """Join command words with single spaces."""
    if not command:
        raise ValueError("join: empty command")
    return " ".join(command)


def get_working_directory() -> str:
    return os.getcwd()


class TemporarilyUnprivileged:
    """Run a block with the effective ids set to the real ids."""

    def __init__(self) -> None:
        self._saved: tuple[int, int] | None = None

    def __enter__(self) -> TemporarilyUnprivileged:
        saved = (os.geteuid(), os.getegid())
        os.setegid(os.getgid())
        os.seteuid(os.getuid())
        assert_not_root()
        self._saved = saved
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if self._saved is None:
            return
        euid, egid = self._saved
        self._saved = None
        os.seteuid(euid)
        os.setegid(egid)