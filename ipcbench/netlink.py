"""Netlink message framing and socket setup."""

from __future__ import annotations

import errno
import os
import socket
import struct
from dataclasses import dataclass

NETLINK_ROUTE = 0
NETLINK_USERSOCK = 2
NLMSG_ALIGNTO = 4

_HEADER = struct.Struct("=IHHII")


def nlmsg_align(length: int) -> int:
    """Round ``length`` up to the netlink alignment boundary."""
    if length < 0:
        raise ValueError(f"length cannot be negative, got {length}")
    return (length + NLMSG_ALIGNTO - 1) & ~(NLMSG_ALIGNTO - 1)


NLMSG_HDRLEN = nlmsg_align(_HEADER.size)


def nlmsg_space(payload_length: int) -> int:
    """Total aligned size of a message carrying ``payload_length`` bytes."""
    return nlmsg_align(payload_length + NLMSG_HDRLEN)


@dataclass(frozen=True)
class NetlinkHeader:
    """The fixed header that starts every netlink message."""

    length: int
    msg_type: int = 0
    flags: int = 0
    seq: int = 0
    pid: int = 0

    def pack(self) -> bytes:
        return _HEADER.pack(self.length, self.msg_type, self.flags, self.seq, self.pid)

    @classmethod
    def unpack(cls, data: bytes) -> NetlinkHeader:
        if len(data) < _HEADER.size:
            raise ValueError(f"netlink header needs {_HEADER.size} bytes, got {len(data)}")
        return cls(*_HEADER.unpack_from(data))


@dataclass(frozen=True)
class NetlinkMessage:
    """A netlink header plus its payload bytes."""

    header: NetlinkHeader
    payload: bytes

    @property
    def text(self) -> str:
        return message_text(self.payload)

    def to_bytes(self) -> bytes:
        body = self.header.pack().ljust(NLMSG_HDRLEN, b"\0") + self.payload
        return body.ljust(self.header.length, b"\0")


def build_message(payload: bytes | str, pid: int, total_length: int | None = None) -> bytes:
    """Frame ``payload`` zero-padded to ``total_length``; text is NUL-terminated."""
    if isinstance(payload, str):
        payload = payload.encode("utf-8") + b"\0"
    if total_length is None:
        total_length = nlmsg_space(len(payload))
    if total_length < NLMSG_HDRLEN + len(payload):
        raise ValueError(
            f"payload of {len(payload)} bytes does not fit in a {total_length}-byte message"
        )
    return NetlinkMessage(NetlinkHeader(total_length, pid=pid), bytes(payload)).to_bytes()


def parse_message(data: bytes) -> NetlinkMessage:
    """Split raw bytes into header and payload, checking the declared length."""
    header = NetlinkHeader.unpack(data)
    if not NLMSG_HDRLEN <= header.length <= len(data):
        raise ValueError(
            f"declared message length {header.length} does not fit {len(data)} bytes received"
        )
    return NetlinkMessage(header, bytes(data[NLMSG_HDRLEN:header.length]))


def message_text(payload: bytes) -> str:
    """The payload read as a NUL-terminated string."""
    return payload.split(b"\0", 1)[0].decode("utf-8", errors="replace")


def open_netlink_socket(
    protocol: int = NETLINK_ROUTE,
    sock_type: int = socket.SOCK_DGRAM,
    pid: int | None = None,
) -> socket.socket:
    """Create a netlink socket bound to ``pid`` (this process by default)."""
    family = getattr(socket, "AF_NETLINK", None)
    if family is None:
        raise OSError(errno.EAFNOSUPPORT, "netlink sockets are not available")
    sock = socket.socket(family, sock_type, protocol)
    try:
        sock.bind((os.getpid() if pid is None else pid, 0))
    except OSError:
        sock.close()
        raise
    return sock