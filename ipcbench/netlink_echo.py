"""Netlink echo server and the client that times round trips through it."""

from __future__ import annotations

import argparse
import os
import socket
import sys
from typing import TextIO

from ipcbench.netlink import (
    NETLINK_ROUTE,
    NLMSG_HDRLEN,
    build_message,
    message_text,
    nlmsg_space,
    open_netlink_socket,
    parse_message,
)
from ipcbench.report import LatencyReport, Stopwatch

BUFFER_SIZE = 1024
NUM_MESSAGES = 10000
DEFAULT_MESSAGE = "Test message"
KERNEL_ADDRESS = (0, 0)


def _check_buffer_size(buffer_size: int) -> None:
    if buffer_size < 1:
        raise ValueError(f"buffer size must be positive, got {buffer_size}")


def _reply_text(data: bytes) -> str:
    try:
        return parse_message(data).text
    except ValueError:
        return message_text(data[NLMSG_HDRLEN:])


def _send(sock: socket.socket, data: bytes, address: object) -> None:
    # An empty address means the socket is already connected to its peer.
    if address:
        sock.sendto(data, address)
    else:
        sock.send(data)


def echo_loop(
    sock: socket.socket,
    buffer_size: int = BUFFER_SIZE,
    out: TextIO | None = None,
    limit: int | None = None,
) -> int:
    """Echo each message back to its sender; ``limit`` caps receive attempts.

    Returns the number of messages echoed.
    """
    _check_buffer_size(buffer_size)
    out = out or sys.stdout
    attempts = echoed = 0
    while limit is None or attempts < limit:
        attempts += 1
        print("Waiting for message...", file=out)
        try:
            data, address = sock.recvfrom(nlmsg_space(buffer_size))
            message = parse_message(data)
        except (OSError, ValueError) as exc:
            print(f"recvmsg: {exc}", file=sys.stderr)
            continue
        print(f"Received message: {message.text}", file=out)
        try:
            _send(sock, data, address)
        except OSError as exc:
            print(f"sendmsg: {exc}", file=sys.stderr)
            continue
        echoed += 1
    return echoed


def run_server(
    protocol: int = NETLINK_ROUTE,
    buffer_size: int = BUFFER_SIZE,
    out: TextIO | None = None,
    limit: int | None = None,
) -> int:
    """Echo on a datagram netlink socket with a kernel-assigned port."""
    _check_buffer_size(buffer_size)
    out = out or sys.stdout
    with open_netlink_socket(protocol, socket.SOCK_DGRAM, pid=0) as sock:
        print("Netlink server started...", file=out)
        return echo_loop(sock, buffer_size, out, limit)


def _exchange(
    sock: socket.socket,
    count: int,
    frame: bytes,
    destination: tuple[int, int] | None,
    buffer_size: int,
    out: TextIO,
) -> LatencyReport:
    capacity = max(nlmsg_space(buffer_size), len(frame))
    with Stopwatch() as watch:
        for number in range(1, count + 1):
            print(f"Sending message {number}...", file=out)
            _send(sock, frame, destination)
            reply = sock.recv(capacity)
            print(f"Received response {number}: {_reply_text(reply)}", file=out)
    return LatencyReport.from_seconds(count, watch.elapsed)


def run_client(
    count: int = NUM_MESSAGES,
    message: str = DEFAULT_MESSAGE,
    protocol: int = NETLINK_ROUTE,
    buffer_size: int = BUFFER_SIZE,
    out: TextIO | None = None,
) -> LatencyReport:
    """Send ``count`` messages to the kernel address and time the replies."""
    if count < 1:
        raise ValueError(f"message count must be positive, got {count}")
    _check_buffer_size(buffer_size)
    pid = os.getpid()
    frame = build_message(message, pid, nlmsg_space(buffer_size))
    with open_netlink_socket(protocol, socket.SOCK_DGRAM, pid=pid) as sock:
        return _exchange(sock, count, frame, KERNEL_ADDRESS, buffer_size, out or sys.stdout)


def _parser(description: str, client: bool) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description=description)
    parser.add_argument("--protocol", type=int, default=NETLINK_ROUTE)
    parser.add_argument("--buffer-size", type=int, default=BUFFER_SIZE)
    if client:
        parser.add_argument("--count", type=int, default=NUM_MESSAGES)
        parser.add_argument("--message", default=DEFAULT_MESSAGE)
    return parser


def server_main(argv: list[str] | None = None) -> int:
    """Run the netlink echo server until interrupted."""
    args = _parser("Netlink echo server", client=False).parse_args(argv)
    try:
        run_server(args.protocol, args.buffer_size)
    except KeyboardInterrupt:
        return 0
    except (OSError, ValueError) as exc:
        print(f"server: {exc}", file=sys.stderr)
        return 1
    return 0


def client_main(argv: list[str] | None = None) -> int:
    """Run the netlink timing client and print the latency summary."""
    args = _parser("Netlink latency client", client=True).parse_args(argv)
    try:
        report = run_client(args.count, args.message, args.protocol, args.buffer_size)
    except (OSError, ValueError) as exc:
        print(f"client: {exc}", file=sys.stderr)
        return 1
    print("\n".join(report.lines()))
    return 0