"""One netlink echo server thread and several client threads, tracking loss."""

from __future__ import annotations

import argparse
import contextlib
import os
import socket
import sys
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import TextIO

from ipcbench.netlink import (
    NETLINK_USERSOCK,
    NLMSG_HDRLEN,
    build_message,
    message_text,
    nlmsg_space,
    open_netlink_socket,
    parse_message,
)

MAX_PAYLOAD = 4096
NUM_CLIENTS = 3
NUM_MESSAGES = 100
SEND_INTERVAL = 0.01
STARTUP_DELAY = 1.0
POLL_INTERVAL = 0.1
REPLY_TIMEOUT = 1.0


@dataclass
class LossCounter:
    """Counts of messages received and lost by one endpoint."""

    received: int = 0
    lost: int = 0

    def record_received(self) -> None:
        self.received += 1

    def record_lost(self) -> None:
        self.lost += 1

    def loss_rate(self) -> float:
        """Lost messages as a percentage of all attempts (0 when none yet)."""
        total = self.received + self.lost
        return self.lost * 100.0 / total if total else 0.0

    def summary(self) -> str:
        return (
            f"Total received: {self.received}, Total lost: {self.lost}, "
            f"Loss rate: {self.loss_rate():.2f}%"
        )


def _payload_text(data: bytes) -> str:
    try:
        return parse_message(data).text
    except ValueError:
        return message_text(data[NLMSG_HDRLEN:])


def _local_pid(sock: socket.socket) -> int:
    name = sock.getsockname()
    return name[0] if isinstance(name, tuple) else 0


def echo_server(
    sock: socket.socket, stop: threading.Event, out: TextIO | None = None
) -> LossCounter:
    """Echo every message back to its sender until ``stop`` is set."""
    out = sys.stdout if out is None else out
    counter = LossCounter()
    capacity = nlmsg_space(MAX_PAYLOAD)
    sock.settimeout(POLL_INTERVAL)
    print("Server started...", file=out)
    print("Waiting for message...", file=out)
    while not stop.is_set():
        try:
            data, address = sock.recvfrom(capacity)
        except TimeoutError:
            continue
        except OSError as exc:
            if stop.is_set() or sock.fileno() == -1:
                break
            print(f"Server recvmsg failed: {exc}", file=sys.stderr)
            counter.record_lost()
            continue
        counter.record_received()
        print(f"Server received: {_payload_text(data)}", file=out)
        try:
            if address:
                sock.sendto(data, address)
            else:
                sock.send(data)
        except OSError as exc:
            print(f"Server sendmsg failed: {exc}", file=sys.stderr)
        print(counter.summary(), file=out)
        print("Waiting for message...", file=out)
    return counter


def client_worker(
    client_id: int,
    sock: socket.socket,
    server_pid: int | None,
    count: int = NUM_MESSAGES,
    interval: float = SEND_INTERVAL,
    out: TextIO | None = None,
) -> LossCounter:
    """Send ``count`` numbered messages to the server and wait for each echo.

    A ``server_pid`` of None sends on an already connected socket.
    """
    out = sys.stdout if out is None else out
    counter = LossCounter()
    capacity = nlmsg_space(MAX_PAYLOAD)
    pid = _local_pid(sock)
    for number in range(1, count + 1):
        frame = build_message(f"Client {client_id}: Message {number}", pid, capacity)
        try:
            if server_pid is None:
                sock.send(frame)
            else:
                sock.sendto(frame, (server_pid, 0))
        except OSError as exc:
            print(f"Client sendmsg failed: {exc}", file=sys.stderr)
            continue
        try:
            reply = sock.recv(capacity)
        except OSError as exc:
            print(f"Client recvmsg failed: {exc}", file=sys.stderr)
            counter.record_lost()
            continue
        counter.record_received()
        print(f"Client {client_id} received: {_payload_text(reply)}", file=out)
        print(f"Client {client_id} - {counter.summary()}", file=out)
        if interval > 0:
            time.sleep(interval)
    return counter


def run(
    num_clients: int = NUM_CLIENTS,
    num_messages: int = NUM_MESSAGES,
    interval: float = SEND_INTERVAL,
    protocol: int = NETLINK_USERSOCK,
    out: TextIO | None = None,
) -> tuple[LossCounter, list[LossCounter]]:
    """Run the server and clients in threads; return their loss counters."""
    if num_clients < 1:
        raise ValueError(f"client count must be positive, got {num_clients}")
    if num_messages < 1:
        raise ValueError(f"message count must be positive, got {num_messages}")
    out = sys.stdout if out is None else out
    server_pid = os.getpid()
    stop = threading.Event()
    with contextlib.ExitStack() as stack:
        server_sock = stack.enter_context(
            open_netlink_socket(protocol, socket.SOCK_RAW, server_pid)
        )
        pool = stack.enter_context(ThreadPoolExecutor(max_workers=num_clients + 1))
        stack.callback(stop.set)
        server_future = pool.submit(echo_server, server_sock, stop, out)
        time.sleep(STARTUP_DELAY)
        client_futures = []
        for client_id in range(1, num_clients + 1):
            sock = stack.enter_context(
                open_netlink_socket(protocol, socket.SOCK_RAW, server_pid + client_id)
            )
            sock.settimeout(REPLY_TIMEOUT)
            client_futures.append(
                pool.submit(
                    client_worker, client_id, sock, server_pid, num_messages, interval, out
                )
            )
        client_counters = [future.result() for future in client_futures]
        stop.set()
        server_counter = server_future.result()
    return server_counter, client_counters


def main(argv: list[str] | None = None) -> int:
    """Run the threaded netlink echo test."""
    parser = argparse.ArgumentParser(description="Threaded netlink echo loss test")
    parser.add_argument("--clients", type=int, default=NUM_CLIENTS)
    parser.add_argument("--messages", type=int, default=NUM_MESSAGES)
    parser.add_argument("--interval", type=float, default=SEND_INTERVAL)
    parser.add_argument("--protocol", type=int, default=NETLINK_USERSOCK)
    args = parser.parse_args(argv)
    try:
        run(args.clients, args.messages, args.interval, args.protocol)
    except (OSError, ValueError) as exc:
        print(f"netlink threads: {exc}", file=sys.stderr)
        return 1
    return 0