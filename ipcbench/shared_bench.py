"""Compare a condition-variable handoff with netlink messaging between threads."""

from __future__ import annotations

import argparse
import math
import os
import socket
import struct
import sys
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any

from ipcbench.netlink import (
    NETLINK_USERSOCK,
    build_message,
    nlmsg_space,
    open_netlink_socket,
)
from ipcbench.report import Stopwatch

MAX_PAYLOAD = 1024
ITERATIONS = 100000
RECV_TIMEOUT = 5.0

_INT = struct.Struct("=i")


def _check_iterations(iterations: int) -> None:
    if iterations < 1:
        raise ValueError(f"iteration count must be positive, got {iterations}")


class SharedSlot:
    """A single-value slot handed between a producer and a consumer thread."""

    def __init__(self) -> None:
        self._cond = threading.Condition()
        self._value: Any = None
        self._ready = False

    def put(self, value: Any) -> None:
        """Wait until the slot is empty, then fill it."""
        with self._cond:
            self._cond.wait_for(lambda: not self._ready)
            self._value = value
            self._ready = True
            self._cond.notify()

    def take(self) -> Any:
        """Wait until the slot is full, then empty it and return its value."""
        with self._cond:
            self._cond.wait_for(lambda: self._ready)
            value = self._value
            self._value = None
            self._ready = False
            self._cond.notify()
            return value


@dataclass(frozen=True)
class ComparisonResult:
    """Elapsed producer times for both mechanisms."""

    iterations: int
    shared_seconds: float
    netlink_seconds: float

    def __post_init__(self) -> None:
        _check_iterations(self.iterations)

    @property
    def ratio(self) -> float:
        """How many times slower netlink was than the shared variable."""
        if self.shared_seconds == 0:
            return math.inf
        return self.netlink_seconds / self.shared_seconds

    def _shared_lines(self) -> list[str]:
        return [
            f"Shared variable elapsed time: {self.shared_seconds:.6f} seconds",
            "Average time per iteration: "
            f"{self.shared_seconds / self.iterations:.9f} seconds",
        ]

    def _netlink_lines(self) -> list[str]:
        return [
            f"Netlink socket elapsed time: {self.netlink_seconds:.6f} seconds",
            "Average time per iteration: "
            f"{self.netlink_seconds / self.iterations:.9f} seconds",
        ]

    def _comparison_lines(self) -> list[str]:
        return [
            "",
            "Performance comparison:",
            f"Netlink is {self.ratio:.2f} times slower than shared variable.",
        ]

    def lines(self) -> list[str]:
        return self._shared_lines() + self._netlink_lines() + self._comparison_lines()


def shared_variable_benchmark(iterations: int = ITERATIONS) -> float:
    """Seconds the producer needs to hand ``iterations`` values to a consumer."""
    _check_iterations(iterations)
    slot = SharedSlot()

    def produce() -> float:
        with Stopwatch() as watch:
            for value in range(iterations):
                slot.put(value)
        return watch.elapsed

    def consume() -> None:
        for _ in range(iterations):
            slot.take()

    with ThreadPoolExecutor(max_workers=2) as pool:
        producer = pool.submit(produce)
        consumer = pool.submit(consume)
        consumer.result()
        return producer.result()


def _netlink_round(
    send_sock: socket.socket,
    recv_sock: socket.socket,
    destination: tuple[int, int] | None,
    pid: int,
    iterations: int,
) -> tuple[float, int]:
    """Send numbered messages on one socket while draining another.

    Returns the producer's elapsed seconds and the number of messages received.
    """
    capacity = nlmsg_space(MAX_PAYLOAD)

    def produce() -> float:
        with Stopwatch() as watch:
            for value in range(iterations):
                frame = build_message(_INT.pack(value), pid)
                try:
                    if destination is None:
                        send_sock.send(frame)
                    else:
                        send_sock.sendto(frame, destination)
                except OSError as exc:
                    print(f"sendmsg failed: {exc}", file=sys.stderr)
        return watch.elapsed

    def consume() -> int:
        received = 0
        for _ in range(iterations):
            try:
                data = recv_sock.recv(capacity)
            except OSError as exc:
                print(f"recvmsg failed: {exc}", file=sys.stderr)
                break
            if not data:
                print("recvmsg failed: no data", file=sys.stderr)
                break
            received += 1
        return received

    with ThreadPoolExecutor(max_workers=2) as pool:
        producer = pool.submit(produce)
        consumer = pool.submit(consume)
        return producer.result(), consumer.result()


def netlink_benchmark(
    iterations: int = ITERATIONS, protocol: int = NETLINK_USERSOCK
) -> float:
    """Seconds the producer needs to send ``iterations`` messages to its own socket."""
    _check_iterations(iterations)
    pid = os.getpid()
    with open_netlink_socket(protocol, socket.SOCK_RAW, pid) as sock:
        sock.settimeout(RECV_TIMEOUT)
        elapsed, _ = _netlink_round(sock, sock, (pid, 0), pid, iterations)
    return elapsed


def compare(
    iterations: int = ITERATIONS, protocol: int = NETLINK_USERSOCK
) -> ComparisonResult:
    """Run both benchmarks and return their timings."""
    _check_iterations(iterations)
    shared = shared_variable_benchmark(iterations)
    netlink = netlink_benchmark(iterations, protocol)
    return ComparisonResult(iterations, shared, netlink)


def main(argv: list[str] | None = None) -> int:
    """Run both benchmarks and print the comparison."""
    parser = argparse.ArgumentParser(
        description="Shared variable versus netlink socket handoff"
    )
    parser.add_argument("--iterations", type=int, default=ITERATIONS)
    parser.add_argument("--protocol", type=int, default=NETLINK_USERSOCK)
    args = parser.parse_args(argv)
    try:
        _check_iterations(args.iterations)
        print("Testing shared variable communication...")
        shared = shared_variable_benchmark(args.iterations)
        partial = ComparisonResult(args.iterations, shared, 0.0)
        for line in partial._shared_lines():
            print(line)
        print()
        print("Testing Netlink socket communication...")
        netlink = netlink_benchmark(args.iterations, args.protocol)
    except (OSError, ValueError) as exc:
        print(f"benchmark: {exc}", file=sys.stderr)
        return 1
    result = ComparisonResult(args.iterations, shared, netlink)
    for line in result._netlink_lines() + result._comparison_lines():
        print(line)
    return 0