"""Round-trip latency over a UNIX stream socket: echo server and timing client."""

from __future__ import annotations

import argparse
import contextlib
import os
import socket
import sys

from ipcbench.report import LatencyReport, Stopwatch

SOCKET_PATH = "/tmp/unix_socket"
BUFFER_SIZE = 1024
NUM_MESSAGES = 10000
DEFAULT_MESSAGE = b"Test message"


def _remove(path: str) -> None:
    with contextlib.suppress(FileNotFoundError):
        os.unlink(path)


def serve(path: str = SOCKET_PATH, buffer_size: int = BUFFER_SIZE) -> int:
    """Accept one client and echo everything it sends until it disconnects.

    Returns the number of bytes echoed.
    """
    if buffer_size < 1:
        raise ValueError(f"buffer size must be positive, got {buffer_size}")
    _remove(path)
    echoed = 0
    with socket.socket(socket.AF_UNIX, socket.SOCK_STREAM) as server:
        server.bind(path)
        try:
            server.listen(5)
            conn, _ = server.accept()
            with conn:
                while True:
                    try:
                        chunk = conn.recv(buffer_size)
                    except ConnectionResetError:
                        break
                    if not chunk:
                        break
                    conn.sendall(chunk)
                    echoed += len(chunk)
        finally:
            _remove(path)
    return echoed


def _recv_exactly(sock: socket.socket, size: int) -> bytes:
    parts = bytearray()
    while len(parts) < size:
        chunk = sock.recv(size - len(parts))
        if not chunk:
            raise ConnectionError("server closed the connection mid-message")
        parts += chunk
    return bytes(parts)


def run_client(
    path: str = SOCKET_PATH,
    count: int = NUM_MESSAGES,
    buffer_size: int = BUFFER_SIZE,
    message: bytes = DEFAULT_MESSAGE,
) -> LatencyReport:
    """Send ``count`` fixed-size buffers to the echo server and time the round trips."""
    if count < 1:
        raise ValueError(f"message count must be positive, got {count}")
    if len(message) > buffer_size:
        raise ValueError(
            f"message of {len(message)} bytes exceeds buffer size {buffer_size}"
        )
    buffer = message.ljust(buffer_size, b"\0")
    with socket.socket(socket.AF_UNIX, socket.SOCK_STREAM) as client:
        client.connect(path)
        with Stopwatch() as watch:
            for _ in range(count):
                client.sendall(buffer)
                buffer = _recv_exactly(client, buffer_size)
    return LatencyReport.from_seconds(count, watch.elapsed)


def _parser(description: str, with_count: bool) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description=description)
    parser.add_argument("--path", default=SOCKET_PATH, help="socket file path")
    parser.add_argument("--buffer-size", type=int, default=BUFFER_SIZE)
    if with_count:
        parser.add_argument("--count", type=int, default=NUM_MESSAGES)
    return parser


def server_main(argv: list[str] | None = None) -> int:
    """Run the echo server for a single client."""
    args = _parser("UNIX socket echo server", with_count=False).parse_args(argv)
    try:
        serve(args.path, args.buffer_size)
    except (OSError, ValueError) as exc:
        print(f"server: {exc}", file=sys.stderr)
        return 1
    return 0


def client_main(argv: list[str] | None = None) -> int:
    """Run the timing client and print the latency summary."""
    args = _parser("UNIX socket latency client", with_count=True).parse_args(argv)
    try:
        report = run_client(args.path, args.count, args.buffer_size)
    except (OSError, ValueError) as exc:
        print(f"client: {exc}", file=sys.stderr)
        return 1
    for line in report.lines():
        print(line)
    return 0