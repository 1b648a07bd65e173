"""Latency benchmarks for Unix-domain sockets, netlink sockets and shared-variable hand-off."""

__version__ = "0.1.0"