# ipcbench

Small benchmarks for round-trip and hand-off latency of Linux
inter-process communication mechanisms:

- Unix-domain stream sockets (echo server and timing client)
- netlink datagram sockets (echo server and timing client)
- several netlink client threads sharing one echo server thread, with loss counts
- a condition-variable hand-off between threads compared with netlink messages

Netlink sockets exist only on Linux. Where they are missing,
`ipcbench.netlink.open_netlink_socket` raises `OSError` (`EAFNOSUPPORT`).
Some netlink protocols may need extra privileges, depending on the kernel.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Unix-domain sockets

Start the echo server in one terminal:

```
ipcbench-unix-server
```

It removes any stale socket file, binds `/tmp/unix_socket`, accepts one
client, echoes everything that client sends until it disconnects, then
removes the socket file and exits.

Then run the client in another terminal:

```
ipcbench-unix-client
```

The client sends a 1024-byte buffer starting with `Test message` 10000 times,
waits for each full echo, and prints:

```
Total time for 10000 messages: <ms> ms
Average time per message: <ms> ms
```

Options: `--path` (socket file, both commands), `--buffer-size` (both
commands, default 1024) and `--count` (client only, default 10000).

## Netlink echo

```
ipcbench-netlink-server
ipcbench-netlink-client
```

The server opens a datagram netlink socket with a kernel-assigned port,
prints `Waiting for message...` before each receive and `Received message:
<text>` for each message, and sends the message back to its sender. It runs
until interrupted.

The client binds to its own process id, sends a NUL-terminated text message
padded to a full frame to the kernel address (port 0), prints
`Sending message N...` and `Received response N: <text>` for every round
trip, and then the total and average time in milliseconds.

Options for both: `--protocol` (netlink protocol number, default 0, the
routing protocol) and `--buffer-size` (payload size, default 1024). The
client also takes `--count` (default 10000) and `--message` (default
`Test message`).

## Threaded netlink clients

```
ipcbench-netlink-threads
```

This opens a raw netlink socket for a server thread bound to the process id,
waits one second, then starts client threads, each on its own socket bound
to the process id plus its client number. Each client sends numbered
messages (`Client N: Message M`) to the server, waits up to one second for
the echo, and prints what it received with a running count of replies
received, replies lost and the loss rate. The server prints the same counts
for what it receives.

Options: `--clients` (default 3), `--messages` per client (default 100),
`--interval` seconds between sends (default 0.01) and `--protocol`
(default 2, the user-socket protocol).

## Shared variable against netlink

```
ipcbench-shared
```

First a producer thread hands integers one at a time to a consumer thread
through `ipcbench.shared_bench.SharedSlot`, a single slot guarded by a
condition variable. Then a producer sends the same number of integers as
netlink messages to its own raw netlink socket while a consumer thread
drains them. For each method it prints the producer's elapsed time and the
time per iteration, and finally how many times slower netlink was.

Options: `--iterations` (default 100000) and `--protocol` (default 2).

## Library use

- `ipcbench.netlink`: `nlmsg_align`, `nlmsg_space`, `build_message`,
  `parse_message`, `message_text`, the `NetlinkHeader` and `NetlinkMessage`
  dataclasses, and `open_netlink_socket`.
- `ipcbench.report`: `Stopwatch`, a context manager timing on the monotonic
  clock, and `LatencyReport`, which formats total and average times.
- `ipcbench.unix_echo`: `serve` and `run_client`.
- `ipcbench.netlink_echo`: `echo_loop`, `run_server` and `run_client`.
- `ipcbench.netlink_threads`: `LossCounter`, `echo_server`, `client_worker`
  and `run`.
- `ipcbench.shared_bench`: `SharedSlot`, `ComparisonResult`,
  `shared_variable_benchmark`, `netlink_benchmark` and `compare`.

```python
from ipcbench.report import LatencyReport, Stopwatch

with Stopwatch() as watch:
    ...  # work to time

report = LatencyReport.from_seconds(10000, watch.elapsed)
for line in report.lines():
    print(line)
```

## Limitations

- The Unix-domain echo server serves a single client and then exits.
- The netlink client sends to the kernel address, not to the netlink echo
  server's port; the two commands do not pair up with each other the way the
  Unix-domain ones do.
- There is no netlink kernel module here; replies depend on what the kernel
  does with the chosen protocol.