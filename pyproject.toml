[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "ipcbench"
version = "0.1.0"
description = "Latency benchmarks for Unix-domain sockets, netlink sockets and shared-variable hand-off"
requires-python = ">=3.10"
dependencies = []
keywords = ["ipc", "benchmark", "netlink", "unix-socket", "latency"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Benchmark",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
ipcbench-unix-server = "ipcbench.unix_echo:server_main"
ipcbench-unix-client = "ipcbench.unix_echo:client_main"
ipcbench-netlink-server = "ipcbench.netlink_echo:server_main"
ipcbench-netlink-client = "ipcbench.netlink_echo:client_main"
ipcbench-netlink-threads = "ipcbench.netlink_threads:main"
ipcbench-shared = "ipcbench.shared_bench:main"

[tool.hatch.build.targets.wheel]
packages = ["ipcbench"]

[tool.pytest.ini_options]
addopts = "-ra"
