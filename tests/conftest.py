from __future__ import annotations

import os
from pathlib import Path

import pytest

from portprobe.collectors.procfs import ProcFS
from portprobe.config import EngineConfig

HEADER = ("  sl  local_address rem_address   st tx_queue rx_queue tr tm->when retrnsmt"
          "   uid  timeout inode")


def row(local: str, state: str = "0A", inode: int = 0, sl: int = 0) -> str:
    """A /proc/net/{tcp,udp} row; `local` is 'ADDRHEX:PORTHEX'."""
    return (f"{sl:4d}: {local} 00000000:0000 {state} 00000000:00000000 00:00000000 "
            f"00000000  1000        0 {inode} 1 0000000000000000 100 0 0 10 0")


def port_hex(port: int) -> str:
    return f"{port:04X}"


class FakeProc:
    """Builds a proc-like tree on disk: net tables, pid dirs, fd symlinks."""

    def __init__(self, root: Path):
        self.root = root
        self.root.mkdir(parents=True, exist_ok=True)

    @property
    def path(self) -> str:
        return str(self.root)

    def table(self, name: str, rows, under_pid: str | None = None) -> Path:
        base = self.root / under_pid / "net" if under_pid else self.root / "net"
        base.mkdir(parents=True, exist_ok=True)
        p = base / name
        p.write_text("\n".join([HEADER, *rows]) + "\n")
        return p

    def process(self, pid: int, comm: str | None = None, sockets=(), cmdline: str | None = None,
                cgroup: str | None = None, other_fds=()) -> Path:
        d = self.root / str(pid)
        (d / "fd").mkdir(parents=True, exist_ok=True)
        if comm is not None:
            (d / "comm").write_text(comm + "\n")
        if cmdline is not None:
            (d / "cmdline").write_text(cmdline)
        if cgroup is not None:
            (d / "cgroup").write_text(cgroup)
        fd = 3
        for target in other_fds:
            os.symlink(target, d / "fd" / str(fd))
            fd += 1
        for inode in sockets:
            os.symlink(f"socket:[{inode}]", d / "fd" / str(fd))
            fd += 1
        return d

    def add_socket(self, pid: int, inode: int) -> None:
        fd_dir = self.root / str(pid) / "fd"
        fd = len(os.listdir(fd_dir)) + 3
        os.symlink(f"socket:[{inode}]", fd_dir / str(fd))


class OrderedProcFS(ProcFS):
    """ProcFS with pinned directory listings, so scan order is deterministic."""

    def __init__(self, order: dict[str, list[str]]):
        self.order = order
        self.readlinks = 0

    def listdir(self, path):
        if path in self.order:
            return list(self.order[path])
        names = super().listdir(path)
        return sorted(names) if names is not None else None

    def readlink(self, path):
        self.readlinks += 1
        return super().readlink(path)


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def proc(tmp_path) -> FakeProc:
    return FakeProc(tmp_path / "proc")


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


def make_cfg(proc: FakeProc, tmp_path: Path, **overrides) -> EngineConfig:
    """Config that only ever looks inside the fake tree."""
    cfg = EngineConfig(
        proc_root=None,
        default_root=proc.path,
        candidate_roots=(),
        scan_aliases=(),
        docker_marker=str(tmp_path / ".dockerenv"),
    )
    for k, v in overrides.items():
        setattr(cfg, k, v)
    return cfg


@pytest.fixture
def cfg_for(tmp_path):
    def _make(proc: FakeProc, **overrides) -> EngineConfig:
        return make_cfg(proc, tmp_path, **overrides)
    return _make
