from __future__ import annotations
import logging
import os
import re
import threading
import time
from types import MappingProxyType
from typing import AbstractSet, Callable, Dict, Iterable, Iterator, Mapping, Optional

from ..models import InodeOwnershipMap, InodeSnapshot, ProcessOwnershipRecord, UNKNOWN_OWNER
from .procfs import ProcFS

log = logging.getLogger(__name__)

SOCKET_LINK_RE = re.compile(r"^socket:\[(\d+)\]$")

def process_name(fs: ProcFS, root: str, pid_dir: str) -> str:
    """comm, else basename of argv[0] from cmdline, else 'unknown'."""
    comm = fs.read_text(os.path.join(root, pid_dir, "comm"))
    if comm is not None:
        return comm.strip() or UNKNOWN_OWNER
    cmdline = fs.read_text(os.path.join(root, pid_dir, "cmdline"))
    if cmdline:
        first = cmdline.split("\0")[0].strip()
        if first:
            return first.rsplit("/", 1)[-1] or UNKNOWN_OWNER
    return UNKNOWN_OWNER

def iter_socket_inodes(fs: ProcFS, fd_dir: str) -> Iterator[int]:
    for fd in fs.listdir(fd_dir) or ():
        link = fs.readlink(os.path.join(fd_dir, fd))
        if link is None:
            continue
        m = SOCKET_LINK_RE.match(link)
        if m:
            yield int(m.group(1))

class OwnershipResolver:
    """Maps socket inodes to owning processes by walking <root>/<pid>/fd.

    build_inode_map() is a full scan cached for `ttl` seconds;
    build_inode_map_for_inodes() is an uncached scan that stops as soon as
    every requested inode has an owner.
    """

    def __init__(self, roots: Iterable[str], fs: Optional[ProcFS] = None, ttl: float = 2.0,
                 clock: Callable[[], float] = time.monotonic):
        self.roots = tuple(dict.fromkeys(roots))
        self.fs = fs or ProcFS()
        self.ttl = ttl
        self.clock = clock
        self.full_scans = 0
        self._snapshot: Optional[InodeSnapshot] = None
        self._rebuild_lock = threading.Lock()

    def _fresh(self, snap: Optional[InodeSnapshot], now: float) -> bool:
        return snap is not None and now - snap.built_at < self.ttl

    def build_inode_map(self) -> Mapping[int, ProcessOwnershipRecord]:
        snap = self._snapshot
        if self._fresh(snap, self.clock()):
            return snap.owners
        with self._rebuild_lock:
            # another caller may have rebuilt while we waited
            now = self.clock()
            snap = self._snapshot
            if self._fresh(snap, now):
                return snap.owners
            owners, pids_seen = self._scan()
            self.full_scans += 1
            snap = InodeSnapshot(built_at=now, owners=MappingProxyType(owners))
            self._snapshot = snap
        log.debug("Built inode map: entries=%d, totalPidsSeen=%d, roots=%s",
                  len(owners), pids_seen, ",".join(self.roots))
        return snap.owners

    def build_inode_map_for_inodes(self, targets: AbstractSet[int]) -> InodeOwnershipMap:
        if not targets:
            return {}
        owners, pids_seen = self._scan(frozenset(targets))
        log.debug("Built targeted fd inode map: matched=%d/%d, pidsSeen=%d",
                  len(owners), len(targets), pids_seen)
        return owners

    def _scan(self, targets: Optional[AbstractSet[int]] = None):
        owners: Dict[int, ProcessOwnershipRecord] = {}
        pids_seen = 0
        for root in self.roots:
            for pid_dir in self.fs.pids(root) or ():
                pids_seen += 1
                if self._scan_process(root, pid_dir, owners, targets):
                    return owners, pids_seen
        return owners, pids_seen

    def _scan_process(self, root: str, pid_dir: str, owners: Dict[int, ProcessOwnershipRecord],
                      targets: Optional[AbstractSet[int]]) -> bool:
        """Record this process's sockets; True once every target is matched."""
        record = ProcessOwnershipRecord(pid=int(pid_dir), name=process_name(self.fs, root, pid_dir))
        for inode in iter_socket_inodes(self.fs, os.path.join(root, pid_dir, "fd")):
            if targets is not None and inode not in targets:
                continue
            owners.setdefault(inode, record)
            if targets is not None and len(owners) >= len(targets):
                return True
        return False
