from __future__ import annotations
import logging
import time
from typing import AbstractSet, Callable, Dict, List, Optional

from .collectors.cgroup import container_id_for_pid
from .collectors.owners import OwnershipResolver
from .collectors.procfs import ProcFS
from .collectors.roots import detect_containerized, resolve_proc_root, scan_roots
from .collectors.sockets import read_sockets
from .config import EngineConfig, LOW_RESOLUTION_HINT, init_cfg_from_env
from .diagnostics import check_proc_access
from .models import ListeningSocket, Protocol, ResolutionStats, RuntimeEnvironmentState

log = logging.getLogger(__name__)

class PortEngine:
    """Listening TCP/UDP ports under a proc root, with best-effort owners.

    The proc root and the containerized flag are fixed at construction;
    build a new engine to re-detect them. Public calls never raise for
    filesystem trouble; they return what could be read.
    """

    def __init__(self, cfg: Optional[EngineConfig] = None, fs: Optional[ProcFS] = None,
                 clock: Callable[[], float] = time.monotonic):
        self.cfg = cfg or init_cfg_from_env()
        self.fs = fs or ProcFS()

        root = resolve_proc_root(self.cfg, self.fs)
        self.environment = RuntimeEnvironmentState(
            proc_root=root,
            containerized=detect_containerized(root, self.cfg, self.fs),
        )
        log.info("Final /proc path: %s", root)
        if self.environment.containerized:
            log.debug("Detected containerized environment, using host network namespace")

        self.owners = OwnershipResolver(scan_roots(self.cfg, root), fs=self.fs,
                                        ttl=self.cfg.cache_ttl, clock=clock)
        self.udp_ports = frozenset(self.cfg.udp_ports)
        self._stats: Dict[Protocol, ResolutionStats] = {}

    def list_tcp_ports(self) -> List[ListeningSocket]:
        return self._list_ports(Protocol.TCP)

    def list_udp_ports(self, include_all: bool = False) -> List[ListeningSocket]:
        return self._list_ports(Protocol.UDP, None if include_all else self.udp_ports)

    def test_access(self) -> bool:
        return check_proc_access(self.fs, self.environment)

    def container_id_for_pid(self, pid) -> Optional[str]:
        return container_id_for_pid(self.fs, self.environment.proc_root, pid)

    def last_stats(self, protocol: Protocol) -> Optional[ResolutionStats]:
        return self._stats.get(Protocol(protocol))

    def _list_ports(self, protocol: Protocol,
                    udp_ports: Optional[AbstractSet[int]] = None) -> List[ListeningSocket]:
        inode_map = self.owners.build_inode_map()
        sockets = read_sockets(self.fs, self.environment, protocol, udp_ports, self.cfg.decode_ipv6)

        for sock in sockets:
            record = inode_map.get(sock.inode)
            if record is not None:
                sock.assign(record)

        stats = ResolutionStats(protocol, total=len(sockets),
                                resolved=sum(1 for s in sockets if s.resolved))
        log.debug("%s parse complete: ports=%d, ownersResolved=%d, inodeMapSize=%d",
                  protocol.value.upper(), stats.total, stats.resolved, len(inode_map))

        if stats.degraded:
            self._resolve_fallback(sockets, stats)
            if stats.degraded:
                log.warning(LOW_RESOLUTION_HINT[self.environment.containerized])

        self._stats[protocol] = stats
        return sockets

    def _resolve_fallback(self, sockets: List[ListeningSocket], stats: ResolutionStats) -> None:
        # only fills in unresolved entries, never replaces an owner
        pending = {s.inode for s in sockets if not s.resolved}
        found = self.owners.build_inode_map_for_inodes(pending)
        for sock in sockets:
            if sock.resolved:
                continue
            record = found.get(sock.inode)
            if record is not None:
                sock.assign(record)
                stats.fallback_resolved += 1
        stats.resolved += stats.fallback_resolved
        log.debug("%s targeted fd-scan fallback resolved additional=%d",
                  stats.protocol.value.upper(), stats.fallback_resolved)
