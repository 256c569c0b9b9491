from __future__ import annotations
import logging
import os
from typing import List, Optional

from ..config import EngineConfig
from ..models import RuntimeEnvironmentState
from .procfs import ProcFS

log = logging.getLogger(__name__)

def _dedupe(paths) -> List[str]:
    return list(dict.fromkeys(p for p in paths if p))

def marker_path(root: str) -> str:
    return os.path.join(root, "net", "tcp")

def candidate_roots(cfg: EngineConfig) -> List[str]:
    return _dedupe([cfg.proc_root, *cfg.candidate_roots, cfg.default_root])

def resolve_proc_root(cfg: EngineConfig, fs: Optional[ProcFS] = None) -> str:
    """First candidate root whose net/tcp is present and readable.

    Falls back to cfg.default_root when nothing qualifies; reads under it then
    fail one by one instead of up front.
    """
    fs = fs or ProcFS()
    if cfg.proc_root and not fs.readable(marker_path(cfg.proc_root)):
        log.warning("HOST_PROC provided but unusable (%s): %s is not readable",
                    cfg.proc_root, marker_path(cfg.proc_root))
    for root in candidate_roots(cfg):
        if fs.readable(marker_path(root)):
            log.debug("Using proc root: %s", root)
            return root
    log.debug("No candidate proc root usable, defaulting to %s", cfg.default_root)
    return cfg.default_root

def detect_containerized(root: str, cfg: EngineConfig, fs: Optional[ProcFS] = None) -> bool:
    """Running in a container that can see the host's process table.

    Needs both the container runtime marker and more than
    cfg.host_pid_threshold pids under `root`; a container's own pid namespace
    rarely holds that many.
    """
    fs = fs or ProcFS()
    if not fs.exists(cfg.docker_marker):
        return False
    pids = fs.pids(root)
    if pids is None:
        log.debug("Cannot list %s while checking containerization", root)
        return False
    return len(pids) > cfg.host_pid_threshold

def scan_roots(cfg: EngineConfig, root: str) -> List[str]:
    return _dedupe([root, *cfg.scan_aliases, cfg.default_root])

def table_path(env: RuntimeEnvironmentState, name: str) -> str:
    # with host pid visibility the root-level net/ is this container's own namespace
    if env.containerized:
        return os.path.join(env.proc_root, "1", "net", name)
    return os.path.join(env.proc_root, "net", name)
