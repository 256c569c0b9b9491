"""Self-check that the chosen proc root yields socket and process data."""
from __future__ import annotations
import logging
import os

from .collectors.procfs import ProcFS
from .config import LISTEN_STATE, PROCESS_ACCESS_HINT
from .models import RuntimeEnvironmentState

log = logging.getLogger(__name__)

def count_listening(rows) -> int:
    n = 0
    for row in rows:
        parts = row.split()
        if len(parts) >= 4 and parts[3].upper() == LISTEN_STATE:
            n += 1
    return n

def can_read_processes(fs: ProcFS, env: RuntimeEnvironmentState) -> bool:
    pids = fs.pids(env.proc_root)
    if pids is None:
        log.warning("Cannot read process information: %s is not listable", env.proc_root)
        log.warning(PROCESS_ACCESS_HINT[env.containerized])
        return False
    if not pids:
        log.warning("Cannot read process information: no pid directories under %s", env.proc_root)
        return False
    cmdline = os.path.join(env.proc_root, pids[0], "cmdline")
    if fs.read_text(cmdline) is None:
        log.warning("Cannot read process information: %s is not readable", cmdline)
        log.warning(PROCESS_ACCESS_HINT[env.containerized])
        return False
    return True

def check_proc_access(fs: ProcFS, env: RuntimeEnvironmentState) -> bool:
    """True if the root shows at least one LISTEN socket or a readable process.

    Reads <root>/net/tcp directly, independent of the containerized table
    location, so it reports on the root itself.
    """
    tcp_path = os.path.join(env.proc_root, "net", "tcp")
    content = fs.read_text(tcp_path) if fs.readable(tcp_path) else None
    if content is None:
        log.warning("/proc access test failed: %s is not readable", tcp_path)
        return False

    lines = content.strip().splitlines()
    if len(lines) < 2:
        log.warning("%s has no entries", tcp_path)
        return False

    listening = count_listening(lines[1:])
    log.debug("Found %d listening TCP ports in %s", listening, tcp_path)

    readable = can_read_processes(fs, env)
    return listening >= 1 or readable
