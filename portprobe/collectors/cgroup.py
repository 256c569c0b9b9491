from __future__ import annotations
import os
import re
from typing import Optional

from .procfs import ProcFS

# cgroup v1 ".../docker/<id>" and systemd/cgroup v2 ".../docker-<id>.scope"
DOCKER_CGROUP_RE = re.compile(r"docker[/-]([a-f0-9]{64})")
SHORT_ID_LEN = 12

def container_id_for_pid(fs: ProcFS, root: str, pid) -> Optional[str]:
    text = fs.read_text(os.path.join(root, str(pid), "cgroup"))
    if not text:
        return None
    m = DOCKER_CGROUP_RE.search(text)
    return m.group(1)[:SHORT_ID_LEN] if m else None
