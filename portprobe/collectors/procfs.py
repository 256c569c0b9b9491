from __future__ import annotations
import os
import re
from typing import List, Optional

PID_RE = re.compile(r"^[0-9]+$")

class ProcFS:
    """Leaf reads against a /proc-like tree.

    Every call reports failure as None (or False) instead of raising: /proc
    entries vanish and permissions differ per process, and callers treat a
    missing answer as "contributes nothing".
    """

    def exists(self, path: str) -> bool:
        return os.path.exists(path)

    def readable(self, path: str) -> bool:
        return os.path.exists(path) and os.access(path, os.R_OK)

    def listdir(self, path: str) -> Optional[List[str]]:
        try:
            return os.listdir(path)
        except OSError:
            return None

    def read_text(self, path: str) -> Optional[str]:
        try:
            with open(path, "r", encoding="utf-8", errors="replace") as f:
                return f.read()
        except OSError:
            return None

    def readlink(self, path: str) -> Optional[str]:
        try:
            return os.readlink(path)
        except OSError:
            return None

    def pids(self, root: str) -> Optional[List[str]]:
        """Numeric entries of `root`, in listing order; None if unlistable."""
        names = self.listdir(root)
        if names is None:
            return None
        return [n for n in names if PID_RE.match(n)]
