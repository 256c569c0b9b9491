from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Mapping, Optional

UNKNOWN_OWNER = "unknown"

class Protocol(str, Enum):
    TCP = "tcp"
    UDP = "udp"

@dataclass(frozen=True)
class ProcessOwnershipRecord:
    pid: int
    name: str

# socket inode -> first process seen holding it
InodeOwnershipMap = Dict[int, ProcessOwnershipRecord]

@dataclass
class ListeningSocket:
    protocol: Protocol
    local_address: str
    local_port: int
    inode: int
    owning_pid: Optional[int] = None
    owner_name: str = UNKNOWN_OWNER

    @property
    def resolved(self) -> bool:
        return self.owning_pid is not None

    def assign(self, record: ProcessOwnershipRecord) -> None:
        self.owning_pid = record.pid
        self.owner_name = record.name

    def to_dict(self) -> dict:
        return {
            "protocol": self.protocol.value,
            "local_address": self.local_address,
            "local_port": self.local_port,
            "inode": self.inode,
            "pid": self.owning_pid,
            "owner": self.owner_name,
        }

@dataclass(frozen=True)
class InodeSnapshot:
    built_at: float
    owners: Mapping[int, ProcessOwnershipRecord]

@dataclass(frozen=True)
class RuntimeEnvironmentState:
    proc_root: str
    containerized: bool

@dataclass
class ResolutionStats:
    protocol: Protocol
    total: int = 0
    resolved: int = 0
    fallback_resolved: int = 0

    @property
    def ratio(self) -> float:
        return self.resolved / self.total if self.total else 1.0

    @property
    def degraded(self) -> bool:
        return self.total > 0 and self.resolved * 2 < self.total

    def to_dict(self) -> dict:
        return {
            "total": self.total,
            "resolved": self.resolved,
            "fallback_resolved": self.fallback_resolved,
            "ratio": round(self.ratio, 3),
        }
