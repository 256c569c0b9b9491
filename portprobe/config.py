from __future__ import annotations
import json, os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import FrozenSet, Mapping, Optional, Tuple

import yaml

LISTEN_STATE = "0A"

SOCKET_TABLES = {
    "tcp": ("tcp", "tcp6"),
    "udp": ("udp", "udp6"),
}

# UDP has no listen state; without --all only these are reported
IMPORTANT_UDP_PORTS: FrozenSet[int] = frozenset({
    53,                    # dns
    67, 68,                # dhcp
    123,                   # ntp
    137, 138,              # netbios
    161, 162,              # snmp
    514,                   # syslog
    500, 4500,             # ipsec / ike
    1194, 1198,            # openvpn
    51820, 51821, 51822,   # wireguard, tailscale/netbird style meshes
})

LOW_RESOLUTION_HINT = {
    True: ("Low owner resolution via /proc. Hint: on Docker Desktop (macOS/Windows) add cap_add: [SYS_ADMIN] "
           "so namespace tools (nsenter) can run; on Linux hosts use cap_add: [SYS_PTRACE] and "
           "security_opt: [apparmor:unconfined] together with /proc:/host/proc:ro."),
    False: ("Low owner resolution via /proc. Hint: grant cap_add: [SYS_PTRACE] and "
            "security_opt: [apparmor:unconfined], and mount the host /proc when running in a "
            "container (e.g. /proc:/host/proc:ro)."),
}

PROCESS_ACCESS_HINT = {
    True: ("Hint: grant cap_add: [SYS_PTRACE] and security_opt: [apparmor:unconfined]; mount the host /proc "
           "read-only (e.g. /proc:/host/proc:ro) and set HOST_PROC. On Docker Desktop, system-wide ownership "
           "mapping may also need cap_add: [SYS_ADMIN] for namespace access."),
    False: ("Hint: on Linux hosts, grant cap_add: [SYS_PTRACE] and security_opt: [apparmor:unconfined] when "
            "running in a container so other processes' info is readable."),
}

TRUE_VALUES = ("1", "true", "yes", "on")

class ConfigError(ValueError):
    pass

@dataclass
class EngineConfig:
    proc_root: Optional[str] = None
    default_root: str = "/proc"
    candidate_roots: Tuple[str, ...] = ("/host/proc", "/hostproc")
    scan_aliases: Tuple[str, ...] = ("/host/proc",)
    docker_marker: str = "/.dockerenv"
    host_pid_threshold: int = 100
    cache_ttl: float = 2.0
    udp_ports: FrozenSet[int] = field(default_factory=lambda: IMPORTANT_UDP_PORTS)
    decode_ipv6: bool = False
    verbose: bool = False

def _flag(value) -> bool:
    if isinstance(value, bool):
        return value
    return str(value or "").strip().lower() in TRUE_VALUES

def _items(value) -> list:
    # a bare scalar (`candidate_roots: /host/proc`, `udp_ports: 53`) means one item
    if isinstance(value, (str, bytes, int)):
        return [value]
    return list(value)

_COERCE = {
    "proc_root": lambda v: str(v) if v else None,
    "default_root": str,
    "candidate_roots": lambda v: tuple(str(x) for x in _items(v)),
    "scan_aliases": lambda v: tuple(str(x) for x in _items(v)),
    "docker_marker": str,
    "host_pid_threshold": int,
    "cache_ttl": float,
    "udp_ports": lambda v: frozenset(int(x) for x in _items(v)),
    "decode_ipv6": _flag,
    "verbose": _flag,
}

def init_cfg_from_env(environ: Optional[Mapping[str, str]] = None) -> EngineConfig:
    env = os.environ if environ is None else environ
    cfg = EngineConfig()
    cfg.proc_root = env.get("HOST_PROC") or None
    cfg.verbose = _flag(env.get("DEBUG")) or _flag(env.get("PORTPROBE_DEBUG"))
    return cfg

def apply_overrides(cfg: EngineConfig, data: Mapping) -> EngineConfig:
    known = {f.name for f in fields(EngineConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigError(f"unknown config keys: {', '.join(unknown)}")
    for key, value in data.items():
        try:
            setattr(cfg, key, _COERCE[key](value))
        except (TypeError, ValueError) as e:
            raise ConfigError(f"invalid value for {key!r}: {value!r} ({e})") from e
    return cfg

def load_config(path: str | os.PathLike, base: Optional[EngineConfig] = None) -> EngineConfig:
    """Read a YAML (.yaml/.yml) or JSON config file on top of `base`.

    `base` defaults to the environment-derived config, so file values win
    over HOST_PROC/DEBUG.
    """
    p = Path(path).expanduser()
    if not p.is_file():
        raise ConfigError(f"config not found: {p}")
    txt = p.read_text(encoding="utf-8")
    try:
        data = yaml.safe_load(txt) if p.suffix in (".yaml", ".yml") else json.loads(txt)
    except (yaml.YAMLError, json.JSONDecodeError) as e:
        raise ConfigError(f"cannot parse {p}: {e}") from e
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"{p}: top level must be a mapping")
    return apply_overrides(base if base is not None else init_cfg_from_env(), data)

def init_cfg_from_args(args) -> EngineConfig:
    cfg = init_cfg_from_env()
    if getattr(args, "config", None):
        cfg = load_config(args.config, base=cfg)
    if getattr(args, "proc_root", None):
        cfg.proc_root = args.proc_root
    if getattr(args, "decode_ipv6", False):
        cfg.decode_ipv6 = True
    if getattr(args, "debug", False):
        cfg.verbose = True
    return cfg
