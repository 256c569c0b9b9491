from __future__ import annotations
import os
from typing import Iterable

import orjson
import psutil
from flask import Flask, Response, current_app, request

from ..config import EngineConfig, TRUE_VALUES
from ..engine import PortEngine
from ..models import ListeningSocket, Protocol

def dumps(obj) -> str:
    return orjson.dumps(obj).decode()

def _json(obj, status: int = 200) -> Response:
    return Response(dumps(obj), status=status, mimetype="application/json")

def psutil_sees_root(engine: PortEngine) -> bool:
    # psutil only reads its own procfs; pids from a foreign root mean nothing to it
    procfs = getattr(psutil, "PROCFS_PATH", "/proc")
    return os.path.realpath(engine.environment.proc_root) == os.path.realpath(procfs)

def enrich_proc_info(row: dict) -> dict:
    row["user"] = None
    row["cmd"] = None
    pid = row.get("pid")
    if not pid:
        return row
    try:
        p = psutil.Process(pid)
        row["user"] = p.username()
        row["cmd"] = " ".join(p.cmdline()) or p.name()
    except psutil.Error:
        pass
    return row

def serialize_ports(engine: PortEngine, sockets: Iterable[ListeningSocket]) -> list[dict]:
    rows = [s.to_dict() for s in sockets]
    if psutil_sees_root(engine):
        return [enrich_proc_info(r) for r in rows]
    for r in rows:
        r["user"] = None
        r["cmd"] = None
    return rows

def ports_payload(engine: PortEngine, include_all_udp: bool = False) -> dict:
    tcp = serialize_ports(engine, engine.list_tcp_ports())
    udp = serialize_ports(engine, engine.list_udp_ports(include_all=include_all_udp))
    stats = {}
    for proto in Protocol:
        s = engine.last_stats(proto)
        stats[proto.value] = s.to_dict() if s else None
    return {
        "tcp": tcp,
        "udp": udp,
        "stats": stats,
        "proc_root": engine.environment.proc_root,
        "containerized": engine.environment.containerized,
    }

def create_app(cfg: EngineConfig, engine: PortEngine) -> Flask:
    app = Flask(__name__)

    def _include_all() -> bool:
        return request.args.get("all", "").strip().lower() in TRUE_VALUES

    @app.get("/api/ports")
    def api_ports():
        return _json(ports_payload(engine, include_all_udp=_include_all()))

    @app.get("/api/ports/tcp")
    def api_ports_tcp():
        return _json(serialize_ports(engine, engine.list_tcp_ports()))

    @app.get("/api/ports/udp")
    def api_ports_udp():
        return _json(serialize_ports(engine, engine.list_udp_ports(include_all=_include_all())))

    @app.get("/api/access")
    def api_access():
        ok = engine.test_access()
        if not ok:
            current_app.logger.warning("proc access check failed for %s", engine.environment.proc_root)
        return _json({
            "ok": ok,
            "proc_root": engine.environment.proc_root,
            "containerized": engine.environment.containerized,
            "decode_ipv6": cfg.decode_ipv6,
        })

    @app.get("/api/containers/<int:pid>")
    def api_container(pid: int):
        cid = engine.container_id_for_pid(pid)
        return _json({"pid": pid, "container_id": cid}, status=200 if cid else 404)

    return app
