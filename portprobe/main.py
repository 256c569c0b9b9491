from __future__ import annotations
import argparse, logging, sys
from .config import ConfigError, init_cfg_from_args
from .engine import PortEngine
from .logs import setup_logging
from .web import create_app, dumps, ports_payload

log = logging.getLogger(__name__)

def parse_args(argv=None):
    ap = argparse.ArgumentParser(description='Listening TCP/UDP ports and their owning processes, read from /proc')
    ap.add_argument('--host', type=str, default='0.0.0.0')
    ap.add_argument('--port', type=int, default=8765)
    ap.add_argument('--proc-root', type=str, default=None, help='proc tree to read (overrides HOST_PROC), e.g. /host/proc')
    ap.add_argument('--config', type=str, default=None, help='YAML or JSON engine config')
    ap.add_argument('--decode-ipv6', action='store_true', help='report real IPv6 listen addresses instead of ::')
    ap.add_argument('--all-udp', action='store_true', help='with --once: list every UDP port, not just well-known ones')
    ap.add_argument('--once', action='store_true', help='print one JSON listing and exit instead of serving')
    ap.add_argument('--debug', action='store_true', help='verbose diagnostics (same as DEBUG=true)')
    return ap.parse_args(argv)

def main(argv=None) -> int:
    args = parse_args(argv)
    setup_logging(args.debug)
    try:
        cfg = init_cfg_from_args(args)
    except ConfigError as e:
        log.error("%s", e)
        return 2
    setup_logging(cfg.verbose)

    engine = PortEngine(cfg)
    if args.once:
        print(dumps(ports_payload(engine, include_all_udp=args.all_udp)))
        return 0

    if not engine.test_access():
        log.warning("proc access is degraded; owners may show as 'unknown'")
    app = create_app(cfg, engine)
    log.info("Serving on http://%s:%d", args.host, args.port)
    app.run(host=args.host, port=args.port, debug=False, use_reloader=False)
    return 0

if __name__ == '__main__':
    sys.exit(main())
