from __future__ import annotations
import logging

LOG_FORMAT = "[%(levelname)s] %(name)s: %(message)s"

def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format=LOG_FORMAT)
    logging.getLogger("portprobe").setLevel(level)
    # werkzeug logs one line per request at INFO
    logging.getLogger("werkzeug").setLevel(logging.INFO if verbose else logging.WARNING)
