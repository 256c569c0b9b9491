from __future__ import annotations
import logging
from typing import AbstractSet, List, Optional

from ..config import LISTEN_STATE, SOCKET_TABLES
from ..models import ListeningSocket, Protocol, RuntimeEnvironmentState
from ..utils.net import parse_hex_address
from .procfs import ProcFS
from .roots import table_path

log = logging.getLogger(__name__)

MIN_COLUMNS = 10

def parse_line(line: str, protocol: Protocol, udp_ports: Optional[AbstractSet[int]] = None,
               decode_ipv6: bool = False) -> Optional[ListeningSocket]:
    """
    One row of /proc/net/{tcp,tcp6,udp,udp6}:
      sl  local_address rem_address   st tx_queue rx_queue tr tm->when retrnsmt   uid  timeout inode
      0: 0100007F:0CEA 00000000:0000 0A 00000000:00000000 00:00000000 00000000  1000        0 28990 ...
    Returns None for rows that are malformed or filtered out.
    """
    parts = line.split()
    if len(parts) < MIN_COLUMNS:
        return None
    local, state, inode = parts[1], parts[3], parts[9]

    if protocol is Protocol.TCP and state.upper() != LISTEN_STATE:
        return None

    addr_hex, _, port_hex = local.partition(":")
    try:
        port = int(port_hex, 16)
        inode_num = int(inode, 10)
    except ValueError:
        return None
    if not 1 <= port <= 65535 or inode_num < 0:
        return None
    if protocol is Protocol.UDP and udp_ports is not None and port not in udp_ports:
        return None

    return ListeningSocket(
        protocol=protocol,
        local_address=parse_hex_address(addr_hex, decode_ipv6),
        local_port=port,
        inode=inode_num,
    )

def parse_table(text: str, protocol: Protocol, udp_ports: Optional[AbstractSet[int]] = None,
                decode_ipv6: bool = False) -> List[ListeningSocket]:
    out: List[ListeningSocket] = []
    for line in text.strip().splitlines()[1:]:
        sock = parse_line(line, protocol, udp_ports, decode_ipv6)
        if sock is not None:
            out.append(sock)
    return out

def read_sockets(fs: ProcFS, env: RuntimeEnvironmentState, protocol: Protocol,
                 udp_ports: Optional[AbstractSet[int]] = None,
                 decode_ipv6: bool = False) -> List[ListeningSocket]:
    """Listening sockets from both address families of `protocol`.

    `udp_ports` is the UDP allowlist; None keeps every UDP port. An
    unreadable table only drops its own family.
    """
    sockets: List[ListeningSocket] = []
    for name in SOCKET_TABLES[protocol.value]:
        path = table_path(env, name)
        text = fs.read_text(path)
        if text is None:
            log.warning("Warning reading network file %s: not readable, skipping", path)
            continue
        sockets.extend(parse_table(text, protocol, udp_ports, decode_ipv6))
    return sockets
