from __future__ import annotations
import socket, struct, ipaddress

UNSPECIFIED_V4 = "0.0.0.0"
UNSPECIFIED_V6 = "::"

def ipv4_from_hex(hex_addr: str) -> str:
    # /proc/net/* prints the address as one host-order (little-endian) dword
    return socket.inet_ntoa(struct.pack('<I', int(hex_addr, 16)))

def ipv6_from_bytes(b: bytes) -> str:
    return str(ipaddress.IPv6Address(b))

def ipv6_from_hex(hex_addr: str) -> str:
    # four little-endian dwords, each printed as 8 hex digits
    words = [int(hex_addr[i:i + 8], 16) for i in range(0, 32, 8)]
    return ipv6_from_bytes(struct.pack('<4I', *words))

def parse_hex_address(hex_addr: str, decode_ipv6: bool = False) -> str:
    """Decode the local-address half of a /proc/net socket row.

    IPv6 addresses collapse to '::' unless decode_ipv6 is set; listeners on a
    specific v6 address are then indistinguishable from wildcard ones.
    """
    try:
        if len(hex_addr) == 8:
            return ipv4_from_hex(hex_addr)
        if len(hex_addr) == 32:
            return ipv6_from_hex(hex_addr) if decode_ipv6 else UNSPECIFIED_V6
    except ValueError:
        pass
    return UNSPECIFIED_V4
