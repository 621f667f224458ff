"""Connection key helpers."""
from __future__ import annotations

from ipaddress import ip_address
from typing import Optional, Tuple


def _endpoint_key(ip: str, port: int):
    try:
        addr = ip_address(ip)
        return (addr.version, addr, port)
    except ValueError:
        return (0, ip, port)


def connection_id(src_ip: Optional[str],
                  dst_ip: Optional[str],
                  src_port: Optional[int],
                  dst_port: Optional[int],
                  transport: str) -> Optional[str]:
    """
    Direction-independent connection id.

    Both directions of a connection map to the same id, so requests and
    their answers land in the same transaction index.
    """
    endpoints = connection_endpoints(src_ip, dst_ip, src_port, dst_port)
    if endpoints is None:
        return None
    a_ip, a_port, b_ip, b_port = endpoints
    return f"{a_ip}:{a_port}-{b_ip}:{b_port}-{transport}"


def connection_endpoints(src_ip: Optional[str],
                         dst_ip: Optional[str],
                         src_port: Optional[int],
                         dst_port: Optional[int]) -> Optional[Tuple[str, int, str, int]]:
    if not src_ip or not dst_ip:
        return None
    if src_port is None or dst_port is None:
        return None

    src_ip = str(src_ip)
    dst_ip = str(dst_ip)
    src_port = int(src_port)
    dst_port = int(dst_port)

    if _endpoint_key(src_ip, src_port) <= _endpoint_key(dst_ip, dst_port):
        return src_ip, src_port, dst_ip, dst_port
    return dst_ip, dst_port, src_ip, src_port
