"""Packet path catalog.

This module provides the kernel packet paths known to the simulator,
currently the TCP/IPv4 egress and ingress paths of Linux 5.10.8.
"""

from typing import Callable, Dict, List

from packet_sim.core.path import PacketPath
from packet_sim.paths.egress import TCP_IPV4_EGRESS, build_tcp_ipv4_egress_path
from packet_sim.paths.ingress import TCP_IPV4_INGRESS, build_tcp_ipv4_ingress_path

PATH_BUILDERS: Dict[str, Callable[[], PacketPath]] = {
    TCP_IPV4_EGRESS: build_tcp_ipv4_egress_path,
    TCP_IPV4_INGRESS: build_tcp_ipv4_ingress_path,
}


def build_all_paths() -> List[PacketPath]:
    """Build every known path, egress first."""
    return [builder() for builder in PATH_BUILDERS.values()]


def get_path(path_id: str) -> PacketPath:
    """Build a single path by ID.

    Raises:
        KeyError: If no path has the given ID.
    """
    if path_id not in PATH_BUILDERS:
        raise KeyError(f"Unknown path: {path_id}")
    return PATH_BUILDERS[path_id]()
