# subnet.py
import ipaddress
import logging
from typing import Dict, Iterator, List

from device import NeighborEntry
from utils import is_valid_ipv4

logger = logging.getLogger(__name__)


def ip_to_int(ip: str) -> int:
    """Converts a dotted-quad IPv4 address to a 32-bit unsigned integer."""
    return int(ipaddress.IPv4Address(ip))


def int_to_ip(value: int) -> str:
    return str(ipaddress.IPv4Address(value))


def host_addresses(ip: str, netmask: str) -> Iterator[str]:
    """Yields the usable host addresses of the subnet ip/netmask.

    The network and broadcast addresses are never produced, nor is ``ip``
    itself. Addresses are generated one at a time so that wide masks do not
    build a list of the whole range. A /31 or /32 mask yields nothing.
    """
    own = ip_to_int(ip)
    mask = ip_to_int(netmask)
    network = own & mask
    broadcast = network | (~mask & 0xFFFFFFFF)

    current = network + 1
    while current < broadcast:
        if current != own:
            yield int_to_ip(current)
        current += 1


def filter_subnet(neighbors: Dict[str, str], ip: str, netmask: str) -> List[NeighborEntry]:
    """Keeps the neighbor entries that lie in the subnet of ip/netmask.

    Args:
        neighbors: Parsed neighbor table, IP -> MAC, in table order.
        ip: Interface address.
        netmask: Interface netmask.

    Returns:
        The matching entries, in the order they appear in ``neighbors``.
    """
    mask = ip_to_int(netmask)
    network = ip_to_int(ip) & mask

    entries: List[NeighborEntry] = []
    for neighbor_ip, mac in neighbors.items():
        if not is_valid_ipv4(neighbor_ip):
            logger.debug(f"Ignoring malformed neighbor address {neighbor_ip}")
            continue
        if ip_to_int(neighbor_ip) & mask == network:
            entries.append(NeighborEntry(ip=neighbor_ip, mac=mac))
    logger.debug(f"Filtered {len(entries)} of {len(neighbors)} neighbors into {ip}/{netmask}")
    return entries
