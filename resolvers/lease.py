# resolvers/lease.py
import re
import asyncio
import logging
from pathlib import Path
from typing import Callable, Iterable, Optional

from .base import BaseNameResolver

logger = logging.getLogger(__name__)

DEFAULT_LEASE_FILES = [
    "/var/lib/dhcp/dhclient.leases",
    "/var/lib/dhcp/dhcpd.leases",
    "/var/lib/misc/dnsmasq.leases",
]


def read_lease_file(path: Path) -> str:
    return path.read_text(encoding="utf-8", errors="replace")


class LeaseFileResolver(BaseNameResolver):
    """Client hostnames recorded in local DHCP lease files."""

    name = "lease"

    def __init__(self, lease_files: Iterable[str] = DEFAULT_LEASE_FILES,
                 reader: Callable[[Path], str] = read_lease_file):
        self.lease_files = [Path(p) for p in lease_files]
        self.reader = reader

    @staticmethod
    def _parse_isc_leases(text: str, ip: str) -> Optional[str]:
        """Hostname from ISC-style ``lease <ip> { ... }`` blocks; the newest block wins."""
        blocks = re.findall(r"lease\s+" + re.escape(ip) + r"\s*\{([^}]*)\}", text)
        if not blocks:
            return None
        match = re.search(r"client-hostname\s+\"([^\"]+)\"", blocks[-1])
        return match.group(1) if match else None

    @staticmethod
    def _parse_dnsmasq_leases(text: str, ip: str) -> Optional[str]:
        """Hostname from dnsmasq lines: ``expiry mac ip hostname client-id``."""
        for line in text.splitlines():
            parts = line.split()
            if len(parts) < 4:
                continue
            _, _, lease_ip, hostname, *_ = parts
            if lease_ip == ip and hostname != "*":
                return hostname
        return None

    async def resolve(self, ip: str) -> Optional[str]:
        loop = asyncio.get_running_loop()
        for path in self.lease_files:
            try:
                text = await loop.run_in_executor(None, self.reader, path)
            except OSError as e:
                logger.debug(f"Cannot read lease file {path}: {e}")
                continue
            hostname = self._parse_isc_leases(text, ip) or self._parse_dnsmasq_leases(text, ip)
            if hostname:
                logger.debug(f"Lease hostname for {ip} in {path}: {hostname}")
                return hostname
        return None
