# resolvers/mdns.py
import logging
from typing import Awaitable, Callable, List, Optional

from .base import BaseNameResolver
from utils import CommandError, run_command

logger = logging.getLogger(__name__)


class MdnsResolver(BaseNameResolver):
    """Multicast-DNS reverse lookup through avahi."""

    name = "mdns"

    def __init__(self, timeout: float = 5.0,
                 runner: Callable[..., Awaitable[str]] = run_command):
        self.timeout = timeout
        self.runner = runner

    def command(self, ip: str) -> List[str]:
        return ["avahi-resolve-address", ip]

    async def resolve(self, ip: str) -> Optional[str]:
        try:
            output = await self.runner(self.command(ip), timeout=self.timeout)
        except CommandError as e:
            logger.debug(f"mDNS lookup failed for {ip}: {e}")
            return None

        # "192.168.1.5\tprinter.local"
        fields = output.split("\t")
        if len(fields) < 2:
            return None
        return fields[1].strip() or None
