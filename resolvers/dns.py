# resolvers/dns.py
import socket
import asyncio
import logging
from typing import Callable, Optional

from .base import BaseNameResolver

logger = logging.getLogger(__name__)


def system_ptr_lookup(ip: str) -> str:
    """PTR lookup through the system resolver (blocking)."""
    return socket.gethostbyaddr(ip)[0]


class ReverseDnsResolver(BaseNameResolver):
    """Reverse DNS (PTR record of the in-addr.arpa name)."""

    name = "dns"

    def __init__(self, timeout_ms: int = 1000,
                 lookup: Callable[[str], Optional[str]] = system_ptr_lookup):
        self.timeout_ms = timeout_ms
        self.lookup = lookup

    async def resolve(self, ip: str) -> Optional[str]:
        loop = asyncio.get_running_loop()
        try:
            name = await asyncio.wait_for(
                loop.run_in_executor(None, self.lookup, ip),
                timeout=self.timeout_ms / 1000,
            )
        except (OSError, asyncio.TimeoutError) as e:
            logger.debug(f"PTR lookup failed for {ip}: {e!r}")
            return None

        if not name:
            return None
        if name.endswith("."):
            name = name[:-1]
        logger.debug(f"PTR for {ip}: {name}")
        return name or None
