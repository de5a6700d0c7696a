# resolvers/netbios.py
import re
import logging
from typing import Awaitable, Callable, List, Optional

from .base import BaseNameResolver
from neighbors import is_windows
from utils import CommandError, run_command

logger = logging.getLogger(__name__)

# nbtstat:    MYHOST         <00>  UNIQUE      Registered
# nmblookup:  MYHOST          <00> -         B <ACTIVE>
# Group names ("WORKGROUP <00> GROUP", "<00> - <GROUP>") are not device names.
UNIQUE_NAME_PATTERN = re.compile(r"^\s*(\S+)\s+<00>\s+(?:UNIQUE\b|-\s+(?!<GROUP>))", re.MULTILINE)


class NetbiosResolver(BaseNameResolver):
    """NetBIOS node status query via nbtstat (Windows) or nmblookup."""

    name = "netbios"

    def __init__(self, timeout: float = 5.0,
                 runner: Callable[..., Awaitable[str]] = run_command):
        self.timeout = timeout
        self.runner = runner

    def command(self, ip: str) -> List[str]:
        if is_windows():
            return ["nbtstat", "-A", ip]
        return ["nmblookup", "-A", ip]

    @staticmethod
    def parse(output: str) -> Optional[str]:
        match = UNIQUE_NAME_PATTERN.search(output)
        return match.group(1) if match else None

    async def resolve(self, ip: str) -> Optional[str]:
        try:
            output = await self.runner(self.command(ip), timeout=self.timeout)
        except CommandError as e:
            logger.debug(f"NetBIOS lookup failed for {ip}: {e}")
            return None
        return self.parse(output)
