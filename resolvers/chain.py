# resolvers/chain.py
import re
import logging
from typing import List, Optional, Sequence

from .base import BaseNameResolver
from device import UNKNOWN

logger = logging.getLogger(__name__)


def _clean_name(name: Optional[str]) -> Optional[str]:
    """Collapses whitespace; empty and "Unknown" names count as no result."""
    if not name:
        return None
    name = re.sub(r"\s+", " ", name).strip()
    if not name or name == UNKNOWN:
        return None
    return name


class NameResolutionChain:
    """Tries each name source in order; the first usable name wins."""

    def __init__(self, resolvers: Sequence[BaseNameResolver]):
        self.resolvers: List[BaseNameResolver] = list(resolvers)

    async def resolve(self, ip: str) -> str:
        """Returns the first name any source reports for ip, else "Unknown".

        A source that raises is logged and skipped; it never stops the
        remaining sources from running.
        """
        for resolver in self.resolvers:
            try:
                name = _clean_name(await resolver.resolve(ip))
            except Exception as e:  # pylint: disable=broad-except
                logger.debug(f"[{resolver.name}] lookup raised for {ip}: {e!r}")
                continue
            if name:
                logger.debug(f"[{resolver.name}] {ip} -> {name}")
                return name
        return UNKNOWN
