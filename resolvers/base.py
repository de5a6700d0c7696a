# resolvers/base.py
from abc import ABC, abstractmethod
from typing import Optional


class BaseNameResolver(ABC):
    """Abstract base class for one source of device names."""

    name = "base"

    @abstractmethod
    async def resolve(self, ip: str) -> Optional[str]:
        """Looks up a human-readable name for a device.

        Returns:
            The name, or None when this source has nothing for ``ip``.
            Implementations may also raise; the chain treats that as None.
        """
        pass
