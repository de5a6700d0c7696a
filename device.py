# device.py
from dataclasses import dataclass, asdict
from typing import Dict, Optional

UNKNOWN = "Unknown"


@dataclass(frozen=True)
class NetworkInterface:
    name: str
    address: str
    netmask: Optional[str]
    family: str  # "IPv4", "IPv6" or "link"


@dataclass(frozen=True)
class NeighborEntry:
    ip: str
    mac: str  # Uppercase, colon separated


@dataclass(frozen=True)
class DiscoveredDevice:
    ip: str
    mac: str
    interface: str
    vendor: Optional[str] = UNKNOWN
    name: Optional[str] = UNKNOWN

    def to_dict(self) -> Dict[str, Optional[str]]:
        return asdict(self)
