# resolvers/__init__.py
from typing import List, Mapping

from .base import BaseNameResolver
from .chain import NameResolutionChain
from .dns import ReverseDnsResolver
from .lease import DEFAULT_LEASE_FILES, LeaseFileResolver
from .mdns import MdnsResolver
from .netbios import NetbiosResolver
from .upnp import UpnpResolver

DEFAULT_ORDER = ["lease", "upnp", "mdns", "netbios", "dns"]


def get_resolvers(config: Mapping) -> List[BaseNameResolver]:
    """Resolver factory: builds the name sources in their configured order."""

    settings = config.get("resolvers", {}) or {}
    command_timeout = settings.get("command_timeout", 5.0)

    resolvers: List[BaseNameResolver] = []
    for resolver_type in settings.get("order", DEFAULT_ORDER):
        if resolver_type == "lease":
            resolvers.append(LeaseFileResolver(settings.get("lease_files", DEFAULT_LEASE_FILES)))
        elif resolver_type == "upnp":
            resolvers.append(UpnpResolver(
                port=settings.get("upnp_port", 1900),
                path=settings.get("upnp_path", "/description.xml"),
                timeout_ms=settings.get("upnp_timeout_ms", 500),
            ))
        elif resolver_type == "mdns":
            resolvers.append(MdnsResolver(timeout=command_timeout))
        elif resolver_type == "netbios":
            resolvers.append(NetbiosResolver(timeout=command_timeout))
        elif resolver_type == "dns":
            resolvers.append(ReverseDnsResolver(timeout_ms=settings.get("dns_timeout_ms", 1000)))
        else:
            raise ValueError(f"Unsupported resolver type: {resolver_type}")
    return resolvers


__all__ = [
    "BaseNameResolver",
    "NameResolutionChain",
    "LeaseFileResolver",
    "UpnpResolver",
    "MdnsResolver",
    "NetbiosResolver",
    "ReverseDnsResolver",
    "get_resolvers",
]
