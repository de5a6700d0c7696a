# vendor.py
import re
import logging
from typing import Dict, Mapping

from device import UNKNOWN

logger = logging.getLogger(__name__)


class VendorResolver:
    """Resolves a MAC address to its organization through an OUI table."""

    def __init__(self, table: Mapping[str, str]):
        self.table: Dict[str, str] = dict(table)

    @staticmethod
    def oui(mac: str) -> str:
        """First 6 hex digits of a MAC address, uppercase, no separators."""
        return re.sub(r"[^0-9A-Fa-f]", "", mac).upper()[:6]

    def lookup(self, mac: str) -> str:
        vendor = self.table.get(self.oui(mac))
        if not vendor:
            logger.debug(f"No vendor for MAC {mac}")
            return UNKNOWN
        return vendor
