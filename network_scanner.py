# network_scanner.py
import argparse
import asyncio
import json
import logging
import socket
import sys
from pathlib import Path
from typing import Awaitable, Callable, List, Optional

import psutil
from dynaconf import Dynaconf
from mac_vendor_lookup import AsyncMacLookup

from data import load_vendor_table
from device import DiscoveredDevice, NeighborEntry, NetworkInterface
from neighbors import (PROBE_WINDOW, NeighborCacheUnavailable, Probe, parse_neighbor_cache,
                       probe_subnet, read_neighbor_cache)
from resolvers import NameResolutionChain, get_resolvers
from subnet import filter_subnet, host_addresses
from vendor import VendorResolver

BASE_DIR = Path(__file__).resolve().parent

# Load settings
config = Dynaconf(
    root_path=str(BASE_DIR),
    settings_files=['config/settings.toml'],
    envvar_prefix="NETSCAN",
)

logger = logging.getLogger(__name__)

DEFAULT_PING_TIMEOUT_MS = 100
DEFAULT_OUI_FILE = "config/ouis.json"


class InterfaceEnumerationError(Exception):
    """The operating system's network interfaces could not be listed."""


def _family_name(family) -> str:
    if family == socket.AF_INET:
        return "IPv4"
    if family == socket.AF_INET6:
        return "IPv6"
    return "link"


def list_interfaces() -> List[NetworkInterface]:
    """Snapshot of every interface address, in the order the OS reports them."""
    try:
        addresses = psutil.net_if_addrs()
    except Exception as e:  # pylint: disable=broad-except
        raise InterfaceEnumerationError(f"Cannot enumerate network interfaces: {e}") from e

    interfaces: List[NetworkInterface] = []
    for name, addrs in addresses.items():
        for addr in addrs:
            interfaces.append(NetworkInterface(
                name=name,
                address=addr.address,
                netmask=addr.netmask,
                family=_family_name(addr.family),
            ))
    return interfaces


class NetworkScanner:
    """Discovers and enriches the neighbors of each local IPv4 interface."""

    def __init__(self, vendor_resolver: VendorResolver, name_chain: NameResolutionChain,
                 interface_filter: Optional[str] = None,
                 timeout_ms: int = DEFAULT_PING_TIMEOUT_MS,
                 probe_window: int = PROBE_WINDOW,
                 include_loopback: bool = False,
                 interfaces: Callable[[], List[NetworkInterface]] = list_interfaces,
                 probe: Optional[Probe] = None,
                 read_cache: Optional[Callable[[], Awaitable[str]]] = None):
        self.vendor_resolver = vendor_resolver
        self.name_chain = name_chain
        self.interface_filter = interface_filter
        self.timeout_ms = timeout_ms
        self.probe_window = probe_window
        self.include_loopback = include_loopback
        self.interfaces = interfaces
        self.probe = probe
        self.read_cache = read_cache or read_neighbor_cache

    def _should_scan(self, iface: NetworkInterface) -> bool:
        if self.interface_filter and iface.name != self.interface_filter:
            logger.debug(f"Skipping interface {iface.name} (filter applied).")
            return False
        if iface.family != "IPv4":
            logger.debug(f"Skipping interface {iface.name} address {iface.address} (not IPv4).")
            return False
        if not iface.netmask:
            logger.warning(f"Skipping interface {iface.name}: no netmask for {iface.address}.")
            return False
        if iface.address.startswith("127.") and not self.include_loopback:
            logger.debug(f"Skipping loopback interface {iface.name}.")
            return False
        return True

    async def scan(self) -> List[DiscoveredDevice]:
        """Scans every selected interface and returns all discovered devices.

        Raises:
            InterfaceEnumerationError: The interface list could not be read.
        """
        interfaces = self.interfaces()
        logger.info(f"Found {len(interfaces)} interface addresses.")

        results: List[DiscoveredDevice] = []
        for iface in interfaces:
            if not self._should_scan(iface):
                continue
            results.extend(await self.scan_interface(iface))

        logger.info(f"Scan complete. Total devices found: {len(results)}")
        return results

    async def scan_interface(self, iface: NetworkInterface) -> List[DiscoveredDevice]:
        """Runs the probe, read, parse, filter and enrich steps for one interface."""
        logger.info(f"Probing subnet of {iface.name} ({iface.address}/{iface.netmask})...")
        await probe_subnet(host_addresses(iface.address, iface.netmask),
                           timeout_ms=self.timeout_ms, window=self.probe_window, probe=self.probe)

        try:
            raw = await self.read_cache()
        except NeighborCacheUnavailable as e:
            logger.warning(f"Neighbor cache unavailable on {iface.name}: {e}")
            return []

        neighbors = parse_neighbor_cache(raw)
        logger.info(f"Neighbor cache contains {len(neighbors)} entries.")
        if not neighbors:
            logger.warning("Neighbor cache is empty. Ensure you have permissions.")
            return []

        entries = filter_subnet(neighbors, iface.address, iface.netmask)
        if not entries:
            logger.warning(f"No devices found in the subnet of {iface.name}.")
            return []

        return await self.enrich(entries, iface.name)

    async def enrich(self, entries: List[NeighborEntry], interface_name: str) -> List[DiscoveredDevice]:
        """Adds vendor and name to each entry, one device at a time, in order."""
        devices: List[DiscoveredDevice] = []
        for idx, entry in enumerate(entries, start=1):
            vendor = self.vendor_resolver.lookup(entry.mac)
            name = await self.name_chain.resolve(entry.ip)
            device = DiscoveredDevice(ip=entry.ip, mac=entry.mac, interface=interface_name,
                                      vendor=vendor, name=name)
            logger.debug(f"[{idx:2}] {entry.ip:<15} | MAC: {entry.mac:<17} | "
                         f"OUI: {VendorResolver.oui(entry.mac):<6} | Vendor: {vendor:<30} | Name: {name}")
            devices.append(device)
        return devices


def _oui_path(oui_file: Optional[str]) -> Path:
    path = Path(oui_file or config.get("scanner", {}).get("oui_file", DEFAULT_OUI_FILE))
    return path if path.is_absolute() else BASE_DIR / path


async def update_vendor_cache() -> None:
    """Downloads a fresh OUI list into the mac_vendor_lookup cache file."""
    try:
        await AsyncMacLookup().update_vendors()
        logger.info("MAC vendor database updated.")
    except Exception as e:  # pylint: disable=broad-except
        logger.warning(f"Could not update MAC vendor database: {e}")


async def run_scan(interface: Optional[str] = None, timeout_ms: Optional[int] = None,
                   oui_file: Optional[str] = None, update_mac_db: bool = False) -> List[DiscoveredDevice]:
    """Main function to perform the network scan."""
    logger.info("Starting network scan")
    scanner_settings = config.get("scanner", {}) or {}

    if update_mac_db:
        await update_vendor_cache()

    # Loaded once, before any concurrent work
    vendor_table = load_vendor_table(_oui_path(oui_file))

    neighbor_command = list(scanner_settings.get("neighbor_command") or []) or None
    command_timeout = scanner_settings.get("command_timeout", 5.0)

    async def read_cache() -> str:
        return await read_neighbor_cache(neighbor_command, timeout=command_timeout)

    scanner = NetworkScanner(
        vendor_resolver=VendorResolver(vendor_table),
        name_chain=NameResolutionChain(get_resolvers(config)),
        interface_filter=interface or scanner_settings.get("interface") or None,
        timeout_ms=(scanner_settings.get("ping_timeout_ms", DEFAULT_PING_TIMEOUT_MS)
                    if timeout_ms is None else timeout_ms),
        probe_window=scanner_settings.get("probe_window", PROBE_WINDOW),
        include_loopback=scanner_settings.get("include_loopback", False),
        read_cache=read_cache,
    )
    return await scanner.scan()


def format_device(device: DiscoveredDevice) -> str:
    return (f"[{device.interface:<9}] {device.ip:<15} - {device.mac:<17} "
            f"({device.vendor or 'Unknown':<30}) [{device.name or 'Unknown':<25}]")


def main() -> int:
    parser = argparse.ArgumentParser(description="Local network neighbor scanner")
    parser.add_argument("--interface", help="Only scan this network interface")
    parser.add_argument("--timeout", type=int, help="Per-probe timeout in milliseconds (default 100)")
    parser.add_argument("--oui-file", help="OUI vendor table (JSON records or PREFIX:Name text)")
    parser.add_argument("--update-mac-db", action="store_true", help="Force update of the MAC vendor database")
    parser.add_argument("--json", action="store_true", help="Print results as JSON")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    if args.debug:
        logging.basicConfig(level=logging.DEBUG, format='%(asctime)s - %(levelname)s - %(message)s')
    else:
        logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')

    try:
        devices = asyncio.run(run_scan(interface=args.interface, timeout_ms=args.timeout,
                                       oui_file=args.oui_file, update_mac_db=args.update_mac_db))
    except InterfaceEnumerationError as e:
        logger.error(str(e))
        return 1

    if args.json:
        print(json.dumps([device.to_dict() for device in devices], indent=4))
    elif not devices:
        logger.info("No devices found. Try running with elevated privileges and ensure ICMP/ARP are allowed.")
    else:
        print(f"Found {len(devices)} devices:")
        for device in devices:
            print(format_device(device))
    return 0


if __name__ == "__main__":
    sys.exit(main())
