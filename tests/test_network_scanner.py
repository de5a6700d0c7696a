"""Tests for the pipeline orchestrator and CLI entry point."""

import asyncio
import json
import socket
from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

import pytest

import network_scanner
from device import DiscoveredDevice, NetworkInterface
from neighbors import NeighborCacheUnavailable
from network_scanner import InterfaceEnumerationError, NetworkScanner, list_interfaces
from resolvers import BaseNameResolver, NameResolutionChain
from vendor import VendorResolver

ETH0 = NetworkInterface("eth0", "192.168.1.1", "255.255.255.0", "IPv4")

NEIGHBOR_TEXT = """Address                  HWtype  HWaddress           Flags Mask            Iface
192.168.1.20             ether   aa:bb:cc:11:22:33   C                     eth0
192.168.1.21             ether   00:00:00:00:00:00   C                     eth0
10.9.9.9                 ether   aa:bb:cc:44:55:66   C                     eth1
"""


class TableResolver(BaseNameResolver):
    name = "table"

    def __init__(self, names):
        self.names = names

    async def resolve(self, ip):
        return self.names.get(ip)


def make_scanner(interfaces, cache_text=NEIGHBOR_TEXT, names=None, probed=None, **kwargs):
    probed = probed if probed is not None else []

    async def probe(ip, timeout_ms):
        probed.append(ip)

    async def read_cache():
        if isinstance(cache_text, Exception):
            raise cache_text
        return cache_text

    return NetworkScanner(
        vendor_resolver=VendorResolver({"AABBCC": "Acme Corp"}),
        name_chain=NameResolutionChain([TableResolver(names or {})]),
        interfaces=lambda: list(interfaces),
        probe=probe,
        read_cache=read_cache,
        **kwargs,
    )


class TestNetworkScanner:
    """Tests for NetworkScanner.scan."""

    def test_end_to_end_single_device(self):
        """One valid in-subnet entry and one zero-MAC entry yield one device."""
        scanner = make_scanner([ETH0], names={"192.168.1.20": "laptop"})
        devices = asyncio.run(scanner.scan())
        assert devices == [DiscoveredDevice(ip="192.168.1.20", mac="AA:BB:CC:11:22:33",
                                            interface="eth0", vendor="Acme Corp", name="laptop")]

    def test_unresolved_fields_are_unknown(self):
        text = "192.168.1.30 ether 12:34:56:78:9a:bc\n"
        devices = asyncio.run(make_scanner([ETH0], cache_text=text).scan())
        assert devices[0].vendor == "Unknown"
        assert devices[0].name == "Unknown"

    def test_probes_whole_subnet(self):
        probed = []
        asyncio.run(make_scanner([ETH0], probed=probed, timeout_ms=50).scan())
        assert len(probed) == 253
        assert "192.168.1.1" not in probed

    def test_idempotent(self):
        scanner = make_scanner([ETH0], names={"192.168.1.20": "laptop"})
        assert asyncio.run(scanner.scan()) == asyncio.run(scanner.scan())

    def test_interface_filter(self):
        eth1 = NetworkInterface("eth1", "10.9.9.1", "255.255.255.0", "IPv4")
        devices = asyncio.run(make_scanner([ETH0, eth1], interface_filter="eth1").scan())
        assert [d.ip for d in devices] == ["10.9.9.9"]
        assert all(d.interface == "eth1" for d in devices)

    def test_interfaces_processed_in_os_order(self):
        eth1 = NetworkInterface("eth1", "10.9.9.1", "255.255.255.0", "IPv4")
        devices = asyncio.run(make_scanner([eth1, ETH0]).scan())
        assert [d.interface for d in devices] == ["eth1", "eth0"]

    def test_skips_non_ipv4_loopback_and_maskless(self):
        interfaces = [
            NetworkInterface("eth0", "fe80::1", "ffff:ffff:ffff:ffff::", "IPv6"),
            NetworkInterface("eth0", "aa:bb:cc:dd:ee:ff", None, "link"),
            NetworkInterface("lo", "127.0.0.1", "255.0.0.0", "IPv4"),
            NetworkInterface("tun0", "10.8.0.2", None, "IPv4"),
        ]
        probed = []
        assert asyncio.run(make_scanner(interfaces, probed=probed).scan()) == []
        assert probed == []

    def test_unavailable_cache_skips_interface(self):
        scanner = make_scanner([ETH0], cache_text=NeighborCacheUnavailable("arp: not found"))
        assert asyncio.run(scanner.scan()) == []

    def test_empty_cache_skips_interface(self):
        assert asyncio.run(make_scanner([ETH0], cache_text="").scan()) == []

    def test_no_interfaces(self):
        assert asyncio.run(make_scanner([]).scan()) == []

    def test_enumeration_failure_propagates(self):
        def interfaces():
            raise InterfaceEnumerationError("no access")

        scanner = make_scanner([])
        scanner.interfaces = interfaces
        with pytest.raises(InterfaceEnumerationError):
            asyncio.run(scanner.scan())


class TestListInterfaces:
    """Tests for list_interfaces."""

    def test_maps_families(self):
        addrs = {
            "eth0": [
                SimpleNamespace(family=socket.AF_INET, address="192.168.1.2", netmask="255.255.255.0"),
                SimpleNamespace(family=socket.AF_INET6, address="fe80::1", netmask=None),
                SimpleNamespace(family=-1, address="aa:bb:cc:dd:ee:ff", netmask=None),
            ],
        }
        with patch.object(network_scanner.psutil, "net_if_addrs", return_value=addrs):
            result = list_interfaces()
        assert [i.family for i in result] == ["IPv4", "IPv6", "link"]
        assert result[0] == NetworkInterface("eth0", "192.168.1.2", "255.255.255.0", "IPv4")

    def test_failure_raises(self):
        with patch.object(network_scanner.psutil, "net_if_addrs", side_effect=OSError("denied")):
            with pytest.raises(InterfaceEnumerationError):
                list_interfaces()


class TestMain:
    """Tests for the command line entry point."""

    def test_setup_failure_exit_status(self):
        with patch.object(network_scanner.psutil, "net_if_addrs", side_effect=OSError("denied")), \
                patch.object(network_scanner, "load_vendor_table", return_value={}), \
                patch("sys.argv", ["netscan"]):
            assert network_scanner.main() == 1

    def test_empty_scan_is_success(self, capsys):
        with patch.object(network_scanner.psutil, "net_if_addrs", return_value={}), \
                patch.object(network_scanner, "load_vendor_table", return_value={}), \
                patch("sys.argv", ["netscan", "--json"]):
            assert network_scanner.main() == 0
        assert json.loads(capsys.readouterr().out) == []

    def test_format_device(self):
        device = DiscoveredDevice("192.168.1.20", "AA:BB:CC:11:22:33", "eth0", "Acme Corp", "laptop")
        line = network_scanner.format_device(device)
        assert line.startswith("[eth0     ] 192.168.1.20    - AA:BB:CC:11:22:33 (Acme Corp")
        assert line.rstrip().endswith("[laptop                   ]")


class TestRunScan:
    """Tests for run_scan argument handling."""

    def _scanner_kwargs(self, **run_kwargs):
        with patch.object(network_scanner, "NetworkScanner") as scanner_cls, \
                patch.object(network_scanner, "load_vendor_table", return_value={}):
            scanner_cls.return_value.scan = AsyncMock(return_value=[])
            assert asyncio.run(network_scanner.run_scan(**run_kwargs)) == []
        return scanner_cls.call_args.kwargs

    def test_zero_timeout_is_kept(self):
        assert self._scanner_kwargs(timeout_ms=0)["timeout_ms"] == 0

    def test_missing_timeout_uses_settings(self):
        assert self._scanner_kwargs()["timeout_ms"] == 100
