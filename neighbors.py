# neighbors.py
import re
import math
import asyncio
import logging
import platform
from typing import Awaitable, Callable, Dict, Iterable, List, Optional

from utils import BROADCAST_MAC, ZERO_MAC, CommandError, format_mac, run_command

logger = logging.getLogger(__name__)

PROBE_WINDOW = 50

# Windows "arp -a":  192.168.1.10          aa-bb-cc-dd-ee-ff     dynamic
TABLE_PATTERN = re.compile(r"^\s*(\d+\.\d+\.\d+\.\d+)\s+([0-9a-fA-F:-]{17})", re.MULTILINE)
# Linux "arp -n":    192.168.1.20   ether   a1:b2:c3:d4:e5:f6   C   eth0
ETHER_PATTERN = re.compile(r"^(\d+\.\d+\.\d+\.\d+)\s+ether\s+([0-9a-fA-F:]{17})", re.MULTILINE)
# BSD "arp -a":      ? (192.168.1.30) at a:b:c:d:e:f on en0 ifscope [ethernet]
BSD_PATTERN = re.compile(
    r"\((\d+\.\d+\.\d+\.\d+)\)\s+at\s+([0-9a-fA-F]{1,2}(?::[0-9a-fA-F]{1,2}){5})\b"
)

# Earlier patterns take precedence when two layouts claim the same IP.
NEIGHBOR_PATTERNS = (
    ("table", TABLE_PATTERN),
    ("ether", ETHER_PATTERN),
    ("bsd", BSD_PATTERN),
)

Probe = Callable[[str, int], Awaitable[object]]


class NeighborCacheUnavailable(Exception):
    """The OS neighbor table could not be read."""


def is_windows() -> bool:
    return platform.system().lower().startswith("win")


def ping_command(ip: str, timeout_ms: int) -> List[str]:
    """Builds a single echo-request command for the current platform."""
    if is_windows():
        return ["ping", "-n", "1", "-w", str(timeout_ms), ip]
    # POSIX ping takes whole seconds
    return ["ping", "-c", "1", "-W", str(max(1, math.ceil(timeout_ms / 1000))), ip]


async def ping_host(ip: str, timeout_ms: int) -> None:
    """Sends one echo request to ip. Raises CommandError when unanswered."""
    await run_command(ping_command(ip, timeout_ms), timeout=timeout_ms / 1000 + 1)


async def _ignore_result(probe: Probe, ip: str, timeout_ms: int) -> None:
    """Runs a probe for its side effect on the neighbor table and drops the outcome."""
    try:
        await probe(ip, timeout_ms)
    except Exception:  # pylint: disable=broad-except
        pass


async def probe_subnet(addresses: Iterable[str], timeout_ms: int = 100,
                       window: int = PROBE_WINDOW, probe: Optional[Probe] = None) -> None:
    """Probes every address so the kernel learns their hardware addresses.

    At most ``window`` probes are in flight; each window is awaited in full
    before the next one starts. No probe failure reaches the caller.

    Args:
        addresses: Candidate addresses, consumed lazily.
        timeout_ms: Per-probe timeout in milliseconds.
        window: Number of probes issued together.
        probe: Coroutine function ``(ip, timeout_ms)``; defaults to ping_host.
    """
    probe = probe or ping_host
    batch: List[Awaitable[None]] = []
    count = 0

    for ip in addresses:
        batch.append(_ignore_result(probe, ip, timeout_ms))
        count += 1
        if len(batch) >= window:
            await asyncio.gather(*batch)
            batch = []
            logger.debug(f"Probed {count} addresses so far...")
    if batch:
        await asyncio.gather(*batch)
    logger.info(f"Finished probing {count} addresses.")


def neighbor_command() -> List[str]:
    """The neighbor-table utility for the current platform."""
    if is_windows():
        return ["arp", "-a"]
    if platform.system() == "Linux":
        return ["arp", "-n"]
    # BSD arp needs -a to list the table
    return ["arp", "-an"]


async def read_neighbor_cache(command: Optional[List[str]] = None, timeout: float = 5.0) -> str:
    """Returns the raw text of the OS neighbor table.

    Raises:
        NeighborCacheUnavailable: The utility is missing, timed out or failed.
    """
    command = command or neighbor_command()
    try:
        output = await run_command(command, timeout=timeout)
    except CommandError as e:
        raise NeighborCacheUnavailable(str(e)) from e
    logger.debug(f"Successfully ran '{' '.join(command)}'.")
    return output


def parse_neighbor_cache(output: str) -> Dict[str, str]:
    """Extracts IP -> MAC pairs from neighbor table text.

    Every known layout is matched over the whole text; the first layout to
    report an IP wins. Zero and broadcast hardware addresses are dropped.
    Unrecognised text yields an empty dict.
    """
    neighbors: Dict[str, str] = {}
    counts: Dict[str, int] = {}

    for layout, pattern in NEIGHBOR_PATTERNS:
        counts[layout] = 0
        for match in pattern.finditer(output):
            ip = match.group(1)
            mac = format_mac(match.group(2))
            if mac is None or mac in (ZERO_MAC, BROADCAST_MAC):
                continue
            if ip in neighbors:
                continue
            neighbors[ip] = mac
            counts[layout] += 1

    logger.debug("Parsed neighbor entries: " + ", ".join(f"{k}={v}" for k, v in counts.items()))
    return neighbors
