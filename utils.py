# utils.py
import re
import asyncio
import logging
from typing import List, Optional

logger = logging.getLogger(__name__)

ZERO_MAC = "00:00:00:00:00:00"
BROADCAST_MAC = "FF:FF:FF:FF:FF:FF"


class CommandError(Exception):
    """Raised when an external command cannot be launched, times out or fails."""

    def __init__(self, command: List[str], reason: str):
        super().__init__(f"{' '.join(command)}: {reason}")
        self.command = command
        self.reason = reason


def format_mac(mac: str) -> Optional[str]:
    """Formats a MAC address to uppercase colon-separated octets.

    Accepts hyphen or colon separators and unpadded octets ("a:b:c:d:e:f").
    Returns None if the input is not a 6-octet hex address.
    """
    parts = re.split(r"[:-]", mac.strip())
    if len(parts) != 6:
        return None
    if not all(re.fullmatch(r"[0-9A-Fa-f]{1,2}", part) for part in parts):
        return None
    return ":".join(part.zfill(2).upper() for part in parts)


def is_valid_ipv4(ip: str) -> bool:
    """Checks if a string is a valid IPv4 address."""
    pattern = r"^(\d{1,3}\.){3}\d{1,3}$"
    if re.match(pattern, ip):
        parts = ip.split('.')
        return all(0 <= int(part) <= 255 for part in parts)
    return False


async def run_command(command: List[str], timeout: Optional[float] = None) -> str:
    """Runs a local command and returns its standard output as text.

    Args:
        command: Program and arguments, passed without a shell.
        timeout: Seconds to wait before the process is killed.

    Raises:
        CommandError: The program is missing, timed out or exited non-zero.
    """
    try:
        process = await asyncio.create_subprocess_exec(
            *command,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as e:
        raise CommandError(command, f"cannot launch: {e}") from e

    try:
        stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=timeout)
    except asyncio.TimeoutError as e:
        try:
            process.kill()
        except ProcessLookupError:
            pass  # exited as the timeout fired
        await process.wait()
        raise CommandError(command, f"timed out after {timeout}s") from e

    if process.returncode != 0:
        error = stderr.decode(errors="replace").strip()
        raise CommandError(command, f"exit status {process.returncode} {error}".strip())
    return stdout.decode(errors="replace")
