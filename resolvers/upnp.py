# resolvers/upnp.py
import re
import html
import asyncio
import logging
from typing import Optional

import requests

from .base import BaseNameResolver

logger = logging.getLogger(__name__)

FRIENDLY_NAME_PATTERN = re.compile(r"<friendlyName>([^<]+)</friendlyName>", re.IGNORECASE)


class UpnpResolver(BaseNameResolver):
    """friendlyName from a device's UPnP description document."""

    name = "upnp"

    def __init__(self, port: int = 1900, path: str = "/description.xml",
                 timeout_ms: int = 500, http=requests):
        self.port = port
        self.path = path
        self.timeout_ms = timeout_ms
        self.http = http

    def url(self, ip: str) -> str:
        return f"http://{ip}:{self.port}{self.path}"

    def _fetch(self, url: str) -> Optional[str]:
        response = self.http.get(url, timeout=self.timeout_ms / 1000)
        if not response.ok:
            logger.debug(f"UPnP description at {url} returned {response.status_code}")
            return None
        return response.text

    async def resolve(self, ip: str) -> Optional[str]:
        loop = asyncio.get_running_loop()
        try:
            body = await asyncio.wait_for(
                loop.run_in_executor(None, self._fetch, self.url(ip)),
                timeout=self.timeout_ms / 1000,
            )
        except asyncio.TimeoutError:
            logger.debug(f"UPnP fetch for {ip} exceeded {self.timeout_ms} ms")
            return None
        except requests.RequestException as e:
            logger.debug(f"UPnP fetch failed for {ip}: {e}")
            return None

        match = FRIENDLY_NAME_PATTERN.search(body or "")
        if not match:
            return None
        return html.unescape(match.group(1)).strip() or None
