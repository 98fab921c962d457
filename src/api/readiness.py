"""
Readiness prober - is the operator's management API healthy?

Used by external load balancers and orchestrators through App.is_ready().
Every failure mode (bad address, transport error, timeout, non-200)
reports "not ready"; nothing is raised to the caller.
"""

from __future__ import annotations

import asyncio
from typing import Optional

import httpx

from utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.READINESS)

HEALTH_PATH = "/healthz"
READINESS_TIMEOUT = 0.1  # seconds, independent of any caller deadline


class ReadinessProber:
    """
    Checks GET http://{http_addr}/healthz with a hard 100ms deadline.

    One HTTP client is kept per prober and built outside the deadline, so
    client setup never counts against it. Safe to call concurrently and
    repeatedly; aclose() releases the client.
    """

    def __init__(self, http_addr: str, timeout: float = READINESS_TIMEOUT):
        self.http_addr = http_addr
        self.timeout = timeout
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def url(self) -> str:
        return f"http://{self.http_addr}{HEALTH_PATH}"

    async def is_ready(self) -> bool:
        client = self._get_client()
        try:
            return await asyncio.wait_for(self._get_healthz(client), timeout=self.timeout)
        except asyncio.TimeoutError:
            log.debug("Health request timed out", url=self.url, timeout=f"{self.timeout}s")
            return False

    async def aclose(self) -> None:
        if self._client is not None:
            client, self._client = self._client, None
            await client.aclose()

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            # Plain http only: no CA bundle to load
            self._client = httpx.AsyncClient(timeout=httpx.Timeout(self.timeout), verify=False)
        return self._client

    async def _get_healthz(self, client: httpx.AsyncClient) -> bool:
        try:
            request = client.build_request("GET", self.url)
        except Exception as e:
            # httpx.InvalidURL, ValueError on malformed addresses
            log.warn("Unable to build get health request", url=self.url, error=str(e))
            return False

        try:
            response = await client.send(request)
        except httpx.HTTPError as e:
            log.debug("Unable to execute get health request", url=self.url, error=repr(e))
            return False
        except Exception as e:
            # Socket-level failures may surface unwrapped (e.g. port out of range)
            log.debug("Get health request failed", url=self.url, error=repr(e))
            return False

        return response.status_code == 200
