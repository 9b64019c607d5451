# backend/wizard/connectivity.py
# Connectivity checks run by the wizard's test step and integration retries

import logging
from abc import ABC, abstractmethod
from typing import Optional

import httpx
from pydantic import BaseModel

from .catalog import Platform

logger = logging.getLogger(__name__)


class ConnectivityResult(BaseModel):
    success: bool
    message: str


class ConnectivityChecker(ABC):
    """Checks that source and target platforms are reachable"""

    @abstractmethod
    async def check(self, source: Platform, target: Platform) -> ConnectivityResult:
        pass

    async def close(self) -> None:
        pass


class SimulatedConnectivityChecker(ConnectivityChecker):
    """
    Offline checker

    Succeeds unless the platform id is listed in `failing`. Used in
    development and tests; production wiring probes the real platforms.
    """

    def __init__(self, failing: Optional[set] = None):
        self.failing = set(failing or ())
        self.calls = 0

    async def check(self, source: Platform, target: Platform) -> ConnectivityResult:
        self.calls += 1
        for platform in (source, target):
            if platform.id in self.failing:
                return ConnectivityResult(
                    success=False,
                    message=f"Could not reach {platform.name}",
                )
        return ConnectivityResult(
            success=True,
            message=f"Connected {source.name} to {target.name}",
        )


class HttpConnectivityChecker(ConnectivityChecker):
    """Probes each platform's status URL; any response below 500 counts as reachable"""

    def __init__(self, http_client: Optional[httpx.AsyncClient] = None, timeout: float = 10.0):
        self.http_client = http_client or httpx.AsyncClient(timeout=timeout, follow_redirects=True)

    async def _probe(self, platform: Platform) -> Optional[str]:
        if not platform.status_url:
            return None
        try:
            response = await self.http_client.get(platform.status_url)
        except httpx.HTTPError as e:
            logger.warning("Connectivity probe to %s failed: %s", platform.id, e)
            return f"Could not reach {platform.name}"
        if response.status_code >= 500:
            return f"{platform.name} returned {response.status_code}"
        return None

    async def check(self, source: Platform, target: Platform) -> ConnectivityResult:
        for platform in (source, target):
            error = await self._probe(platform)
            if error:
                return ConnectivityResult(success=False, message=error)
        return ConnectivityResult(
            success=True,
            message=f"Connected {source.name} to {target.name}",
        )

    async def close(self) -> None:
        await self.http_client.aclose()
