"""
Control Plane Gateway - Request/response access to the CrateDB Cloud API.

The gateway exposes one coroutine per (resource kind x remote action). It is
constructed once at startup and shared, read-only, by every reconciler.
Transport failures are retried here; HTTP statuses are returned untouched
for the reconciler to classify.
"""

import asyncio
import json
import logging
import random
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Optional

import aiohttp

from config import GatewayConfig, ProviderConfig
from errors import TransportError

logger = logging.getLogger(__name__)


@dataclass
class GatewayResponse:
    """Raw outcome of one remote call."""

    status: int
    reason: str = ""
    body: Any = None
    text: str = ""

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


class ControlPlaneGateway(ABC):
    """
    Abstract interface to the remote control plane.

    Implementations return a GatewayResponse for every answered request,
    whatever its status, and raise TransportError when the remote could not
    be reached.
    """

    # Organizations

    @abstractmethod
    async def create_organization(self, body: Dict[str, Any]) -> GatewayResponse:
        pass

    @abstractmethod
    async def get_organization(self, organization_id: str) -> GatewayResponse:
        pass

    @abstractmethod
    async def update_organization(
        self, organization_id: str, body: Dict[str, Any]
    ) -> GatewayResponse:
        pass

    @abstractmethod
    async def delete_organization(self, organization_id: str) -> GatewayResponse:
        pass

    @abstractmethod
    async def list_organizations(self) -> GatewayResponse:
        pass

    # Projects

    @abstractmethod
    async def create_project(self, body: Dict[str, Any]) -> GatewayResponse:
        pass

    @abstractmethod
    async def get_project(self, project_id: str) -> GatewayResponse:
        pass

    @abstractmethod
    async def update_project(
        self, project_id: str, body: Dict[str, Any]
    ) -> GatewayResponse:
        pass

    @abstractmethod
    async def delete_project(self, project_id: str) -> GatewayResponse:
        pass

    # Clusters

    @abstractmethod
    async def create_cluster(
        self, organization_id: str, body: Dict[str, Any]
    ) -> GatewayResponse:
        pass

    @abstractmethod
    async def get_cluster(self, cluster_id: str) -> GatewayResponse:
        pass

    @abstractmethod
    async def update_cluster(
        self, cluster_id: str, body: Dict[str, Any]
    ) -> GatewayResponse:
        pass

    @abstractmethod
    async def delete_cluster(self, cluster_id: str) -> GatewayResponse:
        pass


class HTTPGateway(ControlPlaneGateway):
    """
    Gateway backed by the CrateDB Cloud HTTP API.

    Authenticates with HTTP basic auth using the API key and secret.
    Connection errors and timeouts are retried with a linear, jittered
    backoff; any HTTP response, successful or not, is returned as-is.
    """

    def __init__(
        self,
        provider_config: ProviderConfig,
        gateway_config: Optional[GatewayConfig] = None,
    ):
        gateway_config = gateway_config or GatewayConfig()
        self.base_url = provider_config.url.rstrip("/")
        self.timeout = gateway_config.timeout
        self.max_retries = gateway_config.max_retries
        self.retry_wait_min = gateway_config.retry_wait_min
        self.retry_wait_max = gateway_config.retry_wait_max
        self._auth = aiohttp.BasicAuth(
            provider_config.api_key, provider_config.api_secret
        )

        logger.debug(
            f"HTTP gateway configured: base_url={self.base_url}, "
            f"timeout={self.timeout}s, max_retries={self.max_retries}"
        )

    async def create_organization(self, body: Dict[str, Any]) -> GatewayResponse:
        return await self._request("POST", "/api/v2/organizations/", body)

    async def get_organization(self, organization_id: str) -> GatewayResponse:
        return await self._request("GET", f"/api/v2/organizations/{organization_id}/")

    async def update_organization(
        self, organization_id: str, body: Dict[str, Any]
    ) -> GatewayResponse:
        return await self._request(
            "PUT", f"/api/v2/organizations/{organization_id}/", body
        )

    async def delete_organization(self, organization_id: str) -> GatewayResponse:
        return await self._request(
            "DELETE", f"/api/v2/organizations/{organization_id}/"
        )

    async def list_organizations(self) -> GatewayResponse:
        return await self._request("GET", "/api/v2/organizations/")

    async def create_project(self, body: Dict[str, Any]) -> GatewayResponse:
        return await self._request("POST", "/api/v2/projects/", body)

    async def get_project(self, project_id: str) -> GatewayResponse:
        return await self._request("GET", f"/api/v2/projects/{project_id}/")

    async def update_project(
        self, project_id: str, body: Dict[str, Any]
    ) -> GatewayResponse:
        return await self._request("PATCH", f"/api/v2/projects/{project_id}/", body)

    async def delete_project(self, project_id: str) -> GatewayResponse:
        return await self._request("DELETE", f"/api/v2/projects/{project_id}/")

    async def create_cluster(
        self, organization_id: str, body: Dict[str, Any]
    ) -> GatewayResponse:
        return await self._request(
            "POST", f"/api/v2/organizations/{organization_id}/clusters/", body
        )

    async def get_cluster(self, cluster_id: str) -> GatewayResponse:
        return await self._request("GET", f"/api/v2/clusters/{cluster_id}/")

    async def update_cluster(
        self, cluster_id: str, body: Dict[str, Any]
    ) -> GatewayResponse:
        return await self._request("PATCH", f"/api/v2/clusters/{cluster_id}/", body)

    async def delete_cluster(self, cluster_id: str) -> GatewayResponse:
        return await self._request("DELETE", f"/api/v2/clusters/{cluster_id}/")

    # Private helper methods

    def _get_headers(self) -> Dict[str, str]:
        """Get HTTP headers for CrateDB Cloud API requests."""
        return {
            "Accept": "application/json",
            "Content-Type": "application/json",
        }

    def _backoff(self, attempt: int) -> float:
        """Linear backoff with jitter for the given zero-based attempt."""
        jittered = random.uniform(self.retry_wait_min, self.retry_wait_max)
        return jittered * (attempt + 1)

    async def _request(
        self, method: str, path: str, body: Optional[Dict[str, Any]] = None
    ) -> GatewayResponse:
        """
        Send one request, retrying transport failures.

        Args:
            method: HTTP method
            path: Path relative to the API base URL
            body: Optional JSON request body

        Returns:
            GatewayResponse with status, reason, parsed body and raw text.

        Raises:
            TransportError: If every attempt failed before a response arrived.
        """
        url = f"{self.base_url}{path}"
        timeout = aiohttp.ClientTimeout(total=self.timeout)
        last_error: Optional[BaseException] = None

        for attempt in range(self.max_retries + 1):
            try:
                async with aiohttp.ClientSession(
                    timeout=timeout, auth=self._auth
                ) as session:
                    async with session.request(
                        method, url, headers=self._get_headers(), json=body
                    ) as response:
                        text = await response.text()
                        logger.debug(f"{method} {url} -> {response.status}")
                        return GatewayResponse(
                            status=response.status,
                            reason=response.reason or "",
                            body=_parse_body(text),
                            text=text,
                        )
            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                last_error = e
                if attempt < self.max_retries:
                    wait = self._backoff(attempt)
                    logger.warning(
                        f"{method} {url} failed ({e!r}), retrying in {wait:.1f}s "
                        f"({attempt + 1}/{self.max_retries})"
                    )
                    await asyncio.sleep(wait)

        raise TransportError(
            f"{method} {url} failed after {self.max_retries + 1} attempt(s): "
            f"{last_error!r}",
            cause=last_error,
        )


def _parse_body(text: str) -> Any:
    """Parse a JSON response body; non-JSON bodies are kept only as text."""
    if not text:
        return None
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        return None
