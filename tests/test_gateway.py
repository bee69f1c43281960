"""Unit tests for gateway.py - CrateDB Cloud HTTP gateway."""

import asyncio
import json

import aiohttp
import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from config import GatewayConfig, ProviderConfig
from errors import ErrorKind, TransportError
from gateway import GatewayResponse, HTTPGateway, _parse_body


def _session_returning(mock_session_cls, status, payload=None, reason="OK"):
    """Wire a patched ClientSession to answer every request with one response."""
    mock_resp = AsyncMock()
    mock_resp.status = status
    mock_resp.reason = reason
    mock_resp.text = AsyncMock(
        return_value="" if payload is None else json.dumps(payload)
    )

    mock_session = AsyncMock()
    mock_session.request = MagicMock(
        return_value=AsyncMock(
            __aenter__=AsyncMock(return_value=mock_resp),
            __aexit__=AsyncMock(return_value=False),
        )
    )

    mock_session_cls.return_value = AsyncMock(
        __aenter__=AsyncMock(return_value=mock_session),
        __aexit__=AsyncMock(return_value=False),
    )
    return mock_session


class TestGatewayResponse:
    """Tests for GatewayResponse."""

    @pytest.mark.parametrize("status", [200, 201, 204, 299])
    def test_success_statuses(self, status):
        assert GatewayResponse(status=status).ok is True

    @pytest.mark.parametrize("status", [199, 301, 400, 404, 500])
    def test_failure_statuses(self, status):
        assert GatewayResponse(status=status).ok is False


class TestParseBody:
    """Tests for response body parsing."""

    def test_json(self):
        assert _parse_body('{"id": "x"}') == {"id": "x"}

    def test_empty(self):
        assert _parse_body("") is None

    def test_not_json(self):
        assert _parse_body("<html>Bad Gateway</html>") is None


@pytest.fixture
def gateway():
    """HTTP gateway with fast retry settings."""
    provider = ProviderConfig(
        api_key="key", api_secret="secret", url="https://console.cratedb.cloud/"
    )
    return HTTPGateway(
        provider,
        GatewayConfig(timeout=5, max_retries=2, retry_wait_min=0.1, retry_wait_max=0.2),
    )


class TestHTTPGatewayConfiguration:
    """Tests for HTTPGateway setup."""

    def test_configuration(self, gateway):
        assert gateway.base_url == "https://console.cratedb.cloud"
        assert gateway.max_retries == 2
        assert gateway._auth == aiohttp.BasicAuth("key", "secret")

    def test_headers(self, gateway):
        headers = gateway._get_headers()
        assert headers["Accept"] == "application/json"
        assert headers["Content-Type"] == "application/json"

    def test_backoff_is_linear_with_jitter(self, gateway):
        with patch("gateway.random.uniform", return_value=0.15):
            assert gateway._backoff(0) == pytest.approx(0.15)
            assert gateway._backoff(2) == pytest.approx(0.45)


@pytest.mark.asyncio
class TestHTTPGateway:
    """Tests for HTTPGateway requests."""

    async def test_create_organization(self, gateway):
        """Create posts the body and returns the parsed response."""
        payload = {"id": "org-1", "name": "acme"}
        with patch("gateway.aiohttp.ClientSession") as mock_session_cls:
            mock_session = _session_returning(
                mock_session_cls, 201, payload, reason="Created"
            )
            response = await gateway.create_organization({"name": "acme"})

        assert response.status == 201
        assert response.reason == "Created"
        assert response.body == payload
        assert response.ok is True

        args, kwargs = mock_session.request.call_args
        assert args == ("POST", "https://console.cratedb.cloud/api/v2/organizations/")
        assert kwargs["json"] == {"name": "acme"}
        assert kwargs["headers"]["Accept"] == "application/json"

        session_kwargs = mock_session_cls.call_args.kwargs
        assert session_kwargs["auth"] == aiohttp.BasicAuth("key", "secret")
        assert session_kwargs["timeout"].total == 5

    @pytest.mark.parametrize(
        "call, args, method, path",
        [
            ("get_organization", ("o1",), "GET", "/api/v2/organizations/o1/"),
            ("update_organization", ("o1", {}), "PUT", "/api/v2/organizations/o1/"),
            ("delete_organization", ("o1",), "DELETE", "/api/v2/organizations/o1/"),
            ("list_organizations", (), "GET", "/api/v2/organizations/"),
            ("create_project", ({},), "POST", "/api/v2/projects/"),
            ("get_project", ("p1",), "GET", "/api/v2/projects/p1/"),
            ("update_project", ("p1", {}), "PATCH", "/api/v2/projects/p1/"),
            ("delete_project", ("p1",), "DELETE", "/api/v2/projects/p1/"),
            (
                "create_cluster",
                ("o1", {}),
                "POST",
                "/api/v2/organizations/o1/clusters/",
            ),
            ("get_cluster", ("c1",), "GET", "/api/v2/clusters/c1/"),
            ("update_cluster", ("c1", {}), "PATCH", "/api/v2/clusters/c1/"),
            ("delete_cluster", ("c1",), "DELETE", "/api/v2/clusters/c1/"),
        ],
    )
    async def test_endpoints(self, gateway, call, args, method, path):
        """Every gateway call maps to its method and path."""
        with patch("gateway.aiohttp.ClientSession") as mock_session_cls:
            mock_session = _session_returning(mock_session_cls, 200, {})
            await getattr(gateway, call)(*args)

        request_args = mock_session.request.call_args.args
        assert request_args == (method, f"https://console.cratedb.cloud{path}")

    async def test_error_status_returned_not_raised(self, gateway):
        """Non-2xx responses come back to the caller untouched."""
        with patch("gateway.aiohttp.ClientSession") as mock_session_cls:
            mock_session = _session_returning(
                mock_session_cls, 404, {"message": "Not found"}, reason="Not Found"
            )
            response = await gateway.get_cluster("missing")

        assert response.status == 404
        assert response.ok is False
        assert response.body == {"message": "Not found"}
        assert mock_session.request.call_count == 1

    async def test_server_error_not_retried(self, gateway):
        with patch("gateway.aiohttp.ClientSession") as mock_session_cls:
            mock_session = _session_returning(
                mock_session_cls, 503, None, reason="Service Unavailable"
            )
            response = await gateway.get_project("p1")

        assert response.status == 503
        assert response.body is None
        assert mock_session.request.call_count == 1

    async def test_delete_without_body(self, gateway):
        with patch("gateway.aiohttp.ClientSession") as mock_session_cls:
            _session_returning(mock_session_cls, 204, None, reason="No Content")
            response = await gateway.delete_cluster("c1")

        assert response.status == 204
        assert response.body is None
        assert response.text == ""

    async def test_transport_error_retried(self, gateway):
        """Connection failures are retried, then succeed."""
        with patch("gateway.aiohttp.ClientSession") as mock_session_cls, patch(
            "gateway.asyncio.sleep", new=AsyncMock()
        ) as mock_sleep:
            mock_session = _session_returning(mock_session_cls, 200, {"id": "c1"})
            ok = mock_session.request.return_value
            mock_session.request.side_effect = [
                aiohttp.ClientConnectionError("connection reset"),
                ok,
            ]

            response = await gateway.get_cluster("c1")

        assert response.status == 200
        assert mock_session.request.call_count == 2
        mock_sleep.assert_awaited_once()

    async def test_transport_error_after_retries(self, gateway):
        """Exhausted retries raise TransportError."""
        with patch("gateway.aiohttp.ClientSession") as mock_session_cls, patch(
            "gateway.asyncio.sleep", new=AsyncMock()
        ) as mock_sleep:
            mock_session = _session_returning(mock_session_cls, 200, {})
            mock_session.request.side_effect = asyncio.TimeoutError()

            with pytest.raises(TransportError) as exc_info:
                await gateway.get_cluster("c1")

        assert exc_info.value.kind == ErrorKind.TRANSPORT
        assert "3 attempt(s)" in exc_info.value.message
        assert isinstance(exc_info.value.cause, asyncio.TimeoutError)
        assert mock_session.request.call_count == 3
        assert mock_sleep.await_count == 2
