"""
API Tests

End-to-end tests of the HTTP surface over an in-process ASGI transport.
"""

import asyncio
import contextlib
import dataclasses

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from tests.fixtures import failing_effect, make_tool, slow_effect
from toolgate.api import app as app_module
from toolgate.api import create_app
from toolgate.config import Settings, ToolSettings
from toolgate.core.types import RiskLevel
from toolgate.observability.logging import BufferHandler, StructuredLogger
from toolgate.observability.metrics import MetricsCollector
from toolgate.runtime import RegistryBuilder
from toolgate.tools.builtin import data_hash
from toolgate.tools.rate_limit import RateLimitConfig

USER = {"X-User-Id": "u1", "X-User-Roles": "user"}


@pytest.fixture
def settings():
    return Settings(tools=ToolSettings(rate_limit_sweep_interval_seconds=None))


@pytest.fixture
def custom_registry():
    return (
        RegistryBuilder()
        .with_allowed_tools(["data_hash", "danger", "admin_tool", "broken", "slow"])
        .with_tools(
            dataclasses.replace(data_hash, rate_limit=RateLimitConfig(max_calls=1, window_ms=60000)),
            make_tool("danger", risk_level=RiskLevel.HIGH),
            make_tool("admin_tool", required_roles=("admin",)),
            make_tool("broken", execute=failing_effect(RuntimeError("boom"))),
            make_tool("slow", execute=slow_effect(0.2), timeout=20),
        )
        .build()
    )


@pytest_asyncio.fixture
async def client(settings):
    """Client for the default application with built-in tools."""
    app = create_app(settings)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client


@pytest_asyncio.fixture
async def custom_client(settings, custom_registry):
    """Client for an application serving hand-built tools."""
    app = create_app(settings, registry=custom_registry)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    await custom_registry.engine.drain(timeout=2)


class TestHealthAndCatalog:
    """Tests for read-only endpoints."""

    @pytest.mark.asyncio
    async def test_health(self, client):
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert response.json()["tools"] == 5

    @pytest.mark.asyncio
    async def test_list_tools(self, client):
        response = await client.get("/api/v1/tools")

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 5
        assert {t["name"] for t in data["tools"]} >= {"data_hash", "data_uuid"}
        assert "parameters" not in data["tools"][0]

    @pytest.mark.asyncio
    async def test_tool_metrics(self, client):
        await client.post("/api/v1/tools/data_uuid/execute", json={}, headers=USER)

        response = await client.get("/api/v1/tools/metrics")

        assert response.status_code == 200
        assert response.json()["metrics"]["data_uuid"]["call_count"] == 1
        assert response.json()["metrics"]["data_hash"]["last_call_time"] is None

    @pytest.mark.asyncio
    async def test_prometheus_metrics(self, client):
        await client.post("/api/v1/tools/data_uuid/execute", json={}, headers=USER)

        response = await client.get("/metrics")

        assert response.status_code == 200
        assert 'toolgate_tool_invocations_total{status="success",tool="data_uuid"}' in response.text


class TestExecuteEndpoint:
    """Tests for POST /tools/{name}/execute."""

    @pytest.mark.asyncio
    async def test_execute_success(self, client):
        response = await client.post(
            "/api/v1/tools/data_hash/execute",
            json={"parameters": {"data": "hello"}},
            headers={**USER, "X-Request-Id": "req_abc"},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["result"]["hash"] == "2cf24dba5fb0a30e26e83b2ac5b9e29e1b161e5c1fa7425e73043362938b9824"
        assert body["request_id"] == "req_abc"
        assert response.headers["X-Request-Id"] == "req_abc"

    @pytest.mark.asyncio
    async def test_unknown_tool(self, client):
        response = await client.post("/api/v1/tools/nope/execute", json={}, headers=USER)

        assert response.status_code == 404
        assert response.json()["error"] == "TOOL_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_invalid_parameters(self, client):
        response = await client.post(
            "/api/v1/tools/data_hash/execute", json={"parameters": {"data": 5}}, headers=USER,
        )

        assert response.status_code == 422
        body = response.json()
        assert body["error"] == "TOOL_VALIDATION_ERROR"
        assert body["context"]["errors"][0].startswith("data:")

    @pytest.mark.asyncio
    async def test_missing_identity(self, client):
        response = await client.post("/api/v1/tools/data_uuid/execute", json={})

        assert response.status_code == 403
        assert response.json()["error"] == "TOOL_PERMISSION_DENIED"

    @pytest.mark.asyncio
    async def test_rate_limited(self, custom_client):
        request = {"parameters": {"data": "x"}}

        first = await custom_client.post("/api/v1/tools/data_hash/execute", json=request, headers=USER)
        second = await custom_client.post("/api/v1/tools/data_hash/execute", json=request, headers=USER)
        other = await custom_client.post(
            "/api/v1/tools/data_hash/execute", json=request, headers={"X-User-Id": "u2"},
        )

        assert first.status_code == 200
        assert second.status_code == 429
        assert second.json()["error"] == "RATE_LIMIT_EXCEEDED"
        assert second.headers["Retry-After"] == "60"
        assert other.status_code == 200

    @pytest.mark.asyncio
    async def test_mfa_header(self, custom_client):
        request = {"parameters": {"text": "x"}}

        denied = await custom_client.post("/api/v1/tools/danger/execute", json=request, headers=USER)
        allowed = await custom_client.post(
            "/api/v1/tools/danger/execute", json=request, headers={**USER, "X-MFA-Verified": "true"},
        )

        assert denied.status_code == 403
        assert allowed.status_code == 200

    @pytest.mark.asyncio
    async def test_roles_header(self, custom_client):
        request = {"parameters": {"text": "x"}}

        denied = await custom_client.post("/api/v1/tools/admin_tool/execute", json=request, headers=USER)
        allowed = await custom_client.post(
            "/api/v1/tools/admin_tool/execute",
            json=request,
            headers={"X-User-Id": "u1", "X-User-Roles": "user, admin"},
        )

        assert denied.status_code == 403
        assert allowed.status_code == 200

    @pytest.mark.asyncio
    async def test_effect_failure(self, custom_client):
        response = await custom_client.post(
            "/api/v1/tools/broken/execute", json={"parameters": {"text": "x"}}, headers=USER,
        )

        assert response.status_code == 500
        assert response.json()["success"] is False
        assert response.json()["error"] == "boom"

    @pytest.mark.asyncio
    async def test_timeout(self, custom_client):
        response = await custom_client.post(
            "/api/v1/tools/slow/execute", json={"parameters": {"text": "x"}}, headers=USER,
        )

        assert response.status_code == 504
        assert response.json()["error_code"] == "TOOL_TIMEOUT"


class TestAppWiring:
    """Tests for application assembly and background work."""

    @pytest.mark.asyncio
    async def test_prebuilt_registry_metrics_are_exported(self, settings):
        collector = MetricsCollector()
        registry = (
            RegistryBuilder()
            .with_allowed_tools(["echo"])
            .with_tools(make_tool("echo"))
            .with_metrics(collector)
            .build()
        )
        app = create_app(settings, registry=registry)

        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            await client.post("/api/v1/tools/echo/execute", json={"parameters": {"text": "x"}}, headers=USER)
            response = await client.get("/metrics")

        assert app.state.components["metrics"] is collector
        assert 'toolgate_tool_invocations_total{status="success",tool="echo"}' in response.text

    @pytest.mark.asyncio
    async def test_sweeper_keeps_running_after_error(self, monkeypatch):
        class FlakyRegistry:
            def __init__(self):
                self.sweeps = 0

            def sweep_rate_limits(self):
                self.sweeps += 1
                if self.sweeps == 1:
                    raise RuntimeError("sweep broke")
                return 0

        buffer = BufferHandler()
        monkeypatch.setattr(app_module, "logger", StructuredLogger("t", handlers=[buffer]))
        registry = FlakyRegistry()

        task = asyncio.create_task(app_module._sweep_rate_limits(registry, 0.001))
        for _ in range(200):
            if registry.sweeps >= 3:
                break
            await asyncio.sleep(0.005)
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

        assert registry.sweeps >= 3
        assert buffer.messages() == ["Rate limit sweep failed"]
        assert buffer.records[0].error == "sweep broke"
