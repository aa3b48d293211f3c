"""
Test Configuration

Shared fixtures for unit and API tests.
"""

import pytest

from tests.fixtures import FakeClock, make_tool
from toolgate.core.types import ExecutionContext, Identity
from toolgate.observability.logging import BufferHandler, LogLevel, StructuredLogger
from toolgate.observability.metrics import MetricsCollector
from toolgate.safety.audit import AuditLogger, InMemoryAuditStorage
from toolgate.tools.registry import ToolRegistry

ALLOWED_TOOLS = ["echo", "data_hash", "admin_tool", "danger", "slow", "broken", "counter"]


@pytest.fixture
def clock():
    """Controllable millisecond clock."""
    return FakeClock()


@pytest.fixture
def audit_storage():
    return InMemoryAuditStorage()


@pytest.fixture
def audit_logger(audit_storage):
    return AuditLogger(audit_storage)


@pytest.fixture
def log_buffer():
    """Captures log records for assertions."""
    return BufferHandler()


@pytest.fixture
def logger(log_buffer):
    return StructuredLogger("toolgate.test", level=LogLevel.DEBUG, handlers=[log_buffer])


@pytest.fixture
def metrics():
    return MetricsCollector()


@pytest.fixture
def registry(clock, audit_logger, metrics, logger):
    """Registry with the test allowlist and the echo tool registered."""
    registry = ToolRegistry(
        ALLOWED_TOOLS,
        audit_sink=audit_logger,
        metrics=metrics,
        logger=logger,
        clock=clock,
    )
    assert registry.register(make_tool("echo"))
    return registry


@pytest.fixture
def identity():
    return Identity(user_id="u1", roles=["user"])


@pytest.fixture
def context(identity):
    return ExecutionContext(identity=identity, request_id="req_test")
