"""
Test Fixtures

Reusable tool definitions, parameter models and a controllable clock.
"""

import asyncio
from typing import Any

from pydantic import BaseModel, Field

from toolgate.core.interfaces import SchemaIssue, SchemaResult
from toolgate.core.types import ExecutionContext, RiskLevel
from toolgate.tools.rate_limit import RateLimitConfig
from toolgate.tools.registry import ToolDefinition


class FakeClock:
    """Millisecond clock advanced by hand."""

    def __init__(self, start: float = 1_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> None:
        self.now += ms


class EchoParams(BaseModel):
    text: str = Field(min_length=1)
    repeat: int = Field(default=1, ge=1, le=5)


class PositiveNumber:
    """Hand-written schema accepting a bare positive number."""

    def safe_parse(self, value: Any) -> SchemaResult:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return SchemaResult.fail(SchemaIssue(path="(root)", message="Expected a number"))
        if value <= 0:
            return SchemaResult.fail(SchemaIssue(path="(root)", message="Must be positive"))
        return SchemaResult.ok(value)


async def echo(params: EchoParams, context: ExecutionContext) -> dict[str, Any]:
    return {"text": params.text * params.repeat, "user": context.user_id}


def make_tool(name: str = "echo", **overrides: Any) -> ToolDefinition:
    """Build a valid definition; keyword arguments override fields."""
    fields: dict[str, Any] = {
        "name": name,
        "description": f"{name} tool",
        "version": "1.0.0",
        "parameters": EchoParams,
        "execute": echo,
        "risk_level": RiskLevel.LOW,
        "timeout": 1000,
    }
    fields.update(overrides)
    return ToolDefinition(**fields)


def slow_effect(delay_seconds: float, result: Any = "done", started: list | None = None):
    """Async effect that sleeps before returning `result`."""

    async def effect(params: Any, context: ExecutionContext) -> Any:
        if started is not None:
            started.append(params)
        await asyncio.sleep(delay_seconds)
        return result

    return effect


def failing_effect(error: Exception):
    async def effect(params: Any, context: ExecutionContext) -> Any:
        raise error

    return effect


DATA_HASH_LIMIT = RateLimitConfig(max_calls=2, window_ms=60000)
