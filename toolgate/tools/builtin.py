"""
Built-in Tools

Low-risk data utilities that ship with Toolgate.
"""

import base64
import hashlib
import uuid
from datetime import datetime, timezone
from typing import Any, Literal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, ConfigDict, Field, field_validator

from toolgate.core.types import ExecutionContext, RiskLevel
from toolgate.tools.rate_limit import RateLimitConfig
from toolgate.tools.registry import ToolDefinition, ToolRegistry, tool

MAX_DATA_LENGTH = 10 * 1024 * 1024

_DATA_RATE_LIMIT = RateLimitConfig(max_calls=1000, window_ms=60000)


class _Params(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


# ============================================================
# Hashing
# ============================================================

class HashParams(_Params):
    data: str = Field(max_length=100 * 1024 * 1024)
    algorithm: Literal["md5", "sha1", "sha256", "sha384", "sha512"] = "sha256"
    encoding: Literal["hex", "base64"] = "hex"


@tool(
    parameters=HashParams,
    risk_level=RiskLevel.LOW,
    timeout=30000,
    rate_limit=RateLimitConfig(max_calls=500, window_ms=60000),
)
def data_hash(params: HashParams, context: ExecutionContext) -> dict[str, Any]:
    """Compute a cryptographic hash of the input data."""
    digest = hashlib.new(params.algorithm, params.data.encode("utf-8")).digest()

    if params.encoding == "hex":
        encoded = digest.hex()
    else:
        encoded = base64.b64encode(digest).decode("ascii")

    return {
        "algorithm": params.algorithm,
        "encoding": params.encoding,
        "hash": encoded,
        "input_length": len(params.data),
    }


# ============================================================
# Base64
# ============================================================

class Base64Params(_Params):
    data: str = Field(max_length=MAX_DATA_LENGTH)
    url_safe: bool = False


@tool(parameters=Base64Params, timeout=5000, rate_limit=_DATA_RATE_LIMIT)
async def data_base64_encode(params: Base64Params, context: ExecutionContext) -> dict[str, Any]:
    """Encode data to base64."""
    raw = params.data.encode("utf-8")

    if params.url_safe:
        encoded = base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")
    else:
        encoded = base64.b64encode(raw).decode("ascii")

    return {"encoded": encoded, "length": len(encoded), "url_safe": params.url_safe}


@tool(parameters=Base64Params, timeout=5000, rate_limit=_DATA_RATE_LIMIT)
async def data_base64_decode(params: Base64Params, context: ExecutionContext) -> dict[str, Any]:
    """
    Decode base64 data to string.

    URL-safe input may omit its padding. Invalid input fails the call.
    """
    text = params.data

    try:
        if params.url_safe:
            raw = base64.urlsafe_b64decode(text + "=" * (-len(text) % 4))
        else:
            raw = base64.b64decode(text, validate=True)
    except ValueError as e:
        raise ValueError(f"Invalid base64 input: {e}") from e

    decoded = raw.decode("utf-8", errors="replace")
    return {"decoded": decoded, "length": len(decoded)}


# ============================================================
# Identifiers and time
# ============================================================

class UuidParams(_Params):
    count: int = Field(default=1, ge=1, le=100)


@tool(parameters=UuidParams, timeout=1000, rate_limit=_DATA_RATE_LIMIT)
async def data_uuid(params: UuidParams, context: ExecutionContext) -> dict[str, Any]:
    """Generate a UUID (v4)."""
    if params.count == 1:
        return {"uuid": str(uuid.uuid4())}
    return {"uuids": [str(uuid.uuid4()) for _ in range(params.count)]}


class TimestampParams(_Params):
    format: Literal["unix", "unix_ms", "iso", "utc", "local"] = "iso"
    timezone: str | None = Field(default=None, max_length=50)

    @field_validator("timezone")
    @classmethod
    def known_timezone(cls, value: str | None) -> str | None:
        if value is not None:
            try:
                ZoneInfo(value)
            except (ZoneInfoNotFoundError, ValueError) as e:
                raise ValueError(f"Unknown timezone: {value}") from e
        return value


@tool(parameters=TimestampParams, timeout=1000, rate_limit=_DATA_RATE_LIMIT)
async def data_timestamp(params: TimestampParams, context: ExecutionContext) -> dict[str, Any]:
    """Get the current timestamp in various formats."""
    now = datetime.now(timezone.utc)

    if params.format == "unix":
        formatted: str | int = int(now.timestamp())
    elif params.format == "unix_ms":
        formatted = int(now.timestamp() * 1000)
    elif params.format == "iso":
        formatted = now.isoformat().replace("+00:00", "Z")
    elif params.format == "utc":
        formatted = now.strftime("%a, %d %b %Y %H:%M:%S GMT")
    else:
        local = now.astimezone(ZoneInfo(params.timezone)) if params.timezone else now.astimezone()
        formatted = local.strftime("%Y-%m-%d %H:%M:%S %Z")

    return {
        "timestamp": formatted,
        "format": params.format,
        "unix_ms": int(now.timestamp() * 1000),
    }


BUILTIN_TOOLS: tuple[ToolDefinition, ...] = (
    data_hash,
    data_base64_encode,
    data_base64_decode,
    data_uuid,
    data_timestamp,
)

BUILTIN_TOOL_NAMES: tuple[str, ...] = tuple(t.name for t in BUILTIN_TOOLS)


def register_builtin_tools(registry: ToolRegistry) -> list[str]:
    """
    Register every built-in tool the registry's allowlist admits.

    Returns the names that were registered.
    """
    return [t.name for t in BUILTIN_TOOLS if registry.register(t)]
