"""
Tool Routes
"""

from typing import Any

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from toolgate.api.dependencies import get_identity, get_request_id, get_tool_registry
from toolgate.core.exceptions import ToolTimeoutError
from toolgate.core.types import ExecutionContext, Identity, SessionInfo, ToolCall
from toolgate.tools import ToolRegistry

router = APIRouter()


class ToolInfo(BaseModel):
    """Public tool information."""

    name: str
    description: str
    risk_level: str
    requires_approval: bool
    sandboxed: bool


class ToolListResponse(BaseModel):
    """List of tools."""

    tools: list[ToolInfo]
    total: int


class ToolStatsInfo(BaseModel):
    call_count: int
    last_call_time: float | None = None


class ToolMetricsResponse(BaseModel):
    metrics: dict[str, ToolStatsInfo]


class ExecuteToolRequest(BaseModel):
    """Request to execute a tool."""

    parameters: Any = Field(default_factory=dict)
    session_id: str | None = None
    sandboxed: bool = False


@router.get("/tools", response_model=ToolListResponse)
async def list_tools(
    tool_registry: ToolRegistry = Depends(get_tool_registry),
):
    """List registered tools."""
    tools = tool_registry.list_tools()

    return ToolListResponse(
        tools=[
            ToolInfo(
                name=t.name,
                description=t.description,
                risk_level=t.risk_level,
                requires_approval=t.requires_approval,
                sandboxed=t.sandboxed,
            )
            for t in tools
        ],
        total=len(tools),
    )


@router.get("/tools/metrics", response_model=ToolMetricsResponse)
async def tool_metrics(
    tool_registry: ToolRegistry = Depends(get_tool_registry),
):
    """Per-tool call counts and last call times."""
    return ToolMetricsResponse(
        metrics={
            name: ToolStatsInfo(call_count=s.call_count, last_call_time=s.last_call_time)
            for name, s in tool_registry.get_metrics().items()
        }
    )


@router.post("/tools/{tool_name}/execute")
async def execute_tool(
    tool_name: str,
    request: ExecuteToolRequest,
    tool_registry: ToolRegistry = Depends(get_tool_registry),
    identity: Identity | None = Depends(get_identity),
    request_id: str | None = Depends(get_request_id),
):
    """
    Execute a tool.

    Rejections before execution surface as 4xx errors. A call that ran
    and failed returns its outcome with 500, or 504 on timeout.
    """
    call = ToolCall(tool_name=tool_name, parameters=request.parameters)
    if request_id:
        call = call.model_copy(update={"request_id": request_id})

    context = ExecutionContext(
        identity=identity,
        session=SessionInfo(session_id=request.session_id),
        sandboxed=request.sandboxed,
        request_id=call.request_id,
    )

    outcome = await tool_registry.execute(call, context)

    if outcome.success:
        status_code = 200
    elif outcome.error_code == ToolTimeoutError.error_code:
        status_code = 504
    else:
        status_code = 500

    return JSONResponse(outcome.model_dump(mode="json"), status_code=status_code)
