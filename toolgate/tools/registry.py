"""
Tool Registry

Owns the tool catalog and sequences every call through validation,
permission, rate limiting, timed execution and auditing.

Design decisions:
- Explicitly constructed; no module-level registry
- Construction-time allowlist is the only source of which tools may exist
- register() reports refusal as False and never raises
- Pre-admission rejections raise; post-admission failures come back as
  ExecutionOutcome values
- All catalog and rate-limit mutation is synchronous, between awaits
"""

import asyncio
import inspect
import re
import time
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from typing import Any

from toolgate.core.exceptions import (
    RateLimitError,
    ToolCancelledError,
    ToolError,
    ToolExecutionError,
    ToolgateError,
    ToolNotFoundError,
    ToolPermissionError,
    ToolTimeoutError,
    ToolValidationError,
)
from toolgate.core.interfaces import AuditSinkProtocol, ParameterSchemaProtocol, ToolEffect
from toolgate.core.types import (
    AuditOutcome,
    ExecutionContext,
    ExecutionMetrics,
    ExecutionOutcome,
    Identity,
    RiskLevel,
    ToolCall,
)
from toolgate.observability.logging import StructuredLogger, get_logger
from toolgate.observability.metrics import MetricsCollector
from toolgate.safety.redaction import redact_output
from toolgate.tools.executor import ExecutionEngine
from toolgate.tools.permissions import PermissionChecker, PermissionDecision
from toolgate.tools.rate_limit import RateLimitConfig, RateLimitDecision, SlidingWindowLimiter
from toolgate.tools.schema import resolve_schema

NAME_PATTERN = re.compile(r"[a-z][a-z0-9_]*")


@dataclass(frozen=True)
class ToolDefinition:
    """
    Complete, immutable description of a tool.

    `parameters` is a pydantic model class or any object with
    `safe_parse`. `execute(params, context)` receives the parsed
    parameters and may be sync or async. `timeout` is in milliseconds.
    """

    name: str
    description: str
    version: str
    parameters: Any
    execute: ToolEffect

    risk_level: RiskLevel | str = RiskLevel.LOW
    requires_approval: bool = False
    sandboxed: bool = False
    timeout: int = 30000

    # Access requirements
    required_roles: Sequence[str] = ()
    required_permissions: Sequence[str] = ()
    rate_limit: RateLimitConfig | None = None


@dataclass
class RegisteredTool:
    """A definition plus the runtime state the registry keeps for it."""

    definition: ToolDefinition
    schema: ParameterSchemaProtocol
    limiter: SlidingWindowLimiter | None = None

    call_count: int = 0
    last_call_time: float | None = None


@dataclass(frozen=True)
class ToolSummary:
    """Public catalog entry; schemas and effects stay private."""

    name: str
    description: str
    risk_level: str
    requires_approval: bool
    sandboxed: bool


@dataclass(frozen=True)
class ToolStats:
    """Per-tool counters, reset only by restarting the process."""

    call_count: int
    last_call_time: float | None


@dataclass(frozen=True)
class CallValidation:
    """Result of validating call parameters against a tool schema."""

    valid: bool
    params: Any = None
    errors: list[str] = field(default_factory=list)


def _wall_clock_ms() -> float:
    return time.time() * 1000


def tool(
    *,
    parameters: Any,
    name: str | None = None,
    description: str | None = None,
    version: str = "1.0.0",
    risk_level: RiskLevel | str = RiskLevel.LOW,
    requires_approval: bool = False,
    sandboxed: bool = False,
    timeout: int = 30000,
    required_roles: Sequence[str] = (),
    required_permissions: Sequence[str] = (),
    rate_limit: RateLimitConfig | None = None,
) -> Callable[[ToolEffect], ToolDefinition]:
    """
    Decorator turning an effect function into a ToolDefinition.

    Usage:
        @tool(parameters=HashParams, timeout=5000)
        async def data_hash(params: HashParams, context: ExecutionContext) -> dict:
            '''Compute a cryptographic hash of the input data.'''
            ...
    """

    def decorator(func: ToolEffect) -> ToolDefinition:
        doc = inspect.getdoc(func) or ""
        return ToolDefinition(
            name=name or func.__name__,
            description=description or doc.split("\n\n")[0],
            version=version,
            parameters=parameters,
            execute=func,
            risk_level=risk_level,
            requires_approval=requires_approval,
            sandboxed=sandboxed,
            timeout=timeout,
            required_roles=tuple(required_roles),
            required_permissions=tuple(required_permissions),
            rate_limit=rate_limit,
        )

    return decorator


class ToolRegistry:
    """
    Capability-gated tool broker.

    Provides:
    - Allowlisted registration and discovery
    - Parameter validation, permission and rate limit checks
    - Timed execution with exactly one audit event per terminal state
    - Per-tool call statistics
    """

    def __init__(
        self,
        allowed_tools: Iterable[str],
        *,
        audit_sink: AuditSinkProtocol | None = None,
        engine: ExecutionEngine | None = None,
        permission_checker: PermissionChecker | None = None,
        metrics: MetricsCollector | None = None,
        logger: StructuredLogger | None = None,
        clock: Callable[[], float] | None = None,
        sanitize_output: bool = True,
    ):
        self._allowed = frozenset(allowed_tools)
        self._audit = audit_sink
        self._logger = logger or get_logger("toolgate.registry")
        self._metrics = metrics
        self._engine = engine or ExecutionEngine(logger=self._logger, metrics=metrics)
        self._permissions = permission_checker or PermissionChecker()
        self._clock = clock or _wall_clock_ms
        self._sanitize_output = sanitize_output

        self._tools: dict[str, RegisteredTool] = {}

    # ------------------------------------------------------------------
    # Catalog
    # ------------------------------------------------------------------

    @property
    def allowed_tools(self) -> frozenset[str]:
        return self._allowed

    @property
    def engine(self) -> ExecutionEngine:
        return self._engine

    @property
    def metrics(self) -> MetricsCollector | None:
        return self._metrics

    def register(self, definition: ToolDefinition) -> bool:
        """
        Register or replace a tool.

        Returns False when the name is malformed or not allowlisted, or
        when the definition is structurally invalid.
        """
        name = getattr(definition, "name", None)

        if not isinstance(name, str) or not NAME_PATTERN.fullmatch(name):
            self._logger.warning("Tool registration refused: invalid name", tool=repr(name))
            return False

        if name not in self._allowed:
            self._logger.warning("Tool registration refused: not allowlisted", tool=name)
            return False

        problems = self._structural_problems(definition)
        if problems:
            self._logger.warning(
                "Tool registration refused: invalid definition",
                tool=name,
                problems=problems,
            )
            return False

        replaced = name in self._tools
        self._tools[name] = RegisteredTool(
            definition=definition,
            schema=resolve_schema(definition.parameters),
            limiter=SlidingWindowLimiter(definition.rate_limit) if definition.rate_limit else None,
        )

        self._logger.info(
            "Tool registered",
            tool=name,
            version=definition.version,
            risk_level=RiskLevel(definition.risk_level).value,
            replaced=replaced,
        )
        return True

    def _structural_problems(self, definition: Any) -> list[str]:
        problems = []

        for attr in ("description", "version"):
            value = getattr(definition, attr, None)
            if not isinstance(value, str) or not value.strip():
                problems.append(f"missing {attr}")

        if resolve_schema(getattr(definition, "parameters", None)) is None:
            problems.append("missing parameters schema")

        if not callable(getattr(definition, "execute", None)):
            problems.append("missing execute")

        timeout = getattr(definition, "timeout", None)
        if not isinstance(timeout, int) or isinstance(timeout, bool) or timeout <= 0:
            problems.append("timeout must be a positive integer")

        try:
            RiskLevel(getattr(definition, "risk_level", None))
        except ValueError:
            problems.append("unrecognized risk level")

        rate_limit = getattr(definition, "rate_limit", None)
        if rate_limit is not None and not (
            isinstance(rate_limit, RateLimitConfig) and rate_limit.is_valid
        ):
            problems.append("invalid rate limit")

        return problems

    def unregister(self, name: str) -> bool:
        """Remove a tool and its runtime state."""
        if name in self._tools:
            del self._tools[name]
            self._logger.info("Tool unregistered", tool=name)
            return True
        return False

    def is_allowed(self, name: str) -> bool:
        """True iff the tool is permitted by policy and currently registered."""
        return name in self._allowed and name in self._tools

    def get(self, name: str) -> ToolDefinition | None:
        registered = self._tools.get(name)
        return registered.definition if registered else None

    def list_tools(self) -> list[ToolSummary]:
        """Public catalog, in registration order."""
        return [
            ToolSummary(
                name=t.definition.name,
                description=t.definition.description,
                risk_level=RiskLevel(t.definition.risk_level).value,
                requires_approval=t.definition.requires_approval,
                sandboxed=t.definition.sandboxed,
            )
            for t in self._tools.values()
        ]

    def get_metrics(self) -> dict[str, ToolStats]:
        return {
            name: ToolStats(call_count=t.call_count, last_call_time=t.last_call_time)
            for name, t in self._tools.items()
        }

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    # ------------------------------------------------------------------
    # Admission checks
    # ------------------------------------------------------------------

    def validate_call(self, name: str, params: Any) -> CallValidation:
        """Run the tool's schema over untrusted parameters."""
        registered = self._tools.get(name)
        if registered is None:
            return CallValidation(valid=False, errors=[f"Unknown tool: {name}"])

        result = registered.schema.safe_parse(params)
        if not result.success:
            return CallValidation(valid=False, errors=[str(issue) for issue in result.errors])

        return CallValidation(valid=True, params=result.data)

    def check_permission(self, name: str, identity: Identity | None) -> PermissionDecision:
        """Role and MFA gates; unknown tools are denied."""
        return self._permissions.check(self.get(name), identity)

    def check_rate_limit(self, name: str, caller_id: str) -> RateLimitDecision:
        """
        Sliding window check for one caller.

        Admission records the call; tools without a rate limit always
        admit; unknown tools never do.
        """
        registered = self._tools.get(name)
        if registered is None:
            return RateLimitDecision(allowed=False)

        if registered.limiter is None:
            return RateLimitDecision(allowed=True)

        return registered.limiter.check(caller_id, self._clock())

    def sweep_rate_limits(self) -> int:
        """
        Drop rate-limit entries of callers with no calls inside the window.

        Returns the number of caller entries removed across all tools.
        """
        now = self._clock()
        removed = sum(
            t.limiter.sweep(now) for t in self._tools.values() if t.limiter is not None
        )
        if removed:
            self._logger.debug("Rate limit entries swept", removed=removed)
        return removed

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    async def execute(self, call: ToolCall, context: ExecutionContext) -> ExecutionOutcome:
        """
        Validate, authorize, admit and run one tool call.

        Raises ToolNotFoundError, ToolValidationError, ToolPermissionError
        or RateLimitError when the call never runs. Anything that goes
        wrong once the effect has started is returned as a failed outcome.
        """
        name = call.tool_name
        user_id = context.user_id

        with self._logger.context(request_id=call.request_id, tool=name, user_id=user_id):
            registered = self._tools.get(name)
            if registered is None:
                raise ToolNotFoundError(f"Tool not found: {name}", tool_name=name)

            validation = self.validate_call(name, call.parameters)
            if not validation.valid:
                raise ToolValidationError(
                    f"Validation failed: {'; '.join(validation.errors)}",
                    tool_name=name,
                    errors=validation.errors,
                )

            start = time.perf_counter()

            permission = self.check_permission(name, context.identity)
            if not permission.allowed:
                await self._record_blocked(
                    registered, call, user_id, start,
                    stage="permission", reason=permission.reason,
                )
                raise ToolPermissionError(
                    f"Permission denied for tool {name}: {permission.reason}",
                    tool_name=name,
                    context={"reason": permission.reason},
                )

            limit = self.check_rate_limit(name, user_id or "")
            if not limit.allowed:
                await self._record_blocked(
                    registered, call, user_id, start,
                    stage="rate_limit", reason="Rate limit exceeded",
                    retry_after_ms=limit.retry_after_ms,
                )
                raise RateLimitError(
                    f"Rate limit exceeded for tool {name}. Retry after {limit.retry_after_ms:.0f}ms",
                    tool_name=name,
                    retry_after_ms=limit.retry_after_ms,
                )

            try:
                outcome = await self._run_admitted(registered, call, validation.params, context, start)
            except asyncio.CancelledError:
                # The effect keeps running detached; it is still counted and audited
                cancelled = ToolCancelledError(
                    f"Caller cancelled tool {name} after admission", tool_name=name,
                )
                self._logger.warning("Tool call cancelled after admission")
                outcome = self._finish(
                    call, start, success=False, error=cancelled.message, error_code=cancelled.code,
                )
                await asyncio.shield(self._settle(registered, call, user_id, outcome))
                raise

            await self._settle(registered, call, user_id, outcome)
            return outcome

    async def _settle(
        self,
        registered: RegisteredTool,
        call: ToolCall,
        user_id: str | None,
        outcome: ExecutionOutcome,
    ) -> None:
        registered.call_count += 1
        registered.last_call_time = self._clock()

        details: dict[str, Any] = {
            "request_id": call.request_id,
            "duration_ms": outcome.metrics.duration_ms,
            "risk_level": RiskLevel(registered.definition.risk_level).value,
        }
        if outcome.success:
            self._logger.debug("Tool executed", duration_ms=outcome.metrics.duration_ms)
            await self._emit_audit(user_id, call.tool_name, AuditOutcome.SUCCESS, details)
        else:
            details.update(error=outcome.error, error_code=outcome.error_code)
            await self._emit_audit(user_id, call.tool_name, AuditOutcome.FAILURE, details)

    async def _run_admitted(
        self,
        registered: RegisteredTool,
        call: ToolCall,
        params: Any,
        context: ExecutionContext,
        start: float,
    ) -> ExecutionOutcome:
        definition = registered.definition
        name = definition.name
        in_flight = self._metrics.gauge("tool_executions_in_flight") if self._metrics else None

        if in_flight:
            in_flight.inc(tool=name)
        try:
            result = await self._engine.run(
                definition.execute, params, context, definition.timeout, tool_name=name,
            )
        except ToolTimeoutError as exc:
            self._logger.warning("Tool timed out", timeout_ms=exc.timeout_ms)
            return self._finish(call, start, success=False, error=exc.message, error_code=exc.code)
        except Exception as exc:
            error = exc if isinstance(exc, ToolgateError) else ToolExecutionError(
                str(exc) or type(exc).__name__, tool_name=name, cause=exc,
            )
            self._logger.error("Tool execution failed", error=exc)
            return self._finish(call, start, success=False, error=error.message, error_code=error.code)
        finally:
            if in_flight:
                in_flight.dec(tool=name)

        if self._sanitize_output:
            result = redact_output(result)
        return self._finish(call, start, success=True, result=result)

    def _finish(
        self,
        call: ToolCall,
        start: float,
        *,
        success: bool,
        result: Any = None,
        error: str | None = None,
        error_code: str | None = None,
    ) -> ExecutionOutcome:
        duration_ms = (time.perf_counter() - start) * 1000

        if self._metrics:
            status = AuditOutcome.SUCCESS if success else AuditOutcome.FAILURE
            self._metrics.counter("tool_invocations_total").inc(tool=call.tool_name, status=status.value)
            self._metrics.histogram("tool_duration_seconds").observe(duration_ms / 1000, tool=call.tool_name)

        return ExecutionOutcome(
            success=success,
            result=result,
            error=error,
            error_code=error_code,
            metrics=ExecutionMetrics(duration_ms=duration_ms),
            tool_name=call.tool_name,
            request_id=call.request_id,
        )

    async def _record_blocked(
        self,
        registered: RegisteredTool,
        call: ToolCall,
        user_id: str | None,
        start: float,
        *,
        stage: str,
        reason: str | None,
        retry_after_ms: float | None = None,
    ) -> None:
        duration_ms = (time.perf_counter() - start) * 1000
        details: dict[str, Any] = {
            "request_id": call.request_id,
            "stage": stage,
            "reason": reason,
            "duration_ms": duration_ms,
            "risk_level": RiskLevel(registered.definition.risk_level).value,
        }
        if retry_after_ms is not None:
            details["retry_after_ms"] = retry_after_ms

        if self._metrics:
            self._metrics.counter("tool_invocations_total").inc(
                tool=call.tool_name, status=AuditOutcome.BLOCKED.value,
            )

        self._logger.warning("Tool call blocked", stage=stage, reason=reason)
        await self._emit_audit(user_id, call.tool_name, AuditOutcome.BLOCKED, details)

    async def _emit_audit(
        self,
        user_id: str | None,
        tool_name: str,
        outcome: AuditOutcome,
        details: dict[str, Any],
    ) -> None:
        if self._audit is None:
            return

        try:
            await self._audit.tool_execution(user_id, tool_name, outcome.value, details)
        except Exception as exc:
            # The call's disposition is already decided; a broken sink must not change it
            self._logger.error("Audit sink failed", error=exc, outcome=outcome.value)

    async def execute_many(
        self,
        calls: Sequence[ToolCall],
        context: ExecutionContext,
        *,
        parallel: bool = False,
    ) -> list[ExecutionOutcome | ToolError]:
        """
        Execute several calls with one context.

        Each entry is either the call's outcome or the ToolError that
        rejected it before execution.
        """

        async def run_one(call: ToolCall) -> ExecutionOutcome | ToolError:
            try:
                return await self.execute(call, context)
            except ToolError as exc:
                return exc

        if parallel:
            return list(await asyncio.gather(*(run_one(c) for c in calls)))

        return [await run_one(c) for c in calls]
