"""
Tool Execution Engine

Runs a tool effect under a hard wall-clock timeout.

Design decisions:
- The effect races a timer; whichever settles first decides the outcome
- The losing effect is detached, never cancelled: stopping a side effect
  needs cooperation from the tool itself
- Caller cancellation does not reach an admitted effect
- Sync effects run in a worker thread so they cannot block the loop
"""

import asyncio
import inspect
from typing import Any

from toolgate.core.exceptions import ToolExecutionError, ToolTimeoutError
from toolgate.core.interfaces import ToolEffect
from toolgate.core.types import ExecutionContext
from toolgate.observability.logging import StructuredLogger, get_logger
from toolgate.observability.metrics import MetricsCollector


class ExecutionEngine:
    """
    Timeout racer for tool effects.

    The only guarantee: `run` returns or raises no later than
    `timeout_ms` after it is called.
    """

    def __init__(
        self,
        logger: StructuredLogger | None = None,
        metrics: MetricsCollector | None = None,
    ):
        self._logger = logger or get_logger("toolgate.executor")
        self._metrics = metrics

        # Detached effects are referenced here until they settle
        self._detached: set[asyncio.Task] = set()

    async def run(
        self,
        effect: ToolEffect,
        params: Any,
        context: ExecutionContext,
        timeout_ms: int,
        tool_name: str = "",
    ) -> Any:
        """
        Run `effect(params, context)`, raising ToolTimeoutError on timeout.

        Exceptions raised by the effect propagate unchanged; an effect that
        cancels itself raises ToolExecutionError.
        """
        task = asyncio.ensure_future(self._invoke(effect, params, context))

        try:
            done, _ = await asyncio.wait({task}, timeout=timeout_ms / 1000)
        except asyncio.CancelledError:
            self._detach(task, tool_name, reason="cancelled")
            raise

        if task in done:
            if task.cancelled():
                raise ToolExecutionError(
                    f"Tool '{tool_name}' effect was cancelled", tool_name=tool_name,
                )
            return task.result()

        self._detach(task, tool_name, reason="timeout")
        raise ToolTimeoutError(
            f"Tool '{tool_name}' timed out after {timeout_ms}ms",
            tool_name=tool_name,
            timeout_ms=timeout_ms,
        )

    async def _invoke(self, effect: ToolEffect, params: Any, context: ExecutionContext) -> Any:
        if inspect.iscoroutinefunction(effect):
            return await effect(params, context)

        result = await asyncio.to_thread(effect, params, context)
        if inspect.isawaitable(result):
            return await result
        return result

    def _detach(self, task: asyncio.Task, tool_name: str, reason: str) -> None:
        self._detached.add(task)
        task.add_done_callback(lambda t: self._on_detached_done(t, tool_name))

        if self._metrics:
            counter = self._metrics.counter("tool_detached_effects_total")
            if counter:
                counter.inc(tool=tool_name, reason=reason)

        self._logger.debug(
            "Tool effect detached",
            tool=tool_name,
            reason=reason,
            detached=len(self._detached),
        )

    def _on_detached_done(self, task: asyncio.Task, tool_name: str) -> None:
        self._detached.discard(task)

        if task.cancelled():
            return

        error = task.exception()
        if error is not None:
            self._logger.warning(
                "Detached tool effect failed",
                tool=tool_name,
                error_type=type(error).__name__,
                error_message=str(error),
            )

    @property
    def detached_count(self) -> int:
        """Effects that lost their race and are still running."""
        return len(self._detached)

    async def drain(self, timeout: float | None = None) -> int:
        """
        Wait for detached effects to settle.

        Returns how many were still running when the wait ended.
        """
        if not self._detached:
            return 0

        _, pending = await asyncio.wait(set(self._detached), timeout=timeout)
        return len(pending)
