"""
Registry Factory

Factory and builder for assembling ToolRegistry instances.
Provides a clean API for wiring a registry from settings or by hand.
"""

from collections.abc import Callable, Iterable

from toolgate.config.settings import Settings
from toolgate.core.interfaces import AuditSinkProtocol
from toolgate.observability.logging import StructuredLogger, get_logger
from toolgate.observability.metrics import MetricsCollector
from toolgate.safety.audit import AuditLogger, InMemoryAuditStorage
from toolgate.tools.builtin import register_builtin_tools
from toolgate.tools.registry import ToolDefinition, ToolRegistry


def create_audit_logger(settings: Settings) -> AuditLogger | None:
    """Audit logger backed by bounded in-memory storage, or None if disabled."""
    if not settings.safety.enable_audit_logging:
        return None
    return AuditLogger(InMemoryAuditStorage(max_events=settings.safety.audit_max_events))


def create_registry(
    settings: Settings,
    audit_sink: AuditSinkProtocol | None = None,
    metrics: MetricsCollector | None = None,
    logger: StructuredLogger | None = None,
) -> ToolRegistry:
    """
    Create a ToolRegistry from settings.

    The allowlist comes from `settings.tools.allowed_tools`; built-in
    tools are registered when `settings.tools.register_builtins` is set.

    Args:
        settings: Application settings
        audit_sink: Optional audit sink (defaults from settings)
        metrics: Optional metrics collector
        logger: Optional logger

    Returns:
        Configured ToolRegistry
    """
    builder = (
        RegistryBuilder()
        .with_allowed_tools(settings.tools.allowed_tools)
        .with_logger(logger or get_logger("toolgate.registry"))
    )

    sink = audit_sink if audit_sink is not None else create_audit_logger(settings)
    if sink is not None:
        builder.with_audit_sink(sink)

    if metrics is not None:
        builder.with_metrics(metrics)

    if not settings.tools.sanitize_output:
        builder.without_sanitization()

    registry = builder.build()

    if settings.tools.register_builtins:
        register_builtin_tools(registry)

    return registry


class RegistryBuilder:
    """
    Builder pattern for ToolRegistry.

    Provides a fluent API for constructing registries:

        registry = (
            RegistryBuilder()
            .with_allowed_tools(["data_hash"])
            .with_audit_sink(audit_logger)
            .with_tools(data_hash)
            .build()
        )
    """

    def __init__(self):
        self._allowed: list[str] = []
        self._audit_sink: AuditSinkProtocol | None = None
        self._metrics: MetricsCollector | None = None
        self._logger: StructuredLogger | None = None
        self._clock: Callable[[], float] | None = None
        self._sanitize_output = True
        self._tools: list[ToolDefinition] = []

    def with_allowed_tools(self, names: Iterable[str]) -> "RegistryBuilder":
        """Add names to the allowlist."""
        self._allowed.extend(names)
        return self

    def with_audit_sink(self, sink: AuditSinkProtocol) -> "RegistryBuilder":
        self._audit_sink = sink
        return self

    def with_metrics(self, metrics: MetricsCollector) -> "RegistryBuilder":
        self._metrics = metrics
        return self

    def with_logger(self, logger: StructuredLogger) -> "RegistryBuilder":
        self._logger = logger
        return self

    def with_clock(self, clock: Callable[[], float]) -> "RegistryBuilder":
        """Set the millisecond clock used for rate windows and call times."""
        self._clock = clock
        return self

    def with_tools(self, *definitions: ToolDefinition) -> "RegistryBuilder":
        """Tools registered on build; refused ones are logged and skipped."""
        self._tools.extend(definitions)
        return self

    def without_sanitization(self) -> "RegistryBuilder":
        """Return tool results without secret redaction."""
        self._sanitize_output = False
        return self

    def build(self) -> ToolRegistry:
        registry = ToolRegistry(
            self._allowed,
            audit_sink=self._audit_sink,
            metrics=self._metrics,
            logger=self._logger,
            clock=self._clock,
            sanitize_output=self._sanitize_output,
        )

        for definition in self._tools:
            registry.register(definition)

        return registry
