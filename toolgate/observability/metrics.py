"""
Metrics Collection

Prometheus-compatible metrics for tool execution.

Design decisions:
- Counter, Gauge, Histogram types with label support
- Prometheus text export
- Thread-safe updates (sync effects run in worker threads)
- Separate from ToolRegistry.get_metrics(), which is part of the
  registry's own contract
"""

import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field

LabelKey = tuple[tuple[str, str], ...]


def _label_key(labels: dict[str, str]) -> LabelKey:
    return tuple(sorted((k, str(v)) for k, v in labels.items()))


@dataclass
class MetricValue:
    """A single metric sample."""

    value: float
    labels: dict[str, str] = field(default_factory=dict)
    suffix: str = ""


class Metric(ABC):
    """Base class for metrics."""

    metric_type: str = "untyped"

    def __init__(
        self,
        name: str,
        description: str = "",
        labels: list[str] | None = None,
    ):
        self.name = name
        self.description = description
        self.label_names = labels or []
        self._lock = threading.Lock()

    @abstractmethod
    def collect(self) -> list[MetricValue]:
        """Collect current samples."""


class Counter(Metric):
    """A counter that only goes up."""

    metric_type = "counter"

    def __init__(self, name: str, description: str = "", labels: list[str] | None = None):
        super().__init__(name, description, labels)
        self._values: dict[LabelKey, float] = {}

    def inc(self, value: float = 1.0, **labels: str) -> None:
        if value < 0:
            raise ValueError("Counters can only be incremented")

        key = _label_key(labels)
        with self._lock:
            self._values[key] = self._values.get(key, 0.0) + value

    def get(self, **labels: str) -> float:
        with self._lock:
            return self._values.get(_label_key(labels), 0.0)

    def collect(self) -> list[MetricValue]:
        with self._lock:
            return [MetricValue(value=v, labels=dict(k)) for k, v in self._values.items()]


class Gauge(Metric):
    """A gauge that can go up and down."""

    metric_type = "gauge"

    def __init__(self, name: str, description: str = "", labels: list[str] | None = None):
        super().__init__(name, description, labels)
        self._values: dict[LabelKey, float] = {}

    def set(self, value: float, **labels: str) -> None:
        with self._lock:
            self._values[_label_key(labels)] = value

    def inc(self, value: float = 1.0, **labels: str) -> None:
        key = _label_key(labels)
        with self._lock:
            self._values[key] = self._values.get(key, 0.0) + value

    def dec(self, value: float = 1.0, **labels: str) -> None:
        self.inc(-value, **labels)

    def get(self, **labels: str) -> float:
        with self._lock:
            return self._values.get(_label_key(labels), 0.0)

    def collect(self) -> list[MetricValue]:
        with self._lock:
            return [MetricValue(value=v, labels=dict(k)) for k, v in self._values.items()]


class Histogram(Metric):
    """A histogram for measuring distributions, in seconds."""

    metric_type = "histogram"

    DEFAULT_BUCKETS = (0.005, 0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, float("inf"))

    def __init__(
        self,
        name: str,
        description: str = "",
        labels: list[str] | None = None,
        buckets: tuple[float, ...] | None = None,
    ):
        super().__init__(name, description, labels)
        self.buckets = buckets or self.DEFAULT_BUCKETS
        self._counts: dict[LabelKey, list[int]] = {}
        self._sums: dict[LabelKey, float] = {}

    def observe(self, value: float, **labels: str) -> None:
        key = _label_key(labels)

        with self._lock:
            if key not in self._counts:
                self._counts[key] = [0] * len(self.buckets)
                self._sums[key] = 0.0

            self._sums[key] += value

            # Counts are stored cumulatively per upper bound
            for i, bound in enumerate(self.buckets):
                if value <= bound:
                    self._counts[key][i] += 1

    def get_count(self, **labels: str) -> int:
        with self._lock:
            counts = self._counts.get(_label_key(labels))
            return counts[-1] if counts else 0

    def get_sum(self, **labels: str) -> float:
        with self._lock:
            return self._sums.get(_label_key(labels), 0.0)

    def collect(self) -> list[MetricValue]:
        values = []

        with self._lock:
            for key, counts in self._counts.items():
                labels = dict(key)
                for bound, count in zip(self.buckets, counts):
                    le = "+Inf" if bound == float("inf") else str(bound)
                    values.append(MetricValue(value=count, labels={**labels, "le": le}, suffix="_bucket"))
                values.append(MetricValue(value=self._sums[key], labels=labels, suffix="_sum"))
                values.append(MetricValue(value=counts[-1], labels=labels, suffix="_count"))

        return values


class MetricsCollector:
    """
    Registry of metrics with Prometheus export.

    Tool metrics:
    - tool_invocations_total{tool,status}: status is success, failure or blocked
    - tool_duration_seconds{tool}: admitted calls only
    - tool_executions_in_flight{tool}
    - tool_detached_effects_total{tool,reason}: timed out or abandoned effects
    """

    def __init__(self, prefix: str = "toolgate"):
        self._prefix = prefix
        self._metrics: dict[str, Metric] = {}
        self._lock = threading.Lock()

        self._setup_default_metrics()

    def _setup_default_metrics(self) -> None:
        self.register(
            Counter("tool_invocations_total", "Tool calls by terminal status", labels=["tool", "status"])
        )
        self.register(
            Histogram("tool_duration_seconds", "Admitted tool call duration", labels=["tool"])
        )
        self.register(
            Gauge("tool_executions_in_flight", "Tool effects currently awaited", labels=["tool"])
        )
        self.register(
            Counter(
                "tool_detached_effects_total",
                "Tool effects left running after their caller was released",
                labels=["tool", "reason"],
            )
        )

    def register(self, metric: Metric) -> Metric:
        """Register a metric under the collector prefix."""
        full_name = f"{self._prefix}_{metric.name}"
        metric.name = full_name

        with self._lock:
            self._metrics[full_name] = metric

        return metric

    def get(self, name: str) -> Metric | None:
        return self._metrics.get(f"{self._prefix}_{name}")

    def counter(self, name: str) -> Counter | None:
        metric = self.get(name)
        return metric if isinstance(metric, Counter) else None

    def gauge(self, name: str) -> Gauge | None:
        metric = self.get(name)
        return metric if isinstance(metric, Gauge) else None

    def histogram(self, name: str) -> Histogram | None:
        metric = self.get(name)
        return metric if isinstance(metric, Histogram) else None

    def to_prometheus(self) -> str:
        """Export metrics in Prometheus text format."""
        with self._lock:
            metrics = list(self._metrics.values())

        lines = []
        for metric in metrics:
            lines.append(f"# HELP {metric.name} {metric.description}")
            lines.append(f"# TYPE {metric.name} {metric.metric_type}")

            for mv in metric.collect():
                label_str = ""
                if mv.labels:
                    label_str = "{" + ",".join(f'{k}="{v}"' for k, v in mv.labels.items()) + "}"
                lines.append(f"{metric.name}{mv.suffix}{label_str} {mv.value}")

        return "\n".join(lines) + "\n"
