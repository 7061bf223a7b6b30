"""Prometheus-style metrics for observability."""

import time
from collections import defaultdict
from dataclasses import dataclass, field

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware


def _label_key(names: tuple[str, ...], labels: dict[str, str]) -> tuple[str, ...]:
    return tuple(labels.get(name, "") for name in names)


def _format_labels(names: tuple[str, ...], values: tuple[str, ...]) -> str:
    return ",".join(f'{n}="{v}"' for n, v in zip(names, values))


@dataclass
class Counter:
    """Monotonic counter metric."""

    name: str
    help: str
    labels: tuple[str, ...] = ()
    _values: dict[tuple, float] = field(default_factory=lambda: defaultdict(float))

    def inc(self, amount: float = 1.0, **labels: str) -> None:
        self._values[_label_key(self.labels, labels)] += amount

    def get(self, **labels: str) -> float:
        return self._values[_label_key(self.labels, labels)]


@dataclass
class Gauge:
    """Gauge metric that can go up and down."""

    name: str
    help: str
    labels: tuple[str, ...] = ()
    _values: dict[tuple, float] = field(default_factory=lambda: defaultdict(float))

    def set(self, value: float, **labels: str) -> None:
        self._values[_label_key(self.labels, labels)] = value

    def inc(self, amount: float = 1.0, **labels: str) -> None:
        self._values[_label_key(self.labels, labels)] += amount

    def dec(self, amount: float = 1.0, **labels: str) -> None:
        self._values[_label_key(self.labels, labels)] -= amount

    def get(self, **labels: str) -> float:
        return self._values[_label_key(self.labels, labels)]


@dataclass
class Histogram:
    """Histogram metric with predefined buckets."""

    name: str
    help: str
    labels: tuple[str, ...] = ()
    buckets: tuple[float, ...] = (0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0)
    _counts: dict[tuple, dict[float, int]] = field(
        default_factory=lambda: defaultdict(lambda: defaultdict(int))
    )
    _sums: dict[tuple, float] = field(default_factory=lambda: defaultdict(float))
    _totals: dict[tuple, int] = field(default_factory=lambda: defaultdict(int))

    def observe(self, value: float, **labels: str) -> None:
        key = _label_key(self.labels, labels)
        self._sums[key] += value
        self._totals[key] += 1
        for bucket in self.buckets:
            if value <= bucket:
                self._counts[key][bucket] += 1


class MetricsRegistry:
    """Registry for all metrics."""

    def __init__(self) -> None:
        # HTTP metrics
        self.http_requests_total = Counter(
            name="http_requests_total",
            help="Total number of HTTP requests",
            labels=("method", "path", "status"),
        )
        self.http_request_duration_seconds = Histogram(
            name="http_request_duration_seconds",
            help="HTTP request duration in seconds",
            labels=("method", "path"),
        )

        # Upstream YouTube metrics
        self.youtube_requests_total = Counter(
            name="youtube_requests_total",
            help="Total number of requests sent to youtube.com",
            labels=("endpoint", "status"),
        )
        self.youtube_request_duration_seconds = Histogram(
            name="youtube_request_duration_seconds",
            help="youtube.com request duration in seconds",
            labels=("endpoint",),
        )

        # Cache metrics
        self.cache_lookups_total = Counter(
            name="cache_lookups_total",
            help="Cache lookups by cache name and result",
            labels=("cache", "result"),
        )

        # Browser metrics
        self.browser_launches_total = Counter(
            name="browser_launches_total",
            help="Number of headless browser launches or attaches",
        )
        self.browser_open_tabs = Gauge(
            name="browser_open_tabs",
            help="Number of browser tabs currently open for token extraction",
        )

    def format_prometheus(self) -> str:
        """Format all metrics in Prometheus exposition format."""
        lines = []

        for metric in self.__dict__.values():
            if isinstance(metric, (Counter, Gauge)):
                kind = "counter" if isinstance(metric, Counter) else "gauge"
                lines.append(f"# HELP {metric.name} {metric.help}")
                lines.append(f"# TYPE {metric.name} {kind}")
                for label_values, value in metric._values.items():
                    if metric.labels:
                        lines.append(
                            f"{metric.name}{{{_format_labels(metric.labels, label_values)}}} {value}"
                        )
                    else:
                        lines.append(f"{metric.name} {value}")

            elif isinstance(metric, Histogram):
                lines.append(f"# HELP {metric.name} {metric.help}")
                lines.append(f"# TYPE {metric.name} histogram")
                for label_values in metric._sums:
                    if metric.labels:
                        base_labels = f"{{{_format_labels(metric.labels, label_values)},"
                    else:
                        base_labels = "{"

                    cumulative = 0
                    for bucket in metric.buckets:
                        cumulative += metric._counts[label_values].get(bucket, 0)
                        lines.append(f'{metric.name}_bucket{base_labels}le="{bucket}"}} {cumulative}')
                    lines.append(
                        f'{metric.name}_bucket{base_labels}le="+Inf"}} {metric._totals[label_values]}'
                    )
                    closing = base_labels.rstrip(",") + "}" if metric.labels else ""
                    lines.append(f"{metric.name}_sum{closing} {metric._sums[label_values]}")
                    lines.append(f"{metric.name}_count{closing} {metric._totals[label_values]}")

        return "\n".join(lines)


# Global metrics registry
metrics = MetricsRegistry()


class MetricsMiddleware(BaseHTTPMiddleware):
    """Middleware to collect HTTP metrics."""

    async def dispatch(self, request: Request, call_next) -> Response:
        method = request.method
        path = request.url.path

        start_time = time.monotonic()
        status = "500"
        try:
            response = await call_next(request)
            status = str(response.status_code)
        finally:
            duration = time.monotonic() - start_time
            metrics.http_requests_total.inc(method=method, path=path, status=status)
            metrics.http_request_duration_seconds.observe(duration, method=method, path=path)

        return response
