"""Prometheus metrics for proxy routing.

Each ProxyMetrics owns its own CollectorRegistry, so the counters live on the
application state rather than in the process-global default registry.
"""

from __future__ import annotations

from dataclasses import dataclass

from prometheus_client import CollectorRegistry, Counter, Histogram
from prometheus_client.openmetrics.exposition import generate_latest

CONTENT_TYPE = "application/openmetrics-text; version=1.0.0; charset=utf-8"

REQUEST_DURATION_BUCKETS = (0.001, 0.0025, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0)


class MetricsEncodingError(Exception):
    """Registry could not be serialized to the exposition format."""


@dataclass(frozen=True)
class ProxyRequestLabels:
    """Label set of the proxy_requests counter."""

    country: str
    ambient_version: str

    def as_labels(self) -> dict[str, str]:
        return {"country": self.country, "ambient_version": self.ambient_version}


@dataclass(frozen=True)
class HttpRequestLabels:
    """Label set of the http_requests counter."""

    method: str
    route: str
    status: str

    def as_labels(self) -> dict[str, str]:
        return {"method": self.method, "route": self.route, "status": self.status}


def bucket_status(status: int) -> str:
    """Bucket HTTP status to prevent cardinality explosion."""
    if 100 <= status < 600:
        return f"{status // 100}xx"
    return "other"


class ProxyMetrics:
    """Counters recorded while routing clients."""

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        self.registry = registry or CollectorRegistry()

        self.proxy_requests = Counter(
            "proxy_requests",
            "Count of /proxy requests",
            ["country", "ambient_version"],
            registry=self.registry,
        )

        self.http_requests = Counter(
            "http_requests",
            "Total HTTP requests",
            ["method", "route", "status"],
            registry=self.registry,
        )

        self.request_duration = Histogram(
            "http_request_duration_seconds",
            "Request latency",
            ["route"],
            buckets=REQUEST_DURATION_BUCKETS,
            registry=self.registry,
        )

    def record_proxy_request(self, country: str, ambient_version: str) -> None:
        """Count one /proxy request for the given country and client version."""
        labels = ProxyRequestLabels(country=country, ambient_version=ambient_version)
        self.proxy_requests.labels(**labels.as_labels()).inc()

    def record_http_request(self, method: str, route: str, status: int, duration: float) -> None:
        labels = HttpRequestLabels(method=method, route=route, status=bucket_status(status))
        self.http_requests.labels(**labels.as_labels()).inc()
        self.request_duration.labels(route=route).observe(duration)

    def proxy_request_count(self, country: str, ambient_version: str) -> float:
        """Current value of one proxy_requests counter, 0 if never incremented."""
        labels = ProxyRequestLabels(country=country, ambient_version=ambient_version)
        value = self.registry.get_sample_value("proxy_requests_total", labels.as_labels())
        return value or 0.0

    def total_proxy_requests(self) -> float:
        """Sum of proxy_requests over every label set."""
        total = 0.0
        for metric in self.registry.collect():
            if metric.name != "proxy_requests":
                continue
            for sample in metric.samples:
                if sample.name == "proxy_requests_total":
                    total += sample.value
        return total

    def render(self) -> bytes:
        """Serialize the registry as OpenMetrics text.

        Raises:
            MetricsEncodingError: If encoding fails.
        """
        try:
            return generate_latest(self.registry)
        except Exception as e:
            raise MetricsEncodingError(str(e)) from e

    @property
    def content_type(self) -> str:
        return CONTENT_TYPE
