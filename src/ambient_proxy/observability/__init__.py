from ambient_proxy.observability.logging import LOG_FORMATS, configure_logging, parse_level
from ambient_proxy.observability.metrics import (
    CONTENT_TYPE,
    MetricsEncodingError,
    ProxyMetrics,
    ProxyRequestLabels,
    bucket_status,
)

__all__ = [
    # Metrics
    "CONTENT_TYPE",
    "MetricsEncodingError",
    "ProxyMetrics",
    "ProxyRequestLabels",
    "bucket_status",
    # Logging
    "LOG_FORMATS",
    "configure_logging",
    "parse_level",
]
