"""Prometheus metrics instrumentation.

Defines and exports Prometheus metrics for monitoring the service catalog.
Avoids high cardinality by omitting service names from labels.
"""

from prometheus_client import CONTENT_TYPE_LATEST, Counter, Gauge, Histogram, generate_latest

# HTTP Request Metrics
http_requests_total = Counter(
    name="dashops_catalog_http_requests_total",
    documentation="Total number of HTTP requests",
    labelnames=["method", "endpoint", "status_code"],
)

http_request_duration_seconds = Histogram(
    name="dashops_catalog_http_request_duration_seconds",
    documentation="HTTP request duration in seconds",
    labelnames=["method", "endpoint", "status_code"],
    buckets=(
        0.005,  # 5ms
        0.01,  # 10ms
        0.025,  # 25ms
        0.05,  # 50ms
        0.1,  # 100ms
        0.25,  # 250ms
        0.5,  # 500ms
        1.0,  # 1s
        2.5,  # 2.5s
        5.0,  # 5s
        10.0,  # 10s
    ),
)

# Catalog Mutation Metrics
catalog_mutations_total = Counter(
    name="dashops_catalog_mutations_total",
    documentation="Total number of successful catalog mutations",
    labelnames=["action", "history"],  # history: recorded, skipped, failed
)

catalog_services = Gauge(
    name="dashops_catalog_services",
    documentation="Number of services returned by the last unfiltered listing",
)

# Kubernetes Facade Metrics
kubernetes_calls_total = Counter(
    name="dashops_catalog_kubernetes_calls_total",
    documentation="Total number of Kubernetes API calls",
    labelnames=["operation", "outcome"],
)

# Health Aggregation Metrics
health_evaluations_total = Counter(
    name="dashops_catalog_health_evaluations_total",
    documentation="Total number of service health evaluations",
    labelnames=["overall_status", "tier"],
)

health_evaluation_duration_seconds = Histogram(
    name="dashops_catalog_health_evaluation_duration_seconds",
    documentation="Service health aggregation duration in seconds",
    buckets=(
        0.01,  # 10ms
        0.05,  # 50ms
        0.1,  # 100ms
        0.25,  # 250ms
        0.5,  # 500ms
        1.0,  # 1s
        2.5,  # 2.5s
        5.0,  # 5s
        10.0,  # 10s
        30.0,  # 30s
    ),
)


def get_metrics_content() -> tuple[bytes, str]:
    """Generate Prometheus metrics in exposition format.

    Returns:
        Tuple of (metrics_bytes, content_type)
    """
    return generate_latest(), CONTENT_TYPE_LATEST


def record_http_request(
    method: str,
    endpoint: str,
    status_code: int,
    duration: float,
) -> None:
    """Record HTTP request metrics.

    Args:
        method: HTTP method (GET, POST, etc.)
        endpoint: Route template (e.g. /api/service-catalog/services/{name})
        status_code: HTTP status code
        duration: Request duration in seconds
    """
    labels = {"method": method, "endpoint": endpoint, "status_code": str(status_code)}
    http_requests_total.labels(**labels).inc()
    http_request_duration_seconds.labels(**labels).observe(duration)


def record_catalog_mutation(action: str, history: str) -> None:
    """Record a successful catalog mutation.

    Args:
        action: create, update or delete
        history: recorded, skipped (versioning disabled) or failed
    """
    catalog_mutations_total.labels(action=action, history=history).inc()


def update_catalog_size(count: int) -> None:
    catalog_services.set(count)


def record_kubernetes_call(operation: str, outcome: str) -> None:
    """Record a Kubernetes API call.

    Args:
        operation: get_deployment, list_deployments or validate_context
        outcome: success, not_found, error or unknown_context
    """
    kubernetes_calls_total.labels(operation=operation, outcome=outcome).inc()


def record_health_evaluation(overall_status: str, tier: str, duration: float) -> None:
    """Record a service health aggregation.

    Args:
        overall_status: Resulting overall status
        tier: Service tier
        duration: Aggregation duration in seconds
    """
    health_evaluations_total.labels(overall_status=overall_status, tier=tier).inc()
    health_evaluation_duration_seconds.observe(duration)
