"""Prometheus metrics collection for observability."""

from typing import Optional

from prometheus_client import (
    Counter,
    Histogram,
    generate_latest,
    REGISTRY,
)

# HTTP Request Metrics
http_requests_total = Counter(
    "http_requests_total",
    "Total number of HTTP requests",
    ["method", "endpoint", "status_code"],
)

http_request_duration_seconds = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

# Query Execution Metrics
query_executions_total = Counter(
    "query_executions_total",
    "Total number of SQL query executions",
    ["status"],
)

query_execution_duration_seconds = Histogram(
    "query_execution_duration_seconds",
    "SQL query execution duration in seconds",
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0],
)

query_result_rows = Histogram(
    "query_result_rows",
    "Number of rows returned or affected by queries",
    buckets=[1, 10, 50, 100, 500, 1000, 5000, 10000, 50000, 100000],
)

history_write_failures_total = Counter(
    "history_write_failures_total",
    "Query history records that could not be written",
)

# Database Connection Metrics
db_connection_attempts_total = Counter(
    "db_connection_attempts_total",
    "Total number of database connection attempts",
    ["status"],
)

# Error Metrics
errors_total = Counter(
    "errors_total",
    "Total number of errors",
    ["error_code", "error_category"],
)


class MetricsCollector:
    """Helper class for collecting metrics."""

    @staticmethod
    def record_http_request(method: str, endpoint: str, status_code: int, duration: float):
        """Record HTTP request metrics."""
        http_requests_total.labels(method=method, endpoint=endpoint, status_code=status_code).inc()
        http_request_duration_seconds.labels(method=method, endpoint=endpoint).observe(duration)

    @staticmethod
    def record_query_execution(
        status: str,
        duration: float,
        row_count: Optional[int] = None,
    ):
        """Record query execution metrics."""
        query_executions_total.labels(status=status).inc()
        query_execution_duration_seconds.observe(duration)
        if row_count is not None:
            query_result_rows.observe(row_count)

    @staticmethod
    def record_history_write_failure():
        """Record a history record that could not be stored."""
        history_write_failures_total.inc()

    @staticmethod
    def record_db_connection_attempt(status: str):
        """Record database connection attempt."""
        db_connection_attempts_total.labels(status=status).inc()

    @staticmethod
    def record_error(error_code: str, error_category: str):
        """Record error occurrence."""
        errors_total.labels(error_code=error_code, error_category=error_category).inc()

    @staticmethod
    def get_metrics() -> bytes:
        """Get Prometheus metrics in text format."""
        return generate_latest(REGISTRY)


# Global instance
metrics = MetricsCollector()
