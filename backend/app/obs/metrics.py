"""Central registry for Prometheus metrics used across the backend."""

from __future__ import annotations

from typing import Optional

from prometheus_client import Counter, Gauge, Histogram

REQUEST_COUNTER = Counter(
	"screentime_http_requests_total",
	"Total HTTP requests processed",
	["route", "method", "status"],
)

REQUEST_LATENCY = Histogram(
	"screentime_http_request_duration_seconds",
	"HTTP request latency in seconds",
	["route", "method"],
	buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0),
)

ENTRIES_SUBMITTED = Counter(
	"screentime_entries_submitted_total",
	"Weekly screen-time entries created or replaced",
)

REPORTS_SERVED = Counter(
	"screentime_reports_total",
	"Metrics and leaderboard reports computed",
	["view", "scope"],
)

UPSTREAM_FAILURES = Counter(
	"screentime_upstream_failures_total",
	"Entry store operations that failed",
	["operation"],
)

LEADERBOARD_SIZE = Histogram(
	"screentime_leaderboard_size",
	"Users ranked per leaderboard request",
	buckets=(0, 1, 5, 10, 25, 50, 100, 250, 500, 1000, 5000),
)

REDIS_UP = Gauge("screentime_redis_up", "Redis reachability from readiness checks")
POSTGRES_UP = Gauge("screentime_postgres_up", "Postgres reachability from readiness checks")
DEPENDENCY_LATENCY = Histogram(
	"screentime_dependency_ping_seconds",
	"Latency of readiness pings",
	["dependency"],
	buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5),
)


def observe_request(route: str, method: str, status: int, elapsed_seconds: float) -> None:
	REQUEST_COUNTER.labels(route=route, method=method, status=str(status)).inc()
	REQUEST_LATENCY.labels(route=route, method=method).observe(elapsed_seconds)


def entry_submitted() -> None:
	ENTRIES_SUBMITTED.inc()


def report_served(view: str, scope: str) -> None:
	REPORTS_SERVED.labels(view=view, scope=scope).inc()


def upstream_failure(operation: str) -> None:
	UPSTREAM_FAILURES.labels(operation=operation).inc()


def observe_leaderboard_size(count: int) -> None:
	LEADERBOARD_SIZE.observe(count)


def mark_redis(ok: bool, *, latency_seconds: Optional[float] = None) -> None:
	REDIS_UP.set(1 if ok else 0)
	if latency_seconds is not None:
		DEPENDENCY_LATENCY.labels(dependency="redis").observe(latency_seconds)


def mark_postgres(ok: bool, *, latency_seconds: Optional[float] = None) -> None:
	POSTGRES_UP.set(1 if ok else 0)
	if latency_seconds is not None:
		DEPENDENCY_LATENCY.labels(dependency="postgres").observe(latency_seconds)
