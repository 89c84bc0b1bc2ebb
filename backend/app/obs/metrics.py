"""Central registry for Prometheus metrics used across the backend."""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

REQUEST_COUNTER = Counter(
	"hms_http_requests_total",
	"Total HTTP requests processed",
	["route", "method", "status"],
)

REQUEST_LATENCY = Histogram(
	"hms_http_request_duration_seconds",
	"HTTP request latency in seconds",
	["route", "method"],
	buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0),
)

SOCKET_CLIENTS = Gauge(
	"hms_socketio_clients",
	"Active Socket.IO clients per namespace",
	["namespace"],
)

SOCKET_EVENTS = Counter(
	"hms_socketio_events_total",
	"Socket.IO events emitted per namespace",
	["namespace", "event"],
)

JOIN_REQUESTS = Counter(
	"hms_join_requests_total",
	"Join requests submitted or reviewed, by target kind and outcome",
	["kind", "result"],
)

EVENT_REGISTRATIONS = Counter(
	"hms_event_registrations_total",
	"Event registration attempts by outcome",
	["result"],
)

NOTIFICATIONS_PERSISTED = Counter(
	"hms_notifications_total",
	"Notifications persisted by type",
	["type"],
)

NOTIFICATIONS_MARKED = Counter(
	"hms_notifications_marked_total",
	"Notifications marked read or unread",
	["state"],
)

AI_INSIGHTS = Counter(
	"hms_ai_insights_total",
	"Insight/chat generations by source (provider name or fallback)",
	["feature", "source"],
)

UPLOADS = Counter(
	"hms_uploads_total",
	"File uploads by outcome",
	["result"],
)

AUTH_EVENTS = Counter(
	"hms_auth_events_total",
	"Authentication flow events",
	["event", "result"],
)

ADMIN_ACTIONS = Counter(
	"hms_admin_actions_total",
	"Administrative bulk and settings actions",
	["entity", "action"],
)

REDIS_UP = Gauge("hms_redis_up", "Redis readiness (1 healthy, 0 unhealthy)")
POSTGRES_UP = Gauge("hms_postgres_up", "Postgres readiness (1 healthy, 0 unhealthy)")
DEPENDENCY_LATENCY = Histogram(
	"hms_dependency_latency_seconds",
	"Latency of dependency health probes",
	["dependency"],
	buckets=(0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0, 3.0),
)


def observe_request(route: str, method: str, status: int, elapsed_seconds: float) -> None:
	REQUEST_COUNTER.labels(route=route, method=method, status=str(status)).inc()
	REQUEST_LATENCY.labels(route=route, method=method).observe(elapsed_seconds)


def socket_connected(namespace: str) -> None:
	SOCKET_CLIENTS.labels(namespace=namespace).inc()


def socket_disconnected(namespace: str) -> None:
	SOCKET_CLIENTS.labels(namespace=namespace).dec()


def socket_event(namespace: str, event: str) -> None:
	SOCKET_EVENTS.labels(namespace=namespace, event=event).inc()


def inc_join_request(kind: str, result: str) -> None:
	JOIN_REQUESTS.labels(kind=kind, result=result).inc()


def inc_event_registration(result: str) -> None:
	EVENT_REGISTRATIONS.labels(result=result).inc()


def inc_notification(type: str, count: int = 1) -> None:
	if count > 0:
		NOTIFICATIONS_PERSISTED.labels(type=type).inc(count)


def inc_notifications_marked(state: str, count: int) -> None:
	if count > 0:
		NOTIFICATIONS_MARKED.labels(state=state).inc(count)


def inc_ai_insight(feature: str, source: str) -> None:
	AI_INSIGHTS.labels(feature=feature, source=source).inc()


def inc_upload(result: str) -> None:
	UPLOADS.labels(result=result).inc()


def inc_auth_event(event: str, result: str) -> None:
	AUTH_EVENTS.labels(event=event, result=result).inc()


def inc_admin_action(entity: str, action: str) -> None:
	ADMIN_ACTIONS.labels(entity=entity, action=action).inc()


def mark_redis(ok: bool, *, latency_seconds: float | None = None) -> None:
	REDIS_UP.set(1 if ok else 0)
	if latency_seconds is not None:
		DEPENDENCY_LATENCY.labels(dependency="redis").observe(latency_seconds)


def mark_postgres(ok: bool, *, latency_seconds: float | None = None) -> None:
	POSTGRES_UP.set(1 if ok else 0)
	if latency_seconds is not None:
		DEPENDENCY_LATENCY.labels(dependency="postgres").observe(latency_seconds)
