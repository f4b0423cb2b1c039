"""Central registry for Prometheus metrics used across the clubs backend."""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram


REQUEST_COUNTER = Counter(
	"clubs_http_requests_total",
	"Total HTTP requests processed",
	["route", "method", "status"],
)

REQUEST_LATENCY = Histogram(
	"clubs_http_request_duration_seconds",
	"HTTP request latency in seconds",
	["route", "method"],
	buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0),
)

AUTH_FAILURES = Counter(
	"clubs_auth_failures_total",
	"Requests rejected before reaching the club core",
	["reason"],
)

CLUBS_CREATED = Counter(
	"clubs_created_total",
	"Clubs created",
	["funding_type"],
)

CLUB_STATUS_TRANSITIONS = Counter(
	"clubs_status_transitions_total",
	"Club status transitions applied",
	["from_status", "to_status"],
)

CLUB_JOINS = Counter(
	"clubs_join_total",
	"Club join requests accepted",
	["status"],
)

CLUB_LEAVES = Counter(
	"clubs_leave_total",
	"Club memberships removed by their holder",
	["prior_status"],
)

CLUB_BANS = Counter(
	"clubs_bans_total",
	"Members banned by club leaders",
)

SCHEDULE_APPLICATIONS = Counter(
	"clubs_schedule_applications_total",
	"Schedule attendance applications",
	["result"],
)

SCHEDULE_CHANGES = Counter(
	"clubs_schedule_changes_total",
	"Schedule create/update/delete operations",
	["action"],
)

CHAT_ROOM_EVENTS = Counter(
	"clubs_chat_room_events_total",
	"Club chat room provisioning and participation changes",
	["action"],
)

TX_ROLLBACKS = Counter(
	"clubs_tx_rollbacks_total",
	"Transactions rolled back",
	["operation"],
)

POSTGRES_UP = Gauge(
	"clubs_postgres_up",
	"Postgres availability as seen by readiness checks",
)

POSTGRES_LATENCY = Histogram(
	"clubs_postgres_ping_seconds",
	"Postgres readiness ping latency",
	buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25),
)


def observe_request(route: str, method: str, status: int, elapsed_seconds: float) -> None:
	REQUEST_COUNTER.labels(route=route, method=method, status=str(status)).inc()
	REQUEST_LATENCY.labels(route=route, method=method).observe(elapsed_seconds)


def inc_auth_failure(reason: str) -> None:
	AUTH_FAILURES.labels(reason=reason).inc()


def inc_club_created(funding_type: str) -> None:
	CLUBS_CREATED.labels(funding_type=funding_type).inc()


def inc_club_status_transition(from_status: str, to_status: str) -> None:
	CLUB_STATUS_TRANSITIONS.labels(from_status=from_status, to_status=to_status).inc()


def inc_club_join(status: str) -> None:
	CLUB_JOINS.labels(status=status).inc()


def inc_club_leave(prior_status: str) -> None:
	CLUB_LEAVES.labels(prior_status=prior_status).inc()


def inc_club_ban() -> None:
	CLUB_BANS.inc()


def inc_schedule_application(result: str) -> None:
	SCHEDULE_APPLICATIONS.labels(result=result).inc()


def inc_schedule_change(action: str) -> None:
	SCHEDULE_CHANGES.labels(action=action).inc()


def inc_chat_room_event(action: str) -> None:
	CHAT_ROOM_EVENTS.labels(action=action).inc()


def inc_club_tx_rollback(operation: str) -> None:
	TX_ROLLBACKS.labels(operation=operation).inc()


def mark_postgres(ok: bool, *, latency_seconds: float | None = None) -> None:
	POSTGRES_UP.set(1 if ok else 0)
	if latency_seconds is not None:
		POSTGRES_LATENCY.observe(latency_seconds)
