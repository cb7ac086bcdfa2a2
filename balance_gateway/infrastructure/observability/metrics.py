"""Prometheus metrics for monitoring balance loads, simulations, incidents, and backend health"""

from prometheus_client import Counter, Histogram

# Balance page metrics
balance_load_counter = Counter(
    "balance_load_total",
    "Available balance loads",
    ["outcome"],  # success | error
)

balance_tab_counter = Counter(
    "balance_tab_views_total",
    "Balance views served by tab",
    ["tab"],  # all | cards | cash
)

# Simulation metrics
simulation_counter = Counter(
    "settlement_simulation_total",
    "Settlement simulations run",
    ["path", "outcome"],  # path: cash | card; outcome: result | no_configuration | error
)

# Backend API metrics
backend_fetch_failures_counter = Counter(
    "backend_fetch_failures_total",
    "Failed payments backend calls",
)

backend_latency_histogram = Histogram(
    "backend_balance_load_seconds",
    "Time to load all four balance datasets",
    buckets=[0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

refresh_failures_counter = Counter(
    "balance_refresh_failures_total",
    "Balance refreshes after a mutation that failed",
    ["reason"],  # closeout | incident_confirm
)

# Settlement incident metrics
incident_confirm_counter = Counter(
    "settlement_incident_confirm_total",
    "Settlement incident confirmations",
    ["mode", "outcome"],  # mode: single | bulk; outcome: success | error
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_balance_load(success: bool) -> None:
    balance_load_counter.labels(outcome="success" if success else "error").inc()


def record_simulation(is_cash: bool, outcome: str) -> None:
    """Record simulation metrics split by local cash path vs backend card path"""
    simulation_counter.labels(path="cash" if is_cash else "card", outcome=outcome).inc()
