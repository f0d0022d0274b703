"""
Prometheus metrics for routing decisions and budget usage.
"""

from prometheus_client import Counter, Gauge

DISPATCH_ATTEMPTS = Counter(
    "router_dispatch_attempts_total",
    "Provider invocations made while dispatching tasks",
    ["provider", "outcome"]
)

SPEND_USD = Counter(
    "router_spend_usd_total",
    "Committed spend in USD",
    ["provider"]
)

BUDGET_REMAINING_USD = Gauge(
    "router_budget_remaining_usd",
    "Budget remaining in the current billing period"
)


def record_attempt(provider: str, success: bool) -> None:
    DISPATCH_ATTEMPTS.labels(provider, "success" if success else "failure").inc()


def record_spend(provider: str, cost_usd: float, remaining_usd: float) -> None:
    if cost_usd > 0:
        SPEND_USD.labels(provider).inc(cost_usd)
    BUDGET_REMAINING_USD.set(remaining_usd)
