from prometheus_client import Counter, Histogram, Gauge, REGISTRY


# we check if they are already registered to avoid errors during hot reloads or test runs
def get_or_create_metric(name, documentation, metric_type, **kwargs):
    try:
        return metric_type(name, documentation, **kwargs)
    except ValueError:
        return REGISTRY._names_to_collectors[name]


REQUESTS_TOTAL = get_or_create_metric(
    "planner_requests_total",
    "Total requests",
    Counter,
    labelnames=["endpoint", "status"],
)

REQUEST_LATENCY_SECONDS = get_or_create_metric(
    "planner_request_latency_seconds",
    "Request latency",
    Histogram,
    labelnames=["endpoint"],
)

TASKS_GENERATED_TOTAL = get_or_create_metric(
    "planner_tasks_generated_total", "Total tasks returned by AI generation", Counter
)

GENERATION_FAILURES_TOTAL = get_or_create_metric(
    "planner_generation_failures_total",
    "AI generation requests that failed as a whole",
    Counter,
    labelnames=["reason"],
)

RECONCILIATION_TOTAL = get_or_create_metric(
    "planner_reconciliation_total",
    "Generated tasks submitted as calendar events",
    Counter,
    labelnames=["outcome"],
)

ACTIVE_SESSIONS = get_or_create_metric(
    "planner_active_sessions", "Generation sessions held in memory", Gauge
)

FALLBACK_ACTIVATIONS_TOTAL = get_or_create_metric(
    "planner_fallback_activations_total",
    "Generations where no record parsed and raw lines were returned instead",
    Counter,
)
