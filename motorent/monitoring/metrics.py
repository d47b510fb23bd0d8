from prometheus_client import Counter, Gauge, Histogram, Info, start_http_server
from prometheus_fastapi_instrumentator import Instrumentator

# Business metrics
rentals_total = Counter(
    "motorent_rentals_total",
    "Total number of rental state changes",
    ["service", "status"],  # status=ACTIVE/FINISHED/OVERDUE/DELETED
)

price_calculations_total = Counter(
    "motorent_price_calculations_total",
    "Total number of rental price calculations",
    ["service"],
)

rental_cost_amount = Histogram(
    "motorent_rental_cost_rupiah",
    "Total cost of created rentals in rupiah",
    ["service"],
    buckets=[50_000, 100_000, 250_000, 500_000, 1_000_000, 2_500_000, 5_000_000],
)

penalties_total = Counter(
    "motorent_penalties_total",
    "Total number of finished rentals charged a late-return penalty",
    ["service"],
)

penalty_amount_total = Counter(
    "motorent_penalty_amount_rupiah_total",
    "Total late-return penalties charged in rupiah",
    ["service"],
)

overdue_checks_total = Counter(
    "motorent_overdue_checks_total",
    "Total number of overdue check cycles",
    ["service"],
)

overdue_rentals_marked = Gauge(
    "motorent_overdue_rentals_marked_last_cycle",
    "Number of rentals marked overdue in last check cycle",
    ["service"],
)

overdue_check_duration = Histogram(
    "motorent_overdue_check_duration_seconds",
    "Duration of overdue check cycle",
    ["service"],
    buckets=[0.05, 0.1, 0.5, 1.0, 2.0, 5.0, 10.0],
)

worker_errors_total = Counter(
    "motorent_worker_errors_total",
    "Total worker errors",
    ["service", "error_type"],
)

# Technical metrics
notifications_total = Counter(
    "motorent_notifications_total",
    "Total WhatsApp notifications",
    ["service", "kind", "status"],  # status=sent/failed/skipped
)

circuit_breaker_state = Gauge(
    "motorent_circuit_breaker_state",
    "Circuit breaker state (0=closed, 1=open, 2=half_open)",
    ["service", "circuit_name"],
)

circuit_breaker_failures = Counter(
    "motorent_circuit_breaker_failures_total",
    "Total circuit breaker failures",
    ["service", "circuit_name"],
)

# Application info
app_info = Info("motorent_app_info", "Application information")


def setup_instrumentator() -> Instrumentator:
    return Instrumentator(
        should_group_status_codes=False,
        should_ignore_untemplated=True,
        should_respect_env_var=False,
        should_instrument_requests_inprogress=True,
        excluded_handlers=["/metrics", "/health"],
        inprogress_name="http_requests_inprogress",
        inprogress_labels=True,
    )


def init_app_info(version: str = "1.0.0", component: str = "api"):
    app_info.info({"version": version, "service": "motorent", "component": component})


def start_metrics_server(port: int = 8001):
    start_http_server(port)


class MetricsCollector:
    SERVICE_NAME = "motorent"

    @staticmethod
    def record_rental(status: str):
        rentals_total.labels(service=MetricsCollector.SERVICE_NAME, status=status).inc()

    @staticmethod
    def record_rental_cost(amount: int):
        rental_cost_amount.labels(service=MetricsCollector.SERVICE_NAME).observe(amount)

    @staticmethod
    def record_price_calculation():
        price_calculations_total.labels(service=MetricsCollector.SERVICE_NAME).inc()

    @staticmethod
    def record_penalty(amount: int):
        if amount <= 0:
            return
        penalties_total.labels(service=MetricsCollector.SERVICE_NAME).inc()
        penalty_amount_total.labels(service=MetricsCollector.SERVICE_NAME).inc(amount)

    @staticmethod
    def record_overdue_check(duration: float, marked: int):
        overdue_checks_total.labels(service=MetricsCollector.SERVICE_NAME).inc()
        overdue_check_duration.labels(service=MetricsCollector.SERVICE_NAME).observe(
            duration
        )
        overdue_rentals_marked.labels(service=MetricsCollector.SERVICE_NAME).set(marked)

    @staticmethod
    def record_notification(kind: str, status: str):
        notifications_total.labels(
            service=MetricsCollector.SERVICE_NAME, kind=kind, status=status
        ).inc()

    @staticmethod
    def record_worker_error(error_type: str):
        worker_errors_total.labels(
            service=MetricsCollector.SERVICE_NAME, error_type=error_type
        ).inc()
