"""Prometheus metrics for the price tracker."""

import time

from prometheus_client import Counter, Gauge, Histogram, Info

# Application info
app_info = Info("price_drop_tracker", "Price drop tracker application info")
app_info.info({"version": "0.1.0", "name": "price-drop-tracker"})

# Check metrics
price_checks_total = Counter(
    "price_checks_total",
    "Total number of product price checks",
    ["status"],
)

extraction_failures_total = Counter(
    "extraction_failures_total",
    "Total number of failed product page extractions",
    ["error_type"],
)

price_check_duration_seconds = Histogram(
    "price_check_duration_seconds",
    "Time spent extracting a single product page",
    buckets=[0.5, 1.0, 2.0, 5.0, 10.0, 30.0, 60.0],
)

# Price change metrics
price_changes_total = Counter(
    "price_changes_total",
    "Total number of price changes detected",
    ["direction"],
)

# Notification metrics
notifications_created_total = Counter(
    "notifications_created_total",
    "Total number of price drop notifications created",
)

# Product metrics
products_tracked = Gauge(
    "products_tracked",
    "Number of products currently being tracked",
)

# Tracker run metrics
tracker_runs_total = Counter(
    "tracker_runs_total",
    "Total number of tracker ticks",
    ["status"],
)

tracker_runs_skipped_total = Counter(
    "tracker_runs_skipped_total",
    "Triggers ignored because a tick was already running",
    ["trigger"],
)

tracker_run_duration_seconds = Histogram(
    "tracker_run_duration_seconds",
    "Duration of a full tick over all products",
    buckets=[1.0, 5.0, 15.0, 30.0, 60.0, 120.0, 300.0, 600.0],
)

tracker_last_run_timestamp = Gauge(
    "tracker_last_run_timestamp",
    "Timestamp of the last completed tick",
)


def update_products_tracked(count: int):
    """Update the products_tracked gauge."""
    products_tracked.set(count)


def record_check_success(duration: float):
    """Record a successful product check."""
    price_checks_total.labels(status="success").inc()
    price_check_duration_seconds.observe(duration)


def record_check_error(error_type: str, duration: float):
    """Record a failed product check."""
    price_checks_total.labels(status="error").inc()
    extraction_failures_total.labels(error_type=error_type).inc()
    price_check_duration_seconds.observe(duration)


def record_price_change(old_price: int, new_price: int):
    """Record a price change."""
    if new_price == old_price:
        return
    direction = "up" if new_price > old_price else "down"
    price_changes_total.labels(direction=direction).inc()


def record_notification_created():
    """Record a notification being stored."""
    notifications_created_total.inc()


def record_tracker_run(success: bool, duration: float):
    """Record a completed tick."""
    status = "success" if success else "error"
    tracker_runs_total.labels(status=status).inc()
    tracker_run_duration_seconds.observe(duration)
    tracker_last_run_timestamp.set(time.time())


def record_tracker_skipped(trigger: str):
    """Record a trigger ignored by the single-flight guard."""
    tracker_runs_skipped_total.labels(trigger=trigger).inc()
