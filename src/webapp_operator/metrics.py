from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

RECONCILE_TOTAL = Counter(
    "webapp_operator_reconcile_total",
    "Number of WebappCR reconciliations",
    labelnames=("result",),
)

RECONCILE_DURATION = Histogram(
    "webapp_operator_reconcile_duration_seconds",
    "Duration of WebappCR reconciliations in seconds",
    buckets=(0.05, 0.1, 0.25, 0.5, 1, 2, 5, 10),
)

CRONJOB_WRITES_TOTAL = Counter(
    "webapp_operator_cronjob_writes_total",
    "CronJob apply outcomes",
    labelnames=("action",),
)

ACTIVE_EXECUTIONS = Gauge(
    "webapp_operator_active_executions",
    "Unfinished Jobs per WebappCR at the last reconcile",
    labelnames=("namespace", "name"),
)
