"""Single-pass reconciliation of a WebappCR.

Each pass fetches the WebappCR, converges its CronJob, and writes a status
summary computed from the CronJob and the Jobs it spawned. Passes carry no
memory between invocations; convergence comes from kopf re-invoking the pass.
"""

from __future__ import annotations

import copy
from contextlib import suppress
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from . import logging as structured_logging
from . import metrics
from .builders.cronjob_builder import build_cronjob, owner_labels
from .config import OperatorConfig
from .services.aggregator import ExecutionAggregator
from .services.applier import UpsertApplier
from .store import KubernetesObjectStore


@dataclass(frozen=True)
class ReconcileResult:
    found: bool
    execution_status: str | None = None
    last_execution_time: str | None = None
    status_written: bool = False


def _format_time(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
    text = str(value)
    if text.endswith("+00:00"):
        text = text[: -len("+00:00")] + "Z"
    return text


class TaskReconciler:
    def __init__(
        self,
        store: KubernetesObjectStore,
        config: OperatorConfig,
        applier: UpsertApplier | None = None,
        aggregator: ExecutionAggregator | None = None,
    ):
        self.store = store
        self.config = config
        self.applier = applier or UpsertApplier(store)
        self.aggregator = aggregator or ExecutionAggregator(store)

    def desired_cronjob(self, task: dict[str, Any]) -> dict[str, Any]:
        meta = task["metadata"]
        spec = task.get("spec") or {}
        return build_cronjob(
            name=meta["name"],
            namespace=meta["namespace"],
            uri=spec.get("uri", ""),
            backoff_limit=int(spec.get("backoffLimit", 0)),
            schedule=self.config.schedule,
            image=self.config.image,
            command_prefix=self.config.command_prefix,
        )

    def reconcile(
        self, namespace: str, name: str, *, deadline: float | None = None
    ) -> ReconcileResult:
        log = structured_logging.logger.bind(
            controller="WebappCR", resource=f"{namespace}/{name}", event="reconcile"
        )

        task = self.store.get_task(namespace, name, deadline=deadline)
        if task is None:
            log.info("WebappCR not found, nothing to reconcile", reason="ResourceNotFound")
            with suppress(KeyError):
                metrics.ACTIVE_EXECUTIONS.remove(namespace, name)
            return ReconcileResult(found=False)

        log = log.bind(uid=task["metadata"].get("uid"))

        desired = self.desired_cronjob(task)
        labels = owner_labels(name)

        self.applier.apply(task, desired, deadline=deadline)

        status = copy.deepcopy(task.get("status") or {})
        cronjob = self.store.get_cronjob(namespace, name, deadline=deadline)
        last_schedule = _format_time(((cronjob or {}).get("status") or {}).get("lastScheduleTime"))
        if last_schedule:
            status["lastExecutionTime"] = last_schedule
        else:
            log.info("CronJob has not fired yet", reason="LastScheduleTimeMissing")

        status["executionStatus"], counts = self.aggregator.aggregate(
            namespace, labels, deadline=deadline
        )
        metrics.ACTIVE_EXECUTIONS.labels(namespace=namespace, name=name).set(counts["active"])
        log.info(
            "Job executions aggregated",
            reason="ExecutionsAggregated",
            execution_status=status["executionStatus"],
            **counts,
        )

        written = False
        if status != (task.get("status") or {}):
            body = copy.deepcopy(task)
            body["status"] = status
            self.store.replace_task_status(body, deadline=deadline)
            written = True
            log.info(
                "WebappCR status updated",
                reason="StatusUpdated",
                execution_status=status["executionStatus"],
                last_execution_time=status.get("lastExecutionTime"),
            )
        else:
            log.debug("WebappCR status unchanged", reason="StatusUnchanged")

        return ReconcileResult(
            found=True,
            execution_status=status["executionStatus"],
            last_execution_time=status.get("lastExecutionTime"),
            status_written=written,
        )
