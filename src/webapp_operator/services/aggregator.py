from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from ..builders.cronjob_builder import label_selector
from ..constants import JOB_COMPLETE, JOB_FAILED, STATUS_ACTIVE, STATUS_INACTIVE
from ..store import KubernetesObjectStore


def job_finished(job: dict[str, Any]) -> tuple[bool, str | None]:
    """Return whether a Job reached a terminal condition, and which one.

    A Job carrying both Complete=True and Failed=True is reported as Failed.
    """
    conditions = (job.get("status") or {}).get("conditions") or []
    terminal = {
        c.get("type")
        for c in conditions
        if c.get("type") in (JOB_COMPLETE, JOB_FAILED) and c.get("status") == "True"
    }
    if JOB_FAILED in terminal:
        return True, JOB_FAILED
    if JOB_COMPLETE in terminal:
        return True, JOB_COMPLETE
    return False, None


def count_executions(jobs: Iterable[dict[str, Any]]) -> dict[str, int]:
    counts = {"active": 0, "succeeded": 0, "failed": 0}
    for job in jobs:
        finished, condition = job_finished(job)
        if not finished:
            counts["active"] += 1
        elif condition == JOB_FAILED:
            counts["failed"] += 1
        else:
            counts["succeeded"] += 1
    return counts


def summarize_executions(jobs: Iterable[dict[str, Any]]) -> str:
    """Active if any Job is still unfinished; no Jobs at all is Inactive."""
    if any(not job_finished(job)[0] for job in jobs):
        return STATUS_ACTIVE
    return STATUS_INACTIVE


class ExecutionAggregator:
    def __init__(self, store: KubernetesObjectStore):
        self.store = store

    def list_executions(
        self, namespace: str, labels: dict[str, str], *, deadline: float | None = None
    ) -> list[dict[str, Any]]:
        return self.store.list_jobs(namespace, label_selector(labels), deadline=deadline)

    def aggregate(
        self, namespace: str, labels: dict[str, str], *, deadline: float | None = None
    ) -> tuple[str, dict[str, int]]:
        """List the owner's Jobs once and return the execution status with per-state counts."""
        jobs = self.list_executions(namespace, labels, deadline=deadline)
        return summarize_executions(jobs), count_executions(jobs)
