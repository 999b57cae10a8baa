"""Object store access for the reconciler.

All cluster I/O goes through a ``KubernetesObjectStore`` handed to each
component, so tests can substitute an in-memory store. Objects cross this
boundary as plain camelCase dicts, the same shape kopf hands to handlers.
"""

from __future__ import annotations

from time import monotonic
from typing import Any

from kubernetes import client

from .constants import API_GROUP, API_VERSION, FIELD_MANAGER, PLURAL
from .errors import (
    AlreadyExists,
    ListError,
    ReconcileCancelled,
    StoreError,
    WriteConflict,
)


def remaining_time(deadline: float | None) -> float | None:
    """Seconds left until ``deadline`` (a ``time.monotonic()`` value).

    Raises ReconcileCancelled once the deadline has passed.
    """
    if deadline is None:
        return None
    left = deadline - monotonic()
    if left <= 0:
        raise ReconcileCancelled("reconcile deadline exceeded")
    return left


class KubernetesObjectStore:
    def __init__(
        self,
        batch_api: client.BatchV1Api | None = None,
        custom_api: client.CustomObjectsApi | None = None,
        *,
        request_timeout: float = 30.0,
        field_manager: str = FIELD_MANAGER,
    ):
        self.batch_api = batch_api or client.BatchV1Api()
        self.custom_api = custom_api or client.CustomObjectsApi()
        self.request_timeout = request_timeout
        self.field_manager = field_manager
        self._serializer = client.ApiClient()

    def _timeout(self, deadline: float | None) -> float:
        left = remaining_time(deadline)
        if left is None:
            return self.request_timeout
        return min(left, self.request_timeout)

    def _to_dict(self, obj: Any) -> dict[str, Any]:
        if isinstance(obj, dict):
            return obj
        return self._serializer.sanitize_for_serialization(obj)

    # WebappCR

    def get_task(
        self, namespace: str, name: str, *, deadline: float | None = None
    ) -> dict[str, Any] | None:
        try:
            return self.custom_api.get_namespaced_custom_object(
                group=API_GROUP,
                version=API_VERSION,
                namespace=namespace,
                plural=PLURAL,
                name=name,
                _request_timeout=self._timeout(deadline),
            )
        except client.exceptions.ApiException as e:
            if e.status == 404:
                return None
            raise StoreError(f"failed to read WebappCR {namespace}/{name}: {e.reason}", e.status)

    def replace_task_status(
        self, task: dict[str, Any], *, deadline: float | None = None
    ) -> dict[str, Any]:
        meta = task["metadata"]
        try:
            return self.custom_api.replace_namespaced_custom_object_status(
                group=API_GROUP,
                version=API_VERSION,
                namespace=meta["namespace"],
                plural=PLURAL,
                name=meta["name"],
                body=task,
                field_manager=self.field_manager,
                _request_timeout=self._timeout(deadline),
            )
        except client.exceptions.ApiException as e:
            resource = f"{meta['namespace']}/{meta['name']}"
            if e.status == 409:
                raise WriteConflict(f"WebappCR {resource} status changed concurrently", 409)
            raise StoreError(f"failed to update WebappCR {resource} status: {e.reason}", e.status)

    # CronJob

    def get_cronjob(
        self, namespace: str, name: str, *, deadline: float | None = None
    ) -> dict[str, Any] | None:
        try:
            cronjob = self.batch_api.read_namespaced_cron_job(
                name, namespace, _request_timeout=self._timeout(deadline)
            )
        except client.exceptions.ApiException as e:
            if e.status == 404:
                return None
            raise StoreError(f"failed to read CronJob {namespace}/{name}: {e.reason}", e.status)
        return self._to_dict(cronjob)

    def create_cronjob(
        self, body: dict[str, Any], *, deadline: float | None = None
    ) -> dict[str, Any]:
        meta = body["metadata"]
        try:
            created = self.batch_api.create_namespaced_cron_job(
                namespace=meta["namespace"],
                body=body,
                field_manager=self.field_manager,
                _request_timeout=self._timeout(deadline),
            )
        except client.exceptions.ApiException as e:
            resource = f"{meta['namespace']}/{meta['name']}"
            if e.status == 409:
                raise AlreadyExists(f"CronJob {resource} already exists", 409)
            raise StoreError(f"failed to create CronJob {resource}: {e.reason}", e.status)
        return self._to_dict(created)

    def replace_cronjob(
        self, body: dict[str, Any], *, deadline: float | None = None
    ) -> dict[str, Any]:
        """Replace a CronJob; ``metadata.resourceVersion`` makes the write conditional."""
        meta = body["metadata"]
        try:
            replaced = self.batch_api.replace_namespaced_cron_job(
                name=meta["name"],
                namespace=meta["namespace"],
                body=body,
                field_manager=self.field_manager,
                _request_timeout=self._timeout(deadline),
            )
        except client.exceptions.ApiException as e:
            resource = f"{meta['namespace']}/{meta['name']}"
            if e.status == 409:
                raise WriteConflict(f"CronJob {resource} changed concurrently", 409)
            raise StoreError(f"failed to update CronJob {resource}: {e.reason}", e.status)
        return self._to_dict(replaced)

    # Job

    def list_jobs(
        self, namespace: str, selector: str, *, deadline: float | None = None
    ) -> list[dict[str, Any]]:
        try:
            jobs = self.batch_api.list_namespaced_job(
                namespace,
                label_selector=selector,
                _request_timeout=self._timeout(deadline),
            )
        except client.exceptions.ApiException as e:
            raise ListError(
                f"failed to list Jobs in {namespace} with {selector!r}: {e.reason}", e.status
            )
        return [self._to_dict(job) for job in jobs.items or []]
