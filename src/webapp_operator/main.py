from __future__ import annotations

from contextlib import suppress
from time import monotonic
from typing import Any

import kopf
from kubernetes import config as kube_config
from prometheus_client import start_http_server

from . import logging as structured_logging
from . import metrics
from .config import OperatorConfig, load_config
from .constants import API_GROUP, API_VERSION, KIND, LABEL_OWNER_CRONJOB, PLURAL
from .errors import ReconcileError
from .reconciler import ReconcileResult, TaskReconciler
from .store import KubernetesObjectStore


def load_kubernetes_config() -> bool:
    """Load in-cluster config, falling back to kubeconfig. False if neither exists."""
    try:
        kube_config.load_incluster_config()
    except kube_config.ConfigException:
        try:
            kube_config.load_kube_config()
        except kube_config.ConfigException:
            return False
    return True


def build_reconciler(cfg: OperatorConfig) -> TaskReconciler:
    store = KubernetesObjectStore(
        request_timeout=cfg.request_timeout, field_manager=cfg.field_manager
    )
    return TaskReconciler(store, cfg)


@kopf.on.startup()
def configure(settings: kopf.OperatorSettings, memo: kopf.Memo, **_: Any) -> None:
    cfg = load_config()
    structured_logging.setup_structured_logging(cfg.log_level)

    # Keep kopf's bookkeeping in annotations; status belongs to the reconciler.
    settings.persistence.progress_storage = kopf.AnnotationsProgressStorage(prefix=API_GROUP)
    settings.persistence.diffbase_storage = kopf.AnnotationsDiffBaseStorage(prefix=API_GROUP)
    settings.networking.request_timeout = cfg.request_timeout
    settings.execution.max_workers = cfg.max_workers

    if cfg.metrics_port:
        with suppress(OSError):
            start_http_server(cfg.metrics_port)

    if not load_kubernetes_config():
        structured_logging.logger.warning(
            "No Kubernetes configuration found",
            controller=KIND,
            event="startup",
            reason="KubeConfigMissing",
        )

    memo.config = cfg
    memo.reconciler = build_reconciler(cfg)


def run_reconcile(memo: kopf.Memo, namespace: str, name: str, trigger: str) -> ReconcileResult:
    """Run one pass, turning failures into kopf retries with backoff."""
    cfg: OperatorConfig = memo.config
    reconciler: TaskReconciler = memo.reconciler
    log = structured_logging.logger.bind(
        controller=KIND, resource=f"{namespace}/{name}", event="reconcile", trigger=trigger
    )

    started_at = monotonic()
    log.info("Starting WebappCR reconciliation", reason="ReconcileStarted")
    try:
        result = reconciler.reconcile(
            namespace, name, deadline=started_at + cfg.reconcile_timeout
        )
    except ReconcileError as e:
        log.error(
            f"WebappCR reconciliation failed: {e}",
            reason="ReconcileFailed",
            error_type=type(e).__name__,
        )
        metrics.RECONCILE_TOTAL.labels(result="error").inc()
        raise kopf.TemporaryError(str(e), delay=cfg.retry_delay) from e
    except Exception as e:
        log.error(f"WebappCR reconciliation failed: {e}", exc_info=True, reason="ReconcileFailed")
        metrics.RECONCILE_TOTAL.labels(result="error").inc()
        raise
    finally:
        metrics.RECONCILE_DURATION.observe(monotonic() - started_at)

    if result.found:
        log.info(
            "WebappCR reconciliation completed successfully",
            reason="ReconcileSucceeded",
            execution_status=result.execution_status,
        )
        metrics.RECONCILE_TOTAL.labels(result="success").inc()
    else:
        metrics.RECONCILE_TOTAL.labels(result="not_found").inc()
    return result


@kopf.on.create(API_GROUP, API_VERSION, PLURAL)
@kopf.on.update(API_GROUP, API_VERSION, PLURAL)
@kopf.on.resume(API_GROUP, API_VERSION, PLURAL)
def reconcile_webapp(name: str, namespace: str, memo: kopf.Memo, **_: Any) -> None:
    run_reconcile(memo, namespace, name, trigger="webappcr")


def _owner_key(obj: dict[str, Any]) -> tuple[str, str] | None:
    metadata = obj.get("metadata") or {}
    owner_name = (metadata.get("labels") or {}).get(LABEL_OWNER_CRONJOB)
    namespace = metadata.get("namespace")
    if not owner_name or not namespace:
        return None
    return namespace, owner_name


def _reconcile_from_event(memo: kopf.Memo, namespace: str, name: str, trigger: str) -> None:
    """Run a pass for a watch event.

    kopf does not retry event handlers, so a failed pass is logged by
    run_reconcile and left for the next event or WebappCR change.
    """
    try:
        run_reconcile(memo, namespace, name, trigger=trigger)
    except kopf.TemporaryError:
        return


@kopf.on.event("batch", "v1", "cronjobs", labels={LABEL_OWNER_CRONJOB: kopf.PRESENT})
def handle_cronjob_event(event: dict[str, Any], memo: kopf.Memo, **_: Any) -> None:
    """Re-run the owner's pass when its CronJob changes or is deleted."""
    cronjob = event.get("object") or {}
    refs = (cronjob.get("metadata") or {}).get("ownerReferences") or []
    if not any(ref.get("kind") == KIND and ref.get("controller") for ref in refs):
        return
    key = _owner_key(cronjob)
    if key is not None:
        _reconcile_from_event(memo, *key, trigger="cronjob")


@kopf.on.event("batch", "v1", "jobs", labels={LABEL_OWNER_CRONJOB: kopf.PRESENT})
def handle_job_event(event: dict[str, Any], memo: kopf.Memo, **_: Any) -> None:
    """Re-run the owner's pass so executionStatus follows Job progress."""
    key = _owner_key(event.get("object") or {})
    if key is not None:
        _reconcile_from_event(memo, *key, trigger="job")
