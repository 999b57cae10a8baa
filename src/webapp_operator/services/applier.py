from __future__ import annotations

import copy
from typing import Any

from .. import logging as structured_logging
from .. import metrics
from ..errors import AlreadyExists, CreateConflict
from ..ownership import set_controller_reference
from ..store import KubernetesObjectStore


def _is_named_list(items: list[Any]) -> bool:
    return all(isinstance(item, dict) and "name" in item for item in items)


def _merge(base: Any, overlay: Any) -> Any:
    """Overlay desired values onto an observed value.

    Dicts merge key by key, lists of named dicts (containers, volumes) merge by
    ``name`` in the overlay's order, anything else is replaced by the overlay.
    Keys only the server sets (defaults, status) survive.
    """
    if isinstance(base, dict) and isinstance(overlay, dict):
        merged = dict(base)
        for key, value in overlay.items():
            merged[key] = _merge(base[key], value) if key in base else copy.deepcopy(value)
        return merged
    if (
        isinstance(base, list)
        and isinstance(overlay, list)
        and overlay
        and _is_named_list(base)
        and _is_named_list(overlay)
    ):
        by_name = {item["name"]: item for item in base}
        return [
            _merge(by_name[item["name"]], item) if item["name"] in by_name else copy.deepcopy(item)
            for item in overlay
        ]
    return copy.deepcopy(overlay)


def merge_desired(observed: dict[str, Any], desired: dict[str, Any]) -> dict[str, Any]:
    """Return ``observed`` with the whole desired state applied on top."""
    merged = copy.deepcopy(observed)
    meta = merged.setdefault("metadata", {})
    desired_meta = desired.get("metadata") or {}

    labels = dict(meta.get("labels") or {})
    labels.update(desired_meta.get("labels") or {})
    meta["labels"] = labels

    refs = [dict(ref) for ref in meta.get("ownerReferences") or []]
    for ref in desired_meta.get("ownerReferences") or []:
        refs = [r for r in refs if r.get("uid") != ref.get("uid")]
        refs.append(dict(ref))
    if refs:
        meta["ownerReferences"] = refs

    merged["spec"] = _merge(observed.get("spec") or {}, desired.get("spec") or {})
    return merged


class UpsertApplier:
    """Create the CronJob if missing, otherwise converge it to the desired state."""

    def __init__(self, store: KubernetesObjectStore):
        self.store = store

    def apply(
        self,
        owner: dict[str, Any],
        desired: dict[str, Any],
        *,
        deadline: float | None = None,
    ) -> dict[str, Any]:
        set_controller_reference(owner, desired)

        meta = desired["metadata"]
        namespace, name = meta["namespace"], meta["name"]
        log = structured_logging.logger.bind(
            controller="WebappCR",
            resource=f"{namespace}/{name}",
            uid=(owner.get("metadata") or {}).get("uid"),
            event="apply",
        )

        observed = self.store.get_cronjob(namespace, name, deadline=deadline)
        if observed is None:
            try:
                created = self.store.create_cronjob(desired, deadline=deadline)
            except AlreadyExists as e:
                metrics.CRONJOB_WRITES_TOTAL.labels(action="conflict").inc()
                raise CreateConflict(str(e), e.status) from e
            metrics.CRONJOB_WRITES_TOTAL.labels(action="created").inc()
            log.info("CronJob created", reason="CronJobCreated", cronjob_name=name)
            return created

        # Refuse to take over a CronJob another object already controls.
        set_controller_reference(owner, copy.deepcopy(observed))

        merged = merge_desired(observed, desired)
        if merged == observed:
            metrics.CRONJOB_WRITES_TOTAL.labels(action="unchanged").inc()
            log.debug("CronJob already up to date", reason="CronJobUnchanged", cronjob_name=name)
            return observed

        updated = self.store.replace_cronjob(merged, deadline=deadline)
        metrics.CRONJOB_WRITES_TOTAL.labels(action="updated").inc()
        log.info(
            "CronJob updated",
            reason="CronJobUpdated",
            cronjob_name=name,
            backoff_limit=desired["spec"]["jobTemplate"]["spec"].get("backoffLimit"),
        )
        return updated
