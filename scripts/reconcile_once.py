#!/usr/bin/env python3
from __future__ import annotations

import argparse
from time import monotonic

from webapp_operator import logging as structured_logging
from webapp_operator.config import load_config
from webapp_operator.constants import API_GROUP, API_VERSION, PLURAL
from webapp_operator.errors import ReconcileError
from webapp_operator.main import build_reconciler, load_kubernetes_config


def main() -> int:
    parser = argparse.ArgumentParser(description="Run one reconcile pass for WebappCRs")
    parser.add_argument("--namespace", required=True)
    parser.add_argument("--name", help="reconcile only this WebappCR")
    args = parser.parse_args()

    cfg = load_config()
    structured_logging.setup_structured_logging(cfg.log_level)
    if not load_kubernetes_config():
        print("No Kubernetes configuration found")
        return 2

    reconciler = build_reconciler(cfg)

    if args.name:
        names = [args.name]
    else:
        items = reconciler.store.custom_api.list_namespaced_custom_object(
            group=API_GROUP,
            version=API_VERSION,
            namespace=args.namespace,
            plural=PLURAL,
        )
        names = [item["metadata"]["name"] for item in items.get("items", [])]

    failures = 0
    for name in names:
        try:
            result = reconciler.reconcile(
                args.namespace, name, deadline=monotonic() + cfg.reconcile_timeout
            )
        except ReconcileError as e:
            failures += 1
            print(f"Failed {args.namespace}/{name}: {e}")
            continue
        if result.found:
            print(f"Reconciled {args.namespace}/{name}: {result.execution_status}")
        else:
            print(f"Skipped {args.namespace}/{name}: not found")

    return 1 if failures else 0


if __name__ == "__main__":
    raise SystemExit(main())
