from __future__ import annotations

import shlex
from typing import Any

from ..constants import LABEL_OWNER_CRONJOB

DEFAULT_SCHEDULE = "*/1 * * * *"
DEFAULT_IMAGE = "ubuntu"
DEFAULT_COMMAND_PREFIX = "sleep 500000 &&"


def owner_labels(owner_name: str) -> dict[str, str]:
    """Label set linking a CronJob and its Jobs to the owning WebappCR."""
    return {LABEL_OWNER_CRONJOB: owner_name}


def label_selector(labels: dict[str, str]) -> str:
    return ",".join(f"{k}={v}" for k, v in sorted(labels.items()))


def task_command(uri: str, command_prefix: str = DEFAULT_COMMAND_PREFIX) -> list[str]:
    script = f"echo {shlex.quote(uri)}"
    if command_prefix:
        script = f"{command_prefix} {script}"
    return ["/bin/bash", "-c", script]


def build_cronjob(
    *,
    name: str,
    namespace: str,
    uri: str,
    backoff_limit: int,
    schedule: str = DEFAULT_SCHEDULE,
    image: str = DEFAULT_IMAGE,
    command_prefix: str = DEFAULT_COMMAND_PREFIX,
) -> dict[str, Any]:
    """Render the desired CronJob manifest for a WebappCR.

    This function is pure and safe to unit-test. The CronJob takes the owner's
    name; the owner label goes on the CronJob, its job template and the pod
    template so that spawned Jobs and Pods carry it too.
    """
    labels = owner_labels(name)

    return {
        "apiVersion": "batch/v1",
        "kind": "CronJob",
        "metadata": {
            "name": name,
            "namespace": namespace,
            "labels": dict(labels),
        },
        "spec": {
            "schedule": schedule,
            "jobTemplate": {
                "metadata": {"labels": dict(labels)},
                "spec": {
                    "backoffLimit": backoff_limit,
                    "template": {
                        "metadata": {"labels": dict(labels)},
                        "spec": {
                            "containers": [
                                {
                                    "name": "task",
                                    "image": image,
                                    "command": task_command(uri, command_prefix),
                                }
                            ],
                            "restartPolicy": "OnFailure",
                        },
                    },
                },
            },
        },
    }
