"""Polling and WebappCR helpers for integration tests."""

import time
from typing import Callable, Optional

from kubernetes import client


def wait_for(predicate: Callable[[], bool], timeout: int = 60, interval: float = 2) -> bool:
    """Poll ``predicate`` until it returns True or ``timeout`` seconds elapse."""
    start_time = time.time()
    while time.time() - start_time < timeout:
        try:
            if predicate():
                return True
        except client.exceptions.ApiException:
            pass
        time.sleep(interval)
    return False


def create_webapp(
    name: str, namespace: str, uri: str = "http://example.com", backoff_limit: int = 3
) -> dict:
    return client.CustomObjectsApi().create_namespaced_custom_object(
        group="crwebapp.my.domain",
        version="v1",
        namespace=namespace,
        plural="webappcrs",
        body={
            "apiVersion": "crwebapp.my.domain/v1",
            "kind": "WebappCR",
            "metadata": {"name": name},
            "spec": {"uri": uri, "backoffLimit": backoff_limit},
        },
    )


def read_webapp(name: str, namespace: str) -> Optional[dict]:
    try:
        return client.CustomObjectsApi().get_namespaced_custom_object(
            group="crwebapp.my.domain",
            version="v1",
            namespace=namespace,
            plural="webappcrs",
            name=name,
        )
    except client.exceptions.ApiException as e:
        if e.status == 404:
            return None
        raise
