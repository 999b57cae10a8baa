"""
Pytest configuration and fixtures for integration tests.

These run the reconciler in-process against whatever cluster the current
kubeconfig points at. Set WEBAPP_OPERATOR_INTEGRATION=1 to enable them.
"""

import os
import uuid
from pathlib import Path
from typing import Generator

import pytest
import yaml
from k8s_helpers import wait_for
from kubernetes import client, config

CRD_PATH = Path(__file__).resolve().parents[2] / "deploy" / "crd.yaml"


@pytest.fixture(scope="session")
def cluster_available() -> bool:
    """Load kubeconfig or skip the integration suite."""
    if os.environ.get("WEBAPP_OPERATOR_INTEGRATION") != "1":
        pytest.skip("integration tests disabled (set WEBAPP_OPERATOR_INTEGRATION=1)")
    try:
        config.load_kube_config()
    except config.ConfigException:
        pytest.skip("no kubeconfig available")
    return True


@pytest.fixture(scope="session")
def crd_installed(cluster_available: bool) -> None:
    ext_api = client.ApiextensionsV1Api()
    with open(CRD_PATH) as f:
        crd = yaml.safe_load(f)
    try:
        ext_api.create_custom_resource_definition(body=crd)
    except client.exceptions.ApiException as e:
        if e.status != 409:
            raise
    assert wait_for(
        lambda: _crd_established(ext_api, crd["metadata"]["name"]), timeout=60
    ), "CRD never became established"


@pytest.fixture
def test_namespace(crd_installed: None) -> Generator[str, None, None]:
    name = f"webapp-it-{uuid.uuid4().hex[:8]}"
    v1 = client.CoreV1Api()
    v1.create_namespace(client.V1Namespace(metadata=client.V1ObjectMeta(name=name)))
    yield name
    v1.delete_namespace(name)


def _crd_established(ext_api: client.ApiextensionsV1Api, name: str) -> bool:
    crd = ext_api.read_custom_resource_definition(name)
    for condition in (crd.status and crd.status.conditions) or []:
        if condition.type == "Established" and condition.status == "True":
            return True
    return False
