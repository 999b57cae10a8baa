from __future__ import annotations

import pytest
from fakes import FakeObjectStore

from webapp_operator.config import OperatorConfig
from webapp_operator.reconciler import TaskReconciler


@pytest.fixture
def store() -> FakeObjectStore:
    return FakeObjectStore()


@pytest.fixture
def operator_config() -> OperatorConfig:
    return OperatorConfig()


@pytest.fixture
def reconciler(store: FakeObjectStore, operator_config: OperatorConfig) -> TaskReconciler:
    return TaskReconciler(store, operator_config)  # type: ignore[arg-type]
