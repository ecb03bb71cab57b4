"""Pytest configuration and shared fixtures."""

import pytest
from fastapi.testclient import TestClient

from leadrouter.infrastructure.api.dependencies import (
    get_allocation_engine,
    get_audit_repo,
    get_rule_repo,
    get_unit_of_work,
    get_worker_repo,
)
from leadrouter.main import app
from tests.fakes import Harness, lead, rule, worker


@pytest.fixture
def harness():
    """Three workers, three fresh leads and one product rule owned by worker 3."""
    return Harness(
        workers=[worker(1, load=2), worker(2), worker(3, load=1), worker(4, active=False)],
        leads=[lead(1), lead(2, product=7), lead(3, segment="VIP")],
        rules=[rule(1, owners=(3,), products={7})],
    )


@pytest.fixture
def client(harness):
    """API client wired to the harness fakes; the lifespan never runs, so no database."""
    app.dependency_overrides = {
        get_allocation_engine: lambda: harness.engine,
        get_rule_repo: lambda: harness.rules,
        get_worker_repo: lambda: harness.workers,
        get_audit_repo: lambda: harness.audit,
        get_unit_of_work: lambda: harness.uow,
    }
    yield TestClient(app)
    app.dependency_overrides = {}
