"""
Shared fixtures: a fresh store/service per test, and an HTTP client over a fresh app.
"""
from datetime import UTC, datetime, timedelta

import pytest
from fastapi.testclient import TestClient

from shipment_tracker.main import create_app
from shipment_tracker.service import ShipmentService
from shipment_tracker.store import ShipmentStore


@pytest.fixture
def store() -> ShipmentStore:
    return ShipmentStore()


@pytest.fixture
def service(store) -> ShipmentService:
    return ShipmentService(store)


@pytest.fixture
def eta() -> datetime:
    return datetime.now(UTC) + timedelta(days=7)


@pytest.fixture
def client() -> TestClient:
    return TestClient(create_app())
