# tests/integration/conftest.py
import pytest
from fastapi.testclient import TestClient

from main import app
from app import container
from app.application.expiry_job import ExpiryNotificationJob
from app.application.ingest_use_case import CsvIngestUseCase
from app.application.inventory_use_cases import DeviceRegistrationUseCase, ProductUseCase
from app.application.scheduler import DailyScheduler
from app.infra.api.security import require_api_key


async def _no_gate():
    return None


@pytest.fixture
def wired(product_repo, device_repo, notifier, status_store):
    """App with in-memory stores; no lifespan, so nothing touches Mongo/Redis/FCM."""
    job = ExpiryNotificationJob(product_repo, device_repo, notifier, status_store)
    sched = DailyScheduler(job.run_once)
    ov = app.dependency_overrides
    ov[container.require_db] = _no_gate
    ov[require_api_key] = _no_gate
    ov[container.get_ingest_use_case] = lambda: CsvIngestUseCase(product_repo, status_store)
    ov[container.get_product_use_case] = lambda: ProductUseCase(product_repo)
    ov[container.get_device_use_case] = lambda: DeviceRegistrationUseCase(device_repo)
    ov[container.get_status_store] = lambda: status_store
    ov[container.get_notifier] = lambda: notifier
    ov[container.get_expiry_job] = lambda: job
    ov[container.get_scheduler] = lambda: sched
    yield {"app": app, "products": product_repo, "devices": device_repo, "sched": sched}
    ov.clear()


@pytest.fixture
def client(wired):
    return TestClient(wired["app"])
