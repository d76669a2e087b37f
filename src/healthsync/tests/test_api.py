"""HTTP API tests — FastAPI TestClient against a capture core wired with fakes."""

from __future__ import annotations

from typing import Iterator

import pytest
from fastapi.testclient import TestClient

from src.config import Settings
from src.healthsync.app import SyncApp, build_sync_app
from src.healthsync.base import GeoFix
from src.healthsync.storage.backend import MemoryBackend
from src.healthsync.tests.conftest import (
    FailingBackend,
    FakeClock,
    FakeHealthProvider,
    FakeHostScheduler,
    FakeLocationProvider,
)
from src.main import create_app


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(_env_file=None, data_dir=tmp_path, timezone="UTC", environment="test")


def make_sync_app(
    settings: Settings,
    backend: MemoryBackend | None = None,
    host: FakeHostScheduler | None = None,
    location: FakeLocationProvider | None = None,
) -> SyncApp:
    return build_sync_app(
        settings,
        backend=backend or MemoryBackend(),
        health=FakeHealthProvider(steps=4821, sleep_minutes=412),
        location=location or FakeLocationProvider(granted=False),
        host=host or FakeHostScheduler(),
        clock=FakeClock(),
    )


@pytest.fixture
def sync_app(settings: Settings) -> SyncApp:
    return make_sync_app(settings)


@pytest.fixture
def client(settings: Settings, sync_app: SyncApp) -> Iterator[TestClient]:
    with TestClient(create_app(settings, sync_app=sync_app)) as test_client:
        yield test_client


class TestHealthEndpoint:
    def test_reports_registered_scheduler(self, client: TestClient) -> None:
        response = client.get("/health")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["scheduler"] == "registered"
        assert body["interval_minutes"] == 60
        assert body["capture_in_flight"] is False

    def test_degraded_when_registration_refused(self, settings: Settings) -> None:
        core = make_sync_app(settings, host=FakeHostScheduler(refuse=True))
        with TestClient(create_app(settings, sync_app=core)) as client:
            body = client.get("/health").json()
        assert body["status"] == "degraded"
        assert body["scheduler"] == "unregistered"


class TestLifespan:
    def test_startup_registers_and_shutdown_cancels(self, settings: Settings) -> None:
        host = FakeHostScheduler()
        core = make_sync_app(settings, host=host)
        with TestClient(create_app(settings, sync_app=core)):
            assert host.calls == ["cancel_all", "register:healthSync:60"]
        assert host.calls[-1] == "cancel_all"
        assert host.active == {}

    def test_scheduler_disabled(self, tmp_path) -> None:
        settings = Settings(_env_file=None, data_dir=tmp_path, scheduler_enabled=False)
        host = FakeHostScheduler()
        with TestClient(create_app(settings, sync_app=make_sync_app(settings, host=host))) as client:
            assert client.get("/health").json()["status"] == "healthy"
        assert "register:healthSync:60" not in host.calls


class TestSyncEndpoints:
    def test_sync_now_stores_record(self, client: TestClient) -> None:
        response = client.post("/api/v1/sync")
        assert response.status_code == 200
        body = response.json()
        assert body["trigger"] == "manual"
        assert body["status"] == "partial"
        assert body["coalesced"] is False
        assert body["record"]["steps"] == 4821
        assert body["record"]["sleep_minutes"] == 412
        assert body["record"]["latitude"] is None
        assert body["degraded"] == [
            {"field": "location", "provider": "fake_location", "reason": "permission denied"}
        ]

        records = client.get("/api/v1/records").json()
        assert len(records) == 1
        assert records[0]["steps"] == 4821

    def test_sync_with_location(self, settings: Settings) -> None:
        location = FakeLocationProvider(granted=True, fix=GeoFix(latitude=52.52, longitude=13.405))
        core = make_sync_app(settings, location=location)
        with TestClient(create_app(settings, sync_app=core)) as client:
            body = client.post("/api/v1/sync").json()
        assert body["status"] == "success"
        assert body["record"]["latitude"] == pytest.approx(52.52)
        assert body["degraded"] == []

    def test_sync_write_failure_is_503(self, settings: Settings) -> None:
        core = make_sync_app(settings, backend=FailingBackend())
        with TestClient(create_app(settings, sync_app=core)) as client:
            response = client.post("/api/v1/sync")
        assert response.status_code == 503
        assert "disk full" in response.json()["detail"]

    def test_today_and_clear(self, client: TestClient) -> None:
        client.post("/api/v1/sync")
        assert len(client.get("/api/v1/records/today").json()) == 1

        response = client.delete("/api/v1/records")
        assert response.status_code == 204
        assert client.get("/api/v1/records").json() == []


class TestIntervalEndpoints:
    def test_get_default(self, client: TestClient) -> None:
        assert client.get("/api/v1/interval").json() == {
            "interval_minutes": 60,
            "scheduler_state": "registered",
        }

    def test_update_reschedules(self, settings: Settings) -> None:
        host = FakeHostScheduler()
        with TestClient(create_app(settings, sync_app=make_sync_app(settings, host=host))) as client:
            response = client.put("/api/v1/interval", json={"interval_minutes": 15})
            assert response.status_code == 200
            assert response.json() == {"interval_minutes": 15, "scheduler_state": "registered"}
            assert host.calls[-2:] == ["cancel_all", "register:healthSync:15"]
            assert client.get("/api/v1/interval").json()["interval_minutes"] == 15

    @pytest.mark.parametrize("minutes", [0, 1441])
    def test_out_of_range_is_422(self, client: TestClient, minutes: int) -> None:
        response = client.put("/api/v1/interval", json={"interval_minutes": minutes})
        assert response.status_code == 422
        assert client.get("/api/v1/interval").json()["interval_minutes"] == 60

    def test_registration_refused_is_503(self, settings: Settings) -> None:
        host = FakeHostScheduler()
        with TestClient(create_app(settings, sync_app=make_sync_app(settings, host=host))) as client:
            host.refuse = True
            response = client.put("/api/v1/interval", json={"interval_minutes": 30})
            assert response.status_code == 503
            assert client.get("/api/v1/interval").json() == {
                "interval_minutes": 30,
                "scheduler_state": "unregistered",
            }
