import pytest

pytest.importorskip("httpx")

from fastapi.testclient import TestClient

from egecheck.main import app
from egecheck.settings import settings


@pytest.mark.parametrize(
    ("api_key", "expected_configured"),
    [("test-key", True), ("   ", False)],
)
def test_health_returns_grading_configuration_status(monkeypatch, tmp_path, api_key: str, expected_configured: bool) -> None:
    monkeypatch.setattr(settings, "data_dir", str(tmp_path / "data"))
    monkeypatch.setattr(settings, "persistence_backend", "memory")
    monkeypatch.setattr(settings, "grading_backend", "openai")
    monkeypatch.setattr(settings, "openai_api_key", api_key)

    with TestClient(app) as client:
        response = client.get("/health")

    assert response.status_code == 200

    payload = response.json()
    assert payload["ok"] is True
    assert payload["grading_configured"] is expected_configured
    assert payload["persistence"] == "memory"


def test_health_deep_returns_storage_and_db_diagnostics(monkeypatch, sqlite_engine) -> None:
    monkeypatch.setattr(settings, "grading_backend", "mock")

    with TestClient(app) as client:
        response = client.get("/health/deep")

    assert response.status_code == 200
    payload = response.json()
    assert payload["ok"] is True
    assert payload["grading_configured"] is True
    assert payload["storage_writable"] is True
    assert payload["db_ok"] is True
    assert payload["data_dir"] == str(settings.data_path)


def test_health_deep_skips_database_for_memory_persistence(monkeypatch, tmp_path) -> None:
    monkeypatch.setattr(settings, "data_dir", str(tmp_path / "data"))
    monkeypatch.setattr(settings, "persistence_backend", "memory")
    monkeypatch.setattr(settings, "grading_backend", "mock")

    with TestClient(app) as client:
        response = client.get("/health/deep")

    assert response.status_code == 200
    payload = response.json()
    assert payload["storage_writable"] is True
    assert payload["db_ok"] is None
