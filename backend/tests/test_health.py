import pytest
from fastapi.testclient import TestClient

from briefguard.config import settings
from briefguard.main import app


def test_root_reports_service_version() -> None:
    with TestClient(app) as client:
        response = client.get("/")
    assert response.status_code == 200
    assert response.json()["service"] == "briefguard"
    assert response.json()["version"] == app.version


def test_health_endpoint() -> None:
    with TestClient(app) as client:
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"


def test_ready_endpoint() -> None:
    with TestClient(app) as client:
        response = client.get("/ready")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "ready"
        assert body["checks"]["grounding_policy"]["ok"] is True
        assert body["checks"]["grounding_policy"]["strict_sections"] == ["procurement_action", "watchlist"]


def test_ready_endpoint_reports_invalid_grounding_policy(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(settings, "evidence_auto_match_threshold", 1.5)
    with TestClient(app) as client:
        response = client.get("/ready")
    assert response.status_code == 503
    body = response.json()
    assert body["status"] == "not_ready"
    assert body["checks"]["grounding_policy"]["errors"] == [
        "auto_match_threshold must be between 0 and 1, found 1.5"
    ]


def test_ready_endpoint_reports_unknown_policy_sections(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(settings, "evidence_strict_sections", "procurement_action,watchlst")
    with TestClient(app) as client:
        response = client.get("/ready")
    assert response.status_code == 503
    assert response.json()["checks"]["grounding_policy"]["errors"] == [
        "strict_sections has unknown sections: watchlst"
    ]
