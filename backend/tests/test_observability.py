import json
import logging
from uuid import UUID

from fastapi.testclient import TestClient

from briefguard.main import app
from briefguard.observability import JsonFormatter, sanitize_for_logging


def test_request_id_header_is_generated_when_missing() -> None:
    with TestClient(app) as client:
        response = client.get("/health")
    assert response.status_code == 200
    request_id = response.headers.get("X-Request-ID")
    assert request_id is not None
    UUID(request_id)


def test_request_id_header_is_preserved_when_provided() -> None:
    with TestClient(app) as client:
        response = client.get("/ready", headers={"X-Request-ID": "demo-request-123"})
    assert response.status_code == 200
    assert response.headers.get("X-Request-ID") == "demo-request-123"


def test_invalid_request_id_header_is_replaced() -> None:
    with TestClient(app) as client:
        response = client.get("/health", headers={"X-Request-ID": "bad id with spaces"})
    UUID(response.headers["X-Request-ID"])


def test_request_started_log_redacts_sensitive_query_values(caplog) -> None:
    with TestClient(app) as client:
        with caplog.at_level(logging.INFO, logger="briefguard.api"):
            response = client.get("/health?token=supersecret&api_key=abc&q=public")
    assert response.status_code == 200

    request_started_logs = [
        record for record in caplog.records if getattr(record, "event", None) == "request_started"
    ]
    assert request_started_logs
    query = request_started_logs[-1].query
    assert query["token"] == "[REDACTED]"
    assert query["api_key"] == "[REDACTED]"
    assert query["q"] == "public"


def test_sanitize_for_logging_redacts_credentials_and_summarizes_bulk_text() -> None:
    payload = {
        "notes": "Retry with Bearer abc123 and api_key=abcdef123456 please",
        "client_secret": "plain-value",
        "raw": "x" * 5000,
        "issues": ["a" * 300],
    }

    sanitized = sanitize_for_logging(payload)

    assert sanitized["notes"] == "Retry with Bearer [REDACTED] and api_key=[REDACTED] please"
    assert sanitized["client_secret"] == "[REDACTED]"
    assert sanitized["raw"] == "[5000 chars]"
    assert sanitized["issues"][0].endswith("...[truncated]")


def test_json_formatter_emits_sanitized_extras() -> None:
    record = logging.LogRecord("briefguard.contract", logging.WARNING, __file__, 1, "contract_rejected", None, None)
    record.event = "contract_rejected"
    record.raw = '{"title": "x"}'
    record.stage = "schema"

    payload = json.loads(JsonFormatter().format(record))

    assert payload["message"] == "contract_rejected"
    assert payload["logger"] == "briefguard.contract"
    assert payload["event"] == "contract_rejected"
    assert payload["raw"] == "[14 chars]"
    assert payload["stage"] == "schema"
