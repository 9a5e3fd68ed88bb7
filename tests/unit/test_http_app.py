from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from recipe_keeper.domain.errors import DailyLimitExceededError, ExtractionLogNotFoundError, ModelGatewayError
from recipe_keeper.domain.models import (
    DailyUsage,
    ExtractionOutcome,
    ExtractionValidationResult,
    FeedbackType,
    GatewayErrorCode,
)
from recipe_keeper.http_app import app
from recipe_keeper.lifespan import app_state

HEADERS = {"X-User-Id": "user-1"}


class StubService:
    def __init__(self, error: Exception | None = None):
        self.error = error
        self.calls: list[tuple] = []

    async def extract_from_text(self, user_id, text):
        self.calls.append(("text", user_id, text))
        if self.error:
            raise self.error
        result = ExtractionValidationResult(data={"name": "Jajecznica"}, warnings=["Invalid tags have been omitted: x"])
        return ExtractionOutcome(extraction_log_id="log-1", result=result, original_text=text.strip())

    async def extract_from_url(self, user_id, url):
        self.calls.append(("url", user_id, url))
        if self.error:
            raise self.error
        return ExtractionOutcome(extraction_log_id="log-2", result=ExtractionValidationResult(data={"name": "Sernik"}))

    async def submit_feedback(self, user_id, log_id, feedback: FeedbackType):
        self.calls.append(("feedback", user_id, log_id, feedback))
        if self.error:
            raise self.error

    async def get_daily_usage(self, user_id):
        return DailyUsage(used=7, limit=100, date="2026-10-19")


@pytest.fixture
def stub():
    service = StubService()
    app_state["extraction_service"] = service
    yield service
    app_state.clear()


@pytest.fixture
def client(stub) -> TestClient:
    return TestClient(app)


def test_healthz(client: TestClient) -> None:
    assert client.get("/healthz").json() == {"status": "ok"}


def test_extract_from_text_returns_outcome(client: TestClient, stub: StubService) -> None:
    resp = client.post("/api/recipe/extract-from-text", json={"text": " Jajecznica "}, headers=HEADERS)

    assert resp.status_code == 200
    assert resp.json() == {
        "extraction_log_id": "log-1",
        "extracted_data": {"name": "Jajecznica"},
        "original_text": "Jajecznica",
        "warnings": ["Invalid tags have been omitted: x"],
    }
    assert stub.calls == [("text", "user-1", " Jajecznica ")]


def test_extract_from_url_omits_original_text(client: TestClient) -> None:
    resp = client.post("/api/recipe/extract-from-url", json={"url": "https://aniagotuje.pl/a"}, headers=HEADERS)
    assert resp.status_code == 200
    assert resp.json() == {"extraction_log_id": "log-2", "extracted_data": {"name": "Sernik"}}


def test_missing_user_is_rejected_before_service(client: TestClient, stub: StubService) -> None:
    resp = client.post("/api/recipe/extract-from-text", json={"text": "Jajecznica"})
    assert resp.status_code == 401
    assert resp.json()["error"]["code"] == "AUTH_REQUIRED"
    assert stub.calls == []


def test_gateway_key_is_enforced_when_configured(client: TestClient, stub: StubService, monkeypatch) -> None:
    from recipe_keeper.config.settings import reset_settings

    monkeypatch.setenv("GATEWAY_API_KEY", "s3cret")
    reset_settings()

    denied = client.post("/api/recipe/extract-from-text", json={"text": "x"}, headers=HEADERS)
    allowed = client.post(
        "/api/recipe/extract-from-text", json={"text": "x"}, headers={**HEADERS, "X-Gateway-Key": "s3cret"}
    )

    assert denied.status_code == 401
    assert allowed.status_code == 200


def test_wrong_content_type(client: TestClient, stub: StubService) -> None:
    resp = client.post(
        "/api/recipe/extract-from-text", content="text=x", headers={**HEADERS, "Content-Type": "text/plain"}
    )
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "INVALID_CONTENT_TYPE"
    assert stub.calls == []


def test_malformed_json(client: TestClient) -> None:
    resp = client.post(
        "/api/recipe/extract-from-text", content="{not json", headers={**HEADERS, "Content-Type": "application/json"}
    )
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "INVALID_JSON"


def test_non_string_text_is_missing_text(client: TestClient, stub: StubService) -> None:
    resp = client.post("/api/recipe/extract-from-text", json={"text": 42}, headers=HEADERS)
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "MISSING_TEXT"
    assert stub.calls == []


def test_non_string_url_is_invalid_url(client: TestClient, stub: StubService) -> None:
    resp = client.post("/api/recipe/extract-from-url", json={"url": 123}, headers=HEADERS)
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "INVALID_URL"
    assert stub.calls == []


def test_daily_limit_maps_to_429(client: TestClient, stub: StubService) -> None:
    stub.error = DailyLimitExceededError("Daily extraction limit exceeded. Please try again tomorrow.")
    resp = client.post("/api/recipe/extract-from-text", json={"text": "x"}, headers=HEADERS)
    assert resp.status_code == 429
    assert resp.json()["error"] == {
        "code": "DAILY_LIMIT_EXCEEDED",
        "message": "Daily extraction limit exceeded. Please try again tomorrow.",
    }


@pytest.mark.parametrize(
    "gateway_code, status",
    [
        (GatewayErrorCode.AUTH_ERROR, 503),
        (GatewayErrorCode.RATE_LIMIT_EXCEEDED, 429),
        (GatewayErrorCode.TIMEOUT_ERROR, 504),
        (GatewayErrorCode.API_ERROR, 502),
        (GatewayErrorCode.UNEXPECTED_ERROR, 500),
    ],
)
def test_model_gateway_errors_are_remapped(client: TestClient, stub: StubService, gateway_code, status) -> None:
    stub.error = ModelGatewayError(401, "upstream failure", gateway_code)
    resp = client.post("/api/recipe/extract-from-text", json={"text": "x"}, headers=HEADERS)
    assert resp.status_code == status
    assert resp.json()["error"]["code"] == gateway_code.value


def test_unexpected_error_is_a_500(stub: StubService) -> None:
    stub.error = RuntimeError("kaboom")
    client = TestClient(app, raise_server_exceptions=False)
    resp = client.post("/api/recipe/extract-from-text", json={"text": "x"}, headers=HEADERS)
    assert resp.status_code == 500
    assert resp.json()["error"]["code"] == "INTERNAL_SERVER_ERROR"


def test_feedback_accepted(client: TestClient, stub: StubService) -> None:
    resp = client.post("/api/recipe/extraction/log-1/feedback", json={"feedback": "positive"}, headers=HEADERS)
    assert resp.status_code == 204
    assert stub.calls == [("feedback", "user-1", "log-1", FeedbackType.POSITIVE)]


def test_feedback_value_is_validated(client: TestClient, stub: StubService) -> None:
    resp = client.post("/api/recipe/extraction/log-1/feedback", json={"feedback": "meh"}, headers=HEADERS)
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "INVALID_FEEDBACK"
    assert stub.calls == []


def test_feedback_for_unknown_log_is_404(client: TestClient, stub: StubService) -> None:
    stub.error = ExtractionLogNotFoundError("Extraction log not found", detail="log-9")
    resp = client.post("/api/recipe/extraction/log-9/feedback", json={"feedback": "negative"}, headers=HEADERS)
    assert resp.status_code == 404
    assert resp.json()["error"]["code"] == "EXTRACTION_LOG_NOT_FOUND"


def test_limit_endpoint(client: TestClient) -> None:
    resp = client.get("/api/recipe/extraction/limit", headers=HEADERS)
    assert resp.json() == {"used": 7, "limit": 100, "remaining": 93, "date": "2026-10-19"}
