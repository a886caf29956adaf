"""Tests for the REST surface against a stubbed application facade."""

from datetime import UTC, datetime

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from aiprofessor.core.modules.document.models import DocumentResult
from aiprofessor.core.modules.history.models import DocumentHistory, ProcessingType
from aiprofessor.core.modules.session.models import LoginResult
from aiprofessor.core.pagination import PageResult
from aiprofessor.errors import AuthenticationError, MaxSessionsExceededError
from aiprofessor.web.routers import auth_router, documents_router
from aiprofessor.web.middleware import register_desktop_client_gate
from aiprofessor.web.server import register_error_handlers

VALID_TOKEN = "valid-token"


class StubApp:
    """Records facade calls; VALID_TOKEN is the only live session."""

    def __init__(self):
        self.calls = []

    async def is_auth_token_valid(self, auth_token):
        return auth_token == VALID_TOKEN

    async def login(self, username, password, ip_address, mac_address):
        self.calls.append(("login", username, ip_address, mac_address))
        if mac_address == "device-b":
            raise MaxSessionsExceededError(1)
        return LoginResult(token=VALID_TOKEN, user_id=1, username=username)

    async def logout(self, auth_token):
        self.calls.append(("logout", auth_token))

    async def evict_oldest_session(self, auth_token):
        if auth_token != VALID_TOKEN:
            raise AuthenticationError
        self.calls.append(("evict", auth_token))

    async def process_document(self, auth_token, processing_type, pdf_base64, user_prompt=None, important_parts=None):
        self.calls.append(("process", processing_type, pdf_base64, user_prompt, important_parts))
        return DocumentResult(result_pdf_url="https://files.example.com/datas/output/1_x_summary.pdf", history_id=1)

    async def get_history(self, auth_token, processing_type=None, page=0, size=20):
        self.calls.append(("history", processing_type, page, size))
        item = DocumentHistory(
            id=5,
            user_id=1,
            processing_type=ProcessingType.SUMMARY,
            user_prompt="Focus",
            input_file_path="input/1_a.pdf",
            output_file_path="output/1_a_summary.pdf",
            created_at=datetime(2025, 1, 1, tzinfo=UTC),
        )
        return PageResult(items=[item], total=21, page=page, size=size)

    def get_artifact_url(self, file_path):
        return f"https://files.example.com/datas/{file_path}"


@pytest.fixture
def stub_app():
    return StubApp()


@pytest.fixture
def client(stub_app):
    app = FastAPI()
    app.state.app = stub_app
    app.include_router(auth_router, prefix="/api")
    app.include_router(documents_router, prefix="/api")
    register_error_handlers(app)
    return TestClient(app, raise_server_exceptions=False)


AUTH = {"Authorization": f"Bearer {VALID_TOKEN}"}


class TestAuthRoutes:
    """Tests for login, logout and session eviction routes."""

    def test_login(self, client, stub_app):
        """Test that login returns camelCase fields and passes the forwarded client IP."""
        response = client.post(
            "/api/auth/login",
            json={"username": "alice", "password": "pw", "macAddress": "device-a"},
            headers={"X-Forwarded-For": "203.0.113.5, 10.0.0.1"},
        )
        assert response.status_code == 200
        assert response.json() == {"token": VALID_TOKEN, "userId": 1, "username": "alice"}
        assert stub_app.calls == [("login", "alice", "203.0.113.5", "device-a")]

    def test_login_real_ip_header(self, client, stub_app):
        """Test that X-Real-IP is used when X-Forwarded-For is absent."""
        client.post(
            "/api/auth/login",
            json={"username": "alice", "password": "pw", "macAddress": "device-a"},
            headers={"X-Real-IP": "198.51.100.7"},
        )
        assert stub_app.calls[0][2] == "198.51.100.7"

    def test_login_missing_device_id(self, client):
        """Test that a login without a device identifier is rejected with 400."""
        response = client.post("/api/auth/login", json={"username": "alice", "password": "pw"})
        assert response.status_code == 400

    def test_login_session_limit(self, client):
        """Test that the session limit surfaces as 409 with maxSessions."""
        response = client.post("/api/auth/login", json={"username": "alice", "password": "pw", "macAddress": "device-b"})
        assert response.status_code == 409
        assert response.json()["details"]["maxSessions"] == 1

    def test_logout_with_any_token(self, client, stub_app):
        """Test that logout only needs the header, not a live session."""
        response = client.post("/api/auth/logout", headers={"Authorization": "Bearer stale-token"})
        assert response.status_code == 200
        assert stub_app.calls == [("logout", "stale-token")]

    def test_logout_without_header(self, client):
        """Test that logout without a bearer header is 401."""
        assert client.post("/api/auth/logout").status_code == 401

    def test_evict_oldest(self, client, stub_app):
        """Test that evicting the oldest session returns 204."""
        response = client.delete("/api/auth/sessions/oldest", headers=AUTH)
        assert response.status_code == 204
        assert stub_app.calls == [("evict", VALID_TOKEN)]


class TestDocumentRoutes:
    """Tests for processing and history routes."""

    def test_requires_authentication(self, client):
        """Test that document routes reject missing and invalid tokens."""
        assert client.post("/api/documents/summary", json={"pdfBase64": "x"}).status_code == 401
        response = client.post("/api/documents/summary", json={"pdfBase64": "x"}, headers={"Authorization": "Bearer bad"})
        assert response.status_code == 401

    def test_summary(self, client, stub_app):
        """Test that a summary request returns the result URL."""
        response = client.post("/api/documents/summary", json={"pdfBase64": "JVBERi0="}, headers=AUTH)
        assert response.status_code == 200
        assert response.json() == {"resultPdfUrl": "https://files.example.com/datas/output/1_x_summary.pdf"}
        assert stub_app.calls == [("process", ProcessingType.SUMMARY, "JVBERi0=", None, None)]

    def test_exam_questions(self, client, stub_app):
        """Test that prompt and important parts are passed through."""
        response = client.post(
            "/api/documents/exam-questions",
            json={"pdfBase64": "JVBERi0=", "userPrompt": "Hard", "importantParts": ["Graphs"]},
            headers=AUTH,
        )
        assert response.status_code == 200
        assert stub_app.calls == [("process", ProcessingType.EXAM_QUESTIONS, "JVBERi0=", "Hard", ["Graphs"])]

    def test_empty_payload_rejected(self, client):
        """Test that an empty pdfBase64 is a 400."""
        response = client.post("/api/documents/summary", json={"pdfBase64": ""}, headers=AUTH)
        assert response.status_code == 400

    def test_history(self, client, stub_app):
        """Test the history page shape and URL resolution."""
        response = client.get("/api/documents/history?page=1&size=10&processingType=SUMMARY", headers=AUTH)
        assert response.status_code == 200
        body = response.json()
        assert body["pageNumber"] == 1
        assert body["pageSize"] == 10
        assert body["totalElements"] == 21
        assert body["totalPages"] == 3
        assert body["isLast"] is False
        assert body["content"] == [
            {
                "id": 5,
                "processingType": "SUMMARY",
                "userPrompt": "Focus",
                "inputUrl": "https://files.example.com/datas/input/1_a.pdf",
                "outputUrl": "https://files.example.com/datas/output/1_a_summary.pdf",
                "createdAt": "2025-01-01T00:00:00Z",
            }
        ]
        assert stub_app.calls == [("history", ProcessingType.SUMMARY, 1, 10)]

    def test_history_defaults(self, client, stub_app):
        """Test that history defaults to the first page of 20 without a filter."""
        client.get("/api/documents/history", headers=AUTH)
        assert stub_app.calls == [("history", None, 0, 20)]

    def test_history_invalid_type(self, client):
        """Test that an unknown processing type is a 400."""
        response = client.get("/api/documents/history?processingType=CRAMMING", headers=AUTH)
        assert response.status_code == 400


DESKTOP_TOKEN = "desktop-shared-secret"


def build_client(stub_app, config):
    app = FastAPI()
    app.state.app = stub_app
    register_desktop_client_gate(app, config)

    @app.get("/health")
    async def health_check():
        return {"status": "healthy"}

    app.include_router(auth_router, prefix="/api")
    app.include_router(documents_router, prefix="/api")
    register_error_handlers(app)
    return TestClient(app, raise_server_exceptions=False)


@pytest.fixture
def production_client(stub_app, config):
    return build_client(stub_app, config.model_copy(update={"profile": "prod", "electron_token": DESKTOP_TOKEN}))


class TestDesktopClientGate:
    """Tests for the production restriction to the desktop client."""

    def test_browser_request_rejected(self, production_client, stub_app):
        """Test that a request without app token or desktop origin gets 403 and never reaches the app."""
        response = production_client.get("/api/documents/history", headers=AUTH)
        assert response.status_code == 403
        body = response.json()
        assert body["status"] == 403
        assert body["path"] == "/api/documents/history"
        assert stub_app.calls == []

    def test_wrong_app_token_rejected(self, production_client):
        """Test that a mismatching X-App-Token is rejected."""
        response = production_client.get("/api/documents/history", headers={**AUTH, "X-App-Token": "guess"})
        assert response.status_code == 403

    def test_web_origin_rejected(self, production_client):
        """Test that a regular web origin is rejected."""
        response = production_client.get(
            "/api/documents/history", headers={**AUTH, "Origin": "https://evil.example.com"}
        )
        assert response.status_code == 403

    def test_app_token_passes(self, production_client, stub_app):
        """Test that the configured X-App-Token lets the request through."""
        response = production_client.get("/api/documents/history", headers={**AUTH, "X-App-Token": DESKTOP_TOKEN})
        assert response.status_code == 200
        assert stub_app.calls[0][0] == "history"

    @pytest.mark.parametrize("origin", ["app://aiprofessor", "file://"])
    def test_desktop_origin_passes(self, production_client, origin):
        """Test that packaged desktop origins are let through."""
        response = production_client.get("/api/documents/history", headers={**AUTH, "Origin": origin})
        assert response.status_code == 200

    def test_health_is_public(self, production_client):
        """Test that the health check stays reachable without the app token."""
        response = production_client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}

    def test_empty_configured_token_never_matches(self, stub_app, config):
        """Test that an empty X-App-Token does not pass when no token is configured."""
        client = build_client(stub_app, config.model_copy(update={"profile": "prod"}))
        response = client.get("/api/documents/history", headers={**AUTH, "X-App-Token": ""})
        assert response.status_code == 403

    def test_gate_off_outside_production(self, stub_app, config):
        """Test that the dev profile leaves the API open."""
        client = build_client(stub_app, config)
        response = client.get("/api/documents/history", headers=AUTH)
        assert response.status_code == 200
