"""Tests for API endpoints."""
import pytest
from fastapi.testclient import TestClient

from docsage.core.auth import AuthenticatedUser
from docsage.core.dependencies import get_generator, get_user
from docsage.core.flags import get_flags
from docsage.factory import create_app

TEXT_FILE = ("notes.txt", b"The mitochondria is the powerhouse of the cell.", "text/plain")


@pytest.fixture
def app(generator):
    app = create_app()
    app.dependency_overrides[get_generator] = lambda: generator
    return app


@pytest.fixture
def client(app):
    with TestClient(app) as client:
        yield client


@pytest.fixture
def act_as(app):
    """Switch the authenticated user for subsequent requests."""

    def _act_as(user_id):
        app.dependency_overrides[get_user] = lambda: AuthenticatedUser(user_id=user_id)

    return _act_as


def upload(client, file=TEXT_FILE):
    return client.post("/v1/documents/upload", files={"file": file})


class TestHealthEndpoint:
    """Tests for unauthenticated endpoints."""

    def test_health_check(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"

    def test_auth_config_dev_mode(self, client):
        assert client.get("/auth/config").json()["auth_enabled"] is False


class TestAuth:
    """Tests for the access gateway on protected routes."""

    def test_missing_token_rejected(self, client, monkeypatch):
        monkeypatch.setenv("FF_USE_AUTH0", "true")
        get_flags.cache_clear()

        response = client.get("/v1/documents")
        assert response.status_code == 401
        assert response.headers["www-authenticate"] == "Bearer"


class TestDocumentEndpoints:
    """Tests for upload, listing and lookup."""

    def test_upload_and_get(self, client):
        response = upload(client)
        assert response.status_code == 200
        data = response.json()
        assert data["filename"] == "notes.txt"
        assert data["text"] == TEXT_FILE[1].decode()
        assert data["summary"] is None
        assert data["summarized"] is False

        fetched = client.get(f"/v1/documents/{data['id']}")
        assert fetched.status_code == 200
        assert fetched.json()["id"] == data["id"]

    def test_list_documents(self, client):
        empty = client.get("/v1/documents")
        assert empty.status_code == 200
        assert empty.json() == {"found": False, "documents": []}

        doc_id = upload(client).json()["id"]
        listing = client.get("/v1/documents").json()
        assert listing["found"] is True
        assert [d["id"] for d in listing["documents"]] == [doc_id]

    def test_empty_list_can_be_404(self, client, monkeypatch):
        from docsage.core.config import get_settings

        monkeypatch.setenv("EMPTY_LIST_NOT_FOUND", "true")
        get_settings.cache_clear()

        assert client.get("/v1/documents").status_code == 404

    def test_unsupported_file_type(self, client):
        response = upload(client, ("photo.png", b"\x89PNG", "image/png"))
        assert response.status_code == 400

    def test_empty_file(self, client):
        response = upload(client, ("empty.txt", b"", "text/plain"))
        assert response.status_code == 400
        assert response.json()["error"] == "invalid_input"

    def test_blank_text_file(self, client):
        response = upload(client, ("blank.txt", b"   \n  ", "text/plain"))
        assert response.status_code == 422
        assert response.json()["error"] == "extraction_failed"
        assert client.get("/v1/documents").json()["found"] is False

    def test_unknown_document(self, client):
        response = client.get("/v1/documents/no-such-id")
        assert response.status_code == 404
        assert response.json()["error"] == "not_found"


class TestSummaryEndpoints:
    """Tests for summarize and summary reads."""

    def test_summarize_then_cached(self, client, generator):
        doc_id = upload(client).json()["id"]

        first = client.post(f"/v1/documents/{doc_id}/summary").json()
        second = client.post(f"/v1/documents/{doc_id}/summary").json()

        assert first["cache_hit"] is False
        assert second["cache_hit"] is True
        assert first["summary"] == second["summary"]
        assert len(generator.summary_calls) == 1

        read = client.get(f"/v1/documents/{doc_id}/summary")
        assert read.status_code == 200
        assert read.json()["summary"] == first["summary"]

    def test_summary_before_summarize(self, client):
        doc_id = upload(client).json()["id"]

        response = client.get(f"/v1/documents/{doc_id}/summary")
        assert response.status_code == 409
        assert response.json()["error"] == "not_summarized"

        assert client.get("/v1/documents/no-such-id/summary").status_code == 404

    def test_generation_failure(self, client, generator):
        doc_id = upload(client).json()["id"]
        generator.fail_summaries = 1

        assert client.post(f"/v1/documents/{doc_id}/summary").status_code == 502
        assert client.get(f"/v1/documents/{doc_id}/summary").status_code == 409
        assert client.post(f"/v1/documents/{doc_id}/summary").status_code == 200

    def test_list_summaries(self, client):
        summarized = upload(client).json()["id"]
        upload(client)
        client.post(f"/v1/documents/{summarized}/summary")

        listing = client.get("/v1/summaries").json()
        assert [d["id"] for d in listing] == [summarized]

    def test_profile_personalizes_summary(self, client, generator):
        saved = client.put("/v1/profile", json={"age": 15, "interests": ["football", " music "]})
        assert saved.status_code == 200
        assert saved.json()["interests"] == ["football", "music"]

        doc_id = upload(client).json()["id"]
        client.post(f"/v1/documents/{doc_id}/summary")

        assert generator.summary_calls == [(15, "football, music")]

    def test_profile_defaults(self, client):
        profile = client.get("/v1/profile").json()
        assert profile == {"age": None, "interests": [], "exists": False}


class TestChatEndpoints:
    """Tests for ask and chat history."""

    def test_ask_and_history(self, client):
        doc_id = upload(client).json()["id"]

        for question in ["What is it?", "Why does it matter?"]:
            response = client.post(f"/v1/documents/{doc_id}/ask", json={"question": question})
            assert response.status_code == 200
            assert response.json()["answer"] == f"Answer to: {question}"

        history = client.get(f"/v1/documents/{doc_id}/chat").json()
        assert [t["question"] for t in history["turns"]] == ["What is it?", "Why does it matter?"]
        assert all(t["timestamp"] for t in history["turns"])

    def test_empty_question(self, client):
        doc_id = upload(client).json()["id"]

        assert client.post(f"/v1/documents/{doc_id}/ask", json={"question": "  "}).status_code == 400
        assert client.post(f"/v1/documents/{doc_id}/ask", json={}).status_code == 400
        assert client.get(f"/v1/documents/{doc_id}/chat").json()["turns"] == []

    def test_answer_failure(self, client, generator):
        doc_id = upload(client).json()["id"]
        generator.fail_answers = True

        response = client.post(f"/v1/documents/{doc_id}/ask", json={"question": "Why?"})
        assert response.status_code == 502
        assert client.get(f"/v1/documents/{doc_id}/chat").json()["turns"] == []


class TestOwnershipIsolation:
    """Documents are invisible across users."""

    def test_other_user_gets_404(self, client, act_as):
        act_as("alice")
        doc_id = upload(client).json()["id"]
        client.post(f"/v1/documents/{doc_id}/summary")
        client.post(f"/v1/documents/{doc_id}/ask", json={"question": "Mine?"})

        act_as("bob")
        assert client.get(f"/v1/documents/{doc_id}").status_code == 404
        assert client.get(f"/v1/documents/{doc_id}/summary").status_code == 404
        assert client.get(f"/v1/documents/{doc_id}/chat").status_code == 404
        assert client.post(f"/v1/documents/{doc_id}/ask", json={"question": "Yours?"}).status_code == 404
        assert client.get("/v1/documents").json()["found"] is False
        assert client.get("/v1/summaries").json() == []

        act_as("alice")
        history = client.get(f"/v1/documents/{doc_id}/chat").json()["turns"]
        assert [t["question"] for t in history] == ["Mine?"]
