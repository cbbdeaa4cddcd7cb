"""Tests for the FastAPI adapter, wired with in-memory fakes."""

import pytest
from fastapi.testclient import TestClient

from vitalscope.adapters.rest.app import create_app
from vitalscope.domain.exceptions import AnalysisServiceError
from vitalscope.factory import ServiceFactory
from vitalscope.infrastructure.config import Settings
from vitalscope.infrastructure.persistence.memory_store import InMemoryDocumentStore

from conftest import ScriptedGateway

PROFILE = {"age": "54", "gender": "female", "healthContext": "High blood pressure"}


@pytest.fixture
def gateway():
    return ScriptedGateway()


@pytest.fixture
def factory(gateway):
    return ServiceFactory(
        Settings(db_path=""),
        document_store=InMemoryDocumentStore(),
        gateway=gateway,
    )


@pytest.fixture
def client(factory):
    with TestClient(create_app(factory)) as test_client:
        yield test_client


def _upload(client, *files):
    return client.post(
        "/scan/images",
        files=[("files", f) for f in files],
    )


def _configure(client):
    response = client.put("/profile", json={**PROFILE, "consent": True})
    assert response.status_code == 200


class TestProfileEndpoints:
    """Tests for /profile."""

    def test_health(self, client):
        """Test the liveness endpoint."""
        assert client.get("/health").json()["status"] == "ok"

    def test_fresh_profile_is_unconfigured(self, client):
        """Test the first-launch profile."""
        body = client.get("/profile").json()
        assert body == {"age": "", "gender": "", "healthContext": "", "configured": False}

    def test_first_save_requires_consent(self, client):
        """Test that onboarding without consent is refused."""
        response = client.put("/profile", json=PROFILE)
        assert response.status_code == 422
        assert response.json()["error"] == "ConsentRequiredError"

    def test_incomplete_profile_refused(self, client):
        """Test that every field is required."""
        response = client.put("/profile", json={**PROFILE, "healthContext": "", "consent": True})
        assert response.status_code == 422
        assert response.json()["error"] == "ProfileIncompleteError"

    def test_save_and_edit(self, client):
        """Test onboarding, then an edit that needs no fresh consent."""
        _configure(client)
        response = client.put("/profile", json={**PROFILE, "age": "55"})
        assert response.status_code == 200
        assert response.json() == {**PROFILE, "age": "55", "configured": True}


class TestScanEndpoints:
    """Tests for /scan."""

    def test_scan_blocked_without_profile(self, client, gateway, png_bytes):
        """Test that an unconfigured profile is a conflict, and nothing is sent."""
        _upload(client, ("a.png", png_bytes(), "image/png"))
        response = client.post("/scan")
        assert response.status_code == 409
        assert response.json()["error"] == "ProfileNotConfiguredError"
        assert gateway.calls == []

    def test_scan_without_images(self, client):
        """Test that an empty selection is rejected."""
        _configure(client)
        assert client.post("/scan").status_code == 422

    def test_upload_skips_non_images(self, client, png_bytes):
        """Test that unreadable uploads are dropped and the rest kept."""
        response = _upload(
            client,
            ("a.png", png_bytes(), "image/png"),
            ("notes.txt", b"hello", "text/plain"),
            ("b.jpg", png_bytes(image_format="JPEG"), "image/jpeg"),
        )
        assert response.json() == {"accepted": 2, "rejected": 1, "imageCount": 2}

    def test_remove_image(self, client, png_bytes):
        """Test removing by index, and 404 for a bad index."""
        _upload(client, ("a.png", png_bytes(), "image/png"))
        assert client.delete("/scan/images/3").status_code == 404
        assert client.delete("/scan/images/0").json()["imageCount"] == 0

    def test_successful_scan(self, client, gateway, png_bytes, make_result):
        """Test a full scan: upload, analyze, then reset."""
        gateway.outcomes.append(make_result())
        _configure(client)
        _upload(client, ("a.png", png_bytes(), "image/png"))

        body = client.post("/scan").json()

        assert body["state"] == "resolved_success"
        assert body["result"]["calorieAnalysis"]["productCalories"] == 450
        assert client.post("/scan").status_code == 409

        client.post("/scan/reset")
        assert client.get("/scan").json()["state"] == "idle"

    def test_failure_then_retry(self, client, gateway, png_bytes, make_result):
        """Test that a failed scan keeps the images for a retry."""
        gateway.outcomes.extend([AnalysisServiceError("Try again later."), make_result()])
        _configure(client)
        _upload(client, ("a.png", png_bytes(), "image/png"))

        failed = client.post("/scan").json()
        assert failed["state"] == "failed"
        assert failed["error"] == "Try again later."

        retried = client.post("/scan/retry").json()
        assert retried == {
            "state": "idle", "attemptId": 1, "imageCount": 1, "result": None, "error": None,
        }
        assert client.post("/scan").json()["state"] == "resolved_success"

    def test_retry_from_idle_is_conflict(self, client):
        """Test that retry needs a resolved attempt."""
        assert client.post("/scan/retry").status_code == 409


class TestHistoryEndpoints:
    """Tests for /history."""

    def test_history_round_trip(self, factory, gateway, png_bytes, make_result):
        """Test list, show and clear after a successful scan."""
        gateway.outcomes.append(make_result())
        with TestClient(create_app(factory)) as client:
            _configure(client)
            _upload(client, ("a.png", png_bytes(), "image/png"))
            client.post("/scan")

        with TestClient(create_app(factory)) as client:
            items = client.get("/history").json()
            assert len(items) == 1
            assert items[0]["productCalories"] == 450
            assert items[0]["hasPreview"] is True

            entry = client.get(f"/history/{items[0]['id']}").json()
            assert entry["imagePreviewUrl"].startswith("data:image/png;base64,")

            assert client.get("/history/unknown").status_code == 404
            assert client.delete("/history").status_code == 204
            assert client.get("/history").json() == []
