"""
Integration tests for API endpoints.
"""

import pytest
from httpx import AsyncClient, ASGITransport

from shelfscan.api.dependencies import Settings
from shelfscan.api.main import create_app

pytestmark = pytest.mark.asyncio


class TestHealthEndpoints:
    """Tests for health check endpoints."""

    async def test_health_check(self, client):
        response = await client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert "scan_sessions" in data["components"]

    async def test_root(self, client):
        response = await client.get("/")

        assert response.status_code == 200
        assert response.json()["name"] == "ShelfScan"

    async def test_request_id_header(self, client):
        response = await client.get("/health", headers={"X-Request-ID": "abc123"})

        assert response.headers["X-Request-ID"] == "abc123"


class TestISBNEndpoints:
    """Tests for stateless identifier endpoints."""

    async def test_validate_book_isbn13(self, client):
        response = await client.post("/api/v1/isbn/validate", json={"isbn": "978-0-14-143951-8"})

        assert response.status_code == 200
        data = response.json()
        assert data["normalized"] == "9780141439518"
        assert data["tier"] == "BOOK_ISBN13"
        assert data["is_book_isbn13"] is True
        assert data["isbn_10"] == "0141439513"
        assert data["formatted"] == "978-0-141439-51-8"

    async def test_validate_isbn10(self, client):
        response = await client.post("/api/v1/isbn/validate", json={"isbn": "080442957X"})

        data = response.json()
        assert data["tier"] == "ISBN10"
        assert data["is_valid_isbn10"] is True
        assert data["isbn_13"] == "9780804429573"

    async def test_validate_invalid(self, client):
        response = await client.post("/api/v1/isbn/validate", json={"isbn": "0141439512"})

        assert response.status_code == 200
        data = response.json()
        assert data["tier"] == "UNCLASSIFIED"
        assert data["isbn_13"] is None
        assert data["isbn_10"] is None

    async def test_extract(self, client):
        response = await client.post(
            "/api/v1/isbn/extract",
            json={"text": "Penguin Classics ISBN-13: 978-0-14-143951-8"},
        )

        assert response.status_code == 200
        assert response.json()["isbn"] == "9780141439518"

    async def test_extract_nothing(self, client):
        response = await client.post("/api/v1/isbn/extract", json={"text": "no numbers here"})

        assert response.json()["isbn"] is None

    async def test_prioritize_barcodes(self, client):
        response = await client.post(
            "/api/v1/isbn/prioritize",
            json={
                "candidates": [
                    {"text": "012345678905", "source_type": "linear_barcode_13"},
                    {"text": "9780141439518", "source_type": "linear_barcode_13"},
                ]
            },
        )

        assert response.status_code == 200
        data = response.json()
        assert data["identifier"] == "9780141439518"
        assert data["bucket"] == 1
        assert data["index"] == 1
        assert data["mode"] == "barcode"

    async def test_prioritize_text_without_context(self, client):
        response = await client.post(
            "/api/v1/isbn/prioritize",
            json={
                "candidates": [
                    {"text": "9780141439518", "source_type": "optical_text", "confidence": 0.9},
                ]
            },
        )

        data = response.json()
        assert data["mode"] == "text"
        assert data["identifier"] is None
        assert data["had_isbn_context"] is False

    async def test_prioritize_rejects_bad_source(self, client):
        response = await client.post(
            "/api/v1/isbn/prioritize",
            json={"candidates": [{"text": "1", "source_type": "qr_code"}]},
        )

        assert response.status_code == 422


class TestScanSessionEndpoints:
    """Tests for scan session lifecycle."""

    async def _create(self, client, mode: str = "barcode") -> str:
        response = await client.post("/api/v1/scan/sessions", json={"mode": mode})
        assert response.status_code == 201
        return response.json()["session_id"]

    async def test_create_session(self, client):
        response = await client.post("/api/v1/scan/sessions", json={})

        assert response.status_code == 201
        data = response.json()
        assert data["phase"] == "active"
        assert data["locked"] is False
        assert data["mode"] == "barcode"

    async def test_frame_emits_once(self, client, barcode_frame):
        session_id = await self._create(client)
        frame = {
            "candidates": [
                {"text": c.text, "source_type": c.source_type.value} for c in barcode_frame
            ],
            "timestamp": 0.0,
        }

        first = await client.post(f"/api/v1/scan/sessions/{session_id}/frames", json=frame)
        frame["timestamp"] = 1.0
        second = await client.post(f"/api/v1/scan/sessions/{session_id}/frames", json=frame)

        assert first.json()["disposition"] == "emitted"
        assert first.json()["emitted_identifier"] == "9780141439518"
        assert second.json()["disposition"] == "inactive"
        assert second.json()["session"]["locked"] is True

    async def test_frame_throttled(self, client):
        session_id = await self._create(client)
        url = f"/api/v1/scan/sessions/{session_id}/frames"

        await client.post(url, json={"candidates": [], "timestamp": 0.0})
        response = await client.post(url, json={"candidates": [], "timestamp": 0.1})

        assert response.json()["disposition"] == "throttled"

    async def test_start_clears_emission(self, client):
        session_id = await self._create(client)
        await client.post(
            f"/api/v1/scan/sessions/{session_id}/frames",
            json={"candidates": [{"text": "9780141439518", "source_type": "linear_barcode_13"}], "timestamp": 0.0},
        )

        response = await client.post(f"/api/v1/scan/sessions/{session_id}/start")

        data = response.json()
        assert data["phase"] == "active"
        assert data["emitted_identifier"] is None

    async def test_reset(self, client):
        session_id = await self._create(client)

        response = await client.post(f"/api/v1/scan/sessions/{session_id}/reset")

        assert response.json()["phase"] == "idle"

    async def test_capture_failure_once(self, client):
        session_id = await self._create(client)
        url = f"/api/v1/scan/sessions/{session_id}/failure"

        first = await client.post(url, json={"kind": "permission_denied", "message": "denied"})
        second = await client.post(url, json={"kind": "capture_unavailable"})

        assert first.json()["delivered"] is True
        assert second.json()["delivered"] is False
        assert second.json()["session"]["failure"]["kind"] == "permission_denied"

    async def test_get_and_dismiss(self, client):
        session_id = await self._create(client)

        assert (await client.get(f"/api/v1/scan/sessions/{session_id}")).status_code == 200
        assert (await client.delete(f"/api/v1/scan/sessions/{session_id}")).status_code == 204
        assert (await client.get(f"/api/v1/scan/sessions/{session_id}")).status_code == 404

    async def test_unknown_session(self, client):
        response = await client.get("/api/v1/scan/sessions/does-not-exist")

        assert response.status_code == 404
        assert response.json()["code"] == "NOT_FOUND"

    async def test_session_limit(self):
        app = create_app(Settings(max_sessions=1, environment="test"))
        transport = ASGITransport(app=app)

        async with AsyncClient(transport=transport, base_url="http://test") as client:
            assert (await client.post("/api/v1/scan/sessions", json={})).status_code == 201
            response = await client.post("/api/v1/scan/sessions", json={})

        assert response.status_code == 429
        assert response.json()["code"] == "SESSION_LIMIT"


class TestDuplicateEndpoints:
    """Tests for duplicate detection endpoints."""

    @staticmethod
    def _serialize(entries):
        return [
            {"id": e.id, "title": e.title, "author": e.author, "isbn": e.isbn}
            for e in entries
        ]

    async def test_scan_duplicates(self, client, sample_catalog):
        response = await client.post(
            "/api/v1/duplicates",
            json={"entries": self._serialize(sample_catalog)},
        )

        assert response.status_code == 200
        data = response.json()
        assert [g["ids"] for g in data["groups"]] == [["1", "3"], ["2", "5", "6"]]
        assert data["total_entries"] == 6
        assert data["duplicate_entries"] == 5

    async def test_scan_empty_catalog(self, client):
        response = await client.post("/api/v1/duplicates", json={"entries": []})

        assert response.json()["groups"] == []

    async def test_check_duplicate(self, client, sample_catalog):
        response = await client.post(
            "/api/v1/duplicates/check",
            json={
                "entry": {"id": "new", "title": "Pride and Prejudice", "author": "Jane Austen"},
                "entries": self._serialize(sample_catalog),
            },
        )

        data = response.json()
        assert data["is_duplicate"] is True
        assert [m["id"] for m in data["matches"]] == ["2", "5", "6"]

    async def test_check_no_duplicate(self, client, sample_catalog):
        response = await client.post(
            "/api/v1/duplicates/check",
            json={
                "entry": {"id": "new", "title": "Middlemarch", "author": "George Eliot"},
                "entries": self._serialize(sample_catalog),
            },
        )

        data = response.json()
        assert data["is_duplicate"] is False
        assert data["matches"] == []

    async def test_resolve_keep_one(self, client):
        response = await client.post(
            "/api/v1/duplicates/resolve",
            json={"group_ids": ["2", "5", "6"], "keep_id": "5"},
        )

        assert response.status_code == 200
        assert response.json()["remove_ids"] == ["2", "6"]

    async def test_resolve_unknown_keep_id(self, client):
        response = await client.post(
            "/api/v1/duplicates/resolve",
            json={"group_ids": ["2", "5"], "keep_id": "9"},
        )

        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"
