"""
Tests for REST request plumbing: correlation ids, JSON-only bodies,
hardening headers and CORS.
"""

import uuid


class TestCorrelationId:

    def test_client_request_id_echoed(self, client):
        response = client.get("/api/health", headers={"X-Request-ID": "trace-42"})
        assert response.headers["X-Request-ID"] == "trace-42"

    def test_request_id_generated(self, client):
        response = client.get("/api/health")
        assert uuid.UUID(response.headers["X-Request-ID"])


class TestJsonApi:

    def test_form_body_refused(self, client):
        response = client.post(
            "/api/auth/login",
            content="username=alice&password=secret123",
            headers={"Content-Type": "application/x-www-form-urlencoded"},
        )
        assert response.status_code == 415
        assert response.headers["X-Content-Type-Options"] == "nosniff"

    def test_hardening_headers(self, client):
        response = client.get("/api/rooms")
        assert response.headers["X-Frame-Options"] == "DENY"
        assert response.headers["Referrer-Policy"] == "strict-origin-when-cross-origin"
        assert "Strict-Transport-Security" not in response.headers


class TestCors:

    def test_preflight_from_local_client(self, client):
        response = client.options(
            "/api/auth/login",
            headers={
                "Origin": "http://localhost:5173",
                "Access-Control-Request-Method": "POST",
                "Access-Control-Request-Headers": "Content-Type",
            },
        )
        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == "http://localhost:5173"

    def test_unknown_origin_not_allowed(self, client):
        response = client.get("/api/rooms", headers={"Origin": "http://evil.example"})
        assert "access-control-allow-origin" not in response.headers
