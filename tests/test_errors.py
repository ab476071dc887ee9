"""Tests for the JSON error envelope"""
from database import get_db
from main import app


def test_unexpected_error_is_json_500(lenient_client):
    def broken_db():
        raise RuntimeError("connection pool exhausted")

    app.dependency_overrides[get_db] = broken_db
    r = lenient_client.get("/api/health")
    assert r.status_code == 500
    assert r.headers["content-type"] == "application/json"
    assert r.json() == {"detail": "Server error", "code": "SERVER_ERROR"}


def test_missing_token_envelope(client):
    r = client.get("/api/bookings")
    assert r.status_code == 401
    assert r.json() == {"detail": "No token, authorization denied", "code": "UNAUTHENTICATED"}
    assert r.headers["www-authenticate"] == "Bearer"


def test_invalid_token_envelope(client):
    r = client.get("/api/auth/me", headers={"Authorization": "Bearer garbage"})
    assert r.status_code == 401
    assert r.json() == {"detail": "Token is not valid", "code": "UNAUTHENTICATED"}
    assert r.headers["www-authenticate"] == "Bearer"
