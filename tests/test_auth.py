"""
Tests for authentication endpoints.
"""

import pytest
from shared.security.password import hash_password, verify_password
from shared.utils.avatars import generate_avatar_url


class TestPasswordHashing:
    """Test password hashing utilities."""

    def test_hash_password_returns_bcrypt_hash(self):
        """Hash should return bcrypt format."""
        hashed = hash_password("mypassword", rounds=4)
        assert hashed.startswith("$2b$")

    def test_verify_password_correct(self):
        """Correct password should verify."""
        hashed = hash_password("mypassword", rounds=4)
        assert verify_password("mypassword", hashed) is True

    def test_verify_password_incorrect(self):
        """Incorrect password should not verify."""
        hashed = hash_password("mypassword", rounds=4)
        assert verify_password("wrongpassword", hashed) is False

    def test_plain_text_never_verifies(self):
        """Stored values that are not bcrypt hashes are rejected."""
        assert verify_password("plaintext", "plaintext") is False


class TestAvatars:

    def test_avatar_is_stable(self):
        assert generate_avatar_url("alice") == generate_avatar_url("alice")

    def test_avatar_escapes_username(self):
        url = generate_avatar_url("a b&c")
        assert "name=a%20b%26c" in url


class TestAuthEndpoints:
    """Test authentication API endpoints."""

    def test_register(self, client):
        """A new account is created with a generated avatar."""
        response = client.post(
            "/api/auth/register",
            json={"username": "bob", "password": "hunter22"},
        )
        assert response.status_code == 201
        data = response.json()
        assert data["success"] is True
        assert data["message"] == "User registered"
        assert data["user"]["username"] == "bob"
        assert data["user"]["avatar"].startswith("https://")
        assert "password" not in data["user"]

    def test_register_duplicate_username(self, client, seed_user):
        """Usernames are unique."""
        response = client.post(
            "/api/auth/register",
            json={"username": "alice", "password": "another1"},
        )
        assert response.status_code == 409

    def test_register_database_failure(self, client, monkeypatch):
        """Storage errors other than conflicts surface as 500."""
        from sqlalchemy.exc import OperationalError
        from rest_api.repositories import UserRepository

        def broken_create(self, **kwargs):
            raise OperationalError("INSERT", {}, Exception("disk I/O error"))

        monkeypatch.setattr(UserRepository, "create", broken_create)

        response = client.post(
            "/api/auth/register",
            json={"username": "carol", "password": "secret123"},
        )
        assert response.status_code == 500
        assert "register" in response.json()["detail"]

    @pytest.mark.parametrize(
        "body",
        [
            {"username": "x", "password": "secret123"},
            {"username": "valid", "password": "abc"},
            {"username": "   ", "password": "secret123"},
            {"password": "secret123"},
        ],
    )
    def test_register_validation(self, client, body):
        response = client.post("/api/auth/register", json=body)
        assert response.status_code == 422

    def test_login_success(self, client, seed_user, db_session):
        """Valid credentials return the user and mark it online."""
        response = client.post(
            "/api/auth/login",
            json={"username": "alice", "password": "secret123"},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["message"] == "Login successful"
        assert data["user"] == {
            "id": seed_user.id,
            "username": "alice",
            "avatar": "https://example.test/alice.png",
        }

        db_session.refresh(seed_user)
        assert seed_user.status == "online"

    def test_login_wrong_password(self, client, seed_user):
        response = client.post(
            "/api/auth/login",
            json={"username": "alice", "password": "wrong"},
        )
        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid username or password"

    def test_login_unknown_user(self, client):
        """Unknown users get the same answer as wrong passwords."""
        response = client.post(
            "/api/auth/login",
            json={"username": "nobody", "password": "whatever"},
        )
        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid username or password"

    def test_login_rate_limited(self, client, seed_user):
        """Repeated attempts from one client are throttled."""
        statuses = [
            client.post(
                "/api/auth/login",
                json={"username": "alice", "password": "wrong"},
            ).status_code
            for _ in range(11)
        ]
        assert statuses[:10] == [401] * 10
        assert statuses[10] == 429
