from __future__ import annotations

from fastapi.testclient import TestClient

from movie_catalog import auth, crud


class TestRegister:
    def test_register_returns_numeric_user_id(self, client: TestClient):
        response = client.post("/register", json={"email": "a@b.com", "password": "password123"})

        assert response.status_code == 201
        data = response.json()
        assert data["message"] == "User registered"
        assert isinstance(data["userId"], int)

    def test_duplicate_email_conflicts(self, client: TestClient):
        client.post("/register", json={"email": "a@b.com", "password": "password123"})
        response = client.post("/register", json={"email": "a@b.com", "password": "another-password"})

        assert response.status_code == 409
        assert response.json() == {"error": "Email already registered"}

    def test_email_is_normalized_before_uniqueness_check(self, client: TestClient):
        client.post("/register", json={"email": "a@b.com", "password": "password123"})
        response = client.post("/register", json={"email": "  A@B.COM ", "password": "password123"})

        assert response.status_code == 409

    def test_invalid_email_is_rejected(self, client: TestClient):
        response = client.post("/register", json={"email": "not-an-email", "password": "password123"})

        assert response.status_code == 400
        assert response.json()["errors"]

    def test_short_password_is_rejected(self, client: TestClient):
        response = client.post("/register", json={"email": "a@b.com", "password": "short"})

        assert response.status_code == 400
        assert response.json()["errors"]

    def test_password_is_stored_hashed(self, client: TestClient, db):
        client.post("/register", json={"email": "a@b.com", "password": "password123"})

        user = crud.get_user_by_email(db, "a@b.com")
        assert user.password_hash != "password123"
        assert user.password_hash.startswith("pbkdf2:sha256:1000$")


class TestLogin:
    def test_register_then_login_returns_same_user(self, client: TestClient, make_user):
        user_id = make_user("a@b.com", "password123")

        response = client.post("/login", json={"email": "a@b.com", "password": "password123"})

        assert response.status_code == 200
        assert response.json() == {"message": "Login successful", "userId": user_id}

    def test_wrong_password_is_unauthorized(self, client: TestClient, make_user):
        make_user("a@b.com", "password123")

        response = client.post("/login", json={"email": "a@b.com", "password": "wrong-password"})

        assert response.status_code == 401
        assert response.json() == {"error": "Invalid credentials"}

    def test_unknown_email_is_unauthorized(self, client: TestClient):
        response = client.post("/login", json={"email": "nobody@b.com", "password": "password123"})

        assert response.status_code == 401

    def test_missing_fields_are_rejected(self, client: TestClient):
        response = client.post("/login", json={"email": "a@b.com"})

        assert response.status_code == 400


def test_hash_password_uses_salt():
    first = auth.hash_password("password123")
    second = auth.hash_password("password123")

    assert first != second


def test_hash_password_honours_explicit_method():
    assert auth.hash_password("password123", method="pbkdf2:sha256:2000").startswith("pbkdf2:sha256:2000$")
