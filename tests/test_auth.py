"""
Tests for authentication: login, token handling, roles, hashing and rate limits.
"""
from datetime import timedelta

import pytest
from fastapi import HTTPException
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy.orm import Session

from tracker.core.config import settings
from tracker.core.security import create_access_token, require_role, resolve_user
from tracker.models.user import User, UserRole
from tracker.utils.hash import hash_password, verify_password

TEST_PASSWORD = "TestPassword123!"


class TestLogin:
    """Test the token endpoint."""

    def test_login_success(self, client: TestClient, manager_user: User):
        response = client.post(
            "/auth/token",
            data={"username": manager_user.email, "password": TEST_PASSWORD},
            headers={"Content-Type": "application/x-www-form-urlencoded"},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["token_type"] == "bearer"
        assert data["role"] == "PROJECT_MANAGER"

        payload = jwt.decode(data["access_token"], settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        assert payload["sub"] == str(manager_user.id)

    def test_login_wrong_password(self, client: TestClient, manager_user: User):
        response = client.post(
            "/auth/token",
            data={"username": manager_user.email, "password": "WrongPassword"},
            headers={"Content-Type": "application/x-www-form-urlencoded"},
        )
        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid credentials"

    def test_login_inactive_user(self, client: TestClient, db: Session, manager_user: User):
        manager_user.is_active = False
        db.commit()

        response = client.post(
            "/auth/token",
            data={"username": manager_user.email, "password": TEST_PASSWORD},
            headers={"Content-Type": "application/x-www-form-urlencoded"},
        )
        assert response.status_code == 401

    def test_me(self, client: TestClient, qa_headers):
        response = client.get("/auth/me", headers=qa_headers)
        assert response.status_code == 200
        data = response.json()
        assert data["email"] == "qa@test.com"
        assert data["role"] == "QA_TESTER"

    def test_me_with_bad_token(self, client: TestClient):
        response = client.get("/auth/me", headers={"Authorization": "Bearer not-a-token"})
        assert response.status_code == 401

    def test_login_rate_limit(self, client: TestClient):
        for i in range(5):
            response = client.post(
                "/auth/token",
                data={"username": f"nobody{i}@example.com", "password": "password123"},
                headers={"Content-Type": "application/x-www-form-urlencoded"},
            )
            assert response.status_code != 429

        response = client.post(
            "/auth/token",
            data={"username": "nobody@example.com", "password": "password123"},
            headers={"Content-Type": "application/x-www-form-urlencoded"},
        )
        assert response.status_code == 429
        assert "too many requests" in response.json()["detail"].lower()


class TestTokens:
    """Test JWT creation and resolution."""

    def test_role_is_stored_by_value(self):
        token = create_access_token({"sub": "7", "role": UserRole.QA_TESTER})
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        assert payload["role"] == "QA_TESTER"
        assert "exp" in payload

    def test_expired_token_rejected(self, db: Session, manager_user: User):
        token = create_access_token({"sub": str(manager_user.id)}, expires_delta=timedelta(seconds=-1))
        with pytest.raises(HTTPException) as exc_info:
            resolve_user(token, db)
        assert exc_info.value.status_code == 401

    def test_token_without_subject(self, db: Session):
        token = create_access_token({"role": "ADMIN"})
        with pytest.raises(HTTPException) as exc_info:
            resolve_user(token, db)
        assert exc_info.value.status_code == 401

    def test_token_for_unknown_user(self, db: Session):
        token = create_access_token({"sub": "999"})
        with pytest.raises(HTTPException):
            resolve_user(token, db)

    def test_resolves_user(self, db: Session, developer_user: User):
        token = create_access_token({"sub": str(developer_user.id)})
        assert resolve_user(token, db).id == developer_user.id


class TestRoles:
    """Test the role dependency factory."""

    def test_allowed_role(self, developer_user: User):
        checker = require_role([UserRole.DEVELOPER])
        assert checker(current_user=developer_user) is developer_user

    def test_denied_role(self, developer_user: User):
        checker = require_role([UserRole.ADMIN, UserRole.PROJECT_MANAGER])
        with pytest.raises(HTTPException) as exc_info:
            checker(current_user=developer_user)
        assert exc_info.value.status_code == 403


class TestPasswordHashing:
    """Test password hashing."""

    def test_hash_and_verify(self):
        hashed = hash_password(TEST_PASSWORD)
        assert hashed != TEST_PASSWORD
        assert verify_password(TEST_PASSWORD, hashed) is True
        assert verify_password("WrongPassword", hashed) is False

    def test_long_password(self):
        long_password = "a" * 100
        hashed = hash_password(long_password)
        assert verify_password(long_password, hashed) is True

    def test_multibyte_password_cut_at_limit(self):
        password = "é" * 50
        hashed = hash_password(password)
        assert verify_password(password, hashed) is True
