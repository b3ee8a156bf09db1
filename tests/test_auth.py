"""Tests for access token verification."""

import time

import jwt
import pytest

from libs.common import ROLE_ADMIN, ROLE_USER, AuthError, verify_access_token

SECRET = "unit-test-secret-key-with-enough-length"


def encode(payload: dict, secret: str = SECRET) -> str:
    return jwt.encode(payload, secret, algorithm="HS256")


class TestVerifyAccessToken:
    def test_user_token(self):
        user = verify_access_token(encode({"sub_id": 7}), SECRET, "HS256")
        assert user.user_id == 7
        assert user.role == ROLE_USER
        assert not user.is_admin

    def test_admin_token(self):
        user = verify_access_token(encode({"sub_id": "8", "role": ROLE_ADMIN}), SECRET, "HS256")
        assert user.user_id == 8
        assert user.is_admin

    def test_wrong_secret(self):
        with pytest.raises(AuthError):
            verify_access_token(encode({"sub_id": 7}, secret="another-secret-key-with-enough-length"), SECRET, "HS256")

    def test_expired(self):
        token = encode({"sub_id": 7, "exp": int(time.time()) - 60})
        with pytest.raises(AuthError) as exc_info:
            verify_access_token(token, SECRET, "HS256")
        assert "만료" in exc_info.value.message

    def test_missing_subject(self):
        with pytest.raises(AuthError):
            verify_access_token(encode({"role": ROLE_USER}), SECRET, "HS256")

    def test_non_numeric_subject(self):
        with pytest.raises(AuthError):
            verify_access_token(encode({"sub_id": "abc"}), SECRET, "HS256")


class TestAuthDependencies:
    def test_malformed_bearer_token(self, api_client):
        response = api_client.get("/order/get-user-orders", headers={"Authorization": "Bearer not-a-jwt"})
        assert response.status_code == 401
        assert response.json()["message"] == "로그인이 필요합니다."
