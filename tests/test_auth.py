from datetime import timedelta

import pytest
from jose import jwt

from lifelink.config import settings
from lifelink.utils.security import (
    TokenManager,
    get_password_hash,
    verify_password,
)


class TestTokenManager:
    def setup_method(self):
        self.data = {"sub": "0b6a2f1c-3c1e-4f8e-9a55-5f3f0e2d4b11"}

    def test_create_and_decode(self):
        token = TokenManager.create_access_token(self.data)
        payload = TokenManager.decode_token(token)

        assert payload["sub"] == self.data["sub"]
        assert payload["type"] == "access"
        assert "exp" in payload

    def test_expired_token(self):
        token = TokenManager.create_access_token(self.data, expires_delta=timedelta(seconds=-1))
        with pytest.raises(ValueError):
            TokenManager.decode_token(token)

    def test_wrong_key(self):
        token = jwt.encode(self.data, "some-other-key", algorithm=settings.ALGORITHM)
        with pytest.raises(ValueError):
            TokenManager.decode_token(token)


class TestPasswordHashing:
    def test_verify(self):
        hashed = get_password_hash("CorrectHorse9")
        assert hashed != "CorrectHorse9"
        assert verify_password("CorrectHorse9", hashed)
        assert not verify_password("WrongHorse9", hashed)

    def test_malformed_hash(self):
        assert not verify_password("anything", "not-a-real-hash")


class TestAuthEndpoints:
    async def test_register_then_login(self, client):
        response = await client.post(
            "/auth/register",
            json={
                "email": "Abena.Osei@Example.com",
                "password": "Sup3rSecret!",
                "full_name": "Abena Osei",
            },
        )
        assert response.status_code == 201
        profile = response.json()
        assert profile["email"] == "abena.osei@example.com"
        assert profile["role"] == "individual"
        assert profile["blood_group"] == "Not Set"
        assert profile["profile_complete"] is False

        response = await client.post(
            "/auth/login",
            json={"email": "abena.osei@example.com", "password": "Sup3rSecret!"},
        )
        assert response.status_code == 200
        body = response.json()
        assert body["token_type"] == "bearer"
        assert body["profile"]["id"] == profile["id"]

        response = await client.get(
            "/profiles/me", headers={"Authorization": f"Bearer {body['access_token']}"}
        )
        assert response.status_code == 200
        assert response.json()["full_name"] == "Abena Osei"

    async def test_duplicate_email(self, client):
        payload = {"email": "dup@example.com", "password": "Sup3rSecret!"}
        assert (await client.post("/auth/register", json=payload)).status_code == 201

        response = await client.post("/auth/register", json=payload)

        assert response.status_code == 400
        assert response.json()["detail"] == "Email already registered"

    async def test_cannot_self_register_as_platform_admin(self, client):
        response = await client.post(
            "/auth/register",
            json={
                "email": "root@example.com",
                "password": "Sup3rSecret!",
                "role": "platform_admin",
            },
        )
        assert response.status_code == 422

    async def test_bad_credentials(self, client):
        await client.post(
            "/auth/register", json={"email": "kojo@example.com", "password": "Sup3rSecret!"}
        )

        response = await client.post(
            "/auth/login", json={"email": "kojo@example.com", "password": "wrong-password"}
        )

        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid credentials"

    async def test_invalid_token_is_401(self, client):
        response = await client.get(
            "/profiles/me", headers={"Authorization": "Bearer not.a.token"}
        )
        assert response.status_code == 401
        assert response.headers["www-authenticate"] == "Bearer"
