"""Auth service and API tests."""
import uuid
from datetime import datetime, timedelta, timezone

import pytest
from jose import JWTError, jwt

from sitecms.config import settings
from sitecms.models.user import UserRole
from sitecms.services.auth_service import (
    create_access_token,
    decode_access_token,
    hash_password,
    verify_password,
)


# --- Password hashing ---

def test_hash_and_verify_password():
    password = "SecurePass123!"
    hashed = hash_password(password)
    assert hashed != password
    assert verify_password(password, hashed) is True
    assert verify_password("wrong", hashed) is False


# --- JWT tokens ---

def test_create_and_decode_access_token():
    user_id = str(uuid.uuid4())
    token = create_access_token(user_id, "editor")
    payload = decode_access_token(token)
    assert payload["sub"] == user_id
    assert payload["role"] == "editor"


def test_access_token_expires():
    token = create_access_token(str(uuid.uuid4()), "admin")
    payload = decode_access_token(token)
    exp = datetime.fromtimestamp(payload["exp"], tz=timezone.utc)
    remaining = (exp - datetime.now(timezone.utc)).total_seconds()
    expected = settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60
    assert expected - 10 < remaining <= expected


def test_expired_token_raises():
    payload = {
        "sub": str(uuid.uuid4()),
        "role": "admin",
        "exp": datetime.now(timezone.utc) - timedelta(hours=1),
    }
    expired_token = jwt.encode(payload, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)
    with pytest.raises(JWTError):
        decode_access_token(expired_token)


def test_token_with_foreign_scope_is_rejected():
    payload = {
        "sub": str(uuid.uuid4()),
        "role": "admin",
        "scope": "newsletter",
        "exp": datetime.now(timezone.utc) + timedelta(minutes=5),
    }
    token = jwt.encode(payload, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)
    with pytest.raises(JWTError):
        decode_access_token(token)


# --- Auth API endpoints ---

@pytest.mark.asyncio
async def test_login_and_me(client, make_user):
    user, _ = await make_user(UserRole.EDITOR, email="editor@test.com")

    response = await client.post("/api/v1/auth/login", json={
        "email": "Editor@Test.com",
        "password": "testpass123",
    })
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["token_type"] == "bearer"
    assert data["expires_in"] == settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60
    assert data["user"]["email"] == "editor@test.com"
    assert data["user"]["last_login_at"] is not None

    response = await client.get("/api/v1/auth/me", headers={
        "Authorization": f"Bearer {data['access_token']}"
    })
    assert response.status_code == 200
    me = response.json()["data"]
    assert me["id"] == str(user.id)
    assert me["role"] == "editor"


@pytest.mark.asyncio
async def test_login_wrong_password(client, make_user):
    await make_user(UserRole.ADMIN, email="admin@test.com")
    response = await client.post("/api/v1/auth/login", json={
        "email": "admin@test.com",
        "password": "not-the-password",
    })
    assert response.status_code == 401
    assert response.json() == {"success": False, "message": "Invalid credentials"}


@pytest.mark.asyncio
async def test_login_no_user(client):
    response = await client.post("/api/v1/auth/login", json={
        "email": "nonexistent@test.com",
        "password": "password",
    })
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_me_unauthenticated(client):
    response = await client.get("/api/v1/auth/me")
    assert response.status_code in (401, 403)  # No Bearer token


@pytest.mark.asyncio
async def test_me_invalid_token(client):
    response = await client.get("/api/v1/auth/me", headers={
        "Authorization": "Bearer invalid-token"
    })
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_token_for_deleted_user_is_rejected(client):
    token = create_access_token(str(uuid.uuid4()), "admin")
    response = await client.get("/api/v1/admin/faqs", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401
