from datetime import datetime, timedelta

import jwt

from tests.conftest import auth
from vocavision.models import User
from vocavision.webapp.deps import decode_access_token


async def register(client, email="new@example.com", password="password123", name="Mina"):
    return await client.post("/api/auth/register", json={"email": email, "password": password, "name": name})


async def test_register_starts_trial(client):
    response = await register(client)
    assert response.status_code == 201

    body = response.json()
    assert body["user"]["email"] == "new@example.com"
    assert body["user"]["subscriptionStatus"] == "TRIAL"
    assert body["user"]["trialEnd"] is not None
    assert "passwordHash" not in body["user"]
    assert decode_access_token(body["token"])["userId"] == body["user"]["id"]


async def test_register_validation(client):
    response = await client.post("/api/auth/register", json={"password": "password123"})
    assert response.status_code == 400

    response = await register(client, password="short")
    assert response.status_code == 400
    assert "8 characters" in response.json()["error"]


async def test_register_duplicate_email(client):
    await register(client)
    response = await register(client, email="NEW@example.com")
    assert response.status_code == 409


async def test_login(client):
    await register(client)

    response = await client.post("/api/auth/login", json={"email": "new@example.com", "password": "password123"})
    assert response.status_code == 200
    assert response.json()["user"]["email"] == "new@example.com"

    response = await client.post("/api/auth/login", json={"email": "new@example.com", "password": "wrong-pass"})
    assert response.status_code == 401
    assert response.json()["error"] == "Invalid credentials"

    response = await client.post("/api/auth/login", json={"email": "nobody@example.com", "password": "x"})
    assert response.status_code == 401


async def test_me(client, user_token):
    response = await client.get("/api/auth/me", headers=auth(user_token))
    assert response.status_code == 200
    assert response.json()["email"] == "learner@example.com"


async def test_me_requires_token(client):
    response = await client.get("/api/auth/me")
    assert response.status_code == 401
    assert response.json()["error"] == "Access token required"


async def test_invalid_and_expired_tokens(client, make_user):
    response = await client.get("/api/auth/me", headers=auth("not-a-token"))
    assert response.status_code == 401
    assert response.json()["error"] == "Invalid token"

    user, _ = await make_user()
    expired = jwt.encode(
        {"userId": user.id, "role": "USER", "exp": datetime.utcnow() - timedelta(minutes=1)},
        "test-secret",
        algorithm="HS256",
    )
    response = await client.get("/api/auth/me", headers=auth(expired))
    assert response.status_code == 401
    assert response.json()["error"] == "Token expired"


async def test_token_for_deleted_user(client, make_user, session_factory):
    user, token = await make_user()
    async with session_factory() as session:
        await session.delete(await session.get(User, user.id))
        await session.commit()

    response = await client.get("/api/auth/me", headers=auth(token))
    assert response.status_code == 401
    assert response.json()["error"] == "User not found"
