from httpx import AsyncClient
from sqlalchemy import select

from auratracker.models.user import GameSession
from auratracker.services.auth_service import create_access_token, decode_access_token


async def create_game(client: AsyncClient) -> str:
    resp = await client.post("/api/games/create", json={"name": "Auth Game"})
    return resp.json()["code"]


async def register_user(client: AsyncClient, code: str, username="alice", display_name=None):
    body = {"username": username, "gameCode": code}
    if display_name is not None:
        body["displayName"] = display_name
    return await client.post("/api/auth/register", json=body)


async def login_user(client: AsyncClient, code: str, username="alice"):
    return await client.post("/api/auth/login", json={"username": username, "gameCode": code})


class TestRegister:
    async def test_register_success(self, db_client: AsyncClient):
        code = await create_game(db_client)
        resp = await register_user(db_client, code, display_name="Alice A")
        assert resp.status_code == 200
        data = resp.json()
        assert data["user"]["username"] == "alice"
        assert data["user"]["display_name"] == "Alice A"
        assert data["user"]["is_guest"] is False
        assert data["token_type"] == "bearer"
        assert data["access_token"]

    async def test_display_name_defaults_to_username(self, db_client: AsyncClient):
        code = await create_game(db_client)
        resp = await register_user(db_client, code)
        assert resp.json()["user"]["display_name"] == "alice"

    async def test_register_duplicate_username(self, db_client: AsyncClient):
        code = await create_game(db_client)
        await register_user(db_client, code)
        resp = await register_user(db_client, code)
        assert resp.status_code == 409
        assert "Username already taken" in resp.json()["error"]

    async def test_register_unknown_game(self, db_client: AsyncClient):
        resp = await register_user(db_client, "NOPE00")
        assert resp.status_code == 404
        assert resp.json()["error"] == "Game not found"

    async def test_register_opens_session(self, db_client: AsyncClient, db_session):
        code = await create_game(db_client)
        user_id = int((await register_user(db_client, code)).json()["user"]["id"])
        result = await db_session.execute(select(GameSession).where(GameSession.user_id == user_id))
        assert len(result.scalars().all()) == 1

    async def test_register_missing_fields(self, db_client: AsyncClient):
        resp = await db_client.post("/api/auth/register", json={"username": "alice"})
        assert resp.status_code == 400


class TestLogin:
    async def test_login_success(self, db_client: AsyncClient):
        code = await create_game(db_client)
        await register_user(db_client, code)
        resp = await login_user(db_client, code)
        assert resp.status_code == 200
        data = resp.json()
        assert data["user"]["username"] == "alice"
        assert "access_token" in data

    async def test_login_unknown_username(self, db_client: AsyncClient):
        code = await create_game(db_client)
        resp = await login_user(db_client, code, username="nobody")
        assert resp.status_code == 404
        assert "Register" in resp.json()["error"]

    async def test_login_into_second_game(self, db_client: AsyncClient, db_session):
        first = await create_game(db_client)
        second = await create_game(db_client)
        user_id = int((await register_user(db_client, first)).json()["user"]["id"])
        await login_user(db_client, second)
        await login_user(db_client, second)

        result = await db_session.execute(select(GameSession).where(GameSession.user_id == user_id))
        assert len(result.scalars().all()) == 2


class TestLogout:
    async def test_logout_removes_session(self, db_client: AsyncClient, db_session):
        code = await create_game(db_client)
        user_id = (await register_user(db_client, code)).json()["user"]["id"]
        resp = await db_client.post("/api/auth/logout", json={"gameCode": code, "userId": user_id})
        assert resp.status_code == 200
        assert resp.json() == {"success": True}

        result = await db_session.execute(
            select(GameSession).where(GameSession.user_id == int(user_id))
        )
        assert result.scalars().all() == []

    async def test_guest_logout_is_noop(self, db_client: AsyncClient):
        resp = await db_client.post("/api/auth/logout", json={"userId": "Guest_123456"})
        assert resp.status_code == 200
        assert resp.json() == {"success": True}

    async def test_logout_requires_game_code(self, db_client: AsyncClient):
        resp = await db_client.post("/api/auth/logout", json={"userId": 1})
        assert resp.status_code == 400


class TestGuest:
    async def test_guest_identity(self, client: AsyncClient):
        resp = await client.post("/api/auth/guest")
        assert resp.status_code == 200
        user = resp.json()["user"]
        assert user["is_guest"] is True
        assert user["username"].startswith("Guest_")
        assert len(user["username"]) == len("Guest_") + 6
        assert user["id"] == user["username"]


class TestMe:
    async def test_me_registered(self, db_client: AsyncClient):
        code = await create_game(db_client)
        token = (await register_user(db_client, code, display_name="Ally")).json()["access_token"]
        resp = await db_client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 200
        data = resp.json()
        assert data["username"] == "alice"
        assert data["display_name"] == "Ally"
        assert data["is_guest"] is False

    async def test_me_guest(self, client: AsyncClient):
        token = (await client.post("/api/auth/guest")).json()["access_token"]
        resp = await client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert resp.json()["is_guest"] is True

    async def test_me_unauthenticated(self, client: AsyncClient):
        resp = await client.get("/api/auth/me")
        assert resp.status_code == 401

    async def test_me_bad_token(self, client: AsyncClient):
        resp = await client.get("/api/auth/me", headers={"Authorization": "Bearer garbage"})
        assert resp.status_code == 401


class TestCheck:
    async def test_check_reports_tables(self, db_client: AsyncClient):
        resp = await db_client.get("/api/auth/check")
        assert resp.status_code == 200
        assert resp.json() == {"hasAuth": True, "errors": {"users": None, "gameSessions": None}}


class TestTokens:
    def test_round_trip_claims(self):
        token = create_access_token("12", "alice", "Alice", guest=False)
        claims = decode_access_token(token)
        assert claims["sub"] == "12"
        assert claims["username"] == "alice"
        assert claims["guest"] is False

    def test_tampered_token(self):
        token = create_access_token("12", "alice", "Alice")
        assert decode_access_token(token + "x") is None
