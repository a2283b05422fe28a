from httpx import AsyncClient


# ---- helpers ----------------------------------------------------------------

async def create_game(client: AsyncClient, name: str = "Test Game") -> dict:
    resp = await client.post("/api/games/create", json={"name": name})
    assert resp.status_code == 200, resp.text
    return resp.json()


async def add_player(client: AsyncClient, code: str, name: str) -> dict:
    resp = await client.post(f"/api/games/{code}/players", json={"name": name})
    assert resp.status_code == 200, resp.text
    return resp.json()["player"]


async def adjust(client: AsyncClient, code: str, player_id: int, points: int, description: str | None = None):
    body = {"points": points}
    if description is not None:
        body["description"] = description
    resp = await client.patch(f"/api/games/{code}/players/{player_id}", json=body)
    assert resp.status_code == 200, resp.text
    return resp.json()["player"]


async def guest_headers(client: AsyncClient) -> dict:
    token = (await client.post("/api/auth/guest")).json()["access_token"]
    return {"Authorization": f"Bearer {token}"}


# ---- game creation ----------------------------------------------------------

class TestCreateGame:
    async def test_create_game_success(self, db_client: AsyncClient):
        data = await create_game(db_client, "Friday Crew")
        assert data["message"] == "Game created"
        assert data["game"]["name"] == "Friday Crew"
        assert data["game"]["code"] == data["code"]

    async def test_code_is_six_uppercase_alphanumerics(self, db_client: AsyncClient):
        code = (await create_game(db_client))["code"]
        assert len(code) == 6
        assert code == code.upper()
        assert code.isalnum()

    async def test_codes_are_unique(self, db_client: AsyncClient):
        codes = {(await create_game(db_client, f"Game {i}"))["code"] for i in range(5)}
        assert len(codes) == 5

    async def test_create_game_blank_name(self, db_client: AsyncClient):
        resp = await db_client.post("/api/games/create", json={"name": "   "})
        assert resp.status_code == 400
        assert resp.json()["error"] == "Game name is required"

    async def test_create_game_missing_name(self, db_client: AsyncClient):
        resp = await db_client.post("/api/games/create", json={})
        assert resp.status_code == 400
        assert "error" in resp.json()


# ---- game detail ------------------------------------------------------------

class TestGetGame:
    async def test_get_unknown_game(self, db_client: AsyncClient):
        resp = await db_client.get("/api/games/ZZZZZZ")
        assert resp.status_code == 404
        assert resp.json() == {"error": "Game not found"}

    async def test_lookup_is_case_insensitive(self, db_client: AsyncClient):
        code = (await create_game(db_client))["code"]
        resp = await db_client.get(f"/api/games/{code.lower()}")
        assert resp.status_code == 200
        assert resp.json()["game"]["code"] == code

    async def test_empty_game(self, db_client: AsyncClient):
        code = (await create_game(db_client))["code"]
        data = (await db_client.get(f"/api/games/{code}")).json()
        assert data["players"] == []
        assert data["actions"] == []

    async def test_players_sorted_by_aura(self, db_client: AsyncClient):
        code = (await create_game(db_client))["code"]
        low = await add_player(db_client, code, "Low")
        high = await add_player(db_client, code, "High")
        await adjust(db_client, code, high["id"], 50)
        await adjust(db_client, code, low["id"], -20)

        data = (await db_client.get(f"/api/games/{code}")).json()
        assert [p["name"] for p in data["players"]] == ["High", "Low"]
        assert [p["aura_points"] for p in data["players"]] == [50, -20]

    async def test_actions_newest_first_with_player_name(self, db_client: AsyncClient):
        code = (await create_game(db_client))["code"]
        player = await add_player(db_client, code, "Alice")
        await adjust(db_client, code, player["id"], 10, "first")
        await adjust(db_client, code, player["id"], 20, "second")

        actions = (await db_client.get(f"/api/games/{code}")).json()["actions"]
        assert [a["description"] for a in actions] == ["second", "first"]
        assert actions[0]["players"] == {"name": "Alice"}

    async def test_actions_capped_at_twenty(self, db_client: AsyncClient):
        code = (await create_game(db_client))["code"]
        player = await add_player(db_client, code, "Busy")
        for i in range(25):
            await adjust(db_client, code, player["id"], 1, f"step {i}")

        data = (await db_client.get(f"/api/games/{code}")).json()
        assert len(data["actions"]) == 20
        assert data["actions"][0]["description"] == "step 24"
        assert data["players"][0]["aura_points"] == 25


# ---- game update ------------------------------------------------------------

class TestUpdateGame:
    async def test_rename(self, db_client: AsyncClient):
        code = (await create_game(db_client, "Old"))["code"]
        resp = await db_client.patch(f"/api/games/{code}", json={"name": "New"})
        assert resp.status_code == 200
        assert resp.json()["game"]["name"] == "New"

    async def test_change_code(self, db_client: AsyncClient):
        code = (await create_game(db_client))["code"]
        resp = await db_client.patch(f"/api/games/{code}", json={"code": "party1"})
        assert resp.status_code == 200
        assert resp.json()["game"]["code"] == "PARTY1"
        assert (await db_client.get("/api/games/PARTY1")).status_code == 200
        assert (await db_client.get(f"/api/games/{code}")).status_code == 404

    async def test_code_already_in_use(self, db_client: AsyncClient):
        first = (await create_game(db_client, "First"))["code"]
        second = (await create_game(db_client, "Second"))["code"]
        resp = await db_client.patch(f"/api/games/{second}", json={"code": first})
        assert resp.status_code == 409
        assert resp.json()["error"] == "Game code already in use"

    async def test_nothing_to_update(self, db_client: AsyncClient):
        code = (await create_game(db_client))["code"]
        resp = await db_client.patch(f"/api/games/{code}", json={})
        assert resp.status_code == 400

    async def test_guest_token_cannot_update(self, db_client: AsyncClient):
        code = (await create_game(db_client))["code"]
        token = (await db_client.post("/api/auth/guest")).json()["access_token"]
        resp = await db_client.patch(
            f"/api/games/{code}",
            json={"name": "Hijacked"},
            headers={"Authorization": f"Bearer {token}"},
        )
        assert resp.status_code == 403


# ---- game deletion ----------------------------------------------------------

class TestDeleteGame:
    async def test_delete_game_with_history(self, db_client: AsyncClient):
        code = (await create_game(db_client))["code"]
        alice = await add_player(db_client, code, "Alice")
        await add_player(db_client, code, "Bob")
        await adjust(db_client, code, alice["id"], 5)
        await db_client.post(
            f"/api/games/{code}/proposals",
            json={"playerId": alice["id"], "description": "x", "points": 10, "username": "Bob"},
        )

        resp = await db_client.delete(f"/api/games/{code}")
        assert resp.status_code == 200
        data = resp.json()
        assert data["message"] == "Game deleted"
        assert "deletedAt" in data

        assert (await db_client.get(f"/api/games/{code}")).status_code == 404

    async def test_guest_token_cannot_delete(self, db_client: AsyncClient):
        code = (await create_game(db_client))["code"]
        headers = await guest_headers(db_client)
        resp = await db_client.delete(f"/api/games/{code}", headers=headers)
        assert resp.status_code == 403
        assert resp.json()["error"] == "Guests cannot modify the game"
        assert (await db_client.get(f"/api/games/{code}")).status_code == 200

    async def test_delete_unknown_game(self, db_client: AsyncClient):
        resp = await db_client.delete("/api/games/NOPE00")
        assert resp.status_code == 404


# ---- game reset -------------------------------------------------------------

class TestResetGame:
    async def test_reset_restores_baseline(self, db_client: AsyncClient):
        code = (await create_game(db_client))["code"]
        alice = await add_player(db_client, code, "Alice")
        bob = await add_player(db_client, code, "Bob")
        await adjust(db_client, code, alice["id"], 300)
        await adjust(db_client, code, bob["id"], -40)

        resp = await db_client.post(f"/api/games/{code}/reset")
        assert resp.status_code == 200
        assert "resetAt" in resp.json()

        data = (await db_client.get(f"/api/games/{code}")).json()
        assert data["actions"] == []
        assert {p["id"] for p in data["players"]} == {alice["id"], bob["id"]}
        assert all(p["aura_points"] == 1000 for p in data["players"])

    async def test_reset_keeps_pending_proposals(self, db_client: AsyncClient):
        code = (await create_game(db_client))["code"]
        alice = await add_player(db_client, code, "Alice")
        await add_player(db_client, code, "Bob")
        await db_client.post(
            f"/api/games/{code}/proposals",
            json={"playerId": alice["id"], "description": "x", "points": 10, "username": "Bob"},
        )

        await db_client.post(f"/api/games/{code}/reset")
        proposals = (await db_client.get(f"/api/games/{code}/proposals")).json()["proposals"]
        assert len(proposals) == 1

    async def test_guest_token_cannot_reset(self, db_client: AsyncClient):
        code = (await create_game(db_client))["code"]
        alice = await add_player(db_client, code, "Alice")
        await adjust(db_client, code, alice["id"], 7)

        resp = await db_client.post(f"/api/games/{code}/reset", headers=await guest_headers(db_client))
        assert resp.status_code == 403

        data = (await db_client.get(f"/api/games/{code}")).json()
        assert data["players"][0]["aura_points"] == 7
        assert len(data["actions"]) == 1


class TestHealth:
    async def test_health(self, client: AsyncClient):
        resp = await client.get("/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok"}
