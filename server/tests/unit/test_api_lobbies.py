"""Tests for the lobbies API endpoints."""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from mapveto.draft.rules import DEFAULT_MAP_POOLS, GameTitle


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    """Create a test client."""
    return TestClient(app)


class TestCreateLobby:
    """Tests for POST /api/lobbies."""

    def test_create_lobby_default(self, client: TestClient) -> None:
        """Test creating an administrator lobby with defaults."""
        response = client.post("/api/lobbies", json={"title": "cs2", "format": "bo3"})

        assert response.status_code == 201
        data = response.json()
        assert len(data["id"]) == 6
        lobby = data["lobby"]
        assert lobby["id"] == data["id"]
        assert lobby["admin"] is True
        assert lobby["status"] == "waiting"
        assert lobby["options"]["poolSize"] == 7
        assert lobby["activePool"] == list(DEFAULT_MAP_POOLS[GameTitle.CS2])

    def test_create_lobby_with_options(self, client: TestClient) -> None:
        response = client.post(
            "/api/lobbies",
            json={
                "lobbyId": "FINALS",
                "title": "valorant",
                "format": "bo2",
                "poolSize": 4,
                "coinFlip": False,
                "strictTurns": False,
            },
        )

        assert response.status_code == 201
        lobby = response.json()["lobby"]
        assert lobby["id"] == "FINALS"
        assert lobby["options"]["coinFlip"] is False
        assert lobby["options"]["strictTurns"] is False
        assert len(lobby["mapPool"]) == 4
        assert lobby["stepCursor"] == 3

    def test_create_arena_lobby(self, client: TestClient) -> None:
        response = client.post(
            "/api/lobbies", json={"title": "splatoon", "format": "bo3", "modesSize": 2}
        )

        assert response.status_code == 201
        lobby = response.json()["lobby"]
        assert lobby["family"] == "arena"
        assert lobby["modes"]["pool"] == ["tower", "zones"]

    def test_invalid_configuration(self, client: TestClient) -> None:
        """BO3 does not accept a 4-map pool."""
        response = client.post(
            "/api/lobbies", json={"title": "cs2", "format": "bo3", "poolSize": 4}
        )
        assert response.status_code == 400

    def test_arena_rejects_other_formats(self, client: TestClient) -> None:
        response = client.post("/api/lobbies", json={"title": "splatoon", "format": "bo5"})
        assert response.status_code == 400

    def test_unknown_title(self, client: TestClient) -> None:
        response = client.post("/api/lobbies", json={"title": "chess", "format": "bo1"})
        assert response.status_code == 422

    def test_duplicate_id(self, client: TestClient) -> None:
        body = {"lobbyId": "ROOM", "title": "cs2", "format": "bo1"}
        assert client.post("/api/lobbies", json=body).status_code == 201

        response = client.post("/api/lobbies", json=body)
        assert response.status_code == 409


class TestListLobbies:
    """Tests for GET /api/lobbies."""

    def test_list_empty(self, client: TestClient) -> None:
        response = client.get("/api/lobbies")

        assert response.status_code == 200
        assert response.json() == {"lobbies": []}

    def test_list_lobbies(self, client: TestClient) -> None:
        """Lobbies are listed oldest first."""
        client.post("/api/lobbies", json={"lobbyId": "FIRST", "title": "cs2", "format": "bo1"})
        client.post(
            "/api/lobbies", json={"lobbyId": "SECOND", "title": "splatoon", "format": "bo3"}
        )

        response = client.get("/api/lobbies")

        assert response.status_code == 200
        lobbies = response.json()["lobbies"]
        assert [lobby["id"] for lobby in lobbies] == ["FIRST", "SECOND"]
        first = lobbies[0]
        assert first["title"] == "cs2"
        assert first["admin"] is True
        assert first["teams"] == []
        assert first["memberCount"] == 0
        assert "createdAt" in first


class TestGetLobby:
    """Tests for GET /api/lobbies/{id}."""

    def test_get_lobby(self, client: TestClient) -> None:
        client.post("/api/lobbies", json={"lobbyId": "ROOM", "title": "cs2", "format": "bo1"})

        response = client.get("/api/lobbies/ROOM")

        assert response.status_code == 200
        lobby = response.json()["lobby"]
        assert lobby["id"] == "ROOM"
        assert lobby["pattern"] == ["ban"] * 6 + ["pick"]

    def test_get_missing_lobby(self, client: TestClient) -> None:
        response = client.get("/api/lobbies/NOPE")
        assert response.status_code == 404


class TestDeleteLobby:
    """Tests for DELETE /api/lobbies/{id}."""

    def test_delete_lobby(self, client: TestClient, app: FastAPI) -> None:
        client.post("/api/lobbies", json={"lobbyId": "ROOM", "title": "cs2", "format": "bo1"})

        response = client.delete("/api/lobbies/ROOM")

        assert response.status_code == 200
        assert response.json() == {"success": True}
        assert app.state.lobby_manager.get_lobby("ROOM") is None
        assert client.get("/api/lobbies/ROOM").status_code == 404

    def test_delete_missing_lobby(self, client: TestClient) -> None:
        response = client.delete("/api/lobbies/NOPE")
        assert response.status_code == 404


class TestMapPool:
    """Tests for GET /api/map-pool."""

    def test_map_pool(self, client: TestClient) -> None:
        response = client.get("/api/map-pool")

        assert response.status_code == 200
        data = response.json()
        assert data["mapPool"]["cs2"] == list(DEFAULT_MAP_POOLS[GameTitle.CS2])
        assert "Vertigo" in data["mapCatalogues"]["cs2"]
        assert data["modes"]["zones"]["label"] == "Splat Zones"
        assert len(data["modes"]["clam"]["maps"]) == 8
