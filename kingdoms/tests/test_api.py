"""
Tests for API layer.

Tests:
- API service methods
- HTTP status and error body mapping
- Payload validation before the engine
- Per-viewer WebSocket pushes
"""

import pytest
from fastapi.testclient import TestClient

from ..api.app import create_app
from ..api.schemas import CreateRoomRequest, ErrorCode, ErrorResponse, JoinRoomRequest, PlayerRequest
from ..api.service import APIService
from ..engine_core.sources import Sources
from ..engine_core.state import TileConfig, TileType
from ..session import RoomManager


@pytest.fixture
def service():
    """A fresh service with deterministic sources."""
    return APIService(room_manager=RoomManager(sources=Sources.seeded(5)))


@pytest.fixture
def client(service):
    with TestClient(create_app(service)) as test_client:
        yield test_client


def create_room(client, name="Ada"):
    response = client.post("/api/v1/rooms", json={"player_name": name})
    assert response.status_code == 201
    return response.json()


def join_room(client, code, name="Bo"):
    response = client.post(f"/api/v1/rooms/{code}/join", json={"player_name": name})
    assert response.status_code == 200
    return response.json()


@pytest.fixture
def started_room(client):
    """Two players seated, ready and started. Returns (code, host_id, guest_id)."""
    host = create_room(client)
    code = host["room_code"]
    guest = join_room(client, code)
    for seat in (host, guest):
        client.post(f"/api/v1/rooms/{code}/ready", json={"player_id": seat["player_id"]})
    response = client.post(f"/api/v1/rooms/{code}/start", json={"player_id": host["player_id"]})
    assert response.status_code == 200
    return code, host["player_id"], guest["player_id"]


def post_action(client, code, player_id, action):
    return client.post(f"/api/v1/rooms/{code}/actions", json={"player_id": player_id, "action": action})


class TestAPIService:
    """Tests for APIService without HTTP."""

    def test_create_and_join(self, service):
        host = service.create_room(CreateRoomRequest(player_name="Ada"))
        guest = service.join_room(host.room_code, JoinRoomRequest(player_name="Bo"))

        assert host.player_color.value == "red"
        assert guest.player_color.value == "yellow"
        assert len(guest.game_state.players) == 2

    def test_errors_returned_not_raised(self, service):
        response = service.join_room("NOROOM", JoinRoomRequest(player_name="Bo"))

        assert isinstance(response, ErrorResponse)
        assert response.error_code == ErrorCode.ROOM_NOT_FOUND
        assert response.details == {"room_code": "NOROOM"}

    def test_start_requires_ready(self, service):
        host = service.create_room(CreateRoomRequest(player_name="Ada"))
        service.join_room(host.room_code, JoinRoomRequest(player_name="Bo"))

        response = service.start_game(host.room_code, PlayerRequest(player_id=host.player_id))
        assert response.error_code == ErrorCode.PLAYERS_NOT_READY

    def test_list_rooms(self, service):
        code = service.create_room(CreateRoomRequest(player_name="Ada")).room_code
        listing = service.list_rooms()
        assert listing.rooms == [code]
        assert listing.count == 1


class TestLobbyEndpoints:
    """Room creation and lobby over HTTP."""

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_create_room(self, client):
        body = create_room(client)

        assert len(body["room_code"]) == 6
        assert body["player_color"] == "red"
        assert body["game_state"]["phase"] == "lobby"
        assert body["api_version"] == "v1"

    def test_blank_name_rejected(self, client):
        response = client.post("/api/v1/rooms", json={"player_name": ""})
        assert response.status_code == 422
        assert response.json()["error_code"] == "VALIDATION_ERROR"

    def test_join_unknown_room(self, client):
        response = client.post("/api/v1/rooms/NOROOM/join", json={"player_name": "Bo"})

        assert response.status_code == 404
        body = response.json()
        assert body["error_code"] == "ROOM_NOT_FOUND"
        assert body["error"]
        assert body["api_version"] == "v1"

    def test_room_full_is_conflict(self, client):
        code = create_room(client)["room_code"]
        for name in ("Bo", "Cy", "Di"):
            join_room(client, code, name)

        response = client.post(f"/api/v1/rooms/{code}/join", json={"player_name": "Ed"})
        assert response.status_code == 409
        assert response.json()["error_code"] == "ROOM_FULL"

    def test_rejoin(self, client):
        host = create_room(client)
        response = client.post(
            f"/api/v1/rooms/{host['room_code']}/rejoin",
            json={"player_id": host["player_id"]},
        )
        assert response.status_code == 200
        assert response.json()["player_color"] == "red"

    def test_start_not_host(self, client):
        host = create_room(client)
        code = host["room_code"]
        guest = join_room(client, code)
        for seat in (host, guest):
            client.post(f"/api/v1/rooms/{code}/ready", json={"player_id": seat["player_id"]})

        response = client.post(f"/api/v1/rooms/{code}/start", json={"player_id": guest["player_id"]})
        assert response.status_code == 409
        assert response.json()["error_code"] == "NOT_HOST"


class TestGameEndpoints:
    """Playing through HTTP."""

    def test_started_state(self, client, started_room):
        code, host_id, guest_id = started_room
        response = client.get(f"/api/v1/rooms/{code}/state", params={"player_id": guest_id})

        assert response.status_code == 200
        state = response.json()["game_state"]
        assert state["phase"] == "playing"
        assert len(state["tile_deck"]) == 21
        assert all(t["id"] == "hidden" for t in state["tile_deck"])
        host = next(p for p in state["players"] if p["id"] == host_id)
        guest = next(p for p in state["players"] if p["id"] == guest_id)
        assert host["secret_tile"]["id"] == "hidden"
        assert guest["secret_tile"]["id"] != "hidden"

    def test_state_for_unknown_player(self, client, started_room):
        code, _, _ = started_room
        response = client.get(f"/api/v1/rooms/{code}/state", params={"player_id": "nobody"})
        assert response.status_code == 404
        assert response.json()["error_code"] == "PLAYER_NOT_FOUND"

    def test_place_castle(self, client, started_room):
        code, host_id, guest_id = started_room
        response = post_action(client, code, host_id, {"type": "PLACE_CASTLE", "castle_rank": 2, "row": 1, "col": 4})

        assert response.status_code == 200
        state = response.json()["game_state"]
        assert state["board"][1][4]["castle"] == {"rank": 2, "color": "red"}
        assert state["players"][state["current_player_index"]]["id"] == guest_id

    def test_draw_then_place(self, client, started_room):
        code, host_id, _ = started_room
        drawn = post_action(client, code, host_id, {"type": "DRAW_TILE"}).json()["game_state"]
        held = drawn["players"][0]["drawn_tile"]
        assert held["id"] != "hidden"

        locked = post_action(client, code, host_id, {"type": "PLACE_CASTLE", "castle_rank": 1, "row": 0, "col": 0})
        assert locked.status_code == 400
        assert locked.json()["error_code"] == "MUST_PLACE_DRAWN_TILE_FIRST"

        placed = post_action(client, code, host_id, {"type": "PLACE_DRAWN_TILE", "row": 0, "col": 0})
        assert placed.status_code == 200
        assert placed.json()["game_state"]["board"][0][0]["tile"]["id"] == held["id"]

    def test_rule_violation_is_400(self, client, started_room):
        code, _, guest_id = started_room
        response = post_action(client, code, guest_id, {"type": "DRAW_TILE"})

        assert response.status_code == 400
        body = response.json()
        assert body["error_code"] == "NOT_YOUR_TURN"
        assert body["details"]["action"] == "DRAW_TILE"

    def test_off_board_is_400(self, client, started_room):
        code, host_id, _ = started_room
        response = post_action(client, code, host_id, {"type": "PLAY_SECRET_TILE", "row": 5, "col": 0})
        assert response.status_code == 400
        assert response.json()["error_code"] == "INVALID_POSITION"

    @pytest.mark.parametrize("action", [
        {"type": "FLY_DRAGON"},
        {"type": "PLACE_CASTLE", "castle_rank": 5, "row": 0, "col": 0},
        {"type": "PLACE_CASTLE", "castle_rank": 0, "row": 0, "col": 0},
        {"type": "PLACE_CASTLE", "row": 0, "col": 0},
        {"type": "PLAY_SECRET_TILE", "row": 0},
        {"type": "PLAY_SECRET_TILE", "row": 2.9, "col": 0},
        {"row": 0, "col": 0},
    ])
    def test_malformed_action_is_422(self, client, started_room, action):
        code, host_id, _ = started_room
        response = post_action(client, code, host_id, action)

        assert response.status_code == 422
        assert response.json()["error_code"] == "MALFORMED_ACTION"

    def test_malformed_action_leaves_state(self, client, started_room, service):
        code, host_id, _ = started_room
        before = service.room_manager.get_state(code)
        post_action(client, code, host_id, {"type": "PLACE_CASTLE", "castle_rank": 9, "row": 0, "col": 0})
        assert service.room_manager.get_state(code) == before


class TestEpochEndpoints:
    """Scoring, abandon and standings over HTTP."""

    def test_finish_epoch_needs_full_board(self, client, started_room):
        code, host_id, _ = started_room
        response = client.post(f"/api/v1/rooms/{code}/finish-epoch", json={"player_id": host_id})
        assert response.status_code == 409
        assert response.json()["error_code"] == "EPOCH_NOT_COMPLETE"

    def test_finish_epoch(self, client, started_room, service):
        code, host_id, _ = started_room
        state = service.room_manager.get_state(code)
        for cell in state.cells():
            if (cell.row, cell.col) != (0, 0):
                cell.tile = TileConfig(id=f"f{cell.row}{cell.col}", type=TileType.RESOURCE, value=2)
        service.room_manager.store.put(code, state)

        played = post_action(client, code, host_id, {"type": "PLACE_CASTLE", "castle_rank": 1, "row": 0, "col": 0})
        assert played.json()["game_state"]["phase"] == "scoring"

        response = client.post(f"/api/v1/rooms/{code}/finish-epoch", json={"player_id": host_id})
        assert response.status_code == 200
        body = response.json()
        # Row 0: five +2 tiles; column 0: four +2 tiles
        assert body["scores"][0]["total_score"] == 18
        assert body["finished"] is False
        assert body["game_state"]["epoch"] == 2
        assert body["game_state"]["players"][0]["gold"] == 68

    def test_standings_after_abandon(self, client, started_room):
        code, _, guest_id = started_room
        early = client.get(f"/api/v1/rooms/{code}/standings")
        assert early.status_code == 409
        assert early.json()["error_code"] == "GAME_NOT_FINISHED"

        abandoned = client.post(f"/api/v1/rooms/{code}/abandon", json={"player_id": guest_id})
        assert abandoned.json()["game_state"]["phase"] == "finished"

        standings = client.get(f"/api/v1/rooms/{code}/standings").json()["standings"]
        assert [s["gold"] for s in standings] == [50, 50]


class TestWebSocket:
    """Per-viewer pushes."""

    def test_unknown_player_rejected(self, client):
        code = create_room(client)["room_code"]
        with client.websocket_connect(f"/api/v1/rooms/{code}/ws?player_id=nobody") as ws:
            message = ws.receive_json()
        assert message["type"] == "error"

    def test_ping(self, client):
        host = create_room(client)
        url = f"/api/v1/rooms/{host['room_code']}/ws?player_id={host['player_id']}"
        with client.websocket_connect(url) as ws:
            assert ws.receive_json()["type"] == "room_updated"
            ws.send_text('{"type": "ping"}')
            assert ws.receive_json() == {"type": "pong"}

    def test_join_pushed_to_host(self, client):
        host = create_room(client)
        code = host["room_code"]
        url = f"/api/v1/rooms/{code}/ws?player_id={host['player_id']}"
        with client.websocket_connect(url) as ws:
            initial = ws.receive_json()
            assert len(initial["payload"]["players"]) == 1

            join_room(client, code)
            update = ws.receive_json()

        assert update["type"] == "room_updated"
        assert [p["name"] for p in update["payload"]["players"]] == ["Ada", "Bo"]

    def test_socket_closing_mid_broadcast(self, client, started_room):
        """A socket that goes away during a push neither breaks the action nor starves others."""
        code, host_id, _ = started_room
        connections = client.app.state.ws_connections.setdefault(code, [])
        closing = ClosingSocket(connections)
        listening = RecordingSocket()
        connections.extend([(host_id, closing), (host_id, listening)])

        response = post_action(client, code, host_id, {"type": "DRAW_TILE"})

        assert response.status_code == 200
        assert [m["type"] for m in listening.messages] == ["game_updated"]
        assert all(ws is not closing for _, ws in connections)


class RecordingSocket:
    """Stands in for a connected socket and keeps what it is sent."""

    def __init__(self):
        self.messages = []

    async def send_json(self, message):
        self.messages.append(message)


class ClosingSocket:
    """Disconnects while a message is being sent to it."""

    def __init__(self, connections):
        self.connections = connections

    async def send_json(self, message):
        # The socket's own handler cleans up before the send fails
        self.connections[:] = [c for c in self.connections if c[1] is not self]
        raise RuntimeError("socket closed")
