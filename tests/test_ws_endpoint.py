"""
Tests for the /ws/chat endpoint through the FastAPI test client.

These exercise the whole path: handshake checks, frame parsing, the
connection manager and the real ChatStore on the in-memory database.
"""

import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from shared.config.settings import Settings, settings
from ws_gateway.components.core.constants import MSG_PONG_JSON, WSCloseCode, origin_allowed
from ws_gateway.components.endpoints.handlers import ChatEndpoint
from ws_gateway.connection_manager import ConnectionManager
from ws_gateway.main import app as gateway_app, get_connection_manager

ORIGIN = {"origin": "http://localhost:5173"}


@pytest.fixture
def gateway(db_session):
    """Fresh manager per test, wired into the gateway app."""
    return ConnectionManager()


@pytest.fixture
def gateway_client(gateway):
    gateway_app.dependency_overrides[get_connection_manager] = lambda: gateway
    with TestClient(gateway_app) as test_client:
        yield test_client
    gateway_app.dependency_overrides.clear()


def _authenticate(ws, user_id: int) -> dict:
    ws.send_json({"event": "authenticate", "data": {"userId": user_id}})
    authenticated = ws.receive_json()
    assert ws.receive_json()["event"] == "rooms-list"
    assert ws.receive_json()["event"] == "online-users"
    return authenticated


class TestChatEndpoint:
    """In-band authentication and chat over a real WebSocket."""

    def test_authenticate_join_and_send(self, gateway_client, seed_user):
        with gateway_client.websocket_connect("/ws/chat", headers=ORIGIN) as ws:
            authenticated = _authenticate(ws, seed_user.id)
            assert authenticated["event"] == "authenticated"
            assert authenticated["data"]["user"]["username"] == "alice"

            ws.send_json({"event": "join-room", "data": 1})
            history = ws.receive_json()
            assert history == {"event": "message-history", "data": {"messages": []}}
            room_info = ws.receive_json()
            assert room_info["event"] == "room-info"
            assert room_info["data"]["room"]["name"] == "general"

            ws.send_json({"event": "send-message", "data": {"text": "hello"}})
            message = ws.receive_json()
            assert message["event"] == "new-message"
            assert message["data"]["message"]["content"] == "hello"
            assert message["data"]["message"]["username"] == "alice"

    def test_unknown_user_gets_auth_error(self, gateway_client):
        with gateway_client.websocket_connect("/ws/chat", headers=ORIGIN) as ws:
            ws.send_json({"event": "authenticate", "data": {"userId": 999}})
            assert ws.receive_json() == {
                "event": "auth-error",
                "data": {"message": "User not found"},
            }

    def test_ping_pong(self, gateway_client):
        with gateway_client.websocket_connect("/ws/chat", headers=ORIGIN) as ws:
            ws.send_text("ping")
            assert ws.receive_text() == MSG_PONG_JSON

    def test_invalid_and_unauthenticated_frames_dropped(self, gateway_client):
        with gateway_client.websocket_connect("/ws/chat", headers=ORIGIN) as ws:
            ws.send_text("not json at all")
            ws.send_json({"event": "join-room", "data": {"roomId": 1}})
            ws.send_text("ping")
            assert ws.receive_text() == MSG_PONG_JSON

    def test_out_of_range_ids_dropped(self, gateway_client, gateway, seed_user):
        with gateway_client.websocket_connect("/ws/chat", headers=ORIGIN) as ws:
            ws.send_json({"event": "authenticate", "data": {"userId": 99999999999999999999}})
            ws.send_text("ping")
            assert ws.receive_text() == MSG_PONG_JSON

            authenticated = _authenticate(ws, seed_user.id)
            connection_id = authenticated["data"]["connectionId"]
            ws.send_json({"event": "join-room", "data": {"roomId": 99999999999999999999}})
            ws.send_text("ping")
            assert ws.receive_text() == MSG_PONG_JSON
            assert gateway.rooms.current_room(connection_id) is None

    def test_disconnect_cleans_up(self, gateway_client, gateway, seed_user):
        with gateway_client.websocket_connect("/ws/chat", headers=ORIGIN) as ws:
            _authenticate(ws, seed_user.id)
            assert gateway.get_stats()["sessions"] == 1

        assert gateway.total_connections == 0

    def test_forbidden_origin(self, gateway_client):
        with pytest.raises(WebSocketDisconnect) as exc_info:
            with gateway_client.websocket_connect(
                "/ws/chat", headers={"origin": "http://evil.example"}
            ) as ws:
                ws.receive_text()
        assert exc_info.value.code == WSCloseCode.FORBIDDEN

    def test_oversized_frame_closes(self, gateway_client):
        with gateway_client.websocket_connect("/ws/chat", headers=ORIGIN) as ws:
            ws.send_text("x" * (settings.ws_max_message_size + 1))
            with pytest.raises(WebSocketDisconnect) as exc_info:
                ws.receive_text()
        assert exc_info.value.code == WSCloseCode.MESSAGE_TOO_BIG


class TestEndpointLimits:
    """Rate limiting and capacity close codes."""

    def test_rate_limited(self, db_session):
        limited = ConnectionManager(rate_limit=2, rate_window=60)
        gateway_app.dependency_overrides[get_connection_manager] = lambda: limited
        try:
            with TestClient(gateway_app) as client:
                with client.websocket_connect("/ws/chat", headers=ORIGIN) as ws:
                    for _ in range(3):
                        ws.send_text("ping")
                    assert ws.receive_text() == MSG_PONG_JSON
                    assert ws.receive_text() == MSG_PONG_JSON
                    with pytest.raises(WebSocketDisconnect) as exc_info:
                        ws.receive_text()
            assert exc_info.value.code == WSCloseCode.RATE_LIMITED
        finally:
            gateway_app.dependency_overrides.clear()

    def test_at_capacity(self, db_session):
        full = ConnectionManager(max_total_connections=0)
        gateway_app.dependency_overrides[get_connection_manager] = lambda: full
        try:
            with TestClient(gateway_app) as client:
                with client.websocket_connect("/ws/chat", headers=ORIGIN) as ws:
                    with pytest.raises(WebSocketDisconnect) as exc_info:
                        ws.receive_text()
            assert exc_info.value.code == WSCloseCode.SERVER_OVERLOADED
        finally:
            gateway_app.dependency_overrides.clear()


class TestGatewayHealth:

    def test_health(self, gateway_client):
        response = gateway_client.get("/ws/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["service"] == "ws-gateway"
        assert data["connections"] == 0

    def test_detailed_health(self, gateway_client):
        response = gateway_client.get("/ws/health/detailed")
        assert response.status_code == 200
        data = response.json()
        assert data["dependencies"]["database"]["status"] == "healthy"
        assert "voice_participants" in data["connections"]


class TestChatEndpointDispatch:
    """Error mapping in handle_message, driven without a transport."""

    async def _endpoint(self, manager, make_ws):
        ws = make_ws()
        endpoint = ChatEndpoint(ws, manager)
        endpoint.connection_id = await manager.connect(ws)
        return endpoint, ws

    @pytest.mark.asyncio
    async def test_store_outage_on_authenticate(self, manager, store, make_ws):
        endpoint, ws = await self._endpoint(manager, make_ws)
        store.failing.add("find_user_by_id")

        await endpoint.handle_message('{"event": "authenticate", "data": {"userId": 1}}')

        assert ws.sent == [
            {"event": "auth-error", "data": {"message": "Authentication temporarily unavailable"}}
        ]

    @pytest.mark.asyncio
    async def test_presence_errors_dropped(self, manager, make_ws):
        endpoint, ws = await self._endpoint(manager, make_ws)

        await endpoint.handle_message('{"event": "join-voice"}')
        await endpoint.handle_message('{"event": "send-message", "data": {"text": "hi"}}')
        await endpoint.handle_message('{"event": "webrtc-offer", "data": {"to": "x", "offer": {}}}')

        assert ws.sent == []

    @pytest.mark.asyncio
    async def test_dispatch_to_manager(self, manager, make_ws):
        endpoint, ws = await self._endpoint(manager, make_ws)

        await endpoint.handle_message('{"event": "authenticate", "data": {"userId": 2}}')
        await endpoint.handle_message('{"event": "join-room", "data": {"roomId": 1}}')
        await endpoint.handle_message('{"event": "join-voice", "data": {}}')
        await endpoint.handle_message('{"event": "start-speaking"}')

        presence = manager.voice.get(endpoint.connection_id)
        assert presence.room_id == 1
        assert presence.speaking is True


class TestOriginRules:
    """Browser origins shared by CORS and the upgrade check."""

    def test_local_origins_by_default(self):
        local = Settings(allowed_origins="", environment="development")
        assert origin_allowed("http://localhost:5173", local)
        assert not origin_allowed("http://evil.example", local)
        assert origin_allowed(None, local)

    def test_configured_origins_replace_defaults(self):
        prod = Settings(allowed_origins="https://chat.example, https://www.chat.example", environment="production")
        assert prod.origin_list == ["https://chat.example", "https://www.chat.example"]
        assert origin_allowed("https://chat.example", prod)
        assert not origin_allowed("http://localhost:5173", prod)
        assert not origin_allowed(None, prod)
