"""
Tests for room catalogue, message history and online user endpoints.
"""

from rest_api.models import Message


class TestRoomEndpoints:
    """Default rooms are seeded at startup."""

    def test_list_rooms_by_name(self, client):
        response = client.get("/api/rooms")
        assert response.status_code == 200
        rooms = response.json()
        assert [r["name"] for r in rooms] == ["general", "help", "random", "voice-chat"]
        assert rooms[-1]["type"] == "voice"

    def test_get_room(self, client):
        room_id = client.get("/api/rooms").json()[0]["id"]
        response = client.get(f"/api/rooms/{room_id}")
        assert response.status_code == 200
        assert response.json()["name"] == "general"

    def test_get_room_not_found(self, client):
        response = client.get("/api/rooms/9999")
        assert response.status_code == 404
        assert response.json()["detail"] == "Room with ID 9999 not found"

    def test_messages_not_found(self, client):
        response = client.get("/api/rooms/9999/messages")
        assert response.status_code == 404

    def test_room_id_out_of_range(self, client):
        too_large = 2**63
        assert client.get(f"/api/rooms/{too_large}").status_code == 422
        assert client.get(f"/api/rooms/{too_large}/messages").status_code == 422
        assert client.get("/api/rooms/0").status_code == 422


class TestMessageHistory:
    """History is the most recent messages, oldest first."""

    def test_recent_messages_in_order(self, client, db_session, seed_user, seed_room):
        for text in ("first", "second", "third"):
            db_session.add(Message(room_id=seed_room.id, user_id=seed_user.id, content=text))
            db_session.commit()

        response = client.get(f"/api/rooms/{seed_room.id}/messages", params={"limit": 2})

        assert response.status_code == 200
        messages = response.json()
        assert [m["content"] for m in messages] == ["second", "third"]
        assert messages[0]["username"] == "alice"
        assert messages[0]["room_id"] == seed_room.id

    def test_limit_bounds(self, client, seed_room):
        assert client.get(f"/api/rooms/{seed_room.id}/messages", params={"limit": 0}).status_code == 422
        assert client.get(f"/api/rooms/{seed_room.id}/messages", params={"limit": 501}).status_code == 422


class TestOnlineUsers:

    def test_online_after_login(self, client, seed_user):
        assert client.get("/api/users/online").json() == []

        client.post("/api/auth/login", json={"username": "alice", "password": "secret123"})

        online = client.get("/api/users/online").json()
        assert online == [
            {
                "id": seed_user.id,
                "username": "alice",
                "avatar": "https://example.test/alice.png",
                "status": "online",
            }
        ]
