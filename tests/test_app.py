"""Tests for the HTTP and WebSocket surface."""
import uuid

import pytest
from fastapi.testclient import TestClient

from app import app
from constants import HEALTH_CHECK_TEXT


@pytest.fixture
def client():
    with TestClient(app) as client:
        yield client


@pytest.fixture
def room_id():
    # The app shares one registry across tests
    return f"room-{uuid.uuid4().hex[:8]}"


def test_health_check(client):
    response = client.get("/")
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/plain")
    assert response.text == HEALTH_CHECK_TEXT


def test_unknown_room_details_is_404(client):
    response = client.get(f"/rooms/missing-{uuid.uuid4().hex}")
    assert response.status_code == 404
    assert response.json()["detail"] == "Room not found"


def test_signaling_round_trip(client, room_id):
    with client.websocket_connect("/") as ws_a, client.websocket_connect("/ws") as ws_b:
        ws_a.send_json({"type": "join", "roomId": room_id, "userId": "A"})
        # A bad frame in between must not end the session
        ws_a.send_text("definitely not json")
        ws_a.send_json({"type": "get-participants", "roomId": room_id, "userId": "A"})
        assert ws_a.receive_json() == {"type": "participants", "participants": ["A"]}

        ws_b.send_json({"type": "join", "roomId": room_id, "userId": "B"})
        assert ws_a.receive_json() == {"type": "joined", "userId": "B", "roomId": room_id}

        ws_b.send_json({"type": "offer", "roomId": room_id, "target": "A", "from": "B", "offer": {"sdp": "x"}})
        assert ws_a.receive_json() == {"type": "offer", "offer": {"sdp": "x"}, "from": "B", "target": "A"}

        ws_a.send_json({"type": "answer", "roomId": room_id, "target": "B", "from": "A", "answer": {"sdp": "y"}})
        assert ws_b.receive_json() == {"type": "answer", "answer": {"sdp": "y"}, "from": "A", "target": "B"}

        ws_b.send_bytes(b'{"type": "get-participants", "roomId": "%s"}' % room_id.encode())
        reply = ws_b.receive_json()
        assert reply["type"] == "participants"
        assert sorted(reply["participants"]) == ["A", "B"]

        details = client.get(f"/rooms/{room_id}").json()
        assert details["room_id"] == room_id
        assert sorted(details["participants"]) == ["A", "B"]
        assert details["participant_count"] == 2

        listing = client.get("/rooms").json()
        assert {"room_id": room_id, "participant_count": 2} in listing["rooms"]

        ws_b.send_json({"type": "leave", "roomId": room_id, "userId": "B"})
        assert ws_a.receive_json() == {"type": "left", "userId": "B", "roomId": room_id}

        ws_a.send_json({"type": "leave", "roomId": room_id, "userId": "A"})


def test_transport_close_removes_member_and_notifies_room(client, room_id):
    with client.websocket_connect("/") as ws_a:
        ws_a.send_json({"type": "join", "roomId": room_id, "userId": "A"})
        ws_a.send_json({"type": "get-participants", "roomId": room_id})
        assert ws_a.receive_json() == {"type": "participants", "participants": ["A"]}

        with client.websocket_connect("/") as ws_b:
            ws_b.send_json({"type": "join", "roomId": room_id, "userId": "B"})
            assert ws_a.receive_json() == {"type": "joined", "userId": "B", "roomId": room_id}
            # Transport close without a "leave" message
            ws_b.close()
            assert ws_a.receive_json() == {"type": "left", "userId": "B", "roomId": room_id}

        details = client.get(f"/rooms/{room_id}").json()
        assert details["participants"] == ["A"]
        assert details["participant_count"] == 1

        ws_a.send_json({"type": "leave", "roomId": room_id, "userId": "A"})
