from types import SimpleNamespace

import pytest
from starlette.websockets import WebSocketState

from api.websocket import app_updates
from core.broadcaster import Broadcaster, build_envelope
from models import EventType
from schemas import Panel


def test_every_open_channel_receives_events(app_client):
    _app, client = app_client

    with client.websocket_connect("/ws/app") as first, client.websocket_connect("/ws/app") as second:
        response = client.post("/api/candidates/manual", json={
            "name": "Walk In", "email": "walk@example.com", "position": "Engineer",
        })
        assert response.status_code == 201

        for ws in (first, second):
            message = ws.receive_json()
            assert message["type"] == "CANDIDATE_CREATED"
            assert message["data"]["serialNo"] == "WD-001"


def test_late_joiner_gets_no_replay(app_client):
    _app, client = app_client
    client.post("/api/panels", json={"name": "Before"})

    with client.websocket_connect("/ws/app") as ws:
        client.post("/api/panels", json={"name": "After"})

        message = ws.receive_json()

    assert message["type"] == "PANEL_CREATED"
    assert message["data"]["name"] == "After"


def test_client_messages_are_ignored(app_client):
    _app, client = app_client

    with client.websocket_connect("/ws/app") as ws:
        ws.send_text("hello")
        client.post("/api/panels", json={"name": "P"})

        assert ws.receive_json()["type"] == "PANEL_CREATED"


def test_envelope_uses_wire_names():
    envelope = build_envelope(EventType.PANEL_UPDATED, Panel(id=3, name="P", current_candidate=7))

    assert envelope == {
        "type": "PANEL_UPDATED",
        "data": {
            "id": 3,
            "name": "P",
            "roomNo": "",
            "isActive": True,
            "currentCandidate": 7,
            "panelMembers": [],
        },
    }


def test_publish_without_running_broadcaster_is_dropped():
    broadcaster = Broadcaster()
    broadcaster.publish(EventType.USER_DELETED, {"id": 1})
    assert broadcaster.connection_count == 0
    assert not broadcaster.running


class FailingSocket:
    client_state = WebSocketState.CONNECTED
    application_state = WebSocketState.CONNECTED

    async def send_json(self, data):
        raise RuntimeError("socket gone")


@pytest.mark.anyio
async def test_failed_send_drops_connection():
    broadcaster = Broadcaster()
    broadcaster._connections.add(FailingSocket())

    await broadcaster.deliver(build_envelope(EventType.USER_DELETED, {"id": 1}))

    assert broadcaster.connection_count == 0


class RefusingSocket:
    def __init__(self, broadcaster):
        self.app = SimpleNamespace(state=SimpleNamespace(broadcaster=broadcaster))

    async def accept(self):
        raise RuntimeError("handshake failed")


@pytest.mark.anyio
async def test_failed_handshake_leaves_no_connection():
    broadcaster = Broadcaster()

    with pytest.raises(RuntimeError):
        await app_updates(RefusingSocket(broadcaster))

    assert broadcaster.connection_count == 0
