"""Integration tests for the HTTP and websocket routes."""
import asyncio
import json

from models.session_models import AssistantMessage
from services.client.chat_session import ChatSession
from services.realtime.session_store import ParticipantStore, system_notice


def _read_reply(ws, session):
    """Receive frames until the reply seals; return the sealed entry."""
    while True:
        frame = ws.receive_text()
        entry = session.receive(frame)
        if isinstance(entry, AssistantMessage) and entry.is_complete:
            return entry


class TestHealthAndRender:
    """Tests for HTTP routes."""

    def test_health(self, client):
        """Test the health check."""
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"ok": True, "reply_mode": "scripted", "connections": 0}

    def test_render_merges_and_reports(self, client):
        """Test one-shot rendering with a bad payload in the middle."""
        response = client.post(
            "/render",
            json={
                "chunks": [
                    {"type": "list", "data": ["a", "b"], "message_id": "r-9"},
                    {"oops": True},
                    {"type": "list", "data": ["a", "b", "c"], "metadata": {"is_list_completed": True}},
                    {"type": "sparkle", "data": "?"},
                    {"type": "button", "data": "Go", "isComplete": True},
                ]
            },
        )

        body = response.json()
        assert response.status_code == 200
        assert body["message_id"] == "r-9"
        assert body["is_complete"] is True
        assert len(body["fragments"]) == 1
        assert body["html"].count("<li>") == 3
        assert [d["index"] for d in body["diagnostics"]] == [1, 3]

    def test_render_rejects_non_list(self, client):
        """Test request validation."""
        assert client.post("/render", json={"chunks": "nope"}).status_code == 422


class TestChatSocket:
    """Tests for the chat websocket."""

    def test_join_and_reply(self, client):
        """Test a full exchange reassembled by a client session."""
        session = ChatSession()
        with client.websocket_connect("/ws/chat") as ws:
            session.on_connect()
            ws.send_text(json.dumps(session.join_payload("Ada")))
            notice = session.receive(ws.receive_text())
            assert notice.text == "Ada has joined the chat"

            ws.send_text(json.dumps(session.submit_user_message("Hello")))
            reply = _read_reply(ws, session)

        replies = [e for e in session.entries if isinstance(e, AssistantMessage)]
        assert replies == [reply]
        assert "Hello Ada!" in reply.html
        assert reply.html.count("<li>") == 3
        assert reply.html.count("<td>Analyze</td>") == 1
        assert 'href="/learn"' in reply.html

    def test_chunks_share_one_message_id(self, client):
        """Test that every chunk of one reply carries the same id."""
        with client.websocket_connect("/ws/chat") as ws:
            ws.send_text(json.dumps({"type": "user.message", "text": "hi"}))
            chunks = []
            while True:
                event = json.loads(ws.receive_text())
                assert event["event"] == "message_chunk"
                chunks.append(event["chunk"])
                if event["chunk"]["is_complete"]:
                    break

        assert len({c["message_id"] for c in chunks}) == 1
        assert sum(c["is_complete"] for c in chunks) == 1

    def test_two_replies_are_distinct_messages(self, client):
        """Test back-to-back replies on one connection."""
        session = ChatSession()
        with client.websocket_connect("/ws/chat") as ws:
            ws.send_text(json.dumps(session.submit_user_message("one")))
            first = _read_reply(ws, session)
            ws.send_text(json.dumps(session.submit_user_message("two")))
            second = _read_reply(ws, session)

        assert first.message_id != second.message_id
        assert len([e for e in session.entries if isinstance(e, AssistantMessage)]) == 2

    def test_legacy_message_shape(self, client):
        """Test the bare {"message": ...} submission."""
        session = ChatSession()
        with client.websocket_connect("/ws/chat") as ws:
            ws.send_text(json.dumps({"message": {"text": "hi", "sender": "Bo"}}))
            reply = _read_reply(ws, session)

        assert "Hello Bo!" in reply.html

    def test_errors_keep_connection_open(self, client):
        """Test error events for bad input, followed by a normal reply."""
        session = ChatSession()
        with client.websocket_connect("/ws/chat") as ws:
            ws.send_text("not json")
            assert json.loads(ws.receive_text())["event"] == "error"

            ws.send_text(json.dumps({"type": "dance", "request_id": 7}))
            error = json.loads(ws.receive_text())
            assert error == {"event": "error", "request_id": 7, "detail": "Unsupported message type."}

            ws.send_text(json.dumps({"type": "user.message", "text": "   "}))
            assert json.loads(ws.receive_text())["detail"] == "Message text is required."

            ws.send_text(json.dumps({"type": "user.join", "name": ""}))
            assert json.loads(ws.receive_text())["detail"] == "Name is required."

            ws.send_text(json.dumps({"type": "user.message", "text": "still there?"}))
            assert _read_reply(ws, session).is_complete

    def test_generator_failure_reports_error(self, app, client):
        """Test that a failing generator yields an error event, not a dropped socket."""

        class _Broken:
            async def generate(self, text, *, message_id, sender=None):
                raise ConnectionError("model offline")
                yield  # pragma: no cover

        app.state.reply_generator = _Broken()
        with client.websocket_connect("/ws/chat") as ws:
            ws.send_text(json.dumps({"type": "user.message", "text": "hi"}))
            error = json.loads(ws.receive_text())

        assert error["event"] == "error"
        assert "model offline" in error["detail"]


class _FakeSocket:
    def __init__(self, fail=False):
        self.sent = []
        self.fail = fail

    async def send_text(self, text):
        if self.fail:
            raise RuntimeError("closed")
        self.sent.append(json.loads(text))


class TestParticipantStore:
    """Tests for ParticipantStore."""

    def test_register_name_and_remove(self):
        """Test the participant lifecycle."""
        store = ParticipantStore()
        participant = store.register(_FakeSocket())

        store.set_name(participant.connection_id, " Ada ")

        assert store.names() == ["Ada"]
        assert store.remove(participant.connection_id).name == "Ada"
        assert len(store) == 0

    def test_broadcast_skips_failed_sockets(self):
        """Test that one dead socket does not stop a broadcast."""
        store = ParticipantStore()
        alive = _FakeSocket()
        store.register(alive)
        store.register(_FakeSocket(fail=True))

        delivered = asyncio.run(store.broadcast(system_notice("Ada has left the chat")))

        assert delivered == 1
        assert alive.sent[0]["text"] == "Ada has left the chat"
        assert alive.sent[0]["event"] == "system_message"

    def test_get_missing_raises(self):
        """Test lookup of an unknown connection."""
        store = ParticipantStore()

        try:
            store.get("missing")
        except KeyError:
            return
        raise AssertionError("expected KeyError")
