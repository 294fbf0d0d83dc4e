"""Tests for the push channel endpoint."""

from fastapi.testclient import TestClient

from meal_match.api.app import create_app
from meal_match.domain.errors import TransientStoreError
from tests.conftest import FakeEndpoint


def _join(websocket, user_id: str, session_id: str | None) -> None:
    websocket.send_json({"type": "join", "userId": user_id, "sessionId": session_id})


def test_join_is_acknowledged(container) -> None:
    session = container.session_registry.get_or_create("u1", "u2", "cooking")

    with TestClient(create_app(container)) as client:
        with client.websocket_connect("/ws") as socket:
            _join(socket, "u1", session.id)

            assert socket.receive_json() == {
                "type": "joined",
                "userId": "u1",
                "sessionId": session.id,
            }
            assert container.presence_channel.is_online("u1")

    assert container.presence_channel.online_users() == {}


def test_partners_see_presence_swipes_and_matches(container) -> None:
    session = container.session_registry.get_or_create("u1", "u2", "cooking")

    with TestClient(create_app(container)) as client:
        with client.websocket_connect("/ws") as first:
            _join(first, "u1", session.id)
            assert first.receive_json()["type"] == "joined"

            with client.websocket_connect("/ws") as second:
                _join(second, "u2", session.id)
                assert first.receive_json() == {
                    "type": "partner_online",
                    "userId": "u2",
                }
                assert second.receive_json()["type"] == "joined"

                second.send_json({"type": "swipe", "itemId": "pizza", "liked": True})
                assert first.receive_json() == {
                    "type": "partner_swipe",
                    "userId": "u2",
                    "itemId": "pizza",
                    "liked": True,
                }

                first.send_json({"type": "swipe", "itemId": "pizza", "liked": True})
                expected = {
                    "type": "match_found",
                    "sessionId": session.id,
                    "itemId": "pizza",
                    "participantIds": ["u1", "u2"],
                }
                assert first.receive_json() == expected
                assert second.receive_json() == expected
                assert second.receive_json()["type"] == "partner_swipe"

                second.close()
                assert first.receive_json() == {
                    "type": "partner_offline",
                    "userId": "u2",
                }

    assert container.swipe_service.matched_items_for(session.id, "u2") == ["pizza"]


def test_http_match_is_pushed_to_connected_client(container) -> None:
    session = container.session_registry.get_or_create("u1", "u2", "cooking")

    with TestClient(create_app(container)) as client:
        with client.websocket_connect("/ws") as socket:
            _join(socket, "u1", session.id)
            assert socket.receive_json()["type"] == "joined"

            for user_id in ("u1", "u2"):
                client.post(
                    "/swipes",
                    json={
                        "sessionId": session.id,
                        "userId": user_id,
                        "itemId": "pizza",
                        "liked": True,
                    },
                )

            event = socket.receive_json()

    assert event["type"] == "match_found"
    assert event["itemId"] == "pizza"


def test_room_starts_and_matches_over_sockets(container) -> None:
    with TestClient(create_app(container)) as client:
        with client.websocket_connect("/ws") as first:
            _join(first, "user1", "kitchen")
            assert first.receive_json() == {
                "type": "joined",
                "userId": "user1",
                "sessionId": "kitchen",
            }
            first.send_json({"type": "swipe", "itemId": "tacos", "liked": True})
            _join(first, "user1", "kitchen")
            assert first.receive_json()["type"] == "joined"

            with client.websocket_connect("/ws") as second:
                _join(second, "user2", "kitchen")
                assert first.receive_json() == {
                    "type": "partner_online",
                    "userId": "user2",
                }
                assert second.receive_json()["type"] == "joined"

                second.send_json({"type": "swipe", "itemId": "tacos", "liked": True})
                expected = {
                    "type": "match_found",
                    "sessionId": "kitchen",
                    "itemId": "tacos",
                    "participantIds": ["user1", "user2"],
                }
                assert first.receive_json() == expected
                assert second.receive_json() == expected
                assert first.receive_json()["type"] == "partner_swipe"

    assert container.session_registry.get_session("kitchen").is_room
    assert container.session_registry.participants_of("kitchen") == {
        "user1",
        "user2",
    }


def test_mirror_failure_does_not_fail_the_swipe(container, monkeypatch) -> None:
    session = container.session_registry.get_or_create("u1", "u2", "cooking")
    container.swipe_service.submit(session.id, "u1", "pizza", True)
    partner = FakeEndpoint()
    container.presence_channel.register_endpoint("u1", session.id, partner)

    def unavailable(user_id: str) -> bool:
        raise TransientStoreError("presence lookup failed")

    with TestClient(create_app(container)) as client:
        with client.websocket_connect("/ws") as socket:
            _join(socket, "u2", session.id)
            assert socket.receive_json()["type"] == "joined"
            monkeypatch.setattr(container.presence_channel, "is_online", unavailable)

            socket.send_json({"type": "swipe", "itemId": "pizza", "liked": True})
            match_event = socket.receive_json()
            socket.send_json({"type": "dance"})
            next_reply = socket.receive_json()

            assert partner.types() == ["partner_online", "match_found"]

    assert match_event["type"] == "match_found"
    assert next_reply == {"type": "error", "message": "Unknown message type: dance"}
    assert container.swipe_service.matched_items_for(session.id, "u2") == ["pizza"]


def test_bad_messages_get_error_replies(container) -> None:
    session = container.session_registry.get_or_create("u1", "u2", "cooking")

    with TestClient(create_app(container)) as client:
        with client.websocket_connect("/ws") as socket:
            socket.send_text("not json")
            invalid = socket.receive_json()
            socket.send_json(["join"])
            not_object = socket.receive_json()
            socket.send_json({"type": "dance"})
            unknown = socket.receive_json()
            socket.send_json({"type": "swipe", "itemId": "pizza", "liked": True})
            before_join = socket.receive_json()
            socket.send_json({"type": "join"})
            malformed = socket.receive_json()
            _join(socket, "u3", session.id)
            assert socket.receive_json()["type"] == "joined"
            socket.send_json({"type": "swipe", "itemId": "pizza", "liked": True})
            stranger = socket.receive_json()

    replies = [
        invalid,
        not_object,
        unknown,
        before_join,
        malformed,
        stranger,
    ]
    assert all(reply["type"] == "error" for reply in replies)
    assert before_join["message"] == "Join a session before swiping"
    assert "not a participant" in stranger["message"]
