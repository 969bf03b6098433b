from __future__ import annotations

import jwt
import pytest

from family_chat.domain.events.membership_changed import MembershipChanged
from family_chat.domain.events.message_created import MessageCreated
from family_chat.domain.events.typing_changed import TypingChanged
from family_chat.domain.value_objects.enums import EventKind, MembershipAction
from family_chat.domain.value_objects.ids import ASSISTANT_AUTHOR
from family_chat.infrastructure.http.mappers.message import entity_to_payload, payload_to_entity
from family_chat.infrastructure.http.mappers.user import login_to_identity, subject_from_token
from family_chat.infrastructure.http.schemas.message import MessagePayload
from family_chat.infrastructure.http.schemas.user import LoginPayload
from family_chat.infrastructure.ws.protocol import ServerEvent, WsInbound, decode_event
from tests.conftest import make_message

MESSAGE_DATA = {
    "id": "m1",
    "conversation_id": "c1",
    "sender_id": "u2",
    "body": "hi",
    "created_at": "2024-05-01T12:00:00Z",
}


def test_decode_message_received():
    kind, event = decode_event(WsInbound(type=ServerEvent.MESSAGE_RECEIVED, data=MESSAGE_DATA))

    assert kind == EventKind.MESSAGE_CREATED
    assert isinstance(event, MessageCreated)
    assert event.message.id == "m1"
    assert event.message.author_id == "u2"


def test_decode_typing_events():
    started = decode_event(WsInbound(type="typing", data={"conversation_id": "c1"}))
    stopped = decode_event(WsInbound(type="stop typing", data={"conversation_id": "c1"}))

    assert started == (EventKind.TYPING_STARTED, TypingChanged("c1", True))
    assert stopped == (EventKind.TYPING_STOPPED, TypingChanged("c1", False))


def test_decode_member_events():
    kind, added = decode_event(WsInbound(
        type="family member added", data={"id": "f1", "full_name": "Tom"},
    ))
    _, deleted = decode_event(WsInbound(type="family member deleted", data={"member_id": "f1"}))

    assert kind == EventKind.MEMBERSHIP_CHANGED
    assert isinstance(added, MembershipChanged)
    assert added.member.full_name == "Tom"
    assert deleted.action == MembershipAction.DELETED
    assert deleted.member is None


def test_decode_unknown_event_is_ignored():
    assert decode_event(WsInbound(type="connected", data={})) is None
    assert decode_event(WsInbound(type="something new", data={"x": 1})) is None


@pytest.mark.parametrize("data", [
    {"id": "m1"},
    {**MESSAGE_DATA, "conversation_id": None},
])
def test_decode_malformed_message_raises(data):
    with pytest.raises(ValueError):
        decode_event(WsInbound(type=ServerEvent.MESSAGE_RECEIVED, data=data))


def test_assistant_flag_maps_to_assistant_author():
    message = payload_to_entity(MessagePayload(**{**MESSAGE_DATA, "is_assistant": True}))

    assert message.author_id == ASSISTANT_AUTHOR
    assert message.is_assistant is True


def test_entity_to_payload_is_json_ready():
    payload = entity_to_payload(make_message("m1", display_name="Grandma"))

    assert payload["id"] == "m1"
    assert payload["display_name"] == "Grandma"
    assert isinstance(payload["created_at"], str)


def test_login_without_id_reads_token_subject():
    token = jwt.encode({"sub": "u42"}, "a-signing-key-the-client-never-sees", algorithm="HS256")

    identity = login_to_identity(LoginPayload(token=token, display_name="Bob"))

    assert identity.id == "u42"
    assert subject_from_token("not-a-jwt") is None


def test_login_without_any_id_is_rejected():
    with pytest.raises(ValueError):
        login_to_identity(LoginPayload(token="not-a-jwt"))
