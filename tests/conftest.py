"""Shared test fixtures."""
from __future__ import annotations

import asyncio
import itertools
import json
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Callable

import pytest

from family_chat.application.dto.assistant import AssistantReply
from family_chat.application.dto.identity import Identity
from family_chat.application.dto.profile import Profile
from family_chat.application.exceptions import (
    AppError,
    AuthenticationError,
    NotFoundError,
    ValidationError,
)
from family_chat.application.listeners import Listeners, Subscription
from family_chat.application.ports.transport import TransportClosedError
from family_chat.domain.entities.conversation import Conversation
from family_chat.domain.entities.family_member import FamilyMember
from family_chat.domain.entities.message import ConfirmedMessage
from family_chat.domain.value_objects.enums import ConnectionState, ConversationKind, EventKind
from family_chat.domain.value_objects.ids import (
    ASSISTANT_AUTHOR,
    ConversationId,
    IdentityId,
    MessageId,
)
from family_chat.services.session import SessionStore

BASE_TIME = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def identity() -> Identity:
    return make_identity()


@pytest.fixture
def session(identity: Identity) -> SessionStore:
    return make_session(identity)


@pytest.fixture
def scheduler() -> FakeScheduler:
    return FakeScheduler()


def make_identity(user_id: str = "u1", name: str = "Alice") -> Identity:
    return Identity(id=IdentityId(user_id), display_name=name, token=f"token-{user_id}")


def make_session(identity: Identity | None = None) -> SessionStore:
    store = SessionStore(FakeAuthGateway(), FakeProfileRepository())
    if identity is not None:
        store._set(identity)
    return store


def make_message(
    message_id: str = "m1",
    *,
    conversation_id: str = "c1",
    body: str = "hello",
    author_id: str = "u1",
    edited: bool = False,
    minutes: int = 0,
    display_name: str | None = None,
) -> ConfirmedMessage:
    return ConfirmedMessage(
        id=MessageId(message_id),
        conversation_id=ConversationId(conversation_id),
        author_id=IdentityId(author_id),
        body=body,
        created_at=BASE_TIME + timedelta(minutes=minutes),
        edited=edited,
        display_name=display_name,
    )


def make_assistant_message(message_id: str, *, conversation_id: str = "c1", body: str = "Hello!") -> ConfirmedMessage:
    return make_message(message_id, conversation_id=conversation_id, body=body, author_id=ASSISTANT_AUTHOR)


def make_conversation(
    conversation_id: str = "c1",
    *,
    kind: ConversationKind = ConversationKind.GROUP,
    title: str | None = None,
) -> Conversation:
    return Conversation(id=ConversationId(conversation_id), kind=kind, title=title)


async def settle(rounds: int = 5) -> None:
    """Let scheduled tasks run."""
    for _ in range(rounds):
        await asyncio.sleep(0)


class FixedClock:
    def now(self) -> datetime:
        return BASE_TIME


@dataclass
class FakeTimer:
    when: float
    callback: Callable[[], None]
    cancelled: bool = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeScheduler:
    """Manual clock: timers fire only inside :meth:`advance`."""

    def __init__(self) -> None:
        self.now = 0.0
        self._timers: list[FakeTimer] = []

    def call_later(self, delay: float, callback: Callable[[], None]) -> FakeTimer:
        timer = FakeTimer(self.now + delay, callback)
        self._timers.append(timer)
        return timer

    @property
    def pending(self) -> list[FakeTimer]:
        return [t for t in self._timers if not t.cancelled]

    def advance(self, seconds: float) -> None:
        target = self.now + seconds
        while True:
            due = sorted(
                (t for t in self._timers if not t.cancelled and t.when <= target),
                key=lambda t: t.when,
            )
            if not due:
                break
            timer = due[0]
            self._timers.remove(timer)
            self.now = timer.when
            timer.callback()
        self.now = target


@dataclass
class FakeAuthGateway:
    identities: dict[str, Identity] = field(default_factory=dict)
    registered: list[tuple[str, str, str]] = field(default_factory=list)

    async def login(self, email: str, password: str) -> Identity:
        if email not in self.identities:
            raise AuthenticationError("Invalid email or password")
        return self.identities[email]

    async def register(self, email: str, password: str, confirm_password: str) -> dict[str, Any]:
        self.registered.append((email, password, confirm_password))
        return {"email": email}


@dataclass
class FakeProfileRepository:
    profile: Profile = field(default_factory=lambda: Profile(display_name="Alice Smith", is_profile_complete=True))
    tokens_seen: list[str | None] = field(default_factory=list)

    async def get_profile(self, *, token: str | None = None) -> Profile:
        self.tokens_seen.append(token)
        return self.profile

    async def update_profile(self, data: dict[str, Any]) -> Profile:
        self.profile = Profile(
            display_name=data.get("display_name", self.profile.display_name),
            email=self.profile.email,
            is_profile_complete=True,
        )
        return self.profile


@dataclass
class FakeGroupChatRepository:
    conversation: Conversation = field(default_factory=make_conversation)
    history: dict[str, list[ConfirmedMessage]] = field(default_factory=dict)
    sent: list[tuple[str, str]] = field(default_factory=list)
    fail_with: AppError | None = None
    # when set, fetch/send/update wait on it so tests can interleave events
    gate: asyncio.Event | None = None
    _ids: itertools.count = field(default_factory=lambda: itertools.count(1))

    async def _maybe_wait(self) -> None:
        if self.gate is not None:
            await self.gate.wait()
        if self.fail_with is not None:
            raise self.fail_with

    async def get_group_conversation(self) -> Conversation:
        await self._maybe_wait()
        return self.conversation

    async def fetch_messages(self, conversation_id: str) -> list[ConfirmedMessage]:
        await self._maybe_wait()
        return list(self.history.get(conversation_id, []))

    async def send_message(self, conversation_id: str, body: str) -> ConfirmedMessage:
        await self._maybe_wait()
        self.sent.append((conversation_id, body))
        message = make_message(f"s{next(self._ids)}", conversation_id=conversation_id, body=body)
        self.history.setdefault(conversation_id, []).append(message)
        return message

    async def update_message(self, conversation_id: str, message_id: str, body: str) -> ConfirmedMessage:
        await self._maybe_wait()
        for i, message in enumerate(self.history.get(conversation_id, [])):
            if message.id == message_id:
                updated = make_message(
                    message_id, conversation_id=conversation_id, body=body,
                    author_id=message.author_id, edited=True,
                )
                self.history[conversation_id][i] = updated
                return updated
        raise NotFoundError("Message not found")


@dataclass
class FakeAssistantChatRepository:
    conversations: list[Conversation] = field(default_factory=list)
    history: dict[str, list[ConfirmedMessage]] = field(default_factory=dict)
    replies: list[AssistantReply] = field(default_factory=list)
    sent: list[tuple[str, str, str | None]] = field(default_factory=list)
    fail_with: AppError | None = None
    gate: asyncio.Event | None = None
    # per-conversation history loads that block and/or fail
    fetch_gates: dict[str, asyncio.Event] = field(default_factory=dict)
    fetch_failures: dict[str, AppError] = field(default_factory=dict)
    _ids: itertools.count = field(default_factory=lambda: itertools.count(1))

    async def list_conversations(self) -> list[Conversation]:
        return list(self.conversations)

    async def create_conversation(self) -> Conversation:
        conversation = make_conversation(
            f"ai{next(self._ids)}", kind=ConversationKind.ASSISTANT, title="New Chat",
        )
        self.conversations.insert(0, conversation)
        return conversation

    async def delete_conversation(self, conversation_id: str) -> None:
        self.conversations = [c for c in self.conversations if c.id != conversation_id]

    async def rename_conversation(self, conversation_id: str, title: str) -> Conversation:
        renamed = make_conversation(conversation_id, kind=ConversationKind.ASSISTANT, title=title)
        self.conversations = [renamed if c.id == conversation_id else c for c in self.conversations]
        return renamed

    async def fetch_messages(self, conversation_id: str) -> list[ConfirmedMessage]:
        if conversation_id in self.fetch_gates:
            await self.fetch_gates[conversation_id].wait()
        if conversation_id in self.fetch_failures:
            raise self.fetch_failures[conversation_id]
        return list(self.history.get(conversation_id, []))

    async def update_message(self, conversation_id: str, message_id: str, body: str) -> ConfirmedMessage:
        raise ValidationError("Assistant conversation messages cannot be edited")

    async def send_message(self, conversation_id: str, body: str, sender_name: str | None = None) -> AssistantReply:
        if self.gate is not None:
            await self.gate.wait()
        if self.fail_with is not None:
            raise self.fail_with
        self.sent.append((conversation_id, body, sender_name))
        if self.replies:
            return self.replies.pop(0)
        n = next(self._ids)
        return AssistantReply(
            conversation=make_conversation(conversation_id, kind=ConversationKind.ASSISTANT, title="New Chat"),
            new_messages=[
                make_message(f"a{n}-user", conversation_id=conversation_id, body=body, display_name=sender_name),
                make_assistant_message(f"a{n}-ai", conversation_id=conversation_id),
            ],
        )


class FakeBus:
    """In-memory stand-in for the realtime connection manager."""

    def __init__(self, connected: bool = True) -> None:
        self.state = ConnectionState.CONNECTED if connected else ConnectionState.DISCONNECTED
        self.joined: list[str] = []
        self.published: list[ConfirmedMessage] = []
        self.published_edits: list[ConfirmedMessage] = []
        self.typing: list[tuple[str, bool]] = []
        self._handlers: dict[EventKind, Listeners] = {}

    @property
    def is_connected(self) -> bool:
        return self.state == ConnectionState.CONNECTED

    def handler_count(self, kind: EventKind) -> int:
        return len(self._handlers.get(kind, ()))

    def on(self, kind: EventKind, handler: Callable[[Any], None]) -> Subscription:
        return self._handlers.setdefault(kind, Listeners()).add(handler)

    def off(self, kind: EventKind, handler: Callable[[Any], None]) -> None:
        self._handlers.setdefault(kind, Listeners()).discard(handler)

    def fire(self, kind: EventKind, event: Any) -> None:
        self._handlers.setdefault(kind, Listeners()).notify(event)

    async def join_room(self, conversation_id: str) -> None:
        if self.is_connected:
            self.joined.append(conversation_id)

    async def publish_message(self, message: ConfirmedMessage) -> None:
        self.published.append(message)

    async def publish_edit(self, message: ConfirmedMessage) -> None:
        self.published_edits.append(message)

    def notify_typing(self, conversation_id: str, typing: bool) -> None:
        self.typing.append((conversation_id, typing))


class FakeTransport:
    def __init__(self, url: str = "", token: str = "") -> None:
        self.url = url
        self.token = token
        self.sent: list[dict[str, Any]] = []
        self.closed = False
        self._inbox: asyncio.Queue[str | None] = asyncio.Queue()

    async def send(self, raw: str) -> None:
        if self.closed:
            raise TransportClosedError("closed")
        self.sent.append(json.loads(raw))

    async def recv(self) -> str:
        raw = await self._inbox.get()
        if raw is None:
            raise TransportClosedError("peer closed")
        return raw

    async def close(self) -> None:
        self.closed = True

    def feed(self, event_type: str, data: dict[str, Any]) -> None:
        self._inbox.put_nowait(json.dumps({"type": event_type, "data": data}))

    def feed_raw(self, raw: str) -> None:
        self._inbox.put_nowait(raw)

    def drop(self) -> None:
        self._inbox.put_nowait(None)

    def sent_types(self) -> list[str]:
        return [frame["type"] for frame in self.sent]


class FakeTransportFactory:
    def __init__(self, fail_with: Exception | None = None) -> None:
        self.fail_with = fail_with
        self.opened: list[FakeTransport] = []

    async def __call__(self, url: str, token: str) -> FakeTransport:
        if self.fail_with is not None:
            raise self.fail_with
        transport = FakeTransport(url, token)
        self.opened.append(transport)
        return transport

    @property
    def last(self) -> FakeTransport:
        return self.opened[-1]


@dataclass
class FakeFamilyRepository:
    members: list[FamilyMember] = field(default_factory=list)
    fail_with: AppError | None = None

    async def list_members(self) -> list[FamilyMember]:
        if self.fail_with is not None:
            raise self.fail_with
        return list(self.members)

    async def add_member(self, data: dict[str, Any]) -> FamilyMember:
        if self.fail_with is not None:
            raise self.fail_with
        member = FamilyMember(id=IdentityId(data["id"]), full_name=data["full_name"])
        self.members.append(member)
        return member

    async def delete_member(self, member_id: str) -> None:
        if self.fail_with is not None:
            raise self.fail_with
        self.members = [m for m in self.members if m.id != member_id]
