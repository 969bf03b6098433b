from __future__ import annotations

from enum import StrEnum


class ConversationKind(StrEnum):
    GROUP = "group"
    ASSISTANT = "assistant"


class MessageOrigin(StrEnum):
    LOCAL_PENDING = "local-pending"
    SERVER_CONFIRMED = "server-confirmed"


class ConnectionState(StrEnum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


class EventKind(StrEnum):
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"
    MESSAGE_CREATED = "message-created"
    MESSAGE_EDITED = "message-edited"
    TYPING_STARTED = "typing-started"
    TYPING_STOPPED = "typing-stopped"
    MEMBERSHIP_CHANGED = "membership-changed"


class TypingState(StrEnum):
    IDLE = "idle"
    TYPING = "typing"


class MembershipAction(StrEnum):
    ADDED = "added"
    DELETED = "deleted"
