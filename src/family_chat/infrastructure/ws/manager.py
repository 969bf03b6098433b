"""Realtime connection manager: one authenticated transport plus a typed event bus."""
from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from typing import Any

from family_chat.application.dto.identity import Identity
from family_chat.application.listeners import Listeners, Subscription
from family_chat.application.ports.realtime import EventHandler
from family_chat.application.ports.transport import (
    RealtimeTransport,
    TransportClosedError,
    TransportFactory,
)
from family_chat.domain.entities.message import ConfirmedMessage
from family_chat.domain.events.connection_changed import ConnectionChanged
from family_chat.domain.value_objects.enums import ConnectionState, EventKind
from family_chat.infrastructure.http.mappers.message import entity_to_payload
from family_chat.infrastructure.ws.protocol import (
    ClientEvent,
    WsInbound,
    WsOutbound,
    decode_event,
)
from family_chat.infrastructure.ws.transport import open_websocket

logger = logging.getLogger(__name__)


class RealtimeConnectionManager:
    """Owns at most one live connection per process.

    Failures never raise to callers: they land in ``DISCONNECTED`` and are
    observable through :attr:`state` and the ``disconnected`` event. Rooms are
    not re-joined after a reconnect; subscribers react to ``connected``.
    """

    def __init__(
        self,
        url: str,
        transport_factory: TransportFactory = open_websocket,
    ) -> None:
        self._url = url
        self._transport_factory = transport_factory
        self._state = ConnectionState.DISCONNECTED
        self._identity: Identity | None = None
        self._transport: RealtimeTransport | None = None
        self._reader: asyncio.Task[None] | None = None
        self._generation = 0
        self._rooms: set[str] = set()
        self._handlers: defaultdict[EventKind, Listeners[EventHandler]] = defaultdict(Listeners)
        self._sends: set[asyncio.Task[None]] = set()

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def is_connected(self) -> bool:
        return self._state == ConnectionState.CONNECTED

    @property
    def identity(self) -> Identity | None:
        return self._identity

    @property
    def rooms(self) -> frozenset[str]:
        return frozenset(self._rooms)

    def on(self, kind: EventKind, handler: EventHandler) -> Subscription:
        return self._handlers[kind].add(handler)

    def off(self, kind: EventKind, handler: EventHandler) -> None:
        self._handlers[kind].discard(handler)

    async def connect(self, identity: Identity) -> None:
        if (
            self._identity is not None
            and self._identity.id == identity.id
            and self._state != ConnectionState.DISCONNECTED
        ):
            return
        if self._identity is not None or self._transport is not None:
            await self.disconnect()

        self._generation += 1
        generation = self._generation
        self._identity = identity
        self._set_state(ConnectionState.CONNECTING)
        logger.info("Connecting realtime transport for %s", identity.id)

        try:
            transport = await self._transport_factory(self._url, identity.token)
        except Exception as exc:
            logger.warning("Realtime connect failed for %s: %r", identity.id, exc)
            if generation == self._generation:
                self._identity = None
                self._set_state(ConnectionState.DISCONNECTED, str(exc))
            return

        if generation != self._generation:
            # disconnect() or another connect() won while the transport was opening
            await _close_quietly(transport)
            return

        self._transport = transport
        self._rooms.clear()
        try:
            await self._send(ClientEvent.SETUP, {
                "id": identity.id,
                "display_name": identity.display_name,
                "avatar_url": identity.avatar_url,
            })
        except TransportClosedError as exc:
            logger.warning("Realtime setup failed for %s: %s", identity.id, exc)
            if generation != self._generation:
                return
            self._transport = None
            self._identity = None
            await _close_quietly(transport)
            self._set_state(ConnectionState.DISCONNECTED, str(exc))
            return
        if generation != self._generation:
            return

        self._reader = asyncio.create_task(
            self._read_loop(transport), name=f"realtime-reader-{identity.id}",
        )
        self._set_state(ConnectionState.CONNECTED)

    async def disconnect(self) -> None:
        self._generation += 1
        transport, self._transport = self._transport, None
        reader, self._reader = self._reader, None
        self._identity = None
        self._rooms.clear()

        if reader is not None and reader is not asyncio.current_task():
            reader.cancel()
            try:
                await reader
            except asyncio.CancelledError:
                pass
        if transport is not None:
            await _close_quietly(transport)
            logger.info("Realtime transport closed")
        self._set_state(ConnectionState.DISCONNECTED, "client disconnect")

    async def join_room(self, conversation_id: str) -> None:
        if not self.is_connected:
            logger.debug("join_room(%s) skipped: not connected", conversation_id)
            return
        try:
            await self._send(ClientEvent.JOIN_ROOM, {"conversation_id": conversation_id})
        except TransportClosedError:
            logger.warning("join_room(%s) failed: transport closed", conversation_id)
            return
        self._rooms.add(conversation_id)

    async def emit(self, event: str, data: dict[str, Any]) -> None:
        """Best-effort client -> server event."""
        if not self.is_connected:
            logger.debug("emit(%s) skipped: not connected", event)
            return
        try:
            await self._send(event, data)
        except TransportClosedError:
            logger.warning("emit(%s) failed: transport closed", event)

    def emit_nowait(self, event: str, data: dict[str, Any]) -> None:
        """Schedule :meth:`emit` from synchronous code such as timer callbacks."""
        if not self.is_connected:
            return
        task = asyncio.get_running_loop().create_task(self.emit(event, data))
        self._sends.add(task)
        task.add_done_callback(self._sends.discard)

    def schedule_disconnect(self) -> None:
        """Disconnect from synchronous code running on the event loop."""
        task = asyncio.get_running_loop().create_task(self.disconnect())
        self._sends.add(task)
        task.add_done_callback(self._sends.discard)

    async def publish_message(self, message: ConfirmedMessage) -> None:
        await self.emit(ClientEvent.NEW_MESSAGE, entity_to_payload(message))

    async def publish_edit(self, message: ConfirmedMessage) -> None:
        await self.emit(ClientEvent.EDIT_MESSAGE, entity_to_payload(message))

    def notify_typing(self, conversation_id: str, typing: bool) -> None:
        event = ClientEvent.TYPING if typing else ClientEvent.STOP_TYPING
        self.emit_nowait(event, {"conversation_id": conversation_id})

    async def _send(self, event: str, data: dict[str, Any]) -> None:
        transport = self._transport
        if transport is None:
            raise TransportClosedError("not connected")
        await transport.send(WsOutbound(type=event, data=data).model_dump_json())

    async def _read_loop(self, transport: RealtimeTransport) -> None:
        reason = "closed by peer"
        try:
            while True:
                raw = await transport.recv()
                self._dispatch(raw)
        except TransportClosedError as exc:
            reason = str(exc) or reason
        except Exception:
            logger.exception("Realtime reader failed")
            reason = "reader error"

        if self._transport is transport:
            logger.info("Realtime connection lost: %s", reason)
            self._generation += 1
            self._transport = None
            self._reader = None
            self._identity = None
            self._rooms.clear()
            await _close_quietly(transport)
            self._set_state(ConnectionState.DISCONNECTED, reason)

    def _dispatch(self, raw: str) -> None:
        try:
            envelope = WsInbound.model_validate_json(raw)
            decoded = decode_event(envelope)
        except ValueError:
            logger.warning("Dropping malformed realtime frame: %.200s", raw)
            return
        if decoded is None:
            logger.debug("Ignoring realtime event %r", envelope.type)
            return
        kind, event = decoded
        self._handlers[kind].notify(event)

    def _set_state(self, state: ConnectionState, reason: str = "") -> None:
        if state == self._state:
            return
        self._state = state
        if state == ConnectionState.CONNECTED:
            self._handlers[EventKind.CONNECTED].notify(ConnectionChanged(state))
        elif state == ConnectionState.DISCONNECTED:
            self._handlers[EventKind.DISCONNECTED].notify(ConnectionChanged(state, reason))


async def _close_quietly(transport: RealtimeTransport) -> None:
    try:
        await transport.close()
    except Exception:
        logger.debug("Error closing realtime transport", exc_info=True)
