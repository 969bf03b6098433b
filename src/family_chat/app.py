from __future__ import annotations

import logging

import httpx

from family_chat.application.dto.identity import Identity
from family_chat.application.ports.clock import Clock, Scheduler
from family_chat.application.ports.transport import TransportFactory
from family_chat.config import Settings, settings
from family_chat.infrastructure.http.client import ApiClient, create_http_client
from family_chat.infrastructure.http.repositories.assistant_chat import HttpAssistantChatRepository
from family_chat.infrastructure.http.repositories.auth import HttpAuthGateway
from family_chat.infrastructure.http.repositories.family import HttpFamilyRepository
from family_chat.infrastructure.http.repositories.group_chat import HttpGroupChatRepository
from family_chat.infrastructure.http.repositories.profile import HttpProfileRepository
from family_chat.infrastructure.ws.manager import RealtimeConnectionManager
from family_chat.infrastructure.ws.transport import open_websocket
from family_chat.services.assistant_chat import AssistantChatAdapter
from family_chat.services.family_roster import FamilyRoster
from family_chat.services.group_chat import GroupChatAdapter
from family_chat.services.session import SessionStore

logger = logging.getLogger(__name__)


class FamilyChatClient:
    """Wires the session, the realtime connection and the chat surfaces together.

    One instance per signed-in user interface; nothing here is process-global.
    """

    def __init__(
        self,
        config: Settings,
        http: httpx.AsyncClient,
        transport_factory: TransportFactory,
        *,
        scheduler: Scheduler | None = None,
        clock: Clock | None = None,
    ) -> None:
        self.config = config
        self._scheduler = scheduler
        self._clock = clock
        self.api = ApiClient(http, lambda: self.session.token)
        self.session = SessionStore(HttpAuthGateway(self.api), HttpProfileRepository(self.api))
        self.connection = RealtimeConnectionManager(config.SOCKET_URL, transport_factory)
        self._invalidated = self.session.on_invalidated(self._on_session_invalidated)

    async def login(self, email: str, password: str) -> Identity:
        identity = await self.session.login(email, password)
        await self.connection.connect(identity)
        return identity

    async def reconnect(self) -> None:
        identity = self.session.current
        if identity is not None:
            await self.connection.connect(identity)

    async def logout(self) -> None:
        await self.connection.disconnect()
        self.session.logout()

    def group_chat(self) -> GroupChatAdapter:
        return GroupChatAdapter(
            HttpGroupChatRepository(self.api),
            self.connection,
            self.session,
            scheduler=self._scheduler,
            clock=self._clock,
            typing_timeout=self.config.typing_timeout_seconds,
        )

    def assistant_chat(self) -> AssistantChatAdapter:
        return AssistantChatAdapter(
            HttpAssistantChatRepository(self.api),
            self.session,
            family=HttpFamilyRepository(self.api),
            clock=self._clock,
        )

    def family_roster(self) -> FamilyRoster:
        return FamilyRoster(HttpFamilyRepository(self.api), self.connection, self.session)

    async def aclose(self) -> None:
        self._invalidated.unsubscribe()
        await self.connection.disconnect()
        await self.api.aclose()

    def _on_session_invalidated(self, reason: str) -> None:
        logger.info("Dropping realtime connection after session invalidation")
        # ``invalidate`` is called from inside a running coroutine
        self.connection.schedule_disconnect()


def create_client(
    config: Settings | None = None,
    *,
    http: httpx.AsyncClient | None = None,
    transport_factory: TransportFactory = open_websocket,
) -> FamilyChatClient:
    config = config or settings
    return FamilyChatClient(
        config,
        http or create_http_client(config.API_BASE_URL),
        transport_factory,
    )
