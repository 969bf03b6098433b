from __future__ import annotations

import logging
from typing import Any, Callable

from family_chat.application.dto.identity import Identity
from family_chat.application.exceptions import AuthenticationError
from family_chat.application.listeners import Listeners, Subscription
from family_chat.application.repositories.auth import AuthGateway
from family_chat.application.repositories.profile import ProfileRepository

logger = logging.getLogger(__name__)

IdentityListener = Callable[["Identity | None"], None]
InvalidationListener = Callable[[str], None]


class SessionStore:
    """Holds the authenticated identity for one client instance.

    Lifecycle: :meth:`login` creates the identity, a second login replaces it,
    :meth:`logout` or :meth:`invalidate` destroys it. Credential expiry is the
    server's business; a rejected token reaches us as ``AuthenticationError``
    and the caller reports it through :meth:`invalidate`.
    """

    def __init__(self, auth: AuthGateway, profiles: ProfileRepository) -> None:
        self._auth = auth
        self._profiles = profiles
        self._identity: Identity | None = None
        self._change_listeners: Listeners[IdentityListener] = Listeners()
        self._invalidation_listeners: Listeners[InvalidationListener] = Listeners()

    @property
    def current(self) -> Identity | None:
        return self._identity

    @property
    def token(self) -> str | None:
        return self._identity.token if self._identity else None

    def require(self) -> Identity:
        if self._identity is None:
            raise AuthenticationError("Not logged in")
        return self._identity

    def on_change(self, listener: IdentityListener) -> Subscription:
        return self._change_listeners.add(listener)

    def on_invalidated(self, listener: InvalidationListener) -> Subscription:
        return self._invalidation_listeners.add(listener)

    async def login(self, email: str, password: str) -> Identity:
        identity = await self._auth.login(email, password)
        profile = await self._profiles.get_profile(token=identity.token)
        identity = identity.with_profile(profile)
        logger.info("Logged in as %s", identity.id)
        self._set(identity)
        return identity

    async def register(self, email: str, password: str, confirm_password: str) -> dict[str, Any]:
        return await self._auth.register(email, password, confirm_password)

    async def update_profile(self, data: dict[str, Any]) -> Identity:
        self.require()
        profile = await self._profiles.update_profile(data)
        # re-read: a concurrent logout must not be undone by this response
        identity = self.require().with_profile(profile)
        self._set(identity)
        return identity

    def logout(self) -> None:
        if self._identity is not None:
            logger.info("Logged out %s", self._identity.id)
        self._set(None)

    def invalidate(self, reason: str = "") -> None:
        """The server rejected the credential: drop the session and tell listeners."""
        if self._identity is None:
            return
        logger.warning("Session for %s invalidated: %s", self._identity.id, reason or "rejected")
        self._set(None)
        self._invalidation_listeners.notify(reason)

    def _set(self, identity: Identity | None) -> None:
        if identity == self._identity:
            return
        self._identity = identity
        self._change_listeners.notify(identity)
