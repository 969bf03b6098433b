from __future__ import annotations

from typing import Any, Callable

from family_chat.application.exceptions import AppError
from family_chat.application.listeners import Listeners, Subscription
from family_chat.application.ports.realtime import RealtimeBus
from family_chat.application.repositories.family import FamilyRepository
from family_chat.domain.entities.family_member import FamilyMember
from family_chat.domain.events.membership_changed import MembershipChanged
from family_chat.domain.value_objects.enums import EventKind, MembershipAction
from family_chat.domain.value_objects.ids import IdentityId
from family_chat.services.errors import describe_failure
from family_chat.services.session import SessionStore

RosterListener = Callable[[tuple[FamilyMember, ...]], None]


class FamilyRoster:
    """Family member list kept current from REST plus membership events."""

    def __init__(
        self,
        repository: FamilyRepository,
        bus: RealtimeBus,
        session: SessionStore | None = None,
    ) -> None:
        self._repository = repository
        self._bus = bus
        self._session = session
        self._members: list[FamilyMember] = []
        self._listeners: Listeners[RosterListener] = Listeners()
        self._subscription: Subscription | None = None
        self.error: str | None = None

    @property
    def members(self) -> tuple[FamilyMember, ...]:
        return tuple(self._members)

    def subscribe(self, listener: RosterListener) -> Subscription:
        return self._listeners.add(listener)

    async def mount(self) -> None:
        if self._subscription is None:
            self._subscription = self._bus.on(EventKind.MEMBERSHIP_CHANGED, self.apply)
        try:
            members = await self._repository.list_members()
        except AppError as exc:
            self.error = describe_failure(exc, "Failed to load family members", self._session)
            return
        self.error = None
        self._replace(members)

    def unmount(self) -> None:
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None
        self._listeners.clear()

    def apply(self, event: MembershipChanged) -> None:
        if event.action == MembershipAction.ADDED:
            if event.member is None or any(m.id == event.member_id for m in self._members):
                return
            self._replace([*self._members, event.member])
        elif event.action == MembershipAction.DELETED:
            remaining = [m for m in self._members if m.id != event.member_id]
            if len(remaining) != len(self._members):
                self._replace(remaining)

    async def add_member(self, data: dict[str, Any]) -> FamilyMember | None:
        try:
            member = await self._repository.add_member(data)
        except AppError as exc:
            self.error = describe_failure(exc, "Failed to add family member", self._session)
            return None
        self.apply(MembershipChanged(MembershipAction.ADDED, member.id, member))
        return member

    async def delete_member(self, member_id: str) -> bool:
        try:
            await self._repository.delete_member(member_id)
        except AppError as exc:
            self.error = describe_failure(exc, "Failed to delete family member", self._session)
            return False
        self.apply(MembershipChanged(MembershipAction.DELETED, IdentityId(member_id)))
        return True

    def _replace(self, members: list[FamilyMember]) -> None:
        self._members = members
        self._listeners.notify(self.members)
