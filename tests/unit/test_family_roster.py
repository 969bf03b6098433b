from __future__ import annotations

import pytest

from family_chat.application.exceptions import ForbiddenError
from family_chat.domain.entities.family_member import FamilyMember
from family_chat.domain.events.membership_changed import MembershipChanged
from family_chat.domain.value_objects.enums import EventKind, MembershipAction
from family_chat.domain.value_objects.ids import IdentityId
from family_chat.services.family_roster import FamilyRoster
from tests.conftest import FakeBus, FakeFamilyRepository


def _member(member_id: str, name: str) -> FamilyMember:
    return FamilyMember(id=IdentityId(member_id), full_name=name, relation="child")


@pytest.fixture
def repo() -> FakeFamilyRepository:
    return FakeFamilyRepository(members=[_member("f1", "Tom")])


@pytest.fixture
def bus() -> FakeBus:
    return FakeBus()


@pytest.fixture
def roster(repo, bus, session) -> FamilyRoster:
    return FamilyRoster(repo, bus, session)


@pytest.mark.asyncio
async def test_mount_loads_members(roster):
    await roster.mount()

    assert [m.full_name for m in roster.members] == ["Tom"]


@pytest.mark.asyncio
async def test_membership_events_update_list(roster, bus):
    await roster.mount()
    sara = _member("f2", "Sara")

    bus.fire(EventKind.MEMBERSHIP_CHANGED, MembershipChanged(MembershipAction.ADDED, sara.id, sara))
    bus.fire(EventKind.MEMBERSHIP_CHANGED, MembershipChanged(MembershipAction.ADDED, sara.id, sara))
    bus.fire(EventKind.MEMBERSHIP_CHANGED, MembershipChanged(MembershipAction.DELETED, IdentityId("f1")))

    assert [m.id for m in roster.members] == ["f2"]


@pytest.mark.asyncio
async def test_add_member_then_echo_is_not_duplicated(roster, bus):
    await roster.mount()

    member = await roster.add_member({"id": "f3", "full_name": "Ana"})
    bus.fire(EventKind.MEMBERSHIP_CHANGED, MembershipChanged(MembershipAction.ADDED, member.id, member))

    assert [m.id for m in roster.members] == ["f1", "f3"]


@pytest.mark.asyncio
async def test_delete_failure_sets_error(roster, repo):
    await roster.mount()
    repo.fail_with = ForbiddenError("Not allowed")

    assert await roster.delete_member("f1") is False
    assert roster.error == "Failed to delete family member: Not allowed"
    assert len(roster.members) == 1


@pytest.mark.asyncio
async def test_unmount_stops_listening(roster, bus):
    await roster.mount()
    roster.unmount()

    assert bus.handler_count(EventKind.MEMBERSHIP_CHANGED) == 0
