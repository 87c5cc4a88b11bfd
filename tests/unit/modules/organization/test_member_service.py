from uuid import uuid4

import pytest

from src.api.core.exceptions.base import (
    ActionNotAllowedError,
    DocumentNotFoundError,
    ForbiddenError,
)
from src.api.core.messages import MessageCode
from src.modules.organization.events import (
    OrganizationUserAdded,
    OrganizationUserCreated,
    OrganizationUserDeleted,
)


@pytest.mark.asyncio
async def test_find_all_resolves_member_projections(
    user_service, test_organization, admin_user, member_user, admin_caller
):
    users = await user_service.find_all(test_organization.id, admin_caller)

    assert users.id == test_organization.id
    assert [user.email for user in users.users] == [admin_user.email, member_user.email]


@pytest.mark.asyncio
async def test_create_with_unknown_email_creates_user(
    user_service, store, notifier, recorded_events, test_organization, admin_caller
):
    user = await user_service.create(
        test_organization.id, "newcomer@example.com", admin_caller
    )

    assert user.email == "newcomer@example.com"
    assert user.organizations == [test_organization.id]
    organization = await store.get_organization(test_organization.id)
    assert user.id in organization.users
    assert user.id not in organization.admins

    await notifier.drain()
    assert len(recorded_events) == 1
    event = recorded_events[0]
    assert isinstance(event, OrganizationUserCreated)
    assert event.created_user == user


@pytest.mark.asyncio
async def test_create_with_existing_user_adds_membership(
    user_service, store, notifier, recorded_events, test_organization,
    admin_caller, stranger_user,
):
    user = await user_service.create(test_organization.id, stranger_user.email, admin_caller)

    assert user.id == stranger_user.id
    assert test_organization.id in user.organizations
    organization = await store.get_organization(test_organization.id)
    assert stranger_user.id in organization.users

    await notifier.drain()
    assert [type(event) for event in recorded_events] == [OrganizationUserAdded]
    assert recorded_events[0].added_user.id == stranger_user.id


@pytest.mark.asyncio
async def test_create_with_email_in_other_case_adds_existing_user(
    user_service, store, notifier, recorded_events, test_organization,
    admin_caller, create_user_factory,
):
    existing = await create_user_factory(email="Alice@Example.COM")

    user = await user_service.create(
        test_organization.id, "alice@example.com", admin_caller
    )

    assert user.id == existing.id
    organization = await store.get_organization(test_organization.id)
    assert organization.users.count(existing.id) == 1

    await notifier.drain()
    assert [type(event) for event in recorded_events] == [OrganizationUserAdded]


@pytest.mark.asyncio
async def test_create_for_existing_member_is_not_allowed(
    user_service, notifier, recorded_events, test_organization, admin_caller, member_user
):
    with pytest.raises(ActionNotAllowedError) as exc_info:
        await user_service.create(test_organization.id, member_user.email, admin_caller)

    assert exc_info.value.message_code == MessageCode.ALREADY_MEMBER
    await notifier.drain()
    assert recorded_events == []


@pytest.mark.asyncio
async def test_create_by_member_is_forbidden(
    user_service, store, test_organization, member_caller
):
    with pytest.raises(ForbiddenError):
        await user_service.create(test_organization.id, "someone@example.com", member_caller)

    assert await store.get_user_by_email("someone@example.com") is None


@pytest.mark.asyncio
async def test_bulk_add_adds_each_new_user_once(
    user_service, store, notifier, recorded_events, test_organization,
    admin_caller, member_user, create_user_factory,
):
    first = await create_user_factory()
    second = await create_user_factory()

    users = await user_service.update(
        test_organization.id, [first.id, member_user.id, second.id, first.id], admin_caller
    )

    member_ids = [user.id for user in users.users]
    assert member_ids[:2] == [admin_caller.id, member_user.id]
    assert set(member_ids[2:]) == {first.id, second.id}
    for user in (first, second):
        record = await store.get_user(user.id)
        assert record.organizations == [test_organization.id]

    await notifier.drain()
    assert all(isinstance(event, OrganizationUserAdded) for event in recorded_events)
    assert sorted(str(event.added_user.id) for event in recorded_events) == sorted(
        [str(first.id), str(second.id)]
    )


@pytest.mark.asyncio
async def test_bulk_add_of_existing_members_is_a_no_op(
    user_service, notifier, recorded_events, test_organization, admin_caller, member_user
):
    users = await user_service.update(
        test_organization.id, [member_user.id, admin_caller.id], admin_caller
    )

    assert [user.id for user in users.users] == [admin_caller.id, member_user.id]
    await notifier.drain()
    assert recorded_events == []


@pytest.mark.asyncio
async def test_bulk_add_with_unknown_id_writes_nothing(
    user_service, store, notifier, recorded_events, test_organization,
    admin_caller, stranger_user,
):
    with pytest.raises(DocumentNotFoundError):
        await user_service.update(
            test_organization.id, [stranger_user.id, uuid4()], admin_caller
        )

    organization = await store.get_organization(test_organization.id)
    assert stranger_user.id not in organization.users
    await notifier.drain()
    assert recorded_events == []


@pytest.mark.asyncio
async def test_bulk_add_by_member_is_forbidden(
    user_service, test_organization, member_caller, stranger_user
):
    with pytest.raises(ForbiddenError):
        await user_service.update(test_organization.id, [stranger_user.id], member_caller)


@pytest.mark.asyncio
async def test_remove_member(
    user_service, store, notifier, recorded_events, test_organization,
    admin_caller, member_user,
):
    users = await user_service.remove(test_organization.id, member_user.id, admin_caller)

    assert [user.id for user in users.users] == [admin_caller.id]
    record = await store.get_user(member_user.id)
    assert record.organizations == []

    await notifier.drain()
    assert len(recorded_events) == 1
    event = recorded_events[0]
    assert isinstance(event, OrganizationUserDeleted)
    assert event.deleted_user.id == member_user.id
    assert event.deleted_user.organizations == []


@pytest.mark.asyncio
async def test_remove_admin_as_user_is_not_allowed(
    user_service, store, notifier, recorded_events, test_organization, admin_caller
):
    with pytest.raises(ActionNotAllowedError) as exc_info:
        await user_service.remove(test_organization.id, admin_caller.id, admin_caller)

    assert exc_info.value.message_code == MessageCode.REMOVE_ADMIN_FIRST
    organization = await store.get_organization(test_organization.id)
    assert admin_caller.id in organization.admins
    assert admin_caller.id in organization.users
    await notifier.drain()
    assert recorded_events == []


@pytest.mark.asyncio
async def test_remove_non_member_is_not_allowed(
    user_service, test_organization, admin_caller, stranger_user
):
    with pytest.raises(ActionNotAllowedError) as exc_info:
        await user_service.remove(test_organization.id, stranger_user.id, admin_caller)

    assert exc_info.value.message_code == MessageCode.USER_NOT_MEMBER_OF_ORGANIZATION


@pytest.mark.asyncio
async def test_remove_unknown_user(user_service, test_organization, admin_caller):
    with pytest.raises(DocumentNotFoundError):
        await user_service.remove(test_organization.id, uuid4(), admin_caller)


@pytest.mark.asyncio
async def test_remove_by_member_is_forbidden(
    user_service, test_organization, member_caller, admin_user
):
    with pytest.raises(ForbiddenError):
        await user_service.remove(test_organization.id, admin_user.id, member_caller)
