"""Organization admin endpoint tests."""

import uuid

import pytest
from httpx import AsyncClient

from src.api.core.messages import MessageCode
from tests.utils.assertions import (
    ResponseHelper,
    assert_not_allowed_error,
    assert_not_found_error,
    assert_permission_error,
    assert_success_response,
    assert_validation_error,
)


@pytest.mark.asyncio
async def test_list_admins(member_client: AsyncClient, test_organization, admin_user):
    response = await member_client.get(f"/v1/organizations/{test_organization.id}/admins")

    data = assert_success_response(
        response,
        data_assertions={
            "id": str(test_organization.id),
            "admins.0.email": admin_user.email,
        },
    )
    assert ResponseHelper.ids(data["admins"]) == [str(admin_user.id)]


@pytest.mark.asyncio
async def test_promote_member(
    admin_client: AsyncClient, test_organization, admin_user, member_user
):
    response = await admin_client.patch(
        f"/v1/organizations/{test_organization.id}/admins",
        json={"admin_id": str(member_user.id)},
    )

    data = assert_success_response(response, MessageCode.ADMIN_ADDED)
    assert ResponseHelper.ids(data["admins"]) == [str(admin_user.id), str(member_user.id)]


@pytest.mark.asyncio
async def test_promote_stranger_adds_membership(
    admin_client: AsyncClient, test_organization, stranger_user
):
    response = await admin_client.patch(
        f"/v1/organizations/{test_organization.id}/admins",
        json={"admin_id": str(stranger_user.id)},
    )
    assert_success_response(response, MessageCode.ADMIN_ADDED)

    response = await admin_client.get(f"/v1/organizations/{test_organization.id}/users")
    users = ResponseHelper.get_data(response)["users"]
    assert str(stranger_user.id) in ResponseHelper.ids(users)


@pytest.mark.asyncio
async def test_promote_existing_admin(
    admin_client: AsyncClient, test_organization, admin_user
):
    response = await admin_client.patch(
        f"/v1/organizations/{test_organization.id}/admins",
        json={"admin_id": str(admin_user.id)},
    )
    assert_not_allowed_error(response, MessageCode.ALREADY_ADMIN)


@pytest.mark.asyncio
async def test_promote_unknown_user(admin_client: AsyncClient, test_organization):
    response = await admin_client.patch(
        f"/v1/organizations/{test_organization.id}/admins",
        json={"admin_id": str(uuid.uuid4())},
    )
    assert_not_found_error(response, "user")


@pytest.mark.asyncio
async def test_promote_with_invalid_payload(admin_client: AsyncClient, test_organization):
    response = await admin_client.patch(
        f"/v1/organizations/{test_organization.id}/admins",
        json={"admin_id": "nope"},
    )
    assert_validation_error(response, "admin_id")


@pytest.mark.asyncio
async def test_promote_as_member(
    member_client: AsyncClient, test_organization, member_user
):
    response = await member_client.patch(
        f"/v1/organizations/{test_organization.id}/admins",
        json={"admin_id": str(member_user.id)},
    )
    assert_permission_error(response)


@pytest.mark.asyncio
async def test_remove_last_admin(admin_client: AsyncClient, test_organization, admin_user):
    response = await admin_client.delete(
        f"/v1/organizations/{test_organization.id}/admins/{admin_user.id}"
    )
    assert_not_allowed_error(response, MessageCode.LAST_ADMIN)

    response = await admin_client.get(f"/v1/organizations/{test_organization.id}/admins")
    assert ResponseHelper.ids(ResponseHelper.get_data(response)["admins"]) == [
        str(admin_user.id)
    ]


@pytest.mark.asyncio
async def test_remove_admin_keeps_membership(
    admin_client: AsyncClient, test_organization, admin_user, member_user
):
    url = f"/v1/organizations/{test_organization.id}/admins"
    await admin_client.patch(url, json={"admin_id": str(member_user.id)})

    response = await admin_client.delete(f"{url}/{member_user.id}")

    data = assert_success_response(response, MessageCode.ADMIN_REMOVED)
    assert ResponseHelper.ids(data["admins"]) == [str(admin_user.id)]
    response = await admin_client.get(f"/v1/organizations/{test_organization.id}")
    assert str(member_user.id) in ResponseHelper.get_data(response)["users"]


@pytest.mark.asyncio
async def test_remove_non_admin(admin_client: AsyncClient, test_organization, member_user):
    response = await admin_client.delete(
        f"/v1/organizations/{test_organization.id}/admins/{member_user.id}"
    )
    assert_not_allowed_error(response, MessageCode.NOT_AN_ADMIN)


@pytest.mark.asyncio
async def test_remove_admin_as_member(
    member_client: AsyncClient, test_organization, admin_user
):
    response = await member_client.delete(
        f"/v1/organizations/{test_organization.id}/admins/{admin_user.id}"
    )
    assert_permission_error(response)
