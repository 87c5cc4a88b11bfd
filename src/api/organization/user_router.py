"""Organization member management router."""

from uuid import UUID

from fastapi import APIRouter, status

from src.api.core.dependencies import CurrentCallerDep, OrganizationUserServiceDep
from src.api.core.messages import APIResponse, MessageCode
from src.api.organization.schemas import (
    MemberCreateRequest,
    MembersAddRequest,
    OrganizationMemberModel,
    OrganizationMemberResponse,
    OrganizationUsersResponse,
)

router = APIRouter(
    prefix="/organizations/{organization_id}/users",
    tags=["organization-users"],
)


@router.get("", response_model=OrganizationUsersResponse)
async def list_users(
    organization_id: UUID,
    user_service: OrganizationUserServiceDep,
    caller: CurrentCallerDep,
) -> OrganizationUsersResponse:
    users = await user_service.find_all(organization_id, caller)
    return APIResponse.success(data=users)


@router.post(
    "",
    response_model=OrganizationMemberResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_user_by_email(
    organization_id: UUID,
    member_data: MemberCreateRequest,
    user_service: OrganizationUserServiceDep,
    caller: CurrentCallerDep,
) -> OrganizationMemberResponse:
    """Add a member by email, creating the user when the email is unknown."""
    user = await user_service.create(organization_id, str(member_data.user_email), caller)
    return APIResponse.success(
        message_code=MessageCode.USER_ADDED_TO_ORGANIZATION,
        data=OrganizationMemberModel.model_validate(user),
    )


@router.patch("", response_model=OrganizationUsersResponse)
async def add_users(
    organization_id: UUID,
    members_data: MembersAddRequest,
    user_service: OrganizationUserServiceDep,
    caller: CurrentCallerDep,
) -> OrganizationUsersResponse:
    """Bulk-add existing users by id; current members are skipped."""
    users = await user_service.update(organization_id, members_data.users, caller)
    return APIResponse.success(
        message_code=MessageCode.USERS_ADDED_TO_ORGANIZATION, data=users
    )


@router.delete("/{user_id}", response_model=OrganizationUsersResponse)
async def remove_user(
    organization_id: UUID,
    user_id: UUID,
    user_service: OrganizationUserServiceDep,
    caller: CurrentCallerDep,
) -> OrganizationUsersResponse:
    users = await user_service.remove(organization_id, user_id, caller)
    return APIResponse.success(
        message_code=MessageCode.USER_REMOVED_FROM_ORGANIZATION, data=users
    )
