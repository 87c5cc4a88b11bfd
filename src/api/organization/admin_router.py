"""Organization admin management router."""

from uuid import UUID

from fastapi import APIRouter

from src.api.core.dependencies import CurrentCallerDep, OrganizationAdminServiceDep
from src.api.core.messages import APIResponse, MessageCode
from src.api.organization.schemas import AdminAddRequest, OrganizationAdminsResponse

router = APIRouter(
    prefix="/organizations/{organization_id}/admins",
    tags=["organization-admins"],
)


@router.get("", response_model=OrganizationAdminsResponse)
async def list_admins(
    organization_id: UUID,
    admin_service: OrganizationAdminServiceDep,
    caller: CurrentCallerDep,
) -> OrganizationAdminsResponse:
    admins = await admin_service.find_all(organization_id, caller)
    return APIResponse.success(data=admins)


@router.patch("", response_model=OrganizationAdminsResponse)
async def add_admin(
    organization_id: UUID,
    admin_data: AdminAddRequest,
    admin_service: OrganizationAdminServiceDep,
    caller: CurrentCallerDep,
) -> OrganizationAdminsResponse:
    """Grant the admin role to a user (admins only)."""
    admins = await admin_service.update(organization_id, admin_data.admin_id, caller)
    return APIResponse.success(message_code=MessageCode.ADMIN_ADDED, data=admins)


@router.delete("/{user_id}", response_model=OrganizationAdminsResponse)
async def remove_admin(
    organization_id: UUID,
    user_id: UUID,
    admin_service: OrganizationAdminServiceDep,
    caller: CurrentCallerDep,
) -> OrganizationAdminsResponse:
    """Revoke a user's admin role; the last admin cannot be removed."""
    admins = await admin_service.remove(organization_id, user_id, caller)
    return APIResponse.success(message_code=MessageCode.ADMIN_REMOVED, data=admins)
