"""Organization domain router."""

from uuid import UUID

from fastapi import APIRouter, status

from src.api.core.dependencies import CurrentCallerDep, OrganizationServiceDep
from src.api.core.messages import APIResponse, MessageCode
from src.api.organization.schemas import (
    OrganizationCreateRequest,
    OrganizationListResponse,
    OrganizationModel,
    OrganizationResponse,
    OrganizationUpdateRequest,
)

router = APIRouter(
    prefix="/organizations",
    tags=["organizations"],
)


@router.post(
    "",
    response_model=OrganizationResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_organization(
    organization_data: OrganizationCreateRequest,
    org_service: OrganizationServiceDep,
    caller: CurrentCallerDep,
) -> OrganizationResponse:
    """Create an organization with the caller as its first admin."""
    organization = await org_service.create(
        caller,
        name=organization_data.name,
        description=organization_data.description,
    )
    return APIResponse.success(
        message_code=MessageCode.ORGANIZATION_CREATED,
        data=OrganizationModel.model_validate(organization),
    )


@router.get("", response_model=OrganizationListResponse)
async def list_my_organizations(
    org_service: OrganizationServiceDep,
    caller: CurrentCallerDep,
) -> OrganizationListResponse:
    """List the organizations the caller belongs to."""
    organizations = await org_service.find_all(caller)
    return APIResponse.success(
        data=[OrganizationModel.model_validate(org) for org in organizations],
    )


@router.get("/{organization_id}", response_model=OrganizationResponse)
async def get_organization(
    organization_id: UUID,
    org_service: OrganizationServiceDep,
    caller: CurrentCallerDep,
) -> OrganizationResponse:
    organization = await org_service.find_one(organization_id, caller)
    return APIResponse.success(data=OrganizationModel.model_validate(organization))


@router.patch("/{organization_id}", response_model=OrganizationResponse)
async def update_organization(
    organization_id: UUID,
    organization_data: OrganizationUpdateRequest,
    org_service: OrganizationServiceDep,
    caller: CurrentCallerDep,
) -> OrganizationResponse:
    """Update organization name and description (admins only)."""
    organization = await org_service.update(
        organization_id,
        caller,
        name=organization_data.name,
        description=organization_data.description,
    )
    return APIResponse.success(
        message_code=MessageCode.ORGANIZATION_UPDATED,
        data=OrganizationModel.model_validate(organization),
    )


@router.delete("/{organization_id}", response_model=OrganizationResponse)
async def delete_organization(
    organization_id: UUID,
    org_service: OrganizationServiceDep,
    caller: CurrentCallerDep,
) -> OrganizationResponse:
    """Delete an organization without projects; returns its last state."""
    organization = await org_service.remove(organization_id, caller)
    return APIResponse.success(
        message_code=MessageCode.ORGANIZATION_DELETED,
        data=OrganizationModel.model_validate(organization),
    )
