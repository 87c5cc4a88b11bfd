"""Organization API schemas (requests and response envelopes)."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from src.api.core.constants import MAX_BULK_USER_IDS
from src.api.core.messages import APIResponse
from src.modules.organization.models import AdminList, UserList


class OrganizationModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    description: str | None = None
    users: list[UUID]
    admins: list[UUID]
    projects: list[str]
    created_by: UUID
    updated_by: UUID
    created_at: datetime
    updated_at: datetime


class OrganizationMemberModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: str
    organizations: list[UUID]


class OrganizationCreateRequest(BaseModel):
    # Blank names are rejected by the service, not here
    name: str = Field(..., max_length=200)
    description: str | None = Field(None, max_length=2000)


class OrganizationUpdateRequest(BaseModel):
    name: str | None = Field(None, max_length=200)
    description: str | None = Field(None, max_length=2000)


class AdminAddRequest(BaseModel):
    admin_id: UUID


class MemberCreateRequest(BaseModel):
    user_email: EmailStr


class MembersAddRequest(BaseModel):
    users: list[UUID] = Field(..., min_length=1, max_length=MAX_BULK_USER_IDS)


OrganizationResponse = APIResponse[OrganizationModel]
OrganizationListResponse = APIResponse[list[OrganizationModel]]
OrganizationAdminsResponse = APIResponse[AdminList]
OrganizationUsersResponse = APIResponse[UserList]
OrganizationMemberResponse = APIResponse[OrganizationMemberModel]
