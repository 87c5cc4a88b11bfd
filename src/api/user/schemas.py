"""User API schemas."""

from uuid import UUID

from pydantic import BaseModel, ConfigDict

from src.api.core.messages import APIResponse


class UserProfileModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: str
    organizations: list[UUID]


UserProfileResponse = APIResponse[UserProfileModel]
