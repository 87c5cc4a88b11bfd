"""Read models for organizations and their members.

Snapshots hold user ids only. Resolved projections (id + email) are produced
by ``MembershipStore.populate`` and are never mixed into a snapshot.
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class OrganizationSnapshot(BaseModel):
    """Read-consistent view of an organization at the time of a store read."""

    model_config = ConfigDict(frozen=True)

    id: UUID
    name: str
    description: str | None = None
    users: list[UUID]
    admins: list[UUID]
    projects: list[str] = []
    created_by: UUID
    updated_by: UUID
    created_at: datetime
    updated_at: datetime

    def is_admin(self, user_id: UUID) -> bool:
        return user_id in self.admins

    def is_member(self, user_id: UUID) -> bool:
        return user_id in self.users


class UserProjection(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: UUID
    email: str


class UserRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: UUID
    email: str
    organizations: list[UUID] = []

    def to_projection(self) -> UserProjection:
        return UserProjection(id=self.id, email=self.email)


class AdminList(BaseModel):
    id: UUID
    admins: list[UserProjection]


class UserList(BaseModel):
    id: UUID
    users: list[UserProjection]
