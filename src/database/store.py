"""Membership store over organizations, users and the memberships between them.

Every public read returns immutable snapshots; ORM instances never leave this
module. Set operations on memberships are idempotent: adding an id that is
already present and pulling one that is absent are both no-ops.
"""

from collections.abc import Iterable, Mapping, Sequence
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, AsyncGenerator
from uuid import UUID

from sqlalchemy import delete, func, insert, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.core.exceptions.base import (
    DocumentNotFoundError,
    UnableToCreateError,
    UnableToUpdateError,
)
from src.api.core.messages import MessageCode
from src.database.models import (
    Organization,
    OrganizationMembership,
    OrganizationProject,
    OrganizationRole,
    User,
)
from src.modules.organization.models import (
    OrganizationSnapshot,
    UserProjection,
    UserRecord,
)
from src.utils.logger import get_logger

UPDATABLE_ORGANIZATION_FIELDS = frozenset({"name", "description"})


def _unique(ids: Iterable[UUID]) -> list[UUID]:
    return list(dict.fromkeys(ids))


def normalize_email(email: str) -> str:
    """Canonical form used for storing and matching emails."""
    return email.strip().lower()


class MembershipStore:
    """Persistence boundary for organization and user records."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.logger = get_logger(self.__class__.__name__)

    @asynccontextmanager
    async def unit_of_work(self) -> AsyncGenerator["MembershipStore", None]:
        """Commit everything done inside the block, or roll all of it back."""
        try:
            yield self
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

    # Organizations

    async def get_organization(
        self, organization_id: UUID, *, for_update: bool = False
    ) -> OrganizationSnapshot:
        """Load an organization; ``for_update`` locks its row until commit."""
        organization = await self._load_organization(
            organization_id, for_update=for_update
        )
        return await self._organization_snapshot(organization)

    async def create_organization(
        self,
        *,
        name: str,
        description: str | None,
        created_by: UUID,
    ) -> OrganizationSnapshot:
        """Persist a new organization with its creator as sole member and admin."""
        organization = Organization(
            name=name,
            description=description,
            created_by_id=created_by,
            updated_by_id=created_by,
        )
        try:
            self.db.add(organization)
            await self.db.flush()
            await self._add_to_set(
                organization.id,
                [created_by],
                role=OrganizationRole.ADMIN,
                granted_by=created_by,
            )
        except SQLAlchemyError as exc:
            self.logger.warning(
                "Organization write rejected",
                created_by=str(created_by),
                error=type(exc).__name__,
            )
            raise UnableToCreateError(
                details={"description": "The organization could not be persisted"}
            ) from exc
        return await self._organization_snapshot(organization)

    async def update_organization(
        self,
        organization_id: UUID,
        *,
        updated_by: UUID,
        fields: Mapping[str, Any] | None = None,
        add_users: Iterable[UUID] = (),
        add_admins: Iterable[UUID] = (),
        pull_users: Iterable[UUID] = (),
        pull_admins: Iterable[UUID] = (),
    ) -> OrganizationSnapshot:
        """Apply field changes and set operations to one organization.

        ``add_admins`` also adds the ids to ``users``. Pulling a user removes
        the whole membership, admin role included.
        """
        organization = await self._load_organization(organization_id)
        fields = dict(fields or {})
        unknown = set(fields) - UPDATABLE_ORGANIZATION_FIELDS
        if unknown:
            raise UnableToUpdateError(
                details={"description": f"Unknown fields: {sorted(unknown)}"}
            )

        try:
            for key, value in fields.items():
                setattr(organization, key, value)
            organization.updated_by_id = updated_by
            organization.updated_at = datetime.now(timezone.utc)

            await self._add_to_set(
                organization.id,
                add_users,
                role=OrganizationRole.MEMBER,
                granted_by=updated_by,
            )
            await self._add_to_set(
                organization.id,
                add_admins,
                role=OrganizationRole.ADMIN,
                granted_by=updated_by,
            )
            pull_admins = _unique(pull_admins)
            if pull_admins:
                await self.db.execute(
                    update(OrganizationMembership)
                    .where(
                        OrganizationMembership.organization_id == organization.id,
                        OrganizationMembership.user_id.in_(pull_admins),
                        OrganizationMembership.role == OrganizationRole.ADMIN.value,
                    )
                    .values(role=OrganizationRole.MEMBER.value)
                )
            pull_users = _unique(pull_users)
            if pull_users:
                await self.db.execute(
                    delete(OrganizationMembership).where(
                        OrganizationMembership.organization_id == organization.id,
                        OrganizationMembership.user_id.in_(pull_users),
                    )
                )
            await self.db.flush()
        except SQLAlchemyError as exc:
            self.logger.warning(
                "Organization update rejected",
                organization_id=str(organization_id),
                error=type(exc).__name__,
            )
            raise UnableToUpdateError(
                details={"description": "The organization could not be updated"}
            ) from exc
        return await self._organization_snapshot(organization)

    async def delete_organization(self, organization_id: UUID) -> OrganizationSnapshot:
        """Delete an organization and every reference to it; returns the last snapshot."""
        organization = await self._load_organization(organization_id)
        snapshot = await self._organization_snapshot(organization)
        await self.db.execute(
            delete(OrganizationMembership).where(
                OrganizationMembership.organization_id == organization.id
            )
        )
        await self.db.execute(
            delete(OrganizationProject).where(
                OrganizationProject.organization_id == organization.id
            )
        )
        await self.db.delete(organization)
        await self.db.flush()
        return snapshot

    async def list_user_organizations(self, user_id: UUID) -> list[OrganizationSnapshot]:
        stmt = (
            select(Organization)
            .join(
                OrganizationMembership,
                OrganizationMembership.organization_id == Organization.id,
            )
            .where(OrganizationMembership.user_id == user_id)
            .order_by(OrganizationMembership.granted_at)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        return [
            await self._organization_snapshot(organization)
            for organization in result.scalars().all()
        ]

    async def populate(self, user_ids: Sequence[UUID]) -> list[UserProjection]:
        """Resolve user ids to ``{id, email}`` projections, keeping input order."""
        if not user_ids:
            return []
        result = await self.db.execute(
            select(User.id, User.email).where(User.id.in_(_unique(user_ids)))
        )
        by_id = {row.id: UserProjection(id=row.id, email=row.email) for row in result}
        return [by_id[user_id] for user_id in user_ids if user_id in by_id]

    # Users

    async def get_user(self, user_id: UUID) -> UserRecord:
        user = await self.db.get(User, user_id)
        if user is None:
            raise DocumentNotFoundError(
                MessageCode.USER_NOT_FOUND, {"user_id": str(user_id)}
            )
        return await self._user_record(user)

    async def get_users(self, user_ids: Sequence[UUID]) -> list[UserRecord]:
        """Load several users; fails if any of them does not exist."""
        user_ids = _unique(user_ids)
        if not user_ids:
            return []
        result = await self.db.execute(select(User).where(User.id.in_(user_ids)))
        by_id = {user.id: user for user in result.scalars().all()}
        missing = [str(user_id) for user_id in user_ids if user_id not in by_id]
        if missing:
            raise DocumentNotFoundError(
                MessageCode.USER_NOT_FOUND, {"user_ids": missing}
            )
        return [await self._user_record(by_id[user_id]) for user_id in user_ids]

    async def get_user_by_email(self, email: str) -> UserRecord | None:
        result = await self.db.execute(
            select(User).where(func.lower(User.email) == normalize_email(email))
        )
        user = result.scalar_one_or_none()
        if user is None:
            return None
        return await self._user_record(user)

    async def create_user(
        self,
        *,
        email: str,
        user_id: UUID | None = None,
        organizations: Iterable[UUID] = (),
        granted_by: UUID | None = None,
    ) -> UserRecord:
        """Create a user record, optionally seeded with organization memberships."""
        email = normalize_email(email)
        user = User(email=email) if user_id is None else User(id=user_id, email=email)
        try:
            self.db.add(user)
            await self.db.flush()
            for organization_id in _unique(organizations):
                await self._add_to_set(
                    organization_id,
                    [user.id],
                    role=OrganizationRole.MEMBER,
                    granted_by=granted_by,
                )
        except SQLAlchemyError as exc:
            self.logger.warning("User write rejected", error=type(exc).__name__)
            raise UnableToCreateError(
                details={"description": "The user could not be persisted"}
            ) from exc
        return await self._user_record(user)

    async def update_user(
        self,
        user_id: UUID,
        *,
        add_organizations: Iterable[UUID] = (),
        pull_organizations: Iterable[UUID] = (),
        granted_by: UUID | None = None,
    ) -> UserRecord:
        """Add or remove organizations from a user's organization set."""
        user = await self.db.get(User, user_id)
        if user is None:
            raise DocumentNotFoundError(
                MessageCode.USER_NOT_FOUND, {"user_id": str(user_id)}
            )
        try:
            for organization_id in _unique(add_organizations):
                await self._add_to_set(
                    organization_id,
                    [user.id],
                    role=OrganizationRole.MEMBER,
                    granted_by=granted_by,
                )
            pull_organizations = _unique(pull_organizations)
            if pull_organizations:
                await self.db.execute(
                    delete(OrganizationMembership).where(
                        OrganizationMembership.user_id == user.id,
                        OrganizationMembership.organization_id.in_(pull_organizations),
                    )
                )
            user.updated_at = datetime.now(timezone.utc)
            await self.db.flush()
        except SQLAlchemyError as exc:
            self.logger.warning(
                "User update rejected", user_id=str(user_id), error=type(exc).__name__
            )
            raise UnableToUpdateError(
                details={"description": "The user could not be updated"}
            ) from exc
        return await self._user_record(user)

    # Internals

    async def _load_organization(
        self, organization_id: UUID, *, for_update: bool = False
    ) -> Organization:
        stmt = (
            select(Organization)
            .where(Organization.id == organization_id)
            .execution_options(populate_existing=True)
        )
        if for_update:
            stmt = stmt.with_for_update()
        result = await self.db.execute(stmt)
        organization = result.scalar_one_or_none()
        if organization is None:
            raise DocumentNotFoundError(
                MessageCode.ORGANIZATION_NOT_FOUND,
                {"organization_id": str(organization_id)},
            )
        return organization

    async def _add_to_set(
        self,
        organization_id: UUID,
        user_ids: Iterable[UUID],
        *,
        role: OrganizationRole,
        granted_by: UUID | None,
    ) -> None:
        user_ids = _unique(user_ids)
        if not user_ids:
            return
        result = await self.db.execute(
            select(OrganizationMembership.user_id, OrganizationMembership.role).where(
                OrganizationMembership.organization_id == organization_id,
                OrganizationMembership.user_id.in_(user_ids),
            )
        )
        existing = {row.user_id: row.role for row in result}

        if role == OrganizationRole.ADMIN:
            promote = [
                user_id
                for user_id, current in existing.items()
                if current != OrganizationRole.ADMIN
            ]
            if promote:
                await self.db.execute(
                    update(OrganizationMembership)
                    .where(
                        OrganizationMembership.organization_id == organization_id,
                        OrganizationMembership.user_id.in_(promote),
                    )
                    .values(role=OrganizationRole.ADMIN.value)
                )

        new_rows = [
            {
                "user_id": user_id,
                "organization_id": organization_id,
                "role": role.value,
                "granted_by_id": granted_by,
            }
            for user_id in user_ids
            if user_id not in existing
        ]
        if new_rows:
            await self.db.execute(insert(OrganizationMembership), new_rows)

    async def _organization_snapshot(
        self, organization: Organization
    ) -> OrganizationSnapshot:
        members = await self.db.execute(
            select(OrganizationMembership.user_id, OrganizationMembership.role)
            .where(OrganizationMembership.organization_id == organization.id)
            .order_by(OrganizationMembership.granted_at, OrganizationMembership.user_id)
        )
        rows = members.all()
        projects = await self.db.execute(
            select(OrganizationProject.reference)
            .where(OrganizationProject.organization_id == organization.id)
            .order_by(OrganizationProject.reference)
        )
        return OrganizationSnapshot(
            id=organization.id,
            name=organization.name,
            description=organization.description,
            users=[row.user_id for row in rows],
            admins=[row.user_id for row in rows if row.role == OrganizationRole.ADMIN],
            projects=list(projects.scalars().all()),
            created_by=organization.created_by_id,
            updated_by=organization.updated_by_id,
            created_at=organization.created_at,
            updated_at=organization.updated_at,
        )

    async def _user_record(self, user: User) -> UserRecord:
        result = await self.db.execute(
            select(OrganizationMembership.organization_id)
            .where(OrganizationMembership.user_id == user.id)
            .order_by(OrganizationMembership.granted_at)
        )
        return UserRecord(
            id=user.id,
            email=user.email,
            organizations=list(result.scalars().all()),
        )
