from uuid import UUID

from src.api.core.exceptions.base import (
    ActionNotAllowedError,
    UnableToCreateError,
    UnableToUpdateError,
)
from src.api.core.messages import MessageCode
from src.core.base import BaseService
from src.core.context import CallerIdentity
from src.modules.organization.events import (
    OrganizationCreated,
    OrganizationDeleted,
    OrganizationUpdated,
)
from src.modules.organization.models import OrganizationSnapshot
from src.modules.organization.permissions import Action, ensure_permission


class OrganizationService(BaseService):
    async def create(
        self,
        caller: CallerIdentity,
        name: str,
        description: str | None = None,
    ) -> OrganizationSnapshot:
        if not name or not name.strip():
            raise UnableToCreateError(
                details={"description": "Organization name must not be empty"}
            )
        ensure_permission(Action.CREATE, None, caller)

        async with self.store.unit_of_work():
            # The creator must already have a user record to be seeded as admin
            await self.store.get_user(caller.id)
            organization = await self.store.create_organization(
                name=name.strip(),
                description=description,
                created_by=caller.id,
            )

        self.logger.info(
            "Organization created",
            organization_id=str(organization.id),
            user_id=str(caller.id),
        )
        self.notifier.emit(OrganizationCreated(organization=organization, actor=caller))
        return organization

    async def find_all(self, caller: CallerIdentity) -> list[OrganizationSnapshot]:
        await self.store.get_user(caller.id)
        return await self.store.list_user_organizations(caller.id)

    async def find_one(
        self, organization_id: UUID, caller: CallerIdentity
    ) -> OrganizationSnapshot:
        organization = await self.store.get_organization(organization_id)
        ensure_permission(Action.READ, organization, caller)
        return organization

    async def update(
        self,
        organization_id: UUID,
        caller: CallerIdentity,
        name: str | None = None,
        description: str | None = None,
    ) -> OrganizationSnapshot:
        """Patch name and/or description; ``None`` leaves a field unchanged."""
        async with self.store.unit_of_work():
            organization = await self.store.get_organization(
                organization_id, for_update=True
            )
            ensure_permission(Action.UPDATE, organization, caller)

            fields = {}
            if name is not None:
                if not name.strip():
                    raise UnableToUpdateError(
                        details={"description": "Organization name must not be empty"}
                    )
                fields["name"] = name.strip()
            if description is not None:
                fields["description"] = description

            organization = await self.store.update_organization(
                organization_id, updated_by=caller.id, fields=fields
            )

        self.logger.info(
            "Organization updated",
            organization_id=str(organization_id),
            fields=sorted(fields),
            user_id=str(caller.id),
        )
        self.notifier.emit(OrganizationUpdated(organization=organization, actor=caller))
        return organization

    async def remove(
        self, organization_id: UUID, caller: CallerIdentity
    ) -> OrganizationSnapshot:
        """Delete an organization that no longer owns any project."""
        async with self.store.unit_of_work():
            organization = await self.store.get_organization(
                organization_id, for_update=True
            )
            ensure_permission(Action.DELETE, organization, caller)
            if organization.projects:
                raise ActionNotAllowedError(
                    MessageCode.ORGANIZATION_HAS_PROJECTS,
                    {
                        "organization_id": str(organization_id),
                        "projects": len(organization.projects),
                    },
                )
            deleted = await self.store.delete_organization(organization_id)

        self.logger.info(
            "Organization deleted",
            organization_id=str(organization_id),
            user_id=str(caller.id),
        )
        self.notifier.emit(OrganizationDeleted(organization=deleted, actor=caller))
        return deleted
