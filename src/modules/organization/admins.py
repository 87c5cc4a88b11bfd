from uuid import UUID

from src.api.core.exceptions.base import ActionNotAllowedError
from src.api.core.messages import MessageCode
from src.core.base import BaseService
from src.core.context import CallerIdentity
from src.modules.organization.events import (
    OrganizationAdminDeleted,
    OrganizationAdminUpdated,
)
from src.modules.organization.models import AdminList
from src.modules.organization.permissions import Action, ensure_permission


class OrganizationAdminService(BaseService):
    async def find_all(self, organization_id: UUID, caller: CallerIdentity) -> AdminList:
        organization = await self.store.get_organization(organization_id)
        ensure_permission(Action.READ, organization, caller)
        admins = await self.store.populate(organization.admins)
        return AdminList(id=organization.id, admins=admins)

    async def update(
        self, organization_id: UUID, admin_id: UUID, caller: CallerIdentity
    ) -> AdminList:
        """Grant the admin role, adding the user as a member when needed.

        Unlike the bulk member add, granting an existing admin is rejected.
        """
        async with self.store.unit_of_work():
            organization = await self.store.get_organization(
                organization_id, for_update=True
            )
            ensure_permission(Action.UPDATE, organization, caller)
            if organization.is_admin(admin_id):
                raise ActionNotAllowedError(
                    MessageCode.ALREADY_ADMIN,
                    {
                        "organization_id": str(organization_id),
                        "user_id": str(admin_id),
                    },
                )
            await self.store.get_user(admin_id)

            organization = await self.store.update_organization(
                organization_id, updated_by=caller.id, add_admins=[admin_id]
            )
            new_admin = await self.store.update_user(
                admin_id, add_organizations=[organization_id], granted_by=caller.id
            )
            admins = await self.store.populate(organization.admins)

        self.logger.info(
            "Admin added",
            organization_id=str(organization_id),
            admin_id=str(admin_id),
            user_id=str(caller.id),
        )
        self.notifier.emit(
            OrganizationAdminUpdated(
                organization=organization,
                actor=caller,
                updated_admin=new_admin.to_projection(),
            )
        )
        return AdminList(id=organization.id, admins=admins)

    async def remove(
        self, organization_id: UUID, admin_id: UUID, caller: CallerIdentity
    ) -> AdminList:
        """Revoke the admin role; the user stays a member."""
        async with self.store.unit_of_work():
            organization = await self.store.get_organization(
                organization_id, for_update=True
            )
            ensure_permission(Action.DELETE, organization, caller)
            former_admin = await self.store.get_user(admin_id)

            details = {
                "organization_id": str(organization_id),
                "user_id": str(admin_id),
            }
            if not organization.is_admin(admin_id):
                raise ActionNotAllowedError(MessageCode.NOT_AN_ADMIN, details)
            if len(organization.admins) == 1:
                raise ActionNotAllowedError(MessageCode.LAST_ADMIN, details)

            organization = await self.store.update_organization(
                organization_id, updated_by=caller.id, pull_admins=[admin_id]
            )
            admins = await self.store.populate(organization.admins)

        self.logger.info(
            "Admin removed",
            organization_id=str(organization_id),
            admin_id=str(admin_id),
            user_id=str(caller.id),
        )
        self.notifier.emit(
            OrganizationAdminDeleted(
                organization=organization,
                actor=caller,
                deleted_admin=former_admin.to_projection(),
            )
        )
        return AdminList(id=organization.id, admins=admins)
