from collections.abc import Sequence
from uuid import UUID

from src.api.core.exceptions.base import ActionNotAllowedError
from src.api.core.messages import MessageCode
from src.core.base import BaseService
from src.core.context import CallerIdentity
from src.modules.organization.events import (
    OrganizationUserAdded,
    OrganizationUserCreated,
    OrganizationUserDeleted,
)
from src.modules.organization.models import UserList, UserRecord
from src.modules.organization.permissions import Action, ensure_permission


class OrganizationUserService(BaseService):
    async def find_all(self, organization_id: UUID, caller: CallerIdentity) -> UserList:
        organization = await self.store.get_organization(organization_id)
        ensure_permission(Action.READ, organization, caller)
        users = await self.store.populate(organization.users)
        return UserList(id=organization.id, users=users)

    async def create(
        self, organization_id: UUID, email: str, caller: CallerIdentity
    ) -> UserRecord:
        """Add a member by email, creating the user record if none exists yet."""
        async with self.store.unit_of_work():
            organization = await self.store.get_organization(
                organization_id, for_update=True
            )
            ensure_permission(Action.MANAGE, organization, caller)

            existing = await self.store.get_user_by_email(email)
            if existing is not None and organization.is_member(existing.id):
                raise ActionNotAllowedError(
                    MessageCode.ALREADY_MEMBER,
                    {
                        "organization_id": str(organization_id),
                        "user_id": str(existing.id),
                    },
                )

            if existing is None:
                user = await self.store.create_user(
                    email=email,
                    organizations=[organization_id],
                    granted_by=caller.id,
                )
            else:
                user = await self.store.update_user(
                    existing.id,
                    add_organizations=[organization_id],
                    granted_by=caller.id,
                )
            organization = await self.store.update_organization(
                organization_id, updated_by=caller.id, add_users=[user.id]
            )

        self.logger.info(
            "User added to organization",
            organization_id=str(organization_id),
            member_id=str(user.id),
            created=existing is None,
            user_id=str(caller.id),
        )
        if existing is None:
            event = OrganizationUserCreated(
                organization=organization, actor=caller, created_user=user
            )
        else:
            event = OrganizationUserAdded(
                organization=organization, actor=caller, added_user=user
            )
        self.notifier.emit(event)
        return user

    async def update(
        self,
        organization_id: UUID,
        user_ids: Sequence[UUID],
        caller: CallerIdentity,
    ) -> UserList:
        """Bulk-add existing users as members.

        Ids that are already members are skipped without error. If any id does
        not resolve to a user, nothing is written.
        """
        user_ids = list(dict.fromkeys(user_ids))
        async with self.store.unit_of_work():
            organization = await self.store.get_organization(
                organization_id, for_update=True
            )
            ensure_permission(Action.UPDATE, organization, caller)

            targets = await self.store.get_users(user_ids)
            new_ids = [user.id for user in targets if not organization.is_member(user.id)]
            added: list[UserRecord] = []
            if new_ids:
                organization = await self.store.update_organization(
                    organization_id, updated_by=caller.id, add_users=new_ids
                )
                for user_id in new_ids:
                    added.append(
                        await self.store.update_user(
                            user_id,
                            add_organizations=[organization_id],
                            granted_by=caller.id,
                        )
                    )
            users = await self.store.populate(organization.users)

        self.logger.info(
            "Users added to organization",
            organization_id=str(organization_id),
            requested=len(user_ids),
            added=len(added),
            user_id=str(caller.id),
        )
        for user in added:
            self.notifier.emit(
                OrganizationUserAdded(
                    organization=organization, actor=caller, added_user=user
                )
            )
        return UserList(id=organization.id, users=users)

    async def remove(
        self, organization_id: UUID, user_id: UUID, caller: CallerIdentity
    ) -> UserList:
        """Remove a plain member; admins must be demoted first."""
        async with self.store.unit_of_work():
            organization = await self.store.get_organization(
                organization_id, for_update=True
            )
            await self.store.get_user(user_id)
            ensure_permission(Action.DELETE, organization, caller)

            details = {
                "organization_id": str(organization_id),
                "user_id": str(user_id),
            }
            if organization.is_admin(user_id):
                raise ActionNotAllowedError(MessageCode.REMOVE_ADMIN_FIRST, details)
            if not organization.is_member(user_id):
                raise ActionNotAllowedError(
                    MessageCode.USER_NOT_MEMBER_OF_ORGANIZATION, details
                )

            organization = await self.store.update_organization(
                organization_id, updated_by=caller.id, pull_users=[user_id]
            )
            removed = await self.store.update_user(
                user_id, pull_organizations=[organization_id]
            )
            users = await self.store.populate(organization.users)

        self.logger.info(
            "User removed from organization",
            organization_id=str(organization_id),
            member_id=str(user_id),
            user_id=str(caller.id),
        )
        self.notifier.emit(
            OrganizationUserDeleted(
                organization=organization, actor=caller, deleted_user=removed
            )
        )
        return UserList(id=organization.id, users=users)
