"""Default event subscribers.

Notification delivery lives elsewhere; these only record that the event
happened.
"""

from src.modules.organization.events import (
    EventNotifier,
    OrganizationAdminDeleted,
    OrganizationAdminUpdated,
    OrganizationCreated,
    OrganizationDeleted,
    OrganizationUpdated,
    OrganizationUserAdded,
    OrganizationUserCreated,
    OrganizationUserDeleted,
)
from src.utils.logger import get_logger

logger = get_logger(__name__)


def _base_fields(event) -> dict:
    return {
        "kind": event.kind.value,
        "organization_id": str(event.organization.id),
        "actor_id": str(event.actor.id),
    }


async def on_organization_created(event: OrganizationCreated) -> None:
    logger.info("Organization created", name=event.organization.name, **_base_fields(event))


async def on_organization_updated(event: OrganizationUpdated) -> None:
    logger.info("Organization updated", **_base_fields(event))


async def on_organization_deleted(event: OrganizationDeleted) -> None:
    logger.info(
        "Organization deleted",
        former_members=len(event.organization.users),
        **_base_fields(event),
    )


async def on_user_created(event: OrganizationUserCreated) -> None:
    logger.info(
        "User created for organization",
        user_id=str(event.created_user.id),
        **_base_fields(event),
    )


async def on_user_added(event: OrganizationUserAdded) -> None:
    logger.info(
        "User added to organization",
        user_id=str(event.added_user.id),
        **_base_fields(event),
    )


async def on_user_deleted(event: OrganizationUserDeleted) -> None:
    logger.info(
        "User removed from organization",
        user_id=str(event.deleted_user.id),
        **_base_fields(event),
    )


async def on_admin_updated(event: OrganizationAdminUpdated) -> None:
    logger.info(
        "Admin added to organization",
        user_id=str(event.updated_admin.id),
        **_base_fields(event),
    )


async def on_admin_deleted(event: OrganizationAdminDeleted) -> None:
    logger.info(
        "Admin removed from organization",
        user_id=str(event.deleted_admin.id),
        **_base_fields(event),
    )


def register_default_subscribers(notifier: EventNotifier) -> None:
    notifier.subscribe(OrganizationCreated, on_organization_created)
    notifier.subscribe(OrganizationUpdated, on_organization_updated)
    notifier.subscribe(OrganizationDeleted, on_organization_deleted)
    notifier.subscribe(OrganizationUserCreated, on_user_created)
    notifier.subscribe(OrganizationUserAdded, on_user_added)
    notifier.subscribe(OrganizationUserDeleted, on_user_deleted)
    notifier.subscribe(OrganizationAdminUpdated, on_admin_updated)
    notifier.subscribe(OrganizationAdminDeleted, on_admin_deleted)
