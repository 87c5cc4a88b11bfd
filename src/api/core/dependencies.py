from typing import Annotated, AsyncGenerator

import structlog
from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.core.constants import AUTH_HEADER, AUTH_SCHEME
from src.api.core.exceptions.base import UnauthenticatedError
from src.api.core.messages import MessageCode
from src.core.context import CallerIdentity
from src.database.connection import session_scope
from src.database.store import MembershipStore
from src.modules.health.service import HealthService
from src.modules.organization.admins import OrganizationAdminService
from src.modules.organization.events import EventNotifier
from src.modules.organization.members import OrganizationUserService
from src.modules.organization.use_cases import OrganizationService
from src.modules.user.auth_handlers import handle_jwt_auth
from src.modules.user.management import UserManagementService
from src.utils.settings.auth import AuthSettings


async def get_db_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """Get database session from app state."""
    async with session_scope(request.app.state.session_factory) as session:
        yield session


def get_event_notifier(request: Request) -> EventNotifier:
    return request.app.state.notifier


def get_auth_settings(request: Request) -> AuthSettings:
    return request.app.state.auth_settings


async def get_membership_store(
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> MembershipStore:
    return MembershipStore(db)


AsyncSessionDep = Annotated[AsyncSession, Depends(get_db_session)]
EventNotifierDep = Annotated[EventNotifier, Depends(get_event_notifier)]
MembershipStoreDep = Annotated[MembershipStore, Depends(get_membership_store)]


async def get_organization_service(
    store: MembershipStoreDep, notifier: EventNotifierDep
) -> OrganizationService:
    """Get organization service bound to the request's store."""
    return OrganizationService(store, notifier)


async def get_organization_admin_service(
    store: MembershipStoreDep, notifier: EventNotifierDep
) -> OrganizationAdminService:
    return OrganizationAdminService(store, notifier)


async def get_organization_user_service(
    store: MembershipStoreDep, notifier: EventNotifierDep
) -> OrganizationUserService:
    return OrganizationUserService(store, notifier)


async def get_user_management_service(
    store: MembershipStoreDep, notifier: EventNotifierDep
) -> UserManagementService:
    return UserManagementService(store, notifier)


async def get_health_service(
    db: AsyncSessionDep, notifier: EventNotifierDep
) -> HealthService:
    return HealthService(db, notifier)


async def get_current_caller(
    request: Request,
    settings: Annotated[AuthSettings, Depends(get_auth_settings)],
) -> CallerIdentity:
    """Resolve the caller from the ``Authorization: Bearer <jwt>`` header."""
    authorization = request.headers.get(AUTH_HEADER, "")
    if not authorization:
        raise UnauthenticatedError(
            details={"description": f"Provide an '{AUTH_HEADER}' header"}
        )

    auth_parts = authorization.split(" ")
    if len(auth_parts) != 2 or auth_parts[0].lower() != AUTH_SCHEME:
        raise UnauthenticatedError(
            MessageCode.INVALID_TOKEN,
            {"description": "Authorization header must be 'Bearer <token>'"},
        )

    caller = handle_jwt_auth(auth_parts[1], settings)
    structlog.contextvars.bind_contextvars(caller_id=str(caller.id))
    return caller


OrganizationServiceDep = Annotated[
    OrganizationService, Depends(get_organization_service)
]
OrganizationAdminServiceDep = Annotated[
    OrganizationAdminService, Depends(get_organization_admin_service)
]
OrganizationUserServiceDep = Annotated[
    OrganizationUserService, Depends(get_organization_user_service)
]
UserManagementServiceDep = Annotated[
    UserManagementService, Depends(get_user_management_service)
]
HealthServiceDep = Annotated[HealthService, Depends(get_health_service)]

CurrentCallerDep = Annotated[CallerIdentity, Depends(get_current_caller)]
