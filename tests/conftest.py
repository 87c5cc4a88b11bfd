"""Global test configuration and fixtures for OrgKeeper API."""

import os

# In-memory SQLite unless a database is provided, e.g. a disposable PostgreSQL
os.environ.setdefault("DATABASE_URL", "sqlite://")

from collections.abc import AsyncGenerator
from typing import Callable
from uuid import UUID

import pytest
import pytest_asyncio
from asgi_lifespan import LifespanManager
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from jose import jwt
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.context import CallerIdentity
from src.database.connection import (
    create_engine_from_settings,
    create_session_factory,
    drop_models,
    init_models,
    session_scope,
)
from src.database.models import OrganizationRole, User
from src.database.store import MembershipStore
from src.main import create_app
from src.modules.organization.admins import OrganizationAdminService
from src.modules.organization.events import EVENT_TYPES, EventNotifier
from src.modules.organization.members import OrganizationUserService
from src.modules.organization.models import OrganizationSnapshot, UserRecord
from src.modules.organization.use_cases import OrganizationService
from src.modules.user.management import UserManagementService
from src.utils.settings.auth import AuthSettings
from src.utils.settings.database import DatabaseSettings

# Import all factories
from tests.factories import (
    OrganizationFactory,
    OrganizationMembershipFactory,
    OrganizationProjectFactory,
    UserFactory,
)

TEST_JWT_SECRET = "test-jwt-secret-key-for-testing-only"
TEST_BASE_URL = "http://test-orgkeeper-api"


@pytest.fixture
def user_factory():
    return UserFactory


@pytest.fixture
def organization_factory():
    return OrganizationFactory


@pytest.fixture
def membership_factory():
    return OrganizationMembershipFactory


@pytest.fixture
def project_factory():
    return OrganizationProjectFactory


# Database
@pytest_asyncio.fixture
async def async_engine():
    """Fresh schema per test."""
    engine = create_engine_from_settings(DatabaseSettings())
    await init_models(engine)
    yield engine
    await drop_models(engine)
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(async_engine) -> AsyncGenerator[AsyncSession, None]:
    async with session_scope(create_session_factory(async_engine)) as session:
        yield session


@pytest.fixture
def store(db_session: AsyncSession) -> MembershipStore:
    return MembershipStore(db_session)


# Events
@pytest.fixture
def notifier() -> EventNotifier:
    return EventNotifier()


@pytest.fixture
def recorded_events(notifier: EventNotifier) -> list:
    """Every event emitted through ``notifier``, in emission order.

    Deliveries are asynchronous: await ``notifier.drain()`` before asserting.
    """
    events: list = []
    for event_type in EVENT_TYPES:
        notifier.subscribe(event_type, events.append)
    return events


# Services
@pytest.fixture
def organization_service(store, notifier) -> OrganizationService:
    return OrganizationService(store, notifier)


@pytest.fixture
def admin_service(store, notifier) -> OrganizationAdminService:
    return OrganizationAdminService(store, notifier)


@pytest.fixture
def user_service(store, notifier) -> OrganizationUserService:
    return OrganizationUserService(store, notifier)


@pytest.fixture
def user_management_service(store, notifier) -> UserManagementService:
    return UserManagementService(store, notifier)


# Test Data Fixtures
@pytest.fixture
def create_user_factory(db_session: AsyncSession, store: MembershipStore, user_factory):
    """Factory for committed users, returned as store records.

    Records stay readable after a rolled-back unit of work, unlike ORM instances.
    """

    async def create_user(email: str | None = None) -> UserRecord:
        kwargs = {"email": email} if email else {}
        user = await user_factory.create_async(db_session, **kwargs)
        await db_session.commit()
        return await store.get_user(user.id)

    return create_user


@pytest.fixture
def create_organization_factory(
    db_session: AsyncSession, store: MembershipStore, organization_factory, membership_factory
):
    """Factory for committed organizations with explicit admins and members."""

    async def create_organization(
        admins: list[UserRecord],
        members: list[UserRecord] | None = None,
        **kwargs,
    ) -> OrganizationSnapshot:
        organization = await organization_factory.create_async(
            db_session, created_by_id=admins[0].id, **kwargs
        )
        for role, users in (
            (OrganizationRole.ADMIN, admins),
            (OrganizationRole.MEMBER, members or []),
        ):
            for user in users:
                await membership_factory.create_async(
                    db_session,
                    user_id=user.id,
                    organization_id=organization.id,
                    role=role.value,
                    granted_by_id=admins[0].id,
                )
        await db_session.commit()
        return await store.get_organization(organization.id)

    return create_organization


@pytest_asyncio.fixture
async def admin_user(create_user_factory) -> UserRecord:
    return await create_user_factory("admin@example.com")


@pytest_asyncio.fixture
async def member_user(create_user_factory) -> UserRecord:
    return await create_user_factory("member@example.com")


@pytest_asyncio.fixture
async def stranger_user(create_user_factory) -> UserRecord:
    return await create_user_factory("stranger@example.com")


@pytest_asyncio.fixture
async def test_organization(
    create_organization_factory, admin_user: UserRecord, member_user: UserRecord
) -> OrganizationSnapshot:
    """Organization with one admin and one plain member."""
    return await create_organization_factory(
        admins=[admin_user], members=[member_user], name="Test Organization"
    )


# Caller identities
@pytest.fixture
def caller_factory() -> Callable[[User | UserRecord], CallerIdentity]:
    def create_caller(user: User | UserRecord) -> CallerIdentity:
        return CallerIdentity(id=user.id, email=user.email)

    return create_caller


@pytest.fixture
def admin_caller(caller_factory, admin_user) -> CallerIdentity:
    return caller_factory(admin_user)


@pytest.fixture
def member_caller(caller_factory, member_user) -> CallerIdentity:
    return caller_factory(member_user)


@pytest.fixture
def stranger_caller(caller_factory, stranger_user) -> CallerIdentity:
    return caller_factory(stranger_user)


# Application
@pytest.fixture
def auth_settings() -> AuthSettings:
    return AuthSettings(JWT_SECRET=TEST_JWT_SECRET)


@pytest_asyncio.fixture
async def app(async_engine, notifier, auth_settings) -> AsyncGenerator[FastAPI, None]:
    """Create FastAPI application sharing the test engine and notifier."""
    application = create_app(
        auth_settings=auth_settings, engine=async_engine, notifier=notifier
    )
    async with LifespanManager(application):
        yield application


# JWT Token Fixtures
@pytest.fixture
def jwt_token_factory() -> Callable[..., str]:
    """Factory for creating JWT tokens the way the identity provider issues them."""

    def create_token(user_id: UUID | str, email: str, **claims) -> str:
        payload = {
            "sub": f"auth0|{user_id}",
            "email": email,
            "permissions": [],
            **claims,
        }
        return jwt.encode(payload, TEST_JWT_SECRET, algorithm="HS256")

    return create_token


# HTTP Client Fixtures
@pytest_asyncio.fixture
async def public_client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Create HTTP client without credentials."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url=TEST_BASE_URL,
    ) as ac:
        yield ac


@pytest.fixture
def client_factory(app: FastAPI, jwt_token_factory):
    """Factory for creating HTTP clients with different user contexts."""

    def create_client_for_user(user: User | UserRecord) -> AsyncClient:
        token = jwt_token_factory(user.id, user.email)
        return AsyncClient(
            transport=ASGITransport(app=app),
            base_url=TEST_BASE_URL,
            headers={"Authorization": f"Bearer {token}"},
        )

    return create_client_for_user


@pytest_asyncio.fixture
async def admin_client(client_factory, admin_user) -> AsyncGenerator[AsyncClient, None]:
    async with client_factory(admin_user) as ac:
        yield ac


@pytest_asyncio.fixture
async def member_client(
    client_factory, member_user
) -> AsyncGenerator[AsyncClient, None]:
    async with client_factory(member_user) as ac:
        yield ac


@pytest_asyncio.fixture
async def stranger_client(
    client_factory, stranger_user
) -> AsyncGenerator[AsyncClient, None]:
    async with client_factory(stranger_user) as ac:
        yield ac
