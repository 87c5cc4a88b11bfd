"""Test factories for OrgKeeper API models."""

from .base import AsyncSQLAlchemyModelFactory
from .memberships import OrganizationMembershipFactory
from .organizations import OrganizationFactory, OrganizationProjectFactory
from .users import UserFactory

__all__ = [
    "AsyncSQLAlchemyModelFactory",
    "UserFactory",
    "OrganizationFactory",
    "OrganizationProjectFactory",
    "OrganizationMembershipFactory",
]
