"""Database models for the OrgKeeper API."""

from .base import Base
from .memberships import OrganizationMembership
from .organizations import Organization, OrganizationProject, OrganizationRole
from .users import User

__all__ = [
    # Base
    "Base",
    # Enums
    "OrganizationRole",
    # Models
    "User",
    "Organization",
    "OrganizationProject",
    "OrganizationMembership",
]
