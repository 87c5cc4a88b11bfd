"""Centralized message codes and default messages for API responses."""

from enum import Enum
from typing import Generic, TypeVar

from pydantic import BaseModel


class MessageCode(str, Enum):
    """Centralized message codes for API responses."""

    # Success codes
    SUCCESS = "SUCCESS"

    # Authentication & Authorization
    AUTH_REQUIRED = "AUTH_REQUIRED"
    INVALID_TOKEN = "INVALID_TOKEN"
    INSUFFICIENT_PERMISSIONS = "INSUFFICIENT_PERMISSIONS"

    # User management
    USER_REGISTERED = "USER_REGISTERED"
    USER_NOT_FOUND = "USER_NOT_FOUND"
    EMAIL_ALREADY_REGISTERED = "EMAIL_ALREADY_REGISTERED"

    # Organization management
    ORGANIZATION_CREATED = "ORGANIZATION_CREATED"
    ORGANIZATION_UPDATED = "ORGANIZATION_UPDATED"
    ORGANIZATION_DELETED = "ORGANIZATION_DELETED"
    ORGANIZATION_NOT_FOUND = "ORGANIZATION_NOT_FOUND"
    ORGANIZATION_HAS_PROJECTS = "ORGANIZATION_HAS_PROJECTS"

    # Membership management
    ADMIN_ADDED = "ADMIN_ADDED"
    ADMIN_REMOVED = "ADMIN_REMOVED"
    USER_ADDED_TO_ORGANIZATION = "USER_ADDED_TO_ORGANIZATION"
    USERS_ADDED_TO_ORGANIZATION = "USERS_ADDED_TO_ORGANIZATION"
    USER_REMOVED_FROM_ORGANIZATION = "USER_REMOVED_FROM_ORGANIZATION"
    ALREADY_ADMIN = "ALREADY_ADMIN"
    NOT_AN_ADMIN = "NOT_AN_ADMIN"
    LAST_ADMIN = "LAST_ADMIN"
    ALREADY_MEMBER = "ALREADY_MEMBER"
    USER_NOT_MEMBER_OF_ORGANIZATION = "USER_NOT_MEMBER_OF_ORGANIZATION"
    REMOVE_ADMIN_FIRST = "REMOVE_ADMIN_FIRST"

    # Validation errors
    INVALID_INPUT = "INVALID_INPUT"

    # Error kinds
    DOCUMENT_NOT_FOUND = "DOCUMENT_NOT_FOUND"
    ACTION_NOT_ALLOWED = "ACTION_NOT_ALLOWED"
    UNABLE_TO_CREATE = "UNABLE_TO_CREATE"
    UNABLE_TO_UPDATE = "UNABLE_TO_UPDATE"

    # Generic errors
    INTERNAL_ERROR = "INTERNAL_ERROR"
    BAD_REQUEST = "BAD_REQUEST"
    NOT_FOUND = "NOT_FOUND"


# Default messages for each message code
DEFAULT_MESSAGES = {
    # Success messages
    MessageCode.SUCCESS: "Operation completed successfully",
    # Authentication & Authorization
    MessageCode.AUTH_REQUIRED: "Authentication required",
    MessageCode.INVALID_TOKEN: "Invalid authentication token",
    MessageCode.INSUFFICIENT_PERMISSIONS: "You have insufficient permissions to access this resource",
    # User management
    MessageCode.USER_REGISTERED: "User registered successfully",
    MessageCode.USER_NOT_FOUND: "User not found",
    MessageCode.EMAIL_ALREADY_REGISTERED: "This email address is registered to another user",
    # Organization management
    MessageCode.ORGANIZATION_CREATED: "Organization created successfully",
    MessageCode.ORGANIZATION_UPDATED: "Organization updated successfully",
    MessageCode.ORGANIZATION_DELETED: "Organization deleted successfully",
    MessageCode.ORGANIZATION_NOT_FOUND: "Organization not found",
    MessageCode.ORGANIZATION_HAS_PROJECTS: "Unable to delete an organization that still has active projects",
    # Membership management
    MessageCode.ADMIN_ADDED: "Admin added to organization successfully",
    MessageCode.ADMIN_REMOVED: "Admin removed from organization successfully",
    MessageCode.USER_ADDED_TO_ORGANIZATION: "User added to organization successfully",
    MessageCode.USERS_ADDED_TO_ORGANIZATION: "Users added to organization successfully",
    MessageCode.USER_REMOVED_FROM_ORGANIZATION: "User removed from organization successfully",
    MessageCode.ALREADY_ADMIN: "User is already an admin of this organization",
    MessageCode.NOT_AN_ADMIN: "User is not an admin of this organization",
    MessageCode.LAST_ADMIN: "You can't remove the last admin from an organization. Did you want to delete the organization instead?",
    MessageCode.ALREADY_MEMBER: "User is already a member of this organization",
    MessageCode.USER_NOT_MEMBER_OF_ORGANIZATION: "User is not a member of this organization",
    MessageCode.REMOVE_ADMIN_FIRST: "You cannot remove a user that is also an admin of an organization. Please remove them as an admin first.",
    # Validation errors
    MessageCode.INVALID_INPUT: "Invalid input provided",
    # Error kinds
    MessageCode.DOCUMENT_NOT_FOUND: "Document not found",
    MessageCode.ACTION_NOT_ALLOWED: "This action is restricted and not allowed",
    MessageCode.UNABLE_TO_CREATE: "Unable to create resource",
    MessageCode.UNABLE_TO_UPDATE: "Unable to update resource",
    # Generic errors
    MessageCode.INTERNAL_ERROR: "Internal server error",
    MessageCode.BAD_REQUEST: "Bad request",
    MessageCode.NOT_FOUND: "Resource not found",
}

T = TypeVar("T")


class APIResponse(BaseModel, Generic[T]):
    """Base API response model with consistent structure and proper typing."""

    message_code: MessageCode
    message: str
    data: T | None = None

    @classmethod
    def success(
        cls,
        message_code: MessageCode = MessageCode.SUCCESS,
        message: str | None = None,
        data: T | None = None,
    ) -> "APIResponse[T]":
        """Create a success response."""
        return cls(
            message_code=message_code,
            message=message or DEFAULT_MESSAGES.get(message_code, "Success"),
            data=data,
        )


def get_default_message(message_code: MessageCode) -> str:
    """Get default message for a message code."""
    return DEFAULT_MESSAGES.get(message_code, "Operation completed")
