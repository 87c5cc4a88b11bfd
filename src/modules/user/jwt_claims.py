from uuid import UUID

from src.core.context import CallerIdentity


def extract_caller_from_jwt(payload: dict, email_claim: str = "email") -> CallerIdentity:
    """Build the caller identity from verified JWT claims.

    The subject may carry an identity-provider prefix (``provider|<id>``);
    only the part after the last ``|`` is the user id. Raises ``ValueError``
    when the subject is not a UUID or the email claim is missing.
    """
    subject = str(payload.get("sub", ""))
    user_id = subject.rsplit("|", 1)[-1]

    email = payload.get(email_claim) or payload.get("email")
    if not email:
        raise ValueError(f"Token has no '{email_claim}' claim")

    permissions = payload.get("permissions")
    if permissions is None:
        scope = payload.get("scope", "")
        permissions = scope.split() if isinstance(scope, str) else scope

    return CallerIdentity(
        id=UUID(user_id),
        email=str(email),
        permissions=tuple(str(permission) for permission in permissions or ()),
    )
