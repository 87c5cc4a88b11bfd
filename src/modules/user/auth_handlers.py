"""Authentication handler for bearer JWTs."""

from jose import JWTError, jwt

from src.api.core.exceptions.base import UnauthenticatedError
from src.api.core.messages import MessageCode
from src.core.context import CallerIdentity
from src.modules.user.jwt_claims import extract_caller_from_jwt
from src.utils.logger import get_logger
from src.utils.settings.auth import AuthSettings

logger = get_logger(__name__)


def handle_jwt_auth(token: str, settings: AuthSettings) -> CallerIdentity:
    options = {
        "verify_aud": settings.JWT_AUDIENCE is not None,
        "verify_iss": settings.JWT_ISSUER is not None,
    }
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
            audience=settings.JWT_AUDIENCE,
            issuer=settings.JWT_ISSUER,
            options=options,
        )
    except JWTError as e:
        logger.warning(f"JWT decoding failed: {e}")
        raise UnauthenticatedError(
            MessageCode.INVALID_TOKEN,
            {"description": "Invalid or expired authentication token"},
        ) from e

    try:
        return extract_caller_from_jwt(payload, settings.JWT_EMAIL_CLAIM)
    except ValueError as e:
        logger.warning(f"JWT claims rejected: {e}")
        raise UnauthenticatedError(
            MessageCode.INVALID_TOKEN,
            {"description": "Token does not identify a user"},
        ) from e
