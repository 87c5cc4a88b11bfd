"""User domain router for caller-specific endpoints."""

from fastapi import APIRouter, Response, status

from src.api.core.dependencies import CurrentCallerDep, UserManagementServiceDep
from src.api.core.messages import APIResponse, MessageCode
from src.api.user.schemas import UserProfileModel, UserProfileResponse

router = APIRouter(prefix="/users", tags=["users"])


@router.post("", response_model=UserProfileResponse)
async def register_current_user(
    response: Response,
    user_service: UserManagementServiceDep,
    caller: CurrentCallerDep,
) -> UserProfileResponse:
    """Create the caller's user record from their token; idempotent."""
    user, created = await user_service.register(caller)
    if created:
        response.status_code = status.HTTP_201_CREATED
    return APIResponse.success(
        message_code=MessageCode.USER_REGISTERED if created else MessageCode.SUCCESS,
        data=UserProfileModel.model_validate(user),
    )


@router.get("/me", response_model=UserProfileResponse)
async def get_current_user(
    user_service: UserManagementServiceDep,
    caller: CurrentCallerDep,
) -> UserProfileResponse:
    """Get the caller's profile and organization ids."""
    user = await user_service.get_profile(caller)
    return APIResponse.success(data=UserProfileModel.model_validate(user))
