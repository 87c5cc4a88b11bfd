"""User self-service operations for the authenticated caller."""

from src.api.core.exceptions.base import ActionNotAllowedError, DocumentNotFoundError
from src.api.core.messages import MessageCode
from src.core.base import BaseService
from src.core.context import CallerIdentity
from src.modules.organization.models import UserRecord


class UserManagementService(BaseService):
    async def register(self, caller: CallerIdentity) -> tuple[UserRecord, bool]:
        """Create the caller's user record from the token identity.

        Returns the record and whether it was created by this call. Calling it
        again for an already registered caller returns the existing record.
        """
        async with self.store.unit_of_work():
            try:
                return await self.store.get_user(caller.id), False
            except DocumentNotFoundError:
                pass

            holder = await self.store.get_user_by_email(caller.email)
            if holder is not None:
                raise ActionNotAllowedError(
                    MessageCode.EMAIL_ALREADY_REGISTERED,
                    {"description": "The token email belongs to another user"},
                )
            user = await self.store.create_user(email=caller.email, user_id=caller.id)

        self.logger.info("User registered", user_id=str(user.id))
        return user, True

    async def get_profile(self, caller: CallerIdentity) -> UserRecord:
        return await self.store.get_user(caller.id)
