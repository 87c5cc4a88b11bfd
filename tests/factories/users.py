"""Factory for User models."""

import factory
from src.database.models import User
from .base import AsyncSQLAlchemyModelFactory, UUIDFactory


class UserFactory(AsyncSQLAlchemyModelFactory[User]):
    """Factory for creating User instances."""

    class Meta:
        model = User

    id = UUIDFactory()
    email = factory.Sequence(lambda n: f"user-{n}@example.com")
