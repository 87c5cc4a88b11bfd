"""Authentication context model for the requesting identity."""

from dataclasses import dataclass, field
from uuid import UUID


@dataclass(frozen=True)
class CallerIdentity:
    """Identity of the authenticated caller, trusted as supplied by the token verifier.

    Lives for one request and is never persisted.
    """

    id: UUID
    email: str
    permissions: tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self):
        if not self.id:
            raise ValueError("Caller id is required in authentication context")
