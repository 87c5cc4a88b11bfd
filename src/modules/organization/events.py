"""Organization domain events and the in-process notifier that delivers them.

Events form a closed set: every variant below carries the organization
snapshot after (or, for deletion, before) the change, the acting caller and
the time it happened. Subscribers register per event class.
"""

import asyncio
import inspect
from collections import defaultdict
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import ClassVar, TypeVar, Union

from src.core.context import CallerIdentity
from src.modules.organization.models import (
    OrganizationSnapshot,
    UserProjection,
    UserRecord,
)
from src.utils.logger import get_logger


class EventKind(str, Enum):
    ORGANIZATION_CREATED = "organization.created"
    ORGANIZATION_UPDATED = "organization.updated"
    ORGANIZATION_DELETED = "organization.deleted"
    USER_CREATED = "organization.user.created"
    USER_ADDED = "organization.user.updated"
    USER_DELETED = "organization.user.deleted"
    ADMIN_UPDATED = "organization.admin.updated"
    ADMIN_DELETED = "organization.admin.deleted"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True, kw_only=True)
class _OrganizationEventBase:
    kind: ClassVar[EventKind]

    organization: OrganizationSnapshot
    actor: CallerIdentity
    occurred_at: datetime = field(default_factory=_utcnow)


@dataclass(frozen=True, kw_only=True)
class OrganizationCreated(_OrganizationEventBase):
    kind: ClassVar[EventKind] = EventKind.ORGANIZATION_CREATED


@dataclass(frozen=True, kw_only=True)
class OrganizationUpdated(_OrganizationEventBase):
    kind: ClassVar[EventKind] = EventKind.ORGANIZATION_UPDATED


@dataclass(frozen=True, kw_only=True)
class OrganizationDeleted(_OrganizationEventBase):
    """Raised after deletion; ``organization`` is the last snapshot before it."""

    kind: ClassVar[EventKind] = EventKind.ORGANIZATION_DELETED


@dataclass(frozen=True, kw_only=True)
class OrganizationUserCreated(_OrganizationEventBase):
    """A user record was created by adding a new email to the organization."""

    kind: ClassVar[EventKind] = EventKind.USER_CREATED

    created_user: UserRecord


@dataclass(frozen=True, kw_only=True)
class OrganizationUserAdded(_OrganizationEventBase):
    kind: ClassVar[EventKind] = EventKind.USER_ADDED

    added_user: UserRecord


@dataclass(frozen=True, kw_only=True)
class OrganizationUserDeleted(_OrganizationEventBase):
    kind: ClassVar[EventKind] = EventKind.USER_DELETED

    deleted_user: UserRecord


@dataclass(frozen=True, kw_only=True)
class OrganizationAdminUpdated(_OrganizationEventBase):
    kind: ClassVar[EventKind] = EventKind.ADMIN_UPDATED

    updated_admin: UserProjection


@dataclass(frozen=True, kw_only=True)
class OrganizationAdminDeleted(_OrganizationEventBase):
    kind: ClassVar[EventKind] = EventKind.ADMIN_DELETED

    deleted_admin: UserProjection


OrganizationEvent = Union[
    OrganizationCreated,
    OrganizationUpdated,
    OrganizationDeleted,
    OrganizationUserCreated,
    OrganizationUserAdded,
    OrganizationUserDeleted,
    OrganizationAdminUpdated,
    OrganizationAdminDeleted,
]

EVENT_TYPES: tuple[type[_OrganizationEventBase], ...] = (
    OrganizationCreated,
    OrganizationUpdated,
    OrganizationDeleted,
    OrganizationUserCreated,
    OrganizationUserAdded,
    OrganizationUserDeleted,
    OrganizationAdminUpdated,
    OrganizationAdminDeleted,
)

E = TypeVar("E", bound=_OrganizationEventBase)
EventHandler = Callable[[E], Awaitable[None] | None]


class EventNotifier:
    """In-memory publish/subscribe for organization events.

    ``emit`` never blocks the caller: each subscriber runs in its own task,
    and a failing subscriber is logged without affecting the others.
    """

    def __init__(self) -> None:
        self._handlers: dict[type, list[EventHandler]] = defaultdict(list)
        self._tasks: set[asyncio.Task] = set()
        self.logger = get_logger(self.__class__.__name__)

    def subscribe(self, event_type: type[E], handler: EventHandler[E]) -> None:
        if event_type not in EVENT_TYPES:
            raise TypeError(f"Unknown organization event type: {event_type!r}")
        self._handlers[event_type].append(handler)

    def unsubscribe(self, event_type: type[E], handler: EventHandler[E]) -> None:
        handlers = self._handlers.get(event_type, [])
        if handler in handlers:
            handlers.remove(handler)

    def emit(self, event: OrganizationEvent) -> None:
        handlers = list(self._handlers.get(type(event), []))
        self.logger.debug(
            "Emitting event",
            kind=event.kind.value,
            organization_id=str(event.organization.id),
            subscribers=len(handlers),
        )
        if not handlers:
            return

        loop = asyncio.get_running_loop()
        for handler in handlers:
            task = loop.create_task(self._deliver(handler, event))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)

    async def drain(self) -> None:
        """Wait until every scheduled delivery has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def _deliver(self, handler: EventHandler, event: OrganizationEvent) -> None:
        try:
            result = handler(event)
            if inspect.isawaitable(result):
                await result
        except Exception:
            self.logger.exception(
                "Event subscriber failed",
                kind=event.kind.value,
                organization_id=str(event.organization.id),
                handler=getattr(handler, "__qualname__", repr(handler)),
            )
