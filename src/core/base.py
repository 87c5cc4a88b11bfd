from src.database.store import MembershipStore
from src.modules.organization.events import EventNotifier
from src.utils.logger import get_logger


class BaseService:
    """Base service class with store and notifier dependency injection."""

    def __init__(self, store: MembershipStore, notifier: EventNotifier):
        self.store = store
        self.notifier = notifier
        self.logger = get_logger(self.__class__.__name__)
