"""存储层对外接口。"""

from .errors import NotFoundError, StoreError
from .interface import SubscriptionStore, TodoStore
from .memory import InMemoryStore
from .models import Client, Subscription, SubscriptionRequest, Todo, User

__all__ = [
    "Client",
    "InMemoryStore",
    "NotFoundError",
    "StoreError",
    "Subscription",
    "SubscriptionRequest",
    "SubscriptionStore",
    "Todo",
    "TodoStore",
    "User",
]
