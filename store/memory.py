"""基于内存字典的存储实现，适合单进程部署与测试。"""

from __future__ import annotations

import logging
import threading
import uuid
from dataclasses import replace
from typing import Dict, List, Optional, Sequence, Tuple

from .errors import NotFoundError
from .interface import SubscriptionStore, TodoStore
from .models import Client, Subscription, SubscriptionRequest, Todo, User

LOG = logging.getLogger(__name__)


def _new_id() -> str:
    return uuid.uuid4().hex


class InMemoryStore(SubscriptionStore, TodoStore):
    """同时实现订阅存储与领域存储，所有读写都在内部锁内完成。"""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._users: Dict[str, User] = {}
        self._clients: Dict[str, Client] = {}
        self._todos: Dict[str, Todo] = {}
        self._subscriptions: Dict[str, Subscription] = {}
        self._by_token: Dict[Tuple[str, str], str] = {}

    # ------------------------------------------------------------------ users & clients

    def add_user(self, user_id: str | None = None) -> User:
        with self._lock:
            user = User(id=user_id or _new_id())
            self._users.setdefault(user.id, user)
            return self._users[user.id]

    def get_user(self, user_id: str) -> Optional[User]:
        with self._lock:
            return self._users.get(user_id)

    def add_client(self, user_id: str, client_type: str = "websocket", socket_id: str | None = None) -> Client:
        with self._lock:
            if user_id not in self._users:
                raise NotFoundError("user", user_id)
            client = Client(id=_new_id(), user_id=user_id, type=client_type, socket_id=socket_id)
            self._clients[client.id] = client
            return client

    def get_client(self, client_id: str) -> Optional[Client]:
        with self._lock:
            return self._clients.get(client_id)

    def get_clients(self, user_id: str) -> List[Client]:
        with self._lock:
            return [client for client in self._clients.values() if client.user_id == user_id]

    def remove_client(self, client_id: str) -> bool:
        with self._lock:
            return self._clients.pop(client_id, None) is not None

    # ------------------------------------------------------------------ subscriptions

    def get_subscription(self, subscription_id: str) -> Optional[Subscription]:
        with self._lock:
            return self._subscriptions.get(subscription_id)

    def get_client_subscription(self, client_id: str, client_subscription_id: str) -> Optional[Subscription]:
        with self._lock:
            subscription_id = self._by_token.get((client_id, client_subscription_id))
            if subscription_id is None:
                return None
            return self._subscriptions.get(subscription_id)

    def add_subscription(
        self,
        client_id: str,
        client_subscription_id: str,
        topics: Sequence[str],
        request: SubscriptionRequest,
    ) -> Subscription:
        with self._lock:
            key = (client_id, client_subscription_id)
            existing = self._by_token.get(key)
            if existing is not None:
                LOG.debug("订阅令牌 %s 已存在，返回已有记录 %s", key, existing)
                return self._subscriptions[existing]
            subscription = Subscription(
                id=_new_id(),
                client_id=client_id,
                client_subscription_id=client_subscription_id,
                topics=tuple(topics),
                request=request,
            )
            self._subscriptions[subscription.id] = subscription
            self._by_token[key] = subscription.id
            return subscription

    def delete_subscription(self, subscription_id: str) -> bool:
        with self._lock:
            subscription = self._subscriptions.pop(subscription_id, None)
            if subscription is None:
                return False
            self._by_token.pop((subscription.client_id, subscription.client_subscription_id), None)
            return True

    def get_subscriptions(self, client_id: str) -> List[Subscription]:
        with self._lock:
            return [sub for sub in self._subscriptions.values() if sub.client_id == client_id]

    def all_subscriptions(self) -> List[Subscription]:
        with self._lock:
            return list(self._subscriptions.values())

    # ------------------------------------------------------------------ todos

    def get_todo(self, todo_id: str) -> Optional[Todo]:
        with self._lock:
            return self._todos.get(todo_id)

    def get_todos(self, user_id: str) -> List[Todo]:
        with self._lock:
            return [todo for todo in self._todos.values() if todo.user_id == user_id]

    def add_todo(self, user_id: str, text: str) -> Todo:
        with self._lock:
            todo = Todo(id=_new_id(), user_id=user_id, text=text)
            self._todos[todo.id] = todo
            return todo

    def delete_todo(self, todo_id: str) -> bool:
        with self._lock:
            return self._todos.pop(todo_id, None) is not None

    def change_todo_status(self, todo_id: str, completed: bool) -> Todo:
        with self._lock:
            todo = self._todos.get(todo_id)
            if todo is None:
                raise NotFoundError("todo", todo_id)
            updated = replace(todo, completed=bool(completed))
            self._todos[todo_id] = updated
            return updated
