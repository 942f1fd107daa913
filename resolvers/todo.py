"""待办应用的根字段解析器：查询、变更与订阅。"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional

from bus.event_bus import EventBus
from bus.topics import Topics, user_topic
from router.correlator import TriggerContext, belongs_to
from router.registry import SubscriptionRegistry
from store.interface import TodoStore
from store.models import Client, Subscription, Todo, User

from .table import MUTATION, QUERY, SUBSCRIPTION, ResolverError, ResolverTable

LOG = logging.getLogger(__name__)


def todo_to_dict(todo: Optional[Todo]) -> Optional[Dict[str, Any]]:
    if todo is None:
        return None
    return {"id": todo.id, "text": todo.text, "completed": todo.completed}


def subscription_to_dict(subscription: Subscription) -> Dict[str, Any]:
    return {
        "id": subscription.id,
        "clientSubscriptionId": subscription.client_subscription_id,
        "clientId": subscription.client_id,
        "events": list(subscription.events),
    }


class TodoResolvers:
    """待办领域的解析器集合，通过 `build_table()` 登记到查找表。"""

    def __init__(self, store: TodoStore, registry: SubscriptionRegistry, bus: EventBus) -> None:
        self.store = store
        self.registry = registry
        self.bus = bus

    def build_table(self, table: Optional[ResolverTable] = None) -> ResolverTable:
        if table is None:
            table = ResolverTable()
        table.add(QUERY, "viewer", self.viewer)
        table.add(MUTATION, "addTodo", self.add_todo)
        table.add(MUTATION, "deleteTodo", self.delete_todo)
        table.add(MUTATION, "changeTodoStatus", self.change_todo_status)
        table.add(SUBSCRIPTION, "addTodo", self.on_add_todo)
        table.add(SUBSCRIPTION, "deleteTodo", self.on_delete_todo)
        table.add(SUBSCRIPTION, "changeTodoStatus", self.on_change_todo_status)
        table.add(SUBSCRIPTION, "todos", self.on_todos)
        table.add(SUBSCRIPTION, "subscriptions", self.on_subscriptions)
        return table

    # ------------------------------------------------------------------ 序列化

    def client_to_dict(self, client: Client) -> Dict[str, Any]:
        return {
            "id": client.id,
            "type": client.type,
            "socketId": client.socket_id,
            "user": {"id": client.user_id},
            "subscriptions": [subscription_to_dict(sub) for sub in self.registry.list_for_client(client.id)],
        }

    def viewer_to_dict(self, user: User) -> Dict[str, Any]:
        clients = self.store.get_clients(user.id)
        return {
            "id": user.id,
            "todos": [todo_to_dict(todo) for todo in self.store.get_todos(user.id)],
            "clients": [self.client_to_dict(client) for client in clients],
            "subscriptions": [
                subscription_to_dict(sub) for client in clients for sub in self.registry.list_for_client(client.id)
            ],
        }

    # ------------------------------------------------------------------ 查询与变更

    def viewer(self, context: TriggerContext, args: Mapping[str, Any]) -> Dict[str, Any]:
        return self.viewer_to_dict(_require_user(context))

    def add_todo(self, context: TriggerContext, args: Mapping[str, Any]) -> Dict[str, Any]:
        user = _require_user(context)
        todo = self.store.add_todo(user.id, str(args.get("text", "")))
        self.bus.publish(user_topic(user.id, Topics.Todo.ADD), {"todoId": todo.id})
        return todo_to_dict(todo)

    def delete_todo(self, context: TriggerContext, args: Mapping[str, Any]) -> Optional[str]:
        user = _require_user(context)
        todo_id = _require_arg(args, "id")
        if not self.store.delete_todo(todo_id):
            return None
        self.bus.publish(user_topic(user.id, Topics.Todo.REMOVE), {"todoId": todo_id})
        return todo_id

    def change_todo_status(self, context: TriggerContext, args: Mapping[str, Any]) -> Dict[str, Any]:
        user = _require_user(context)
        todo_id = _require_arg(args, "id")
        if "completed" not in args:
            raise ResolverError("缺少参数 completed")
        todo = self.store.change_todo_status(todo_id, bool(args["completed"]))
        self.bus.publish(user_topic(user.id, Topics.Todo.CHANGE_STATUS), {"todoId": todo.id})
        return todo_to_dict(todo)

    # ------------------------------------------------------------------ 订阅

    def _subscribe(self, context: TriggerContext, args: Mapping[str, Any], *actions: str) -> Subscription:
        user = _require_user(context)
        if context.client is None:
            raise ResolverError("订阅需要客户端上下文")
        token = _require_arg(args, "clientSubscriptionId")
        if context.correlation is not None:
            # 事件触发的重放只读取订阅，订阅在途中被删除时不得重新创建
            subscription = self.registry.get_by_client_and_token(context.client.id, token)
            if subscription is None:
                raise ResolverError(f"订阅 {token} 已删除")
            return subscription
        topics = [user_topic(user.id, action) for action in actions]
        return self.registry.get_or_create(context.client.id, token, topics, context.request)

    def _todo_payload(self, subscription: Subscription, event: Any) -> Dict[str, Any]:
        todo = self.store.get_todo(event["todoId"]) if isinstance(event, Mapping) and "todoId" in event else None
        return {
            "clientSubscriptionId": subscription.client_subscription_id,
            "subscription": subscription_to_dict(subscription),
            "todo": todo_to_dict(todo),
        }

    def on_add_todo(self, context: TriggerContext, args: Mapping[str, Any]) -> Dict[str, Any]:
        subscription = self._subscribe(context, args, Topics.Todo.ADD)
        event = belongs_to(context, subscription.client_subscription_id)
        return self._todo_payload(subscription, event)

    def on_change_todo_status(self, context: TriggerContext, args: Mapping[str, Any]) -> Dict[str, Any]:
        subscription = self._subscribe(context, args, Topics.Todo.CHANGE_STATUS)
        event = belongs_to(context, subscription.client_subscription_id)
        return self._todo_payload(subscription, event)

    def on_delete_todo(self, context: TriggerContext, args: Mapping[str, Any]) -> Dict[str, Any]:
        subscription = self._subscribe(context, args, Topics.Todo.REMOVE)
        event = belongs_to(context, subscription.client_subscription_id)
        return {
            "clientSubscriptionId": subscription.client_subscription_id,
            "subscription": subscription_to_dict(subscription),
            "deletedTodoId": event.get("todoId") if isinstance(event, Mapping) else None,
        }

    def on_todos(self, context: TriggerContext, args: Mapping[str, Any]) -> Dict[str, Any]:
        subscription = self._subscribe(
            context, args, Topics.Todo.CHANGE_STATUS, Topics.Todo.ADD, Topics.Todo.REMOVE
        )
        user = _require_user(context)
        return {
            "clientSubscriptionId": subscription.client_subscription_id,
            "subscription": subscription_to_dict(subscription),
            "todos": [todo_to_dict(todo) for todo in self.store.get_todos(user.id)],
        }

    def on_subscriptions(self, context: TriggerContext, args: Mapping[str, Any]) -> Dict[str, Any]:
        self._subscribe(
            context,
            args,
            Topics.Client.ADD,
            Topics.Client.REMOVE,
            Topics.UserSubscription.ADD,
            Topics.UserSubscription.REMOVE,
        )
        return self.viewer_to_dict(_require_user(context))


def _require_user(context: Optional[TriggerContext]) -> User:
    if context is None or context.user is None:
        raise ResolverError("缺少用户上下文")
    return context.user


def _require_arg(args: Mapping[str, Any], name: str) -> str:
    value = args.get(name)
    if value is None or value == "":
        raise ResolverError(f"缺少参数 {name}")
    return str(value)


def build_todo_table(store: TodoStore, registry: SubscriptionRegistry, bus: EventBus) -> ResolverTable:
    """组装待办应用的完整解析器表。"""

    return TodoResolvers(store, registry, bus).build_table()
