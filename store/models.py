"""订阅路由涉及的数据记录定义。"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Tuple


@dataclass(frozen=True)
class User:
    """用户记录。"""

    id: str


@dataclass(frozen=True)
class Client:
    """一个逻辑客户端（对应一条物理连接）。"""

    id: str
    user_id: str
    type: str = "websocket"
    socket_id: str | None = None


@dataclass(frozen=True)
class Todo:
    """待办事项记录。"""

    id: str
    user_id: str
    text: str
    completed: bool = False


@dataclass(frozen=True)
class SubscriptionRequest:
    """客户端提交的查询文本与变量，对路由层而言是不透明的。"""

    query: str
    variables: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, payload: Dict[str, Any] | "SubscriptionRequest") -> "SubscriptionRequest":
        if isinstance(payload, SubscriptionRequest):
            return payload
        return cls(query=str(payload.get("query", "")), variables=dict(payload.get("variables") or {}))


@dataclass(frozen=True)
class Subscription:
    """客户端的持久订阅：创建后不再修改。"""

    id: str
    client_id: str
    client_subscription_id: str
    topics: Tuple[str, ...]
    request: SubscriptionRequest

    @property
    def events(self) -> Tuple[str, ...]:
        """`topics` 的别名。"""

        return self.topics
