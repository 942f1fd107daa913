"""事件总线与主题定义的对外接口。"""

from __future__ import annotations

from .event_bus import EventBus, Subscription, topic_matches
from .topics import (
    TOPIC_REGISTRY,
    Topics,
    client_result,
    get_module_topics,
    is_reserved,
    register_module_topics,
    subscription_deleted,
    user_topic,
)

__all__ = [
    "EventBus",
    "Subscription",
    "topic_matches",
    "Topics",
    "TOPIC_REGISTRY",
    "client_result",
    "is_reserved",
    "subscription_deleted",
    "user_topic",
    "register_module_topics",
    "get_module_topics",
]
