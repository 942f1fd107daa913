"""集中管理事件主题名称及模块级元数据。"""

from __future__ import annotations

from typing import Dict, Mapping

ModuleTopicDetails = Dict[str, str]
ModuleTopicProfile = Dict[str, ModuleTopicDetails]


def _copy_mapping(mapping: Mapping[str, str] | None) -> ModuleTopicDetails:
    return dict(mapping) if mapping else {}


class Topics:
    """按领域分组的事件主题常量，避免魔法字符串散落各处。"""

    RESULT = "result"

    class Subscription:
        """保留的控制主题，仅供注册表与处理器生命周期使用。"""

        ROOT = "subscription"
        CREATED = "subscription.created"
        DELETED_PREFIX = "subscription.deleted"
        DELETED = "subscription.deleted.*"

    class Todo:
        ADD = "todo.add"
        REMOVE = "todo.remove"
        CHANGE_STATUS = "todo.change_status"

    class Client:
        ADD = "client.add"
        REMOVE = "client.remove"

    class UserSubscription:
        ADD = "subscription.add"
        REMOVE = "subscription.remove"


def subscription_deleted(subscription_id: str) -> str:
    """返回指定订阅的删除事件主题。"""

    return f"{Topics.Subscription.DELETED_PREFIX}.{subscription_id}"


def client_result(client_id: str) -> str:
    """返回客户端的结果投递主题 `<clientId>.result`。"""

    return f"{client_id}.{Topics.RESULT}"


def user_topic(user_id: str, action: str) -> str:
    """拼接按用户划分的领域主题，例如 `user42.todo.add`。"""

    return f"{user_id}.{action}"


def is_reserved(topic: str) -> bool:
    """判断主题是否为内部控制主题。"""

    return topic == Topics.Subscription.CREATED or topic.startswith(Topics.Subscription.DELETED_PREFIX + ".")


TOPIC_REGISTRY: Dict[str, ModuleTopicProfile] = {}


def register_module_topics(
    module_name: str,
    *,
    publish: Mapping[str, str] | None = None,
    subscribe: Mapping[str, str] | None = None,
) -> None:
    """记录模块发布与订阅的主题，便于文档化与调试。"""

    TOPIC_REGISTRY[module_name] = {
        "publish": _copy_mapping(publish),
        "subscribe": _copy_mapping(subscribe),
    }


def get_module_topics(module_name: str) -> ModuleTopicProfile | None:
    """返回已登记的模块主题信息。"""

    return TOPIC_REGISTRY.get(module_name)
