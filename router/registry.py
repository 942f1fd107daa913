"""订阅注册表：按 (客户端, 客户端订阅令牌) 幂等地创建与删除订阅记录。"""

from __future__ import annotations

import logging
from typing import Any, List, Mapping, Optional, Sequence, Union

from bus.event_bus import EventBus
from bus.topics import Topics, is_reserved, register_module_topics, subscription_deleted, user_topic
from store.interface import SubscriptionStore
from store.models import Subscription, SubscriptionRequest

from .errors import ReservedTopicError, UnknownClientError

LOG = logging.getLogger(__name__)

RequestLike = Union[SubscriptionRequest, Mapping[str, Any]]


class SubscriptionRegistry:
    """订阅记录的唯一入口，创建与删除时在总线上广播控制事件。"""

    def __init__(self, store: SubscriptionStore, bus: EventBus) -> None:
        self.store = store
        self.bus = bus

    def get_or_create(
        self,
        client_id: str,
        client_subscription_id: str,
        topics: Sequence[str],
        request: RequestLike,
    ) -> Subscription:
        """查找或创建订阅；已存在时原样返回，忽略传入的 topics 与 request。"""

        topics = list(topics)
        reserved = [topic for topic in topics if is_reserved(topic)]
        if reserved:
            raise ReservedTopicError(reserved)
        with self.bus.lock:
            existing = self.store.get_client_subscription(client_id, client_subscription_id)
            if existing is not None:
                return existing
            client = self.store.get_client(client_id)
            if client is None:
                raise UnknownClientError(client_id)
            subscription = self.store.add_subscription(
                client_id,
                client_subscription_id,
                list(topics),
                SubscriptionRequest.from_dict(request),
            )
            LOG.info(
                "created subscription %s client=%s token=%s topics=%s",
                subscription.id,
                client_id,
                client_subscription_id,
                list(subscription.topics),
            )
            # 先通知用户维度的变更，新订阅自身不会收到自己的创建事件
            self.bus.publish(
                user_topic(client.user_id, Topics.UserSubscription.ADD),
                {"subscriptionId": subscription.id, "clientId": client_id},
            )
            self.bus.publish(Topics.Subscription.CREATED, {"subscriptionId": subscription.id})
            return subscription

    def get(self, subscription_id: str) -> Optional[Subscription]:
        return self.store.get_subscription(subscription_id)

    def get_by_client_and_token(self, client_id: str, client_subscription_id: str) -> Optional[Subscription]:
        return self.store.get_client_subscription(client_id, client_subscription_id)

    def list_for_client(self, client_id: str) -> List[Subscription]:
        return self.store.get_subscriptions(client_id)

    def delete(self, subscription_id: str) -> bool:
        """删除订阅：先广播删除事件拆除监听器，再删除记录。记录不存在时为无操作。"""

        with self.bus.lock:
            subscription = self.store.get_subscription(subscription_id)
            if subscription is None:
                LOG.debug("subscription %s already deleted", subscription_id)
                return False
            self.bus.publish(subscription_deleted(subscription_id), {"subscriptionId": subscription_id})
            self.store.delete_subscription(subscription_id)
            LOG.info("deleted subscription %s client=%s", subscription_id, subscription.client_id)
            client = self.store.get_client(subscription.client_id)
            if client is not None:
                self.bus.publish(
                    user_topic(client.user_id, Topics.UserSubscription.REMOVE),
                    {"subscriptionId": subscription_id, "clientId": client.id},
                )
            return True

    def drop_client(self, client_id: str) -> int:
        """删除客户端名下的全部订阅，返回删除数量。"""

        with self.bus.lock:
            removed = 0
            for subscription in self.store.get_subscriptions(client_id):
                if self.delete(subscription.id):
                    removed += 1
        if removed:
            LOG.info("dropped %s subscriptions of client %s", removed, client_id)
        return removed


register_module_topics(
    "registry",
    publish={
        Topics.Subscription.CREATED: "订阅创建（控制主题）",
        Topics.Subscription.DELETED: "订阅删除（控制主题，末段为订阅 id）",
        "<userId>." + Topics.UserSubscription.ADD: "用户新增订阅",
        "<userId>." + Topics.UserSubscription.REMOVE: "用户移除订阅",
    },
)
