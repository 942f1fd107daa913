"""处理器生命周期管理：随订阅创建绑定总线监听器，随订阅删除拆除监听器。"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from bus.event_bus import EventBus, Subscription as BusSubscription
from bus.topics import Topics, register_module_topics
from store.interface import SubscriptionStore
from store.models import Subscription

from .replay import QueryReplayExecutor

LOG = logging.getLogger(__name__)


class HandlerState(Enum):
    """单个订阅的处理器状态：unbound -> bound -> torn_down（终态）。"""

    UNBOUND = "unbound"
    BOUND = "bound"
    TORN_DOWN = "torn_down"


@dataclass(eq=False)
class Handler:
    """订阅在某个主题上的运行期绑定，不持久化。"""

    topic: str
    callback: Callable[[str, Any], None]
    handle: BusSubscription

    def unbind(self) -> None:
        self.handle.unsubscribe()


class HandlerLifecycleManager:
    """独占 subscriptionId -> Handler 列表的映射，是总线上订阅监听器的唯一写入方。"""

    def __init__(
        self,
        bus: EventBus,
        store: SubscriptionStore,
        replay: QueryReplayExecutor,
        *,
        rebuild_on_start: bool = True,
    ) -> None:
        self.bus = bus
        self.store = store
        self.replay = replay
        self.rebuild_on_start = rebuild_on_start
        self._handlers: Dict[str, List[Handler]] = {}
        self._control: List[BusSubscription] = []

    @property
    def attached(self) -> bool:
        return bool(self._control)

    def attach(self) -> None:
        """注册两个控制监听器，并按已存储的订阅记录重建处理器。"""

        with self.bus.lock:
            if self._control:
                return
            LOG.debug("Attaching handler lifecycle manager to bus")
            self._control.append(self.bus.subscribe(Topics.Subscription.CREATED, self._on_created))
            self._control.append(self.bus.subscribe(Topics.Subscription.DELETED, self._on_deleted))
            if self.rebuild_on_start:
                rebuilt = sum(1 for subscription in self.store.all_subscriptions() if self.bind(subscription))
                if rebuilt:
                    LOG.info("rebuilt handlers for %s stored subscriptions", rebuilt)

    def detach(self) -> None:
        """拆除全部处理器与控制监听器，进程退出前调用。"""

        with self.bus.lock:
            LOG.debug("Detaching handler lifecycle manager from bus")
            for subscription_id in list(self._handlers):
                self._unbind(subscription_id)
            for control in self._control:
                control.unsubscribe()
            self._control.clear()

    def bind(self, subscription: Subscription) -> bool:
        """为订阅的每个主题注册一个监听器；已绑定或记录已删除时返回 False。"""

        with self.bus.lock:
            if subscription.id in self._handlers:
                LOG.debug("subscription %s already bound", subscription.id)
                return False
            if self.store.get_subscription(subscription.id) is None:
                LOG.debug("subscription %s no longer stored, not binding", subscription.id)
                return False
            handlers: List[Handler] = []
            # 同一订阅在同一主题上最多一个监听器
            for topic in dict.fromkeys(subscription.topics):
                callback = self._make_callback(subscription)
                handlers.append(Handler(topic=topic, callback=callback, handle=self.bus.subscribe(topic, callback)))
            self._handlers[subscription.id] = handlers
        LOG.info("bound %s handlers for subscription %s", len(handlers), subscription.id)
        return True

    def unbind(self, subscription_id: str) -> int:
        """拆除订阅的全部监听器，返回拆除数量；未绑定时为无操作。"""

        with self.bus.lock:
            removed = self._unbind(subscription_id)
        if removed:
            LOG.info("tore down %s handlers for subscription %s", removed, subscription_id)
        return removed

    def state(self, subscription_id: str) -> HandlerState:
        with self.bus.lock:
            if subscription_id in self._handlers:
                return HandlerState.BOUND
            if self.store.get_subscription(subscription_id) is None:
                return HandlerState.TORN_DOWN
            return HandlerState.UNBOUND

    def handler_count(self, subscription_id: Optional[str] = None) -> int:
        """返回某个订阅（或全部订阅）当前绑定的处理器数量。"""

        with self.bus.lock:
            if subscription_id is not None:
                return len(self._handlers.get(subscription_id, ()))
            return sum(len(handlers) for handlers in self._handlers.values())

    def bound_topics(self, subscription_id: str) -> List[str]:
        with self.bus.lock:
            return [handler.topic for handler in self._handlers.get(subscription_id, ())]

    def bound_ids(self) -> List[str]:
        with self.bus.lock:
            return list(self._handlers)

    def _unbind(self, subscription_id: str) -> int:
        handlers = self._handlers.pop(subscription_id, None)
        if not handlers:
            return 0
        for handler in handlers:
            handler.unbind()
        return len(handlers)

    def _make_callback(self, subscription: Subscription) -> Callable[[str, Any], None]:
        def _on_event(topic: str, payload: Any = None) -> None:
            self.replay.replay(subscription, payload)

        return _on_event

    def _on_created(self, topic: str, payload: Any = None) -> None:
        subscription_id = (payload or {}).get("subscriptionId")
        if not subscription_id:
            LOG.warning("%s 事件缺少 subscriptionId: %s", topic, payload)
            return
        subscription = self.store.get_subscription(subscription_id)
        if subscription is None:
            LOG.warning("订阅 %s 不存在，忽略创建事件", subscription_id)
            return
        self.bind(subscription)

    def _on_deleted(self, topic: str, payload: Any = None) -> None:
        # 通配监听保证主题末段非空，即订阅 id
        self.unbind(topic[len(Topics.Subscription.DELETED_PREFIX) + 1 :])


register_module_topics(
    "lifecycle",
    subscribe={
        Topics.Subscription.CREATED: "为新订阅绑定处理器",
        Topics.Subscription.DELETED: "拆除已删除订阅的处理器",
    },
)
