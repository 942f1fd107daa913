"""事件总线封装，提供统一的订阅、发布与调试入口。"""

from __future__ import annotations

import inspect
import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from pubsub import pub

Listener = Callable[[str, Any], None]

LOG = logging.getLogger(__name__)

WILDCARD_SUFFIX = ".*"

# pypubsub 的点号主题会向父主题冒泡且限制字符集，这里只使用单一通道主题，
# 主题匹配由 Subscription 自行完成。
_CHANNEL = "events"


def _channel_spec(topic: str, payload: Any = None) -> None:
    """通道主题的消息格式原型：topic 必填，payload 可选。"""


def topic_matches(pattern: str, topic: str) -> bool:
    """判断主题是否命中监听模式，`a.b.*` 只匹配 `a.b.` 之后还有内容的主题。"""

    if pattern.endswith(WILDCARD_SUFFIX):
        prefix = pattern[:-1]
        return len(topic) > len(prefix) and topic.startswith(prefix)
    return pattern == topic


@dataclass(eq=False)
class Subscription:
    """封装订阅句柄，便于在退出时解除监听。"""

    topic: str
    listener: Listener
    _bus: "EventBus" = field(repr=False)
    active: bool = True

    def unsubscribe(self) -> None:
        """从总线取消当前监听器。"""

        self._bus.unsubscribe(self)

    def matches(self, topic: str) -> bool:
        return topic_matches(self.topic, topic)

    def _deliver(self, topic: str, payload: Any = None) -> None:
        if not self.active or not self.matches(topic):
            return
        try:
            self.listener(topic, payload)
        except Exception:
            # 单个监听器失败不影响同一轮派发中的其他监听器
            LOG.exception(
                "监听器 %s 处理主题 %s 失败 (pattern=%s)",
                EventBus._render_listener(self.listener),
                topic,
                self.topic,
            )


class EventBus:
    """对 pypubsub 的轻量封装，统一入口便于依赖注入与调试。

    所有监听器共用一个 pypubsub 通道主题，每次发布都会调用总线上全部句柄，
    由句柄自行过滤主题，因此单次派发的开销与监听器总数成正比。
    """

    def __init__(self) -> None:
        self._publisher = pub.Publisher()
        self._publisher.getTopicMgr().getOrCreateTopic(_CHANNEL, _channel_spec)
        self._listener_map: Dict[str, List[Subscription]] = {}
        self._lock = threading.RLock()
        # pypubsub 只持有弱引用；派发进行中取消的句柄暂存于此，直到所有派发结束
        self._retired: List[Subscription] = []
        self._dispatching = 0

    @property
    def lock(self) -> threading.RLock:
        """状态锁，注册表与处理器管理器共享该锁以保持状态一致；派发本身不持有该锁。"""

        return self._lock

    def subscribe(self, topic: str, listener: Listener) -> Subscription:
        """订阅指定主题（支持 `.*` 后缀通配），返回可供释放的句柄。"""

        subscription = Subscription(topic=topic, listener=listener, _bus=self)
        with self._lock:
            self._publisher.subscribe(subscription._deliver, _CHANNEL)
            self._listener_map.setdefault(topic, []).append(subscription)
        LOG.debug("subscribed %s -> %s", topic, self._render_listener(listener))
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        """取消之前的订阅；重复取消视为无操作。"""

        with self._lock:
            if not subscription.active:
                return
            subscription.active = False
            self._publisher.unsubscribe(subscription._deliver, _CHANNEL)
            if self._dispatching:
                self._retired.append(subscription)
            listeners = self._listener_map.get(subscription.topic)
            if listeners is not None:
                if subscription in listeners:
                    listeners.remove(subscription)
                if not listeners:
                    self._listener_map.pop(subscription.topic, None)
        LOG.debug("unsubscribed %s -> %s", subscription.topic, self._render_listener(subscription.listener))

    def publish(self, topic: str, payload: Any = None) -> None:
        """向主题同步广播事件，按注册顺序依次通知所有匹配的监听器。

        监听器在锁外调用，单个监听器阻塞不会妨碍其他线程订阅或发布。
        """

        with self._lock:
            self._dispatching += 1
        try:
            self._publisher.sendMessage(_CHANNEL, topic=topic, payload=payload)
        finally:
            with self._lock:
                self._dispatching -= 1
                if not self._dispatching:
                    self._retired.clear()

    def has_listeners(self, topic: str) -> bool:
        """检测是否存在会接收该主题的监听者。"""

        return self.listener_count(topic) > 0

    def listener_count(self, topic: str) -> int:
        """返回发布该主题时会被调用的监听器数量。"""

        with self._lock:
            return sum(
                1
                for pattern, listeners in self._listener_map.items()
                if topic_matches(pattern, topic)
                for _ in listeners
            )

    def list_listeners(self, topic: Optional[str] = None) -> Dict[str, List[str]]:
        """按监听模式列出监听器名称，辅助排查事件流转。"""

        with self._lock:
            patterns = [topic] if topic else sorted(self._listener_map.keys())
            snapshot: Dict[str, List[str]] = {}
            for name in patterns:
                listeners = self._listener_map.get(name, [])
                snapshot[name] = [self._render_listener(sub.listener) for sub in listeners]
            return snapshot

    def topics_snapshot(self) -> Dict[str, int]:
        """展示已注册监听模式的监听器数量概览。"""

        with self._lock:
            return {topic: len(listeners) for topic, listeners in sorted(self._listener_map.items())}

    @staticmethod
    def _render_listener(listener: Listener) -> str:
        """将监听器转为可读名称。"""

        if inspect.ismethod(listener):
            self_obj = listener.__self__
            cls_name = type(self_obj).__name__
            func_name = listener.__func__.__name__
            return f"{cls_name}.{func_name}"
        if inspect.isfunction(listener):
            return listener.__qualname__
        return repr(listener)
