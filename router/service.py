"""订阅路由的组装入口，统一管理总线、注册表、处理器与后台事件循环的生命周期。"""

from __future__ import annotations

import logging
from concurrent.futures import Future
from typing import Any, Callable, Dict, Optional

from bus.event_bus import EventBus, Subscription as BusSubscription
from bus.topics import Topics, client_result, register_module_topics, user_topic
from store.interface import SubscriptionStore
from store.models import Client, SubscriptionRequest
from utils.loop import BackgroundLoop

from .config import RouterConfig
from .executor import QueryExecutor
from .lifecycle import HandlerLifecycleManager
from .registry import SubscriptionRegistry
from .replay import QueryReplayExecutor

LOG = logging.getLogger(__name__)

Deliver = Callable[[Any], None]


class SubscriptionRouter:
    """进程启动时创建、退出时关闭；所有组件通过构造参数注入，不依赖全局状态。"""

    def __init__(
        self,
        store: SubscriptionStore,
        executor: QueryExecutor,
        *,
        bus: Optional[EventBus] = None,
        config: Optional[RouterConfig] = None,
        loop: Optional[BackgroundLoop] = None,
    ) -> None:
        self.config = config or RouterConfig()
        self.bus = bus or EventBus()
        self.store = store
        self.loop = loop or BackgroundLoop("SubscriptionRouter")
        self._owns_loop = loop is None
        self.registry = SubscriptionRegistry(store, self.bus)
        self.replay = QueryReplayExecutor(
            store,
            self.bus,
            executor,
            self.loop,
            forward_errors=self.config.forward_errors,
        )
        self.lifecycle = HandlerLifecycleManager(
            self.bus,
            store,
            self.replay,
            rebuild_on_start=self.config.rebuild_on_start,
        )
        self._channels: Dict[str, BusSubscription] = {}
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    def start(self) -> None:
        """挂载处理器生命周期管理器，开始响应订阅事件。"""

        if self._running:
            return
        self.lifecycle.attach()
        self._running = True
        LOG.info("subscription router started (%s subscriptions bound)", len(self.lifecycle.bound_ids()))

    def shutdown(self) -> None:
        """拆除全部监听器，等待在途查询投递完毕后关闭后台事件循环。"""

        if not self._running:
            return
        self._running = False
        self.lifecycle.detach()
        if not self.replay.wait_idle(self.config.shutdown_timeout):
            LOG.warning("仍有 %s 个查询未完成，放弃等待", self.replay.pending_count)
        for channel in self._channels.values():
            channel.unsubscribe()
        self._channels.clear()
        if self._owns_loop:
            self.loop.close()
        LOG.info("subscription router stopped")

    def attach_channel(self, client_id: str, deliver: Deliver) -> BusSubscription:
        """为一条物理连接订阅 `<clientId>.result`，结果原样交给 deliver。"""

        def _forward(topic: str, payload: Any = None) -> None:
            deliver(payload)

        channel = self.bus.subscribe(client_result(client_id), _forward)
        previous = self._channels.pop(client_id, None)
        if previous is not None:
            previous.unsubscribe()
        self._channels[client_id] = channel
        return channel

    def open_client(
        self,
        user_id: str,
        deliver: Deliver,
        *,
        client_type: str = "websocket",
        socket_id: Optional[str] = None,
    ) -> Client:
        """登记新客户端并挂接其结果通道。"""

        client = self.store.add_client(user_id, client_type, socket_id)
        self.attach_channel(client.id, deliver)
        LOG.info("client %s connected for user %s", client.id, user_id)
        self.bus.publish(user_topic(user_id, Topics.Client.ADD), {"clientId": client.id})
        return client

    def close_client(self, client_id: str) -> bool:
        """客户端断开：删除其全部订阅、结果通道与客户端记录。"""

        client = self.store.get_client(client_id)
        if client is None:
            return False
        self.registry.drop_client(client_id)
        channel = self._channels.pop(client_id, None)
        if channel is not None:
            channel.unsubscribe()
        self.store.remove_client(client_id)
        LOG.info("client %s disconnected", client_id)
        self.bus.publish(user_topic(client.user_id, Topics.Client.REMOVE), {"clientId": client_id})
        return True

    def request(self, client_id: str, query: str, variables: Optional[Dict[str, Any]] = None) -> Future:
        """执行客户端的首次请求，返回结果 Future；订阅类请求会在此过程中创建订阅。"""

        return self.replay.execute_initial(client_id, SubscriptionRequest(query=query, variables=dict(variables or {})))

    def __enter__(self) -> "SubscriptionRouter":
        self.start()
        return self

    def __exit__(self, *_: Any) -> None:
        self.shutdown()


register_module_topics(
    "router",
    publish={
        "<userId>." + Topics.Client.ADD: "客户端连接",
        "<userId>." + Topics.Client.REMOVE: "客户端断开",
    },
    subscribe={"<clientId>." + Topics.RESULT: "转发查询结果到物理连接"},
)
