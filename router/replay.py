"""查询重放：事件命中订阅后组装触发上下文、执行已存储的查询并投递结果。"""

from __future__ import annotations

import inspect
import logging
import threading
from concurrent.futures import Future
from functools import partial
from typing import Any, Optional, Set

from bus.event_bus import EventBus
from bus.topics import Topics, client_result, register_module_topics
from store.interface import SubscriptionStore
from store.models import Subscription, SubscriptionRequest
from utils.loop import BackgroundLoop

from .correlator import Correlation, TriggerContext
from .errors import UnknownClientError
from .executor import QueryExecutor, error_result

LOG = logging.getLogger(__name__)


class QueryReplayExecutor:
    """把查询提交到后台事件循环，总线派发不等待查询结果。"""

    def __init__(
        self,
        store: SubscriptionStore,
        bus: EventBus,
        executor: QueryExecutor,
        loop: BackgroundLoop,
        *,
        forward_errors: bool = True,
    ) -> None:
        self.store = store
        self.bus = bus
        self.executor = executor
        self.loop = loop
        self.forward_errors = forward_errors
        self._pending: Set[Future] = set()
        self._idle = threading.Condition()

    @property
    def pending_count(self) -> int:
        with self._idle:
            return len(self._pending)

    def replay(self, subscription: Subscription, event: Any = None) -> Optional[Future]:
        """事件触发时重新执行订阅的查询，结果发布到 `<clientId>.result`。"""

        if self.store.get_subscription(subscription.id) is None:
            # 订阅已删除但监听器仍在途中触发
            LOG.debug("skip replay for deleted subscription %s", subscription.id)
            return None
        client = self.store.get_client(subscription.client_id)
        if client is None:
            LOG.warning("订阅 %s 的客户端 %s 不存在，跳过重放", subscription.id, subscription.client_id)
            return None
        context = TriggerContext(
            user=self.store.get_user(client.user_id),
            client=client,
            request=subscription.request,
            correlation=Correlation(client_subscription_id=subscription.client_subscription_id, event=event),
        )
        LOG.debug("replaying subscription %s for client %s", subscription.id, client.id)
        return self._run(
            context,
            subscription.request,
            deliver_to=client.id,
            client_subscription_id=subscription.client_subscription_id,
        )

    def execute_initial(self, client_id: str, request: SubscriptionRequest) -> Future:
        """执行订阅时的首次请求（无关联事件），结果由返回的 Future 交给调用方。"""

        client = self.store.get_client(client_id)
        if client is None:
            raise UnknownClientError(client_id)
        context = TriggerContext(user=self.store.get_user(client.user_id), client=client, request=request)
        return self._run(context, request, deliver_to=None, client_subscription_id=None)

    def wait_idle(self, timeout: Optional[float] = None) -> bool:
        """等待所有在途查询完成并投递，超时返回 False。"""

        with self._idle:
            return self._idle.wait_for(lambda: not self._pending, timeout)

    def _run(
        self,
        context: TriggerContext,
        request: SubscriptionRequest,
        *,
        deliver_to: Optional[str],
        client_subscription_id: Optional[str],
    ) -> Future:
        awaitable = None
        try:
            awaitable = self.executor.execute(request.query, context, dict(request.variables))
            future = self.loop.submit(awaitable)
        except Exception as exc:
            if inspect.iscoroutine(awaitable):
                awaitable.close()
            future = Future()
            future.set_exception(exc)
        with self._idle:
            self._pending.add(future)
        future.add_done_callback(partial(self._on_done, deliver_to, client_subscription_id))
        return future

    def _on_done(self, deliver_to: Optional[str], client_subscription_id: Optional[str], future: Future) -> None:
        try:
            if future.cancelled() or deliver_to is None:
                return
            exc = future.exception()
            if exc is None:
                result = future.result()
            else:
                LOG.error(
                    "查询执行失败 client=%s token=%s: %s",
                    deliver_to,
                    client_subscription_id,
                    exc,
                    exc_info=exc,
                )
                if not self.forward_errors:
                    return
                result = error_result(exc, client_subscription_id)
            self.bus.publish(client_result(deliver_to), result)
        finally:
            with self._idle:
                self._pending.discard(future)
                if not self._pending:
                    self._idle.notify_all()


register_module_topics(
    "replay",
    publish={"<clientId>." + Topics.RESULT: "查询重放结果，由传输层转发给客户端"},
)
