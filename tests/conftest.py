"""订阅路由测试共用的夹具。"""

from __future__ import annotations

import threading
from typing import Any, Dict, List, Optional, Tuple

import pytest

from bus.event_bus import EventBus
from router.correlator import TriggerContext
from router.executor import QueryExecutor
from store.memory import InMemoryStore
from utils.loop import BackgroundLoop


class RecordingExecutor(QueryExecutor):
    """同步记录调用参数，返回的协程回显触发事件。"""

    def __init__(self, error: Optional[BaseException] = None) -> None:
        self.error = error
        self.calls: List[Tuple[str, Any, Optional[Dict[str, Any]]]] = []

    def execute(self, query: str, root_value: Any, variables: Optional[Dict[str, Any]] = None):
        self.calls.append((query, root_value, variables))
        return self._run(query, root_value)

    async def _run(self, query: str, context: TriggerContext) -> Any:
        if self.error is not None:
            raise self.error
        correlation = context.correlation
        return {
            "data": {
                "query": query,
                "clientSubscriptionId": correlation.client_subscription_id if correlation else None,
                "event": correlation.event if correlation else None,
            }
        }


class ResultCollector:
    """收集投递到结果主题的载荷，可在其他线程中等待。"""

    def __init__(self) -> None:
        self.payloads: List[Any] = []
        self._cond = threading.Condition()

    def __call__(self, topic: str, payload: Any = None) -> None:
        with self._cond:
            self.payloads.append(payload)
            self._cond.notify_all()

    def deliver(self, payload: Any) -> None:
        self("deliver", payload)

    def wait_for(self, count: int, timeout: float = 2.0) -> bool:
        with self._cond:
            return self._cond.wait_for(lambda: len(self.payloads) >= count, timeout)


@pytest.fixture
def bus() -> EventBus:
    return EventBus()


@pytest.fixture
def store() -> InMemoryStore:
    store = InMemoryStore()
    store.add_user("u1")
    return store


@pytest.fixture
def client(store):
    return store.add_client("u1")


@pytest.fixture
def loop():
    background = BackgroundLoop("test")
    yield background
    background.close()


@pytest.fixture
def executor() -> RecordingExecutor:
    return RecordingExecutor()


@pytest.fixture
def collector() -> ResultCollector:
    return ResultCollector()


@pytest.fixture
def make_executor():
    """构造自定义行为的执行器，例如 `make_executor(error=ValueError())`。"""

    return RecordingExecutor
