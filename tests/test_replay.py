"""查询重放与结果投递。"""

import logging

import pytest

from bus.topics import client_result
from router.errors import UnknownClientError
from router.replay import QueryReplayExecutor
from store.models import SubscriptionRequest


REQUEST = SubscriptionRequest(query="subscription addTodo", variables={"clientSubscriptionId": "t1"})


@pytest.fixture
def subscription(store, client):
    return store.add_subscription(client.id, "t1", ["u1.todo.add"], REQUEST)


def _replay(store, bus, loop, executor, **kwargs):
    return QueryReplayExecutor(store, bus, executor, loop, **kwargs)


class TestReplay:

    def test_result_is_published_to_client_topic(self, store, bus, loop, executor, client, subscription, collector):
        bus.subscribe(client_result(client.id), collector)
        replay = _replay(store, bus, loop, executor)

        future = replay.replay(subscription, {"todoId": "t-1"})

        assert future is not None
        assert replay.wait_idle(2.0)
        assert collector.payloads == [
            {"data": {"query": "subscription addTodo", "clientSubscriptionId": "t1", "event": {"todoId": "t-1"}}}
        ]

    def test_context_carries_user_client_and_request(self, store, bus, loop, executor, client, subscription):
        replay = _replay(store, bus, loop, executor)

        replay.replay(subscription, {"todoId": "t-1"})
        replay.wait_idle(2.0)

        query, context, variables = executor.calls[0]
        assert query == "subscription addTodo"
        assert variables == {"clientSubscriptionId": "t1"}
        assert context.user.id == "u1"
        assert context.client == client
        assert context.request == REQUEST
        assert context.correlation.client_subscription_id == "t1"

    def test_stale_subscription_is_skipped(self, store, bus, loop, executor, subscription):
        replay = _replay(store, bus, loop, executor)
        store.delete_subscription(subscription.id)

        assert replay.replay(subscription, {"todoId": "t-1"}) is None
        assert executor.calls == []


class TestExecutorFailure:

    def test_error_is_forwarded(self, store, bus, loop, client, subscription, collector, make_executor):
        bus.subscribe(client_result(client.id), collector)
        replay = _replay(store, bus, loop, make_executor(error=ValueError("bad query")))

        replay.replay(subscription, None)

        assert replay.wait_idle(2.0)
        assert collector.payloads == [
            {"data": None, "errors": [{"message": "bad query"}], "clientSubscriptionId": "t1"}
        ]

    def test_error_is_dropped_when_disabled(
        self, store, bus, loop, client, subscription, collector, caplog, make_executor
    ):
        bus.subscribe(client_result(client.id), collector)
        replay = _replay(store, bus, loop, make_executor(error=ValueError("bad query")), forward_errors=False)

        with caplog.at_level(logging.ERROR, logger="router.replay"):
            replay.replay(subscription, None)
            assert replay.wait_idle(2.0)

        assert collector.payloads == []
        assert any(record.levelno == logging.ERROR for record in caplog.records)

    def test_synchronous_executor_error(self, store, bus, loop, client, subscription, collector, make_executor):
        class Broken(make_executor):
            def execute(self, query, root_value, variables=None):
                raise RuntimeError("engine down")

        bus.subscribe(client_result(client.id), collector)
        replay = _replay(store, bus, loop, Broken())

        replay.replay(subscription, None)

        assert replay.wait_idle(2.0)
        assert collector.payloads[0]["errors"] == [{"message": "engine down"}]


class TestInitialExecution:

    def test_returns_future_without_publishing(self, store, bus, loop, executor, client, collector):
        bus.subscribe(client_result(client.id), collector)
        replay = _replay(store, bus, loop, executor)

        result = replay.execute_initial(client.id, REQUEST).result(timeout=2.0)

        assert result["data"]["event"] is None
        assert result["data"]["clientSubscriptionId"] is None
        assert replay.wait_idle(2.0)
        assert collector.payloads == []
        assert replay.pending_count == 0

    def test_unknown_client(self, store, bus, loop, executor):
        replay = _replay(store, bus, loop, executor)

        with pytest.raises(UnknownClientError):
            replay.execute_initial("ghost", REQUEST)
