"""订阅路由端到端场景：客户端、订阅、事件、投递与删除。"""

import pytest

from bus.topics import client_result
from router import HandlerState, RouterConfig, SubscriptionRouter
from store.models import SubscriptionRequest

REQUEST = SubscriptionRequest(query="subscription addTodo", variables={"clientSubscriptionId": "t1"})


@pytest.fixture
def router(store, executor):
    router = SubscriptionRouter(store, executor, config=RouterConfig(shutdown_timeout=2.0))
    router.start()
    yield router
    router.shutdown()


class TestScenario:

    def test_event_is_delivered_once_then_not_after_delete(self, router, collector, executor):
        client = router.open_client("u1", collector.deliver)
        subscription = router.registry.get_or_create(client.id, "t1", ["u1.todo.add"], REQUEST)

        router.bus.publish("u1.todo.add", {"todoId": "t-1"})
        assert router.replay.wait_idle(2.0)

        assert len(collector.payloads) == 1
        assert collector.payloads[0]["data"]["event"] == {"todoId": "t-1"}
        assert collector.payloads[0]["data"]["clientSubscriptionId"] == "t1"

        assert router.registry.delete(subscription.id)
        router.bus.publish("u1.todo.add", {"todoId": "t-2"})
        assert router.replay.wait_idle(2.0)

        assert len(collector.payloads) == 1
        assert len(executor.calls) == 1

    def test_other_users_events_do_not_trigger(self, router, collector, store):
        store.add_user("u2")
        client = router.open_client("u1", collector.deliver)
        router.registry.get_or_create(client.id, "t1", ["u1.todo.add"], REQUEST)

        router.bus.publish("u2.todo.add", {"todoId": "t-1"})
        assert router.replay.wait_idle(2.0)

        assert collector.payloads == []

    def test_each_subscription_receives_its_own_event(self, router, collector):
        client = router.open_client("u1", collector.deliver)
        router.registry.get_or_create(client.id, "t1", ["u1.todo.add"], REQUEST)
        router.registry.get_or_create(client.id, "t2", ["u1.todo.add"], REQUEST)

        router.bus.publish("u1.todo.add", {"todoId": "t-1"})
        assert router.replay.wait_idle(2.0)

        tokens = sorted(payload["data"]["clientSubscriptionId"] for payload in collector.payloads)
        assert tokens == ["t1", "t2"]


class TestClients:

    def test_open_client_announces_connection(self, router, collector):
        announced = []
        router.bus.subscribe("u1.client.add", lambda topic, payload=None: announced.append(payload))

        client = router.open_client("u1", collector.deliver, socket_id="sock-1")

        assert announced == [{"clientId": client.id}]
        assert client.socket_id == "sock-1"
        assert router.bus.listener_count(client_result(client.id)) == 1

    def test_close_client_drops_subscriptions(self, router, collector, store):
        client = router.open_client("u1", collector.deliver)
        subscription = router.registry.get_or_create(client.id, "t1", ["u1.todo.add"], REQUEST)

        assert router.close_client(client.id)

        assert router.lifecycle.state(subscription.id) is HandlerState.TORN_DOWN
        assert store.get_client(client.id) is None
        assert not router.bus.has_listeners(client_result(client.id))
        assert not router.bus.has_listeners("u1.todo.add")
        assert not router.close_client(client.id)

    def test_request_runs_without_correlation(self, router, collector):
        client = router.open_client("u1", collector.deliver)

        result = router.request(client.id, "query viewer").result(timeout=2.0)

        assert result["data"]["query"] == "query viewer"
        assert result["data"]["event"] is None


class TestLifetime:

    def test_restart_rebuilds_handlers(self, store, executor, collector):
        first = SubscriptionRouter(store, executor)
        first.start()
        client = first.open_client("u1", collector.deliver)
        subscription = first.registry.get_or_create(client.id, "t1", ["u1.todo.add"], REQUEST)
        first.shutdown()

        with SubscriptionRouter(store, executor) as second:
            assert second.lifecycle.state(subscription.id) is HandlerState.BOUND
            second.attach_channel(client.id, collector.deliver)
            second.bus.publish("u1.todo.add", {"todoId": "t-9"})
            assert second.replay.wait_idle(2.0)

        assert collector.payloads[-1]["data"]["event"] == {"todoId": "t-9"}
        assert not second.running

    def test_shutdown_is_idempotent(self, store, executor):
        router = SubscriptionRouter(store, executor)
        router.start()
        router.shutdown()
        router.shutdown()

        assert router.loop.closed
        assert router.bus.topics_snapshot() == {}
