"""组织订阅路由运行的脚本框架。"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

from bus.event_bus import EventBus, Subscription as BusSubscription
from bus.topics import Topics
from resolvers import ResolverExecutor, build_todo_table
from router import SubscriptionRouter
from router.runtime import load_config
from store import InMemoryStore
from utils.runtime import setup_basic_logging


def bootstrap_router(config_path: Optional[Path] = None, store: Optional[InMemoryStore] = None) -> SubscriptionRouter:
    """读取配置，组装存储、解析器与订阅路由，返回尚未启动的路由实例。"""

    config, _ = load_config(config_path)
    store = store or InMemoryStore()
    bus = EventBus()
    # 解析器需要注册表，注册表随路由一起创建，因此执行器延后绑定解析器表
    executor = ResolverExecutor()
    router = SubscriptionRouter(store, executor, bus=bus, config=config)
    executor.table = build_todo_table(store, router.registry, bus)
    return router


def register_observers(bus: EventBus) -> List[BusSubscription]:
    """在总线上注册调试用的观察者，返回句柄以便退出时释放。"""

    log = logging.getLogger("framework.observer")

    def _control_logger(topic: str, payload=None) -> None:
        log.info("control event=%s payload=%s", topic, payload)

    return [
        bus.subscribe(Topics.Subscription.CREATED, _control_logger),
        bus.subscribe(Topics.Subscription.DELETED, _control_logger),
    ]


def main() -> None:
    """框架入口：统一初始化日志、路由与观察者。"""

    router = bootstrap_router()
    setup_basic_logging(router.config.log_level)
    log = logging.getLogger("framework")
    observers = register_observers(router.bus)
    router.start()
    log.info("订阅路由已启动，已监听主题: %s", router.bus.topics_snapshot())
    try:
        # 在此接入传输层：连接建立时 open_client，断开时 close_client
        log.info("框架示例运行完成（未接入传输层）")
    finally:
        for observer in observers:
            observer.unsubscribe()
        router.shutdown()


if __name__ == "__main__":
    main()
