"""订阅路由演示入口：模拟一个客户端订阅待办新增事件并触发变更。"""

from __future__ import annotations

import logging
import signal
import sys
from typing import Any

from bus.topics import client_result
from router.runtime import make_result_logger
from script_framework import bootstrap_router, register_observers
from utils.runtime import setup_basic_logging


def main() -> None:
	"""示例流程：建立客户端、创建订阅、新增待办并观察结果投递。"""

	router = bootstrap_router()
	setup_basic_logging(router.config.log_level)
	log = logging.getLogger("app")
	observers = register_observers(router.bus)
	router.start()

	user = router.store.add_user("demo-user")
	delivered = []
	client = router.open_client(user.id, delivered.append)
	observers.append(router.bus.subscribe(client_result(client.id), make_result_logger()))

	def _shutdown(_: Any = None, __: Any = None) -> None:
		"""撤销观察者并关闭路由。"""

		log.info("收到停止信号，准备退出")
		for observer in observers:
			observer.unsubscribe()
		router.shutdown()
		sys.exit(0)

	signal.signal(signal.SIGINT, _shutdown)
	if hasattr(signal, "SIGTERM"):
		signal.signal(signal.SIGTERM, _shutdown)

	initial = router.request(client.id, "subscription addTodo", {"clientSubscriptionId": "t1"}).result(timeout=5.0)
	log.info("订阅建立，首次响应: %s", initial)
	created = router.request(client.id, "mutation addTodo", {"text": "buy milk"}).result(timeout=5.0)
	log.info("新增待办: %s", created)
	router.replay.wait_idle(router.config.shutdown_timeout)

	router.close_client(client.id)
	log.info("共投递 %s 条结果，剩余处理器数量: %s", len(delivered), router.lifecycle.handler_count())
	for observer in observers:
		observer.unsubscribe()
	router.shutdown()


if __name__ == "__main__":
	main()
