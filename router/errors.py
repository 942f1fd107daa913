"""订阅路由异常定义。"""

from __future__ import annotations

from typing import Sequence


class RouterError(RuntimeError):
    """统一封装订阅路由异常。"""


class UnknownClientError(RouterError):
    """订阅引用的客户端不存在。"""

    def __init__(self, client_id: str) -> None:
        super().__init__(f"客户端 {client_id!r} 不存在")
        self.client_id = client_id


class ReservedTopicError(RouterError):
    """订阅主题使用了内部控制主题。"""

    def __init__(self, topics: Sequence[str]) -> None:
        super().__init__(f"控制主题不能用于订阅: {', '.join(topics)}")
        self.topics = list(topics)
