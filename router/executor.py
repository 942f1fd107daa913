"""外部查询执行器接口：query + 根上下文 + 变量 -> 结果。"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional


class QueryExecutor(ABC):
    """查询执行引擎对路由层暴露的唯一能力。"""

    @abstractmethod
    async def execute(self, query: str, root_value: Any, variables: Optional[Dict[str, Any]] = None) -> Any:
        """执行查询并返回结果，调用方不会等待它完成。"""


def error_result(exc: BaseException, client_subscription_id: Optional[str] = None) -> Dict[str, Any]:
    """构造投递给客户端的错误结构。"""

    result: Dict[str, Any] = {"data": None, "errors": [{"message": str(exc) or type(exc).__name__}]}
    if client_subscription_id is not None:
        result["clientSubscriptionId"] = client_subscription_id
    return result
