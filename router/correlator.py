"""触发关联：判断一次查询执行所携带的事件是否属于某个订阅。"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from store.models import Client, SubscriptionRequest, User


@dataclass(frozen=True)
class Correlation:
    """导致本次执行的事件及其所属的客户端订阅令牌。"""

    client_subscription_id: str
    event: Any = None


@dataclass(frozen=True)
class TriggerContext:
    """重新执行已存储查询时的根上下文，不持久化。"""

    user: Optional[User]
    client: Optional[Client]
    request: Optional[SubscriptionRequest]
    correlation: Optional[Correlation] = None


def belongs_to(context: Optional[TriggerContext], client_subscription_id: str) -> Any:
    """令牌一致时返回事件载荷，否则返回 None（表示订阅时的首次响应，不携带增量）。"""

    if context is None:
        return None
    correlation = context.correlation
    if correlation is None or correlation.client_subscription_id != client_subscription_id:
        return None
    return correlation.event
