"""订阅事件路由：注册表、处理器生命周期、触发关联与查询重放。"""

from .config import RouterConfig
from .correlator import Correlation, TriggerContext, belongs_to
from .errors import ReservedTopicError, RouterError, UnknownClientError
from .executor import QueryExecutor, error_result
from .lifecycle import Handler, HandlerLifecycleManager, HandlerState
from .registry import SubscriptionRegistry
from .replay import QueryReplayExecutor
from .service import SubscriptionRouter

__all__ = [
    "Correlation",
    "Handler",
    "HandlerLifecycleManager",
    "HandlerState",
    "QueryExecutor",
    "QueryReplayExecutor",
    "RouterConfig",
    "ReservedTopicError",
    "RouterError",
    "SubscriptionRegistry",
    "SubscriptionRouter",
    "TriggerContext",
    "UnknownClientError",
    "belongs_to",
    "error_result",
]
