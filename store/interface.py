"""存储后端的抽象接口，路由核心只依赖这里声明的能力。"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

from .models import Client, Subscription, SubscriptionRequest, Todo, User


class SubscriptionStore(ABC):
    """订阅记录及其所属客户端、用户的读写能力。"""

    @abstractmethod
    def get_client(self, client_id: str) -> Optional[Client]:
        """按 id 读取客户端，不存在时返回 None。"""

    @abstractmethod
    def get_user(self, user_id: str) -> Optional[User]:
        """按 id 读取用户，不存在时返回 None。"""

    @abstractmethod
    def get_subscription(self, subscription_id: str) -> Optional[Subscription]:
        """按服务端 id 读取订阅。"""

    @abstractmethod
    def get_client_subscription(self, client_id: str, client_subscription_id: str) -> Optional[Subscription]:
        """按 (客户端, 客户端订阅令牌) 读取订阅。"""

    @abstractmethod
    def add_subscription(
        self,
        client_id: str,
        client_subscription_id: str,
        topics: Sequence[str],
        request: SubscriptionRequest,
    ) -> Subscription:
        """写入新的订阅记录并返回。"""

    @abstractmethod
    def delete_subscription(self, subscription_id: str) -> bool:
        """删除订阅记录，不存在时返回 False。"""

    @abstractmethod
    def add_client(self, user_id: str, client_type: str = "websocket", socket_id: str | None = None) -> Client:
        """为用户登记一个新客户端。"""

    @abstractmethod
    def remove_client(self, client_id: str) -> bool:
        """移除客户端记录，不存在时返回 False。"""

    @abstractmethod
    def get_subscriptions(self, client_id: str) -> List[Subscription]:
        """返回客户端的全部订阅。"""

    @abstractmethod
    def all_subscriptions(self) -> List[Subscription]:
        """返回全部订阅，进程启动时用于重建处理器。"""


class TodoStore(ABC):
    """解析层使用的领域数据读写能力。"""

    @abstractmethod
    def add_user(self, user_id: str | None = None) -> User:
        """创建用户。"""

    @abstractmethod
    def get_clients(self, user_id: str) -> List[Client]:
        """返回用户的全部客户端。"""

    @abstractmethod
    def get_todo(self, todo_id: str) -> Optional[Todo]:
        """读取单个待办。"""

    @abstractmethod
    def get_todos(self, user_id: str) -> List[Todo]:
        """返回用户的待办列表。"""

    @abstractmethod
    def add_todo(self, user_id: str, text: str) -> Todo:
        """新增待办。"""

    @abstractmethod
    def delete_todo(self, todo_id: str) -> bool:
        """删除待办，不存在时返回 False。"""

    @abstractmethod
    def change_todo_status(self, todo_id: str, completed: bool) -> Todo:
        """修改待办完成状态。"""
