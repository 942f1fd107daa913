"""存储层异常定义。"""

from __future__ import annotations


class StoreError(RuntimeError):
    """统一封装存储层异常。"""


class NotFoundError(StoreError):
    """引用的记录不存在。"""

    def __init__(self, kind: str, record_id: str) -> None:
        super().__init__(f"{kind} {record_id!r} 不存在")
        self.kind = kind
        self.record_id = record_id
