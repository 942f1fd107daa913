"""基于解析器查找表的查询执行器。"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Tuple

from router.executor import QueryExecutor
from router.errors import RouterError
from store.errors import StoreError

from .table import KINDS, ResolverError, ResolverTable

LOG = logging.getLogger(__name__)


def parse_query(query: str) -> Tuple[str, str]:
    """解析形如 `subscription addTodo` 的查询文本，返回 (种类, 字段名)。"""

    parts = (query or "").split()
    if len(parts) != 2 or parts[0] not in KINDS:
        raise ResolverError(f"无法解析查询: {query!r}")
    return parts[0], parts[1]


class ResolverExecutor(QueryExecutor):
    """在事件循环中执行单个根字段的解析器，返回 `{"data": ...}` 结构。"""

    def __init__(self, table: Optional[ResolverTable] = None) -> None:
        self.table = table

    async def execute(self, query: str, root_value: Any, variables: Optional[Dict[str, Any]] = None) -> Any:
        try:
            kind, field_name = parse_query(query)
            if self.table is None:
                raise ResolverError("解析器表尚未绑定")
            resolver = self.table.lookup(kind, field_name)
            value = resolver.resolve(root_value, dict(variables or {}))
        except (ResolverError, RouterError, StoreError) as exc:
            LOG.info("resolver error for %r: %s", query, exc)
            return {"data": None, "errors": [{"message": str(exc)}]}
        return {"data": {field_name: value}}
