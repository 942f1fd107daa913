"""解析器查找表：按 (种类, 字段名) 注册并查找解析器描述。"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterator, List, Mapping, Tuple

LOG = logging.getLogger(__name__)

QUERY = "query"
MUTATION = "mutation"
SUBSCRIPTION = "subscription"
KINDS = (QUERY, MUTATION, SUBSCRIPTION)

ResolveFn = Callable[[Any, Mapping[str, Any]], Any]


class ResolverError(RuntimeError):
    """解析失败，信息会以 errors 结构返回给客户端。"""


@dataclass(frozen=True)
class Resolver:
    """单个根字段的解析器描述。"""

    name: str
    kind: str
    resolve: ResolveFn

    def __post_init__(self) -> None:
        if self.kind not in KINDS:
            raise ValueError(f"未知的解析器种类: {self.kind}")


class ResolverTable:
    """解析器注册表，同一 (种类, 字段名) 只能登记一次。"""

    def __init__(self) -> None:
        self._resolvers: Dict[Tuple[str, str], Resolver] = {}

    def register(self, resolver: Resolver) -> Resolver:
        key = (resolver.kind, resolver.name)
        if key in self._resolvers:
            raise ValueError(f"解析器 {resolver.kind} {resolver.name} 已存在")
        self._resolvers[key] = resolver
        LOG.debug("registered resolver %s %s", resolver.kind, resolver.name)
        return resolver

    def add(self, kind: str, name: str, resolve: ResolveFn) -> Resolver:
        return self.register(Resolver(name=name, kind=kind, resolve=resolve))

    def lookup(self, kind: str, name: str) -> Resolver:
        try:
            return self._resolvers[(kind, name)]
        except KeyError:
            raise ResolverError(f"Cannot query field '{name}' on type '{kind}'") from None

    def names(self, kind: str) -> List[str]:
        return [name for resolver_kind, name in self._resolvers if resolver_kind == kind]

    def __contains__(self, key: Tuple[str, str]) -> bool:
        return key in self._resolvers

    def __iter__(self) -> Iterator[Resolver]:
        return iter(list(self._resolvers.values()))

    def __len__(self) -> int:
        return len(self._resolvers)
