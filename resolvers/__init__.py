"""解析层：解析器查找表与基于它的查询执行器。"""

from .executor import ResolverExecutor, parse_query
from .table import MUTATION, QUERY, SUBSCRIPTION, Resolver, ResolverError, ResolverTable
from .todo import TodoResolvers, build_todo_table, subscription_to_dict, todo_to_dict

__all__ = [
    "MUTATION",
    "QUERY",
    "SUBSCRIPTION",
    "Resolver",
    "ResolverError",
    "ResolverExecutor",
    "ResolverTable",
    "TodoResolvers",
    "build_todo_table",
    "parse_query",
    "subscription_to_dict",
    "todo_to_dict",
]
