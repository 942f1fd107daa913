"""订阅路由的配置定义与解析工具。"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Dict

LOG = logging.getLogger(__name__)


@dataclass
class RouterConfig:
    """订阅路由的完整配置。"""

    # 查询执行失败时是否向客户端投递错误结构；False 表示丢弃
    forward_errors: bool = True
    rebuild_on_start: bool = True
    shutdown_timeout: float = 5.0
    log_level: str = "INFO"

    @classmethod
    def from_dict(cls, payload: Dict[str, Any] | None) -> "RouterConfig":
        payload = payload or {}
        defaults = cls()
        return cls(
            forward_errors=bool(payload.get("forward_errors", defaults.forward_errors)),
            rebuild_on_start=bool(payload.get("rebuild_on_start", defaults.rebuild_on_start)),
            shutdown_timeout=max(0.0, float(payload.get("shutdown_timeout", defaults.shutdown_timeout))),
            log_level=str(payload.get("log_level", defaults.log_level)).upper(),
        )

    @classmethod
    def from_file(cls, file_path: Path) -> "RouterConfig":
        file_path = file_path.resolve()
        try:
            with file_path.open("r", encoding="utf-8") as handle:
                data = json.load(handle)
        except FileNotFoundError:
            LOG.warning("未找到路由配置文件 %s，使用默认配置", file_path)
            return cls()
        except json.JSONDecodeError as exc:
            LOG.error("路由配置解析失败: %s", exc)
            return cls()
        if not isinstance(data, dict):
            LOG.error("路由配置顶层必须是对象: %s", file_path)
            return cls()
        return cls.from_dict(data)

    def merged(self, overrides: Dict[str, Any]) -> "RouterConfig":
        if not overrides:
            return self
        config = replace(self)
        if "forward_errors" in overrides:
            config.forward_errors = bool(overrides["forward_errors"])
        if "rebuild_on_start" in overrides:
            config.rebuild_on_start = bool(overrides["rebuild_on_start"])
        if "shutdown_timeout" in overrides:
            config.shutdown_timeout = max(0.0, float(overrides["shutdown_timeout"]))
        if "log_level" in overrides:
            config.log_level = str(overrides["log_level"]).upper()
        return config
