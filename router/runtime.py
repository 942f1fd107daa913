"""订阅路由运行期所需的辅助函数。"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Optional, Tuple

from .config import RouterConfig

LOG = logging.getLogger(__name__)


def default_config_path(app_root: Optional[Path] = None) -> Path:
    """返回路由配置文件的默认路径。"""

    base = app_root or Path(__file__).resolve().parents[1]
    return base / "router" / "config.json"


def load_config(config_path: Optional[Path] = None) -> Tuple[RouterConfig, Path]:
    """读取路由配置文件，若不存在则返回默认配置。"""

    path = (config_path or default_config_path()).resolve()
    return RouterConfig.from_file(path), path.parent


def make_result_logger(logger_name: str = "router.result"):
    """生成 `<clientId>.result` 投递主题的日志处理器。"""

    log = logging.getLogger(logger_name)

    def _handler(topic: str, payload: Any = None) -> None:
        errors = payload.get("errors") if isinstance(payload, dict) else None
        if errors:
            log.warning("topic=%s errors=%s", topic, errors)
        else:
            log.info("topic=%s payload=%s", topic, payload)

    return _handler
