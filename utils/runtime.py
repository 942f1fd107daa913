"""应用运行期的通用辅助工具。"""

from __future__ import annotations

import logging
from typing import Optional, Union


def setup_basic_logging(level: Union[int, str] = logging.INFO, fmt: Optional[str] = None) -> None:
    """配置项目默认的日志输出格式与等级。"""

    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    format_string = fmt or "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
    logging.basicConfig(level=level, format=format_string)
