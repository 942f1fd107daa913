"""通用工具。"""

from .loop import BackgroundLoop
from .runtime import setup_basic_logging

__all__ = [
    "BackgroundLoop",
    "setup_basic_logging",
]
