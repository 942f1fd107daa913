"""后台 asyncio 事件循环，供同步代码提交协程并异步获取结果。"""

from __future__ import annotations

import asyncio
import logging
import threading
from concurrent.futures import Future
from typing import Any, Awaitable, TypeVar

LOG = logging.getLogger(__name__)

_T = TypeVar("_T")


async def _await(awaitable: Awaitable[_T]) -> _T:
    return await awaitable


class BackgroundLoop:
    """在守护线程中运行事件循环，隐藏 asyncio 与线程细节。"""

    def __init__(self, name: str = "BackgroundLoop") -> None:
        self.name = name
        self._loop = asyncio.new_event_loop()
        self._thread = threading.Thread(target=self._run_loop, name=f"{name}.loop", daemon=True)
        self._thread.start()
        self._closed = False

    def _run_loop(self) -> None:
        asyncio.set_event_loop(self._loop)
        self._loop.run_forever()

    @property
    def closed(self) -> bool:
        return self._closed

    def submit(self, awaitable: Awaitable[_T]) -> "Future[_T]":
        """提交协程（或任意 awaitable），立即返回 concurrent.futures.Future。"""

        if self._closed:
            raise RuntimeError(f"{self.name} 已关闭，无法提交任务")
        return asyncio.run_coroutine_threadsafe(_await(awaitable), self._loop)

    def close(self, timeout: float = 1.0) -> None:
        """停止事件循环并回收后台线程。"""

        if self._closed:
            return
        self._closed = True
        self._loop.call_soon_threadsafe(self._loop.stop)
        self._thread.join(timeout=timeout)
        if not self._thread.is_alive():
            self._loop.close()
        else:  # pragma: no cover - 仅在任务长时间阻塞时出现
            LOG.warning("%s 线程未在 %.1fs 内退出", self.name, timeout)

    def __enter__(self) -> "BackgroundLoop":
        return self

    def __exit__(self, *_: Any) -> None:
        self.close()
