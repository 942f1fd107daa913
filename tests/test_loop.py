"""后台事件循环。"""

import asyncio

import pytest

from utils.loop import BackgroundLoop


async def _double(value):
    await asyncio.sleep(0)
    return value * 2


class TestBackgroundLoop:

    def test_submit_returns_future(self, loop):
        assert loop.submit(_double(21)).result(timeout=2.0) == 42

    def test_exception_is_carried_by_future(self, loop):
        async def _fail():
            raise KeyError("missing")

        with pytest.raises(KeyError):
            loop.submit(_fail()).result(timeout=2.0)

    def test_closed_loop_rejects_work(self):
        background = BackgroundLoop("closing")
        with background:
            pass

        assert background.closed
        coroutine = _double(1)
        with pytest.raises(RuntimeError):
            background.submit(coroutine)
        coroutine.close()
