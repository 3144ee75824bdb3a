"""清空会话后的一次性撤销。"""

from __future__ import annotations

import time
from typing import Callable


class UndoAction:
    """在时间窗口内最多执行一次的撤销动作。

    过期、已执行或被新的清空操作作废后，再调用只返回 False，不做任何事。
    clock 需返回单调递增的秒数，测试中可注入假时钟。
    """

    def __init__(
        self,
        restore: Callable[[], None],
        window_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._restore = restore
        self._clock = clock
        self._deadline = clock() + window_seconds
        self._used = False

    @property
    def available(self) -> bool:
        return not self._used and self._clock() < self._deadline

    def invalidate(self) -> None:
        self._used = True

    def __call__(self) -> bool:
        if not self.available:
            return False
        self._used = True
        self._restore()
        return True
