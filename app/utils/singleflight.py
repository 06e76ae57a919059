"""
In-process single-flight: concurrent callers asking for the same key share
one in-flight coroutine instead of each running it.

The shared work runs as its own task and every caller, the first one
included, awaits it through ``asyncio.shield``. Cancelling any caller only
cancels that caller; the others still get the result.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict

logger = logging.getLogger(__name__)


class SingleFlight:
    def __init__(self) -> None:
        self._inflight: Dict[str, asyncio.Task] = {}

    def __len__(self) -> int:
        return len(self._inflight)

    def _release(self, key: str, task: asyncio.Task) -> None:
        if self._inflight.get(key) is task:
            del self._inflight[key]
        # mark retrieved so a failure nobody awaited is not reported as unhandled
        if not task.cancelled():
            task.exception()

    async def do(self, key: str, fn: Callable[[], Awaitable[Any]]) -> Any:
        task = self._inflight.get(key)
        if task is not None:
            logger.debug("single-flight join %s", key[:40])
        else:
            task = asyncio.ensure_future(fn())
            self._inflight[key] = task
            task.add_done_callback(lambda t: self._release(key, t))
        return await asyncio.shield(task)
