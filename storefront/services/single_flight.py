# services/single_flight.py
"""
Per-key single-flight for async producers.
- The first caller for a key starts the computation
- Concurrent callers for the same key await the same task
- The entry is dropped as soon as the task settles
"""

import asyncio
from typing import Any, Awaitable, Callable, Dict, List


class SingleFlight:
    def __init__(self):
        self._calls: Dict[str, asyncio.Task] = {}

    def _forget(self, key: str, task: asyncio.Task) -> None:
        if self._calls.get(key) is task:
            self._calls.pop(key, None)

    async def do(self, key: str, fn: Callable[[], Awaitable[Any]]) -> Any:
        task = self._calls.get(key)
        if task is None:
            task = asyncio.ensure_future(fn())
            self._calls[key] = task
            task.add_done_callback(lambda t, k=key: self._forget(k, t))
        # shield: a cancelled waiter must not cancel the shared computation
        return await asyncio.shield(task)

    def in_flight(self) -> List[str]:
        return list(self._calls.keys())
