"""Serialized queue of deferred plugin work.

Plugins request idle callbacks while lifecycle events are in flight. Each
request appends one task and extends a single chain of continuations, so
drains never overlap and tasks run in submission order. Before termination a
continuation runs exactly one task; after it, a continuation drains the whole
backlog at once.
"""
import asyncio
import inspect
from collections import deque
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

from device_artifacts.utils.logger import get_logger

logger = get_logger(__name__)

IdleCallback = Callable[[], Awaitable[Any] | Any]
ErrorHandler = Callable[[BaseException, str, str], None]

IDLE_PHASE = "on_idle_callback"


@dataclass
class IdleTask:
    callback: IdleCallback
    caller: str


class IdleTaskQueue:
    def __init__(self, error_handler: ErrorHandler):
        self._error_handler = error_handler
        self._tasks: deque[IdleTask] = deque()
        self._tail: asyncio.Task | None = None
        self._terminated = False

    @property
    def terminated(self) -> bool:
        return self._terminated

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def mark_terminated(self) -> None:
        self._terminated = True

    def request(self, callback: IdleCallback, caller: str) -> None:
        """Enqueue a callback and chain one drain step after the current tail.

        Must be called from within the running event loop. The tail is read
        and replaced without yielding, so concurrent requesters always chain
        off distinct predecessors.
        """
        self._tasks.append(IdleTask(callback=callback, caller=caller))
        previous = self._tail
        self._tail = asyncio.get_running_loop().create_task(self._continue_after(previous))

    async def drained(self) -> None:
        """Wait until every continuation chained so far has finished."""
        while self._tail is not None:
            tail = self._tail
            await asyncio.shield(tail)
            if tail is self._tail:
                return

    async def run_next(self) -> None:
        if not self._tasks:
            return
        task = self._tasks.popleft()
        await self._run(task)

    async def run_all(self) -> None:
        tasks = list(self._tasks)
        self._tasks.clear()
        if tasks:
            logger.debug(f"Draining {len(tasks)} idle task(s) after termination")
        await asyncio.gather(*(self._run(task) for task in tasks))

    async def _continue_after(self, previous: asyncio.Task | None) -> None:
        if previous is not None:
            try:
                await asyncio.shield(previous)
            except asyncio.CancelledError:
                # a cancelled step must not stall the steps chained after it
                if not previous.cancelled():
                    raise
        if self._terminated:
            await self.run_all()
        else:
            await self.run_next()

    async def _run(self, task: IdleTask) -> None:
        try:
            result = task.callback()
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            self._error_handler(e, task.caller, IDLE_PHASE)
