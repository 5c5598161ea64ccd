# aso_emulator/scheduler.py
#
# ASO Observatory – Cooperative scheduler
#
# Named periodic tasks on a single asyncio loop. Tick functions are plain
# synchronous callables, so each tick runs to completion before any other
# task (or HTTP handler) gets the loop.

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, Optional, Tuple

logger = logging.getLogger(__name__)


@dataclass
class PeriodicTask:
    name: str
    period: float
    fn: Callable[[], object]
    fired: int = 0
    running: bool = False
    handle: Optional[asyncio.Task] = field(default=None, repr=False)

    async def _loop(self) -> None:
        # interval semantics: first fire happens one period after start
        while self.running:
            await asyncio.sleep(self.period)
            if not self.running:
                break
            try:
                self.fn()
                self.fired += 1
            except Exception as exc:
                logger.error("task %s tick failed: %s: %s", self.name, type(exc).__name__, exc)


class Scheduler:
    def __init__(self) -> None:
        self._tasks: Dict[str, PeriodicTask] = {}

    @property
    def names(self) -> Tuple[str, ...]:
        return tuple(self._tasks)

    @property
    def running(self) -> bool:
        return any(t.running for t in self._tasks.values())

    def add(self, name: str, period: float, fn: Callable[[], object]) -> PeriodicTask:
        if name in self._tasks:
            raise ValueError(f"task {name!r} already registered")
        if period <= 0:
            raise ValueError("period must be > 0")
        task = PeriodicTask(name=name, period=period, fn=fn)
        self._tasks[name] = task
        return task

    def start(self) -> None:
        """Launch every registered task that is not already running. Needs a running loop."""
        for task in self._tasks.values():
            if task.running:
                continue
            task.running = True
            task.handle = asyncio.create_task(task._loop(), name=f"aso:{task.name}")
            logger.info("task %s started (every %.2fs)", task.name, task.period)

    async def cancel(self, name: str) -> None:
        task = self._tasks[name]
        # flip the flag first so a wake-up racing the cancel cannot fire
        task.running = False
        handle, task.handle = task.handle, None
        if handle is not None and not handle.done():
            handle.cancel()
            try:
                await handle
            except asyncio.CancelledError:
                pass
        logger.info("task %s stopped after %d ticks", task.name, task.fired)

    async def stop(self) -> None:
        for name in list(self._tasks):
            if self._tasks[name].running or self._tasks[name].handle is not None:
                await self.cancel(name)
