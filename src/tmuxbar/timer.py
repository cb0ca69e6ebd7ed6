"""Timer - repeating task scheduler

Named interval tasks driven by one tick loop. Sync and async callbacks are
both accepted; a failing callback is logged and does not stop the others.

Usage:
    timer = Timer()
    timer.register_interval("refresh_sessions", 3.0, reconciler.refresh_sessions)
    timer.start()

    # new period, previous schedule discarded
    timer.rearm_interval("refresh_sessions", 5.0)

    timer.stop()
"""

import asyncio
import inspect
import time
from dataclasses import dataclass
from typing import Any, Callable, Coroutine

from .config import METRICS_ENABLED
from .telemetry import get_logger, metrics

logger = get_logger(__name__)

Callback = Callable[[], Any | Coroutine[Any, Any, Any]]


def _now() -> float:
    """Loop clock when a loop is running, otherwise the same monotonic source."""
    try:
        return asyncio.get_running_loop().time()
    except RuntimeError:
        return time.monotonic()


@dataclass
class IntervalTask:
    """Repeating task"""
    name: str
    interval: float  # seconds
    callback: Callback
    last_run: float = 0.0  # loop time of the previous run


class Timer:
    """Single-loop scheduler for interval tasks.

    Lifecycle is owned by whoever calls ``start``/``stop`` (the reconciler
    for the refresh task).
    """

    def __init__(self, tick_interval: float | None = None):
        """
        Args:
            tick_interval: Tick period in seconds; None uses the configured default
        """
        from . import config
        self._tick_interval = tick_interval or config.TIMER_TICK_INTERVAL
        self._interval_tasks: dict[str, IntervalTask] = {}
        self._running = False
        self._task: asyncio.Task | None = None
        # Bumped by stop(); a loop from an older generation exits quietly
        self._generation = 0

    def register_interval(
        self,
        name: str,
        interval: float,
        callback: Callback,
        run_immediately: bool = True,
    ) -> None:
        """Register (or replace) a repeating task.

        Args:
            name: Task name, used for logging and cancellation
            interval: Period in seconds
            callback: Sync or async callable
            run_immediately: If False the first run happens one full period
                from now
        """
        self._interval_tasks[name] = IntervalTask(
            name=name,
            interval=interval,
            callback=callback,
            last_run=0.0 if run_immediately else _now(),
        )
        logger.debug(f"[Timer] Registered interval task: {name} ({interval}s)")

    def rearm_interval(self, name: str, interval: float) -> bool:
        """Restart a task's schedule with a new period.

        The next run is one full ``interval`` from now; missed periods are
        not caught up.

        Returns:
            False if no task with that name exists
        """
        task = self._interval_tasks.get(name)
        if task is None:
            return False
        self._interval_tasks[name] = IntervalTask(
            name=name,
            interval=interval,
            callback=task.callback,
            last_run=_now(),
        )
        logger.info(f"[Timer] Re-armed {name}: {task.interval}s -> {interval}s")
        return True

    def unregister_interval(self, name: str) -> bool:
        """Remove a repeating task.

        Returns:
            Whether a task was removed
        """
        if name in self._interval_tasks:
            del self._interval_tasks[name]
            logger.debug(f"[Timer] Unregistered interval task: {name}")
            return True
        return False

    def start(self) -> asyncio.Task:
        """Run the tick loop as a background task on the current loop."""
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self.run())
        return self._task

    async def run(self) -> None:
        """Tick until ``stop()`` is called."""
        if self._running:
            logger.warning("[Timer] Already running")
            return

        self._running = True
        generation = self._generation
        logger.info(f"[Timer] Started (tick={self._tick_interval}s)")

        try:
            while self._running and generation == self._generation:
                await self._tick()
                await asyncio.sleep(self._tick_interval)
        except asyncio.CancelledError:
            logger.info("[Timer] Cancelled")
        finally:
            if generation == self._generation:
                self._running = False

    def stop(self) -> None:
        """Stop the tick loop. Idempotent; start() may be called again right away."""
        self._generation += 1
        if self._task and not self._task.done():
            self._task.cancel()
        self._task = None

        if not self._running:
            return

        self._running = False
        logger.info("[Timer] Stopping...")

    async def _tick(self) -> None:
        now = _now()
        for task in list(self._interval_tasks.values()):
            if now - task.last_run >= task.interval:
                task.last_run = now
                await self._execute_callback(task.name, task.callback)

    async def _execute_callback(self, name: str, callback: Callback) -> None:
        """Run one callback, isolating its exceptions."""
        try:
            result = callback()
            if inspect.iscoroutine(result):
                await result
        except Exception as e:
            logger.error(f"[Timer] Task '{name}' failed: {e}")
            if METRICS_ENABLED:
                metrics.inc("timer.errors", {"task": name})

    # === Introspection (tests) ===

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def interval_task_count(self) -> int:
        return len(self._interval_tasks)

    def get_interval_tasks(self) -> list[str]:
        return list(self._interval_tasks.keys())

    def get_interval(self, name: str) -> float | None:
        task = self._interval_tasks.get(name)
        return task.interval if task else None
