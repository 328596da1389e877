# app/application/scheduler.py
from __future__ import annotations

import asyncio
import contextlib
import datetime as dt
import logging
import os
from typing import Any, Awaitable, Callable, Optional

import schedule

EXPIRY_NOTIFY_AT = os.getenv("EXPIRY_NOTIFY_AT", "09:00")  # local wall clock
MAX_SLEEP_SECONDS = float(os.getenv("SCHEDULER_MAX_SLEEP", "60"))

logger = logging.getLogger(__name__)


class DailyScheduler:
    """
    Daily trigger on the app's event loop.

    - `schedule.Scheduler` keeps the wall-clock rule (every day at HH:MM);
      an asyncio task sleeps until the next due time and calls run_pending().
    - At most one run at a time: a trigger while a run is active is dropped.
    - state: "armed" | "running". Errors inside a run are logged and the
      scheduler goes back to "armed".
    """

    def __init__(
        self,
        job_fn: Callable[[], Awaitable[Any]],
        at: str = EXPIRY_NOTIFY_AT,
        *,
        max_sleep: float = MAX_SLEEP_SECONDS,
        name: str = "expiry-notify",
    ) -> None:
        self.job_fn = job_fn
        self.at = at
        self.name = name
        self.max_sleep = max(1.0, float(max_sleep))
        self._sched = schedule.Scheduler()
        self._sched.every().day.at(at).do(self._on_due)
        self._loop_task: asyncio.Task | None = None
        self._run_task: asyncio.Task | None = None
        self.runs_started = 0
        self.triggers_dropped = 0

    # ── state ──────────────────────────────────────────────────────
    @property
    def is_running(self) -> bool:
        return self._run_task is not None and not self._run_task.done()

    @property
    def state(self) -> str:
        return "running" if self.is_running else "armed"

    @property
    def next_run(self) -> Optional[dt.datetime]:
        return self._sched.next_run

    # ── lifecycle ──────────────────────────────────────────────────
    async def start(self):
        if self._loop_task is None or self._loop_task.done():
            self._loop_task = asyncio.create_task(self._loop())
            logger.info("[%s] armed, next run at %s", self.name, self.next_run)

    async def stop(self):
        for task in (self._loop_task, self._run_task):
            if task and not task.done():
                task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await task
        self._loop_task = None

    # ── triggering ─────────────────────────────────────────────────
    def trigger(self) -> bool:
        """Start a run now unless one is active. Must be called on the event loop."""
        if self.is_running:
            self.triggers_dropped += 1
            logger.warning("[%s] previous run still active - trigger discarded", self.name)
            return False
        self.runs_started += 1
        self._run_task = asyncio.get_running_loop().create_task(self._run())
        return True

    async def wait_idle(self):
        if self._run_task is not None:
            with contextlib.suppress(Exception):
                await self._run_task

    def _on_due(self):
        # return value must not be schedule.CancelJob
        self.trigger()

    async def _run(self):
        try:
            await self.job_fn()
        except Exception:
            logger.exception("[%s] run failed", self.name)

    async def _loop(self):
        while True:
            idle = self._sched.idle_seconds
            delay = self.max_sleep if idle is None else min(max(idle, 0.0), self.max_sleep)
            await asyncio.sleep(delay)
            self._sched.run_pending()
