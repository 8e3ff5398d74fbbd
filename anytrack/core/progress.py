from __future__ import annotations

import random
from collections.abc import Callable
from dataclasses import dataclass

from ..scheduling import Scheduler, TimerHandle

PARSING_PERCENT = 95.0
COMPLETE_PERCENT = 100.0


@dataclass(frozen=True)
class ProgressProfile:
    interval_ms: int
    max_step: float
    ceiling: float


FILE_CONVERT_PROFILE = ProgressProfile(interval_ms=500, max_step=15.0, ceiling=85.0)
# Remote extraction is slower, so the bar creeps and stops lower.
URL_CONVERT_PROFILE = ProgressProfile(interval_ms=800, max_step=8.0, ceiling=80.0)
METADATA_EDIT_PROFILE = ProgressProfile(interval_ms=400, max_step=20.0, ceiling=85.0)


def advance_progress(current: float, *, step: float, ceiling: float) -> float:
    if current >= ceiling:
        return current
    return min(ceiling, current + max(0.0, step))


class ProgressHandle:
    """A running simulation; ``cancel`` disarms the pending tick immediately."""

    def __init__(
        self,
        scheduler: Scheduler,
        profile: ProgressProfile,
        on_progress: Callable[[float], None],
        rng: random.Random,
        start: float = 0.0,
    ) -> None:
        self._scheduler = scheduler
        self._profile = profile
        self._on_progress = on_progress
        self._rng = rng
        self._timer: TimerHandle | None = None
        self._cancelled = False
        self.percent = float(start)
        self.ticks = 0

    @property
    def active(self) -> bool:
        return not self._cancelled

    def _schedule(self) -> None:
        self._timer = self._scheduler.after(self._profile.interval_ms, self._tick)

    def _tick(self) -> None:
        self._timer = None
        if self._cancelled:
            return
        self.ticks += 1
        step = self._rng.uniform(0.0, self._profile.max_step)
        updated = advance_progress(
            self.percent,
            step=step,
            ceiling=self._profile.ceiling,
        )
        if updated != self.percent:
            self.percent = updated
            self._on_progress(updated)
        if not self._cancelled:
            self._schedule()

    def cancel(self) -> None:
        if self._cancelled:
            return
        self._cancelled = True
        timer, self._timer = self._timer, None
        if timer is not None:
            timer.cancel()


class ProgressSimulator:
    def __init__(self, scheduler: Scheduler, *, rng: random.Random | None = None) -> None:
        self._scheduler = scheduler
        self._rng = rng or random.Random()

    def start(
        self,
        profile: ProgressProfile,
        on_progress: Callable[[float], None],
        *,
        start: float = 0.0,
    ) -> ProgressHandle:
        handle = ProgressHandle(
            self._scheduler,
            profile,
            on_progress,
            self._rng,
            start=start,
        )
        handle._schedule()
        return handle
