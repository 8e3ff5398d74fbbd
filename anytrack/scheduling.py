from __future__ import annotations

import asyncio
import threading
from collections.abc import Callable
from typing import Protocol

Spawner = Callable[[Callable[[], None]], None]


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    """Owner-thread event source the controller is driven by.

    ``after`` arms a one-shot timer on the owner thread. ``post`` may be
    called from any thread and runs ``callback(*args)`` on the owner thread.
    """

    def after(self, delay_ms: int, callback: Callable[[], None]) -> TimerHandle: ...

    def post(self, callback: Callable[..., None], *args: object) -> None: ...


class AsyncioScheduler:
    def __init__(self, loop: asyncio.AbstractEventLoop) -> None:
        self._loop = loop

    def after(self, delay_ms: int, callback: Callable[[], None]) -> asyncio.TimerHandle:
        return self._loop.call_later(max(0, int(delay_ms)) / 1000.0, callback)

    def post(self, callback: Callable[..., None], *args: object) -> None:
        if self._loop.is_closed():
            return
        try:
            self._loop.call_soon_threadsafe(callback, *args)
        except RuntimeError:
            # Loop closed between the check and the call.
            return


def spawn_daemon(target: Callable[[], None]) -> None:
    thread = threading.Thread(target=target, daemon=True)
    thread.start()
