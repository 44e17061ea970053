"""Progress reporting helpers for the page pool."""

from __future__ import annotations

import asyncio
import os
from typing import Protocol

from tqdm import tqdm


def default_worker_count(requested: int | None = None) -> int:
    """Return the pool size: ``requested`` when given, else the logical CPU count."""
    if requested is not None:
        if requested < 1:
            raise ValueError("workers must be >= 1")
        return requested
    return max(1, os.cpu_count() or 1)


class ProgressReporter(Protocol):
    """Lightweight progress reporter abstraction."""

    def start(self, total: int) -> None: ...

    def increment(self) -> None: ...

    def close(self) -> None: ...


class TqdmProgressReporter:
    """Progress reporter backed by tqdm, counting finished pages."""

    def __init__(self, desc: str, update_interval: float = 1.0) -> None:
        self._desc = desc
        self._update_interval = update_interval
        self._pbar: tqdm | None = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._tick_handle: asyncio.TimerHandle | None = None

    def start(self, total: int) -> None:
        self._pbar = tqdm(
            total=total,
            desc=self._desc,
            unit="page",
            smoothing=0,
            leave=False,
        )
        try:
            self._loop = asyncio.get_running_loop()
        except RuntimeError:
            self._loop = None
        if self._loop and self._update_interval > 0:
            self._schedule_tick()

    def _schedule_tick(self) -> None:
        if not self._loop or self._tick_handle is not None or self._pbar is None:
            return
        self._tick_handle = self._loop.call_later(self._update_interval, self._tick)

    def _tick(self) -> None:
        # Keeps the elapsed/rate columns moving while a slow subprocess holds every slot.
        self._tick_handle = None
        if self._pbar is None:
            return
        self._pbar.refresh()
        if self._loop and self._update_interval > 0:
            self._schedule_tick()

    def increment(self) -> None:
        if self._pbar is not None:
            self._pbar.update(1)

    def close(self) -> None:
        if self._tick_handle is not None:
            self._tick_handle.cancel()
            self._tick_handle = None
        if self._pbar is not None:
            self._pbar.close()
            self._pbar = None
        self._loop = None


__all__ = ["ProgressReporter", "TqdmProgressReporter", "default_worker_count"]
