"""Shared progress broadcaster: one periodic task for all sessions."""

from __future__ import annotations

import asyncio
import contextlib
from typing import TYPE_CHECKING, Callable

from loguru import logger

from fideo.schemas import ProgressSnapshot

if TYPE_CHECKING:
    from ._progress import ProgressAggregator
    from ._registry import CaptureProcessRegistry

EmitSnapshot = Callable[[ProgressSnapshot], None]


class ProgressBroadcaster:
    """Periodically emits the aggregated progress snapshot.

    Runs while at least one session holds registry or progress state; the
    owner calls ``stop_if_empty`` after every teardown.
    """

    def __init__(
        self,
        registry: CaptureProcessRegistry,
        progress: ProgressAggregator,
        interval: float = 1.0,
    ):
        self._registry = registry
        self._progress = progress
        self.interval = interval
        self._task: asyncio.Task | None = None
        self._emit: EmitSnapshot | None = None

    @property
    def is_running(self) -> bool:
        return self._task is not None

    def ensure_started(self, emit: EmitSnapshot) -> None:
        if self._task is not None:
            return
        self._emit = emit
        self._task = asyncio.create_task(self._run(), name="progress-broadcaster")
        logger.debug(f"Progress broadcaster started, interval={self.interval}s")

    def stop_if_empty(self) -> bool:
        """Stop after one final snapshot when no session has state left."""
        if self._task is None:
            return False
        if not (self._registry.is_empty() and self._progress.is_empty()):
            return False

        self._publish()
        self._task.cancel()
        self._task = None
        self._emit = None
        logger.debug("Progress broadcaster stopped, no active recordings")
        return True

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            self._publish()

    def _publish(self) -> None:
        if self._emit is None:
            return
        try:
            self._emit(self._progress.snapshot())
        except Exception:
            logger.exception("Failed to emit progress snapshot")

    async def aclose(self) -> None:
        task, self._task = self._task, None
        self._emit = None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
