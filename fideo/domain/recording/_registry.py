"""Capture process registry.

Owns every running (or reserved) capture process, keyed by session title and,
inside a title, by sub-stream index. Process exits are not reported through
callbacks: each spawned process gets a watcher task that posts exactly one
``SubStreamExited`` event onto the exit channel.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import datetime

from loguru import logger

from fideo.services.ffmpeg import CaptureLauncher, CaptureProcess, CaptureRequest, ProgressCallback

from .recording_models import utc_now

# Exit status posted when waiting on a process failed unexpectedly
UNKNOWN_EXIT_CODE = -1


@dataclass(frozen=True, slots=True)
class SubStreamExited:
    title: str
    session_id: str
    sub_index: int
    code: int


@dataclass
class SubStreamHandle:
    session_id: str
    sub_index: int
    stream_url: str
    process: CaptureProcess
    started_at: datetime = field(default_factory=utc_now)
    running: bool = True


@dataclass
class _TitleEntry:
    # An entry without handles is a reservation
    session_id: str
    handles: dict[int, SubStreamHandle] = field(default_factory=dict)


class CaptureProcessRegistry:
    def __init__(self, launcher: CaptureLauncher, exit_channel: asyncio.Queue[SubStreamExited]):
        self._launcher = launcher
        self._exits = exit_channel
        self._entries: dict[str, _TitleEntry] = {}
        self._watchers: set[asyncio.Task] = set()

    # ==================== QUERIES ====================

    def is_empty(self) -> bool:
        return not self._entries

    def has_title(self, title: str) -> bool:
        return title in self._entries

    def is_reserved(self, title: str, session_id: str) -> bool:
        """True while ``title`` is still held by this session generation."""
        entry = self._entries.get(title)
        return entry is not None and entry.session_id == session_id

    def has_substreams(self, title: str) -> bool:
        entry = self._entries.get(title)
        return entry is not None and bool(entry.handles)

    def get_handle(self, title: str, session_id: str, sub_index: int) -> SubStreamHandle | None:
        entry = self._entries.get(title)
        if entry is None or entry.session_id != session_id:
            return None
        return entry.handles.get(sub_index)

    def handles(self, title: str) -> list[SubStreamHandle]:
        entry = self._entries.get(title)
        if entry is None:
            return []
        return [entry.handles[index] for index in sorted(entry.handles)]

    # ==================== MUTATIONS ====================

    def reserve(self, title: str, session_id: str) -> None:
        """Hold ``title`` before any process exists, so a stop can find it."""
        if title in self._entries:
            raise ValueError(f"Title {title!r} is already registered")
        self._entries[title] = _TitleEntry(session_id=session_id)

    def release(self, title: str, session_id: str) -> bool:
        """Drop the entry of this session generation if nothing runs under it."""
        entry = self._entries.get(title)
        if entry is None or entry.session_id != session_id:
            return False
        if entry.handles:
            raise ValueError(f"Title {title!r} still has {len(entry.handles)} running sub-streams")
        del self._entries[title]
        return True

    async def start(
        self,
        title: str,
        session_id: str,
        request: CaptureRequest,
        on_progress: ProgressCallback,
    ) -> SubStreamHandle | None:
        """Launch one capture process for ``request``.

        Returns None when the title was stopped before or during the spawn;
        a process spawned in that window is terminated right away.

        Raises:
            SpawnError: The launcher could not start the process.
        """
        if not self.is_reserved(title, session_id):
            return None

        process = await self._launcher.spawn(request, on_progress)
        handle = SubStreamHandle(
            session_id=session_id,
            sub_index=request.sub_index,
            stream_url=request.stream_url,
            process=process,
        )
        self._watch(title, handle)

        if not self.is_reserved(title, session_id):
            logger.info(f"Recording {title} was stopped while spawning #{request.sub_index}, terminating it")
            process.terminate()
            return None

        self._entries[title].handles[request.sub_index] = handle
        return handle

    def remove_handle(self, title: str, session_id: str, sub_index: int) -> SubStreamHandle | None:
        entry = self._entries.get(title)
        if entry is None or entry.session_id != session_id:
            return None
        return entry.handles.pop(sub_index, None)

    def stop_session(self, title: str) -> bool:
        """Terminate everything under ``title``, reservation included.

        Returns whether anything was registered. Exit events of the terminated
        processes still arrive later and find no handle.
        """
        entry = self._entries.pop(title, None)
        if entry is None:
            return False

        for handle in entry.handles.values():
            logger.info(f"Terminating capture {title}#{handle.sub_index} pid={handle.process.pid}")
            handle.process.terminate()
        return True

    def _watch(self, title: str, handle: SubStreamHandle) -> None:
        async def _wait_exit() -> None:
            try:
                code = await handle.process.wait()
            except Exception as e:
                logger.error(f"Waiting on capture {title}#{handle.sub_index} failed: {e}")
                code = UNKNOWN_EXIT_CODE
            handle.running = False
            self._exits.put_nowait(SubStreamExited(title, handle.session_id, handle.sub_index, code))

        task = asyncio.create_task(_wait_exit(), name=f"capture-exit:{title}#{handle.sub_index}")
        self._watchers.add(task)
        task.add_done_callback(self._watchers.discard)

    async def aclose(self, timeout: float = 10) -> None:
        """Terminate every process and wait for the watchers to observe the exits."""
        for title in list(self._entries):
            self.stop_session(title)

        if not self._watchers:
            return

        _, pending = await asyncio.wait(set(self._watchers), timeout=timeout)
        for task in pending:
            logger.warning(f"Capture watcher {task.get_name()} did not finish in {timeout}s")
            task.cancel()
