"""Recording domain service - session lifecycle over registry, progress and broadcaster."""

from __future__ import annotations

import asyncio
import contextlib
from pathlib import Path

from loguru import logger

from fideo.schemas import ProgressSnapshot, ProgressUpdateEvent, RecordingState, SessionEndedEvent
from fideo.services.event_hub import EventPublisher
from fideo.services.ffmpeg import CaptureLauncher, CaptureRequest, ProgressCallback, SpawnError
from fideo.services.live_resolver import LiveSourceResolver, LiveUrlsQuery, LiveUrlsResult
from fideo.utils.record_codes import SUCCESS_CODE, RecordErrorCode, ResolveErrorCode

from ._broadcaster import ProgressBroadcaster
from ._progress import ProgressAggregator
from ._registry import CaptureProcessRegistry, SubStreamExited
from .recording_models import (
    RecordingSession,
    RecordResult,
    SessionInfo,
    StreamConfig,
    SubStreamInfo,
)
from .recording_state_machine import RecordingStateMachine


class RecordingService:
    """Orchestrates concurrent recordings.

    All methods run on one event loop. State is only mutated between awaits,
    so start, stop, exit handling and broadcaster ticks never need a lock.
    Process exits arrive on a single queue consumed by ``_consume_exits``.
    """

    def __init__(
        self,
        resolver: LiveSourceResolver,
        launcher: CaptureLauncher,
        publisher: EventPublisher,
        recordings_dir: str | Path = "recordings",
        progress_interval: float = 1.0,
    ):
        self._resolver = resolver
        self._publisher = publisher
        self.recordings_dir = Path(recordings_dir)

        self._exits: asyncio.Queue[SubStreamExited] = asyncio.Queue()
        self._registry = CaptureProcessRegistry(launcher, self._exits)
        self._progress = ProgressAggregator()
        self._broadcaster = ProgressBroadcaster(self._registry, self._progress, progress_interval)

        self._sessions: dict[str, RecordingSession] = {}
        self._consumer: asyncio.Task | None = None

    @property
    def registry(self) -> CaptureProcessRegistry:
        return self._registry

    @property
    def progress(self) -> ProgressAggregator:
        return self._progress

    @property
    def broadcaster(self) -> ProgressBroadcaster:
        return self._broadcaster

    # ==================== LIFECYCLE ====================

    def start(self) -> None:
        if self._consumer is None:
            self._consumer = asyncio.create_task(self._consume_exits(), name="recording-exits")
            logger.info("Recording service started")

    async def aclose(self) -> None:
        """Stop every recording and wait for the capture processes to exit."""
        for title in list(self._sessions):
            await self.stop_recording(title)

        await self._registry.aclose()
        await self.wait_idle()

        if self._consumer is not None:
            self._consumer.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._consumer
            self._consumer = None

        await self._broadcaster.aclose()
        logger.info("Recording service stopped")

    async def wait_idle(self) -> None:
        """Wait until every posted exit event has been handled."""
        await self._exits.join()

    # ==================== QUERIES ====================

    async def resolve_live_urls(self, query: LiveUrlsQuery) -> LiveUrlsResult:
        return await self._resolver.resolve_query(query)

    def list_sessions(self) -> list[SessionInfo]:
        return [
            SessionInfo(
                title=session.title,
                session_id=session.session_id,
                state=session.state,
                room_url=session.room_url,
                live_urls=list(session.live_urls),
                sub_streams=[
                    SubStreamInfo(
                        sub_index=handle.sub_index,
                        stream_url=handle.stream_url,
                        pid=handle.process.pid,
                        started_at=handle.started_at,
                        running=handle.running,
                    )
                    for handle in self._registry.handles(session.title)
                ],
                created_at=session.created_at,
            )
            for session in self._sessions.values()
        ]

    def is_active(self, title: str) -> bool:
        return title in self._sessions

    # ==================== COMMANDS ====================

    async def start_recording(self, config: StreamConfig) -> RecordResult:
        """Resolve the room and launch one capture process per stream URL.

        Returns SUCCESS_CODE once the session runs (or was stopped by the user
        before anything ran), a ResolveErrorCode when resolution failed,
        RecordErrorCode.SPAWN_FAILED when no process could be launched, and
        RecordErrorCode.TITLE_IN_USE when the title belongs to an active session.

        A session whose every spawn failed never ran. Its failure is reported
        through this return value instead of a session_ended event.
        """
        title = config.title
        if title in self._sessions:
            logger.warning(f"Recording {title} is already active, rejecting start")
            return RecordResult(code=RecordErrorCode.TITLE_IN_USE)

        session = RecordingSession(
            title=title,
            room_url=config.room_url,
            proxy=config.proxy,
            cookie=config.cookie,
            output_dir=Path(config.directory) if config.directory else self.recordings_dir,
        )
        self._sessions[title] = session
        self._registry.reserve(title, session.session_id)
        logger.info(f"Recording {title} reserved ({session.session_id}), resolving {config.room_url}")

        try:
            result = await self._resolver.resolve(config.room_url, proxy=config.proxy, cookie=config.cookie)
        except asyncio.CancelledError:
            self._abandon(session)
            raise
        except Exception as e:
            logger.exception(f"Resolver crashed for {config.room_url}: {e}")
            result = LiveUrlsResult(code=ResolveErrorCode.UNKNOWN)

        if not self._is_current(session):
            logger.info(f"Recording {title} was stopped while resolving, nothing spawned")
            return RecordResult(code=SUCCESS_CODE)

        if not result.ok:
            code = result.code if result.code != SUCCESS_CODE else ResolveErrorCode.ROOM_OFFLINE
            logger.warning(f"Recording {title} not started, resolve failed with code {code}")
            self._abandon(session)
            return RecordResult(code=code)

        session.live_urls = list(result.live_urls)
        self._set_state(session, RecordingState.SPAWNING)

        try:
            started = await self._spawn_substreams(session)
        except asyncio.CancelledError:
            self._abandon(session)
            raise
        except Exception as e:
            logger.exception(f"Launching captures for {title} crashed: {e}")
            self._abandon(session)
            return RecordResult(code=RecordErrorCode.SPAWN_FAILED)

        if not self._is_current(session):
            logger.info(f"Recording {title} was stopped while spawning")
            return RecordResult(code=SUCCESS_CODE)

        if started == 0:
            logger.error(f"Recording {title} failed, no capture process could be launched")
            self._abandon(session)
            return RecordResult(code=RecordErrorCode.SPAWN_FAILED)

        self._set_state(session, RecordingState.RUNNING)
        if not self._registry.has_substreams(title):
            # Every sub-stream already exited while its siblings were spawning
            self._finish(session)
            self._broadcaster.stop_if_empty()
            return RecordResult(code=SUCCESS_CODE)

        self._broadcaster.ensure_started(self._emit_progress)
        logger.info(f"Recording {title} running with {started}/{len(session.live_urls)} sub-streams")
        return RecordResult(code=SUCCESS_CODE)

    async def stop_recording(self, title: str) -> RecordResult:
        """Stop every sub-stream of ``title``; unknown titles are a no-op."""
        stopped = self._registry.stop_session(title)
        self._progress.clear_session(title)

        session = self._sessions.pop(title, None)
        if session is not None:
            self._set_state(session, RecordingState.ENDED)

        if stopped:
            logger.info(f"Recording {title} stopped by user")
            self._publisher.publish(SessionEndedEvent(title=title, code=RecordErrorCode.USER_KILL_PROCESS))
        else:
            logger.debug(f"Stop requested for {title}, nothing was running")

        self._broadcaster.stop_if_empty()
        return RecordResult(code=SUCCESS_CODE)

    # ==================== INTERNALS ====================

    async def _spawn_substreams(self, session: RecordingSession) -> int:
        started = 0
        for sub_index, stream_url in enumerate(session.live_urls):
            request = CaptureRequest(
                title=session.title,
                sub_index=sub_index,
                session_id=session.session_id,
                stream_url=stream_url,
                output_dir=session.output_dir,
                proxy=session.proxy,
                cookie=session.cookie,
            )
            try:
                handle = await self._registry.start(
                    session.title,
                    session.session_id,
                    request,
                    self._progress_sink(session.title, session.session_id, sub_index),
                )
            except SpawnError as e:
                logger.error(str(e))
                session.note_exit_code(RecordErrorCode.SPAWN_FAILED)
                continue

            if handle is None:
                break
            started += 1
        return started

    def _progress_sink(self, title: str, session_id: str, sub_index: int) -> ProgressCallback:
        def _on_progress(metrics: dict[str, str]) -> None:
            # Late output of a stopped or exited process must not resurrect its record
            if self._registry.get_handle(title, session_id, sub_index) is None:
                return
            self._progress.update(title, sub_index, metrics)

        return _on_progress

    async def _consume_exits(self) -> None:
        while True:
            event = await self._exits.get()
            try:
                self._handle_exit(event)
            except Exception:
                logger.exception(f"Failed to handle exit of {event.title}#{event.sub_index}")
            finally:
                self._exits.task_done()

    def _handle_exit(self, event: SubStreamExited) -> None:
        handle = self._registry.remove_handle(event.title, event.session_id, event.sub_index)
        if handle is None:
            logger.debug(f"Ignoring exit of {event.title}#{event.sub_index}, already stopped")
        else:
            logger.info(f"Capture {event.title}#{event.sub_index} exited with {event.code}")
            self._progress.clear(event.title, event.sub_index)

            session = self._sessions.get(event.title)
            if session is not None and session.session_id == event.session_id:
                session.note_exit_code(event.code)
                if session.state == RecordingState.RUNNING and not self._registry.has_substreams(event.title):
                    self._finish(session)

        self._broadcaster.stop_if_empty()

    def _finish(self, session: RecordingSession) -> None:
        """End a session whose sub-streams all exited on their own."""
        self._set_state(session, RecordingState.ENDED)
        self._registry.release(session.title, session.session_id)
        self._progress.clear_session(session.title)
        self._sessions.pop(session.title, None)

        code = session.end_code
        logger.info(f"Recording {session.title} ended with code {code}")
        self._publisher.publish(SessionEndedEvent(title=session.title, code=code))

    def _abandon(self, session: RecordingSession) -> None:
        """End a session that never reached RUNNING, without a session_ended event."""
        if self._is_current(session):
            # Also terminates anything spawned before a cancellation
            self._registry.stop_session(session.title)
            self._progress.clear_session(session.title)
            self._sessions.pop(session.title, None)
        if session.state != RecordingState.ENDED:
            self._set_state(session, RecordingState.ENDED)
        self._broadcaster.stop_if_empty()

    def _is_current(self, session: RecordingSession) -> bool:
        return self._sessions.get(session.title) is session and self._registry.is_reserved(
            session.title, session.session_id
        )

    def _set_state(self, session: RecordingSession, new_state: RecordingState) -> None:
        """
        Raises:
            ValueError: If state transition is invalid
        """
        if not RecordingStateMachine.can_transition(session.state, new_state):
            raise ValueError(f"Invalid state transition for {session.title}: {session.state} -> {new_state}")
        logger.debug(f"Recording {session.title}: {session.state} -> {new_state}")
        session.state = new_state

    def _emit_progress(self, snapshot: ProgressSnapshot) -> None:
        self._publisher.publish(ProgressUpdateEvent(snapshot=snapshot))
