from __future__ import annotations

from pathlib import Path
from typing import Callable, Protocol

from pydantic import BaseModel, Field

ProgressCallback = Callable[[dict[str, str]], None]


class CaptureRequest(BaseModel):
    """Everything needed to launch one capture process for one stream URL."""

    title: str
    sub_index: int = Field(ge=0)
    session_id: str | None = Field(default=None, description="Recording session the capture belongs to")
    stream_url: str
    output_dir: Path
    proxy: str | None = None
    cookie: str | None = None


class SpawnError(Exception):
    """The capture process could not be launched."""

    def __init__(self, request: CaptureRequest, reason: str):
        super().__init__(f"cannot launch capture for {request.title}#{request.sub_index}: {reason}")
        self.request = request
        self.reason = reason


class CaptureProcess(Protocol):
    """A running capture process as seen by the registry."""

    @property
    def pid(self) -> int | None: ...

    async def wait(self) -> int:
        """Wait for termination and return the exit status."""
        ...

    def terminate(self) -> None:
        """Ask the process to stop; safe to call after it already exited."""
        ...


class CaptureLauncher(Protocol):
    async def spawn(self, request: CaptureRequest, on_progress: ProgressCallback) -> CaptureProcess: ...
