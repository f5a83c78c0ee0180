"""ffmpeg capture processes.

Each capture copies one stream URL to disk with ``-c copy`` and reports
progress through ``-progress pipe:1``: blocks of ``key=value`` lines closed
by a ``progress=continue`` (or ``progress=end``) line.
"""

from __future__ import annotations

import asyncio
import re
from datetime import datetime
from pathlib import Path

from loguru import logger

from fideo.services.ffmpeg.ffmpeg_schemas import (
    CaptureRequest,
    ProgressCallback,
    SpawnError,
)

_UNSAFE_FILENAME_RE = re.compile(r'[\\/:*?"<>|\s]+')


class ProgressParser:
    """Accumulates ffmpeg ``-progress`` lines into complete blocks."""

    def __init__(self):
        self._block: dict[str, str] = {}

    def feed(self, line: str) -> dict[str, str] | None:
        """Consume one line; return the finished block when a ``progress=`` line closes it."""
        line = line.strip()
        if "=" not in line:
            return None

        key, value = line.split("=", 1)
        key, value = key.strip(), value.strip()
        if key != "progress":
            self._block[key] = value
            return None

        block = self._block
        block["progress"] = value
        self._block = {}
        return block


def build_output_path(request: CaptureRequest, fmt: str, now: datetime | None = None) -> Path:
    # Sanitised titles alone can collide; the session id keeps names unique
    stamp = (now or datetime.now()).strftime("%Y%m%d-%H%M%S")
    safe_title = _UNSAFE_FILENAME_RE.sub("_", request.title).strip("_") or "recording"
    parts = [safe_title, stamp]
    if request.session_id:
        parts.append(request.session_id)
    parts.append(str(request.sub_index))
    return request.output_dir / f"{'-'.join(parts)}.{fmt}"


def build_ffmpeg_command(ffmpeg_path: str, request: CaptureRequest, output_path: Path) -> list[str]:
    cmd = [ffmpeg_path, "-hide_banner", "-nostats", "-loglevel", "error", "-y"]
    if request.proxy:
        cmd += ["-http_proxy", request.proxy]
    if request.cookie:
        cmd += ["-headers", f"Cookie: {request.cookie}\r\n"]
    cmd += ["-i", request.stream_url, "-c", "copy", "-progress", "pipe:1", str(output_path)]
    return cmd


class FfmpegProcess:
    """One running ffmpeg capture plus the tasks draining its pipes."""

    def __init__(
        self,
        process: asyncio.subprocess.Process,
        request: CaptureRequest,
        output_path: Path,
        on_progress: ProgressCallback,
    ):
        self._process = process
        self.request = request
        self.output_path = output_path
        self._on_progress = on_progress
        self._last_error: str | None = None
        self._readers = [
            asyncio.create_task(self._read_progress(), name=f"ffmpeg-progress:{request.title}#{request.sub_index}"),
            asyncio.create_task(self._read_errors(), name=f"ffmpeg-stderr:{request.title}#{request.sub_index}"),
        ]

    @property
    def pid(self) -> int | None:
        return self._process.pid

    async def _read_progress(self) -> None:
        stdout = self._process.stdout
        if stdout is None:
            return
        parser = ProgressParser()
        while True:
            line = await stdout.readline()
            if not line:
                break
            block = parser.feed(line.decode(errors="ignore"))
            if block is not None:
                self._on_progress(block)

    async def _read_errors(self) -> None:
        stderr = self._process.stderr
        if stderr is None:
            return
        while True:
            line = await stderr.readline()
            if not line:
                break
            text = line.decode(errors="ignore").strip()
            if text:
                self._last_error = text
                logger.debug(f"ffmpeg [{self.request.title}#{self.request.sub_index}]: {text}")

    async def wait(self) -> int:
        code = await self._process.wait()
        await asyncio.gather(*self._readers, return_exceptions=True)
        if code != 0:
            logger.warning(
                f"ffmpeg [{self.request.title}#{self.request.sub_index}] exited with {code}: {self._last_error}"
            )
        return code

    def terminate(self) -> None:
        if self._process.returncode is not None:
            return
        try:
            # SIGTERM lets ffmpeg flush and close the output file
            self._process.terminate()
        except ProcessLookupError:
            pass


class FfmpegLauncher:
    """Spawns ffmpeg capture processes."""

    def __init__(self, ffmpeg_path: str = "ffmpeg", fmt: str = "ts"):
        self.ffmpeg_path = ffmpeg_path
        self.fmt = fmt

    async def spawn(self, request: CaptureRequest, on_progress: ProgressCallback) -> FfmpegProcess:
        output_path = build_output_path(request, self.fmt)
        cmd = build_ffmpeg_command(self.ffmpeg_path, request, output_path)

        try:
            output_path.parent.mkdir(parents=True, exist_ok=True)
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except (OSError, ValueError) as e:
            # ValueError: an argument holds a NUL byte
            raise SpawnError(request, f"{type(e).__name__}: {e}") from e

        logger.info(
            f"Started ffmpeg pid={process.pid} for {request.title}#{request.sub_index} -> {output_path}"
        )
        return FfmpegProcess(process, request, output_path, on_progress)
