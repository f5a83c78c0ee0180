from .ffmpeg_process import FfmpegLauncher, FfmpegProcess, ProgressParser
from .ffmpeg_schemas import (
    CaptureLauncher,
    CaptureProcess,
    CaptureRequest,
    ProgressCallback,
    SpawnError,
)

__all__ = [
    "CaptureLauncher",
    "CaptureProcess",
    "CaptureRequest",
    "FfmpegLauncher",
    "FfmpegProcess",
    "ProgressCallback",
    "ProgressParser",
    "SpawnError",
]
