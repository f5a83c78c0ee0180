"""Recording domain models."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator

from fideo.schemas import RecordingState
from fideo.utils.record_codes import SUCCESS_CODE


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class StreamConfig(BaseModel):
    """Parameters for starting a recording."""

    title: str = Field(min_length=1, description="Unique title of the recording session")
    room_url: str = Field(min_length=1, description="Room page URL to resolve")
    proxy: str | None = None
    cookie: str | None = None
    directory: str | None = Field(default=None, description="Output directory, defaults to RECORDINGS_DIR")

    @field_validator("title", "room_url")
    @classmethod
    def strip_required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v

    @field_validator("proxy", "cookie", "directory")
    @classmethod
    def blank_to_none(cls, v: str | None) -> str | None:
        if v is None:
            return v
        return v.strip() or None


class RecordResult(BaseModel):
    code: int = SUCCESS_CODE


class SubStreamInfo(BaseModel):
    sub_index: int
    stream_url: str
    pid: int | None = None
    started_at: datetime
    running: bool


class SessionInfo(BaseModel):
    """Read-only view of an active recording session."""

    title: str
    session_id: str
    state: RecordingState
    room_url: str
    live_urls: list[str] = Field(default_factory=list)
    sub_streams: list[SubStreamInfo] = Field(default_factory=list)
    created_at: datetime


@dataclass
class RecordingSession:
    """Controller-owned state of one recording session."""

    title: str
    room_url: str
    output_dir: Path
    proxy: str | None = None
    cookie: str | None = None
    session_id: str = field(default_factory=lambda: uuid4().hex[:12])
    state: RecordingState = RecordingState.PENDING_RESOLVE
    live_urls: list[str] = field(default_factory=list)
    exit_code: int | None = None
    created_at: datetime = field(default_factory=utc_now)

    def note_exit_code(self, code: int) -> None:
        """Keep the first non-zero code; a clean exit only fills an empty slot."""
        if code != SUCCESS_CODE and self.exit_code in (None, SUCCESS_CODE):
            self.exit_code = code
        elif self.exit_code is None:
            self.exit_code = code

    @property
    def end_code(self) -> int:
        return SUCCESS_CODE if self.exit_code is None else self.exit_code
