from pydantic import BaseModel, Field, field_validator

from fideo.domain.recording import SessionInfo


class GetLiveUrlsIn(BaseModel):
    room_url: str = Field(min_length=1, description="Room page URL")
    proxy: str | None = Field(default=None, description="Proxy URL for the page request")
    cookie: str | None = Field(default=None, description="Cookie header for the page request")


class GetLiveUrlsOut(BaseModel):
    code: int = Field(description="0 on success, otherwise a resolve error code")
    live_urls: list[str] = Field(default_factory=list, description="Stream URLs in sub-stream order")


class StartRecordingIn(BaseModel):
    title: str = Field(min_length=1, description="Unique title of the recording")
    room_url: str = Field(min_length=1, description="Room page URL")
    proxy: str | None = Field(default=None, description="Proxy URL for resolving and capturing")
    cookie: str | None = Field(default=None, description="Cookie header for resolving and capturing")
    directory: str | None = Field(default=None, description="Output directory")


class StopRecordingIn(BaseModel):
    title: str = Field(min_length=1, description="Title of the recording to stop")

    @field_validator("title")
    @classmethod
    def strip_title(cls, v: str) -> str:
        return v.strip()


class RecordCodeOut(BaseModel):
    code: int = Field(description="0 on success, otherwise a resolve or record error code")


class ListSessionsOut(BaseModel):
    sessions: list[SessionInfo]
