"""Events pushed from the recording service to connected clients."""

from typing import Annotated, Literal

from pydantic import BaseModel, Field

# title -> sub-stream index -> latest ffmpeg progress block
ProgressSnapshot = dict[str, dict[int, dict[str, str]]]


class ProgressUpdateEvent(BaseModel):
    type: Literal["progress_update"] = "progress_update"
    snapshot: ProgressSnapshot = Field(default_factory=dict)


class SessionEndedEvent(BaseModel):
    type: Literal["session_ended"] = "session_ended"
    title: str
    code: int


class NotificationEvent(BaseModel):
    type: Literal["notification"] = "notification"
    title: str
    body: str


RecorderEvent = Annotated[
    ProgressUpdateEvent | SessionEndedEvent | NotificationEvent,
    Field(discriminator="type"),
]
