"""Shared schemas: lifecycle states and client events."""

from .events import (
    NotificationEvent,
    ProgressSnapshot,
    ProgressUpdateEvent,
    RecorderEvent,
    SessionEndedEvent,
)
from .recording_state import RecordingState

__all__ = [
    "NotificationEvent",
    "ProgressSnapshot",
    "ProgressUpdateEvent",
    "RecorderEvent",
    "RecordingState",
    "SessionEndedEvent",
]
