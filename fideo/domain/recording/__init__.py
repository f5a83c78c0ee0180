from .recording_domain import RecordingService
from .recording_models import RecordResult, SessionInfo, StreamConfig, SubStreamInfo
from .recording_state_machine import RecordingStateMachine

__all__ = [
    "RecordResult",
    "RecordingService",
    "RecordingStateMachine",
    "SessionInfo",
    "StreamConfig",
    "SubStreamInfo",
]
