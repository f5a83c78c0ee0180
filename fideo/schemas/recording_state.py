"""Common enums used across schemas."""

from enum import Enum


class RecordingState(str, Enum):
    """Recording session lifecycle states.

    State Transition Flow:

    PENDING_RESOLVE → SPAWNING → RUNNING → ENDED
          ↓              ↓
        ENDED          ENDED

    State Descriptions:
    - PENDING_RESOLVE: Title reserved, waiting for the resolver to return stream URLs.
    - SPAWNING: Stream URLs known, capture processes being launched.
    - RUNNING: At least one capture process confirmed started.
    - ENDED: Every capture process exited, was stopped, or never started.

    Terminal states (no further transitions): ENDED
    """

    PENDING_RESOLVE = "pending_resolve"
    SPAWNING = "spawning"
    RUNNING = "running"
    ENDED = "ended"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def active_states(cls) -> list["RecordingState"]:
        """States in which a session holds its title."""
        return [
            RecordingState.PENDING_RESOLVE,
            RecordingState.SPAWNING,
            RecordingState.RUNNING,
        ]


__all__ = ["RecordingState"]
