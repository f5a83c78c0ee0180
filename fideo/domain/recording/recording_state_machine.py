"""Recording state machine for managing state transitions."""

from fideo.schemas import RecordingState


class RecordingStateMachine:
    """State machine for managing recording session state transitions.

    State flow with triggers:
    - PENDING_RESOLVE (title reserved by start_recording) -> SPAWNING | ENDED
    - SPAWNING (resolver returned stream URLs) -> RUNNING | ENDED
    - RUNNING (at least one capture process started) -> ENDED
    - ENDED is terminal

    Detailed triggers:
    1. PENDING_RESOLVE: Set when start_recording() reserves the title
    2. SPAWNING: Set when the resolver returns a non-empty URL list
    3. RUNNING: Set once the spawn loop registered at least one sub-stream
    4. ENDED: Set on resolver failure, when every spawn failed, when the last
       sub-stream exits, or when stop_recording() is called
    """

    TRANSITIONS: dict[RecordingState, set[RecordingState]] = {
        RecordingState.PENDING_RESOLVE: {
            RecordingState.SPAWNING,
            RecordingState.ENDED,
        },
        RecordingState.SPAWNING: {
            RecordingState.RUNNING,
            RecordingState.ENDED,
        },
        RecordingState.RUNNING: {RecordingState.ENDED},
        RecordingState.ENDED: set(),
    }

    TERMINAL_STATES: set[RecordingState] = {RecordingState.ENDED}

    @classmethod
    def can_transition(cls, current: RecordingState, new: RecordingState) -> bool:
        """Check if state transition is valid.

        Args:
            current: Current recording state
            new: Target state to transition to

        Returns:
            True if transition is valid, False otherwise
        """
        return new in cls.TRANSITIONS.get(current, set())

    @classmethod
    def is_terminal(cls, state: RecordingState) -> bool:
        return state in cls.TERMINAL_STATES

    @classmethod
    def get_valid_transitions(cls, state: RecordingState) -> set[RecordingState]:
        return cls.TRANSITIONS.get(state, set())

    @classmethod
    def get_valid_sources(cls, target: RecordingState) -> set[RecordingState]:
        """Get all states that can transition to the target state."""
        return {state for state, targets in cls.TRANSITIONS.items() if target in targets}
