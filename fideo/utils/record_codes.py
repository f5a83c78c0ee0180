"""Result codes shared by the resolver, the recording service and API clients.

ffmpeg's own exit status (0 on a clean finish, non-zero on a crash) is reported
unchanged on ``session_ended``; the codes below live in ranges that cannot
collide with a process exit status.
"""

from enum import IntEnum

SUCCESS_CODE = 0


class ResolveErrorCode(IntEnum):
    """Why a room URL could not be turned into stream URLs."""

    INVALID_URL = 1001
    PAGE_UNREACHABLE = 1002
    ROOM_OFFLINE = 1003
    PROXY_ERROR = 1004
    NETWORK_ERROR = 1005
    UNKNOWN = 1099


class RecordErrorCode(IntEnum):
    SPAWN_FAILED = 2001
    # Session ended because the user asked for it; not a failure
    USER_KILL_PROCESS = 2002
    TITLE_IN_USE = 2003
