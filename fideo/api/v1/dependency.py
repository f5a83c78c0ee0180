from typing import Annotated

from fastapi import Depends
from fastapi.requests import HTTPConnection

from fideo.domain.recording import RecordingService
from fideo.services.desktop import Desktop
from fideo.services.event_hub import EventHub
from fideo.utils.app_errors import AppError, AppErrorCode, HttpStatusCode


def _require_state(conn: HTTPConnection, name: str):
    value = getattr(conn.app.state, name, None)
    if value is None:
        raise AppError(
            errcode=AppErrorCode.E_SERVICE_UNAVAILABLE,
            errmesg=f"{name} is not initialized",
            status_code=HttpStatusCode.SERVICE_UNAVAILABLE,
        )
    return value


def get_recording_service(conn: HTTPConnection) -> RecordingService:
    return _require_state(conn, "recording_service")


def get_event_hub(conn: HTTPConnection) -> EventHub:
    return _require_state(conn, "event_hub")


def get_desktop(conn: HTTPConnection) -> Desktop:
    return _require_state(conn, "desktop")


RecordingServiceDep = Annotated[RecordingService, Depends(get_recording_service)]
EventHubDep = Annotated[EventHub, Depends(get_event_hub)]
DesktopDep = Annotated[Desktop, Depends(get_desktop)]
