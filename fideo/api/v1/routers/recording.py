import asyncio

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from loguru import logger

from fideo.api.v1.dependency import EventHubDep, RecordingServiceDep
from fideo.api.v1.schemas.base import CwOut
from fideo.api.v1.schemas.recording import (
    GetLiveUrlsIn,
    GetLiveUrlsOut,
    ListSessionsOut,
    RecordCodeOut,
    StartRecordingIn,
    StopRecordingIn,
)
from fideo.domain.recording import StreamConfig
from fideo.services.live_resolver import LiveUrlsQuery

router = APIRouter(prefix="/recording")


@router.post("/get_live_urls")
async def get_live_urls(body: GetLiveUrlsIn, service: RecordingServiceDep) -> CwOut[GetLiveUrlsOut]:
    """Resolve a room page into stream URLs without recording."""
    result = await service.resolve_live_urls(
        LiveUrlsQuery(room_url=body.room_url, proxy=body.proxy, cookie=body.cookie)
    )
    return CwOut[GetLiveUrlsOut](results=GetLiveUrlsOut(code=result.code, live_urls=result.live_urls))


@router.post("/start_recording")
async def start_recording(body: StartRecordingIn, service: RecordingServiceDep) -> CwOut[RecordCodeOut]:
    """Start recording every stream of a room under a unique title.

    The end of the session is announced later on the events socket.
    """
    config = StreamConfig(
        title=body.title,
        room_url=body.room_url,
        proxy=body.proxy,
        cookie=body.cookie,
        directory=body.directory,
    )
    result = await service.start_recording(config)
    return CwOut[RecordCodeOut](results=RecordCodeOut(code=result.code))


@router.post("/stop_recording")
async def stop_recording(body: StopRecordingIn, service: RecordingServiceDep) -> CwOut[RecordCodeOut]:
    result = await service.stop_recording(body.title)
    return CwOut[RecordCodeOut](results=RecordCodeOut(code=result.code))


@router.get("/list_sessions")
async def list_sessions(service: RecordingServiceDep) -> CwOut[ListSessionsOut]:
    return CwOut[ListSessionsOut](results=ListSessionsOut(sessions=service.list_sessions()))


@router.websocket("/events")
async def recording_events(websocket: WebSocket, hub: EventHubDep):
    """Push progress_update, session_ended and notification events."""
    async with hub.subscribe() as queue:
        await websocket.accept()
        receiver = asyncio.create_task(websocket.receive_text())
        getter: asyncio.Task | None = None
        try:
            while True:
                getter = asyncio.create_task(queue.get())
                done, _ = await asyncio.wait({getter, receiver}, return_when=asyncio.FIRST_COMPLETED)
                if receiver in done:
                    # Clients only listen; inbound frames are ignored, a close ends the loop
                    receiver.result()
                    receiver = asyncio.create_task(websocket.receive_text())
                if getter in done:
                    await websocket.send_text(getter.result().model_dump_json())
                else:
                    getter.cancel()
        except WebSocketDisconnect:
            logger.debug("Events client disconnected")
        finally:
            receiver.cancel()
            if getter is not None:
                getter.cancel()
