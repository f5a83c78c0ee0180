import time
import traceback
import uuid
from contextlib import asynccontextmanager
from os import environ

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse
from granian import Granian
from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware

from fideo.api.errors import app_error_handler, app_validation_exception_handler
from fideo.api.v1.routers import desktop, recording
from fideo.app_config import get_app_environ_config
from fideo.domain.recording import RecordingService
from fideo.services.desktop import HeadlessDesktop
from fideo.services.event_hub import EventHub
from fideo.services.ffmpeg import FfmpegLauncher
from fideo.services.live_resolver import LiveSourceResolver
from fideo.shared.api import health
from fideo.shared.api.utils import api_failure, init_logger
from fideo.utils.app_errors import AppError, AppErrorCode


class HTTPLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):  # type: ignore
        start_time = time.time()
        request_id = str(uuid.uuid4())[:8]

        logger.info(f"[{request_id}] {request.method} {request.url.path}")

        try:
            response = await call_next(request)

            process_time = (time.time() - start_time) * 1000
            logger.info(
                f"[{request_id}] {request.method} {request.url.path} - "
                f"Status: {response.status_code} - "
                f"Duration: {process_time:.2f}ms"
            )

            return response

        except Exception as exc:
            process_time = (time.time() - start_time) * 1000
            logger.error(
                f"[{request_id}] Unhandled exception in {request.method} {request.url.path} - "
                f"Duration: {process_time:.2f}ms - "
                f"Error: {type(exc).__name__}: {exc}\n"
                f"Traceback:\n{traceback.format_exc()}"
            )

            failure = api_failure(
                errcode=AppErrorCode.E_INTERNAL_ERROR.value,
                errmesg=f"Internal server error (request_id: {request_id})",
            )
            return ORJSONResponse(
                status_code=500,
                content=failure.model_dump(),
            )


def build_recording_service(hub: EventHub) -> RecordingService:
    settings = get_app_environ_config()
    return RecordingService(
        resolver=LiveSourceResolver(
            timeout=settings.RESOLVER_TIMEOUT_SECONDS,
            user_agent=settings.RESOLVER_USER_AGENT,
        ),
        launcher=FfmpegLauncher(ffmpeg_path=settings.FFMPEG_PATH, fmt=settings.RECORDING_FORMAT),
        publisher=hub,
        recordings_dir=settings.RECORDINGS_DIR,
        progress_interval=settings.PROGRESS_INTERVAL_SECONDS,
    )


@asynccontextmanager
async def lifespan(server: FastAPI):
    init_logger()
    settings = get_app_environ_config()

    logger.info("Application startup...")

    hub = EventHub()
    service = build_recording_service(hub)
    service.start()

    server.state.event_hub = hub
    server.state.recording_service = service
    server.state.desktop = HeadlessDesktop(hub, settings.RECORDINGS_DIR)

    if settings.LOGFIRE_ENABLE:
        import logfire

        logger.info("Logfire initializing")
        logfire.configure(
            token=settings.LOGFIRE_TOKEN,
            service_name="fideo-recorder",
            service_version=environ.get("BUILD_COMMIT") or "dev",
        )

        logger.info("Logfire instrument fastapi")
        logfire.instrument_fastapi(server)

        logger.info("Logfire instrument pydantic")
        logfire.instrument_pydantic()

    yield

    logger.info("Application shutdown...")

    await service.aclose()


app = FastAPI(
    version="1.0",
    title="Fideo Recorder API",
    default_response_class=ORJSONResponse,
    lifespan=lifespan,
)

app.add_middleware(HTTPLoggingMiddleware)

app.add_middleware(
    CORSMiddleware,  # type: ignore
    allow_origins=get_app_environ_config().API_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(RequestValidationError, app_validation_exception_handler)  # type: ignore
app.add_exception_handler(AppError, app_error_handler)  # type: ignore

app.include_router(health.router)
app.include_router(recording.router, prefix="/api/v1")
app.include_router(desktop.router, prefix="/api/v1")


def build_granian_kwargs():
    settings = get_app_environ_config()
    # Recordings are process-local state, so the service always runs one worker
    return {
        "interface": "asgi",
        "address": settings.API_HOST,
        "port": settings.API_PORT,
        "workers": 1,
        "reload": settings.DEBUG,
    }


if __name__ == "__main__":
    Granian("fideo.main:app", **build_granian_kwargs()).serve()
