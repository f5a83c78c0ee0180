"""Unit tests for recording router endpoints."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.testclient import TestClient

from fideo.api.errors import app_error_handler, app_validation_exception_handler
from fideo.api.v1.dependency import get_recording_service
from fideo.api.v1.routers.desktop import router as desktop_router
from fideo.api.v1.routers.recording import router
from fideo.domain.recording import RecordingService, RecordResult, SessionInfo, StreamConfig, SubStreamInfo
from fideo.schemas import RecordingState
from fideo.services.desktop import HeadlessDesktop
from fideo.services.event_hub import EventHub
from fideo.services.live_resolver import LiveUrlsQuery, LiveUrlsResult
from fideo.utils.app_errors import AppError
from fideo.utils.record_codes import SUCCESS_CODE, RecordErrorCode, ResolveErrorCode


@pytest.fixture
def mock_recording_service() -> AsyncMock:
    """Create a mock RecordingService."""
    return AsyncMock(spec=RecordingService)


@pytest.fixture
def test_app(mock_recording_service: AsyncMock, tmp_path) -> FastAPI:
    """Create FastAPI test app with dependency overrides."""
    app = FastAPI()

    # Override service dependency
    app.dependency_overrides[get_recording_service] = lambda: mock_recording_service

    hub = EventHub()
    app.state.event_hub = hub
    app.state.desktop = HeadlessDesktop(hub, str(tmp_path))

    app.add_exception_handler(AppError, app_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, app_validation_exception_handler)  # type: ignore[arg-type]

    app.include_router(router)
    app.include_router(desktop_router)
    return app


@pytest.fixture
def client(test_app: FastAPI) -> TestClient:
    """Create test client."""
    return TestClient(test_app)


class TestGetLiveUrls:
    """Tests for POST /recording/get_live_urls endpoint."""

    def test_get_live_urls_success(self, client: TestClient, mock_recording_service: AsyncMock):
        # Arrange
        mock_recording_service.resolve_live_urls.return_value = LiveUrlsResult(
            code=SUCCESS_CODE, live_urls=["https://cdn.example.com/a.flv"]
        )

        # Act
        response = client.post(
            "/recording/get_live_urls",
            json={"room_url": "https://live.example.com/room/a", "cookie": "sid=1"},
        )

        # Assert
        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["results"] == {"code": 0, "live_urls": ["https://cdn.example.com/a.flv"]}
        mock_recording_service.resolve_live_urls.assert_called_once_with(
            LiveUrlsQuery(room_url="https://live.example.com/room/a", cookie="sid=1")
        )

    def test_get_live_urls_failure_code_in_results(self, client: TestClient, mock_recording_service: AsyncMock):
        """Test resolve failures are reported as a code, not an HTTP error."""
        mock_recording_service.resolve_live_urls.return_value = LiveUrlsResult(
            code=ResolveErrorCode.ROOM_OFFLINE
        )

        response = client.post("/recording/get_live_urls", json={"room_url": "https://live.example.com/x"})

        assert response.status_code == 200
        assert response.json()["results"] == {"code": ResolveErrorCode.ROOM_OFFLINE, "live_urls": []}

    def test_get_live_urls_missing_room_url(self, client: TestClient, mock_recording_service: AsyncMock):
        response = client.post("/recording/get_live_urls", json={})

        assert response.status_code == 422
        assert response.json()["errcode"] == "E_INVALID_PARAMS"
        mock_recording_service.resolve_live_urls.assert_not_called()


class TestStartRecording:
    """Tests for POST /recording/start_recording endpoint."""

    def test_start_recording_success(self, client: TestClient, mock_recording_service: AsyncMock):
        # Arrange
        mock_recording_service.start_recording.return_value = RecordResult(code=SUCCESS_CODE)

        # Act
        response = client.post(
            "/recording/start_recording",
            json={
                "title": "  A  ",
                "room_url": "https://live.example.com/room/a",
                "proxy": "",
                "directory": "/data/rec",
            },
        )

        # Assert
        assert response.status_code == 200
        assert response.json()["results"] == {"code": 0}
        config = mock_recording_service.start_recording.call_args.args[0]
        assert config == StreamConfig(
            title="A", room_url="https://live.example.com/room/a", directory="/data/rec"
        )
        assert config.proxy is None

    def test_start_recording_title_in_use(self, client: TestClient, mock_recording_service: AsyncMock):
        mock_recording_service.start_recording.return_value = RecordResult(code=RecordErrorCode.TITLE_IN_USE)

        response = client.post(
            "/recording/start_recording",
            json={"title": "A", "room_url": "https://live.example.com/room/a"},
        )

        assert response.status_code == 200
        assert response.json()["results"]["code"] == RecordErrorCode.TITLE_IN_USE

    def test_start_recording_blank_title(self, client: TestClient, mock_recording_service: AsyncMock):
        response = client.post(
            "/recording/start_recording",
            json={"title": "", "room_url": "https://live.example.com/room/a"},
        )

        assert response.status_code == 422
        mock_recording_service.start_recording.assert_not_called()


class TestStopRecording:
    """Tests for POST /recording/stop_recording endpoint."""

    def test_stop_recording(self, client: TestClient, mock_recording_service: AsyncMock):
        mock_recording_service.stop_recording.return_value = RecordResult(code=SUCCESS_CODE)

        response = client.post("/recording/stop_recording", json={"title": " A "})

        assert response.status_code == 200
        assert response.json()["results"] == {"code": 0}
        mock_recording_service.stop_recording.assert_called_once_with("A")


class TestListSessions:
    """Tests for GET /recording/list_sessions endpoint."""

    def test_list_sessions(self, client: TestClient, mock_recording_service: AsyncMock):
        # Arrange
        now = datetime(2024, 5, 1, 20, 30, tzinfo=timezone.utc)
        mock_recording_service.list_sessions.return_value = [
            SessionInfo(
                title="A",
                session_id="abc123",
                state=RecordingState.RUNNING,
                room_url="https://live.example.com/room/a",
                live_urls=["https://cdn.example.com/a.flv"],
                sub_streams=[
                    SubStreamInfo(
                        sub_index=0,
                        stream_url="https://cdn.example.com/a.flv",
                        pid=4242,
                        started_at=now,
                        running=True,
                    )
                ],
                created_at=now,
            )
        ]

        # Act
        response = client.get("/recording/list_sessions")

        # Assert
        assert response.status_code == 200
        sessions = response.json()["results"]["sessions"]
        assert len(sessions) == 1
        assert sessions[0]["title"] == "A"
        assert sessions[0]["state"] == "running"
        assert sessions[0]["sub_streams"][0]["pid"] == 4242


class TestRecordingEvents:
    """Tests for the /recording/events websocket."""

    def test_events_forwarded_to_socket(self, test_app: FastAPI):
        with TestClient(test_app) as client:
            with client.websocket_connect("/recording/events") as websocket:
                response = client.post(
                    "/desktop/show_notification",
                    json={"title": "Recording ended", "body": "A finished"},
                )
                assert response.status_code == 200

                event = websocket.receive_json()

        assert event == {"type": "notification", "title": "Recording ended", "body": "A finished"}
        assert test_app.state.event_hub.subscriber_count == 0


class TestServiceUnavailable:
    def test_missing_service_returns_503(self):
        app = FastAPI()
        app.add_exception_handler(AppError, app_error_handler)  # type: ignore[arg-type]
        app.include_router(router)

        response = TestClient(app).get("/recording/list_sessions")

        assert response.status_code == 503
        data = response.json()
        assert data["success"] is False
        assert data["errcode"] == "E_SERVICE_UNAVAILABLE"
