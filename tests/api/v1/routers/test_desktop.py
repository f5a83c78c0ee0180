"""Unit tests for desktop router endpoints."""

from unittest.mock import MagicMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from fideo.api.v1.dependency import get_desktop
from fideo.api.v1.routers.desktop import router
from fideo.services.desktop import HeadlessDesktop


@pytest.fixture
def mock_desktop() -> MagicMock:
    """Create a mock desktop collaborator."""
    return MagicMock(spec=HeadlessDesktop)


@pytest.fixture
def client(mock_desktop: MagicMock) -> TestClient:
    app = FastAPI()
    app.dependency_overrides[get_desktop] = lambda: mock_desktop
    app.include_router(router)
    return TestClient(app)


class TestSelectDir:
    """Tests for POST /desktop/select_dir endpoint."""

    def test_select_dir(self, client: TestClient, mock_desktop: MagicMock):
        mock_desktop.select_directory.return_value = "/data/recordings"

        response = client.post("/desktop/select_dir")

        assert response.status_code == 200
        assert response.json()["results"] == {"cancelled": False, "path": "/data/recordings"}

    def test_select_dir_cancelled(self, client: TestClient, mock_desktop: MagicMock):
        mock_desktop.select_directory.return_value = None

        response = client.post("/desktop/select_dir")

        assert response.json()["results"] == {"cancelled": True, "path": None}


class TestNavByDefaultBrowser:
    """Tests for POST /desktop/nav_by_default_browser endpoint."""

    def test_nav_by_default_browser(self, client: TestClient, mock_desktop: MagicMock):
        mock_desktop.open_external.return_value = True

        response = client.post(
            "/desktop/nav_by_default_browser", json={"url": "https://live.example.com/room/a"}
        )

        assert response.status_code == 200
        assert response.json()["results"] == {"opened": True}
        mock_desktop.open_external.assert_called_once_with("https://live.example.com/room/a")


class TestShowNotification:
    """Tests for POST /desktop/show_notification endpoint."""

    def test_show_notification(self, client: TestClient, mock_desktop: MagicMock):
        response = client.post(
            "/desktop/show_notification", json={"title": "Recording ended", "body": "A finished"}
        )

        assert response.status_code == 200
        assert response.json()["results"] == "OK"
        mock_desktop.show_notification.assert_called_once_with("Recording ended", "A finished")
