"""Tests for the assembled application."""

import pytest
from fastapi.testclient import TestClient

from fideo.domain.recording import RecordingService
from fideo.main import app, build_granian_kwargs
from fideo.services.desktop import HeadlessDesktop
from fideo.services.event_hub import EventHub


@pytest.fixture(scope="module")
def client():
    with TestClient(app) as client:
        yield client


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    data = r.json()
    assert data["success"] is True
    assert data["results"] == "OK"


def test_lifespan_wires_collaborators(client):
    assert isinstance(app.state.recording_service, RecordingService)
    assert isinstance(app.state.event_hub, EventHub)
    assert isinstance(app.state.desktop, HeadlessDesktop)


def test_list_sessions_empty(client):
    r = client.get("/api/v1/recording/list_sessions")
    assert r.status_code == 200
    assert r.json()["results"] == {"sessions": []}


def test_stop_unknown_title(client):
    r = client.post("/api/v1/recording/stop_recording", json={"title": "nothing"})
    assert r.status_code == 200
    assert r.json()["results"] == {"code": 0}


def test_validation_error_envelope(client):
    r = client.post("/api/v1/recording/start_recording", json={"title": "A"})
    assert r.status_code == 422
    data = r.json()
    assert data["success"] is False
    assert data["errcode"] == "E_INVALID_PARAMS"


def test_granian_runs_single_worker():
    kwargs = build_granian_kwargs()
    assert kwargs["interface"] == "asgi"
    assert kwargs["workers"] == 1
