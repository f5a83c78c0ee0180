"""Tests for the headless desktop collaborator."""

from pathlib import Path

from fideo.schemas import NotificationEvent
from fideo.services.desktop import HeadlessDesktop
from tests.fixtures.recording_fixtures import EventSink


class TestHeadlessDesktop:
    def test_select_directory_creates_recordings_dir(self, tmp_path: Path):
        target = tmp_path / "videos" / "live"
        desktop = HeadlessDesktop(EventSink(), str(target))

        selected = desktop.select_directory()

        assert selected == str(target.resolve())
        assert target.is_dir()

    def test_show_notification_published(self, tmp_path: Path):
        sink = EventSink()
        desktop = HeadlessDesktop(sink, str(tmp_path))

        desktop.show_notification("Recording ended", "A finished")

        assert sink.events == [NotificationEvent(title="Recording ended", body="A finished")]

    def test_open_external_uses_webbrowser(self, tmp_path: Path, monkeypatch):
        opened: list[str] = []

        def _fake_open(url: str) -> bool:
            opened.append(url)
            return True

        monkeypatch.setattr("fideo.services.desktop.webbrowser.open", _fake_open)
        desktop = HeadlessDesktop(EventSink(), str(tmp_path))

        assert desktop.open_external("https://live.example.com/room/a") is True
        assert opened == ["https://live.example.com/room/a"]

    def test_open_external_without_browser(self, tmp_path: Path, monkeypatch):
        monkeypatch.setattr("fideo.services.desktop.webbrowser.open", lambda url: False)
        desktop = HeadlessDesktop(EventSink(), str(tmp_path))

        assert desktop.open_external("https://live.example.com/room/a") is False
