"""Desktop collaborators: directory picker, browser and notifications.

The service usually runs without a display, so the default implementation
answers the picker with the configured recordings directory and forwards
notifications to connected clients.
"""

from __future__ import annotations

import webbrowser
from pathlib import Path
from typing import Protocol

from loguru import logger

from fideo.schemas import NotificationEvent
from fideo.services.event_hub import EventPublisher


class Desktop(Protocol):
    def select_directory(self) -> str | None:
        """Return the chosen directory, or None when the user cancelled."""
        ...

    def open_external(self, url: str) -> bool: ...

    def show_notification(self, title: str, body: str) -> None: ...


class HeadlessDesktop:
    def __init__(self, publisher: EventPublisher, recordings_dir: str):
        self._publisher = publisher
        self.recordings_dir = recordings_dir

    def select_directory(self) -> str | None:
        path = Path(self.recordings_dir).expanduser().resolve()
        path.mkdir(parents=True, exist_ok=True)
        return str(path)

    def open_external(self, url: str) -> bool:
        opened = webbrowser.open(url)
        if not opened:
            logger.warning(f"No browser available to open {url}")
        return opened

    def show_notification(self, title: str, body: str) -> None:
        logger.info(f"Notification: {title} - {body}")
        self._publisher.publish(NotificationEvent(title=title, body=body))
