from fastapi import APIRouter

from fideo.api.v1.dependency import DesktopDep
from fideo.api.v1.schemas.base import CwOut
from fideo.api.v1.schemas.desktop import (
    NavByDefaultBrowserIn,
    NavByDefaultBrowserOut,
    SelectDirOut,
    ShowNotificationIn,
)

router = APIRouter(prefix="/desktop")


@router.post("/select_dir")
async def select_dir(desktop: DesktopDep) -> CwOut[SelectDirOut]:
    path = desktop.select_directory()
    return CwOut[SelectDirOut](results=SelectDirOut(cancelled=path is None, path=path))


@router.post("/nav_by_default_browser")
async def nav_by_default_browser(
    body: NavByDefaultBrowserIn, desktop: DesktopDep
) -> CwOut[NavByDefaultBrowserOut]:
    opened = desktop.open_external(body.url)
    return CwOut[NavByDefaultBrowserOut](results=NavByDefaultBrowserOut(opened=opened))


@router.post("/show_notification")
async def show_notification(body: ShowNotificationIn, desktop: DesktopDep) -> CwOut[str]:
    desktop.show_notification(body.title, body.body)
    return CwOut[str](results="OK")
