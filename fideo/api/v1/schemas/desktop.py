from pydantic import BaseModel, Field


class SelectDirOut(BaseModel):
    cancelled: bool
    path: str | None = None


class NavByDefaultBrowserIn(BaseModel):
    url: str = Field(min_length=1, description="URL to open in the default browser")


class NavByDefaultBrowserOut(BaseModel):
    opened: bool


class ShowNotificationIn(BaseModel):
    title: str = Field(min_length=1)
    body: str = ""
