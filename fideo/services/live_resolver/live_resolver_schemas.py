from __future__ import annotations

from pydantic import BaseModel, Field

from fideo.utils.record_codes import SUCCESS_CODE


class LiveUrlsQuery(BaseModel):
    """Room page to resolve, with optional pass-through proxy and cookie."""

    room_url: str = Field(..., description="Room page URL or direct stream URL")
    proxy: str | None = Field(default=None, description="Proxy URL used for the page request")
    cookie: str | None = Field(default=None, description="Raw Cookie header sent with the request")


class LiveUrlsResult(BaseModel):
    """Outcome of a resolve call.

    On success ``live_urls`` is non-empty and its order is the sub-stream order.
    """

    code: int = Field(..., description="SUCCESS_CODE or a ResolveErrorCode")
    live_urls: list[str] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.code == SUCCESS_CODE and bool(self.live_urls)
