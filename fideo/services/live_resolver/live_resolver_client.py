import html
import re

import httpx
from loguru import logger

from fideo.services.live_resolver.live_resolver_schemas import LiveUrlsQuery, LiveUrlsResult
from fideo.utils.record_codes import SUCCESS_CODE, ResolveErrorCode

MEDIA_SUFFIXES = (".m3u8", ".flv", ".mp4", ".ts")

_STREAM_URL_RE = re.compile(
    r"""https?://[^\s"'<>\\]+?\.(?:m3u8|flv)(?:\?[^\s"'<>\\]*)?""",
    re.IGNORECASE,
)


def _unescape_markup(text: str) -> str:
    # Players embed their sources in JSON blobs with escaped slashes
    text = text.replace("\\u002F", "/").replace("\\u0026", "&").replace("\\/", "/")
    return html.unescape(text)


def extract_stream_urls(markup: str) -> list[str]:
    """Return stream URLs found in a room page, in document order, without duplicates."""
    seen: dict[str, None] = {}
    for match in _STREAM_URL_RE.finditer(_unescape_markup(markup)):
        seen.setdefault(match.group(0), None)
    return list(seen)


def is_direct_stream_url(url: httpx.URL) -> bool:
    return url.path.lower().endswith(MEDIA_SUFFIXES)


class LiveSourceResolver:
    """Turns a room page URL into the media URLs the capture processes record.

    Performs network I/O only and never retries; every failure is reported
    once through ``LiveUrlsResult.code``.
    """

    def __init__(
        self,
        timeout: float = 15,
        user_agent: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.timeout = timeout
        self.user_agent = user_agent
        self._transport = transport

    def _build_headers(self, cookie: str | None) -> dict[str, str]:
        headers: dict[str, str] = {}
        if self.user_agent:
            headers["User-Agent"] = self.user_agent
        if cookie:
            headers["Cookie"] = cookie
        return headers

    async def resolve(
        self,
        room_url: str,
        proxy: str | None = None,
        cookie: str | None = None,
    ) -> LiveUrlsResult:
        try:
            url = httpx.URL(room_url)
        except httpx.InvalidURL:
            logger.warning(f"Rejecting malformed room url: {room_url!r}")
            return LiveUrlsResult(code=ResolveErrorCode.INVALID_URL)

        if url.scheme not in ("http", "https") or not url.host:
            logger.warning(f"Rejecting room url without http(s) scheme or host: {room_url!r}")
            return LiveUrlsResult(code=ResolveErrorCode.INVALID_URL)

        if is_direct_stream_url(url):
            logger.debug(f"Room url is already a stream url: {room_url}")
            return LiveUrlsResult(code=SUCCESS_CODE, live_urls=[room_url])

        try:
            async with httpx.AsyncClient(
                proxy=proxy or None,
                transport=self._transport,
                follow_redirects=True,
                timeout=self.timeout,
            ) as client:
                response = await client.get(url, headers=self._build_headers(cookie))
        except httpx.ProxyError as e:
            logger.warning(f"Proxy error resolving {room_url}: {e}")
            return LiveUrlsResult(code=ResolveErrorCode.PROXY_ERROR)
        except ValueError as e:
            # httpx rejects unusable proxy URLs while building the client
            logger.warning(f"Invalid proxy {proxy!r} for {room_url}: {e}")
            return LiveUrlsResult(code=ResolveErrorCode.PROXY_ERROR)
        except (httpx.TransportError, httpx.InvalidURL) as e:
            logger.warning(f"Network error resolving {room_url}: {type(e).__name__}: {e}")
            return LiveUrlsResult(code=ResolveErrorCode.NETWORK_ERROR)

        if response.is_error:
            logger.warning(f"Room page {room_url} answered {response.status_code}")
            return LiveUrlsResult(code=ResolveErrorCode.PAGE_UNREACHABLE)

        live_urls = extract_stream_urls(response.text)
        if not live_urls:
            logger.info(f"No stream found on {room_url}, room offline or page not recognised")
            return LiveUrlsResult(code=ResolveErrorCode.ROOM_OFFLINE)

        logger.debug(f"Resolved {room_url} -> {live_urls}")
        return LiveUrlsResult(code=SUCCESS_CODE, live_urls=live_urls)

    async def resolve_query(self, query: LiveUrlsQuery) -> LiveUrlsResult:
        return await self.resolve(query.room_url, proxy=query.proxy, cookie=query.cookie)
