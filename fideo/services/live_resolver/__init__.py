from .live_resolver_client import LiveSourceResolver, extract_stream_urls
from .live_resolver_schemas import LiveUrlsQuery, LiveUrlsResult

__all__ = ["LiveSourceResolver", "LiveUrlsQuery", "LiveUrlsResult", "extract_stream_urls"]
