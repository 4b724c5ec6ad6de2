from .page_fetcher import PageFetcherPort
from .stream_resolver import StreamResolverPort

__all__ = [
    "PageFetcherPort",
    "StreamResolverPort",
]
