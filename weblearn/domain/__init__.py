"""Domain objects for WebLearn - explicit re-exports to satisfy linters."""
from .crawl_options import CrawlOptions as CrawlOptions
from .crawl_options import SearchOptions as SearchOptions
from .crawl_result import AcquisitionResult as AcquisitionResult
from .crawl_result import CrawlResult as CrawlResult
from .crawl_result import CrawlStats as CrawlStats
from .crawl_result import SearchResult as SearchResult
from .crawl_session import CrawlQueueItem as CrawlQueueItem
from .crawl_session import CrawlSession as CrawlSession
from .fetch_result import Context as Context
from .fetch_result import Failure as Failure
from .fetch_result import FetchResult as FetchResult
from .http_response import HttpResponse as HttpResponse

__all__ = [
    "AcquisitionResult",
    "Context",
    "CrawlOptions",
    "CrawlQueueItem",
    "CrawlResult",
    "CrawlSession",
    "CrawlStats",
    "Failure",
    "FetchResult",
    "HttpResponse",
    "SearchOptions",
    "SearchResult",
]
