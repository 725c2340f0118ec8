import logging
import re
import threading
from typing import Any, Iterable, List, Mapping, Optional, Union
from urllib.parse import quote

from weblearn.domain.crawl_options import CrawlOptions, SearchOptions, resolve_crawl_options, resolve_search_options
from weblearn.domain.crawl_result import AcquisitionResult, CrawlResult, SearchResult
from weblearn.domain.progress import ProgressCallback, SearchDone, SearchStart
from weblearn.services.crawl_executor import CrawlExecutor
from weblearn.services.progress_reporter import ProgressReporter
from weblearn.services.search_service import WebSearchService

logger = logging.getLogger(__name__)

URL_PATTERN = re.compile(r"https?://[^\s)\]}>\"']+", re.IGNORECASE)
MAX_MESSAGE_URLS = 3

OptionsInput = Union[None, Mapping[str, Any], CrawlOptions]
SearchOptionsInput = Union[None, Mapping[str, Any], SearchOptions]


def extract_urls(message: Optional[str], limit: int = MAX_MESSAGE_URLS) -> List[str]:
    """Return the http(s) URLs found in free text, first occurrence wins."""
    urls: List[str] = []
    for match in URL_PATTERN.findall(str(message or "")):
        if match not in urls:
            urls.append(match)
    return urls[:limit]


def build_wikipedia_guess_url(query: Optional[str]) -> Optional[str]:
    """Guess an English Wikipedia article URL from a query, or None when nothing is left."""
    slug = re.sub(r"[^a-z0-9\s-]", " ", str(query or "").lower())
    slug = re.sub(r"\s+", " ", slug).strip().replace(" ", "_")
    if not slug:
        return None
    return f"https://en.wikipedia.org/wiki/{quote(slug, safe='')}"


class WebAcquisitionService:
    """Entry point for callers: search and crawl with env defaults plus per-call overrides."""

    def __init__(
        self,
        crawl_executor: CrawlExecutor,
        search_service: WebSearchService,
        crawl_defaults: Optional[CrawlOptions] = None,
        search_defaults: Optional[SearchOptions] = None,
    ):
        self.crawl_executor = crawl_executor
        self.search_service = search_service
        self.crawl_defaults = crawl_defaults or CrawlOptions()
        self.search_defaults = search_defaults or SearchOptions()

    def crawl_options(self, overrides: OptionsInput = None) -> CrawlOptions:
        return resolve_crawl_options(overrides, self.crawl_defaults)

    def search_options(self, overrides: SearchOptionsInput = None) -> SearchOptions:
        return resolve_search_options(overrides, self.search_defaults)

    def crawl_from_urls(
        self,
        urls: Iterable,
        options: OptionsInput = None,
        on_progress: Optional[ProgressCallback] = None,
        stop_event: Optional[threading.Event] = None,
    ) -> CrawlResult:
        return self.crawl_executor.crawl(
            list(urls or []),
            self.crawl_options(options),
            on_progress=on_progress,
            stop_event=stop_event,
        )

    def search_web(
        self,
        query: str,
        options: SearchOptionsInput = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> SearchResult:
        """Search for `query`, emitting search_start / search_done when search is enabled."""
        resolved = self.search_options(options)
        if not resolved.enabled:
            return self.search_service.search(query, resolved)

        reporter = ProgressReporter(on_progress)
        reporter.emit(SearchStart(query=str(query or ""), max_results=resolved.max_results))
        result = self.search_service.search(query, resolved)
        reporter.emit(SearchDone(ok=result.ok, reason=result.reason, provider=result.provider, url_count=len(result.urls)))
        return result

    def acquire(
        self,
        message: Optional[str],
        urls: Optional[Iterable] = None,
        crawl_options: OptionsInput = None,
        search_options: SearchOptionsInput = None,
        on_progress: Optional[ProgressCallback] = None,
        stop_event: Optional[threading.Event] = None,
    ) -> AcquisitionResult:
        """Crawl URLs named in `message` (plus `urls`); search for seeds when there are none."""
        seeds = extract_urls(message)
        for url in urls or []:
            if isinstance(url, str) and url not in seeds:
                seeds.append(url)

        resolved_search = self.search_options(search_options)
        search: Optional[SearchResult] = None
        if not seeds and resolved_search.enabled and str(message or "").strip():
            search = self.search_web(str(message), resolved_search, on_progress)
            seeds = list(search.urls)
            if not seeds:
                guess = build_wikipedia_guess_url(message)
                if guess:
                    logger.info("Search for %r found nothing, trying %s", message, guess)
                    seeds = [guess]
            logger.info("Search for %r produced %d seed urls", message, len(seeds))

        crawl = self.crawl_from_urls(seeds, crawl_options, on_progress=on_progress, stop_event=stop_event)
        return AcquisitionResult(crawl=crawl, search=search, seeds=seeds)
