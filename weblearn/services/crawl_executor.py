import logging
import threading
from typing import Iterable, List, Optional

from weblearn.domain.crawl_options import CrawlOptions, apply_limit
from weblearn.domain.crawl_result import CrawlResult, CrawlStats
from weblearn.domain.crawl_session import CrawlQueueItem, CrawlSession
from weblearn.domain.fetch_result import Context, Failure, FetchResult
from weblearn.domain.progress import CrawlDone, CrawlStart, ProgressCallback, VisitFail, VisitStart, VisitSuccess
from weblearn.services.content_fetcher import ContentFetcher
from weblearn.services.crawl_policy import CrawlPolicy, url_origin
from weblearn.services.progress_reporter import ProgressReporter
from weblearn.services.text_quality import collapse_whitespace

logger = logging.getLogger(__name__)

SNIPPET_CHARS = 260


def prepare_seeds(seed_urls: Iterable, max_seed_urls: Optional[int]) -> List[str]:
    """Keep non-blank strings, drop duplicates (first wins), cap at `max_seed_urls`."""
    seeds: List[str] = []
    for url in seed_urls or []:
        if not isinstance(url, str):
            continue
        url = url.strip()
        if url and url not in seeds:
            seeds.append(url)
    return apply_limit(seeds, max_seed_urls)


class CrawlExecutor:
    """Executes a breadth-first crawl given configured collaborators.

    This class owns the crawl control-flow (queueing, budget checks, calling
    the fetcher, and reporting progress). It intentionally does NOT construct
    dependencies (that stays in the DI layer).
    """

    def __init__(
        self,
        *,
        content_fetcher: ContentFetcher,
        crawl_policy: Optional[CrawlPolicy] = None,
        defaults: Optional[CrawlOptions] = None,
    ):
        self.content_fetcher = content_fetcher
        self.crawl_policy = crawl_policy or CrawlPolicy()
        self.defaults = defaults or CrawlOptions()

    def crawl(
        self,
        seed_urls: Iterable,
        options: Optional[CrawlOptions] = None,
        on_progress: Optional[ProgressCallback] = None,
        stop_event: Optional[threading.Event] = None,
    ) -> CrawlResult:
        options = options or self.defaults
        reporter = ProgressReporter(on_progress)
        session = CrawlSession(options, stop_event=stop_event)

        seeds = prepare_seeds(seed_urls, options.max_seed_urls)
        for seed in seeds:
            session.enqueue(CrawlQueueItem(url=seed, depth=0, root_origin=url_origin(seed)))

        reporter.emit(
            CrawlStart(
                seeds=tuple(seeds),
                recurse_depth=options.recurse_depth,
                max_recursive_urls=options.max_recursive_urls,
                max_pages=options.max_pages,
            )
        )
        logger.info("Crawl starting: %d seeds, recurse_depth=%s", len(seeds), options.recurse_depth)

        stopped = False
        while session.queue:
            if self.crawl_policy.should_stop(session):
                stopped = session.is_stopped()
                break
            item = session.dequeue()
            if item is None or session.is_visited(item.url):
                continue
            self.visit(session, item, reporter)

        reporter.emit(
            CrawlDone(
                visited=session.visited,
                processed=session.processed,
                failed=session.failed,
                recursive_processed=session.recursive_processed,
            )
        )
        logger.info(
            "Crawl finished: visited=%d processed=%d failed=%d recursive=%d",
            session.visited,
            session.processed,
            session.failed,
            session.recursive_processed,
        )
        return CrawlResult(
            contexts=list(session.contexts),
            failures=list(session.failures),
            stats=CrawlStats(
                visited=session.visited,
                queued_remaining=len(session.queue),
                recursive_processed=session.recursive_processed,
                options=options,
            ),
            stopped=stopped,
        )

    def visit(self, session: CrawlSession, item: CrawlQueueItem, reporter: ProgressReporter) -> None:
        """Fetch one dequeued item, record the outcome and queue its links."""
        session.mark_visited(item.url)
        reporter.emit(
            VisitStart(
                url=item.url,
                depth=item.depth,
                queue_remaining=len(session.queue),
                visited=session.visited,
                processed=session.processed,
                failed=session.failed,
            )
        )

        page = self._fetch(item.url, session.options)
        if not page.ok:
            reason = page.reason or "unknown_failure"
            session.record_failure(Failure(url=item.url, reason=reason))
            reporter.emit(
                VisitFail(
                    url=item.url,
                    depth=item.depth,
                    reason=reason,
                    visited=session.visited,
                    processed=session.processed,
                    failed=session.failed,
                )
            )
            return

        session.record_context(Context(url=page.url, title=page.title, text=page.text, depth=item.depth))
        reporter.emit(
            VisitSuccess(
                url=page.url,
                depth=item.depth,
                title=page.title,
                char_count=page.char_count or 0,
                href_count=len(page.outbound_links),
                snippet=collapse_whitespace(page.text)[:SNIPPET_CHARS],
                visited=session.visited,
                processed=session.processed,
                failed=session.failed,
            )
        )

        if self.crawl_policy.should_follow_links(item, session.options):
            self.enqueue_links(session, item, page.outbound_links)

    def enqueue_links(self, session: CrawlSession, item: CrawlQueueItem, links: Iterable[str]) -> int:
        """Admit child links of `item`, returning how many were queued."""
        queued = 0
        for href in links:
            if not href or session.is_visited(href):
                continue
            if not self.crawl_policy.is_in_scope(item.root_origin, href, session.options):
                continue
            if self.crawl_policy.recursive_budget_exhausted(session):
                logger.debug("Recursive budget exhausted; dropping remaining links from %s", item.url)
                break
            if session.enqueue(CrawlQueueItem(url=href, depth=item.depth + 1, root_origin=item.root_origin)):
                queued += 1
        return queued

    def _fetch(self, url: str, options: CrawlOptions) -> FetchResult:
        try:
            return self.content_fetcher.fetch(url, options)
        except Exception:
            logger.exception("Unexpected error fetching %s", url)
            return FetchResult.failure(url, "fetch_failed")
