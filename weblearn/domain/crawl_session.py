import threading
from collections import deque
from dataclasses import dataclass
from typing import Deque, List, Optional, Set

from weblearn.domain.crawl_options import CrawlOptions
from weblearn.domain.fetch_result import Context, Failure
from weblearn.domain.visited_tracker import VisitedTracker


@dataclass(frozen=True)
class CrawlQueueItem:
    url: str
    depth: int
    root_origin: Optional[str]
    """Origin of the seed that introduced this URL, not of its parent page."""


class CrawlSession:
    """
    State of one crawl invocation: work queue, visited set, accumulated output
    and running counters.

    A session is created by the executor for a single call and handed to its
    helpers; it is never shared between crawls, so it needs no locking.
    """

    def __init__(
        self,
        options: CrawlOptions,
        visited_tracker: Optional[VisitedTracker] = None,
        stop_event: Optional[threading.Event] = None,
    ):
        self.options = options
        self.stop_event = stop_event if stop_event is not None else threading.Event()
        self.visited_tracker = visited_tracker if visited_tracker is not None else VisitedTracker()

        self.queue: Deque[CrawlQueueItem] = deque()
        self._pending: Set[str] = set()

        self.contexts: List[Context] = []
        self.failures: List[Failure] = []

        self.processed: int = 0
        self.failed: int = 0
        self.recursive_processed: int = 0
        self.recursive_dequeued: int = 0
        self.recursive_queued: int = 0

    def enqueue(self, item: CrawlQueueItem) -> bool:
        """Queue an item unless it was already visited or is waiting in the queue."""
        url = VisitedTracker.canonical(item.url)
        if not url or url in self._pending or self.visited_tracker.is_visited(url):
            return False
        self._pending.add(url)
        self.queue.append(CrawlQueueItem(url=url, depth=item.depth, root_origin=item.root_origin))
        if item.depth > 0:
            self.recursive_queued += 1
        return True

    def dequeue(self) -> Optional[CrawlQueueItem]:
        if not self.queue:
            return None
        item = self.queue.popleft()
        self._pending.discard(item.url)
        if item.depth > 0:
            self.recursive_queued -= 1
            self.recursive_dequeued += 1
        return item

    @property
    def recursive_admitted(self) -> int:
        """Depth>0 items ever admitted: already taken off the queue plus still queued."""
        return self.recursive_dequeued + self.recursive_queued

    @property
    def visited(self) -> int:
        return len(self.visited_tracker)

    def mark_visited(self, url: str) -> None:
        self.visited_tracker.mark(url)

    def is_visited(self, url: str) -> bool:
        return self.visited_tracker.is_visited(url)

    def record_context(self, context: Context) -> None:
        self.contexts.append(context)
        self.processed += 1
        if context.depth > 0:
            self.recursive_processed += 1

    def record_failure(self, failure: Failure) -> None:
        self.failures.append(failure)
        self.failed += 1

    def is_stopped(self) -> bool:
        """Check if crawling has been asked to stop."""
        return self.stop_event.is_set()
