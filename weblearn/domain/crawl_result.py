"""Crawl result data model."""
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import List, Optional

from weblearn.domain.crawl_options import CrawlOptions
from weblearn.domain.fetch_result import Context, Failure


@dataclass(frozen=True)
class CrawlStats:
    """Resolved options echoed back with the crawl's own accounting."""

    visited: int
    queued_remaining: int
    recursive_processed: int
    options: CrawlOptions

    def to_dict(self) -> dict:
        payload = self.options.to_dict()
        payload.update(
            visited=self.visited,
            queued_remaining=self.queued_remaining,
            recursive_processed=self.recursive_processed,
        )
        return payload


@dataclass
class CrawlResult:
    contexts: List[Context] = field(default_factory=list)
    failures: List[Failure] = field(default_factory=list)
    stats: Optional[CrawlStats] = None
    stopped: bool = False
    """True if the crawl was stopped early via stop_event."""

    def to_dict(self) -> dict:
        return {
            "contexts": [c.to_dict() for c in self.contexts],
            "failures": [f.to_dict() for f in self.failures],
            "stats": self.stats.to_dict() if self.stats is not None else {},
            "stopped": self.stopped,
        }


@dataclass(frozen=True)
class SearchResult:
    ok: bool
    reason: str
    provider: Optional[str] = None
    query: Optional[str] = None
    urls: tuple = ()

    def to_dict(self) -> dict:
        payload = asdict(self)
        payload["urls"] = list(self.urls)
        return payload


@dataclass
class AcquisitionResult:
    """Search (when it ran) plus the crawl over the resulting seeds."""

    crawl: CrawlResult
    search: Optional[SearchResult] = None
    seeds: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "search": self.search.to_dict() if self.search is not None else None,
            "seeds": list(self.seeds),
            "crawl": self.crawl.to_dict(),
        }
