"""Progress events streamed to callers while searching and crawling.

Each event is a frozen dataclass with a class-level `type` tag, so consumers
can dispatch with `isinstance` (or on `event.type` for serialized payloads).
"""
from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Callable, ClassVar, Optional, Union


@dataclass(frozen=True)
class _Event:
    type: ClassVar[str] = "event"

    def to_dict(self) -> dict:
        payload = {"type": self.type}
        payload.update(asdict(self))
        return payload


@dataclass(frozen=True)
class SearchStart(_Event):
    type: ClassVar[str] = "search_start"
    query: str
    max_results: int


@dataclass(frozen=True)
class SearchDone(_Event):
    type: ClassVar[str] = "search_done"
    ok: bool
    reason: str
    provider: Optional[str]
    url_count: int


@dataclass(frozen=True)
class CrawlStart(_Event):
    type: ClassVar[str] = "crawl_start"
    seeds: tuple
    recurse_depth: int
    max_recursive_urls: Optional[int]
    max_pages: Optional[int]
    visited: int = 0
    processed: int = 0
    failed: int = 0


@dataclass(frozen=True)
class VisitStart(_Event):
    type: ClassVar[str] = "visit_start"
    url: str
    depth: int
    queue_remaining: int
    visited: int
    processed: int
    failed: int


@dataclass(frozen=True)
class VisitSuccess(_Event):
    type: ClassVar[str] = "visit_success"
    url: str
    depth: int
    title: str
    char_count: int
    href_count: int
    snippet: str
    visited: int
    processed: int
    failed: int


@dataclass(frozen=True)
class VisitFail(_Event):
    type: ClassVar[str] = "visit_fail"
    url: str
    depth: int
    reason: str
    visited: int
    processed: int
    failed: int


@dataclass(frozen=True)
class CrawlDone(_Event):
    type: ClassVar[str] = "crawl_done"
    visited: int
    processed: int
    failed: int
    recursive_processed: int


ProgressEvent = Union[SearchStart, SearchDone, CrawlStart, VisitStart, VisitSuccess, VisitFail, CrawlDone]

ProgressCallback = Callable[[ProgressEvent], None]
