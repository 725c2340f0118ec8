from __future__ import annotations

from dataclasses import asdict, dataclass, replace
from typing import Any, Mapping, Optional

from weblearn.config import parse_bool, parse_int, parse_limit


@dataclass(frozen=True)
class CrawlOptions:
    """Resolved crawl configuration.

    Every `Optional[int]` bound uses None for "unbounded"; callers never see the
    raw sentinels (0, negatives, "unlimited", ...) past `resolve_crawl_options`.
    """

    recurse_depth: int = 0
    max_pages: Optional[int] = None
    max_hrefs_per_page: Optional[int] = 12
    max_seed_urls: Optional[int] = 3
    max_recursive_urls: Optional[int] = 20
    same_origin_only: bool = True
    summary_max_chars: Optional[int] = None
    scrape_max_chars: Optional[int] = None
    fetch_timeout_ms: int = 12_000
    fetch_retries: int = 2

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class SearchOptions:
    enabled: bool = True
    max_results: int = 4

    def to_dict(self) -> dict:
        return asdict(self)


def limit_reached(count: int, limit: Optional[int]) -> bool:
    """True when `count` has hit a bounded `limit`; never true for None."""
    return limit is not None and count >= limit


def apply_limit(items: list, limit: Optional[int]) -> list:
    return list(items) if limit is None else list(items)[:limit]


def _pick(overrides: Mapping[str, Any], key: str):
    # Accept both snake_case and the camelCase names used by JSON callers.
    if key in overrides:
        return overrides[key]
    head, *rest = key.split("_")
    camel = head + "".join(part.title() for part in rest)
    return overrides.get(camel)


def resolve_crawl_options(overrides: Optional[Mapping[str, Any]] = None, defaults: Optional[CrawlOptions] = None) -> CrawlOptions:
    """Normalize per-call overrides against `defaults` into a `CrawlOptions`."""
    base = defaults or CrawlOptions()
    if isinstance(overrides, CrawlOptions):
        return overrides
    overrides = overrides or {}
    return CrawlOptions(
        recurse_depth=parse_int(_pick(overrides, "recurse_depth"), base.recurse_depth),
        max_pages=parse_limit(_pick(overrides, "max_pages"), base.max_pages),
        max_hrefs_per_page=parse_limit(_pick(overrides, "max_hrefs_per_page"), base.max_hrefs_per_page),
        max_seed_urls=parse_limit(_pick(overrides, "max_seed_urls"), base.max_seed_urls),
        max_recursive_urls=parse_limit(_pick(overrides, "max_recursive_urls"), base.max_recursive_urls),
        same_origin_only=parse_bool(_pick(overrides, "same_origin_only"), base.same_origin_only),
        summary_max_chars=parse_limit(_pick(overrides, "summary_max_chars"), base.summary_max_chars),
        scrape_max_chars=parse_limit(_pick(overrides, "scrape_max_chars"), base.scrape_max_chars),
        fetch_timeout_ms=parse_int(_pick(overrides, "fetch_timeout_ms"), base.fetch_timeout_ms),
        fetch_retries=parse_int(_pick(overrides, "fetch_retries"), base.fetch_retries),
    )


def resolve_search_options(overrides: Optional[Mapping[str, Any]] = None, defaults: Optional[SearchOptions] = None) -> SearchOptions:
    base = defaults or SearchOptions()
    if isinstance(overrides, SearchOptions):
        return overrides
    overrides = overrides or {}
    enabled = parse_bool(_pick(overrides, "enabled"), base.enabled)
    max_results = parse_int(_pick(overrides, "max_results"), base.max_results)
    return replace(base, enabled=enabled, max_results=max(1, max_results))
