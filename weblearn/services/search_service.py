import logging
import re
from typing import List, Optional, Protocol, Sequence
from urllib.parse import parse_qs, urljoin, urlsplit

from bs4 import BeautifulSoup

from weblearn.domain.crawl_options import SearchOptions
from weblearn.domain.crawl_result import SearchResult
from weblearn.exceptions import HttpFetchError, SearchProviderError
from weblearn.services.http_service import HttpService

logger = logging.getLogger(__name__)

BROWSER_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/122.0.0.0 Safari/537.36"
)

_BOILERPLATE_RE = re.compile(r"\b(what is|whats|what s|tell me about|about|explain|define|learn about|learn)\b")


def normalize_search_query(query: str) -> str:
    """Lowercase, drop punctuation and question boilerplate, collapse whitespace."""
    original = str(query or "").strip()
    cleaned = re.sub(r"[^a-z0-9\s-]", " ", original.lower())
    cleaned = _BOILERPLATE_RE.sub(" ", cleaned)
    cleaned = re.sub(r"\s+", " ", cleaned).strip()
    return cleaned or original


class SearchProvider(Protocol):
    name: str

    def search(self, query: str, max_results: int) -> List[str]:
        """Return candidate URLs in provider order; raise SearchProviderError on failure."""
        ...


class DuckDuckGoLiteProvider:
    """Scrapes the DuckDuckGo lite HTML results page."""

    name = "duckduckgo"
    ENDPOINT = "https://lite.duckduckgo.com/lite/"

    def __init__(self, http_service: HttpService, timeout: float = 10):
        self.http_service = http_service
        self.timeout = timeout

    @staticmethod
    def resolve_result_href(href: str) -> Optional[str]:
        """Unwrap result redirects and drop DuckDuckGo's own chrome links."""
        raw = str(href or "").strip()
        if not raw:
            return None
        try:
            parsed = urlsplit(urljoin("https://duckduckgo.com", raw))
        except ValueError:
            return None

        if parsed.path in ("/l/", "/l"):
            target = parse_qs(parsed.query).get("uddg")
            if target:
                return DuckDuckGoLiteProvider.resolve_result_href(target[0])
        if parsed.scheme.lower() not in ("http", "https"):
            return None
        host = (parsed.hostname or "").lower()
        if host == "duckduckgo.com" or host.endswith(".duckduckgo.com"):
            return None
        return parsed.geturl()

    def extract_result_urls(self, html: str, max_results: int) -> List[str]:
        soup = BeautifulSoup(html or "", "html.parser")
        urls: List[str] = []
        for a in soup.find_all("a", href=True):
            resolved = self.resolve_result_href(a.get("href"))
            if not resolved or resolved in urls:
                continue
            urls.append(resolved)
            if len(urls) >= max_results:
                break
        return urls

    def search(self, query: str, max_results: int) -> List[str]:
        headers = {
            "User-Agent": BROWSER_USER_AGENT,
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
            "Accept-Language": "en-US,en;q=0.9",
            "Content-Type": "application/x-www-form-urlencoded",
            "Origin": "https://lite.duckduckgo.com",
            "Referer": "https://lite.duckduckgo.com/",
        }
        try:
            response = self.http_service.post(self.ENDPOINT, data={"q": query}, headers=headers, timeout=self.timeout)
        except HttpFetchError as e:
            logger.warning("DuckDuckGo search failed for %r: %s", query, e)
            raise SearchProviderError(self.name, "search_failed") from e
        if not response.ok:
            raise SearchProviderError(self.name, f"search_http_{response.status_code}")
        return self.extract_result_urls(response.text, max_results)


class WikipediaOpenSearchProvider:
    """Wikipedia `opensearch` API; element [3] of the reply holds article URLs."""

    name = "wikipedia"
    ENDPOINT = "https://en.wikipedia.org/w/api.php"

    def __init__(self, http_service: HttpService, timeout: float = 10):
        self.http_service = http_service
        self.timeout = timeout

    def search(self, query: str, max_results: int) -> List[str]:
        params = {
            "action": "opensearch",
            "search": query,
            "limit": max(1, max_results),
            "namespace": 0,
            "format": "json",
        }
        try:
            response = self.http_service.fetch(
                self.ENDPOINT, params=params, headers={"Accept": "application/json"}, timeout=self.timeout
            )
        except HttpFetchError as e:
            logger.warning("Wikipedia search failed for %r: %s", query, e)
            raise SearchProviderError(self.name, "search_failed") from e
        if not response.ok:
            raise SearchProviderError(self.name, f"search_http_{response.status_code}")
        try:
            data = response.json()
        except ValueError as e:
            raise SearchProviderError(self.name, "search_failed") from e

        urls = data[3] if isinstance(data, list) and len(data) > 3 and isinstance(data[3], list) else []
        return [url for url in urls if isinstance(url, str) and url.startswith("http")][:max_results]


class WebSearchService:
    """Resolves a free-text query into candidate URLs through a provider chain.

    Providers are tried in order; the next one runs only when the previous
    one produced no URLs (including when it failed).
    """

    def __init__(self, providers: Sequence[SearchProvider], defaults: Optional[SearchOptions] = None):
        self.providers = list(providers)
        self.defaults = defaults or SearchOptions()

    def search(self, query: str, options: Optional[SearchOptions] = None) -> SearchResult:
        options = options or self.defaults
        if not options.enabled:
            return SearchResult(ok=False, reason="search_disabled")

        clean_query = str(query or "").strip()
        if not clean_query:
            return SearchResult(ok=False, reason="empty_query")

        normalized = normalize_search_query(clean_query)
        max_results = max(1, options.max_results)
        first_failure: Optional[str] = None
        for provider in self.providers:
            try:
                found = provider.search(normalized, max_results)
            except SearchProviderError as e:
                logger.info("Search provider %s failed for %r: %s", e.provider, normalized, e.reason)
                first_failure = first_failure or e.reason
                continue

            urls: List[str] = []
            for url in found:
                if url not in urls:
                    urls.append(url)
            urls = urls[:max_results]
            if urls:
                logger.info("Search %r via %s -> %d urls", normalized, provider.name, len(urls))
                return SearchResult(ok=True, reason="ok", provider=provider.name, query=normalized, urls=tuple(urls))

        return SearchResult(
            ok=False,
            reason=first_failure or "no_results",
            provider=self.providers[0].name if self.providers else None,
            query=normalized,
        )
