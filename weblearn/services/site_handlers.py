"""Specialized handlers tried before the generic fetch for well-known sites.

Each handler is fail-soft: `fetch` returns None whenever it cannot produce an
acceptable result, and the content fetcher moves on to the next strategy.
"""
import logging
import re
from typing import Optional, Protocol
from urllib.parse import quote, unquote, urlsplit

from weblearn.domain.crawl_options import CrawlOptions
from weblearn.domain.fetch_result import FetchResult
from weblearn.exceptions import HttpFetchError
from weblearn.services.http_service import HttpService
from weblearn.services.text_quality import TextQualityFilter, clean_low_quality_text, summarize_text

logger = logging.getLogger(__name__)

_WIKIPEDIA_HOST_RE = re.compile(r"(^|\.)wikipedia\.org$", re.IGNORECASE)
_WIKI_PATH_RE = re.compile(r"/wiki/([^/?#]+)", re.IGNORECASE)
_GITHUB_HOST_RE = re.compile(r"(^|\.)github\.com$", re.IGNORECASE)

README_SUMMARY_CHARS = 700


class SiteHandler(Protocol):
    name: str

    def matches(self, url: str) -> bool: ...

    def fetch(self, url: str, options: CrawlOptions) -> Optional[FetchResult]: ...


def _timeout_seconds(options: CrawlOptions) -> float:
    return max(1000, options.fetch_timeout_ms) / 1000


class _JsonApiHandler:
    def __init__(self, http_service: HttpService, quality_filter: Optional[TextQualityFilter] = None):
        self.http_service = http_service
        self.quality_filter = quality_filter or TextQualityFilter()

    def _get_json(self, api_url: str, options: CrawlOptions, **kwargs):
        headers = {"Accept": "application/json"}
        headers.update(kwargs.pop("headers", {}) or {})
        try:
            response = self.http_service.fetch(api_url, headers=headers, timeout=_timeout_seconds(options), **kwargs)
        except HttpFetchError as e:
            logger.debug("API request failed for %s: %s", api_url, e)
            return None
        if not response.ok:
            logger.debug("API request %s -> status %s", api_url, response.status_code)
            return None
        try:
            return response.json()
        except ValueError:
            logger.debug("API response from %s is not JSON", api_url)
            return None


def extract_wikipedia_title(url: str) -> Optional[str]:
    try:
        path = urlsplit(url).path
    except ValueError:
        return None
    match = _WIKI_PATH_RE.search(path)
    if not match:
        return None
    title = unquote(match.group(1)).replace("_", " ").strip()
    return title or None


class WikipediaHandler(_JsonApiHandler):
    """Reads Wikipedia articles through the REST summary API, then the extracts API."""

    name = "wikipedia"

    def matches(self, url: str) -> bool:
        try:
            host = urlsplit(url).hostname or ""
        except ValueError:
            return False
        return bool(_WIKIPEDIA_HOST_RE.search(host))

    @staticmethod
    def _api_host(url: str) -> str:
        host = (urlsplit(url).hostname or "").lower()
        lang = host.split(".")[0] if host.count(".") >= 2 else ""
        if not lang or lang in ("www", "m"):
            lang = "en"
        return f"{lang}.wikipedia.org"

    def fetch(self, url: str, options: CrawlOptions) -> Optional[FetchResult]:
        title = extract_wikipedia_title(url)
        if not title:
            return None
        api_host = self._api_host(url)
        return self._fetch_summary(url, api_host, title, options) or self._fetch_extract(url, api_host, title, options)

    def _accept(self, url: str, title: str, extract: str, options: CrawlOptions) -> Optional[FetchResult]:
        if not extract or not self.quality_filter.is_acceptable(extract):
            return None
        return FetchResult.success(
            url,
            title=title,
            text=summarize_text(extract, options.summary_max_chars),
            char_count=len(extract),
        )

    def _fetch_summary(self, url: str, api_host: str, title: str, options: CrawlOptions) -> Optional[FetchResult]:
        api_title = quote(title.replace(" ", "_"), safe="")
        data = self._get_json(f"https://{api_host}/api/rest_v1/page/summary/{api_title}", options)
        if not isinstance(data, dict):
            return None
        final_title = str(data.get("title") or title).strip()
        extract = clean_low_quality_text(data.get("extract"))
        return self._accept(url, final_title, extract, options)

    def _fetch_extract(self, url: str, api_host: str, title: str, options: CrawlOptions) -> Optional[FetchResult]:
        params = {
            "action": "query",
            "prop": "extracts",
            "explaintext": 1,
            "redirects": 1,
            "titles": title.replace(" ", "_"),
            "format": "json",
        }
        data = self._get_json(f"https://{api_host}/w/api.php", options, params=params)
        if not isinstance(data, dict):
            return None
        pages = list(((data.get("query") or {}).get("pages") or {}).values())
        page = pages[0] if pages and isinstance(pages[0], dict) else {}
        final_title = clean_low_quality_text(page.get("title") or title)
        extract = clean_low_quality_text(page.get("extract"))
        return self._accept(url, final_title, extract, options)


_README_RULES = (
    (re.compile(r"```[\s\S]*?```"), " "),
    (re.compile(r"`[^`]*`"), " "),
    (re.compile(r"<img[^>]*>", re.IGNORECASE), " "),
    (re.compile(r"<picture[\s\S]*?</picture>", re.IGNORECASE), " "),
    (re.compile(r"<[^>]+>"), " "),
    (re.compile(r"!\[[^\]]*\]\([^)]*\)"), " "),
    (re.compile(r"\[([^\]]+)\]\([^)]*\)"), r"\1"),
    (re.compile(r"^\s{0,3}>+\s?", re.MULTILINE), ""),
    (re.compile(r"^\s{0,3}#{1,6}\s*", re.MULTILINE), ""),
    (re.compile(r"^\s*[-*+]\s+", re.MULTILINE), ""),
    (re.compile(r"^\s*\d+\.\s+", re.MULTILINE), ""),
    (re.compile(r"\|"), " "),
    (re.compile(r"\[[!A-Z]+\]"), " "),
    (re.compile(r"\*\*"), ""),
    (re.compile(r"__+"), ""),
    (re.compile(r"https?://\S+"), " "),
)


def clean_readme_markdown(markdown: Optional[str]) -> str:
    """Reduce README markdown to prose: no code, images, markup or bare URLs."""
    text = str(markdown or "")
    if not text.strip():
        return ""
    for pattern, replacement in _README_RULES:
        text = pattern.sub(replacement, text)
    return re.sub(r"\s+", " ", text).strip()


def parse_github_repo(url: str) -> Optional[tuple]:
    try:
        parsed = urlsplit(url)
    except ValueError:
        return None
    if not _GITHUB_HOST_RE.search(parsed.hostname or ""):
        return None
    parts = [part for part in parsed.path.split("/") if part]
    if len(parts) < 2 or parts[0].startswith("settings"):
        return None
    repo = re.sub(r"\.git$", "", parts[1], flags=re.IGNORECASE)
    return parts[0], repo


class GitHubRepoHandler(_JsonApiHandler):
    """Summarizes a GitHub repository from its API metadata and README."""

    name = "github"
    API_BASE = "https://api.github.com"

    def __init__(self, http_service: HttpService, quality_filter: Optional[TextQualityFilter] = None, token: Optional[str] = None):
        super().__init__(http_service, quality_filter)
        self.token = token

    def matches(self, url: str) -> bool:
        return parse_github_repo(url) is not None

    def _auth_headers(self) -> dict:
        return {"Authorization": f"Bearer {self.token}"} if self.token else {}

    def _fetch_readme(self, repo_api: str, options: CrawlOptions) -> str:
        headers = {"Accept": "application/vnd.github.raw+json"}
        headers.update(self._auth_headers())
        try:
            response = self.http_service.fetch(f"{repo_api}/readme", headers=headers, timeout=_timeout_seconds(options))
        except HttpFetchError as e:
            logger.debug("README request failed for %s: %s", repo_api, e)
            return ""
        if not response.ok:
            return ""
        # Raw media types are not decoded by HttpService.
        return response.text or response.content.decode("utf-8", errors="replace")

    def fetch(self, url: str, options: CrawlOptions) -> Optional[FetchResult]:
        repo_info = parse_github_repo(url)
        if repo_info is None:
            return None
        owner, repo = repo_info
        repo_api = f"{self.API_BASE}/repos/{quote(owner, safe='')}/{quote(repo, safe='')}"

        data = self._get_json(repo_api, options, headers=self._auth_headers())
        if not isinstance(data, dict):
            return None

        readme = clean_readme_markdown(self._fetch_readme(repo_api, options))
        description = str(data.get("description") or "").strip()
        language = str(data.get("language") or "").strip()
        topics = data.get("topics") if isinstance(data.get("topics"), list) else []
        stars = data.get("stargazers_count")
        stars_text = str(stars) if isinstance(stars, int) and not isinstance(stars, bool) else "unknown"
        readme_snippet = summarize_text(clean_low_quality_text(readme), README_SUMMARY_CHARS)

        parts = []
        if description:
            parts.append(f"Description: {description}.")
        if language:
            parts.append(f"Primary language: {language}.")
        if topics:
            parts.append(f"Topics: {', '.join(str(t) for t in topics[:8])}.")
        parts.append(f"Stars: {stars_text}.")
        if readme_snippet:
            parts.append(f"README summary: {readme_snippet}")
        combined = clean_low_quality_text(" ".join(parts))

        if not combined or not self.quality_filter.is_acceptable(combined):
            return None
        return FetchResult.success(
            url,
            title=f"{owner}/{repo} (GitHub Repository)",
            text=summarize_text(combined, options.summary_max_chars),
            char_count=len(combined),
        )
