import logging
from typing import Optional, Sequence, Tuple
from urllib.parse import urljoin

from weblearn.domain.crawl_options import CrawlOptions
from weblearn.domain.fetch_result import FetchResult
from weblearn.domain.http_response import HttpResponse
from weblearn.exceptions import HttpFetchError, TooManyRedirectsError, UnsafeRedirectError
from weblearn.services.document_extractor import DocumentExtractionChain, DocumentSource, document_kind
from weblearn.services.html_text_extractor import HtmlTextExtractor
from weblearn.services.http_service import HttpService
from weblearn.services.link_extractor import LinkExtractor
from weblearn.services.site_handlers import SiteHandler
from weblearn.services.text_quality import TextQualityFilter, summarize_text
from weblearn.services.url_validator import UrlSafetyValidator

logger = logging.getLogger(__name__)

MAX_REDIRECTS = 5
MIN_TIMEOUT_MS = 1000


class ContentFetcher:
    """Fetches one URL and turns it into a `FetchResult`.

    Order of work: safety validation, site handlers (fail-soft), generic GET
    with retries, then dispatch on content type to the document chain or the
    HTML pipeline, and finally the quality filter.
    """

    def __init__(
        self,
        *,
        http_service: HttpService,
        validator: UrlSafetyValidator,
        document_chain: DocumentExtractionChain,
        site_handlers: Sequence[SiteHandler] = (),
        html_extractor: Optional[HtmlTextExtractor] = None,
        link_extractor: Optional[LinkExtractor] = None,
        quality_filter: Optional[TextQualityFilter] = None,
        max_redirects: int = MAX_REDIRECTS,
    ):
        self.http_service = http_service
        self.validator = validator
        self.document_chain = document_chain
        self.site_handlers = list(site_handlers)
        self.html_extractor = html_extractor or HtmlTextExtractor()
        self.link_extractor = link_extractor or LinkExtractor()
        self.quality_filter = quality_filter or TextQualityFilter()
        self.max_redirects = max_redirects

    def fetch(self, url: str, options: CrawlOptions) -> FetchResult:
        verdict = self.validator.validate(url)
        if not verdict.safe:
            logger.info("Skipping (unsafe: %s) %s", verdict.reason, url)
            return FetchResult.failure(url, verdict.reason)

        handled = self._try_site_handlers(url, options)
        if handled is not None:
            return handled

        attempts = max(1, options.fetch_retries)
        timeout = max(MIN_TIMEOUT_MS, options.fetch_timeout_ms) / 1000
        last_reason = "fetch_failed"
        for attempt in range(1, attempts + 1):
            try:
                response, final_url = self._get_following_safe_redirects(url, timeout)
            except UnsafeRedirectError as e:
                logger.warning("Redirect from %s to %s blocked: %s", url, e.url, e.reason)
                return FetchResult.failure(url, f"redirect_{e.reason}")
            except TooManyRedirectsError:
                return FetchResult.failure(url, "too_many_redirects")
            except HttpFetchError as e:
                last_reason = "timeout" if e.timed_out else "fetch_failed"
                logger.warning("Failed to fetch %s attempt=%d/%d: %s", url, attempt, attempts, e)
                continue

            if not response.ok:
                logger.info("Fetched %s -> status %s", url, response.status_code)
                return FetchResult.failure(url, f"http_{response.status_code}")
            return self._dispatch(url, final_url, response, options)

        return FetchResult.failure(url, last_reason)

    def _try_site_handlers(self, url: str, options: CrawlOptions) -> Optional[FetchResult]:
        for handler in self.site_handlers:
            if not handler.matches(url):
                continue
            try:
                result = handler.fetch(url, options)
            except Exception:
                logger.exception("Site handler %s raised for %s", getattr(handler, "name", handler), url)
                continue
            if result is not None and result.ok:
                logger.info("Fetched %s via %s handler", url, getattr(handler, "name", handler))
                return result
        return None

    def _get_following_safe_redirects(self, url: str, timeout: float) -> Tuple[HttpResponse, str]:
        """GET `url`, following redirects only to targets that pass validation."""
        current = url
        for _ in range(self.max_redirects + 1):
            response = self.http_service.fetch(current, timeout=timeout, allow_redirects=False)
            if not response.is_redirect:
                return response, current
            target = urljoin(current, response.location)
            verdict = self.validator.validate(target)
            if not verdict.safe:
                raise UnsafeRedirectError(target, verdict.reason)
            logger.debug("Following redirect %s -> %s", current, target)
            current = target
        raise TooManyRedirectsError(url, self.max_redirects)

    def _dispatch(self, url: str, final_url: str, response: HttpResponse, options: CrawlOptions) -> FetchResult:
        content_type = str(response.content_type or "").lower()
        kind = document_kind(final_url, content_type) or document_kind(url, content_type)
        if kind:
            return self._extract_document(url, kind, response)
        if "text/html" in content_type or "text/plain" in content_type:
            return self._extract_page(url, final_url, response.text, options, harvest_links="text/html" in content_type)
        logger.info("Skipping (unsupported content type %r) %s", content_type, url)
        return FetchResult.failure(url, "unsupported_content_type")

    def _extract_document(self, url: str, kind: str, response: HttpResponse) -> FetchResult:
        result = self.document_chain.extract(DocumentSource(url=url, kind=kind, content=response.content))
        if not result.ok:
            logger.info("Document extraction failed for %s: %s", url, result.reason)
            return FetchResult.failure(url, result.reason)
        return FetchResult.success(url, title=result.title, text=result.text, char_count=result.char_count)

    def _extract_page(self, url: str, final_url: str, body: str, options: CrawlOptions, harvest_links: bool) -> FetchResult:
        body = body or ""
        scraped = body if options.scrape_max_chars is None else body[: options.scrape_max_chars]
        page = self.html_extractor.extract(scraped, title_source=body)
        if not self.quality_filter.is_acceptable(page.text):
            logger.info("Skipping (low signal) %s", url)
            return FetchResult.failure(url, "low_signal_content")

        links = []
        if harvest_links:
            links = self.link_extractor.extract_links(final_url, scraped, options.max_hrefs_per_page)
        return FetchResult.success(
            url,
            title=page.title,
            text=summarize_text(page.text, options.summary_max_chars),
            char_count=len(page.text),
            outbound_links=links,
        )
