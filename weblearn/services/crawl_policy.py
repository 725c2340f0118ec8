from typing import Optional
from urllib.parse import urlsplit

from weblearn.domain.crawl_options import CrawlOptions, limit_reached
from weblearn.domain.crawl_session import CrawlQueueItem, CrawlSession
import logging

logger = logging.getLogger(__name__)

_DEFAULT_PORTS = {"http": 80, "https": 443}


def url_origin(url: str) -> Optional[str]:
    """Return scheme://host:port with the scheme's default port made explicit."""
    try:
        parsed = urlsplit(str(url or "").strip())
        port = parsed.port
    except ValueError:
        return None
    scheme = parsed.scheme.lower()
    host = (parsed.hostname or "").lower()
    if not scheme or not host:
        return None
    if port is None:
        port = _DEFAULT_PORTS.get(scheme)
    return f"{scheme}://{host}:{port}"


class CrawlPolicy:
    """Encapsulates crawl decision rules: depth limit, same-origin scope and link budgets.

    Separates policy decisions from crawl orchestration logic.
    """

    def should_stop(self, session: CrawlSession) -> bool:
        """Stop once the page budget is spent or a stop was requested."""
        if session.is_stopped():
            logger.info("Crawl stopped on request")
            return True
        if limit_reached(len(session.contexts), session.options.max_pages):
            logger.info("Stopping crawl: max_pages=%s reached", session.options.max_pages)
            return True
        return False

    def should_follow_links(self, item: CrawlQueueItem, options: CrawlOptions) -> bool:
        """Only pages shallower than `recurse_depth` contribute links."""
        if item.depth >= options.recurse_depth:
            logger.debug("Not following links from %s (depth %s >= %s)", item.url, item.depth, options.recurse_depth)
            return False
        return True

    def is_in_scope(self, root_origin: Optional[str], candidate: str, options: CrawlOptions) -> bool:
        if not options.same_origin_only:
            return True
        origin = url_origin(candidate)
        if origin is None or origin != root_origin:
            logger.debug("Skipping (external) %s -> not same origin as %s", candidate, root_origin)
            return False
        return True

    def recursive_budget_exhausted(self, session: CrawlSession) -> bool:
        return limit_reached(session.recursive_admitted, session.options.max_recursive_urls)
