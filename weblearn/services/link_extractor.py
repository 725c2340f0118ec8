from typing import List, Optional
from urllib.parse import urljoin, urlsplit

from bs4 import BeautifulSoup


class LinkExtractor:
    """Harvests outbound links from a page for the next crawl layer."""

    def extract_links(self, base_url: str, html: Optional[str], max_links: Optional[int] = None) -> List[str]:
        """Return absolute http(s) links in document order.

        Fragment-only and `javascript:` hrefs are skipped, duplicates are
        dropped, and at most `max_links` are returned (None = no cap).
        """
        if not html or max_links == 0:
            return []

        soup = BeautifulSoup(html, "html.parser")
        urls: List[str] = []
        seen = set()
        for a in soup.find_all("a", href=True):
            href = (a.get("href") or "").strip()
            if not href or href.startswith("#") or href.lower().startswith("javascript:"):
                continue
            try:
                abs_url = urljoin(base_url, href)
                scheme = urlsplit(abs_url).scheme.lower()
            except ValueError:
                continue
            if scheme not in ("http", "https") or abs_url in seen:
                continue
            seen.add(abs_url)
            urls.append(abs_url)
            if max_links is not None and len(urls) >= max_links:
                break
        return urls
