import logging
from typing import Callable, NamedTuple, Optional

from bs4 import BeautifulSoup

from weblearn.services.text_quality import clean_low_quality_text, collapse_whitespace

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "Untitled Page"


class ExtractedPage(NamedTuple):
    title: str
    text: str


class HtmlTextExtractor:
    """Turns an HTML (or plain text) body into a title and cleaned prose."""

    # Code and styling
    NON_CONTENT_TAGS = ('script', 'style', 'noscript')
    # Page chrome around the actual article
    LAYOUT_TAGS = ('header', 'nav', 'footer', 'aside')

    def __init__(
        self,
        soup_factory: Optional[Callable[[str], BeautifulSoup]] = None,
    ):
        self._soup_factory = soup_factory or (lambda html: BeautifulSoup(html, "html.parser"))

    def extract_title(self, html: Optional[str]) -> str:
        if not html:
            return DEFAULT_TITLE
        soup = self._soup_factory(html)
        if soup.title is None:
            return DEFAULT_TITLE
        title = collapse_whitespace(soup.title.get_text())
        return title or DEFAULT_TITLE

    def extract(self, html: Optional[str], title_source: Optional[str] = None) -> ExtractedPage:
        """Extract the page text from `html`.

        `title_source` lets callers read the title from the untruncated body
        while extracting text from a truncated one.
        """
        title = self.extract_title(title_source if title_source is not None else html)
        if not html:
            return ExtractedPage(title, "")

        soup = self._soup_factory(html)
        for tag in self.NON_CONTENT_TAGS + self.LAYOUT_TAGS:
            for element in soup.find_all(tag):
                element.decompose()

        region = self._preferred_content_region(soup)
        text = region.get_text(separator=" ")
        return ExtractedPage(title, clean_low_quality_text(text))

    def _preferred_content_region(self, soup: BeautifulSoup):
        candidates = []
        candidates.extend(soup.find_all('main'))
        candidates.extend(soup.find_all('article'))
        candidates.extend(soup.find_all('div', id=lambda x: x and 'mw-content-text' in x))
        candidates.extend(soup.find_all('div', class_=lambda x: x and 'markdown-body' in x))
        candidates.extend(soup.find_all(attrs={'role': 'main'}))

        scored = [(len(element.get_text(strip=True)), element) for element in candidates]
        scored = [pair for pair in scored if pair[0] > 0]
        if not scored:
            return soup.body or soup
        return max(scored, key=lambda pair: pair[0])[1]
