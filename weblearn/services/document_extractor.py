"""Document (PDF / Word / PowerPoint) text extraction.

Extraction runs an ordered chain of tiers, each turning a `DocumentSource`
into a `TierResult`. The first successful tier wins; otherwise the reasons of
every tier are joined with "|" so the caller can see why each one failed.
"""
import html
import io
import logging
import re
import zipfile
from dataclasses import dataclass
from typing import List, Optional, Protocol, Sequence
from urllib.parse import urlsplit

from pypdf import PdfReader
from pypdf.errors import PyPdfError

from weblearn.exceptions import HttpFetchError
from weblearn.services.http_service import HttpService
from weblearn.services.text_quality import TextQualityFilter, clean_low_quality_text, summarize_text

logger = logging.getLogger(__name__)

PDF = "pdf"
WORD = "word"
POWERPOINT = "powerpoint"

_KIND_RULES = (
    (PDF, ("application/pdf",), (".pdf",)),
    (
        WORD,
        ("application/vnd.openxmlformats-officedocument.wordprocessingml.document", "application/msword"),
        (".docx", ".doc"),
    ),
    (
        POWERPOINT,
        ("application/vnd.openxmlformats-officedocument.presentationml.presentation", "application/vnd.ms-powerpoint"),
        (".pptx", ".ppt"),
    ),
)

_FILE_EXTENSIONS = {PDF: "pdf", WORD: "docx", POWERPOINT: "pptx"}


def document_kind(url: str, content_type: Optional[str]) -> Optional[str]:
    """Classify a response as pdf / word / powerpoint by MIME type or URL extension."""
    normalized_type = str(content_type or "").lower()
    try:
        path = urlsplit(str(url or "")).path.lower()
    except ValueError:
        path = str(url or "").lower()
    for kind, mime_types, extensions in _KIND_RULES:
        if any(mime in normalized_type for mime in mime_types) or path.endswith(extensions):
            return kind
    return None


def document_title(kind: str) -> str:
    return f"{kind.upper()} Document"


@dataclass(frozen=True)
class DocumentSource:
    url: str
    kind: str
    content: bytes = b""
    """Raw bytes of the already downloaded document, if any."""


@dataclass(frozen=True)
class TierResult:
    ok: bool
    reason: Optional[str] = None
    title: Optional[str] = None
    text: Optional[str] = None
    char_count: Optional[int] = None
    detail: Optional[str] = None

    @classmethod
    def failure(cls, reason: str, detail: Optional[str] = None) -> "TierResult":
        return cls(ok=False, reason=reason, detail=detail)


class ExtractionTier(Protocol):
    name: str

    def extract(self, source: DocumentSource) -> TierResult: ...


class _TextTier:
    def __init__(self, quality_filter: Optional[TextQualityFilter] = None, max_chars: Optional[int] = 1600):
        self.quality_filter = quality_filter or TextQualityFilter()
        self.max_chars = max_chars

    def _finish(self, source: DocumentSource, raw_text: str, low_signal_reason: str) -> TierResult:
        text = clean_low_quality_text(raw_text)
        if not self.quality_filter.is_acceptable(text):
            return TierResult.failure(low_signal_reason)
        return TierResult(
            ok=True,
            title=document_title(source.kind),
            text=summarize_text(text, self.max_chars),
            char_count=len(text),
        )


class _HostedTier(_TextTier):
    """Shared plumbing for the hosted document endpoints (bearer-key JSON APIs)."""

    def __init__(
        self,
        http_service: HttpService,
        api_key: Optional[str],
        base_url: str,
        quality_filter: Optional[TextQualityFilter] = None,
        max_chars: Optional[int] = 1600,
        timeout: float = 60,
    ):
        super().__init__(quality_filter, max_chars)
        self.http_service = http_service
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def _post(self, path: str, payload: dict):
        return self.http_service.post(
            f"{self.base_url}{path}",
            json=payload,
            headers={"Authorization": f"Bearer {self.api_key}", "Content-Type": "application/json"},
            timeout=self.timeout,
        )


class HostedOcrTier(_HostedTier):
    """Hosted OCR/document API that reads the document straight from its URL."""

    name = "ocr"

    def extract(self, source: DocumentSource) -> TierResult:
        if not self.api_key:
            return TierResult.failure("ocr_needs_api_key")
        payload = {
            "document": {"type": "document_url", "document_url": source.url},
            "table_format": "markdown",
        }
        try:
            response = self._post("/ocr", payload)
        except HttpFetchError as e:
            logger.warning("OCR request failed for %s: %s", source.url, e)
            return TierResult.failure("ocr_request_failed")
        if not response.ok:
            return TierResult.failure(f"ocr_http_{response.status_code}", detail=response.text[:200])
        try:
            data = response.json()
        except ValueError:
            return TierResult.failure("ocr_invalid_response")

        pages = data.get("pages") if isinstance(data, dict) else None
        page_texts = [str(page.get("markdown") or "").strip() for page in pages or [] if isinstance(page, dict)]
        merged = "\n\n".join(text for text in page_texts if text)
        return self._finish(source, merged, "ocr_text_low_signal")


class ChatParserTier(_HostedTier):
    """Hosted multimodal chat-completion model asked to read the file and take notes."""

    name = "chat_parser"

    def __init__(self, *args, model: str = "qwen/qwen3-32b", **kwargs):
        super().__init__(*args, **kwargs)
        self.model = model

    def _payload(self, source: DocumentSource) -> dict:
        payload = {
            "model": self.model,
            "stream": False,
            "messages": [
                {
                    "role": "user",
                    "content": [
                        {
                            "type": "text",
                            "text": f"Read this {source.kind} file and extract concise learning notes and key facts as plain text.",
                        },
                        {
                            "type": "file",
                            "file": {
                                "filename": f"source.{_FILE_EXTENSIONS.get(source.kind, 'pdf')}",
                                "file_data": source.url,
                            },
                        },
                    ],
                }
            ],
        }
        if source.kind == PDF:
            payload["plugins"] = [{"id": "file-parser", "pdf": {"engine": "pdf-text"}}]
        return payload

    def extract(self, source: DocumentSource) -> TierResult:
        if not self.api_key:
            return TierResult.failure("pdf_parser_needs_api_key")
        try:
            response = self._post("/chat/completions", self._payload(source))
        except HttpFetchError as e:
            logger.warning("Chat parser request failed for %s: %s", source.url, e)
            return TierResult.failure("pdf_parser_request_failed")
        if not response.ok:
            return TierResult.failure(f"pdf_parser_http_{response.status_code}", detail=response.text[:200])
        try:
            data = response.json()
            content = data["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError):
            return TierResult.failure("pdf_parser_invalid_response")
        return self._finish(source, str(content or ""), "pdf_parser_low_signal")


_WORD_RUN_RE = re.compile(r"<w:t[^>]*>([\s\S]*?)</w:t>")
_SLIDE_RUN_RE = re.compile(r"<a:t>([\s\S]*?)</a:t>")
_SLIDE_PATH_RE = re.compile(r"^ppt/slides/slide(\d+)\.xml$", re.IGNORECASE)
_WORD_PARTS = ("word/document.xml", "word/header1.xml", "word/footer1.xml")


def extract_pdf_text(content: bytes) -> str:
    reader = PdfReader(io.BytesIO(content))
    return "\n".join(page.extract_text() or "" for page in reader.pages)


def extract_docx_text(archive: zipfile.ZipFile) -> str:
    names = set(archive.namelist())
    chunks = []
    for part in _WORD_PARTS:
        if part not in names:
            continue
        xml = archive.read(part).decode("utf-8", errors="replace")
        chunks.extend(html.unescape(run) for run in _WORD_RUN_RE.findall(xml))
    return " ".join(chunks)


def extract_pptx_text(archive: zipfile.ZipFile) -> str:
    slides = []
    for name in archive.namelist():
        match = _SLIDE_PATH_RE.match(name)
        if match:
            slides.append((int(match.group(1)), name))
    chunks = []
    for _, name in sorted(slides):
        xml = archive.read(name).decode("utf-8", errors="replace")
        chunks.extend(html.unescape(run) for run in _SLIDE_RUN_RE.findall(xml))
    return " ".join(chunks)


class LocalDocumentTier(_TextTier):
    """In-process parsing of the downloaded bytes: pypdf for PDF, OOXML text runs for Office."""

    name = "local"

    def __init__(self, http_service: Optional[HttpService] = None, quality_filter: Optional[TextQualityFilter] = None, max_chars: Optional[int] = 1600, timeout: float = 30):
        super().__init__(quality_filter, max_chars)
        self.http_service = http_service
        self.timeout = timeout

    def _load_content(self, source: DocumentSource, prefix: str):
        if source.content:
            return source.content, None
        if self.http_service is None:
            return None, f"{prefix}_no_content"
        try:
            response = self.http_service.fetch(source.url, timeout=self.timeout)
        except HttpFetchError as e:
            logger.warning("Local %s download failed for %s: %s", source.kind, source.url, e)
            return None, f"{prefix}_fetch_failed"
        if not response.ok:
            return None, f"{prefix}_http_{response.status_code}"
        return response.content, None

    def extract(self, source: DocumentSource) -> TierResult:
        if source.kind == PDF:
            return self._extract_pdf(source)
        return self._extract_office(source)

    def _extract_pdf(self, source: DocumentSource) -> TierResult:
        content, reason = self._load_content(source, "pdf_local")
        if reason:
            return TierResult.failure(reason)
        try:
            text = extract_pdf_text(content)
        except (PyPdfError, ValueError, OSError) as e:
            logger.debug("Local PDF parse failed for %s: %s", source.url, e)
            return TierResult.failure("pdf_local_parse_failed")
        return self._finish(source, text, "pdf_local_low_signal")

    def _extract_office(self, source: DocumentSource) -> TierResult:
        content, reason = self._load_content(source, "office_local")
        if reason:
            return TierResult.failure(reason)
        if not zipfile.is_zipfile(io.BytesIO(content)):
            # Legacy binary .doc / .ppt
            return TierResult.failure("office_local_unsupported_format")
        try:
            with zipfile.ZipFile(io.BytesIO(content)) as archive:
                if source.kind == WORD:
                    text = extract_docx_text(archive)
                else:
                    text = extract_pptx_text(archive)
        except (zipfile.BadZipFile, KeyError, OSError) as e:
            logger.debug("Local office parse failed for %s (%s): %s", source.url, source.kind, e)
            return TierResult.failure("office_local_parse_failed")
        return self._finish(source, text, "office_local_low_signal")


class DocumentExtractionChain:
    def __init__(self, tiers: Sequence[ExtractionTier]):
        self.tiers = list(tiers)

    def extract(self, source: DocumentSource) -> TierResult:
        reasons: List[str] = []
        last: Optional[TierResult] = None
        for tier in self.tiers:
            try:
                result = tier.extract(source)
            except Exception:
                logger.exception("Document tier %s raised for %s", getattr(tier, "name", tier), source.url)
                result = TierResult.failure(f"{getattr(tier, 'name', 'tier')}_failed")
            if result.ok:
                if reasons:
                    logger.info("Extracted %s via %s after: %s", source.url, getattr(tier, "name", tier), "|".join(reasons))
                return result
            reasons.append(result.reason or "unknown_failure")
            last = result
        return TierResult.failure("|".join(reasons) or "document_extraction_failed", detail=last.detail if last else None)
