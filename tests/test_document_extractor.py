import io
import json
import zipfile
from unittest.mock import MagicMock, Mock, patch

import pytest
import requests

from weblearn.domain.http_response import HttpResponse
from weblearn.exceptions import HttpFetchError
from weblearn.services.document_extractor import (
    PDF,
    POWERPOINT,
    WORD,
    ChatParserTier,
    DocumentExtractionChain,
    DocumentSource,
    HostedOcrTier,
    LocalDocumentTier,
    TierResult,
    document_kind,
)

LONG_TEXT = ("Photosynthesis converts light energy into chemical energy stored in glucose "
             "molecules inside the chloroplasts of green plants and algae. ") * 3


def _docx_bytes(*runs):
    body = "".join(f"<w:p><w:r><w:t>{run}</w:t></w:r></w:p>" for run in runs)
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as archive:
        archive.writestr("word/document.xml", f'<w:document><w:body>{body}</w:body></w:document>')
    return buf.getvalue()


def _pptx_bytes(*slides):
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as archive:
        for index, text in enumerate(slides, start=1):
            archive.writestr(f"ppt/slides/slide{index}.xml", f"<p:sld><a:t>{text}</a:t></p:sld>")
    return buf.getvalue()


@pytest.mark.parametrize("url,content_type,expected", [
    ("https://x.org/paper.pdf", None, PDF),
    ("https://x.org/download?id=1", "application/pdf", PDF),
    ("https://x.org/notes.docx", "application/octet-stream", WORD),
    ("https://x.org/file", "application/vnd.openxmlformats-officedocument.presentationml.presentation", POWERPOINT),
    ("https://x.org/slides.PPT", "", POWERPOINT),
    ("https://x.org/page.html", "text/html", None),
])
def test_document_kind(url, content_type, expected):
    assert document_kind(url, content_type) == expected


def test_pdf_falls_through_to_local_tier():
    http = Mock()
    http.post.side_effect = [HttpResponse(403, "forbidden"), HttpResponse(500, "boom")]
    chain = DocumentExtractionChain([
        HostedOcrTier(http, api_key="k", base_url="https://ai.example.com/v1/"),
        ChatParserTier(http, api_key="k", base_url="https://ai.example.com/v1"),
        LocalDocumentTier(http),
    ])
    source = DocumentSource(url="https://x.org/paper.pdf", kind=PDF, content=b"%PDF-1.4 fake")

    with patch("weblearn.services.document_extractor.extract_pdf_text", return_value=LONG_TEXT):
        result = chain.extract(source)

    assert result.ok
    assert result.title == "PDF Document"
    assert result.char_count == len(LONG_TEXT.strip())
    ocr_call, chat_call = http.post.call_args_list
    assert ocr_call[0][0] == "https://ai.example.com/v1/ocr"
    assert ocr_call[1]["headers"]["Authorization"] == "Bearer k"
    assert chat_call[0][0] == "https://ai.example.com/v1/chat/completions"
    assert chat_call[1]["json"]["plugins"][0]["id"] == "file-parser"
    http.fetch.assert_not_called()


def test_all_tiers_fail_joins_reasons():
    chain = DocumentExtractionChain([
        HostedOcrTier(Mock(), api_key=None, base_url="https://ai.example.com"),
        ChatParserTier(Mock(), api_key=None, base_url="https://ai.example.com"),
        LocalDocumentTier(),
    ])
    source = DocumentSource(url="https://x.org/paper.pdf", kind=PDF, content=b"not a pdf")

    result = chain.extract(source)

    assert not result.ok
    assert result.reason == "ocr_needs_api_key|pdf_parser_needs_api_key|pdf_local_parse_failed"


def test_ocr_tier_merges_pages():
    http = Mock()
    http.post.return_value = HttpResponse(200, json.dumps({"pages": [{"markdown": LONG_TEXT}, {"markdown": "More."}]}))
    tier = HostedOcrTier(http, api_key="k", base_url="https://ai.example.com", max_chars=None)

    result = tier.extract(DocumentSource(url="https://x.org/a.pdf", kind=PDF))

    assert result.ok
    assert result.text.endswith("More.")
    payload = http.post.call_args[1]["json"]
    assert payload["document"] == {"type": "document_url", "document_url": "https://x.org/a.pdf"}


def test_ocr_tier_request_failure_and_invalid_json():
    http = Mock()
    http.post.side_effect = HttpFetchError("u", requests.exceptions.ConnectionError("down"))
    tier = HostedOcrTier(http, api_key="k", base_url="https://ai.example.com")
    assert tier.extract(DocumentSource(url="u", kind=PDF)).reason == "ocr_request_failed"

    http.post.side_effect = None
    http.post.return_value = HttpResponse(200, "not json")
    assert tier.extract(DocumentSource(url="u", kind=PDF)).reason == "ocr_invalid_response"


def test_chat_parser_reads_message_content():
    http = Mock()
    http.post.return_value = HttpResponse(200, json.dumps({"choices": [{"message": {"content": LONG_TEXT}}]}))
    tier = ChatParserTier(http, api_key="k", base_url="https://ai.example.com", model="m-1")

    result = tier.extract(DocumentSource(url="https://x.org/notes.docx", kind=WORD))

    assert result.ok
    assert result.title == "WORD Document"
    payload = http.post.call_args[1]["json"]
    assert payload["model"] == "m-1"
    assert "plugins" not in payload
    assert payload["messages"][0]["content"][1]["file"]["filename"] == "source.docx"


def test_chat_parser_low_signal():
    http = Mock()
    http.post.return_value = HttpResponse(200, json.dumps({"choices": [{"message": {"content": "ok"}}]}))
    tier = ChatParserTier(http, api_key="k", base_url="https://ai.example.com")
    assert tier.extract(DocumentSource(url="u", kind=PDF)).reason == "pdf_parser_low_signal"


def test_local_docx_extraction():
    content = _docx_bytes(LONG_TEXT, "Fish &amp; chips")
    result = LocalDocumentTier().extract(DocumentSource(url="https://x.org/a.docx", kind=WORD, content=content))
    assert result.ok
    assert result.title == "WORD Document"
    assert result.text.endswith("Fish & chips")


def test_local_pptx_extraction_orders_slides():
    content = _pptx_bytes(LONG_TEXT, "Second slide", "Third slide")
    tier = LocalDocumentTier(max_chars=None)
    result = tier.extract(DocumentSource(url="https://x.org/a.pptx", kind=POWERPOINT, content=content))
    assert result.ok
    assert result.text.endswith("Second slide Third slide")


def test_local_office_rejects_legacy_binary():
    result = LocalDocumentTier().extract(DocumentSource(url="https://x.org/a.doc", kind=WORD, content=b"\xd0\xcf\x11\xe0legacy"))
    assert result.reason == "office_local_unsupported_format"


def test_local_office_low_signal():
    result = LocalDocumentTier().extract(DocumentSource(url="https://x.org/a.docx", kind=WORD, content=_docx_bytes("tiny")))
    assert result.reason == "office_local_low_signal"


def test_local_tier_downloads_when_no_content():
    http = Mock()
    http.fetch.return_value = HttpResponse(200, "", "application/vnd.openxmlformats-officedocument.wordprocessingml.document", _docx_bytes(LONG_TEXT))
    result = LocalDocumentTier(http).extract(DocumentSource(url="https://x.org/a.docx", kind=WORD))
    assert result.ok
    http.fetch.assert_called_once()


def test_local_text_is_capped():
    content = _docx_bytes(LONG_TEXT * 20)
    result = LocalDocumentTier().extract(DocumentSource(url="https://x.org/a.docx", kind=WORD, content=content))
    assert result.ok
    assert len(result.text) <= 1600 + 3
    assert result.char_count > 1600


def test_chain_converts_tier_exceptions():
    broken = MagicMock()
    broken.name = "broken"
    broken.extract.side_effect = RuntimeError("bug")
    fallback = MagicMock()
    fallback.name = "fallback"
    fallback.extract.return_value = TierResult(ok=True, title="PDF Document", text="t", char_count=1)

    result = DocumentExtractionChain([broken, fallback]).extract(DocumentSource(url="u", kind=PDF))

    assert result.ok
    fallback.extract.assert_called_once()


def test_chain_reports_exception_reason():
    broken = MagicMock()
    broken.name = "broken"
    broken.extract.side_effect = RuntimeError("bug")
    result = DocumentExtractionChain([broken]).extract(DocumentSource(url="u", kind=PDF))
    assert result.reason == "broken_failed"
