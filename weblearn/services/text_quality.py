import re
from typing import Optional

_WORD_RE = re.compile(r"[a-zA-Z]{3,}")
_WHITESPACE_RE = re.compile(r"\s+")

# Residue that survives tag stripping but carries no knowledge.
_NOISE_PATTERNS = (
    re.compile(r"&#\d{2,6};"),
    re.compile(r"\b\d{8,}\b"),
    re.compile(r"jump to content", re.IGNORECASE),
    re.compile(r"main menu", re.IGNORECASE),
    re.compile(r"move to sidebar", re.IGNORECASE),
    re.compile(r"toggle .* subsection", re.IGNORECASE),
)

MIN_WORD_TOKENS = 12
MIN_CHARS = 700


def collapse_whitespace(text: Optional[str]) -> str:
    return _WHITESPACE_RE.sub(" ", str(text or "")).strip()


def clean_low_quality_text(text: Optional[str]) -> str:
    cleaned = str(text or "")
    for pattern in _NOISE_PATTERNS:
        cleaned = pattern.sub(" ", cleaned)
    return collapse_whitespace(cleaned)


def summarize_text(text: Optional[str], max_chars: Optional[int] = 800) -> str:
    """Collapse whitespace and truncate to `max_chars` at a word boundary.

    `max_chars=None` means unbounded. When truncated, the cut happens at the
    last space if that keeps more than 200 characters, and "..." is appended.
    """
    clean = collapse_whitespace(text)
    if max_chars is None or len(clean) <= max_chars:
        return clean

    sliced = clean[:max_chars]
    last_space = sliced.rfind(" ")
    if last_space > 200:
        sliced = sliced[:last_space]
    return f"{sliced.strip()}..."


class TextQualityFilter:
    """Judges whether extracted text carries enough natural-language signal."""

    def __init__(self, min_words: int = MIN_WORD_TOKENS, min_chars: int = MIN_CHARS):
        self.min_words = min_words
        self.min_chars = min_chars

    def is_acceptable(self, text: Optional[str]) -> bool:
        sample = str(text or "")
        if not sample:
            return False
        if len(sample) >= self.min_chars:
            return True
        return len(_WORD_RE.findall(sample)) >= self.min_words
