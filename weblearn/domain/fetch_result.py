from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Optional, Sequence


@dataclass(frozen=True)
class FetchResult:
    """Outcome of fetching one URL.

    A failed result carries a `reason` and no content fields.
    """

    url: str
    ok: bool
    reason: Optional[str] = None
    title: Optional[str] = None
    text: Optional[str] = None
    char_count: Optional[int] = None
    outbound_links: tuple = ()

    @classmethod
    def success(cls, url: str, title: str, text: str, char_count: int, outbound_links: Sequence[str] = ()) -> "FetchResult":
        return cls(
            url=url,
            ok=True,
            title=title,
            text=text,
            char_count=int(char_count),
            outbound_links=tuple(outbound_links),
        )

    @classmethod
    def failure(cls, url: str, reason: str) -> "FetchResult":
        return cls(url=url, ok=False, reason=reason or "unknown_failure")


@dataclass(frozen=True)
class Context:
    """One accepted unit of extracted text with its provenance."""

    url: str
    title: str
    text: str
    depth: int

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class Failure:
    url: str
    reason: str

    def to_dict(self) -> dict:
        return asdict(self)
