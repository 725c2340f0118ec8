from typing import Set


class VisitedTracker:
    """
    Tracks which URLs have been visited during a single crawl.

    URLs are compared after surrounding whitespace is stripped. The tracker
    never evicts: a crawl must not fetch the same URL twice.
    """

    def __init__(self):
        self._visited: Set[str] = set()

    @staticmethod
    def canonical(url: str) -> str:
        return str(url or "").strip()

    def mark(self, url: str) -> None:
        """Mark a URL as visited."""
        self._visited.add(self.canonical(url))

    def is_visited(self, url: str) -> bool:
        """Check if a URL has been visited."""
        return self.canonical(url) in self._visited

    def __len__(self) -> int:
        return len(self._visited)
