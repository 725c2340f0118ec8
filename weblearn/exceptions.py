"""Custom exceptions for WebLearn services."""

import requests


class HttpFetchError(Exception):
    """Raised when an HTTP request fails due to network/transport errors."""

    def __init__(self, url: str, original: Exception):
        self.url = url
        self.original = original
        super().__init__(f"HTTP fetch failed for {url}: {original}")

    @property
    def timed_out(self) -> bool:
        return isinstance(self.original, requests.exceptions.Timeout)


class UnsafeRedirectError(Exception):
    """Raised when a redirect points at a target the URL validator rejects."""

    def __init__(self, url: str, reason: str):
        self.url = url
        self.reason = reason
        super().__init__(f"Redirect to {url} blocked: {reason}")


class SearchProviderError(Exception):
    """Raised by a search provider that could not produce results."""

    def __init__(self, provider: str, reason: str):
        self.provider = provider
        self.reason = reason
        super().__init__(f"Search provider '{provider}' failed: {reason}")


class TooManyRedirectsError(Exception):
    """Raised when a fetch exceeds the redirect hop limit."""

    def __init__(self, url: str, hops: int):
        self.url = url
        self.hops = hops
        super().__init__(f"Too many redirects ({hops}) starting at {url}")
