import logging
import socket
import threading
import time
from typing import Callable, Mapping, Optional

import requests

from weblearn.domain.http_response import HttpResponse
from weblearn.exceptions import HttpFetchError

logger = logging.getLogger(__name__)

BODY_CHUNK_SIZE = 16 * 1024
# Content types whose bodies are decoded into `HttpResponse.text`
TEXTUAL_TYPE_SUFFIXES = ("json", "/xml", "+xml", "javascript")


def is_textual(content_type: Optional[str]) -> bool:
    if not content_type:
        return True
    mime = content_type.split(";", 1)[0].strip().lower()
    return mime.startswith("text/") or mime.endswith(TEXTUAL_TYPE_SUFFIXES)


class HttpService:
    """
    HTTP client wrapper for every outbound request the engine makes.

    Requires an `http_client` callable with the `requests.request` signature
    (method, url, **kwargs), injected so tests never touch the network and
    the HTTP library stays swappable.

    `timeout` is a deadline for the whole request: the body is streamed and
    the connection is cut once it passes.
    """

    def __init__(self, user_agent: str, http_client: Callable, timeout: float = 10):
        self.user_agent = user_agent
        self.timeout = timeout
        self.http_client = http_client

    def _headers(self, extra: Optional[Mapping[str, str]]) -> dict:
        headers = {"User-Agent": self.user_agent}
        if extra:
            headers.update(extra)
        return headers

    def request(
        self,
        method: str,
        url: str,
        *,
        headers: Optional[Mapping[str, str]] = None,
        timeout: Optional[float] = None,
        allow_redirects: bool = True,
        **kwargs,
    ) -> HttpResponse:
        """Send a request and return status code, body, Content-Type and raw bytes.

        Raises:
            HttpFetchError: on transport errors, including the deadline passing
                while the body is still arriving (`timed_out` is then True).
        """
        limit = timeout if timeout is not None else self.timeout
        started = time.monotonic()
        try:
            resp = self.http_client(
                method,
                url,
                headers=self._headers(headers),
                timeout=limit,
                allow_redirects=allow_redirects,
                stream=True,
                **kwargs,
            )
            remaining = limit - (time.monotonic() - started)
            content = self._read_body(resp, url, remaining)
        except requests.exceptions.RequestException as e:
            raise HttpFetchError(url, e) from e

        # Extract headers if response has them; let real exceptions bubble up.
        ct = None
        location = None
        if hasattr(resp, 'headers'):
            ct = resp.headers.get('Content-Type')
            location = resp.headers.get('Location')

        text = self._decode(content, getattr(resp, 'encoding', None)) if is_textual(ct) else ""
        return HttpResponse(resp.status_code, text, ct, content, location)

    def _read_body(self, resp, url: str, remaining: float) -> bytes:
        if remaining <= 0:
            resp.close()
            raise requests.exceptions.Timeout(f"no time left to read the body of {url}")

        expired = threading.Event()
        watchdog = threading.Timer(remaining, self._abort, args=(resp, expired))
        watchdog.daemon = True
        watchdog.start()
        deadline = time.monotonic() + remaining
        chunks = []
        try:
            for chunk in resp.iter_content(chunk_size=BODY_CHUNK_SIZE):
                if expired.is_set() or time.monotonic() > deadline:
                    break
                if chunk:
                    chunks.append(chunk)
        except (requests.exceptions.RequestException, OSError):
            # Cutting the connection surfaces as a read error.
            if not expired.is_set():
                raise
        finally:
            watchdog.cancel()
            resp.close()

        if expired.is_set() or time.monotonic() > deadline:
            logger.info("Body of %s not received within %.1fs", url, remaining)
            raise requests.exceptions.Timeout(f"body of {url} not received within {remaining:.1f}s")
        return b"".join(chunks)

    @staticmethod
    def _abort(resp, expired: threading.Event) -> None:
        """Mark the read as expired and shut the socket so a blocked read returns."""
        expired.set()
        connection = getattr(getattr(resp, 'raw', None), 'connection', None)
        sock = getattr(connection, 'sock', None)
        if sock is None:
            return
        try:
            sock.shutdown(socket.SHUT_RDWR)
        except OSError as e:
            logger.debug("Socket shutdown after deadline failed: %s", e)

    @staticmethod
    def _decode(content: bytes, encoding: Optional[str]) -> str:
        if not content:
            return ""
        try:
            return content.decode(encoding or "utf-8", errors="replace")
        except LookupError:
            return content.decode("utf-8", errors="replace")

    def fetch(self, url: str, **kwargs) -> HttpResponse:
        """GET `url`."""
        return self.request("GET", url, **kwargs)

    def post(self, url: str, **kwargs) -> HttpResponse:
        """POST to `url`; pass `data=` for form bodies or `json=` for JSON bodies."""
        return self.request("POST", url, **kwargs)
