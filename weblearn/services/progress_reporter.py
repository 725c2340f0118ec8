import logging
from typing import Optional

from weblearn.domain.progress import ProgressCallback, ProgressEvent

logger = logging.getLogger(__name__)


class ProgressReporter:
    """Delivers progress events to an optional caller callback.

    The callback runs synchronously; its exceptions are logged and swallowed
    so a broken consumer can never abort a crawl.
    """

    def __init__(self, callback: Optional[ProgressCallback] = None):
        self._callback = callback if callable(callback) else None

    def emit(self, event: ProgressEvent) -> None:
        if self._callback is None:
            return
        try:
            self._callback(event)
        except Exception:
            logger.warning("Progress callback failed for %s event", event.type, exc_info=True)
