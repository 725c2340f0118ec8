import json
from typing import NamedTuple, Optional


class HttpResponse(NamedTuple):
    """Response from HTTP fetch operation."""
    status_code: int
    text: str
    content_type: Optional[str] = None
    content: bytes = b""
    location: Optional[str] = None

    @property
    def ok(self) -> bool:
        return 200 <= int(self.status_code) < 300

    @property
    def is_redirect(self) -> bool:
        return int(self.status_code) in (301, 302, 303, 307, 308) and bool(self.location)

    def json(self):
        return json.loads(self.text)
