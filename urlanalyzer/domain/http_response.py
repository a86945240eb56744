from typing import NamedTuple


class HttpResponse(NamedTuple):
    """Response from HTTP fetch operation. `content` is the fully buffered body."""
    status_code: int
    content: bytes
