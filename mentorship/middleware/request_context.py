"""Request context middleware: assigns a unique ID to every request.

Concurrent requests interleave their log lines. Tagging the summary
record with the request's ID, and echoing it back to the caller, lets one
request's story be pulled back out of the stream, e.g. a reply that
committed and then failed to queue mail.
"""

from __future__ import annotations

import logging
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
_MAX_INBOUND_ID = 128


def _inbound_id(request: Request) -> str | None:
    value = request.headers.get(REQUEST_ID_HEADER)
    if value and len(value) <= _MAX_INBOUND_ID:
        return value
    return None


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Bind a request ID, echo it on the response, log one summary line.

    A caller-supplied X-Request-ID is reused when present and short
    enough; otherwise a UUID4 is generated.
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        req_id = _inbound_id(request) or str(uuid.uuid4())
        request.state.request_id = req_id
        started = time.perf_counter()
        response = await call_next(request)

        elapsed_ms = round((time.perf_counter() - started) * 1000, 1)
        logger.info(
            "%s %s -> %d (%.1fms)",
            request.method,
            request.url.path,
            response.status_code,
            elapsed_ms,
            extra={
                "request_id": req_id,
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "duration_ms": elapsed_ms,
            },
        )
        response.headers[REQUEST_ID_HEADER] = req_id
        return response
