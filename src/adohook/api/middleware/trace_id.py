"""Trace ID middleware for request/response propagation."""

import re
import uuid

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from adohook.logging_config import bind_request_context, clear_request_context

# Same bound as ErrorDetail.trace_id; the header comes from an unverified sender.
_TRACE_ID_RE = re.compile(r"[A-Za-z0-9._:\-]{1,128}")


def _new_trace_id() -> str:
    return f"trc_{uuid.uuid4().hex[:16]}"


def resolve_trace_id(header: str | None) -> str:
    """Reuse the caller's trace id when it is short and plain, else mint one."""
    if header and _TRACE_ID_RE.fullmatch(header):
        return header
    return _new_trace_id()


class TraceIdMiddleware(BaseHTTPMiddleware):
    """Extract X-Trace-Id from request or generate one, attach to response and logs."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        trace_id = resolve_trace_id(request.headers.get("x-trace-id"))
        request.state.trace_id = trace_id
        bind_request_context(trace_id)

        try:
            response = await call_next(request)
        finally:
            clear_request_context()
        response.headers["X-Trace-Id"] = trace_id
        return response
