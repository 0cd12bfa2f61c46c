"""FastAPI exception handlers producing an opaque ErrorResponse."""

import logging
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from adohook.errors.exceptions import HookError
from adohook.models.common import ErrorDetail, ErrorResponse

logger = logging.getLogger(__name__)

_GENERIC_MESSAGE = "webhook processing failed"


def register_exception_handlers(app: FastAPI) -> None:
    """Register all custom exception handlers on the FastAPI app."""

    @app.exception_handler(HookError)
    async def hook_error_handler(request: Request, exc: HookError):
        trace_id = getattr(request.state, "trace_id", "unknown")
        logger.error(
            "hook_request_failed",
            extra={
                "path": request.url.path,
                "method": request.method,
                "trace_id": trace_id,
                "code": exc.code,
                "reason": exc.message,
                "details": exc.details,
            },
        )
        # The sender is not trusted yet: only the code and trace id leave the process.
        error_response = ErrorResponse(
            error=ErrorDetail(
                code=exc.code,
                message=_GENERIC_MESSAGE,
                trace_id=trace_id,
                timestamp=datetime.now(timezone.utc),
            ),
        )
        return JSONResponse(
            status_code=exc.status_code,
            content=error_response.model_dump(mode="json", exclude_none=True),
        )
