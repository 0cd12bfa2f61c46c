"""Inbound ADO service-hook endpoints."""

import logging

from fastapi import APIRouter, Request, Response

from adohook.dependencies import Dispatcher, TraceId
from adohook.logging_config import bind_request_context
from adohook.models.events import decode_event

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/hooks/ado", tags=["Hooks"])

# Raw bodies are logged before decoding; keep forged payloads from flooding the log
RAW_BODY_LOG_LIMIT = 2048


@router.post("/build", response_class=Response)
async def build_hook(request: Request, dispatcher: Dispatcher, trace_id: TraceId) -> Response:
    """Receive ``build.complete`` notifications from an ADO web-hook subscription.

    Success is an empty 200. Errors are turned into an opaque body by the
    HookError handler.
    """
    body = await request.body()
    logger.debug(
        "received body (%d bytes): %s",
        len(body),
        body[:RAW_BODY_LOG_LIMIT].decode("utf-8", errors="replace"),
    )

    event = decode_event(body)
    bind_request_context(trace_id, event_id=str(event.id))

    state = await dispatcher.receive(event)
    logger.debug("Event %s finished in state %s", event.id, state)
    return Response(status_code=200)
