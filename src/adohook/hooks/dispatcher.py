"""Entry point for inbound hook events: trust decision, then dispatch.

Each request walks ``received -> token_acquired -> (trusted | verifying ->
verified) -> dispatched -> done``. Any error ends the request; nothing is
retried here, ADO redelivers according to its own policy.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Awaitable, Callable
from enum import StrEnum

from adohook.credentials import AccessToken, CredentialProvider
from adohook.hooks.verifier import NotificationVerifier
from adohook.models.events import Event, encode_event

logger = logging.getLogger(__name__)

EventHandler = Callable[[AccessToken, Event], Awaitable[object]]


class DeliveryState(StrEnum):
    RECEIVED = "received"
    TOKEN_ACQUIRED = "token_acquired"
    TRUSTED = "trusted"
    VERIFYING = "verifying"
    VERIFIED = "verified"
    DISPATCHED = "dispatched"
    DONE = "done"


class HookDispatcher:
    """Routes events to handlers keyed by their exact ``eventType``."""

    def __init__(
        self,
        credentials: CredentialProvider,
        verifier: NotificationVerifier,
        audience: str,
        always_verify: bool = True,
        handlers: dict[str, EventHandler] | None = None,
    ) -> None:
        self._credentials = credentials
        self._verifier = verifier
        self._audience = audience
        self._always_verify = always_verify
        self._handlers: dict[str, EventHandler] = dict(handlers or {})

    def register(self, event_type: str, handler: EventHandler) -> None:
        """Register the handler for an event type, replacing any previous one."""
        self._handlers[event_type] = handler

    def handler_for(self, event_type: str) -> EventHandler | None:
        return self._handlers.get(event_type)

    def requires_verification(self, event: Event) -> bool:
        """Events without a resource have nothing to act on until confirmed."""
        return event.resource is None or self._always_verify

    async def receive(self, event: Event) -> DeliveryState:
        """Process one inbound event and return the terminal state.

        Raises:
            AuthError: no token could be acquired.
            VerificationError: verification was required and did not pass.
            MissingResource, ResourcePayloadMismatch: raised by the handler.
        """
        logger.info("received event: %s", json.dumps(encode_event(event), separators=(",", ":")))
        state = DeliveryState.RECEIVED

        token = await self._credentials.get_token(self._audience)
        state = self._advance(event, state, DeliveryState.TOKEN_ACQUIRED)

        if self.requires_verification(event):
            state = self._advance(event, state, DeliveryState.VERIFYING)
            event = await self._verifier.verify(token, event)
            state = self._advance(event, state, DeliveryState.VERIFIED)
        else:
            state = self._advance(event, state, DeliveryState.TRUSTED)

        handler = self.handler_for(event.event_type)
        if handler is None:
            logger.info("No handler for event type %r, ignoring event %s", event.event_type, event.id)
            return self._advance(event, state, DeliveryState.DONE)

        await handler(token, event)
        state = self._advance(event, state, DeliveryState.DISPATCHED)
        return self._advance(event, state, DeliveryState.DONE)

    @staticmethod
    def _advance(event: Event, current: DeliveryState, target: DeliveryState) -> DeliveryState:
        logger.debug("Event %s: %s -> %s", event.id, current, target)
        return target
