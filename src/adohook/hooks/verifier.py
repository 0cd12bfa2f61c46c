"""Verification of inbound events against ADO's own notification records.

A forged or replayed hook call fails here because the sender cannot make
ADO's record agree with fabricated identifiers.

Known limitation: ADO offers no way to check the *content* of ``resource``.
An event whose identifiers are genuine but whose resource has been tampered
with passes verification.
"""

from __future__ import annotations

import logging

import httpx

from adohook.credentials import AccessToken
from adohook.errors.exceptions import (
    MalformedPayload,
    MissingIdentifiers,
    VerificationDecodeError,
    VerificationFailed,
    VerificationTransportError,
)
from adohook.models.events import Event, decode_notification

logger = logging.getLogger(__name__)

NOTIFICATION_API_VERSION = "7.1-preview.1"

# Status ADO reports while the delivery being verified is still in flight
EXPECTED_STATUS = "processing"


class NotificationVerifier:
    """Looks an event's notification up in ADO and cross-checks it."""

    def __init__(self, client: httpx.AsyncClient, organization_url: str, timeout: float = 10.0) -> None:
        self._client = client
        self._organization_url = organization_url.rstrip("/")
        self._timeout = timeout

    def notification_url(self, event: Event) -> str:
        """Build the lookup URL for ``event``.

        Only a UUID and an integer are interpolated; both render as URL-safe
        text, so nothing attacker-controlled can escape the path.

        Raises:
            MissingIdentifiers: the event has no subscription or notification id.
        """
        missing = []
        if event.subscription_id is None:
            missing.append("subscriptionId")
        if event.notification_id is None:
            missing.append("notificationId")
        if missing:
            raise MissingIdentifiers(missing)

        return (
            f"{self._organization_url}/_apis/hooks/subscriptions/{event.subscription_id}"
            f"/notifications/{event.notification_id}?api-version={NOTIFICATION_API_VERSION}"
        )

    async def verify(self, token: AccessToken, event: Event) -> Event:
        """Return ``event`` once ADO confirms it, otherwise raise.

        Raises:
            MissingIdentifiers: the event cannot be looked up.
            VerificationTransportError: the request failed or was not a 200.
            VerificationDecodeError: the response is not a Notification.
            VerificationFailed: ADO's record disagrees with the event.
        """
        url = self.notification_url(event)

        try:
            response = await self._client.get(
                url,
                headers={"Authorization": f"Bearer {token.token}"},
                timeout=self._timeout,
            )
        except httpx.HTTPError as exc:
            raise VerificationTransportError(url, reason=f"failed to fetch notification data: {exc}") from exc

        if response.status_code != 200:
            raise VerificationTransportError(url, status=response.status_code)

        text = response.text
        try:
            notification = decode_notification(text)
        except MalformedPayload as exc:
            raise VerificationDecodeError(text, reason=exc.message) from exc

        mismatched = []
        if notification.event_id != event.id:
            mismatched.append("eventId")
        if notification.id != event.notification_id:
            mismatched.append("id")
        if notification.status != EXPECTED_STATUS:
            mismatched.append("status")
        if mismatched:
            raise VerificationFailed(mismatched)

        logger.info(
            "Verified event %s against notification %s (subscription %s)",
            event.id,
            notification.id,
            event.subscription_id,
        )
        return event
