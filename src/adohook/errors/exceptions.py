"""Custom exception classes for the hook receiver.

Every error is terminal for the request that raised it. ``details`` is logged
server-side only and never echoed back to the webhook sender.
"""


class HookError(Exception):
    """Base exception for hook processing."""

    def __init__(self, code: str, message: str, details=None, status_code: int = 500):
        self.code = code
        self.message = message
        self.details = details
        self.status_code = status_code
        super().__init__(message)


class MalformedPayload(HookError):
    """Inbound JSON does not match the expected shape."""

    def __init__(self, message: str, details=None, code: str = "MALFORMED_PAYLOAD"):
        super().__init__(code, message, details, status_code=400)


class ResourcePayloadMismatch(MalformedPayload):
    """An event's ``resource`` does not match the shape implied by its type."""

    def __init__(self, event_type: str, details=None):
        self.event_type = event_type
        super().__init__(
            f"resource does not match the '{event_type}' shape",
            details,
            code="RESOURCE_PAYLOAD_MISMATCH",
        )


class MissingResource(HookError):
    """A handler received an event without a ``resource`` payload."""

    def __init__(self, event_type: str):
        self.event_type = event_type
        super().__init__(
            "MISSING_RESOURCE",
            f"'{event_type}' event carries no resource data",
        )


class AuthError(HookError):
    """A bearer token could not be acquired from the credential provider."""

    def __init__(self, message: str = "failed to acquire a token", details=None):
        super().__init__("AUTH_ERROR", message, details, status_code=503)


class VerificationError(HookError):
    """Base for every way verification against ADO can fail."""


class MissingIdentifiers(VerificationError):
    """The event lacks the identifiers needed to look it up."""

    def __init__(self, missing: list[str]):
        self.missing = missing
        super().__init__(
            "MISSING_IDENTIFIERS",
            f"event has no {', '.join(missing)}",
            details={"missing": missing},
        )


class VerificationTransportError(VerificationError):
    """The lookup request failed or returned a non-200 status."""

    def __init__(self, url: str, status: int | None = None, reason: str | None = None):
        self.url = url
        self.status = status
        if status is not None:
            message = f"{url}: code {status}"
        else:
            message = f"{url}: {reason or 'request failed'}"
        super().__init__(
            "VERIFICATION_TRANSPORT_ERROR",
            message,
            details={"url": url, "status": status},
            status_code=502,
        )


class VerificationDecodeError(VerificationError):
    """The lookup response body is not a decodable Notification."""

    def __init__(self, body: str, reason: str | None = None):
        self.body = body
        super().__init__(
            "VERIFICATION_DECODE_ERROR",
            "failed to decode notification data",
            details={"body": body, "reason": reason},
            status_code=502,
        )


class VerificationFailed(VerificationError):
    """ADO's own notification record disagrees with the inbound event."""

    def __init__(self, mismatched: list[str]):
        self.mismatched = mismatched
        super().__init__(
            "VERIFICATION_FAILED",
            "failed to verify event",
            details={"mismatched": mismatched},
        )
