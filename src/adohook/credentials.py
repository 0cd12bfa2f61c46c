"""Bearer-token acquisition for calls back into Azure DevOps.

``CredentialProvider`` is the one piece of state shared between concurrent
requests. It is created once in the application lifespan and injected into
whatever needs a token; callers only read tokens from it.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone

import httpx
from pydantic import BaseModel, ConfigDict

from adohook.config import Settings
from adohook.errors.exceptions import AuthError

logger = logging.getLogger(__name__)

_IMDS_API_VERSION = "2018-02-01"


class AccessToken(BaseModel):
    model_config = ConfigDict(frozen=True)

    token: str
    expires_on: datetime

    def expires_within(self, seconds: float) -> bool:
        return self.expires_on - datetime.now(timezone.utc) <= timedelta(seconds=seconds)

    def __repr__(self) -> str:
        return f"AccessToken(token='***', expires_on={self.expires_on.isoformat()})"

    __str__ = __repr__


class TokenCredential(ABC):
    """Fetches a fresh token from an identity source."""

    credential_type: str = "unknown"

    @abstractmethod
    async def fetch_token(self, audience: str) -> AccessToken:
        """Fetch a new token whose ``aud`` claim is ``audience``.

        Raises:
            AuthError: the identity source refused or could not be reached.
        """
        ...


class ManagedIdentityCredential(TokenCredential):
    """Azure managed identity via the Instance Metadata Service (IMDS)."""

    credential_type: str = "managed_identity"

    def __init__(
        self,
        client: httpx.AsyncClient,
        endpoint: str,
        client_id: str | None = None,
        timeout: float = 10.0,
    ) -> None:
        self._client = client
        self._endpoint = endpoint
        self._client_id = client_id
        self._timeout = timeout

    async def fetch_token(self, audience: str) -> AccessToken:
        params = {"api-version": _IMDS_API_VERSION, "resource": audience}
        if self._client_id:
            params["client_id"] = self._client_id

        try:
            response = await self._client.get(
                self._endpoint,
                params=params,
                headers={"Metadata": "true"},
                timeout=self._timeout,
            )
        except httpx.HTTPError as exc:
            raise AuthError("failed to query identity", details={"reason": str(exc)}) from exc

        if response.status_code != 200:
            raise AuthError(
                "failed to query identity",
                details={"status": response.status_code, "body": response.text[:500]},
            )

        try:
            body = response.json()
            token = body["access_token"]
            expires_on = _parse_expiry(body)
        except (ValueError, KeyError, TypeError) as exc:
            raise AuthError("identity endpoint returned an unusable token", details={"reason": str(exc)}) from exc

        return AccessToken(token=token, expires_on=expires_on)


class StaticTokenCredential(TokenCredential):
    """A pre-issued token from configuration. Intended for local development."""

    credential_type: str = "static"

    def __init__(self, token: str | None, lifetime: timedelta = timedelta(days=365)) -> None:
        self._token = token
        self._lifetime = lifetime

    async def fetch_token(self, audience: str) -> AccessToken:
        if not self._token:
            raise AuthError("no static token configured")
        return AccessToken(token=self._token, expires_on=datetime.now(timezone.utc) + self._lifetime)


def _parse_expiry(body: dict) -> datetime:
    """IMDS returns ``expires_on`` as epoch seconds (a string); some hosts only ``expires_in``."""
    if body.get("expires_on") is not None:
        return datetime.fromtimestamp(int(body["expires_on"]), tz=timezone.utc)
    return datetime.now(timezone.utc) + timedelta(seconds=int(body["expires_in"]))


class CredentialProvider:
    """Caches one token per audience and refreshes it shortly before expiry."""

    def __init__(
        self,
        credential: TokenCredential,
        default_audience: str,
        refresh_margin_seconds: float = 300,
    ) -> None:
        self._credential = credential
        self._default_audience = default_audience
        self._refresh_margin = refresh_margin_seconds
        self._tokens: dict[str, AccessToken] = {}
        self._lock = asyncio.Lock()

    @property
    def has_token(self) -> bool:
        token = self._tokens.get(self._default_audience)
        return token is not None and not token.expires_within(0)

    async def initialize(self) -> bool:
        """Pre-warm the cache for the default audience.

        The identity source is often not ready while the process is starting,
        so failure here is logged and tolerated. Returns True on success.
        """
        try:
            await self.get_token()
        except AuthError as exc:
            logger.warning(
                "Initial token acquisition failed (%s), will retry on first request: %s",
                self._credential.credential_type,
                exc.message,
            )
            return False
        logger.info("Credential provider ready (%s)", self._credential.credential_type)
        return True

    async def get_token(self, audience: str | None = None) -> AccessToken:
        """Return a valid token for ``audience``, fetching a new one when needed.

        Raises:
            AuthError: no token could be acquired.
        """
        audience = audience or self._default_audience
        async with self._lock:
            cached = self._tokens.get(audience)
            if cached is not None and not cached.expires_within(self._refresh_margin):
                return cached

            token = await self._credential.fetch_token(audience)
            self._tokens[audience] = token
            logger.debug("Token refreshed for %s (expires %s)", audience, token.expires_on.isoformat())
            return token


def build_credential(settings: Settings, client: httpx.AsyncClient) -> TokenCredential:
    """Select the token source named by ``settings.credential_source``."""
    if settings.credential_source == "static":
        return StaticTokenCredential(settings.static_token)
    if settings.credential_source == "managed_identity":
        return ManagedIdentityCredential(
            client,
            settings.managed_identity_endpoint,
            client_id=settings.managed_identity_client_id,
        )
    raise ValueError(f"Unknown credential source: {settings.credential_source}")
