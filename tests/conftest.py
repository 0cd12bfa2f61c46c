"""Shared test fixtures."""

import copy
import json
from datetime import datetime, timedelta, timezone
from pathlib import Path

import httpx
import pytest
from httpx import ASGITransport, AsyncClient

from adohook.credentials import AccessToken, CredentialProvider, TokenCredential
from adohook.errors.exceptions import AuthError
from adohook.hooks.build import BuildCompleteHandler
from adohook.hooks.dispatcher import HookDispatcher
from adohook.hooks.verifier import NotificationVerifier

FIXTURES = Path(__file__).resolve().parent / "fixtures"

ORGANIZATION = "https://dev.azure.com/contoso"
AUDIENCE = "499b84ac-1321-427f-aa17-267ca6975798"
SUBSCRIPTION_ID = "00000000-0000-0000-0000-000000000000"
EVENT_ID = "d6ac459c-18b3-44ff-95b5-b5f03db672ea"
NOTIFICATION_ID = 41


def load_fixture(name: str) -> dict:
    return json.loads((FIXTURES / name).read_text(encoding="utf-8"))


class FakeCredential(TokenCredential):
    """Hands out numbered tokens; can be switched to fail."""

    credential_type = "fake"

    def __init__(self, fail: bool = False, lifetime: timedelta = timedelta(hours=1)) -> None:
        self.fail = fail
        self.lifetime = lifetime
        self.calls: list[str] = []

    async def fetch_token(self, audience: str) -> AccessToken:
        self.calls.append(audience)
        if self.fail:
            raise AuthError("identity endpoint unavailable")
        return AccessToken(
            token=f"token-{len(self.calls)}",
            expires_on=datetime.now(timezone.utc) + self.lifetime,
        )


class FakeAdo:
    """Stands in for the ADO notification lookup endpoint."""

    def __init__(self) -> None:
        self.status = 200
        self.body = ""
        self.error: Exception | None = None
        self.requests: list[httpx.Request] = []

    def respond_with(self, notification: dict, status: int = 200) -> None:
        self.status = status
        self.body = json.dumps(notification)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return httpx.Response(self.status, text=self.body)


@pytest.fixture
def build_notification() -> dict:
    """ADO's own webhook test sample with a nested build.complete event."""
    return load_fixture("notification_build_complete.json")


@pytest.fixture
def bare_notification() -> dict:
    """ADO's webhook test sample that carries no nested event."""
    return load_fixture("notification_without_event.json")


@pytest.fixture
def build_event_payload(build_notification) -> dict:
    """Inbound build.complete event as delivered to the hook endpoint."""
    event = copy.deepcopy(build_notification["details"]["event"])
    event["subscriptionId"] = SUBSCRIPTION_ID
    event["notificationId"] = NOTIFICATION_ID
    return event


@pytest.fixture
def fake_ado(build_notification) -> FakeAdo:
    ado = FakeAdo()
    ado.respond_with(build_notification)
    return ado


@pytest.fixture
async def ado_client(fake_ado):
    async with httpx.AsyncClient(transport=httpx.MockTransport(fake_ado.handler)) as client:
        yield client


@pytest.fixture
def fake_credential() -> FakeCredential:
    return FakeCredential()


@pytest.fixture
def credentials(fake_credential) -> CredentialProvider:
    return CredentialProvider(fake_credential, default_audience=AUDIENCE)


@pytest.fixture
def verifier(ado_client) -> NotificationVerifier:
    return NotificationVerifier(ado_client, ORGANIZATION)


@pytest.fixture
def dispatcher(credentials, verifier) -> HookDispatcher:
    _dispatcher = HookDispatcher(credentials, verifier, audience=AUDIENCE)
    _dispatcher.register("build.complete", BuildCompleteHandler())
    return _dispatcher


@pytest.fixture
def app(credentials, dispatcher):
    """Create a test application with stubbed ADO and credentials."""
    from adohook.main import create_app

    _app = create_app()
    _app.state.credentials = credentials
    _app.state.dispatcher = dispatcher
    return _app


@pytest.fixture
async def client(app):
    """Async HTTP test client."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
