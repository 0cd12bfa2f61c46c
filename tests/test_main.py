"""Application wiring: dispatcher assembly and the startup/shutdown lifespan."""

import httpx
import pytest
from httpx import ASGITransport, AsyncClient

from adohook import main
from adohook.config import Settings
from adohook.errors.exceptions import MissingResource
from adohook.hooks.build import BuildCompleteHandler
from adohook.models.events import decode_event

from conftest import ORGANIZATION


@pytest.mark.asyncio
async def test_build_dispatcher_registers_build_handler(credentials):
    async with httpx.AsyncClient() as client:
        dispatcher = main.build_dispatcher(Settings(organization_url=ORGANIZATION), client, credentials)

    assert isinstance(dispatcher.handler_for("build.complete"), BuildCompleteHandler)
    assert dispatcher.handler_for("git.push") is None


@pytest.mark.asyncio
@pytest.mark.parametrize("always_verify", [True, False])
async def test_build_dispatcher_honours_verify_policy(credentials, build_event_payload, always_verify):
    config = Settings(organization_url=ORGANIZATION, always_verify=always_verify)
    async with httpx.AsyncClient() as client:
        dispatcher = main.build_dispatcher(config, client, credentials)

    assert dispatcher.requires_verification(decode_event(build_event_payload)) is always_verify


@pytest.mark.asyncio
async def test_build_dispatcher_passes_organization_and_timeout(credentials, fake_ado, build_event_payload):
    config = Settings(
        organization_url=ORGANIZATION + "/",
        always_verify=False,
        verify_timeout_seconds=3.5,
    )
    # Without a resource the event is verified regardless of the policy.
    del build_event_payload["resource"]

    async with httpx.AsyncClient(transport=httpx.MockTransport(fake_ado.handler)) as client:
        dispatcher = main.build_dispatcher(config, client, credentials)
        with pytest.raises(MissingResource):
            await dispatcher.receive(decode_event(build_event_payload))

    assert len(fake_ado.requests) == 1
    request = fake_ado.requests[0]
    assert str(request.url).startswith(f"{ORGANIZATION}/_apis/hooks/subscriptions/")
    assert request.extensions["timeout"]["read"] == 3.5


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("static_token", "expected"),
    [(None, "pending"), ("pat-token", "ok")],
)
async def test_lifespan_starts_with_or_without_token(monkeypatch, static_token, expected):
    monkeypatch.setattr(
        main,
        "settings",
        Settings(organization_url=ORGANIZATION, credential_source="static", static_token=static_token),
    )
    app = main.create_app()

    async with main.lifespan(app):
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
            response = await ac.get("/health/ready")

        assert response.status_code == 200
        assert response.json()["checks"]["credentials"] == expected
        assert isinstance(app.state.dispatcher.handler_for("build.complete"), BuildCompleteHandler)
        http_client = app.state.http_client
        assert not http_client.is_closed

    assert http_client.is_closed
