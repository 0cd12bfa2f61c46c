"""Process bootstrap: command-line options and log output mode."""

import pytest
import uvicorn

from adohook import server_cli
from adohook.config import Settings
from adohook.logging_config import json_logs_enabled


def test_local_mode_defaults_to_static_credentials():
    environ = {}
    server_cli.apply_overrides(server_cli.build_parser().parse_args(["--local"]), environ)
    assert environ == {
        "ADOHOOK_LOCAL": "1",
        "ADOHOOK_LOCAL_MODE": "1",
        "ADOHOOK_CREDENTIAL_SOURCE": "static",
    }


def test_local_mode_keeps_explicit_credential_source():
    environ = {"ADOHOOK_CREDENTIAL_SOURCE": "managed_identity"}
    server_cli.apply_overrides(server_cli.build_parser().parse_args(["--local"]), environ)
    assert environ["ADOHOOK_CREDENTIAL_SOURCE"] == "managed_identity"


def test_organization_and_log_level_are_exported():
    environ = {}
    args = server_cli.build_parser().parse_args(
        ["--organization-url", "https://dev.azure.com/contoso", "--log-level", "debug"]
    )
    server_cli.apply_overrides(args, environ)
    assert environ == {
        "ADOHOOK_ORGANIZATION_URL": "https://dev.azure.com/contoso",
        "ADOHOOK_LOG_LEVEL": "debug",
    }


def test_unknown_log_level_is_rejected():
    with pytest.raises(SystemExit):
        server_cli.build_parser().parse_args(["--log-level", "chatty"])


def test_main_runs_uvicorn(monkeypatch):
    calls = []
    monkeypatch.setattr(uvicorn, "run", lambda app, **kwargs: calls.append((app, kwargs)))
    monkeypatch.delenv("ADOHOOK_LOG_LEVEL", raising=False)

    server_cli.main(["--host", "127.0.0.1", "--port", "9000"])

    assert calls == [("adohook.main:app", {"host": "127.0.0.1", "port": 9000, "log_level": "info"})]


@pytest.mark.parametrize(
    ("local_env", "local_mode", "expected"),
    [(None, False, True), ("1", False, False), (None, True, False)],
)
def test_json_logs_outside_local_development(monkeypatch, local_env, local_mode, expected):
    if local_env is None:
        monkeypatch.delenv("ADOHOOK_LOCAL", raising=False)
    else:
        monkeypatch.setenv("ADOHOOK_LOCAL", local_env)
    assert json_logs_enabled(Settings(local_mode=local_mode)) is expected
