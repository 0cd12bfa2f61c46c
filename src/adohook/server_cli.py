"""``adohook-server``: run the hook receiver under uvicorn.

Options are exported as ``ADOHOOK_*`` variables before the app module is
imported, so ``adohook.config.settings`` picks them up like any other
environment setting.
"""

import argparse
import os

LOG_LEVELS = ("debug", "info", "warning", "error")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="adohook-server",
        description="Receive Azure DevOps service hooks, verify them against ADO and dispatch by event type",
    )
    parser.add_argument("--host", default=os.environ.get("ADOHOOK_HOST", "0.0.0.0"))
    parser.add_argument("--port", type=int, default=int(os.environ.get("ADOHOOK_PORT", "8000")))
    parser.add_argument(
        "--organization-url",
        help="ADO organization whose notification records are queried (ADOHOOK_ORGANIZATION_URL)",
    )
    parser.add_argument("--log-level", choices=LOG_LEVELS)
    parser.add_argument(
        "--local",
        action="store_true",
        help="console logs; tokens come from ADOHOOK_STATIC_TOKEN unless a source is set",
    )
    return parser


def apply_overrides(args: argparse.Namespace, environ=os.environ) -> None:
    """Translate parsed options into ADOHOOK_* settings."""
    if args.organization_url:
        environ["ADOHOOK_ORGANIZATION_URL"] = args.organization_url
    if args.log_level:
        environ["ADOHOOK_LOG_LEVEL"] = args.log_level
    if args.local:
        environ["ADOHOOK_LOCAL"] = "1"
        environ["ADOHOOK_LOCAL_MODE"] = "1"
        environ.setdefault("ADOHOOK_CREDENTIAL_SOURCE", "static")


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    apply_overrides(args)

    import uvicorn

    uvicorn.run(
        "adohook.main:app",
        host=args.host,
        port=args.port,
        log_level=args.log_level or os.environ.get("ADOHOOK_LOG_LEVEL", "info"),
    )


if __name__ == "__main__":
    main()
