"""
CLI entry point for the market gateway.

Usage:
    # Serve the API (host/port default to settings)
    market-gateway serve --port 3000

    # Report which provider keys the process sees
    market-gateway check
"""

import argparse
import logging
import sys

from gateway.core.config import settings
from gateway.shared.logging import configure_logging

logger = logging.getLogger(__name__)


def cmd_serve(args: argparse.Namespace) -> None:
    """Start the ASGI server."""
    import uvicorn

    host = args.host or settings.host
    port = args.port or settings.port
    logger.info("Starting %s at http://%s:%d", settings.project_name, host, port)
    uvicorn.run("gateway.main:app", host=host, port=port, reload=args.reload)


def cmd_check(args: argparse.Namespace) -> int:
    """Log key presence; exit status 1 when any provider key is missing."""
    logger.info("Financial data API: %s", "configured" if settings.financial_api_configured else "missing")
    logger.info("Completion provider: %s", "configured" if settings.completion_configured else "missing")
    logger.info("Candidate models: %s", ", ".join(settings.completion_models))
    return 1 if settings.missing_keys() else 0


def main(argv=None) -> None:
    configure_logging(
        level=settings.log_level,
        secrets=(settings.financial_api_key, settings.completion_api_key),
    )
    parser = argparse.ArgumentParser(description="Market Gateway CLI")
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", default=None, help="Bind address (default from settings)")
    serve_parser.add_argument("--port", type=int, default=None, help="Bind port (default from settings)")
    serve_parser.add_argument("--reload", action="store_true", help="Reload on code changes")
    serve_parser.set_defaults(func=cmd_serve)

    check_parser = subparsers.add_parser("check", help="Report configured provider keys")
    check_parser.set_defaults(func=cmd_check)

    args = parser.parse_args(argv)
    status = args.func(args)
    if status:
        sys.exit(status)


if __name__ == "__main__":
    main()
