"""
Modo entry point.

This file handles startup concerns (arg-parsing, env setup, logging) and launches the appropriate
interface (API or CLI).
"""

import argparse
import logging
import os
import sys

from modo.api.app import run_api
from modo.config import settings

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def _init_logging(level: str) -> None:
    numeric = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        level=numeric,
        format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
        stream=sys.stdout,
    )
    # SDK clients log every request at INFO
    for noisy in ("httpx", "openai", "anthropic"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Run the Modo coach orchestrator")
    parser.add_argument(
        "--mode",
        choices=["api", "cli"],
        type=str.lower,
        default="api",
        help="Launch the REST API, or the API plus an interactive CLI (default: api)",
    )
    parser.add_argument(
        "--backend",
        choices=["openai", "anthropic"],
        type=str.lower,
        default=settings.BACKEND,
        help="AI backend to use (default from env: %(default)s)",
    )
    parser.add_argument(
        "--log-level",
        choices=["debug", "info", "warning", "error", "critical"],
        type=str.lower,
        default=settings.LOG_LEVEL,
        help="Logging level (default from env: %(default)s)",
    )
    return parser


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------
def main(argv: list[str] | None = None) -> None:
    """
    Main entry point for the Modo application.

    Sets up the command-line interface, initializes logging, and starts the application in either
    API or CLI mode.
    """
    if argv is None:
        argv = sys.argv[1:]

    args = build_parser().parse_args(argv)

    # Command-line arguments override env settings. The environment carries them into uvicorn's
    # reload worker, which builds its own Settings.
    settings.LOG_LEVEL = args.log_level
    settings.BACKEND = args.backend
    os.environ["LOG_LEVEL"] = args.log_level
    os.environ["BACKEND"] = args.backend

    _init_logging(settings.LOG_LEVEL)

    logger.info("Starting Modo [%s mode, %s backend]", args.mode, settings.BACKEND)

    if args.mode == "api":
        run_api(host="0.0.0.0", port=settings.API_PORT, reload=settings.DEBUG)
        return

    # CLI mode: API in a background thread, CLI in the main thread
    import threading  # pylint: disable=import-outside-toplevel

    from modo.client.cli import run_cli  # pylint: disable=import-outside-toplevel

    api_thread = threading.Thread(
        target=run_api,
        kwargs={
            "host": "0.0.0.0",
            "port": settings.API_PORT,
            "reload": False,  # Reload doesn't work with threading
            "log_level": "warning",
        },
        daemon=True,
    )
    api_thread.start()
    run_cli()


if __name__ == "__main__":
    main()
