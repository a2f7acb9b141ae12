"""
=============================================================================
GROCERME CLI ENTRY POINT
=============================================================================

    # JWT_SECRET is required and only read from the environment,
    # so it never shows up in `ps` output or shell history
    export JWT_SECRET=$(openssl rand -hex 32)

    python -m grocerme                       # 127.0.0.1:8080
    python -m grocerme --port 3000
    python -m grocerme --host 0.0.0.0        # containers
    python -m grocerme --workers 32 --log-level DEBUG

Command-line flags override the matching environment variables.

Without a password hasher the standalone server only serves /health,
/me and /logout. An embedding program supplies its store and hasher to
create_app() and runs GrocerServer itself.

=============================================================================
"""

import argparse
import logging
import sys

from . import __version__
from .app import create_app
from .config import LOG_LEVELS, AppConfig
from .errors import ConfigError
from .server import GrocerServer, setup_logging


logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="grocerme",
        description="grocer-me API server",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Environment:
  JWT_SECRET     HMAC secret for session tokens (required)
  HOST, PORT, WORKERS, LOG_LEVEL, LOG_FORMAT, COOKIE_SECURE

Routes:
  GET /health, GET /me, POST /logout
  /signup and /signin are NOT served: no password hasher ships with
  grocerme. Embed create_app(config, store, hasher) to enable them.
        """,
    )

    parser.add_argument("--host", "-H", default=None,
                        help="Host to bind to (default: $HOST or 127.0.0.1)")
    parser.add_argument("--port", "-p", type=int, default=None,
                        help="Port to listen on (default: $PORT or 8080)")
    parser.add_argument("--workers", "-w", type=int, default=None,
                        help="Worker threads (default: $WORKERS or 16)")
    parser.add_argument("--log-level", "-l", choices=LOG_LEVELS, default=None,
                        help="Logging level (default: $LOG_LEVEL or INFO)")
    parser.add_argument("--log-format", choices=["text", "json"], default=None,
                        help="Access log format (default: $LOG_FORMAT or text)")
    parser.add_argument("--version", "-v", action="version",
                        version=f"grocerme {__version__}")
    return parser


def load_config(args: argparse.Namespace, environ=None) -> AppConfig:
    """
    Environment first, then CLI overrides, then validate().

    Raises:
        ConfigError: The resulting configuration is invalid.
    """
    config = AppConfig.from_env(environ)
    if args.host is not None:
        config.host = args.host
    if args.port is not None:
        config.port = args.port
    if args.workers is not None:
        config.max_workers = args.workers
    if args.log_level is not None:
        config.log_level = args.log_level
    if args.log_format is not None:
        config.log_format = args.log_format
    config.validate()
    return config


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = load_config(args)
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    setup_logging(config)
    logger.info(f"Loaded {config!r}")

    server = GrocerServer(config, create_app(config))
    try:
        server.run()
    except OSError as e:
        logger.error(f"Server failed: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
