"""authcode entry point.

  authcode serve    Run the authorization server (/authorize, /token, /resource)
  authcode client   Run the client application (/, /callback)
"""

import argparse
import logging
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as get_version

from authcode.config import get_settings
from authcode.logging_setup import setup_logging

logger = logging.getLogger(__name__)


def _version() -> str:
    try:
        return get_version("authcode")
    except PackageNotFoundError:
        from authcode import __version__

        return __version__


def main() -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="OAuth2 authorization code grant: provider and client",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  authcode serve                     Start the provider on 127.0.0.1:3000
  authcode client                    Start the client app on 127.0.0.1:4000
  authcode serve --port 3001 --dev   Provider with auto-reload
""",
    )
    parser.add_argument(
        "command",
        choices=["serve", "client"],
        help="'serve' runs the authorization server, 'client' runs the client app",
    )
    parser.add_argument("--host", type=str, default=None, help="Host to bind")
    parser.add_argument("--port", "-p", type=int, default=None, help="Port to bind")
    parser.add_argument("--dev", action="store_true", help="Development mode with auto-reload")
    parser.add_argument(
        "--version",
        "-v",
        action="version",
        version=f"%(prog)s {_version()}",
    )

    args = parser.parse_args()
    settings = get_settings()
    setup_logging(level=settings.log_level)

    try:
        if args.command == "serve":
            from authcode.api.serve import run_api_server

            run_api_server(
                host=args.host or settings.provider_host,
                port=args.port or settings.provider_port,
                dev=args.dev,
            )
        else:
            from authcode.client.app import run_client_app

            run_client_app(
                host=args.host or settings.client_host,
                port=args.port or settings.client_port,
                dev=args.dev,
            )
    except KeyboardInterrupt:
        logger.info("authcode stopped.")


if __name__ == "__main__":
    main()
