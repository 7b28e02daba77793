"""
Music Study Hub — Entry Point

``studyhub``        loads deployment settings, builds the shared
                    infrastructure (EventBus, Config, compliance logger,
                    filtering pipeline, live gate) and serves the HTTP API.
``studyhub setup``  interactive wizard that writes ``.env``.
"""

import argparse
import logging

import uvicorn

from studyhub import Config, EventBus, load_settings
from studyhub.server import create_app
from studyhub.setup_wizard import run_setup


def serve(env_file: str | None = None) -> None:
    settings = load_settings(env_file)

    # Shared infrastructure
    bus = EventBus()
    config = Config(bus, path=settings.config_path)

    app = create_app(settings, config=config, event_bus=bus)

    logging.getLogger(__name__).info(
        "Music Study Hub on http://localhost:%d (%s); Spotify redirect URI: %s",
        settings.port, settings.environment, settings.redirect_uri,
    )
    uvicorn.run(app, host=settings.host, port=settings.port)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="studyhub", description="Content-filtered study music backend")
    parser.add_argument("--env-file", default=None, help="Path to a .env file (default: ./.env)")
    sub = parser.add_subparsers(dest="command")
    sub.add_parser("serve", help="Run the HTTP API (default)")
    setup = sub.add_parser("setup", help="Write Spotify credentials to .env")
    setup.add_argument("--path", default=".env", help="Where to write the file (default: .env)")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "setup":
        return run_setup(args.path)

    serve(args.env_file)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
