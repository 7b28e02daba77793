"""
Interactive first-run setup.

Asks for the Spotify app credentials and a port, then writes the
``.env`` file that ``load_settings()`` reads on the next start.
An existing ``.env`` is only replaced after confirmation.
"""

from __future__ import annotations

import getpass
import logging
from pathlib import Path
from typing import Callable

logger = logging.getLogger(__name__)

DEFAULT_PORT = 3000


def render_env(client_id: str, client_secret: str, port: int = DEFAULT_PORT) -> str:
    return (
        "# Spotify API Configuration\n"
        f"SPOTIFY_CLIENT_ID={client_id}\n"
        f"SPOTIFY_CLIENT_SECRET={client_secret}\n"
        "\n"
        "# Server Configuration\n"
        f"PORT={port}\n"
        "APP_ENV=development\n"
        "\n"
        "# Redirect URI (update for production)\n"
        f"REDIRECT_URI=http://localhost:{port}\n"
    )


def write_env(path: Path | str, client_id: str, client_secret: str, port: int = DEFAULT_PORT) -> Path:
    path = Path(path)
    path.write_text(render_env(client_id, client_secret, port), encoding="utf-8")
    logger.info("Wrote %s", path)
    return path


def run_setup(
    env_path: Path | str = ".env",
    ask: Callable[[str], str] | None = None,
    ask_secret: Callable[[str], str] | None = None,
) -> int:
    """
    Run the wizard; returns a process exit code.

    *ask* / *ask_secret* default to ``input`` and ``getpass.getpass``.
    """
    ask = ask or input
    ask_secret = ask_secret or getpass.getpass
    env_path = Path(env_path)

    print("Music Study Hub - Setup Wizard")
    print("==============================\n")
    print("You need a Spotify app (https://developer.spotify.com/dashboard)")
    print("and its Client ID and Client Secret.\n")

    if env_path.exists():
        answer = ask(f"{env_path} already exists. Overwrite? (y/N): ").strip().lower()
        if answer not in ("y", "yes"):
            print("Setup cancelled.")
            return 0

    client_id = ask("Enter your Spotify Client ID: ").strip()
    if not client_id:
        print("Client ID is required!")
        return 1

    client_secret = ask_secret("Enter your Spotify Client Secret: ").strip()
    if not client_secret:
        print("Client Secret is required!")
        return 1

    raw_port = ask(f"Enter port number (default: {DEFAULT_PORT}): ").strip()
    try:
        port = int(raw_port) if raw_port else DEFAULT_PORT
    except ValueError:
        print(f"Invalid port: {raw_port}")
        return 1
    if not 0 < port < 65536:
        print(f"Invalid port: {raw_port}")
        return 1

    try:
        write_env(env_path, client_id, client_secret, port)
    except OSError as e:
        print(f"Setup failed: {e}")
        return 1

    print(f"\nCreated {env_path}\n")
    print("Next steps:")
    print("1. Start the server: studyhub")
    print(f"2. Open http://localhost:{port} in your browser")
    print(f"3. In your Spotify app settings, add this redirect URI: http://localhost:{port}")
    return 0
