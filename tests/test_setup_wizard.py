"""
Tests for studyhub/setup_wizard.py and the ``studyhub setup`` command.

Covers:
* run_setup() — writes credentials / port / redirect URI to .env
* Required answers, invalid port, overwrite confirmation
* Written file is readable by load_settings()
* main.py dispatches the ``setup`` subcommand
"""

from __future__ import annotations

import os

import pytest

import main as entry
from studyhub.config import load_settings
from studyhub.setup_wizard import render_env, run_setup


@pytest.fixture
def answers(monkeypatch):
    """Feed canned answers to input() and getpass()."""
    queue: list[str] = []
    secrets: list[str] = []
    monkeypatch.setattr("builtins.input", lambda prompt="": queue.pop(0))
    monkeypatch.setattr("getpass.getpass", lambda prompt="": secrets.pop(0))
    return queue, secrets


def parse_env(path) -> dict:
    values = {}
    for line in path.read_text(encoding="utf-8").splitlines():
        if line and not line.startswith("#"):
            key, _, value = line.partition("=")
            values[key] = value
    return values


# ── Wizard ────────────────────────────────────────────────────────────

class TestRunSetup:
    def test_writes_env(self, tmp_path, answers):
        queue, secrets = answers
        queue.extend(["my-client", "8080"])
        secrets.append("my-secret")
        env = tmp_path / ".env"
        assert run_setup(env) == 0
        assert parse_env(env) == {
            "SPOTIFY_CLIENT_ID": "my-client",
            "SPOTIFY_CLIENT_SECRET": "my-secret",
            "PORT": "8080",
            "APP_ENV": "development",
            "REDIRECT_URI": "http://localhost:8080",
        }

    def test_default_port(self, tmp_path, answers):
        queue, secrets = answers
        queue.extend(["id", ""])
        secrets.append("secret")
        env = tmp_path / ".env"
        run_setup(env)
        assert parse_env(env)["PORT"] == "3000"

    def test_missing_client_id(self, tmp_path, answers):
        queue, _ = answers
        queue.append("  ")
        env = tmp_path / ".env"
        assert run_setup(env) == 1
        assert not env.exists()

    def test_missing_secret(self, tmp_path, answers):
        queue, secrets = answers
        queue.append("id")
        secrets.append("")
        assert run_setup(tmp_path / ".env") == 1

    @pytest.mark.parametrize("port", ["abc", "0", "70000"])
    def test_invalid_port(self, tmp_path, answers, port):
        queue, secrets = answers
        queue.extend(["id", port])
        secrets.append("secret")
        env = tmp_path / ".env"
        assert run_setup(env) == 1
        assert not env.exists()

    def test_existing_file_kept_without_confirmation(self, tmp_path, answers):
        queue, _ = answers
        queue.append("n")
        env = tmp_path / ".env"
        env.write_text("KEEP=1\n", encoding="utf-8")
        assert run_setup(env) == 0
        assert env.read_text(encoding="utf-8") == "KEEP=1\n"

    def test_existing_file_overwritten_on_yes(self, tmp_path, answers):
        queue, secrets = answers
        queue.extend(["yes", "new-id", ""])
        secrets.append("new-secret")
        env = tmp_path / ".env"
        env.write_text("KEEP=1\n", encoding="utf-8")
        assert run_setup(env) == 0
        assert parse_env(env)["SPOTIFY_CLIENT_ID"] == "new-id"

    def test_explicit_callables(self, tmp_path):
        replies = iter(["id", "4000"])
        env = tmp_path / ".env"
        code = run_setup(env, ask=lambda p: next(replies), ask_secret=lambda p: "s")
        assert code == 0
        assert parse_env(env)["REDIRECT_URI"] == "http://localhost:4000"


class TestEnvFileRoundTrip:
    def test_load_settings_reads_written_file(self, tmp_path, monkeypatch):
        for name in ("SPOTIFY_CLIENT_ID", "SPOTIFY_CLIENT_SECRET", "PORT", "APP_ENV",
                     "REDIRECT_URI", "VERCEL_URL"):
            monkeypatch.delenv(name, raising=False)
        env = tmp_path / ".env"
        env.write_text(render_env("cid", "csecret", 4321), encoding="utf-8")
        try:
            settings = load_settings(env)
            assert settings.spotify_client_id == "cid"
            assert settings.spotify_client_secret == "csecret"
            assert settings.port == 4321
            assert settings.redirect_uri == "http://localhost:4321"
        finally:
            for name in ("SPOTIFY_CLIENT_ID", "SPOTIFY_CLIENT_SECRET", "PORT", "APP_ENV", "REDIRECT_URI"):
                os.environ.pop(name, None)


# ── Command line ──────────────────────────────────────────────────────

class TestCommandLine:
    def test_setup_subcommand(self, tmp_path, answers):
        queue, secrets = answers
        queue.extend(["cli-id", ""])
        secrets.append("cli-secret")
        env = tmp_path / "custom.env"
        assert entry.main(["setup", "--path", str(env)]) == 0
        assert parse_env(env)["SPOTIFY_CLIENT_ID"] == "cli-id"

    def test_default_command_serves(self, monkeypatch):
        served = []
        monkeypatch.setattr(entry, "serve", lambda env_file=None: served.append(env_file))
        assert entry.main([]) == 0
        assert served == [None]

    def test_env_file_passed_through(self, monkeypatch):
        served = []
        monkeypatch.setattr(entry, "serve", lambda env_file=None: served.append(env_file))
        entry.main(["--env-file", "prod.env", "serve"])
        assert served == ["prod.env"]
