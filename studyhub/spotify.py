"""
Spotify Accounts / Web API access.

* ``SpotifyAuthRelay`` — server side of the authorization-code flow.
  The browser sends the code (or a refresh token) here; the relay adds
  the client secret and forwards to the accounts service.  Tokens are
  returned to the caller and never stored.
* ``SpotifyWebClient`` — the few Web API reads the backend needs.

Uses only ``urllib``.
"""

from __future__ import annotations

import base64
import json
import logging
import urllib.error
import urllib.parse
import urllib.request
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

TOKEN_URL = "https://accounts.spotify.com/api/token"
API_BASE_URL = "https://api.spotify.com/v1"

_TIMEOUT = 15


class SpotifyError(RuntimeError):
    """A Spotify endpoint failed or returned something unusable."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


def _read_json(req: urllib.request.Request, fallback_message: str) -> Dict[str, Any]:
    try:
        with urllib.request.urlopen(req, timeout=_TIMEOUT) as resp:
            body = resp.read().decode("utf-8")
    except urllib.error.HTTPError as e:
        error_body = e.read().decode("utf-8", errors="replace")
        message = fallback_message
        try:
            payload = json.loads(error_body)
        except json.JSONDecodeError:
            payload = None
        if isinstance(payload, dict):
            err = payload.get("error")
            if payload.get("error_description"):
                message = payload["error_description"]
            elif isinstance(err, dict) and err.get("message"):
                message = err["message"]
        raise SpotifyError(message, status=e.code) from e
    except (urllib.error.URLError, OSError) as e:
        raise SpotifyError(f"{fallback_message}: {e}") from e

    if not body:
        return {}
    try:
        data = json.loads(body)
    except json.JSONDecodeError as e:
        raise SpotifyError(f"{fallback_message}: response was not JSON") from e
    if not isinstance(data, dict):
        raise SpotifyError(f"{fallback_message}: unexpected response")
    return data


class SpotifyAuthRelay:
    def __init__(self, client_id: str, client_secret: str, redirect_uri: str = ""):
        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_uri = redirect_uri

    @property
    def configured(self) -> bool:
        return bool(self.client_id and self.client_secret)

    def exchange_code(self, code: str, redirect_uri: Optional[str] = None) -> Dict[str, Any]:
        """Trade an authorization code for access + refresh tokens."""
        data = self._token_request({
            "grant_type": "authorization_code",
            "code": code,
            "redirect_uri": redirect_uri or self.redirect_uri,
        }, "Token exchange failed")
        return {
            "access_token": data.get("access_token"),
            "refresh_token": data.get("refresh_token"),
            "expires_in": data.get("expires_in"),
            "token_type": data.get("token_type"),
        }

    def refresh(self, refresh_token: str) -> Dict[str, Any]:
        """Get a fresh access token."""
        data = self._token_request({
            "grant_type": "refresh_token",
            "refresh_token": refresh_token,
        }, "Token refresh failed")
        return {
            "access_token": data.get("access_token"),
            "expires_in": data.get("expires_in"),
            "token_type": data.get("token_type"),
        }

    def _token_request(self, form: Dict[str, str], fallback_message: str) -> Dict[str, Any]:
        if not self.configured:
            raise SpotifyError("Spotify credentials not configured")
        basic = base64.b64encode(
            f"{self.client_id}:{self.client_secret}".encode("utf-8")
        ).decode("ascii")
        req = urllib.request.Request(
            TOKEN_URL,
            data=urllib.parse.urlencode(form).encode("utf-8"),
            headers={
                "Content-Type": "application/x-www-form-urlencoded",
                "Authorization": f"Basic {basic}",
            },
            method="POST",
        )
        return _read_json(req, fallback_message)


class SpotifyWebClient:
    def __init__(self, access_token: str, token_type: str = "Bearer"):
        self.access_token = access_token
        self.token_type = token_type

    def get_json(self, path: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        url = f"{API_BASE_URL}{path}"
        if params:
            url = f"{url}?{urllib.parse.urlencode(params)}"
        req = urllib.request.Request(
            url,
            headers={
                "Authorization": f"{self.token_type} {self.access_token}",
                "Accept": "application/json",
            },
            method="GET",
        )
        return _read_json(req, f"Spotify API request failed ({path})")

    def current_user_playlists(self, limit: int = 20) -> List[Dict[str, Any]]:
        page = self.get_json("/me/playlists", {"limit": max(1, min(50, int(limit)))})
        items = page.get("items") or []
        return [p for p in items if isinstance(p, dict)]
