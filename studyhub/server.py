"""
HTTP API for the study hub.

Routes (all under ``/api``):

    POST /content-filter     annotate a batch of tracks
    POST /playlists/filter   playlist discovery over a posted list
    GET  /playlists          discovery over the caller's Spotify playlists
    POST /live-check         play / skip decision for one track
    POST /player-state       forwarded playback-SDK state through the live gate
    GET  /compliance/recent  tail of the compliance log
    POST /token              authorization-code exchange (relay)
    POST /refresh            access-token refresh (relay)
    GET  /config             public client settings
    GET  /health             liveness

Bodies are read as raw JSON so malformed input gets the same
``{"error": ...}`` shape as every other failure.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from fastapi import APIRouter, FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import Config, ServerSettings, load_settings
from .events import EventBus
from .safety import ComplianceLogger, FilteringPipeline, InvalidBatchError, LiveTrackGate
from .safety.fallback import fallback_playlists
from .spotify import SpotifyAuthRelay, SpotifyError, SpotifyWebClient

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


def _error(status: int, error: str, message: Optional[str] = None) -> JSONResponse:
    body: Dict[str, Any] = {"error": error}
    if message is not None:
        body["message"] = message
    return JSONResponse(status_code=status, content=body)


async def _json_body(request: Request) -> Dict[str, Any]:
    """Request body as a dict; anything unparseable becomes ``{}``."""
    try:
        body = await request.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


def _bearer_token(request: Request) -> str:
    header = request.headers.get("authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer":
        return ""
    return token.strip()


# ── Content filtering ────────────────────────────────────────

@router.post("/content-filter")
async def content_filter(request: Request):
    body = await _json_body(request)
    pipeline: FilteringPipeline = request.app.state.pipeline
    try:
        # accessToken is accepted for the client's convenience but never used or logged.
        batch = await run_in_threadpool(
            pipeline.filter_tracks, body.get("tracks"), user_info=body.get("userInfo"),
        )
    except InvalidBatchError as e:
        return _error(400, str(e))
    except Exception as e:
        logger.exception("Content filtering error")
        return _error(500, "Content filtering failed", str(e))
    return batch.to_dict()


@router.post("/playlists/filter")
async def filter_playlists(request: Request):
    body = await _json_body(request)
    pipeline: FilteringPipeline = request.app.state.pipeline
    try:
        discovery = await run_in_threadpool(pipeline.filter_playlists, body.get("playlists"))
    except InvalidBatchError as e:
        return _error(400, str(e))
    except Exception as e:
        logger.exception("Playlist filtering error")
        return _error(500, "Playlist filtering failed", str(e))
    return discovery.to_dict()


@router.get("/playlists")
async def user_playlists(request: Request, limit: int = Query(20, ge=1, le=50)):
    pipeline: FilteringPipeline = request.app.state.pipeline
    token = _bearer_token(request)
    if not token:
        return {"playlists": fallback_playlists(), "fallback": True}

    client = request.app.state.spotify_client_factory(token)
    try:
        playlists = await run_in_threadpool(client.current_user_playlists, limit)
    except SpotifyError as e:
        logger.warning("Failed to load playlists, serving fallback catalog: %s", e)
        return {"playlists": fallback_playlists(), "fallback": True}
    discovery = await run_in_threadpool(pipeline.filter_playlists, playlists)
    return discovery.to_dict()


@router.post("/live-check")
async def live_check(request: Request):
    body = await _json_body(request)
    track = body.get("track")
    if not isinstance(track, dict):
        return _error(400, "Track is required")
    pipeline: FilteringPipeline = request.app.state.pipeline
    allowed = await run_in_threadpool(pipeline.check_live_track, track)
    return {"allowed": allowed, "action": "play" if allowed else "skip"}


@router.post("/player-state")
async def player_state(request: Request):
    """
    State forwarded from the playback SDK's ``player_state_changed``.

    Answers ``{"action": "skip", ...}`` the first time a failing track is
    seen and ``{"action": "none"}`` otherwise.
    """
    body = await _json_body(request)
    gate: LiveTrackGate = request.app.state.live_gate
    skip = await run_in_threadpool(gate.evaluate, body)
    if skip is None:
        return {"action": "none"}
    return {"action": "skip", **skip}


@router.get("/compliance/recent")
async def compliance_recent(request: Request, limit: int = Query(50, ge=1, le=500)):
    compliance_logger: ComplianceLogger = request.app.state.compliance_logger
    return {"entries": compliance_logger.read_recent(limit)}


# ── OAuth relay ──────────────────────────────────────────────

@router.post("/token")
async def exchange_token(request: Request):
    body = await _json_body(request)
    code = body.get("code")
    if not code:
        return _error(400, "Authorization code is required")

    relay: SpotifyAuthRelay = request.app.state.auth_relay
    if not relay.configured:
        return _error(500, "Server configuration error", "Spotify credentials not configured")

    try:
        return await run_in_threadpool(relay.exchange_code, code, body.get("redirect_uri"))
    except SpotifyError as e:
        logger.error("Token exchange error: %s", e)
        return _error(500, "Token exchange failed", str(e))


@router.post("/refresh")
async def refresh_token(request: Request):
    body = await _json_body(request)
    token = body.get("refresh_token")
    if not token:
        return _error(400, "Refresh token is required")

    relay: SpotifyAuthRelay = request.app.state.auth_relay
    if not relay.configured:
        return _error(500, "Server configuration error", "Spotify credentials not configured")

    try:
        return await run_in_threadpool(relay.refresh, token)
    except SpotifyError as e:
        logger.error("Token refresh error: %s", e)
        return _error(500, "Token refresh failed", str(e))


# ── Misc ─────────────────────────────────────────────────────

@router.get("/config")
async def public_config(request: Request):
    settings: ServerSettings = request.app.state.settings
    return {
        "client_id": settings.spotify_client_id or None,
        "redirect_uri": settings.redirect_uri,
    }


@router.get("/health")
async def health(request: Request):
    settings: ServerSettings = request.app.state.settings
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(timespec="milliseconds"),
        "environment": settings.environment,
    }


# ── App factory ──────────────────────────────────────────────

def create_app(
    settings: Optional[ServerSettings] = None,
    config: Optional[Config] = None,
    event_bus: Optional[EventBus] = None,
    pipeline: Optional[FilteringPipeline] = None,
) -> FastAPI:
    settings = settings or load_settings()
    event_bus = event_bus or EventBus()
    config = config or Config(event_bus, path=settings.config_path)

    compliance_logger = ComplianceLogger(event_bus, log_dir=Path(settings.log_dir))
    if pipeline is None:
        pipeline = FilteringPipeline(
            compliance_logger=compliance_logger, config=config, event_bus=event_bus,
        )
    elif pipeline.compliance_logger is not None:
        compliance_logger = pipeline.compliance_logger

    app = FastAPI(
        title="Music Study Hub",
        description="Content-filtered study music backed by Spotify",
        version="1.0.0",
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    app.state.settings = settings
    app.state.config = config
    app.state.event_bus = event_bus
    app.state.pipeline = pipeline
    app.state.compliance_logger = compliance_logger
    app.state.live_gate = LiveTrackGate(event_bus, pipeline)
    app.state.auth_relay = SpotifyAuthRelay(
        settings.spotify_client_id,
        settings.spotify_client_secret,
        settings.redirect_uri,
    )
    app.state.spotify_client_factory = SpotifyWebClient

    app.include_router(router)

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            return _error(404, "Endpoint not found")
        if exc.status_code == 405:
            return _error(405, "Method not allowed")
        return _error(exc.status_code, str(exc.detail))

    @app.exception_handler(Exception)
    async def server_error(request: Request, exc: Exception):
        logger.exception("Server error")
        message = str(exc) if settings.is_development else "Something went wrong"
        return _error(500, "Internal server error", message)

    if not settings.has_spotify_credentials:
        logger.warning("SPOTIFY_CLIENT_ID / SPOTIFY_CLIENT_SECRET not set; token relay disabled")

    return app
