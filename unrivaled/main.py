from __future__ import annotations

import logging
from zoneinfo import ZoneInfo

from fastapi import FastAPI, HTTPException, Request

from unrivaled.aggregator import GamesAggregator
from unrivaled.ingestion.sportsdb_client import SportsDBClientError
from unrivaled.log_buffer import get_buffer_handler, install_buffer_handler
from unrivaled.schemas import (
    CredentialIn,
    CredentialOut,
    FavoriteTeamIn,
    GamesResponse,
    GamesViewResponse,
    LoadResponse,
    StandingOut,
    TeamOut,
    WidgetResponse,
    game_out,
)
from unrivaled.services import Services, build_services
from unrivaled.teams import find_team_by_id

app = FastAPI(title="Unrivaled Scores")
logger = logging.getLogger(__name__)


@app.on_event("startup")
async def start_services() -> None:
    install_buffer_handler()
    if getattr(app.state, "services", None) is None:
        app.state.services = build_services()
    logger.info("App starting up: initial load")
    # A failed first load is reported through /api/games, not raised.
    await app.state.services.aggregator.load()


@app.on_event("shutdown")
async def stop_services() -> None:
    services: Services | None = getattr(app.state, "services", None)
    if services is not None:
        await services.aggregator.stop_live_updates()
    logger.info("App shut down.")


def _services(request: Request) -> Services:
    return request.app.state.services


def _tz(services: Services) -> ZoneInfo:
    return ZoneInfo(services.config.display_timezone)


def _view(aggregator: GamesAggregator, games, tz: ZoneInfo) -> GamesViewResponse:
    return GamesViewResponse(
        games=[game_out(game, tz) for game in games],
        count=len(games),
        favorite_team_id=aggregator.favorite_team_id,
    )


@app.get("/api/games", response_model=GamesResponse)
def api_games(request: Request):
    services = _services(request)
    aggregator = services.aggregator
    tz = _tz(services)
    games = aggregator.games
    return GamesResponse(
        games=[game_out(game, tz) for game in games],
        live=[game_out(game, tz) for game in aggregator.live_games],
        count=len(games),
        is_loading=aggregator.is_loading,
        is_live_polling=aggregator.is_live_polling,
        error=aggregator.error,
    )


@app.get("/api/games/live", response_model=GamesViewResponse)
def api_live_games(request: Request):
    services = _services(request)
    return _view(services.aggregator, services.aggregator.live_games, _tz(services))


@app.get("/api/games/upcoming", response_model=GamesViewResponse)
def api_upcoming_games(request: Request, favorite: bool = False):
    services = _services(request)
    aggregator = services.aggregator
    games = aggregator.favorite_team_upcoming if favorite else aggregator.upcoming_games
    return _view(aggregator, games, _tz(services))


@app.get("/api/games/results", response_model=GamesViewResponse)
def api_results(request: Request, favorite: bool = False):
    services = _services(request)
    aggregator = services.aggregator
    games = aggregator.favorite_team_results if favorite else aggregator.completed_games
    return _view(aggregator, games, _tz(services))


@app.post("/api/games/load", response_model=LoadResponse)
async def api_load(request: Request):
    result = await _services(request).aggregator.load()
    return LoadResponse(**vars(result))


@app.post("/api/games/refresh", response_model=LoadResponse)
async def api_refresh(request: Request):
    result = await _services(request).aggregator.refresh()
    return LoadResponse(**vars(result))


@app.put("/api/favorite-team")
def api_set_favorite_team(payload: FavoriteTeamIn, request: Request):
    team_id = (payload.team_id or "").strip() or None
    if team_id is not None and find_team_by_id(team_id) is None:
        raise HTTPException(status_code=400, detail=f"Unknown team id: {team_id}")
    _services(request).aggregator.set_favorite_team(team_id)
    return {"ok": True, "favorite_team_id": team_id}


@app.post("/api/live/start")
async def api_live_start(request: Request):
    aggregator = _services(request).aggregator
    await aggregator.start_live_updates()
    return {"ok": True, "is_live_polling": aggregator.is_live_polling}


@app.post("/api/live/stop")
async def api_live_stop(request: Request):
    aggregator = _services(request).aggregator
    await aggregator.stop_live_updates()
    return {"ok": True, "is_live_polling": aggregator.is_live_polling}


@app.get("/api/teams", response_model=list[TeamOut])
def api_teams(request: Request):
    teams = _services(request).source.fetch_teams()
    return [TeamOut.model_validate(team) for team in teams]


@app.get("/api/standings", response_model=list[StandingOut])
def api_standings(request: Request):
    try:
        standings = _services(request).source.fetch_standings()
    except SportsDBClientError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    return [
        StandingOut.model_validate(standing).model_copy(
            update={"defaulted_fields": sorted(standing.defaulted_fields)}
        )
        for standing in standings
    ]


@app.get("/api/widget", response_model=WidgetResponse)
def api_widget(request: Request):
    services = _services(request)
    store = services.snapshot_store
    tz = _tz(services)
    return WidgetResponse(
        upcoming=[game_out(game, tz) for game in store.load_upcoming_games()],
        recent=[game_out(game, tz) for game in store.load_recent_games()],
        favorite_team_id=store.favorite_team_id,
        last_update=store.last_update,
    )


@app.get("/api/settings/credential", response_model=CredentialOut)
def api_get_credential(request: Request):
    credentials = _services(request).credentials
    return CredentialOut(tier=credentials.tier, is_premium=credentials.is_premium)


@app.put("/api/settings/credential", response_model=CredentialOut)
def api_set_credential(payload: CredentialIn, request: Request):
    api_key = payload.api_key.strip()
    if not api_key:
        raise HTTPException(status_code=400, detail="api_key must not be empty")
    credentials = _services(request).credentials
    tier_changed = credentials.set_api_key(api_key)
    return CredentialOut(
        tier=credentials.tier,
        is_premium=credentials.is_premium,
        refresh_required=tier_changed,
    )


@app.delete("/api/settings/credential", response_model=CredentialOut)
def api_reset_credential(request: Request):
    credentials = _services(request).credentials
    tier_changed = credentials.reset_to_free()
    return CredentialOut(
        tier=credentials.tier,
        is_premium=credentials.is_premium,
        refresh_required=tier_changed,
    )


@app.get("/api/logs")
def api_logs(limit: int = 100, level: str | None = None):
    handler = get_buffer_handler()
    return {"entries": handler.entries(limit=limit, min_level=level)}


if __name__ == "__main__":
    import os

    import uvicorn

    uvicorn.run(app, host=os.getenv("API_HOST", "127.0.0.1"), port=int(os.getenv("API_PORT", "8000")))
