from datetime import datetime
from typing import Optional
from zoneinfo import ZoneInfo

from pydantic import BaseModel, ConfigDict

from unrivaled.games import Game, GameStatus


class TeamOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    short_name: str
    badge_url: Optional[str]
    logo_url: Optional[str] = None
    description: Optional[str] = None


class GameOut(BaseModel):
    id: str
    home_team: TeamOut
    away_team: TeamOut
    home_score: Optional[int]
    away_score: Optional[int]
    date: datetime
    has_valid_time: bool
    status: GameStatus
    thumbnail_url: Optional[str]
    progress: Optional[str]
    score_display: str
    winner_id: Optional[str] = None
    time_display: str = ""
    date_display: str = ""


class StandingOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    team_name: str
    team_id: Optional[str]
    rank: int
    played: int
    wins: int
    losses: int
    points: int
    badge_url: Optional[str]
    defaulted_fields: list[str]


class GamesResponse(BaseModel):
    games: list[GameOut]
    live: list[GameOut]
    count: int
    is_loading: bool
    is_live_polling: bool
    error: Optional[str] = None


class GamesViewResponse(BaseModel):
    games: list[GameOut]
    count: int
    favorite_team_id: Optional[str] = None


class WidgetResponse(BaseModel):
    upcoming: list[GameOut]
    recent: list[GameOut]
    favorite_team_id: Optional[str] = None
    last_update: Optional[datetime] = None


class LoadResponse(BaseModel):
    ok: bool
    skipped: bool
    total: int
    live: int
    error: Optional[str] = None


class FavoriteTeamIn(BaseModel):
    team_id: Optional[str] = None


class CredentialIn(BaseModel):
    api_key: str


class CredentialOut(BaseModel):
    tier: str
    is_premium: bool
    refresh_required: bool = False


def game_out(game: Game, tz: ZoneInfo) -> GameOut:
    winner = game.winner
    return GameOut(
        id=game.id,
        home_team=TeamOut.model_validate(game.home_team),
        away_team=TeamOut.model_validate(game.away_team),
        home_score=game.home_score,
        away_score=game.away_score,
        date=game.date,
        has_valid_time=game.has_valid_time,
        status=game.status,
        thumbnail_url=game.thumbnail_url,
        progress=game.progress,
        score_display=game.score_display,
        winner_id=winner.id if winner else None,
        time_display=game.time_display(tz),
        date_display=game.date_display(tz),
    )
