"""Snapshot store shared with the widget, which has no network access.

Games are stored as JSON. Older snapshots stored each team as a bare name
string, newer ones as an object; both decode.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any, Iterable, Optional, Union

from pydantic import BaseModel, ValidationError, field_validator
from sqlalchemy.orm import Session, sessionmaker

from unrivaled.games import Game, GameStatus, Team
from unrivaled.models import WidgetSnapshot
from unrivaled.teams import find_team_by_id, find_team_by_name

logger = logging.getLogger(__name__)

UPCOMING_GAMES_KEY = "upcoming_games"
RECENT_GAMES_KEY = "recent_games"
FAVORITE_TEAM_KEY = "favorite_team"
LAST_UPDATE_KEY = "last_update"


class SnapshotTeam(BaseModel):
    id: str = ""
    name: str
    badgeURL: Optional[str] = None


class SnapshotGame(BaseModel):
    id: str
    homeTeam: SnapshotTeam
    awayTeam: SnapshotTeam
    homeScore: Optional[int] = None
    awayScore: Optional[int] = None
    date: datetime
    status: GameStatus = GameStatus.SCHEDULED
    hasValidTime: bool = True
    thumbnailURL: Optional[str] = None
    progress: Optional[str] = None

    @field_validator("homeTeam", "awayTeam", mode="before")
    @classmethod
    def _team_from_name(cls, value: Union[str, dict, Any]) -> Any:
        if isinstance(value, str):
            known = find_team_by_name(value)
            return {"id": known.id if known else "", "name": value}
        return value


def _encode_team(team: Team) -> dict[str, Any]:
    return {"id": team.id, "name": team.name, "badgeURL": team.badge_url}


def encode_game(game: Game) -> dict[str, Any]:
    return {
        "id": game.id,
        "homeTeam": _encode_team(game.home_team),
        "awayTeam": _encode_team(game.away_team),
        "homeScore": game.home_score,
        "awayScore": game.away_score,
        "date": game.date.astimezone(timezone.utc).isoformat(),
        "status": game.status.value,
        "hasValidTime": game.has_valid_time,
        "thumbnailURL": game.thumbnail_url,
        "progress": game.progress,
    }


def _decode_team(team: SnapshotTeam) -> Team:
    known = find_team_by_id(team.id) or find_team_by_name(team.name)
    return Team(
        id=team.id or (known.id if known else ""),
        name=team.name,
        badge_url=team.badgeURL or (known.badge_url if known else None),
    )


def decode_games(raw: str) -> list[Game]:
    try:
        items = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning("Widget snapshot is not valid JSON; ignoring it.")
        return []
    if not isinstance(items, list):
        return []

    games: list[Game] = []
    for item in items:
        try:
            snapshot = SnapshotGame.model_validate(item)
        except ValidationError:
            logger.debug("Skipping undecodable widget game: %r", item)
            continue
        game_date = snapshot.date
        if game_date.tzinfo is None:
            game_date = game_date.replace(tzinfo=timezone.utc)
        games.append(
            Game(
                id=snapshot.id,
                home_team=_decode_team(snapshot.homeTeam),
                away_team=_decode_team(snapshot.awayTeam),
                home_score=snapshot.homeScore,
                away_score=snapshot.awayScore,
                date=game_date,
                status=snapshot.status,
                has_valid_time=snapshot.hasValidTime,
                thumbnail_url=snapshot.thumbnailURL,
                progress=snapshot.progress,
            )
        )
    return games


class WidgetSnapshotStore:
    def __init__(self, session_factory: sessionmaker) -> None:
        self._session_factory = session_factory

    def _read(self, db: Session, key: str) -> WidgetSnapshot | None:
        return db.query(WidgetSnapshot).filter(WidgetSnapshot.key == key).one_or_none()

    def _write(self, db: Session, key: str, payload: str, now: datetime) -> None:
        row = self._read(db, key)
        if row is None:
            row = WidgetSnapshot(key=key)
            db.add(row)
        row.payload_json = payload
        row.updated_at_utc = now

    def _get_payload(self, key: str) -> str | None:
        with self._session_factory() as db:
            row = self._read(db, key)
            return row.payload_json if row else None

    def save_upcoming_games(self, games: Iterable[Game]) -> None:
        now = datetime.now(timezone.utc)
        payload = json.dumps([encode_game(game) for game in games], ensure_ascii=False)
        with self._session_factory() as db:
            self._write(db, UPCOMING_GAMES_KEY, payload, now)
            self._write(db, LAST_UPDATE_KEY, now.isoformat(), now)
            db.commit()

    def load_upcoming_games(self) -> list[Game]:
        raw = self._get_payload(UPCOMING_GAMES_KEY)
        return decode_games(raw) if raw else []

    def save_recent_games(self, games: Iterable[Game]) -> None:
        now = datetime.now(timezone.utc)
        payload = json.dumps([encode_game(game) for game in games], ensure_ascii=False)
        with self._session_factory() as db:
            self._write(db, RECENT_GAMES_KEY, payload, now)
            db.commit()

    def load_recent_games(self) -> list[Game]:
        raw = self._get_payload(RECENT_GAMES_KEY)
        return decode_games(raw) if raw else []

    @property
    def favorite_team_id(self) -> str | None:
        return self._get_payload(FAVORITE_TEAM_KEY) or None

    @favorite_team_id.setter
    def favorite_team_id(self, team_id: str | None) -> None:
        with self._session_factory() as db:
            self._write(db, FAVORITE_TEAM_KEY, team_id or "", datetime.now(timezone.utc))
            db.commit()

    @property
    def favorite_team(self) -> Team | None:
        return find_team_by_id(self.favorite_team_id)

    @property
    def last_update(self) -> datetime | None:
        raw = self._get_payload(LAST_UPDATE_KEY)
        if not raw:
            return None
        try:
            return datetime.fromisoformat(raw)
        except ValueError:
            return None
