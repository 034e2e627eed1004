"""Source adapters: one method per TheSportsDB slice.

Every adapter consults the cache first, decodes the envelope leniently,
validates records one by one and maps them through the normalizer.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any
from urllib.parse import urlencode

from pydantic import BaseModel, ValidationError

from unrivaled.games import Game, Standing, Team
from unrivaled.ingestion.cache import TTLCache
from unrivaled.ingestion.leagues import LEAGUE_NAME, SLICE_TTLS, get_slice_path
from unrivaled.ingestion.normalize import (
    format_progress,
    infer_status,
    normalize_event_time,
    parse_score,
)
from unrivaled.ingestion.schema import (
    APIEvent,
    APILiveScore,
    APIStanding,
    APITeam,
    EventsEnvelope,
    LivescoreEnvelope,
    TableEnvelope,
    TeamsEnvelope,
)
from unrivaled.ingestion.scraper import LiveScoreScraper, ScraperError, convert_to_games
from unrivaled.ingestion.sportsdb_client import SportsDBClient, SportsDBClientError
from unrivaled.settings import Config, CredentialManager
from unrivaled.teams import ALL_TEAMS, find_team_by_id, find_team_by_name

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _validate_records(records: list[Any], model: type[BaseModel], slice_name: str) -> list[Any]:
    valid = []
    for record in records:
        if not isinstance(record, dict):
            continue
        try:
            valid.append(model.model_validate(record))
        except ValidationError as exc:
            logger.warning(
                "Dropping malformed %s record id=%s: %s",
                slice_name,
                record.get("idEvent") or record.get("idTeam") or record.get("strTeam"),
                exc.errors()[0].get("msg") if exc.errors() else exc,
            )
    return valid


def _resolve_team(team_id: str | None, name: str, badge_url: str | None) -> Team:
    known = find_team_by_id(team_id) or find_team_by_name(name)
    return Team(
        id=team_id or (known.id if known else ""),
        name=name,
        badge_url=badge_url or (known.badge_url if known else None),
    )


def event_to_game(event: APIEvent, *, now: datetime | None = None) -> Game:
    home_score = parse_score(event.intHomeScore)
    away_score = parse_score(event.intAwayScore)
    event_time = normalize_event_time(
        event.dateEvent,
        event.strTime,
        event.strTimestamp,
        now=now,
    )
    if event_time.is_fallback:
        logger.warning(
            "Event id=%s has no usable date (dateEvent=%r strTimestamp=%r); time shown as TBD",
            event.idEvent,
            event.dateEvent,
            event.strTimestamp,
        )
    return Game(
        id=event.idEvent,
        home_team=_resolve_team(event.idHomeTeam, event.strHomeTeam, event.strHomeTeamBadge),
        away_team=_resolve_team(event.idAwayTeam, event.strAwayTeam, event.strAwayTeamBadge),
        home_score=home_score,
        away_score=away_score,
        date=event_time.instant,
        has_valid_time=event_time.has_valid_time,
        status=infer_status(event.strStatus, home_score, away_score),
        thumbnail_url=event.strThumb or None,
    )


def livescore_to_game(record: APILiveScore, *, now: datetime | None = None) -> Game:
    home_score = parse_score(record.intHomeScore)
    away_score = parse_score(record.intAwayScore)
    return Game(
        id=record.idEvent,
        home_team=_resolve_team(record.idHomeTeam, record.strHomeTeam, record.strHomeTeamBadge),
        away_team=_resolve_team(record.idAwayTeam, record.strAwayTeam, record.strAwayTeamBadge),
        home_score=home_score,
        away_score=away_score,
        date=now or _utcnow(),
        has_valid_time=False,
        status=infer_status(record.strStatus, home_score, away_score, assume_live=True),
        progress=format_progress(record.strStatus, record.strProgress),
    )


def team_record_to_team(record: APITeam) -> Team:
    return Team(
        id=record.idTeam,
        name=record.strTeam,
        badge_url=record.strTeamBadge or record.strBadge,
        logo_url=record.strTeamLogo or record.strLogo,
        description=record.strDescriptionEN,
    )


def standing_record_to_standing(record: APIStanding) -> Standing:
    values: dict[str, int] = {}
    defaulted: set[str] = set()
    for field_name, raw in (
        ("rank", record.intRank),
        ("played", record.intPlayed),
        ("wins", record.intWin),
        ("losses", record.intLoss),
        ("points", record.intPoints),
    ):
        parsed = parse_score(raw)
        if parsed is None:
            defaulted.add(field_name)
            parsed = 0
        values[field_name] = parsed

    return Standing(
        team_name=record.strTeam,
        team_id=record.idTeam,
        badge_url=record.strTeamBadge or record.strBadge,
        defaulted_fields=frozenset(defaulted),
        **values,
    )


class SportsDBSource:
    """Adapters for each TheSportsDB slice the aggregator needs."""

    def __init__(
        self,
        client: SportsDBClient,
        credentials: CredentialManager,
        cache: TTLCache,
        config: Config,
        scraper: LiveScoreScraper | None = None,
        *,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._client = client
        self._credentials = credentials
        self._cache = cache
        self._config = config
        self._scraper = scraper
        self._clock = clock

    def clear_cache(self) -> None:
        self._cache.clear()

    @property
    def credentials(self) -> CredentialManager:
        return self._credentials

    def _secret(self) -> str | None:
        # The free-tier sentinel is public; masking it would mangle unrelated digits.
        return self._credentials.api_key if self._credentials.is_premium else None

    def _v1_url(self, slice_name: str, params: dict[str, str]) -> str:
        path = get_slice_path(slice_name)
        if path is None:
            raise ValueError(f"Unsupported slice: {slice_name}")
        # The v1 API carries the key in the path; read it fresh for every request.
        base = f"{self._config.v1_base_url}/{self._credentials.api_key}/{path}"
        return f"{base}?{urlencode(params)}"

    def _fetch_events(self, slice_name: str, cache_key: str, params: dict[str, str]) -> list[Game]:
        cached = self._cache.get(cache_key)
        if cached is not None:
            return cached

        payload = self._client.get_json(self._v1_url(slice_name, params), secret=self._secret())
        envelope = EventsEnvelope.model_validate(payload or {})
        now = self._clock()
        games = [
            event_to_game(event, now=now)
            for event in _validate_records(envelope.events or [], APIEvent, slice_name)
        ]
        logger.info("Fetched %d %s games", len(games), slice_name)

        self._cache.set(cache_key, games, SLICE_TTLS[slice_name])
        return games

    def fetch_season_games(self) -> list[Game]:
        return self._fetch_events(
            "season",
            f"season_{self._config.season}",
            {"id": self._config.league_id, "s": self._config.season},
        )

    def fetch_upcoming_games(self) -> list[Game]:
        return self._fetch_events("upcoming", "upcoming", {"id": self._config.league_id})

    def fetch_recent_results(self) -> list[Game]:
        return self._fetch_events("results", "results", {"id": self._config.league_id})

    def fetch_teams(self) -> list[Team]:
        cached = self._cache.get("teams")
        if cached is not None:
            return cached

        try:
            payload = self._client.get_json(
                self._v1_url("teams", {"l": LEAGUE_NAME}), secret=self._secret()
            )
        except SportsDBClientError:
            logger.exception("Roster fetch failed; using built-in team table.")
            return list(ALL_TEAMS)

        envelope = TeamsEnvelope.model_validate(payload or {})
        if envelope.teams is None:
            teams = list(ALL_TEAMS)
        else:
            teams = [
                team_record_to_team(record)
                for record in _validate_records(envelope.teams, APITeam, "teams")
            ]
        self._cache.set("teams", teams, SLICE_TTLS["teams"])
        return teams

    def fetch_standings(self) -> list[Standing]:
        payload = self._client.get_json(
            self._v1_url("standings", {"l": self._config.league_id, "s": self._config.season}),
            secret=self._secret(),
        )
        envelope = TableEnvelope.model_validate(payload or {})
        return [
            standing_record_to_standing(record)
            for record in _validate_records(envelope.table or [], APIStanding, "standings")
        ]

    def fetch_live_games(self) -> list[Game]:
        """Live feed (v2, premium only). Free tier returns [] without a request."""
        if not self._credentials.is_premium:
            return []

        cached = self._cache.get("livescores")
        if cached is not None:
            return cached

        url = f"{self._config.v2_base_url}/livescore/{self._config.league_id}"
        api_key = self._credentials.api_key
        payload = self._client.get_json(url, headers={"X-API-KEY": api_key}, secret=api_key)
        envelope = LivescoreEnvelope.model_validate(payload or {})
        now = self._clock()
        games = [
            livescore_to_game(record, now=now)
            for record in _validate_records(envelope.records, APILiveScore, "live")
        ]
        logger.info("Fetched %d live games", len(games))

        self._cache.set("livescores", games, SLICE_TTLS["live"])
        return games

    def fetch_live_games_with_fallback(self) -> list[Game]:
        """Live feed first; scrape the league website when it has nothing."""
        premium = self._credentials.is_premium
        if not premium and not self._config.scrape_free_tier:
            return []

        api_games = self.fetch_live_games()
        if api_games:
            return api_games
        if self._scraper is None:
            return []

        try:
            scraped = self._scraper.fetch_live_games()
        except ScraperError:
            logger.exception("Scraper fallback failed.")
            return []
        live_only = [game for game in scraped if game.is_live]
        games = convert_to_games(live_only, now=self._clock())
        logger.info("Scraper fallback found %d live games", len(games))
        return games
