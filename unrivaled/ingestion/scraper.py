"""Live-score fallback scraped from the league website.

Game cards on the home page are links to ``/game/<id>`` whose text reads like
"Live TNT/truTV Lunar Owls 17 Laces 28" or "Final Hive 70 Breeze 68".
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable, Optional
from urllib.parse import urljoin

from bs4 import BeautifulSoup

from unrivaled.games import Game, GameStatus
from unrivaled.ingestion.sportsdb_client import SportsDBClient, SportsDBClientError
from unrivaled.teams import SHORT_NAMES, find_team_by_name

logger = logging.getLogger(__name__)

GAME_LINK_RE = re.compile(r"^(?:https?://[^/]+)?/game/")
_LEADING_NUMBER_RE = re.compile(r"^\s*(\d+)")
_TEAM_PATTERNS: tuple[tuple[str, re.Pattern[str]], ...] = tuple(
    (name, re.compile(rf"\b{re.escape(name)}\b", re.IGNORECASE)) for name in SHORT_NAMES
)


class ScraperError(RuntimeError):
    pass


@dataclass(frozen=True)
class ScrapedGame:
    home_team: str
    away_team: str
    home_score: int
    away_score: int
    is_live: bool
    status: str  # "Live", "Final" or "Scheduled"
    game_url: Optional[str] = None


def _extract_first_number(text: str) -> int | None:
    match = _LEADING_NUMBER_RE.match(text)
    if not match:
        return None
    return int(match.group(1))


def parse_game_text(text: str, game_url: str | None = None) -> ScrapedGame | None:
    """Parse one game card's text; None unless exactly two teams are named."""
    lowered = text.lower()
    is_live = "live" in lowered
    is_final = "final" in lowered

    found: list[tuple[int, str, int]] = []
    for name, pattern in _TEAM_PATTERNS:
        match = pattern.search(text)
        if match is None:
            continue
        score = _extract_first_number(text[match.end():])
        found.append((match.start(), name, score if score is not None else 0))

    if len(found) != 2:
        return None
    found.sort()
    (_, home_name, home_score), (_, away_name, away_score) = found

    if is_live:
        status = "Live"
    elif is_final:
        status = "Final"
    else:
        status = "Scheduled"

    return ScrapedGame(
        home_team=home_name,
        away_team=away_name,
        home_score=home_score,
        away_score=away_score,
        is_live=is_live,
        status=status,
        game_url=game_url,
    )


def parse_games(html: str, base_url: str) -> list[ScrapedGame]:
    soup = BeautifulSoup(html, "html.parser")
    games: list[ScrapedGame] = []
    seen_urls: set[str] = set()

    for link in soup.find_all("a", href=GAME_LINK_RE):
        game_url = urljoin(base_url + "/", link["href"])
        if game_url in seen_urls:
            continue
        text = link.get_text(" ", strip=True)
        game = parse_game_text(text, game_url=game_url)
        if game is None:
            logger.debug("Skipping unparseable game card url=%s text=%r", game_url, text)
            continue
        seen_urls.add(game_url)
        games.append(game)

    return games


def scraped_game_id(home_id: str, away_id: str, captured_at: datetime) -> str:
    """Identity for a scraped game: team pair plus the UTC capture date."""
    day = captured_at.astimezone(timezone.utc).strftime("%Y%m%d")
    return f"scraped_{home_id}_{away_id}_{day}"


def convert_to_games(
    scraped: Iterable[ScrapedGame],
    *,
    now: datetime | None = None,
) -> list[Game]:
    captured_at = now or datetime.now(timezone.utc)
    games: list[Game] = []
    for item in scraped:
        home_team = find_team_by_name(item.home_team)
        away_team = find_team_by_name(item.away_team)
        if home_team is None or away_team is None:
            logger.warning(
                "Dropping scraped game with unknown team home=%s away=%s",
                item.home_team,
                item.away_team,
            )
            continue

        if item.is_live:
            status = GameStatus.LIVE
        elif item.status == "Final":
            status = GameStatus.COMPLETED
        else:
            status = GameStatus.SCHEDULED

        games.append(
            Game(
                id=scraped_game_id(home_team.id, away_team.id, captured_at),
                home_team=home_team,
                away_team=away_team,
                home_score=item.home_score,
                away_score=item.away_score,
                date=captured_at,
                has_valid_time=False,
                status=status,
                progress="Live" if item.is_live else None,
            )
        )
    return games


class LiveScoreScraper:
    def __init__(self, client: SportsDBClient, base_url: str) -> None:
        self._client = client
        self._base_url = base_url.rstrip("/")

    @property
    def base_url(self) -> str:
        return self._base_url

    def fetch_live_games(self) -> list[ScrapedGame]:
        try:
            html = self._client.get_text(self._base_url)
        except SportsDBClientError as exc:
            raise ScraperError(f"Failed to fetch {self._base_url}: {exc}") from exc
        if not html or not html.strip():
            raise ScraperError(f"Empty page from {self._base_url}")
        try:
            return parse_games(html, self._base_url)
        except (TypeError, ValueError) as exc:
            raise ScraperError(f"Failed to parse {self._base_url}: {exc}") from exc
