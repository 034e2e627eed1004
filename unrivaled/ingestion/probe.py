"""Quick probe of one TheSportsDB slice (or the website scrape)."""

from __future__ import annotations

import argparse
import logging

from unrivaled.ingestion.cache import TTLCache
from unrivaled.ingestion.scraper import LiveScoreScraper, ScraperError
from unrivaled.ingestion.sources import SportsDBSource
from unrivaled.ingestion.sportsdb_client import SportsDBClient, SportsDBClientError
from unrivaled.settings import CredentialManager, load_config

SLICES = ("season", "upcoming", "results", "live", "teams", "standings", "scrape")


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Probe one Unrivaled data slice and print what came back.",
    )
    parser.add_argument(
        "--slice",
        choices=SLICES,
        default="upcoming",
        help="Slice to fetch (default: upcoming).",
    )
    parser.add_argument(
        "--api-key",
        type=str,
        default=None,
        help="TheSportsDB key to use instead of SPORTSDB_API_KEY.",
    )
    return parser.parse_args()


def _probe(source: SportsDBSource, scraper: LiveScoreScraper, slice_name: str) -> list[str]:
    if slice_name == "season":
        games = source.fetch_season_games()
    elif slice_name == "upcoming":
        games = source.fetch_upcoming_games()
    elif slice_name == "results":
        games = source.fetch_recent_results()
    elif slice_name == "live":
        games = source.fetch_live_games()
    elif slice_name == "teams":
        return [f"{team.id} {team.name}" for team in source.fetch_teams()]
    elif slice_name == "standings":
        return [
            f"{standing.rank:>2} {standing.team_name} {standing.wins}-{standing.losses}"
            for standing in source.fetch_standings()
        ]
    else:
        return [
            f"{game.status}: {game.home_team} {game.home_score} - {game.away_score} {game.away_team}"
            for game in scraper.fetch_live_games()
        ]
    return [
        f"{game.id} {game.date.isoformat()} {game.home_team.short_name} "
        f"{game.score_display} {game.away_team.short_name} [{game.status.value}]"
        for game in games
    ]


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(message)s")
    args = _parse_args()
    config = load_config()

    credentials = CredentialManager(args.api_key or config.initial_api_key)
    client = SportsDBClient(read_timeout=config.timeout_seconds, max_attempts=config.max_attempts)
    scraper = LiveScoreScraper(client, config.site_url)
    source = SportsDBSource(client, credentials, TTLCache(), config, scraper=scraper)

    if args.slice == "live" and not credentials.is_premium:
        logging.warning("Live feed requires a premium key; free tier returns nothing.")

    try:
        lines = _probe(source, scraper, args.slice)
    except (SportsDBClientError, ScraperError) as exc:
        logging.error("Probe failed: %s", exc)
        raise SystemExit(1)

    for line in lines:
        logging.info(line)
    logging.info("Fetched %s rows for slice=%s tier=%s", len(lines), args.slice, credentials.tier)


if __name__ == "__main__":
    main()
