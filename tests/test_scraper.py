from __future__ import annotations

import unittest
from datetime import datetime, timezone
from unittest.mock import MagicMock

from unrivaled.games import GameStatus
from unrivaled.ingestion.scraper import (
    LiveScoreScraper,
    ScrapedGame,
    ScraperError,
    convert_to_games,
    parse_game_text,
    parse_games,
    scraped_game_id,
)
from unrivaled.ingestion.sportsdb_client import SportsDBClientError

BASE_URL = "https://www.unrivaled.basketball"

HOME_PAGE = """
<html><body>
  <nav><a href="/schedule">Schedule</a></nav>
  <a href="/game/abc123"><span>Live</span> <span>TNT/truTV</span>
     <div>Lunar Owls</div><div>17</div><div>Laces</div><div>28</div></a>
  <a href="/game/abc123"><img src="thumb.png"/> Lunar Owls 17 Laces 28 Live</a>
  <a href="/game/def456">Final Hive 70 Breeze 68</a>
  <a href="https://www.unrivaled.basketball/game/ghi789">7:30 PM ET Mist Phantom</a>
  <a href="/game/zzz">Rose Vinyl Mist all-star</a>
  <a href="/news/hive-wins">Hive 70 Breeze 68</a>
</body></html>
"""


class ParseGameTextTests(unittest.TestCase):
    def test_live_card_yields_teams_in_order_of_appearance(self) -> None:
        game = parse_game_text("Live TNT/truTV Lunar Owls 17 Laces 28", game_url="u")

        self.assertIsNotNone(game)
        self.assertEqual("Lunar Owls", game.home_team)
        self.assertEqual(17, game.home_score)
        self.assertEqual("Laces", game.away_team)
        self.assertEqual(28, game.away_score)
        self.assertTrue(game.is_live)
        self.assertEqual("Live", game.status)

    def test_final_card(self) -> None:
        game = parse_game_text("Final Hive 70 Breeze 68")

        self.assertFalse(game.is_live)
        self.assertEqual("Final", game.status)
        self.assertEqual(("Hive", 70, "Breeze", 68), (game.home_team, game.home_score, game.away_team, game.away_score))

    def test_missing_scores_default_to_zero(self) -> None:
        game = parse_game_text("7:30 PM ET Mist Phantom")

        self.assertEqual((0, 0), (game.home_score, game.away_score))
        self.assertEqual("Scheduled", game.status)

    def test_three_or_more_teams_is_ambiguous(self) -> None:
        self.assertIsNone(parse_game_text("Rose 10 Vinyl 12 Mist 14"))

    def test_fewer_than_two_teams_is_discarded(self) -> None:
        self.assertIsNone(parse_game_text("Live Hive 10"))
        self.assertIsNone(parse_game_text("Tickets on sale now"))

    def test_matching_is_case_insensitive(self) -> None:
        game = parse_game_text("LIVE ROSE 5 vinyl 9")

        self.assertEqual(("Rose", 5, "Vinyl", 9), (game.home_team, game.home_score, game.away_team, game.away_score))


class ParseGamesTests(unittest.TestCase):
    def test_only_game_links_deduplicated_by_url(self) -> None:
        games = parse_games(HOME_PAGE, BASE_URL)

        urls = [game.game_url for game in games]
        self.assertEqual(
            [
                f"{BASE_URL}/game/abc123",
                f"{BASE_URL}/game/def456",
                f"{BASE_URL}/game/ghi789",
            ],
            urls,
        )
        self.assertTrue(games[0].is_live)
        self.assertEqual(("Lunar Owls", 17, "Laces", 28), (games[0].home_team, games[0].home_score, games[0].away_team, games[0].away_score))


class ConvertToGamesTests(unittest.TestCase):
    def test_converts_and_resolves_teams(self) -> None:
        now = datetime(2026, 1, 20, 1, 0, tzinfo=timezone.utc)
        scraped = [
            ScrapedGame("Lunar Owls", "Laces", 17, 28, True, "Live", "u1"),
            ScrapedGame("Hive", "Breeze", 70, 68, False, "Final", "u2"),
        ]

        games = convert_to_games(scraped, now=now)

        self.assertEqual(2, len(games))
        live, final = games
        self.assertEqual(GameStatus.LIVE, live.status)
        self.assertEqual("Live", live.progress)
        self.assertEqual("150651", live.home_team.id)
        self.assertEqual("151477", live.away_team.id)
        self.assertEqual("scraped_150651_151477_20260120", live.id)
        self.assertEqual(now, live.date)
        self.assertFalse(live.has_valid_time)
        self.assertEqual(GameStatus.COMPLETED, final.status)
        self.assertIsNone(final.progress)

    def test_unknown_team_drops_game(self) -> None:
        scraped = [ScrapedGame("Hive", "Lakers", 1, 2, True, "Live", None)]

        self.assertEqual([], convert_to_games(scraped))

    def test_scraped_id_is_stable_within_a_day(self) -> None:
        morning = datetime(2026, 1, 20, 1, 0, tzinfo=timezone.utc)
        evening = datetime(2026, 1, 20, 23, 0, tzinfo=timezone.utc)

        self.assertEqual(scraped_game_id("a", "b", morning), scraped_game_id("a", "b", evening))


class LiveScoreScraperTests(unittest.TestCase):
    def test_fetch_parses_home_page(self) -> None:
        client = MagicMock()
        client.get_text.return_value = HOME_PAGE

        games = LiveScoreScraper(client, BASE_URL + "/").fetch_live_games()

        client.get_text.assert_called_once_with(BASE_URL)
        self.assertEqual(3, len(games))

    def test_transport_failure_raises_scraper_error(self) -> None:
        client = MagicMock()
        client.get_text.side_effect = SportsDBClientError("boom")

        with self.assertRaises(ScraperError):
            LiveScoreScraper(client, BASE_URL).fetch_live_games()

    def test_empty_page_raises_scraper_error(self) -> None:
        client = MagicMock()
        client.get_text.return_value = "   "

        with self.assertRaises(ScraperError):
            LiveScoreScraper(client, BASE_URL).fetch_live_games()


if __name__ == "__main__":
    unittest.main()
