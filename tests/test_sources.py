from __future__ import annotations

import unittest
from datetime import datetime, timezone
from unittest.mock import MagicMock

from unrivaled.games import GameStatus
from unrivaled.ingestion.cache import TTLCache
from unrivaled.ingestion.scraper import ScrapedGame, ScraperError
from unrivaled.ingestion.sources import SportsDBSource
from unrivaled.ingestion.sportsdb_client import SportsDBClientError
from unrivaled.settings import Config, CredentialManager
from unrivaled.teams import ALL_TEAMS

NOW = datetime(2026, 1, 20, 1, 0, tzinfo=timezone.utc)


class _FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


def _event(event_id: str, **overrides) -> dict:
    event = {
        "idEvent": event_id,
        "strEvent": "Hive BC vs Breeze BC",
        "strHomeTeam": "Hive BC",
        "strAwayTeam": "Breeze BC",
        "idHomeTeam": "154049",
        "idAwayTeam": "154048",
        "intHomeScore": None,
        "intAwayScore": None,
        "dateEvent": "2026-01-24",
        "strTime": "00:30:00",
        "strTimestamp": "2026-01-24T00:30:00",
        "strStatus": "NS",
    }
    event.update(overrides)
    return event


class SourceTestCase(unittest.TestCase):
    api_key = "premium-key"

    def setUp(self) -> None:
        self.client = MagicMock()
        self.clock = _FakeClock()
        self.cache = TTLCache(clock=self.clock)
        self.credentials = CredentialManager(self.api_key)
        self.scraper = MagicMock()
        self.config = Config()
        self.source = SportsDBSource(
            self.client,
            self.credentials,
            self.cache,
            self.config,
            scraper=self.scraper,
            clock=lambda: NOW,
        )


class EventSliceTests(SourceTestCase):
    def test_season_games_are_mapped(self) -> None:
        self.client.get_json.return_value = {
            "events": [
                _event("1"),
                _event("2", intHomeScore="70", intAwayScore="68", strStatus="FT"),
            ]
        }

        games = self.source.fetch_season_games()

        url = self.client.get_json.call_args.args[0]
        self.assertIn("/premium-key/eventsseason.php", url)
        self.assertIn("id=5622", url)
        self.assertIn("s=2026", url)
        scheduled, final = games
        self.assertEqual(GameStatus.SCHEDULED, scheduled.status)
        self.assertEqual(datetime(2026, 1, 24, 0, 30, tzinfo=timezone.utc), scheduled.date)
        self.assertTrue(scheduled.has_valid_time)
        self.assertEqual("154049", scheduled.home_team.id)
        self.assertIsNotNone(scheduled.home_team.badge_url)
        self.assertEqual(GameStatus.COMPLETED, final.status)
        self.assertEqual(70, final.home_score)

    def test_absent_event_list_is_empty(self) -> None:
        for payload in ({}, {"events": None}, None):
            with self.subTest(payload=payload):
                self.cache.clear()
                self.client.get_json.return_value = payload
                self.assertEqual([], self.source.fetch_upcoming_games())

    def test_malformed_record_is_dropped(self) -> None:
        self.client.get_json.return_value = {
            "events": [
                _event("1"),
                {"idEvent": "2", "strHomeTeam": "Hive BC"},
                "garbage",
                _event("3", intHomeScore="abc", intAwayScore="60", strStatus=None),
            ]
        }

        games = self.source.fetch_recent_results()

        self.assertEqual(["1", "3"], [game.id for game in games])
        self.assertIsNone(games[1].home_score)
        self.assertEqual(GameStatus.SCHEDULED, games[1].status)

    def test_unparseable_date_uses_now_without_valid_time(self) -> None:
        self.client.get_json.return_value = {
            "events": [_event("1", dateEvent="", strTime=None, strTimestamp=None)]
        }

        game = self.source.fetch_upcoming_games()[0]

        self.assertEqual(NOW, game.date)
        self.assertFalse(game.has_valid_time)
        self.assertEqual("TBD", game.time_display())

    def test_cache_hit_within_ttl_then_refetch_after_expiry(self) -> None:
        self.client.get_json.return_value = {"events": [_event("1")]}

        first = self.source.fetch_upcoming_games()
        self.clock.now += 299
        second = self.source.fetch_upcoming_games()

        self.assertIs(first, second)
        self.assertEqual(1, self.client.get_json.call_count)

        self.clock.now += 1
        self.source.fetch_upcoming_games()
        self.assertEqual(2, self.client.get_json.call_count)

    def test_clear_cache_forces_refetch(self) -> None:
        self.client.get_json.return_value = {"events": []}
        self.source.fetch_season_games()

        self.source.clear_cache()
        self.source.fetch_season_games()

        self.assertEqual(2, self.client.get_json.call_count)

    def test_credential_is_read_fresh_for_each_request(self) -> None:
        self.client.get_json.return_value = {"events": []}
        self.source.fetch_season_games()
        self.credentials.set_api_key("other-key")
        self.source.clear_cache()

        self.source.fetch_season_games()

        self.assertIn("/other-key/", self.client.get_json.call_args.args[0])

    def test_premium_key_passed_for_masking(self) -> None:
        self.client.get_json.return_value = {"events": []}

        self.source.fetch_season_games()

        self.assertEqual("premium-key", self.client.get_json.call_args.kwargs["secret"])

    def test_transport_error_propagates(self) -> None:
        self.client.get_json.side_effect = SportsDBClientError("offline")

        with self.assertRaises(SportsDBClientError):
            self.source.fetch_season_games()


class TeamsAndStandingsTests(SourceTestCase):
    def test_teams_are_mapped_and_cached(self) -> None:
        self.client.get_json.return_value = {
            "teams": [
                {
                    "idTeam": "154049",
                    "strTeam": "Hive BC",
                    "strBadge": "hive.png",
                    "strLogo": "hive-logo.png",
                    "strDescriptionEN": "Hive.",
                }
            ]
        }

        teams = self.source.fetch_teams()
        self.source.fetch_teams()

        self.assertEqual(1, self.client.get_json.call_count)
        self.assertEqual("hive.png", teams[0].badge_url)
        self.assertEqual("hive-logo.png", teams[0].logo_url)
        self.assertEqual("Hive.", teams[0].description)

    def test_missing_roster_falls_back_to_builtin_table(self) -> None:
        self.client.get_json.return_value = {"teams": None}

        self.assertEqual(list(ALL_TEAMS), self.source.fetch_teams())

    def test_roster_transport_error_falls_back_to_builtin_table(self) -> None:
        self.client.get_json.side_effect = SportsDBClientError("offline")

        self.assertEqual(list(ALL_TEAMS), self.source.fetch_teams())

    def test_standings_default_unparseable_fields_to_zero(self) -> None:
        self.client.get_json.return_value = {
            "table": [
                {
                    "strTeam": "Laces BC",
                    "idTeam": "151477",
                    "intRank": "1",
                    "intPlayed": "14",
                    "intWin": "11",
                    "intLoss": "3",
                    "intPoints": "",
                    "strBadge": "laces.png",
                },
                {"strTeam": "Rose BC", "intPlayed": "0"},
            ]
        }

        laces, rose = self.source.fetch_standings()

        self.assertEqual((1, 14, 11, 3, 0), (laces.rank, laces.played, laces.wins, laces.losses, laces.points))
        self.assertTrue(laces.is_defaulted("points"))
        self.assertFalse(laces.is_defaulted("wins"))
        self.assertEqual("laces.png", laces.badge_url)
        self.assertEqual(0, rose.played)
        self.assertFalse(rose.is_defaulted("played"))
        self.assertTrue(rose.is_defaulted("wins"))

    def test_standings_are_never_cached(self) -> None:
        self.client.get_json.return_value = {"table": None}

        self.assertEqual([], self.source.fetch_standings())
        self.source.fetch_standings()

        self.assertEqual(2, self.client.get_json.call_count)


class LiveFeedTests(SourceTestCase):
    live_payload = {
        "livescore": [
            {
                "idEvent": "99",
                "strHomeTeam": "Laces BC",
                "strAwayTeam": "Lunar Owls BC",
                "idHomeTeam": "151477",
                "idAwayTeam": "150651",
                "intHomeScore": "28",
                "intAwayScore": "17",
                "strStatus": "Q2",
                "strProgress": "5:32",
            }
        ]
    }

    def test_live_feed_uses_header_auth(self) -> None:
        self.client.get_json.return_value = self.live_payload

        games = self.source.fetch_live_games()

        url = self.client.get_json.call_args.args[0]
        headers = self.client.get_json.call_args.kwargs["headers"]
        self.assertEqual("https://www.thesportsdb.com/api/v2/json/livescore/5622", url)
        self.assertEqual({"X-API-KEY": "premium-key"}, headers)
        self.assertEqual(1, len(games))
        self.assertEqual(GameStatus.LIVE, games[0].status)
        self.assertEqual("Q2 5:32", games[0].progress)
        self.assertEqual("28 - 17", games[0].score_display)

    def test_live_feed_cached_for_thirty_seconds(self) -> None:
        self.client.get_json.return_value = self.live_payload

        self.source.fetch_live_games()
        self.clock.now += 29
        self.source.fetch_live_games()
        self.clock.now += 1
        self.source.fetch_live_games()

        self.assertEqual(2, self.client.get_json.call_count)

    def test_fallback_not_used_when_api_has_games(self) -> None:
        self.client.get_json.return_value = self.live_payload

        games = self.source.fetch_live_games_with_fallback()

        self.assertEqual(["99"], [game.id for game in games])
        self.scraper.fetch_live_games.assert_not_called()

    def test_empty_api_falls_back_to_live_only_scraped_games(self) -> None:
        self.client.get_json.return_value = {"livescore": None}
        self.scraper.fetch_live_games.return_value = [
            ScrapedGame("Lunar Owls", "Laces", 17, 28, True, "Live", "u1"),
            ScrapedGame("Hive", "Breeze", 70, 68, False, "Final", "u2"),
        ]

        games = self.source.fetch_live_games_with_fallback()

        self.assertEqual(1, len(games))
        self.assertEqual(GameStatus.LIVE, games[0].status)
        self.assertEqual("scraped_150651_151477_20260120", games[0].id)

    def test_scraper_failure_is_treated_as_no_live_data(self) -> None:
        self.client.get_json.return_value = {}
        self.scraper.fetch_live_games.side_effect = ScraperError("unreachable")

        self.assertEqual([], self.source.fetch_live_games_with_fallback())


class FreeTierTests(SourceTestCase):
    api_key = "123"

    def test_live_feed_skipped_without_network_call(self) -> None:
        self.assertFalse(self.credentials.is_premium)

        self.assertEqual([], self.source.fetch_live_games())
        self.assertEqual([], self.source.fetch_live_games_with_fallback())

        self.client.get_json.assert_not_called()
        self.scraper.fetch_live_games.assert_not_called()

    def test_free_key_is_not_masked(self) -> None:
        self.client.get_json.return_value = {"events": []}

        self.source.fetch_upcoming_games()

        self.assertIsNone(self.client.get_json.call_args.kwargs["secret"])

    def test_scrape_free_tier_option_uses_scraper_only(self) -> None:
        source = SportsDBSource(
            self.client,
            self.credentials,
            self.cache,
            Config(scrape_free_tier=True),
            scraper=self.scraper,
            clock=lambda: NOW,
        )
        self.scraper.fetch_live_games.return_value = [
            ScrapedGame("Mist", "Rose", 3, 5, True, "Live", "u1"),
        ]

        games = source.fetch_live_games_with_fallback()

        self.assertEqual(1, len(games))
        self.client.get_json.assert_not_called()


if __name__ == "__main__":
    unittest.main()
