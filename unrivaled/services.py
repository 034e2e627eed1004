"""Explicit construction of the client's long-lived services."""

from __future__ import annotations

from dataclasses import dataclass
from zoneinfo import ZoneInfo

from sqlalchemy.orm import sessionmaker

from unrivaled.aggregator import GamesAggregator
from unrivaled.db import SessionLocal, init_db
from unrivaled.ingestion.cache import TTLCache
from unrivaled.ingestion.scraper import LiveScoreScraper
from unrivaled.ingestion.sources import SportsDBSource
from unrivaled.ingestion.sportsdb_client import SportsDBClient
from unrivaled.settings import Config, CredentialManager, load_config
from unrivaled.widget_store import WidgetSnapshotStore


@dataclass
class Services:
    config: Config
    credentials: CredentialManager
    source: SportsDBSource
    snapshot_store: WidgetSnapshotStore
    aggregator: GamesAggregator


def build_services(
    config: Config | None = None,
    session_factory: sessionmaker | None = None,
) -> Services:
    config = config or load_config()
    if session_factory is None:
        init_db()
        session_factory = SessionLocal

    credentials = CredentialManager(config.initial_api_key, session_factory=session_factory)
    client = SportsDBClient(read_timeout=config.timeout_seconds, max_attempts=config.max_attempts)
    source = SportsDBSource(
        client,
        credentials,
        TTLCache(),
        config,
        scraper=LiveScoreScraper(client, config.site_url),
    )
    snapshot_store = WidgetSnapshotStore(session_factory)
    aggregator = GamesAggregator(
        source,
        snapshot_store,
        live_poll_seconds=config.live_poll_seconds,
        display_tz=ZoneInfo(config.display_timezone),
    )
    return Services(
        config=config,
        credentials=credentials,
        source=source,
        snapshot_store=snapshot_store,
        aggregator=aggregator,
    )
