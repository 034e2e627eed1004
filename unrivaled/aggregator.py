"""Merges every source into one published game collection and keeps it live."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import datetime, time, timezone
from typing import Optional
from zoneinfo import ZoneInfo

from unrivaled.games import Game, Team
from unrivaled.ingestion.sources import SportsDBSource
from unrivaled.teams import find_team_by_id
from unrivaled.widget_store import WidgetSnapshotStore

logger = logging.getLogger(__name__)

DEFAULT_LIVE_POLL_SECONDS = 30.0
RECENT_SNAPSHOT_SIZE = 5


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class LoadResult:
    ok: bool = False
    skipped: bool = False
    total: int = 0
    live: int = 0
    error: Optional[str] = None


def merge_games(*sources: Iterable[Game]) -> dict[str, Game]:
    """Merge by game id; later sources overwrite earlier ones."""
    merged: dict[str, Game] = {}
    for games in sources:
        for game in games:
            merged[game.id] = game
    return merged


class GamesAggregator:
    """Owner of the published game collection.

    Fetches run concurrently in worker threads; every write to the published
    state happens on the event loop under ``_state_lock``.
    """

    def __init__(
        self,
        source: SportsDBSource,
        snapshot_store: WidgetSnapshotStore | None = None,
        *,
        live_poll_seconds: float = DEFAULT_LIVE_POLL_SECONDS,
        display_tz: ZoneInfo | timezone = ZoneInfo("America/New_York"),
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._source = source
        self._snapshot_store = snapshot_store
        self._live_poll_seconds = live_poll_seconds
        self._display_tz = display_tz
        self._clock = clock

        self._games: dict[str, Game] = {}
        self._live_games: list[Game] = []
        self._error: str | None = None
        self._is_loading = False
        self._favorite_team_id: str | None = (
            snapshot_store.favorite_team_id if snapshot_store else None
        )

        self._state_lock = asyncio.Lock()
        self._live_lock = asyncio.Lock()
        self._live_task: asyncio.Task | None = None
        self._live_stop: asyncio.Event | None = None
        self._reload_task: asyncio.Task | None = None

    # Read accessors

    @property
    def games(self) -> list[Game]:
        return list(self._games.values())

    @property
    def live_games(self) -> list[Game]:
        return list(self._live_games)

    @property
    def error(self) -> str | None:
        return self._error

    @property
    def is_loading(self) -> bool:
        return self._is_loading

    @property
    def is_live_polling(self) -> bool:
        return self._live_task is not None and not self._live_task.done()

    @property
    def favorite_team_id(self) -> str | None:
        return self._favorite_team_id

    @property
    def favorite_team(self) -> Team | None:
        return find_team_by_id(self._favorite_team_id)

    # Derived views

    def _start_of_today(self) -> datetime:
        local_today = self._clock().astimezone(self._display_tz).date()
        start_local = datetime.combine(local_today, time.min, tzinfo=self._display_tz)
        return start_local.astimezone(timezone.utc)

    @property
    def upcoming_games(self) -> list[Game]:
        start_of_today = self._start_of_today()
        upcoming = [
            game
            for game in self._games.values()
            if not game.is_completed and not game.is_live and game.date >= start_of_today
        ]
        return sorted(upcoming, key=lambda game: game.date)

    @property
    def completed_games(self) -> list[Game]:
        completed = [game for game in self._games.values() if game.is_completed]
        return sorted(completed, key=lambda game: game.date, reverse=True)

    @property
    def favorite_team_upcoming(self) -> list[Game]:
        if not self._favorite_team_id:
            return self.upcoming_games
        return [game for game in self.upcoming_games if game.involves(self._favorite_team_id)]

    @property
    def favorite_team_results(self) -> list[Game]:
        if not self._favorite_team_id:
            return self.completed_games
        return [game for game in self.completed_games if game.involves(self._favorite_team_id)]

    @property
    def next_game(self) -> Game | None:
        upcoming = self.favorite_team_upcoming
        return upcoming[0] if upcoming else None

    @property
    def next_favorite_game(self) -> Game | None:
        if not self._favorite_team_id:
            return None
        upcoming = self.favorite_team_upcoming
        return upcoming[0] if upcoming else None

    @property
    def last_result(self) -> Game | None:
        completed = self.completed_games
        return completed[0] if completed else None

    # Commands

    async def load(self, *, start_live: bool = True) -> LoadResult:
        if self._is_loading:
            logger.info("Load already in progress; skipping.")
            return LoadResult(skipped=True)

        self._is_loading = True
        self._error = None
        try:
            try:
                season, upcoming, recent, live = await asyncio.gather(
                    asyncio.to_thread(self._source.fetch_season_games),
                    asyncio.to_thread(self._source.fetch_upcoming_games),
                    asyncio.to_thread(self._source.fetch_recent_results),
                    asyncio.to_thread(self._source.fetch_live_games_with_fallback),
                )
            except Exception as exc:
                exc_message = str(exc).strip() or type(exc).__name__
                self._error = f"Failed to load games: {exc_message}"
                logger.exception(
                    "Load failed; keeping %d previously published games.",
                    len(self._games),
                )
                return LoadResult(error=self._error)

            merged = merge_games(season, upcoming, recent, live)
            async with self._state_lock:
                self._games = merged
                self._live_games = list(live)
            logger.info(
                "Loaded games: season=%d upcoming=%d results=%d live=%d merged=%d",
                len(season),
                len(upcoming),
                len(recent),
                len(live),
                len(merged),
            )

            await self._save_snapshot()
        finally:
            self._is_loading = False

        if live and start_live:
            await self.start_live_updates()
        return LoadResult(ok=True, total=len(merged), live=len(live))

    async def refresh(self) -> LoadResult:
        self._source.clear_cache()
        return await self.load()

    def set_favorite_team(self, team_id: str | None) -> None:
        self._favorite_team_id = team_id or None
        if self._snapshot_store is not None:
            self._snapshot_store.favorite_team_id = self._favorite_team_id
        logger.info("Favorite team set to %s", self._favorite_team_id or "none")

    async def _save_snapshot(self) -> None:
        if self._snapshot_store is None:
            return
        upcoming = self.upcoming_games
        recent = self.completed_games[:RECENT_SNAPSHOT_SIZE]
        try:
            await asyncio.to_thread(self._snapshot_store.save_upcoming_games, upcoming)
            await asyncio.to_thread(self._snapshot_store.save_recent_games, recent)
        except Exception:
            logger.exception("Failed to save widget snapshot.")

    # Live polling

    async def start_live_updates(self) -> None:
        async with self._live_lock:
            await self._cancel_live_task()
            stop_event = asyncio.Event()
            self._live_stop = stop_event
            self._live_task = asyncio.create_task(self._live_loop(stop_event))
            logger.info("Live updates started (interval=%ss)", self._live_poll_seconds)

    async def stop_live_updates(self) -> None:
        async with self._live_lock:
            await self._cancel_live_task()

    async def _cancel_live_task(self) -> None:
        task, stop_event = self._live_task, self._live_stop
        self._live_task = None
        self._live_stop = None
        if stop_event is not None:
            stop_event.set()
        if task is not None and not task.done():
            await task

    async def _live_loop(self, stop_event: asyncio.Event) -> None:
        while not stop_event.is_set():
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=self._live_poll_seconds)
            except asyncio.TimeoutError:
                pass
            if stop_event.is_set():
                break

            try:
                live_games = await asyncio.to_thread(self._source.fetch_live_games)
            except Exception:
                logger.exception("Live poll failed; retrying in %ss.", self._live_poll_seconds)
                continue

            await self._apply_live_patch(live_games)
            if not live_games:
                logger.info("No live games left; reloading for final results.")
                self._reload_task = asyncio.create_task(self._reload_after_live())
                break
        logger.info("Live updates stopped.")

    async def _reload_after_live(self) -> None:
        # Games patched by the loop are still marked live; a full load picks up their final rows.
        self._source.clear_cache()
        await self.load(start_live=False)

    async def _apply_live_patch(self, live_games: list[Game]) -> None:
        async with self._state_lock:
            patched = 0
            for game in live_games:
                if game.id in self._games:
                    self._games[game.id] = game
                    patched += 1
            self._live_games = list(live_games)
        logger.debug("Live patch: live=%d patched=%d", len(live_games), patched)
