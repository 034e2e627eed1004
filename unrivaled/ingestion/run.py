"""CLI entrypoint: one full load, writing the widget snapshot."""

from __future__ import annotations

import argparse
import asyncio
import logging

from unrivaled.services import build_services


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Load every Unrivaled slice once and refresh the widget snapshot.",
    )
    parser.add_argument(
        "--favorite",
        type=str,
        default=None,
        help="Team id to store as the widget's favorite team.",
    )
    return parser.parse_args()


async def _run(args: argparse.Namespace) -> int:
    services = build_services()
    aggregator = services.aggregator
    if args.favorite is not None:
        aggregator.set_favorite_team(args.favorite)

    result = await aggregator.load()
    await aggregator.stop_live_updates()

    if not result.ok:
        logging.error("Load failed: %s", result.error)
        return 1

    next_game = aggregator.next_game
    last_result = aggregator.last_result
    logging.info(
        "Done: total=%s live=%s upcoming=%s completed=%s",
        result.total,
        result.live,
        len(aggregator.upcoming_games),
        len(aggregator.completed_games),
    )
    if next_game:
        logging.info(
            "Next game: %s vs %s on %s",
            next_game.home_team.short_name,
            next_game.away_team.short_name,
            next_game.date.isoformat(),
        )
    if last_result:
        logging.info(
            "Last result: %s %s %s",
            last_result.home_team.short_name,
            last_result.score_display,
            last_result.away_team.short_name,
        )
    return 0


def main() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    raise SystemExit(asyncio.run(_run(_parse_args())))


if __name__ == "__main__":
    main()
