"""Built-in Unrivaled team table, used when the roster source is unavailable."""

from __future__ import annotations

from unrivaled.games import Team

# TheSportsDB CDN base URL for team badges
_BADGE_BASE = "https://r2.thesportsdb.com/images/media/team/badge"

# Mapping: TheSportsDB idTeam -> (display name, badge slug)
_TEAM_MAP: dict[str, tuple[str, str]] = {
    "154048": ("Breeze BC", "breeze-bc"),
    "154049": ("Hive BC", "hive-bc"),
    "151477": ("Laces BC", "laces-bc"),
    "150651": ("Lunar Owls BC", "lunar-owls-bc"),
    "151962": ("Mist BC", "mist-bc"),
    "151478": ("Phantom BC", "phantom-bc"),
    "151481": ("Rose BC", "rose-bc"),
    "150736": ("Vinyl BC", "vinyl-bc"),
}

ALL_TEAMS: tuple[Team, ...] = tuple(
    Team(id=team_id, name=name, badge_url=f"{_BADGE_BASE}/{slug}.png")
    for team_id, (name, slug) in _TEAM_MAP.items()
)

_BY_ID: dict[str, Team] = {team.id: team for team in ALL_TEAMS}

# Short names as they appear on the league website ("Lunar Owls", not "Lunar Owls BC").
SHORT_NAMES: tuple[str, ...] = tuple(team.short_name for team in ALL_TEAMS)


def find_team_by_id(team_id: str | None) -> Team | None:
    if not team_id:
        return None
    return _BY_ID.get(team_id)


def find_team_by_name(name: str | None) -> Team | None:
    """Match a team by exact full name or short name.

    Returns None when the name isn't one of the eight league teams.
    """
    if not name:
        return None
    cleaned = name.strip()
    for team in ALL_TEAMS:
        if team.name == cleaned or team.short_name == cleaned:
            return team
    return None
