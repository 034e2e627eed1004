"""League constants and TheSportsDB endpoint paths for Unrivaled."""

LEAGUE_ID = "5622"
LEAGUE_NAME = "Unrivaled_Basketball"
CURRENT_SEASON = "2026"

# Slice -> v1 endpoint path (relative to <base>/<api key>/)
SLICE_PATHS: dict[str, str] = {
    "season": "eventsseason.php",
    "upcoming": "eventsnextleague.php",
    "results": "eventspastleague.php",
    "teams": "search_all_teams.php",
    "standings": "lookuptable.php",
}

# Cache TTLs in seconds. Standings are never cached.
SLICE_TTLS: dict[str, int] = {
    "season": 300,
    "upcoming": 300,
    "results": 300,
    "teams": 3600,
    "live": 30,
}


def get_slice_path(slice_name: str) -> str | None:
    """Return the v1 endpoint path for a slice (e.g., season).

    Returns None when the slice has no v1 endpoint.
    """

    return SLICE_PATHS.get(slice_name.lower())
