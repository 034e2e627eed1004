"""Canonical game, team and standing records shared by every data source."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional
from zoneinfo import ZoneInfo

SHORT_NAME_SUFFIX = " BC"
TBD = "TBD"


class GameStatus(str, Enum):
    SCHEDULED = "scheduled"
    LIVE = "live"
    COMPLETED = "completed"


@dataclass(frozen=True, eq=False)
class Team:
    id: str
    name: str
    badge_url: Optional[str] = None
    logo_url: Optional[str] = None
    description: Optional[str] = None

    @property
    def short_name(self) -> str:
        return self.name.replace(SHORT_NAME_SUFFIX, "")

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Team):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)


@dataclass(frozen=True)
class Game:
    id: str
    home_team: Team
    away_team: Team
    date: datetime
    status: GameStatus = GameStatus.SCHEDULED
    home_score: Optional[int] = None
    away_score: Optional[int] = None
    has_valid_time: bool = True
    thumbnail_url: Optional[str] = None
    progress: Optional[str] = None

    @property
    def is_completed(self) -> bool:
        return self.status is GameStatus.COMPLETED

    @property
    def is_live(self) -> bool:
        return self.status is GameStatus.LIVE

    @property
    def score_display(self) -> str:
        if self.home_score is None or self.away_score is None:
            return "vs"
        return f"{self.home_score} - {self.away_score}"

    @property
    def winner(self) -> Team | None:
        """Winning team of a completed game; None for ties or unfinished games."""
        if not self.is_completed:
            return None
        if self.home_score is None or self.away_score is None:
            return None
        if self.home_score > self.away_score:
            return self.home_team
        if self.away_score > self.home_score:
            return self.away_team
        return None

    def involves(self, team_id: str) -> bool:
        return team_id in (self.home_team.id, self.away_team.id)

    def time_display(self, tz: ZoneInfo | timezone = timezone.utc) -> str:
        if not self.has_valid_time:
            return TBD
        local = self.date.astimezone(tz)
        return local.strftime("%I:%M %p").lstrip("0")

    def date_display(self, tz: ZoneInfo | timezone = timezone.utc) -> str:
        local = self.date.astimezone(tz)
        return f"{local.strftime('%a, %b')} {local.day}"


@dataclass(frozen=True)
class Standing:
    team_name: str
    team_id: Optional[str] = None
    rank: int = 0
    played: int = 0
    wins: int = 0
    losses: int = 0
    points: int = 0
    badge_url: Optional[str] = None
    # Numeric fields that were missing or unparseable and fell back to zero.
    defaulted_fields: frozenset[str] = field(default_factory=frozenset)

    def is_defaulted(self, field_name: str) -> bool:
        return field_name in self.defaulted_fields
