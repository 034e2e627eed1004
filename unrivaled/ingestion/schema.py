"""Wire contracts for TheSportsDB responses.

Envelopes may omit their list field entirely; records are validated one at a
time so that a single malformed entry never rejects the whole batch.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict


class _WireModel(BaseModel):
    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)


class EventsEnvelope(_WireModel):
    events: Optional[list[Any]] = None


class LivescoreEnvelope(_WireModel):
    livescore: Optional[list[Any]] = None
    livescores: Optional[list[Any]] = None

    @property
    def records(self) -> list[Any]:
        return self.livescore or self.livescores or []


class TeamsEnvelope(_WireModel):
    teams: Optional[list[Any]] = None


class TableEnvelope(_WireModel):
    table: Optional[list[Any]] = None


class APIEvent(_WireModel):
    """Season, upcoming and past-result event record."""

    # Required fields
    idEvent: str
    strHomeTeam: str
    strAwayTeam: str

    # Optional fields
    strEvent: Optional[str] = None
    dateEvent: Optional[str] = None
    strTime: Optional[str] = None
    strTimestamp: Optional[str] = None
    intHomeScore: Optional[str] = None
    intAwayScore: Optional[str] = None
    strStatus: Optional[str] = None
    strThumb: Optional[str] = None
    idHomeTeam: Optional[str] = None
    idAwayTeam: Optional[str] = None
    strHomeTeamBadge: Optional[str] = None
    strAwayTeamBadge: Optional[str] = None


class APILiveScore(_WireModel):
    """Live feed record: a subset of the event fields plus progress text."""

    idEvent: str
    strHomeTeam: str
    strAwayTeam: str

    intHomeScore: Optional[str] = None
    intAwayScore: Optional[str] = None
    strStatus: Optional[str] = None
    strProgress: Optional[str] = None
    idHomeTeam: Optional[str] = None
    idAwayTeam: Optional[str] = None
    strHomeTeamBadge: Optional[str] = None
    strAwayTeamBadge: Optional[str] = None


class APITeam(_WireModel):
    idTeam: str
    strTeam: str
    strTeamBadge: Optional[str] = None
    strBadge: Optional[str] = None
    strTeamLogo: Optional[str] = None
    strLogo: Optional[str] = None
    strDescriptionEN: Optional[str] = None


class APIStanding(_WireModel):
    strTeam: str
    idStanding: Optional[str] = None
    idTeam: Optional[str] = None
    intRank: Optional[str] = None
    intPlayed: Optional[str] = None
    intWin: Optional[str] = None
    intLoss: Optional[str] = None
    intPoints: Optional[str] = None
    strTeamBadge: Optional[str] = None
    strBadge: Optional[str] = None
