"""
Pydantic models for API-Football response payloads.

Every field is optional: the provider omits whole sections and sends
``null`` freely. Unknown keys are ignored so upstream additions never break
parsing. The mappers in ``ingestion.transformers.mappers`` turn these into
the internal snapshot shape.
"""

from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Any, Union


class ProviderModel(BaseModel):
    """Base for provider payloads: lenient, alias-aware."""

    class Config:
        extra = "ignore"
        populate_by_name = True


Numeric = Optional[Union[int, float, str]]


# ============================================================================
# Envelope
# ============================================================================

class ApiEnvelope(ProviderModel):
    """Top-level wrapper returned by every endpoint"""
    get: Optional[str] = None
    parameters: Optional[Union[Dict[str, Any], List[Any]]] = None
    errors: Optional[Union[Dict[str, Any], List[Any]]] = None
    results: Optional[int] = None
    response: Optional[Union[List[Any], Dict[str, Any]]] = None

    def has_errors(self) -> bool:
        return bool(self.errors)

    def items(self) -> List[Any]:
        """Response as a list (single-object endpoints are wrapped)."""
        if self.response is None:
            return []
        if isinstance(self.response, dict):
            return [self.response]
        return list(self.response)


# ============================================================================
# Leagues / Teams
# ============================================================================

class LeagueInfo(ProviderModel):
    id: Optional[int] = None
    name: Optional[str] = None
    type: Optional[str] = None
    logo: Optional[str] = None


class CountryInfo(ProviderModel):
    name: Optional[str] = None
    code: Optional[str] = None
    flag: Optional[str] = None


class SeasonInfo(ProviderModel):
    year: Optional[int] = None
    start: Optional[str] = None
    end: Optional[str] = None
    current: Optional[bool] = None


class LeagueEntry(ProviderModel):
    league: Optional[LeagueInfo] = None
    country: Optional[CountryInfo] = None
    seasons: Optional[List[SeasonInfo]] = None


class TeamInfo(ProviderModel):
    id: Optional[int] = None
    name: Optional[str] = None
    code: Optional[str] = None
    country: Optional[str] = None
    founded: Optional[int] = None
    logo: Optional[str] = None


class TeamEntry(ProviderModel):
    team: Optional[TeamInfo] = None
    venue: Optional[Dict[str, Any]] = None


# ============================================================================
# Players
# ============================================================================

class SquadPlayer(ProviderModel):
    id: Optional[int] = None
    name: Optional[str] = None
    age: Optional[int] = None
    number: Optional[int] = None
    position: Optional[str] = None
    photo: Optional[str] = None


class SquadEntry(ProviderModel):
    team: Optional[TeamInfo] = None
    players: Optional[List[SquadPlayer]] = None


class Birth(ProviderModel):
    date: Optional[str] = None
    place: Optional[str] = None
    country: Optional[str] = None


class PlayerInfo(ProviderModel):
    id: Optional[int] = None
    name: Optional[str] = None
    firstname: Optional[str] = None
    lastname: Optional[str] = None
    age: Optional[int] = None
    birth: Optional[Birth] = None
    nationality: Optional[str] = None
    photo: Optional[str] = None


class Games(ProviderModel):
    appearences: Optional[int] = None
    lineups: Optional[int] = None
    minutes: Optional[int] = None
    number: Optional[int] = None
    position: Optional[str] = None
    rating: Numeric = None
    captain: Optional[bool] = None


class Substitutes(ProviderModel):
    in_: Optional[int] = Field(None, alias="in")
    out: Optional[int] = None
    bench: Optional[int] = None


class Shots(ProviderModel):
    total: Optional[int] = None
    on: Optional[int] = None


class PlayerGoals(ProviderModel):
    total: Optional[int] = None
    conceded: Optional[int] = None
    assists: Optional[int] = None
    saves: Optional[int] = None


class Passes(ProviderModel):
    total: Optional[int] = None
    key: Optional[int] = None
    accuracy: Numeric = None


class Tackles(ProviderModel):
    total: Optional[int] = None
    blocks: Optional[int] = None
    interceptions: Optional[int] = None


class Duels(ProviderModel):
    total: Optional[int] = None
    won: Optional[int] = None


class Dribbles(ProviderModel):
    attempts: Optional[int] = None
    success: Optional[int] = None
    past: Optional[int] = None


class Fouls(ProviderModel):
    drawn: Optional[int] = None
    committed: Optional[int] = None


class PlayerCards(ProviderModel):
    yellow: Optional[int] = None
    yellowred: Optional[int] = None
    red: Optional[int] = None


class PlayerPenalty(ProviderModel):
    won: Optional[int] = None
    commited: Optional[int] = None
    scored: Optional[int] = None
    missed: Optional[int] = None
    saved: Optional[int] = None


class PlayerStatistics(ProviderModel):
    """One (team, league) statistics block for a player"""
    team: Optional[TeamInfo] = None
    league: Optional[LeagueInfo] = None
    games: Optional[Games] = None
    substitutes: Optional[Substitutes] = None
    shots: Optional[Shots] = None
    goals: Optional[PlayerGoals] = None
    passes: Optional[Passes] = None
    tackles: Optional[Tackles] = None
    duels: Optional[Duels] = None
    dribbles: Optional[Dribbles] = None
    fouls: Optional[Fouls] = None
    cards: Optional[PlayerCards] = None
    penalty: Optional[PlayerPenalty] = None


class PlayerEntry(ProviderModel):
    """Item of /players and of the /players/top* ranked lists"""
    player: Optional[PlayerInfo] = None
    statistics: Optional[List[PlayerStatistics]] = None


# ============================================================================
# Team statistics
# ============================================================================

class HomeAwayTotal(ProviderModel):
    home: Numeric = None
    away: Numeric = None
    total: Numeric = None


class GoalsSide(ProviderModel):
    total: Optional[HomeAwayTotal] = None
    average: Optional[HomeAwayTotal] = None


class TeamGoals(ProviderModel):
    for_: Optional[GoalsSide] = Field(None, alias="for")
    against: Optional[GoalsSide] = None


class Fixtures(ProviderModel):
    played: Optional[HomeAwayTotal] = None
    wins: Optional[HomeAwayTotal] = None
    draws: Optional[HomeAwayTotal] = None
    loses: Optional[HomeAwayTotal] = None


class Streak(ProviderModel):
    wins: Optional[int] = None
    draws: Optional[int] = None
    loses: Optional[int] = None


class HomeAway(ProviderModel):
    home: Numeric = None
    away: Numeric = None


class BiggestGoals(ProviderModel):
    for_: Optional[HomeAway] = Field(None, alias="for")
    against: Optional[HomeAway] = None


class Biggest(ProviderModel):
    streak: Optional[Streak] = None
    wins: Optional[HomeAway] = None
    loses: Optional[HomeAway] = None
    goals: Optional[BiggestGoals] = None


class PenaltyOutcome(ProviderModel):
    total: Optional[int] = None
    percentage: Optional[str] = None


class TeamPenalty(ProviderModel):
    scored: Optional[PenaltyOutcome] = None
    missed: Optional[PenaltyOutcome] = None
    total: Optional[int] = None


class MinuteBucket(ProviderModel):
    total: Optional[int] = None
    percentage: Optional[str] = None


class Lineup(ProviderModel):
    formation: Optional[str] = None
    played: Optional[int] = None


class TeamStatistics(ProviderModel):
    """Single-object response of /teams/statistics"""
    league: Optional[LeagueInfo] = None
    team: Optional[TeamInfo] = None
    form: Optional[str] = None
    fixtures: Optional[Fixtures] = None
    goals: Optional[TeamGoals] = None
    biggest: Optional[Biggest] = None
    clean_sheet: Optional[HomeAwayTotal] = None
    failed_to_score: Optional[HomeAwayTotal] = None
    penalty: Optional[TeamPenalty] = None
    lineups: Optional[List[Lineup]] = None
    cards: Optional[Dict[str, Optional[Dict[str, Optional[MinuteBucket]]]]] = None
