"""
Mapping layer from provider payloads to the internal record shape.

Provider sections arrive as optional-field models; ``null`` and missing
values are both collapsed to "absent" here: keys with no value are dropped,
and a group with nothing left is returned as ``None``. Downstream code only
has one kind of absence to deal with.
"""

from typing import Any, Dict, Optional
from schemas.provider import (
    Biggest,
    Fixtures,
    HomeAwayTotal,
    LeagueEntry,
    MinuteBucket,
    PlayerEntry,
    PlayerStatistics,
    SquadPlayer,
    TeamEntry,
    TeamGoals,
    TeamPenalty,
    TeamStatistics,
)

CARD_INTERVALS = {
    "0-15": "min_0_15",
    "16-30": "min_16_30",
    "31-45": "min_31_45",
    "46-60": "min_46_60",
    "61-75": "min_61_75",
    "76-90": "min_76_90",
    "91-105": "min_91_105",
    "106-120": "min_106_120",
}

POSITION_CODES = {
    "goalkeeper": "GK",
    "defender": "DF",
    "midfielder": "MF",
    "attacker": "FW",
    "g": "GK",
    "d": "DF",
    "m": "MF",
    "f": "FW",
    "gk": "GK",
    "df": "DF",
    "mf": "MF",
    "fw": "FW",
}

DEFAULT_POSITION_CODE = "MF"


def compact(values: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """Drop absent values; None when nothing is left."""
    kept = {k: v for k, v in values.items() if v is not None}
    return kept or None


def _id(value: Optional[int]) -> Optional[str]:
    return str(value) if value is not None else None


def position_code(provider_position: Optional[str]) -> Optional[str]:
    """Map 'Attacker', 'G', 'MF', ... onto GK/DF/MF/FW."""
    if not provider_position:
        return None
    return POSITION_CODES.get(provider_position.strip().lower())


# ============================================================================
# Entities
# ============================================================================

def map_league(entry: LeagueEntry, provider: str, default_season: str) -> Dict[str, Any]:
    league = entry.league
    seasons = entry.seasons or []
    current = next((s for s in seasons if s.current), None) or (seasons[-1] if seasons else None)
    season = str(current.year) if current and current.year else default_season

    return {
        "name": (league.name if league else None) or "",
        "code": league.type if league else None,
        "season": season,
        "country": entry.country.name if entry.country else None,
        "logo_url": league.logo if league else None,
        "provider": provider,
        "provider_league_id": (_id(league.id) if league else None) or "",
    }


def map_team(entry: TeamEntry, league_id: int, provider: str) -> Dict[str, Any]:
    team = entry.team
    return {
        "name": (team.name if team else None) or "",
        "short_name": team.code if team else None,
        "crest_url": team.logo if team else None,
        "league_id": league_id,
        "provider": provider,
        "provider_team_id": (_id(team.id) if team else None) or "",
    }


def map_player(
    basic: SquadPlayer,
    detailed: Optional[PlayerEntry],
    team_id: int,
    league_id: int,
    position_id: Optional[int],
    provider: str
) -> Dict[str, Any]:
    """Squad entry enriched with the detailed /players record when present."""
    info = detailed.player if detailed and detailed.player else None
    return {
        "name": ((info.name if info else None) or basic.name or ""),
        "first_name": info.firstname if info else None,
        "last_name": info.lastname if info else None,
        "nationality": info.nationality if info else None,
        "photo_url": (info.photo if info else None) or basic.photo,
        "date_of_birth": info.birth.date if info and info.birth else None,
        "team_id": team_id,
        "league_id": league_id,
        "position_id": position_id,
        "provider": provider,
        "provider_player_id": _id(basic.id) or "",
    }


def resolve_position_code(basic: SquadPlayer, detailed: Optional[PlayerEntry]) -> str:
    """Detailed statistics position first, then squad position, then MF."""
    if detailed and detailed.statistics:
        games = detailed.statistics[0].games
        code = position_code(games.position if games else None)
        if code:
            return code
    return position_code(basic.position) or DEFAULT_POSITION_CODE


# ============================================================================
# Player statistics
# ============================================================================

def map_player_stats(stats: PlayerStatistics) -> Dict[str, Optional[Dict[str, Any]]]:
    """Statistic groups of one player; each group None when absent."""
    games = stats.games
    subs = stats.substitutes
    shots = stats.shots
    goals = stats.goals
    passes = stats.passes
    tackles = stats.tackles
    duels = stats.duels
    dribbles = stats.dribbles
    fouls = stats.fouls
    cards = stats.cards
    penalty = stats.penalty

    return {
        "games": compact({
            "appearances": games.appearences,
            "lineups": games.lineups,
            "minutes": games.minutes,
            "number": games.number,
            "position": games.position,
            "rating": games.rating,
            "captain": games.captain,
        }) if games else None,
        "substitutes": compact({"in": subs.in_, "out": subs.out, "bench": subs.bench}) if subs else None,
        "shots": compact({"total": shots.total, "on_target": shots.on}) if shots else None,
        "goals": compact({
            "total": goals.total,
            "conceded": goals.conceded,
            "assists": goals.assists,
            "saves": goals.saves,
        }) if goals else None,
        "passes": compact({"total": passes.total, "key": passes.key, "accuracy": passes.accuracy}) if passes else None,
        "tackles": compact({
            "total": tackles.total,
            "blocks": tackles.blocks,
            "interceptions": tackles.interceptions,
        }) if tackles else None,
        "duels": compact({"total": duels.total, "won": duels.won}) if duels else None,
        "dribbles": compact({
            "attempts": dribbles.attempts,
            "success": dribbles.success,
            "past": dribbles.past,
        }) if dribbles else None,
        "fouls": compact({"drawn": fouls.drawn, "committed": fouls.committed}) if fouls else None,
        "cards": compact({"yellow": cards.yellow, "yellow_red": cards.yellowred, "red": cards.red}) if cards else None,
        "penalty": compact({
            "won": penalty.won,
            "committed": penalty.commited,
            "scored": penalty.scored,
            "missed": penalty.missed,
            "saved": penalty.saved,
        }) if penalty else None,
    }


# ============================================================================
# Team statistics
# ============================================================================

def home_away_total(value: Optional[HomeAwayTotal]) -> Optional[Dict[str, Any]]:
    if value is None:
        return None
    return compact({"home": value.home, "away": value.away, "total": value.total})


def map_fixtures(fixtures: Optional[Fixtures]) -> Optional[Dict[str, Any]]:
    if fixtures is None:
        return None
    return compact({
        "played": home_away_total(fixtures.played),
        "wins": home_away_total(fixtures.wins),
        "draws": home_away_total(fixtures.draws),
        "loses": home_away_total(fixtures.loses),
    })


def map_goals(goals: Optional[TeamGoals]) -> Optional[Dict[str, Any]]:
    if goals is None:
        return None

    def side(value):
        if value is None:
            return None
        return compact({"total": home_away_total(value.total), "average": home_away_total(value.average)})

    return compact({"for": side(goals.for_), "against": side(goals.against)})


def map_biggest(biggest: Optional[Biggest]) -> Optional[Dict[str, Any]]:
    if biggest is None:
        return None

    def home_away(value):
        return compact({"home": value.home, "away": value.away}) if value else None

    streak = biggest.streak
    goals = biggest.goals
    return compact({
        "streak": compact({"wins": streak.wins, "draws": streak.draws, "loses": streak.loses}) if streak else None,
        "wins": home_away(biggest.wins),
        "loses": home_away(biggest.loses),
        "goals_for": home_away(goals.for_) if goals else None,
        "goals_against": home_away(goals.against) if goals else None,
    })


def map_penalty(penalty: Optional[TeamPenalty]) -> Optional[Dict[str, Any]]:
    if penalty is None:
        return None

    def outcome(value):
        return compact({"total": value.total, "percentage": value.percentage}) if value else None

    return compact({"scored": outcome(penalty.scored), "missed": outcome(penalty.missed)})


def map_cards(cards: Optional[Dict[str, Optional[Dict[str, Optional[MinuteBucket]]]]]) -> Optional[Dict[str, Any]]:
    """Per-colour totals bucketed by 15-minute interval."""
    if cards is None:
        return None

    def intervals(buckets):
        if buckets is None:
            return None
        return compact({
            key: buckets[label].total if buckets.get(label) else None
            for label, key in CARD_INTERVALS.items()
        })

    return compact({"yellow": intervals(cards.get("yellow")), "red": intervals(cards.get("red"))})


def top_lineup(stats: TeamStatistics) -> Optional[Dict[str, Any]]:
    """Most played formation; first one wins ties."""
    best = None
    for lineup in stats.lineups or []:
        if best is None or (lineup.played or 0) > (best.played or 0):
            best = lineup
    if best is None:
        return None
    return compact({"formation": best.formation, "played": best.played})


def map_team_stats(stats: TeamStatistics) -> Dict[str, Any]:
    return {
        "form": stats.form or None,
        "fixtures": map_fixtures(stats.fixtures),
        "goals": map_goals(stats.goals),
        "biggest": map_biggest(stats.biggest),
        "clean_sheet": home_away_total(stats.clean_sheet),
        "failed_to_score": home_away_total(stats.failed_to_score),
        "penalty": map_penalty(stats.penalty),
        "cards": map_cards(stats.cards),
        "lineups": top_lineup(stats),
    }
