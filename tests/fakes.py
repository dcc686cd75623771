"""
Canned API-Football payloads and a MockTransport-backed fake provider
"""

from typing import Any, Dict, List, Optional
import httpx


# ============================================================================
# Provider payload builders
# ============================================================================

def envelope(items: Any, errors: Any = None) -> Dict[str, Any]:
    items = items if items is not None else []
    return {
        "get": "test",
        "parameters": {},
        "errors": errors if errors is not None else [],
        "results": len(items) if isinstance(items, list) else 1,
        "response": items,
    }


def league_item(league_id: int, name: str, season: int = 2024, country: str = "England") -> Dict[str, Any]:
    return {
        "league": {"id": league_id, "name": name, "type": "League", "logo": f"https://media/{league_id}.png"},
        "country": {"name": country, "code": "GB"},
        "seasons": [
            {"year": season - 1, "current": False},
            {"year": season, "current": True},
        ],
    }


def team_item(team_id: int, name: str) -> Dict[str, Any]:
    return {
        "team": {"id": team_id, "name": name, "code": name[:3].upper() if name else None,
                 "logo": f"https://media/teams/{team_id}.png"},
        "venue": {"name": "Stadium"},
    }


def squad_item(team_id: int, players: List[Dict[str, Any]]) -> Dict[str, Any]:
    return {"team": {"id": team_id, "name": "Team"}, "players": players}


def squad_player(player_id: int, name: str, position: Optional[str] = "Midfielder") -> Dict[str, Any]:
    return {"id": player_id, "name": name, "age": 25, "number": 8, "position": position,
            "photo": f"https://media/players/{player_id}.png"}


def player_item(
    player_id: int,
    name: str,
    position: Optional[str] = "Midfielder",
    goals: int = 3,
    with_statistics: bool = True
) -> Dict[str, Any]:
    item = {
        "player": {
            "id": player_id,
            "name": name,
            "firstname": name.split(" ")[0],
            "lastname": name.split(" ")[-1],
            "birth": {"date": "1998-04-12", "country": "England"},
            "nationality": "England",
            "photo": f"https://media/players/{player_id}.png",
        },
        "statistics": [],
    }
    if with_statistics:
        item["statistics"] = [{
            "team": {"id": 1, "name": "Team"},
            "league": {"id": 39, "name": "Premier League"},
            "games": {"appearences": 20, "lineups": 18, "minutes": 1600, "position": position, "rating": "7.1"},
            "substitutes": {"in": 2, "out": 5, "bench": 3},
            "shots": {"total": 30, "on": 12},
            "goals": {"total": goals, "conceded": 0, "assists": 4, "saves": None},
            "passes": {"total": 800, "key": 25, "accuracy": 85},
            "tackles": {"total": 20, "blocks": 2, "interceptions": 10},
            "duels": {"total": 150, "won": 80},
            "dribbles": {"attempts": 40, "success": 22, "past": None},
            "fouls": {"drawn": 15, "committed": 12},
            "cards": {"yellow": 3, "yellowred": 0, "red": 0},
            "penalty": {"won": 1, "commited": None, "scored": 1, "missed": 0, "saved": None},
        }]
    return item


def ranked_item(player_id: Optional[int], name: str) -> Dict[str, Any]:
    return {"player": {"id": player_id, "name": name}, "statistics": []}


def team_stats_item(team_id: int, form: str = "WWDLW") -> Dict[str, Any]:
    return {
        "league": {"id": 39, "name": "Premier League"},
        "team": {"id": team_id, "name": "Team"},
        "form": form,
        "fixtures": {
            "played": {"home": 10, "away": 10, "total": 20},
            "wins": {"home": 7, "away": 5, "total": 12},
            "draws": {"home": 2, "away": 2, "total": 4},
            "loses": {"home": 1, "away": 3, "total": 4},
        },
        "goals": {
            "for": {"total": {"home": 20, "away": 15, "total": 35}, "average": {"home": "2.0", "away": "1.5", "total": "1.8"}},
            "against": {"total": {"home": 8, "away": 12, "total": 20}, "average": None},
        },
        "biggest": {
            "streak": {"wins": 5, "draws": 1, "loses": 2},
            "wins": {"home": "4-0", "away": "0-3"},
            "loses": {"home": None, "away": "2-0"},
            "goals": {"for": {"home": 4, "away": 3}, "against": {"home": 2, "away": 3}},
        },
        "clean_sheet": {"home": 5, "away": 3, "total": 8},
        "failed_to_score": {"home": 1, "away": 2, "total": 3},
        "penalty": {"scored": {"total": 4, "percentage": "80.00%"}, "missed": {"total": 1, "percentage": "20.00%"}, "total": 5},
        "lineups": [{"formation": "4-3-3", "played": 15}, {"formation": "4-2-3-1", "played": 5}],
        "cards": {
            "yellow": {"0-15": {"total": 1, "percentage": "5%"}, "76-90": {"total": 9, "percentage": "45%"}},
            "red": {"0-15": {"total": None, "percentage": None}},
        },
    }


# ============================================================================
# Fake provider
# ============================================================================

class FakeProvider:
    """
    Serves canned API-Football responses through httpx.MockTransport.

    Routes are keyed on (path, query params as strings). A route holds a
    list of (status, body) responses consumed in order; the last one repeats.
    Unknown routes answer with an empty envelope.
    """

    def __init__(self):
        self.routes: Dict[tuple, List[tuple]] = {}
        self.requests: List[httpx.Request] = []

    @staticmethod
    def _key(path: str, params: Dict[str, Any]) -> tuple:
        return path, frozenset((k, str(v)) for k, v in params.items())

    def add(self, path: str, items: Any = None, status: int = 200, body: Any = None, **params):
        payload = body if body is not None else envelope(items)
        self.routes.setdefault(self._key(path, params), []).append((status, payload))

    def calls(self, path: str) -> List[httpx.Request]:
        return [r for r in self.requests if r.url.path == path]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        key = self._key(request.url.path, dict(request.url.params))
        responses = self.routes.get(key)
        if not responses:
            return httpx.Response(200, json=envelope([]))

        status, payload = responses.pop(0) if len(responses) > 1 else responses[0]
        if isinstance(payload, (dict, list)):
            return httpx.Response(status, json=payload)
        return httpx.Response(status, text=str(payload))


# ============================================================================
# Canned provider world
# ============================================================================

WORLD_LEAGUES = {39: "Premier League", 140: "La Liga"}
WORLD_TEAMS = {39: {33: "Manchester United", 34: "Newcastle"}, 140: {529: "Barcelona"}}
WORLD_SQUADS = {
    33: [(1, "Bruno Fernandes", "Midfielder"), (2, "Andre Onana", "Goalkeeper")],
    34: [(3, "Alexander Isak", "Attacker")],
    529: [(4, "Robert Lewandowski", "Attacker")],
}
WORLD_TOP_SCORERS = {39: [3, 1], 140: [4]}


def build_world(provider: "FakeProvider", season: int = 2024):
    """Two leagues, three teams and four players with statistics"""
    for league_id, name in WORLD_LEAGUES.items():
        provider.add("/leagues", [league_item(league_id, name, season=season)], id=league_id, current="true")
        provider.add("/teams", [team_item(t, n) for t, n in WORLD_TEAMS[league_id].items()],
                     league=league_id, season=season)
        ranked = [ranked_item(p, f"Player {p}") for p in WORLD_TOP_SCORERS[league_id]]
        provider.add("/players/topscorers", ranked, league=league_id, season=season)

        for team_id in WORLD_TEAMS[league_id]:
            provider.add("/teams/statistics", team_stats_item(team_id), team=team_id, league=league_id, season=season)

    for team_id, players in WORLD_SQUADS.items():
        provider.add("/players/squads", [squad_item(team_id, [squad_player(p, n, pos) for p, n, pos in players])],
                     team=team_id)
        for player_id, name, position in players:
            provider.add("/players", [player_item(player_id, name, position)], id=player_id, season=season)
