"""
Tests for provider payload -> record mapping
"""

import pytest
from fakes import league_item, player_item, squad_player, team_item, team_stats_item
from ingestion.transformers.mappers import (
    compact,
    map_league,
    map_player,
    map_player_stats,
    map_team,
    map_team_stats,
    position_code,
    resolve_position_code,
)
from schemas.provider import LeagueEntry, PlayerEntry, SquadPlayer, TeamEntry, TeamStatistics


class TestCompact:

    def test_drops_none_values(self):
        assert compact({"home": 1, "away": None}) == {"home": 1}

    def test_keeps_falsy_values(self):
        assert compact({"total": 0, "form": ""}) == {"total": 0, "form": ""}

    def test_empty_group_becomes_none(self):
        assert compact({"home": None, "away": None}) is None


class TestPositions:

    @pytest.mark.parametrize("raw,expected", [
        ("Goalkeeper", "GK"),
        ("Defender", "DF"),
        ("Midfielder", "MF"),
        ("Attacker", "FW"),
        ("G", "GK"),
        ("F", "FW"),
        (" fw ", "FW"),
        ("Coach", None),
        (None, None),
    ])
    def test_position_code(self, raw, expected):
        assert position_code(raw) == expected

    def test_detailed_position_wins(self):
        basic = SquadPlayer.model_validate(squad_player(1, "A", position="Defender"))
        detailed = PlayerEntry.model_validate(player_item(1, "A B", position="G"))

        assert resolve_position_code(basic, detailed) == "GK"

    def test_falls_back_to_squad_position(self):
        basic = SquadPlayer.model_validate(squad_player(1, "A", position="Attacker"))
        detailed = PlayerEntry.model_validate(player_item(1, "A B", with_statistics=False))

        assert resolve_position_code(basic, detailed) == "FW"

    def test_unknown_position_defaults_to_midfield(self):
        basic = SquadPlayer.model_validate(squad_player(1, "A", position=None))

        assert resolve_position_code(basic, None) == "MF"


class TestEntities:

    def test_map_league_uses_current_season(self):
        entry = LeagueEntry.model_validate(league_item(39, "Premier League", season=2023))

        record = map_league(entry, "api-football", "2024")

        assert record == {
            "name": "Premier League",
            "code": "League",
            "season": "2023",
            "country": "England",
            "logo_url": "https://media/39.png",
            "provider": "api-football",
            "provider_league_id": "39",
        }

    def test_map_league_without_seasons_uses_default(self):
        entry = LeagueEntry.model_validate({"league": {"id": 2, "name": "UCL"}})

        assert map_league(entry, "api-football", "2024")["season"] == "2024"

    def test_map_team(self):
        entry = TeamEntry.model_validate(team_item(33, "Manchester United"))

        record = map_team(entry, league_id=7, provider="api-football")

        assert record["name"] == "Manchester United"
        assert record["short_name"] == "MAN"
        assert record["league_id"] == 7
        assert record["provider_team_id"] == "33"

    def test_map_team_missing_name_yields_empty_string(self):
        entry = TeamEntry.model_validate({"team": {"id": 5, "name": None}})

        assert map_team(entry, 1, "api-football")["name"] == ""

    def test_map_player_prefers_detailed_record(self):
        basic = SquadPlayer.model_validate(squad_player(909, "B. Saka"))
        detailed = PlayerEntry.model_validate(player_item(909, "Bukayo Saka"))

        record = map_player(basic, detailed, team_id=3, league_id=1, position_id=4, provider="api-football")

        assert record["name"] == "Bukayo Saka"
        assert record["first_name"] == "Bukayo"
        assert record["date_of_birth"] == "1998-04-12"
        assert record["provider_player_id"] == "909"
        assert record["position_id"] == 4

    def test_map_player_squad_only(self):
        basic = SquadPlayer.model_validate(squad_player(909, "B. Saka"))

        record = map_player(basic, None, team_id=3, league_id=1, position_id=None, provider="api-football")

        assert record["name"] == "B. Saka"
        assert record["first_name"] is None
        assert record["photo_url"] == "https://media/players/909.png"


class TestStatistics:

    def test_player_stats_groups(self):
        entry = PlayerEntry.model_validate(player_item(1, "A B", goals=11))

        groups = map_player_stats(entry.statistics[0])

        assert groups["goals"] == {"total": 11, "conceded": 0, "assists": 4}
        assert groups["substitutes"] == {"in": 2, "out": 5, "bench": 3}
        assert groups["shots"] == {"total": 30, "on_target": 12}
        assert groups["cards"] == {"yellow": 3, "yellow_red": 0, "red": 0}
        assert groups["penalty"] == {"won": 1, "scored": 1, "missed": 0}

    def test_missing_player_group_is_none(self):
        entry = PlayerEntry.model_validate({"statistics": [{"games": {"appearences": None}}]})

        groups = map_player_stats(entry.statistics[0])

        assert groups["games"] is None
        assert groups["goals"] is None

    def test_team_stats(self):
        stats = TeamStatistics.model_validate(team_stats_item(33, form="WDLWW"))

        record = map_team_stats(stats)

        assert record["form"] == "WDLWW"
        assert record["fixtures"]["wins"] == {"home": 7, "away": 5, "total": 12}
        assert record["goals"]["for"]["total"]["total"] == 35
        assert "average" not in record["goals"]["against"]
        assert record["biggest"]["loses"] == {"away": "2-0"}
        assert record["biggest"]["goals_for"] == {"home": 4, "away": 3}
        assert record["penalty"]["scored"] == {"total": 4, "percentage": "80.00%"}
        assert record["cards"] == {"yellow": {"min_0_15": 1, "min_76_90": 9}}
        assert record["lineups"] == {"formation": "4-3-3", "played": 15}

    def test_empty_team_stats(self):
        record = map_team_stats(TeamStatistics.model_validate({"form": ""}))

        assert all(value is None for value in record.values())
