"""
Ingester tests against the in-memory store and a fake provider
"""

import pytest
import pytest_asyncio
from unittest.mock import AsyncMock
from core.exceptions import (
    AuthenticationError,
    MissingDependencyError,
    ProviderServerError,
    QuotaExceededError,
)
from fakes import (
    league_item,
    player_item,
    ranked_item,
    squad_item,
    squad_player,
    team_item,
    team_stats_item,
)
from ingestion.services.leagues import LeagueIngester
from ingestion.services.player_stats import PlayerStatsIngester
from ingestion.services.players import PlayerIngester
from ingestion.services.reference_data import ReferenceDataSeeder
from ingestion.services.team_stats import TeamStatsIngester
from ingestion.services.teams import TeamIngester
from ingestion.services.top_stats import TopStatsIngester
from models.base import LogLevel, utcnow
from storage.base import Collection


async def seed_league(store, provider_league_id="39", name="Premier League"):
    return await store.insert(Collection.LEAGUES, {
        "name": name, "season": "2024", "provider": "api-football",
        "provider_league_id": provider_league_id, "created_at": utcnow(),
    })


async def seed_team(store, league_id, provider_team_id="33", name="Manchester United"):
    return await store.insert(Collection.TEAMS, {
        "name": name, "league_id": league_id, "provider": "api-football",
        "provider_team_id": provider_team_id, "created_at": utcnow(),
    })


async def seed_player(store, team_id, league_id, provider_player_id, name):
    return await store.insert(Collection.PLAYERS, {
        "name": name, "team_id": team_id, "league_id": league_id, "provider": "api-football",
        "provider_player_id": str(provider_player_id), "created_at": utcnow(),
    })


async def seed_snapshot(store, player_id, team_id, league_id, season="2024", **fields):
    return await store.insert(Collection.PLAYER_STATS, {
        "player_id": player_id, "team_id": team_id, "league_id": league_id, "season": season,
        "provider": "api-football", "player_name": "P", "team_name": "T", "created_at": utcnow(), **fields,
    })


async def exhaust_quota(ctx):
    for _ in range(ctx.settings.DAILY_LIMIT):
        await ctx.ledger.record_call("teams", 1, 200)


# ============================================================================
# Leagues
# ============================================================================

class TestLeagueIngestion:

    @pytest.mark.asyncio
    async def test_one_call_per_league(self, ctx, provider, store):
        ids = [39, 140, 135, 78, 61]
        for league_id in ids:
            provider.add("/leagues", [league_item(league_id, f"League {league_id}")], id=league_id, current="true")

        metrics = await LeagueIngester(ctx).ingest(league_ids=ids)

        assert metrics.created == 5
        assert metrics.errors == 0
        assert (await ctx.ledger.get_usage()).total_calls == 5
        assert len(provider.calls("/leagues")) == 5
        assert await store.count(Collection.LEAGUES) == 5

    @pytest.mark.asyncio
    async def test_reingest_updates_and_keeps_created_at(self, ctx, provider, store):
        provider.add("/leagues", [league_item(39, "Premier League")], id=39, current="true")
        provider.add("/leagues", [league_item(39, "English Premier League")], id=39, current="true")

        await LeagueIngester(ctx).ingest(league_ids=[39])
        first = await store.find_one(Collection.LEAGUES, provider_league_id="39")
        metrics = await LeagueIngester(ctx).ingest(league_ids=[39])
        second = await store.find_one(Collection.LEAGUES, provider_league_id="39")

        assert metrics.created == 0
        assert metrics.updated == 1
        assert second["id"] == first["id"]
        assert second["created_at"] == first["created_at"]
        assert second["name"] == "English Premier League"
        assert await store.count(Collection.LEAGUES) == 1

    @pytest.mark.asyncio
    async def test_uses_configured_top_leagues_by_default(self, ctx, provider):
        await LeagueIngester(ctx).ingest()

        assert sorted(r.url.params["id"] for r in provider.calls("/leagues")) == ["140", "39"]

    @pytest.mark.asyncio
    async def test_provider_failure_propagates(self, ctx, provider, retry_sleep):
        provider.add("/leagues", status=503, body={"message": "down"}, id=39, current="true")

        with pytest.raises(ProviderServerError):
            await LeagueIngester(ctx).ingest(league_ids=[39])

        assert len(provider.calls("/leagues")) == 3
        assert retry_sleep.await_count == 2


# ============================================================================
# Teams
# ============================================================================

class TestTeamIngestion:

    @pytest.mark.asyncio
    async def test_invalid_team_does_not_abort_batch(self, ctx, provider, store):
        league_id = await seed_league(store)
        teams = [team_item(100 + i, "" if i == 7 else f"Team {i}") for i in range(1, 11)]
        provider.add("/teams", teams, league=39, season=2024)

        metrics = await TeamIngester(ctx).ingest(league_id, "2024")

        assert metrics.processed == 10
        assert metrics.created == 9
        assert metrics.errors == 1
        assert metrics.error_details[0]["type"] == "validation-error"
        assert metrics.error_details[0]["context"]["league"] == "Premier League"
        assert await store.count(Collection.TEAMS, league_id=league_id) == 9

    @pytest.mark.asyncio
    async def test_missing_league_raises(self, ctx, provider):
        with pytest.raises(MissingDependencyError):
            await TeamIngester(ctx).ingest(999)

        assert provider.requests == []

    @pytest.mark.asyncio
    async def test_season_falls_back_to_league_season(self, ctx, provider, store):
        ctx.settings.DEFAULT_SEASON = None
        league_id = await store.insert(Collection.LEAGUES, {
            "name": "Serie A", "season": "2022", "provider": "api-football", "provider_league_id": "135",
        })

        await TeamIngester(ctx).ingest(league_id)

        assert provider.requests[0].url.params["season"] == "2022"


# ============================================================================
# Players
# ============================================================================

class TestPlayerIngestion:

    @pytest_asyncio.fixture
    async def team_id(self, store):
        await ReferenceDataSeeder(store).seed()
        league_id = await seed_league(store)
        return await seed_team(store, league_id)

    @pytest.mark.asyncio
    async def test_squad_enriched_with_detailed_data(self, ctx, provider, store, team_id):
        provider.add("/players/squads", [squad_item(33, [
            squad_player(1, "D. de Gea", "Goalkeeper"),
            squad_player(2, "B. Fernandes", "Midfielder"),
        ])], team=33)
        provider.add("/players", [player_item(1, "David de Gea", "Goalkeeper")], id=1, season=2024)
        provider.add("/players", [player_item(2, "Bruno Fernandes", "Attacker")], id=2, season=2024)

        metrics = await PlayerIngester(ctx).ingest(team_id, "2024")

        assert metrics.created == 2
        positions = {p["code"]: p["id"] for p in store.rows(Collection.POSITIONS)}
        keeper = await store.find_one(Collection.PLAYERS, provider_player_id="1")
        assert keeper["name"] == "David de Gea"
        assert keeper["position_id"] == positions["GK"]
        forward = await store.find_one(Collection.PLAYERS, provider_player_id="2")
        assert forward["position_id"] == positions["FW"]
        assert forward["team_id"] == team_id

    @pytest.mark.asyncio
    async def test_failed_detail_lookup_falls_back_to_squad(self, ctx, provider, store, team_id):
        provider.add("/players/squads", [squad_item(33, [squad_player(5, "M. Rashford", "Coach")])], team=33)
        provider.add("/players", status=500, body={"message": "boom"}, id=5, season=2024)

        metrics = await PlayerIngester(ctx).ingest(team_id, "2024")

        assert metrics.created == 1
        player = await store.find_one(Collection.PLAYERS, provider_player_id="5")
        assert player["name"] == "M. Rashford"
        assert player["first_name"] is None
        mf = await store.find_one(Collection.POSITIONS, code="MF")
        assert player["position_id"] == mf["id"]
        warnings = [r for r in store.rows(Collection.INGESTION_LOGS) if r["level"] == LogLevel.WARN]
        assert any(r["message"] == "Detailed player lookup failed" for r in warnings)

    @pytest.mark.asyncio
    async def test_missing_team_raises(self, ctx):
        with pytest.raises(MissingDependencyError):
            await PlayerIngester(ctx).ingest(404)


# ============================================================================
# Statistics
# ============================================================================

class TestTeamStatsIngestion:

    @pytest.mark.asyncio
    async def test_snapshot_per_team(self, ctx, provider, store):
        league_id = await seed_league(store)
        team_id = await seed_team(store, league_id)
        provider.add("/teams/statistics", team_stats_item(33), team=33, league=39, season=2024)

        metrics = await TeamStatsIngester(ctx).ingest("2024")

        assert metrics.created == 1
        snapshot = await store.find_one(Collection.TEAM_STATS, team_id=team_id)
        assert snapshot["season"] == "2024"
        assert snapshot["league_name"] == "Premier League"
        assert snapshot["form"] == "WWDLW"
        assert snapshot["fixtures"]["played"]["total"] == 20

    @pytest.mark.asyncio
    async def test_empty_payload_is_skipped(self, ctx, provider, store):
        league_id = await seed_league(store)
        await seed_team(store, league_id)

        metrics = await TeamStatsIngester(ctx).ingest("2024", league_id=league_id)

        assert metrics.skipped == 1
        assert await store.count(Collection.TEAM_STATS) == 0

    @pytest.mark.asyncio
    async def test_quota_exhaustion_stops_stage(self, ctx, provider, store):
        league_id = await seed_league(store)
        await seed_team(store, league_id)
        await exhaust_quota(ctx)

        with pytest.raises(QuotaExceededError):
            await TeamStatsIngester(ctx).ingest("2024")

        assert provider.requests == []

    @pytest.mark.asyncio
    async def test_league_failure_counted_as_error(self, ctx, provider, store):
        await seed_league(store)
        store.list_teams_by_league = AsyncMock(side_effect=RuntimeError("teams query timed out"))

        metrics = await TeamStatsIngester(ctx).ingest("2024")

        assert metrics.errors == 1
        assert metrics.error_details[0]["type"] == "unexpected-error"
        assert metrics.error_details[0]["context"]["name"] == "Premier League"
        assert provider.requests == []


class TestPlayerStatsIngestion:

    @pytest.mark.asyncio
    async def test_snapshot_per_player(self, ctx, provider, store):
        league_id = await seed_league(store)
        team_id = await seed_team(store, league_id)
        player_id = await seed_player(store, team_id, league_id, 7, "Marcus Rashford")
        provider.add("/players", [player_item(7, "Marcus Rashford", goals=12)], id=7, season=2024)

        metrics = await PlayerStatsIngester(ctx).ingest("2024", team_id=team_id)

        assert metrics.created == 1
        snapshot = await store.find_one(Collection.PLAYER_STATS, player_id=player_id)
        assert snapshot["goals"]["total"] == 12
        assert snapshot["team_name"] == "Manchester United"
        assert snapshot["league_id"] == league_id

    @pytest.mark.asyncio
    async def test_team_without_players_is_skipped_with_warning(self, ctx, provider, store):
        league_id = await seed_league(store)
        await seed_team(store, league_id)

        metrics = await PlayerStatsIngester(ctx).ingest("2024")

        assert metrics.processed == 0
        assert await store.count(Collection.PLAYER_STATS) == 0
        assert provider.requests == []
        warnings = [r for r in store.rows(Collection.INGESTION_LOGS) if r["level"] == LogLevel.WARN]
        assert warnings[0]["message"] == "No players found for team when ingesting stats (skipping)"

    @pytest.mark.asyncio
    async def test_team_failure_counted_as_error(self, ctx, provider, store):
        league_id = await seed_league(store)
        team_id = await seed_team(store, league_id)
        store.list_players_by_team = AsyncMock(side_effect=RuntimeError("players query timed out"))

        metrics = await PlayerStatsIngester(ctx).ingest("2024")

        assert metrics.errors == 1
        assert metrics.error_details[0]["context"] == {"name": "Manchester United", "team_id": team_id}
        assert await store.count(Collection.PLAYER_STATS) == 0

    @pytest.mark.asyncio
    async def test_reingest_keeps_league_positions(self, ctx, provider, store):
        league_id = await seed_league(store)
        team_id = await seed_team(store, league_id)
        player_id = await seed_player(store, team_id, league_id, 7, "Marcus Rashford")
        provider.add("/players", [player_item(7, "Marcus Rashford")], id=7, season=2024)
        ingester = PlayerStatsIngester(ctx)

        await ingester.ingest("2024")
        await ingester.update_positions(player_id, "2024", league_id, {"goals": 3})
        metrics = await ingester.ingest("2024")

        assert metrics.updated == 1
        snapshot = await store.find_one(Collection.PLAYER_STATS, player_id=player_id)
        assert snapshot["league_positions"] == {str(league_id): {"goals": 3}}

    @pytest.mark.asyncio
    async def test_update_positions_merges_categories(self, ctx, store):
        snapshot_id = await seed_snapshot(store, player_id=1, team_id=1, league_id=1,
                                          league_positions={"1": {"goals": 2}})
        ingester = PlayerStatsIngester(ctx)

        assert await ingester.update_positions(1, "2024", 1, {"assists": 5}) == snapshot_id
        await ingester.update_positions(1, "2024", 2, {"goals": 9})

        snapshot = await store.get(Collection.PLAYER_STATS, snapshot_id)
        assert snapshot["league_positions"] == {"1": {"goals": 2, "assists": 5}, "2": {"goals": 9}}

    @pytest.mark.asyncio
    async def test_update_positions_requires_snapshot(self, ctx):
        with pytest.raises(MissingDependencyError):
            await PlayerStatsIngester(ctx).update_positions(1, "2024", 1, {"goals": 1})


class TestTopStatsIngestion:

    @pytest.mark.asyncio
    async def test_ranks_applied_and_missing_ids_skipped(self, ctx, provider, store):
        league_id = await seed_league(store)
        team_id = await seed_team(store, league_id)
        ranked = []
        for rank in range(1, 21):
            if rank == 12:
                ranked.append(ranked_item(None, "Unknown"))
                continue
            player_id = await seed_player(store, team_id, league_id, 1000 + rank, f"Player {rank}")
            await seed_snapshot(store, player_id, team_id, league_id)
            ranked.append(ranked_item(1000 + rank, f"Player {rank}"))
        provider.add("/players/topscorers", ranked, league=39, season=2024)

        result = await TopStatsIngester(ctx).ingest_league(
            "39", "2024", include_assists=False, include_yellow_cards=False, include_red_cards=False
        )

        assert result.success is True
        assert result.results == {"goals": 20}
        assert result.metrics.updated == 19
        assert result.metrics.skipped == 1
        player = await store.find_one(Collection.PLAYERS, provider_player_id="1013")
        snapshot = await store.find_one(Collection.PLAYER_STATS, player_id=player["id"])
        assert snapshot["league_positions"] == {str(league_id): {"goals": 13}}

    @pytest.mark.asyncio
    async def test_player_without_snapshot_is_error_outcome(self, ctx, provider, store):
        league_id = await seed_league(store)
        team_id = await seed_team(store, league_id)
        await seed_player(store, team_id, league_id, 10, "Harry Kane")
        provider.add("/players/topassists", [ranked_item(10, "Harry Kane"), ranked_item(11, "Not Stored")],
                     league=39, season=2024)

        result = await TopStatsIngester(ctx).ingest_league("39", "2024", include_goals=False)

        assert result.metrics.errors == 1
        assert result.metrics.error_details[0]["type"] == "missing-dependency"
        assert result.metrics.skipped == 1
        assert len(provider.calls("/players/topyellowcards")) == 1

    @pytest.mark.asyncio
    async def test_failed_category_raises_after_others_finish(self, ctx, provider, store):
        league_id = await seed_league(store)
        team_id = await seed_team(store, league_id)
        snapshot_ids = []
        for provider_player_id in (20, 21):
            player_id = await seed_player(store, team_id, league_id, provider_player_id, f"Player {provider_player_id}")
            snapshot_ids.append(await seed_snapshot(store, player_id, team_id, league_id))
        provider.add("/players/topscorers", [ranked_item(20, "Player 20"), ranked_item(21, "Player 21")],
                     league=39, season=2024)
        provider.add("/players/topassists", status=401, body={"message": "denied"}, league=39, season=2024)

        with pytest.raises(AuthenticationError):
            await TopStatsIngester(ctx).ingest_league(
                "39", "2024", include_yellow_cards=False, include_red_cards=False
            )

        for rank, snapshot_id in enumerate(snapshot_ids, start=1):
            snapshot = await store.get(Collection.PLAYER_STATS, snapshot_id)
            assert snapshot["league_positions"] == {str(league_id): {"goals": rank}}
        warnings = [r for r in store.rows(Collection.INGESTION_LOGS) if r["message"] == "Top statistics categories failed"]
        assert warnings[0]["data"]["applied"] == 2
        assert list(warnings[0]["data"]["failed"]) == ["assists"]

    @pytest.mark.asyncio
    async def test_unknown_league_raises(self, ctx):
        with pytest.raises(MissingDependencyError):
            await TopStatsIngester(ctx).ingest_league("999", "2024")

    @pytest.mark.asyncio
    async def test_all_leagues_isolates_league_failures(self, ctx, provider, store):
        await seed_league(store, "39", "Premier League")
        await seed_league(store, "140", "La Liga")
        provider.add("/players/topscorers", status=401, body={"message": "denied"}, league=140, season=2024)

        summary = await TopStatsIngester(ctx).ingest_all_leagues("2024")

        assert summary["total_leagues"] == 2
        assert summary["success_count"] == 1
        assert summary["failure_count"] == 1
        failed = [r for r in summary["results"] if not r["success"]]
        assert failed[0]["league_name"] == "La Liga"


class TestReferenceData:

    @pytest.mark.asyncio
    async def test_seed_is_idempotent(self, store):
        first = await ReferenceDataSeeder(store).seed()
        second = await ReferenceDataSeeder(store).seed()

        assert first["positions_created"] == 4
        assert first["windows_created"] == 4
        assert second["positions_created"] == 0
        assert await store.count(Collection.POSITIONS) == 4
