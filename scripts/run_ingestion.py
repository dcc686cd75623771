"""
Run the football ingestion pipeline (or a single stage) inline
"""

import argparse
import asyncio
import json
import sys
import os
import logging

# Add current directory to path to allow imports from core, models, etc.
sys.path.append(os.getcwd())

from core.config import settings
from core.database import async_session_maker, dispose_engine
from core.exceptions import IngestionException
from core.logging import setup_logging
from ingestion.orchestrator import IngestionOrchestrator
from ingestion.provider.client import FootballApiClient
from ingestion.services.base import ServiceContext
from ingestion.services.player_stats import PlayerStatsIngester
from ingestion.services.reference_data import ReferenceDataSeeder
from ingestion.services.team_stats import TeamStatsIngester
from ingestion.services.top_stats import TopStatsIngester
from storage.memory import MemoryStore
from storage.postgres import PostgresStore

logger = logging.getLogger(__name__)

STAGE_CHOICES = ["full", "league", "reference-data", "team-stats", "player-stats", "top-stats"]


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__.strip())
    parser.add_argument("stage", nargs="?", default="full", choices=STAGE_CHOICES)
    parser.add_argument("--season", help="Season year, e.g. 2024 (default: configured or current year)")
    parser.add_argument("--league-id", type=int, help="Internal league ID (league, team-stats, player-stats)")
    parser.add_argument("--team-id", type=int, help="Internal team ID (player-stats)")
    parser.add_argument("--provider-league-id", help="Provider league ID (top-stats)")
    parser.add_argument("--no-players", action="store_true", help="Skip squads when running a single league")
    parser.add_argument("--log-level", help="Override LOG_LEVEL, e.g. DEBUG")
    parser.add_argument(
        "--skip", action="append", default=[],
        choices=["reference_data", "leagues", "teams", "players", "team_stats", "player_stats", "top_stats"],
        help="Skip a stage of the full run (repeatable)"
    )
    parser.add_argument(
        "--dry-run", action="store_true",
        help="Keep everything in memory instead of writing to PostgreSQL"
    )
    return parser.parse_args(argv)


def build_store(dry_run: bool):
    if dry_run:
        logger.info("Dry run: records are kept in memory only")
        return MemoryStore()

    return PostgresStore(async_session_maker)


async def run_stage(ctx: ServiceContext, args: argparse.Namespace):
    if args.stage == "full":
        summary = await IngestionOrchestrator(ctx).run_full(
            args.season, **{f"skip_{stage}": True for stage in args.skip}
        )
        return summary.to_dict()
    if args.stage == "league":
        if args.league_id is None:
            raise SystemExit("--league-id is required for the league stage")
        return await IngestionOrchestrator(ctx).run_league(args.league_id, args.season, not args.no_players)
    if args.stage == "reference-data":
        return await ReferenceDataSeeder(ctx.store).seed()
    if args.stage == "team-stats":
        return (await TeamStatsIngester(ctx).ingest(args.season, args.league_id)).to_dict()
    if args.stage == "player-stats":
        return (await PlayerStatsIngester(ctx).ingest(args.season, args.league_id, args.team_id)).to_dict()

    ingester = TopStatsIngester(ctx)
    if args.provider_league_id:
        return (await ingester.ingest_league(args.provider_league_id, args.season)).to_dict()
    return await ingester.ingest_all_leagues(args.season)


async def run_ingestion(args: argparse.Namespace) -> int:
    client = FootballApiClient(
        base_url=settings.FOOTBALL_API_BASE_URL,
        api_key=settings.FOOTBALL_API_KEY,
        timeout=settings.FOOTBALL_API_TIMEOUT,
    )
    ctx = ServiceContext(build_store(args.dry_run), client, settings)

    try:
        result = await run_stage(ctx, args)
        print(json.dumps(result, indent=2, default=str))
        logger.info(f"Ingestion stage '{args.stage}' completed")
        return 0
    except IngestionException as e:
        logger.error(f"Ingestion stage '{args.stage}' failed: {e.message}", extra={"error_context": e.to_dict()})
        return 1
    finally:
        await client.aclose()
        if not args.dry_run:
            await dispose_engine()


if __name__ == "__main__":
    arguments = parse_args()
    setup_logging(arguments.log_level)
    sys.exit(asyncio.run(run_ingestion(arguments)))
