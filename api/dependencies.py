"""
FastAPI dependencies resolving the long-lived collaborators on app.state
"""

from fastapi import Request
from ingestion.scheduler import IngestionScheduler
from ingestion.services.base import ServiceContext
from ingestion.usage_ledger import UsageLedger
from storage.base import Store


def get_context(request: Request) -> ServiceContext:
    return request.app.state.ctx


def get_store(request: Request) -> Store:
    return request.app.state.ctx.store


def get_ledger(request: Request) -> UsageLedger:
    return request.app.state.ctx.ledger


def get_scheduler(request: Request) -> IngestionScheduler:
    return request.app.state.scheduler
