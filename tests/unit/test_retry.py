import pytest
from unittest.mock import AsyncMock
from core.exceptions import (
    AuthenticationError,
    NetworkError,
    ProviderApplicationError,
    ProviderServerError,
    ResourceNotFoundError,
    SchemaValidationError,
)
from ingestion.ingestion_logger import IngestionLogger
from ingestion.retry import RetryEngine, format_params, status_code_of
from ingestion.usage_ledger import UsageLedger
from storage.base import Collection
from storage.memory import MemoryStore


@pytest.fixture
def memory():
    return MemoryStore()


@pytest.fixture
def ledger(memory):
    return UsageLedger(memory, "api-football")


@pytest.fixture
def log(memory):
    return IngestionLogger("ingest-teams", memory)


@pytest.fixture
def sleep():
    return AsyncMock()


@pytest.fixture
def engine(ledger, log, sleep):
    return RetryEngine(ledger, log, "api-football", sleep=sleep)


def server_error():
    return ProviderServerError("Server error 503 for /teams", status_code=503)


@pytest.mark.asyncio
async def test_transient_errors_retried_with_exponential_backoff(engine, ledger, sleep):
    operation = AsyncMock(side_effect=[server_error(), server_error(), "payload"])

    result = await engine.with_retry(operation, "teams", {"league": 39})

    assert result == "payload"
    assert operation.await_count == 3
    assert [c.args[0] for c in sleep.await_args_list] == [1.0, 2.0]
    assert (await ledger.get_usage()).total_calls == 3


@pytest.mark.asyncio
async def test_gives_up_after_max_attempts(engine, ledger, log, sleep):
    operation = AsyncMock(side_effect=NetworkError("Network error for /teams"))

    with pytest.raises(NetworkError):
        await engine.with_retry(operation, "teams")

    assert operation.await_count == 3
    assert sleep.await_count == 2
    assert (await ledger.get_usage()).total_calls == 3
    assert log.metrics.errors == 1
    assert log.metrics.api_calls == 3


@pytest.mark.asyncio
async def test_client_errors_fail_after_single_attempt(engine, ledger, sleep):
    operation = AsyncMock(side_effect=ResourceNotFoundError("Resource not found: /teams", status_code=404))

    with pytest.raises(ResourceNotFoundError):
        await engine.with_retry(operation, "teams")

    assert operation.await_count == 1
    sleep.assert_not_awaited()
    assert (await ledger.get_usage()).total_calls == 1


@pytest.mark.asyncio
async def test_validation_errors_never_retried(engine):
    operation = AsyncMock(side_effect=ValueError("validation failed for field id"))

    with pytest.raises(ValueError):
        await engine.with_retry(operation, "players")

    assert operation.await_count == 1


@pytest.mark.asyncio
async def test_every_attempt_persisted_to_audit_log(engine, memory):
    operation = AsyncMock(side_effect=[server_error(), {"response": []}])

    await engine.with_retry(operation, "teams", {"league": 39, "season": 2024})

    rows = memory.rows(Collection.API_INGEST_LOGS)
    assert [r["ok"] for r in rows] == [False, True]
    assert rows[0]["status_code"] == 503
    assert rows[1]["provider_params"] == "league=39&season=2024"
    calls = memory.rows(Collection.API_CALLS)
    assert [c["status_code"] for c in calls] == [503, 200]


@pytest.mark.asyncio
async def test_envelope_errors_persisted_as_failed_attempt(engine, memory):
    error = ProviderApplicationError(
        "Provider reported errors for /teams: {'season': 'invalid season'}",
        context={"resource": "/teams", "errors": {"season": "invalid season"}},
        status_code=200
    )
    operation = AsyncMock(side_effect=error)

    with pytest.raises(ProviderApplicationError):
        await engine.with_retry(operation, "teams", {"league": 39, "season": 2024})

    assert operation.await_count == 1
    rows = memory.rows(Collection.API_INGEST_LOGS)
    assert len(rows) == 1
    assert rows[0]["status_code"] == 200
    assert rows[0]["ok"] is False
    assert "invalid season" in rows[0]["error"]


@pytest.mark.asyncio
async def test_per_call_overrides(engine, sleep):
    operation = AsyncMock(side_effect=server_error())

    with pytest.raises(ProviderServerError):
        await engine.with_retry(operation, "teams", max_attempts=2, base_delay_ms=10)

    assert operation.await_count == 2
    assert [c.args[0] for c in sleep.await_args_list] == [0.01]


@pytest.mark.parametrize("error,expected", [
    (ProviderServerError("boom", status_code=502), True),
    (NetworkError("reset"), True),
    (AuthenticationError("denied", status_code=401), False),
    (SchemaValidationError("bad record"), False),
    (RuntimeError("Validation error in payload"), False),
    (RuntimeError("unclassified"), False),
])
def test_is_retryable(engine, error, expected):
    assert engine.is_retryable(error) is expected


def test_status_code_of_reads_response_attribute():
    class Response:
        status_code = 504

    class WrappedError(Exception):
        response = Response()

    assert status_code_of(WrappedError()) == 504
    assert status_code_of(RuntimeError()) == 0


def test_format_params():
    assert format_params({"team": 33, "season": 2024}) == "team=33&season=2024"
    assert format_params(None) is None
