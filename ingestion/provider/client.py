"""
HTTP client for the API-Football v3 provider.

One method per endpoint; each returns the parsed ``ApiEnvelope``. The client
maps transport and HTTP failures onto the exception hierarchy in
``core.exceptions`` and otherwise stays dumb: it never retries, never
sleeps and never consults the daily quota. Those concerns belong to the
RetryEngine and RateGovernor that wrap every call.
"""

import httpx
from typing import Any, Dict, Optional
from pydantic import ValidationError
from core.exceptions import (
    AuthenticationError,
    NetworkError,
    ProviderApplicationError,
    ProviderHTTPError,
    ProviderResponseError,
    ProviderServerError,
    RateLimitError,
    ResourceNotFoundError,
)
from schemas.provider import ApiEnvelope
import logging

logger = logging.getLogger(__name__)

API_KEY_HEADER = "x-apisports-key"

TOP_PLAYER_ENDPOINTS = {
    "topscorers": "/players/topscorers",
    "topassists": "/players/topassists",
    "topyellowcards": "/players/topyellowcards",
    "topredcards": "/players/topredcards",
}


class FootballApiClient:
    """
    Async API-Football client.

    Attributes:
        base_url: Provider root, e.g. https://v3.football.api-sports.io
        api_key: Value for the ``x-apisports-key`` header
        timeout: Per-request timeout in seconds
    """

    def __init__(
        self,
        base_url: str,
        api_key: Optional[str],
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout

        headers = {"Accept": "application/json"}
        if api_key:
            headers[API_KEY_HEADER] = api_key

        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers=headers,
            timeout=timeout,
            transport=transport
        )

    async def aclose(self):
        await self._client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.aclose()

    async def _get(self, path: str, params: Dict[str, Any]) -> ApiEnvelope:
        """
        Perform a GET and decode the envelope.

        Raises:
            NetworkError: Timeout or transport failure (retryable)
            ProviderServerError: HTTP 5xx (retryable)
            RateLimitError / AuthenticationError / ResourceNotFoundError /
            ProviderHTTPError: Other HTTP >= 400
            ProviderResponseError: Body is not a JSON envelope
            ProviderApplicationError: Envelope carries ``errors``
        """
        query = {k: v for k, v in params.items() if v is not None}
        logger.debug(f"Making request to: {self.base_url}{path} params={query}")

        try:
            response = await self._client.get(path, params=query)
        except httpx.TimeoutException as e:
            raise NetworkError(
                f"Request timeout for {path}",
                context={"resource": path, "timeout": self.timeout},
                original_exception=e
            )
        except httpx.TransportError as e:
            raise NetworkError(
                f"Network error for {path}",
                context={"resource": path},
                original_exception=e
            )

        status = response.status_code
        if status >= 400:
            context = {"resource": path, "response_body": response.text[:500]}

            if status == 429:
                retry_after = response.headers.get("Retry-After")
                raise RateLimitError(
                    f"Rate limit exceeded for {path}",
                    context=context,
                    retry_after=int(retry_after) if retry_after and retry_after.isdigit() else None
                )
            if status in (401, 403):
                raise AuthenticationError(
                    f"Authentication failed for {path}", context=context, status_code=status
                )
            if status == 404:
                raise ResourceNotFoundError(
                    f"Resource not found: {path}", context=context, status_code=status
                )
            if status >= 500:
                raise ProviderServerError(
                    f"Server error {status} for {path}", context=context, status_code=status
                )
            raise ProviderHTTPError(
                f"HTTP {status} for {path}", context=context, status_code=status
            )

        try:
            envelope = ApiEnvelope.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            raise ProviderResponseError(
                f"Failed to parse response for {path}",
                context={"resource": path, "response_body": response.text[:500]},
                original_exception=e,
                status_code=status
            )

        if envelope.has_errors():
            raise ProviderApplicationError(
                f"Provider reported errors for {path}: {envelope.errors}",
                context={"resource": path, "errors": envelope.errors},
                status_code=status
            )

        return envelope

    # ------------------------------------------------------------------
    # Endpoints
    # ------------------------------------------------------------------

    async def get_leagues(self, id: Optional[int] = None, current: Optional[bool] = None) -> ApiEnvelope:
        params = {"id": id}
        if current is not None:
            params["current"] = "true" if current else "false"
        return await self._get("/leagues", params)

    async def get_teams(self, league: int, season: int) -> ApiEnvelope:
        return await self._get("/teams", {"league": league, "season": season})

    async def get_squad(self, team: int) -> ApiEnvelope:
        return await self._get("/players/squads", {"team": team})

    async def get_players(self, id: int, season: int) -> ApiEnvelope:
        return await self._get("/players", {"id": id, "season": season})

    async def get_team_statistics(self, team: int, league: int, season: int) -> ApiEnvelope:
        return await self._get("/teams/statistics", {"team": team, "league": league, "season": season})

    async def get_top_players(self, category: str, league: int, season: int) -> ApiEnvelope:
        """Ranked list; category is one of topscorers/topassists/topyellowcards/topredcards."""
        path = TOP_PLAYER_ENDPOINTS.get(category)
        if path is None:
            raise ValueError(f"Unknown top players category: {category}")
        return await self._get(path, {"league": league, "season": season})
