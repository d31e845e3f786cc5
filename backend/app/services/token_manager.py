"""OAuth2 client-credentials token manager with single-flight refresh."""

import asyncio
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass

import httpx

from app.services.exceptions import AuthenticationError

logger = logging.getLogger(__name__)

TOKEN_PATH = "/v1/security/oauth2/token"


@dataclass(frozen=True)
class Credential:
    access_token: str
    expires_at: float

    def expires_within(self, now: float, margin: float) -> bool:
        return self.expires_at - now <= margin


class TokenManager:
    """Obtains and caches a bearer token, refreshing it before it expires.

    Concurrent callers that arrive while a refresh is running share the same
    in-flight request, so a burst of searches triggers one token exchange.
    Failures are raised as AuthenticationError and never retried here.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        client_id: str,
        client_secret: str,
        *,
        token_url: str = TOKEN_PATH,
        refresh_margin_s: float = 60.0,
        clock: Callable[[], float] = time.time,
    ):
        self._http = http_client
        self._client_id = client_id
        self._client_secret = client_secret
        self._token_url = token_url
        self._margin = refresh_margin_s
        self._clock = clock
        self._credential: Credential | None = None
        self._refresh_task: asyncio.Task | None = None

    @property
    def credential(self) -> Credential | None:
        return self._credential

    async def get_token(self) -> Credential:
        """Return a valid credential, exchanging client credentials when needed."""
        current = self._credential
        if current is not None and not current.expires_within(self._clock(), self._margin):
            return current

        if self._refresh_task is None:
            self._refresh_task = asyncio.ensure_future(self._refresh())
            self._refresh_task.add_done_callback(self._clear_refresh_task)
        # Shield so one cancelled waiter does not cancel the refresh for the rest.
        return await asyncio.shield(self._refresh_task)

    def invalidate(self) -> None:
        """Drop the cached credential; the next get_token() performs an exchange."""
        self._credential = None

    def _clear_refresh_task(self, task: asyncio.Task) -> None:
        if self._refresh_task is task:
            self._refresh_task = None
        if not task.cancelled():
            # Mark the exception retrieved; waiters re-raise it themselves.
            task.exception()

    async def _refresh(self) -> Credential:
        logger.info("Amadeus token missing or expiring, fetching a new one")
        try:
            resp = await self._http.post(
                self._token_url,
                data={
                    "grant_type": "client_credentials",
                    "client_id": self._client_id,
                    "client_secret": self._client_secret,
                },
                headers={"Content-Type": "application/x-www-form-urlencoded"},
            )
        except httpx.RequestError as e:
            logger.error(f"Amadeus token request failed: {e}")
            raise AuthenticationError(f"Token request failed: {e}") from e

        if resp.status_code != 200:
            logger.error(f"Amadeus token rejected: {resp.status_code} {resp.text[:200]}")
            raise AuthenticationError(
                f"Token request rejected with HTTP {resp.status_code}",
                status_code=resp.status_code,
                detail=resp.text[:200],
            )

        try:
            data = resp.json()
            token = data["access_token"]
            expires_in = float(data.get("expires_in", 1799))
        except (ValueError, KeyError, TypeError) as e:
            raise AuthenticationError("Malformed token response") from e

        credential = Credential(access_token=token, expires_at=self._clock() + expires_in)
        self._credential = credential
        logger.info(f"Amadeus token refreshed, valid for {int(expires_in)}s")
        return credential
