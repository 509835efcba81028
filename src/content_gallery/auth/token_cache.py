"""Refreshable bearer credential cache."""

import asyncio
import time
from collections.abc import Callable
from typing import Protocol

from structlog import get_logger

from content_gallery.auth.models import OAuthTokenResponse, TokenState


logger = get_logger(__name__)

# Tokens are treated as expired this many seconds early
REFRESH_MARGIN_SECONDS = 5.0


class TokenSource(Protocol):
    async def fetch_token(self) -> OAuthTokenResponse: ...


class TokenCache:
    """Holds one bearer credential and refreshes it on demand.

    Refreshes are single-flight: callers that arrive while a refresh is in
    progress wait for it and reuse its result. A failed refresh leaves the
    previous state in place so the next call tries again.
    """

    def __init__(
        self,
        source: TokenSource,
        *,
        refresh_margin: float = REFRESH_MARGIN_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._source = source
        self._refresh_margin = refresh_margin
        self._clock = clock
        self._state = TokenState()
        self._refresh_lock = asyncio.Lock()
        self.refresh_count = 0

    @property
    def state(self) -> TokenState:
        return self._state

    async def get_credential(self) -> str:
        """Return a usable ``Bearer`` credential, refreshing when needed.

        Raises:
            AuthError: If a refresh was needed and failed
        """
        state = self._state
        if state.is_fresh(self._clock(), self._refresh_margin):
            return state.value  # type: ignore[return-value]

        async with self._refresh_lock:
            # Another caller may have refreshed while we waited
            state = self._state
            if state.is_fresh(self._clock(), self._refresh_margin):
                return state.value  # type: ignore[return-value]
            return await self._refresh()

    async def _refresh(self) -> str:
        requested_at = self._clock()
        logger.debug("access_token_refresh_start", had_token=self._state.value is not None)

        token = await self._source.fetch_token()

        new_state = TokenState(
            value=f"Bearer {token.access_token}",
            expiry=requested_at + token.expires_in,
        )
        self._state = new_state
        self.refresh_count += 1
        logger.info("access_token_refreshed", expires_in=token.expires_in)
        return new_state.value  # type: ignore[return-value]

    def invalidate(self) -> None:
        """Drop the cached credential so the next call refreshes."""
        self._state = TokenState()
