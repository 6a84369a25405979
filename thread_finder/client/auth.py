"""OAuth client-credentials token handling for the Reddit API."""

import asyncio
import logging
import time
from typing import Optional

import aiohttp

from thread_finder.client.rate_limiter import RateLimiter
from thread_finder.config import Config

logger = logging.getLogger(__name__)


class TokenManager:
    """
    Lazily exchanges client credentials for an application-only bearer token.

    The token is cached in the shared RateLimitState until shortly before it
    expires. The exchange is paced by the same RateLimiter as search
    requests and is never sent during a rate-limit cooldown. Failures are
    never fatal: callers fall back to unauthenticated requests, and the
    exchange is not retried until the cooldown passes.
    """

    def __init__(self, config: Config, rate_limiter: RateLimiter):
        self.config = config
        self.rate_limiter = rate_limiter
        self.state = rate_limiter.state
        self._lock = asyncio.Lock()
        self._retry_at = 0.0

    @property
    def enabled(self) -> bool:
        return self.config.is_authenticated

    def has_valid_token(self) -> bool:
        expires_at = self.state.token_expires_at
        return bool(self.state.access_token) and expires_at is not None and time.time() < expires_at

    async def get_token(self, session: aiohttp.ClientSession) -> Optional[str]:
        """
        Return a cached or freshly fetched access token.

        Args:
            session: HTTP session used for the token request

        Returns:
            Bearer token, or None when credentials are absent or the exchange failed
        """
        if not self.enabled:
            return None
        if self.has_valid_token():
            return self.state.access_token

        async with self._lock:
            if self.has_valid_token():
                return self.state.access_token
            if time.time() < self._retry_at:
                return None
            return await self._request_token(session)

    async def _request_token(self, session: aiohttp.ClientSession) -> Optional[str]:
        if not await self.rate_limiter.pre_request(authenticated=True):
            return None

        url = f"{self.config.base_url}/api/v1/access_token"
        try:
            async with session.post(
                url,
                data={"grant_type": "client_credentials"},
                auth=aiohttp.BasicAuth(self.config.client_id, self.config.client_secret),
                headers={"User-Agent": self.config.user_agent},
            ) as response:
                if response.status == 429:
                    self.rate_limiter.record_rate_limited(response.headers.get("Retry-After"))
                    return self._fail()
                if response.status != 200:
                    logger.warning(f"OAuth token request failed ({response.status}), using unauthenticated access")
                    return self._fail()
                payload = await response.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            logger.warning(f"OAuth token request error: {e!r}, using unauthenticated access")
            return self._fail()

        token = payload.get("access_token") if isinstance(payload, dict) else None
        if not token:
            logger.warning("OAuth token response missing access_token, using unauthenticated access")
            return self._fail()

        try:
            expires_in = float(payload.get("expires_in", 3600))
        except (TypeError, ValueError):
            expires_in = 3600.0

        self.state.access_token = token
        self.state.token_expires_at = time.time() + expires_in - self.config.rate_limit.token_refresh_margin_sec
        logger.info(f"Obtained Reddit OAuth token (expires in {expires_in:.0f}s)")
        return token

    def _fail(self) -> None:
        self.state.clear_token()
        self._retry_at = time.time() + self.config.rate_limit.cooldown_sec
        return None
