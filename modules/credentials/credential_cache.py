"""
Credential Cache

Access tokens per provider, refreshed on demand. A valid cached token is read
without any locking. On a miss or an expiring token exactly one authentication
call runs per provider; every caller arriving meanwhile awaits that same call.

Adapters register a fetcher, an async callable returning (token, expires_in
seconds or None for tokens that never expire):

    cache.register("ekart", ekart.fetch_token)
    token = await cache.get_token("ekart")
"""

import asyncio
from datetime import datetime, timedelta
from typing import Awaitable, Callable, Dict, Optional, Tuple

from logger import logger
from settings import AUTH_RETRY_COUNT, TOKEN_EXPIRY_BUFFER_SECONDS

# schema
from modules.credentials.credential_schema import ProviderCredential

# utils
from utils.datetime import now_utc
from utils.exceptions import AuthenticationError, ProviderError

TokenFetcher = Callable[[], Awaitable[Tuple[str, Optional[float]]]]

# lifetime given to tokens the provider issues without an expiry
NON_EXPIRING_TTL = timedelta(days=3650)


class CredentialCache:
    def __init__(
        self,
        buffer_seconds: int = TOKEN_EXPIRY_BUFFER_SECONDS,
        retry_count: int = AUTH_RETRY_COUNT,
        clock: Callable[[], datetime] = now_utc,
    ):
        self.buffer_seconds = buffer_seconds
        self.retry_count = retry_count
        self._clock = clock
        self._fetchers: Dict[str, TokenFetcher] = {}
        self._credentials: Dict[str, ProviderCredential] = {}
        self._inflight: Dict[str, asyncio.Task] = {}

    def register(self, provider_name: str, fetcher: TokenFetcher):
        self._fetchers[provider_name] = fetcher

    def peek(self, provider_name: str) -> Optional[ProviderCredential]:
        return self._credentials.get(provider_name)

    def invalidate(self, provider_name: str):
        if self._credentials.pop(provider_name, None) is not None:
            logger.info(msg="Dropped cached token for %s" % provider_name)

    async def get_token(self, provider_name: str) -> str:
        credential = self._credentials.get(provider_name)
        if credential is not None and not credential.is_stale(
            self._clock(), self.buffer_seconds
        ):
            return credential.token

        task = self._inflight.get(provider_name)
        if task is None:
            task = asyncio.ensure_future(self._refresh(provider_name))
            self._inflight[provider_name] = task
            task.add_done_callback(
                lambda finished: self._forget_inflight(provider_name, finished)
            )

        # shielded so one cancelled waiter does not cancel the shared refresh
        credential = await asyncio.shield(task)
        return credential.token

    def _forget_inflight(self, provider_name: str, finished: asyncio.Task):
        if self._inflight.get(provider_name) is finished:
            del self._inflight[provider_name]
        # a refresh nobody awaited any more must not warn about a lost exception
        if not finished.cancelled():
            finished.exception()

    async def _refresh(self, provider_name: str) -> ProviderCredential:
        fetcher = self._fetchers.get(provider_name)
        if fetcher is None:
            raise AuthenticationError("No credential fetcher registered", provider_name)

        attempt = 0
        while True:
            try:
                logger.info(msg="Authenticating with %s" % provider_name)
                token, expires_in = await fetcher()
                break

            except ProviderError as e:
                if e.transient and attempt < self.retry_count:
                    attempt += 1
                    logger.warning(
                        msg="Transient auth failure for {}, retrying: {}".format(
                            provider_name, e
                        )
                    )
                    continue

                logger.error(
                    msg="Authentication with {} failed: {}".format(provider_name, e)
                )
                if isinstance(e, AuthenticationError):
                    raise
                raise AuthenticationError(
                    "Authentication failed: %s" % e.message,
                    provider_name,
                    status_code=e.status_code,
                    raw_response=e.raw_response,
                ) from e

        if not token:
            raise AuthenticationError("Provider returned an empty token", provider_name)

        issued_at = self._clock()
        expires_at = (
            issued_at + timedelta(seconds=float(expires_in))
            if expires_in
            else issued_at + NON_EXPIRING_TTL
        )

        credential = ProviderCredential(
            provider_name=provider_name,
            token=token,
            issued_at=issued_at,
            expires_at=expires_at,
        )
        self._credentials[provider_name] = credential

        logger.info(
            msg="Cached token for %s until %s" % (provider_name, expires_at.isoformat())
        )
        return credential
