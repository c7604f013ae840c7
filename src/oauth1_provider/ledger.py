"""Token ledger: the record of request and access tokens.

Every read-then-write on a request token happens under that token's lock, so
concurrent authorizations or exchanges of the same token are serialized and
exactly one of them observes the state it needs.
"""

import asyncio
import logging
import secrets
from collections.abc import Callable
from datetime import UTC, datetime

from oauth1_provider.models.tokens import AccessToken, RequestToken, TokenState

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class TokenLedger:
    """In-memory ledger of request and access tokens.

    Args:
        request_token_ttl: Seconds an unexchanged request token stays valid
        clock: Returns the current time (UTC); injectable for tests
    """

    def __init__(
        self,
        *,
        request_token_ttl: float = 600,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.request_token_ttl = request_token_ttl
        self._clock = clock
        self._request_tokens: dict[str, RequestToken] = {}
        self._access_tokens: dict[str, AccessToken] = {}
        self._locks: dict[str, asyncio.Lock] = {}

    def _lock(self, token: str) -> asyncio.Lock:
        return self._locks.setdefault(token, asyncio.Lock())

    def issue(self, consumer_key: str, callback_url: str) -> RequestToken:
        """Create and record a new ISSUED request token."""
        token = RequestToken(
            token=secrets.token_urlsafe(24),
            token_secret=secrets.token_urlsafe(32),
            consumer_key=consumer_key,
            callback_url=callback_url,
            created_at=self._clock(),
        )
        self._request_tokens[token.token] = token
        logger.debug("Recorded request token for consumer %s", consumer_key)
        return token

    def request_token(self, token: str) -> RequestToken | None:
        """Look up a request token; expired tokens read as absent."""
        record = self._request_tokens.get(token)
        if record is None:
            return None
        if record.is_expired(self.request_token_ttl, now=self._clock()):
            return None
        return record

    def access_token(self, token: str) -> AccessToken | None:
        """Look up an access token."""
        return self._access_tokens.get(token)

    async def authorize(self, token: str, user_id: str) -> RequestToken | None:
        """Move ``token`` from ISSUED to AUTHORIZED with a fresh verifier.

        Returns:
            The authorized token, or None if it is absent or not ISSUED
        """
        async with self._lock(token):
            current = self.request_token(token)
            if current is None or current.state is not TokenState.ISSUED:
                logger.debug("Request token not authorizable (state=%s)", current and current.state)
                return None
            authorized = current.authorize(user_id, secrets.token_urlsafe(16))
            self._request_tokens[token] = authorized
            logger.info("Request token authorized for user %s", user_id)
            return authorized

    async def exchange(self, request_token: RequestToken) -> AccessToken | None:
        """Move a request token from AUTHORIZED to EXCHANGED and mint its access token.

        The stored token must still be AUTHORIZED with the same verifier as
        ``request_token``; otherwise nothing changes.

        Returns:
            The new access token, or None if the exchange is not allowed
        """
        async with self._lock(request_token.token):
            current = self.request_token(request_token.token)
            if (
                current is None
                or current.state is not TokenState.AUTHORIZED
                or current.user_id is None
                or current.verifier != request_token.verifier
            ):
                logger.debug("Request token not exchangeable (state=%s)", current and current.state)
                return None

            exchanged = current.exchange()
            access = AccessToken(
                access_token=secrets.token_urlsafe(24),
                token_secret=secrets.token_urlsafe(32),
                consumer_key=current.consumer_key,
                user_id=current.user_id,
                created_at=self._clock(),
            )
            self._request_tokens[current.token] = exchanged
            self._access_tokens[access.access_token] = access
            logger.info("Access token minted for consumer %s", current.consumer_key)
            return access

    def revoke(self, access_token: str) -> bool:
        """Forget an access token. Returns False if it was unknown."""
        return self._access_tokens.pop(access_token, None) is not None

    def sweep(self) -> int:
        """Drop expired and exchanged request tokens.

        Returns:
            Number of request tokens removed
        """
        now = self._clock()
        stale = [
            token
            for token, record in self._request_tokens.items()
            if record.state is TokenState.EXCHANGED
            or record.is_expired(self.request_token_ttl, now=now)
        ]
        for token in stale:
            del self._request_tokens[token]
            lock = self._locks.get(token)
            if lock is not None and not lock.locked():
                del self._locks[token]
        return len(stale)
