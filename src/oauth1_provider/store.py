"""Credential store capability contract and an in-memory implementation.

The provider core never persists or hashes credentials itself; it calls into a
:class:`CredentialStore`. Any object offering every capability listed in
:data:`REQUIRED_CAPABILITIES` can be used. Missing capabilities are reported
when the provider is constructed, not at first call.
"""

import logging
import secrets
import time
from collections.abc import Awaitable, Callable
from typing import Protocol, TypeVar, runtime_checkable

import bcrypt

from oauth1_provider import signature
from oauth1_provider.exceptions import (
    CredentialStoreConfigError,
    OAuthError,
    OAuthProviderError,
)
from oauth1_provider.ledger import TokenLedger
from oauth1_provider.models.requests import SignatureMaterials
from oauth1_provider.models.tokens import (
    OUT_OF_BAND,
    AccessToken,
    Consumer,
    RequestToken,
    User,
)

logger = logging.getLogger(__name__)

REQUIRED_CAPABILITIES = (
    "previous_request_token",
    "token_by_consumer",
    "user_by_consumer_key",
    "valid_token",
    "authenticate_user",
    "generate_request_token",
    "authorize_request_token",
    "generate_access_token",
    "clean_request_tokens",
)


@runtime_checkable
class CredentialStore(Protocol):
    """Persistence and validity checks the provider core depends on.

    Transitions (``authorize_request_token``, ``generate_access_token``) must be
    atomic per token: read state and write state in one indivisible step.
    """

    async def previous_request_token(self, token: str) -> RequestToken | None:
        """Return the request token with identifier *token*, or None if absent or expired."""
        ...

    async def token_by_consumer(self, consumer_key: str) -> Consumer | None:
        """Return the active consumer for *consumer_key*, or None."""
        ...

    async def user_by_consumer_key(self, consumer_key: str) -> User | None:
        """Return the user owning the consumer, or None if the consumer is revoked."""
        ...

    async def valid_token(
        self,
        access_token: str,
        consumer_key: str,
        materials: SignatureMaterials,
    ) -> bool:
        """Check an access-token-signed request, including nonce/timestamp replay."""
        ...

    async def authenticate_user(self, username: str, password: str) -> User | None:
        """Resolve a user from credentials."""
        ...

    async def generate_request_token(self, consumer: Consumer, callback: str) -> RequestToken:
        """Create an ISSUED request token bound to *consumer* and *callback*."""
        ...

    async def authorize_request_token(
        self,
        request_token: RequestToken,
        user: User,
    ) -> RequestToken | None:
        """ISSUED -> AUTHORIZED with a verifier; None if the token is no longer ISSUED."""
        ...

    async def generate_access_token(self, request_token: RequestToken) -> AccessToken | None:
        """AUTHORIZED -> EXCHANGED and mint; None if the token is no longer AUTHORIZED."""
        ...

    async def clean_request_tokens(self) -> int:
        """Retention sweep. Returns the number of request tokens removed."""
        ...


def ensure_capabilities(store: object) -> None:
    """Fail fast if *store* lacks any credential store capability.

    Raises:
        CredentialStoreConfigError: Listing every missing capability
    """
    missing = [name for name in REQUIRED_CAPABILITIES if not callable(getattr(store, name, None))]
    if missing:
        msg = f"Credential store {type(store).__name__} is missing: {', '.join(missing)}"
        raise CredentialStoreConfigError(msg, missing=missing)


T = TypeVar("T")


async def call_store(operation: str, pending: Awaitable[T]) -> T:
    """Await a credential store call, classifying unexpected failures.

    Provider errors raised by the store pass through unchanged; anything else
    becomes :class:`OAuthProviderError`.
    """
    try:
        return await pending
    except OAuthError:
        raise
    except Exception as e:
        logger.exception("Credential store failed during %s", operation)
        msg = f"Credential store failure during {operation}"
        raise OAuthProviderError(msg) from e


# bcrypt only reads the first 72 bytes of a password.
BCRYPT_MAX_PASSWORD_BYTES = 72


def _password_bytes(password: str) -> bytes:
    return password.encode("utf-8")[:BCRYPT_MAX_PASSWORD_BYTES]


def hash_password(password: str, *, rounds: int = 12) -> bytes:
    """Hash a password with bcrypt; the salt is embedded in the result."""
    return bcrypt.hashpw(_password_bytes(password), bcrypt.gensalt(rounds=rounds))


def check_password(password: str, password_hash: bytes) -> bool:
    """Check a password against a bcrypt hash."""
    return bcrypt.checkpw(_password_bytes(password), password_hash)


class InMemoryCredentialStore:
    """Credential store kept in process memory.

    Suitable for tests, demos and single-process deployments. Tokens live in a
    :class:`TokenLedger`; consumers and users are registered with
    :meth:`add_consumer` and :meth:`add_user`.

    Args:
        ledger: Token ledger to use (a fresh one by default)
        timestamp_skew: Seconds a signed timestamp may differ from the clock
        time_source: Returns the current Unix time; injectable for tests
        bcrypt_rounds: Work factor for stored password hashes
    """

    def __init__(
        self,
        ledger: TokenLedger | None = None,
        *,
        timestamp_skew: int = 300,
        time_source: Callable[[], float] = time.time,
        bcrypt_rounds: int = 12,
    ) -> None:
        self.ledger = ledger or TokenLedger()
        self.timestamp_skew = timestamp_skew
        self._time = time_source
        self._bcrypt_rounds = bcrypt_rounds
        self._consumers: dict[str, Consumer] = {}
        self._users: dict[str, tuple[User, bytes]] = {}  # username -> (user, bcrypt hash)
        self._users_by_id: dict[str, User] = {}
        self._nonces: dict[tuple[str, str, int], float] = {}

    # Registration (outside the provider core)

    def add_user(self, username: str, password: str, *, user_id: str | None = None) -> User:
        """Register a user with a hashed password."""
        user = User(user_id=user_id or secrets.token_hex(8), username=username)
        self._users[username] = (user, hash_password(password, rounds=self._bcrypt_rounds))
        self._users_by_id[user.user_id] = user
        return user

    def add_consumer(
        self,
        owner: User,
        *,
        consumer_key: str | None = None,
        consumer_secret: str | None = None,
    ) -> Consumer:
        """Register a consumer owned by *owner*."""
        consumer = Consumer(
            consumer_key=consumer_key or secrets.token_urlsafe(16),
            consumer_secret=consumer_secret or secrets.token_urlsafe(32),
            owner_id=owner.user_id,
        )
        self._consumers[consumer.consumer_key] = consumer
        return consumer

    def revoke_consumer(self, consumer_key: str) -> None:
        """Mark a consumer inactive."""
        consumer = self._consumers.get(consumer_key)
        if consumer is not None:
            self._consumers[consumer_key] = consumer.model_copy(update={"active": False})

    def revoke_access_token(self, access_token: str) -> bool:
        """Revoke an access token. Returns False if it was unknown."""
        return self.ledger.revoke(access_token)

    # Capabilities

    async def previous_request_token(self, token: str) -> RequestToken | None:
        return self.ledger.request_token(token)

    async def token_by_consumer(self, consumer_key: str) -> Consumer | None:
        consumer = self._consumers.get(consumer_key)
        if consumer is None or not consumer.active:
            return None
        return consumer

    async def user_by_consumer_key(self, consumer_key: str) -> User | None:
        consumer = await self.token_by_consumer(consumer_key)
        if consumer is None or consumer.owner_id is None:
            return None
        return self._users_by_id.get(consumer.owner_id)

    async def valid_token(
        self,
        access_token: str,
        consumer_key: str,
        materials: SignatureMaterials,
    ) -> bool:
        consumer = await self.token_by_consumer(consumer_key)
        token = self.ledger.access_token(access_token)
        if consumer is None or token is None or token.consumer_key != consumer_key:
            return False

        if abs(self._time() - materials.timestamp) > self.timestamp_skew:
            logger.debug("Timestamp %s outside allowed skew", materials.timestamp)
            return False

        nonce_key = (consumer_key, materials.nonce, materials.timestamp)
        if nonce_key in self._nonces:
            logger.warning("Replayed nonce for consumer %s", consumer_key)
            return False

        if not signature.verify(materials, consumer.consumer_secret, token.token_secret):
            return False

        self._nonces[nonce_key] = self._time()
        return True

    async def authenticate_user(self, username: str, password: str) -> User | None:
        entry = self._users.get(username)
        if entry is None:
            return None
        user, password_hash = entry
        if not check_password(password, password_hash):
            return None
        return user

    async def generate_request_token(self, consumer: Consumer, callback: str) -> RequestToken:
        return self.ledger.issue(consumer.consumer_key, callback or OUT_OF_BAND)

    async def authorize_request_token(
        self,
        request_token: RequestToken,
        user: User,
    ) -> RequestToken | None:
        return await self.ledger.authorize(request_token.token, user.user_id)

    async def generate_access_token(self, request_token: RequestToken) -> AccessToken | None:
        return await self.ledger.exchange(request_token)

    async def clean_request_tokens(self) -> int:
        removed = self.ledger.sweep()
        cutoff = self._time() - self.timestamp_skew
        self._nonces = {
            key: seen for key, seen in self._nonces.items() if key[2] >= cutoff
        }
        logger.debug("Swept %d request tokens", removed)
        return removed
