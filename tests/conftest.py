"""Shared fixtures: an in-memory provider with one user and one consumer."""

from __future__ import annotations

import pytest

from oauth1_provider import (
    AuthorizationResult,
    Consumer,
    InMemoryCredentialStore,
    OAuth1Signer,
    OAuthServices,
    User,
)

SCHEME = "https"
HOST = "provider.test"
CALLBACK = "http://client/cb"


def full_url(path: str) -> str:
    return f"{SCHEME}://{HOST}{path}"


class ConsumerClient:
    """Drives an :class:`OAuthServices` the way a consumer application would."""

    def __init__(self, services: OAuthServices, consumer: Consumer) -> None:
        self.services = services
        self.consumer = consumer

    def signer(self, token: str | None = None, token_secret: str = "") -> OAuth1Signer:
        return OAuth1Signer(
            self.consumer.consumer_key,
            self.consumer.consumer_secret,
            token=token,
            token_secret=token_secret,
        )

    async def request_token(self, callback: str = CALLBACK) -> AuthorizationResult:
        path = "/oauth/request_token"
        headers = self.signer().sign_request("POST", full_url(path), callback=callback)
        return await self.services.request_token("POST", SCHEME, HOST, path, headers)

    async def access_token(
        self,
        token: str,
        token_secret: str,
        verifier: str,
    ) -> AuthorizationResult:
        path = "/oauth/access_token"
        headers = self.signer(token, token_secret).sign_request(
            "POST", full_url(path), verifier=verifier
        )
        return await self.services.access_token("POST", SCHEME, HOST, path, headers)

    def protected_headers(
        self,
        access_token: str,
        token_secret: str,
        path: str = "/api/profile",
        method: str = "GET",
    ) -> dict[str, str]:
        return self.signer(access_token, token_secret).sign_request(method, full_url(path))

    async def call_protected(
        self,
        access_token: str,
        token_secret: str,
        path: str = "/api/profile",
    ) -> AuthorizationResult:
        headers = self.protected_headers(access_token, token_secret, path)
        return await self.services.authorize("GET", SCHEME, HOST, path, headers)


@pytest.fixture
def store() -> InMemoryCredentialStore:
    """Create an empty in-memory credential store."""
    return InMemoryCredentialStore(bcrypt_rounds=4)


@pytest.fixture
def alice(store: InMemoryCredentialStore) -> User:
    """Register the demo user."""
    return store.add_user("alice", "correct-pw", user_id="user-alice")


@pytest.fixture
def consumer(store: InMemoryCredentialStore, alice: User) -> Consumer:
    """Register a consumer owned by alice."""
    return store.add_consumer(alice, consumer_key="client-key", consumer_secret="client-secret")


@pytest.fixture
def services(store: InMemoryCredentialStore) -> OAuthServices:
    """Create the provider façade over the store."""
    return OAuthServices(store)


@pytest.fixture
def client(services: OAuthServices, consumer: Consumer) -> ConsumerClient:
    """Create a consumer-side driver."""
    return ConsumerClient(services, consumer)
