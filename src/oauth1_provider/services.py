"""OAuth 1.0a protocol operations exposed to a routing layer.

Construct one :class:`OAuthServices` with its credential store and hand it to
whatever registers routes. Every operation returns an
:class:`~oauth1_provider.models.results.AuthorizationResult`; classified
failures never escape as exceptions.

Example:
    store = InMemoryCredentialStore()
    services = OAuthServices(store)

    result = await services.request_token("POST", "https", host, url, headers, params)
    if result.is_ok:
        body = encode_result(result)
"""

import hmac
import inspect
import logging
from collections.abc import Awaitable, Callable
from functools import wraps
from typing import Any, Concatenate, ParamSpec, TypeVar
from urllib.parse import urlsplit

from pydantic import ValidationError

from oauth1_provider import signature
from oauth1_provider.config import ProviderConfig
from oauth1_provider.exceptions import (
    CLASSIFIED_ERRORS,
    OAuthBadRequestError,
    OAuthError,
    OAuthUnauthorizedError,
)
from oauth1_provider.gate import RequestAuthorizationGate
from oauth1_provider.models.requests import OAuthRequest
from oauth1_provider.models.results import (
    AccessTokenGrant,
    AuthorizationResult,
    RequestTokenGrant,
    UserGrant,
)
from oauth1_provider.models.tokens import OUT_OF_BAND, TokenState
from oauth1_provider.store import CredentialStore, call_store, ensure_capabilities

logger = logging.getLogger(__name__)

P = ParamSpec("P")
R = TypeVar("R")

ResultCallback = Callable[[AuthorizationResult], Any]
Handler = Callable[[OAuthRequest], Awaitable[AuthorizationResult]]


def _check_callback_url(callback: str) -> str:
    if callback == OUT_OF_BAND:
        return callback
    parts = urlsplit(callback)
    if parts.scheme.lower() not in ("http", "https") or not parts.netloc:
        raise OAuthBadRequestError(
            "oauth_callback must be an absolute URL or 'oob'",
            parameter="oauth_callback",
        )
    return callback


def _build_request(
    method: str,
    scheme: str,
    host: str,
    url: str,
    headers: dict[str, str] | None,
    params: dict[str, str | list[str]] | None,
) -> OAuthRequest:
    """Validate what the routing layer handed over.

    Raises:
        OAuthBadRequestError: Naming the first malformed field (missing host, non-string params)
    """
    try:
        return OAuthRequest(
            method=method,
            scheme=scheme,
            host=host,
            url=url,
            headers=headers or {},
            params=params or {},
        )
    except ValidationError as e:
        field = str(e.errors()[0]["loc"][0])
        raise OAuthBadRequestError(f"Malformed request: {field}", parameter=field) from None


class OAuthServices:
    """The provider's protocol façade.

    Args:
        store: Credential store; every capability is checked here
        config: Provider configuration (defaults apply when omitted)

    Raises:
        CredentialStoreConfigError: If the store is missing a capability
    """

    def __init__(self, store: CredentialStore, config: ProviderConfig | None = None) -> None:
        ensure_capabilities(store)
        self.store = store
        self.config = config or ProviderConfig()
        self.gate = RequestAuthorizationGate(store, self.config)

        # Protected requests are checked by the store's own window, token endpoints by ours.
        store_skew = getattr(store, "timestamp_skew", None)
        if store_skew is not None and store_skew != self.config.timestamp_skew:
            logger.warning(
                "Credential store timestamp_skew (%s) differs from provider timestamp_skew (%s)",
                store_skew,
                self.config.timestamp_skew,
            )

    async def _respond(
        self,
        operation: str,
        handler: Handler,
        callback: ResultCallback | None,
        **fields: Any,
    ) -> AuthorizationResult:
        try:
            result = await handler(_build_request(**fields))
        except CLASSIFIED_ERRORS as e:
            logger.warning("%s rejected (%s): %s", operation, e.kind, e.message)
            result = AuthorizationResult.from_error(e)

        return await self._deliver(result, callback)

    @staticmethod
    async def _deliver(
        result: AuthorizationResult,
        callback: ResultCallback | None,
    ) -> AuthorizationResult:
        if callback is not None:
            outcome = callback(result)
            if inspect.isawaitable(outcome):
                await outcome
        return result

    # Request token issuance

    async def request_token(
        self,
        method: str,
        scheme: str,
        host: str,
        url: str,
        headers: dict[str, str] | None = None,
        params: dict[str, str | list[str]] | None = None,
        *,
        callback: ResultCallback | None = None,
    ) -> AuthorizationResult:
        """Issue a request token to a consumer-signed request.

        Success payload: :class:`RequestTokenGrant`.
        """
        return await self._respond(
            "request_token",
            self._request_token,
            callback,
            method=method,
            scheme=scheme,
            host=host,
            url=url,
            headers=headers,
            params=params,
        )

    async def _request_token(self, request: OAuthRequest) -> AuthorizationResult:
        signed = self.gate.parse(request, "oauth_callback")
        callback_url = _check_callback_url(signed.oauth["oauth_callback"])
        self.gate.check_timestamp(signed)

        consumer = await call_store(
            "request_token", self.store.token_by_consumer(signed.consumer_key)
        )
        if consumer is None:
            raise OAuthUnauthorizedError("Unknown consumer")

        owner = await call_store(
            "request_token", self.store.user_by_consumer_key(consumer.consumer_key)
        )
        if owner is None:
            raise OAuthUnauthorizedError("Consumer has been revoked")

        if not signature.verify(signed.materials, consumer.consumer_secret):
            raise OAuthUnauthorizedError("Invalid signature")

        token = await call_store(
            "request_token", self.store.generate_request_token(consumer, callback_url)
        )
        logger.info("Issued request token to consumer %s", consumer.consumer_key)
        return AuthorizationResult.ok(
            RequestTokenGrant(token=token.token, token_secret=token.token_secret)
        )

    # User authorization

    async def authenticate_user(
        self,
        username: str,
        password: str,
        request_token: str,
        *,
        callback: ResultCallback | None = None,
    ) -> AuthorizationResult:
        """Bind an ISSUED request token to the user behind ``username``/``password``.

        This path ends in a form, not a machine client: every failure (bad
        credentials, unknown token, token already authorized or exchanged,
        store failure) yields an OK result without a grant.

        Success payload: :class:`UserGrant`.
        """
        try:
            grant = await self._authenticate_user(username, password, request_token)
        except OAuthError as e:
            logger.warning("User authorization failed: %s", e.message)
            grant = None
        return await self._deliver(AuthorizationResult.ok(grant), callback)

    async def _authenticate_user(
        self,
        username: str,
        password: str,
        request_token: str,
    ) -> UserGrant | None:
        if not username or not password or not request_token:
            return None

        user = await call_store(
            "authenticate_user", self.store.authenticate_user(username, password)
        )
        if user is None:
            logger.warning("Invalid credentials for user %s", username)
            return None

        token = await call_store(
            "authenticate_user", self.store.previous_request_token(request_token)
        )
        if token is None or token.state is not TokenState.ISSUED:
            logger.warning("Request token unknown or already authorized")
            return None

        authorized = await call_store(
            "authenticate_user", self.store.authorize_request_token(token, user)
        )
        if authorized is None or authorized.verifier is None:
            logger.warning("Request token was authorized concurrently")
            return None

        return UserGrant(
            token=authorized.token,
            verifier=authorized.verifier,
            callback=authorized.callback_url or OUT_OF_BAND,
        )

    # Access token exchange

    async def access_token(
        self,
        method: str,
        scheme: str,
        host: str,
        url: str,
        headers: dict[str, str] | None = None,
        params: dict[str, str | list[str]] | None = None,
        *,
        callback: ResultCallback | None = None,
    ) -> AuthorizationResult:
        """Exchange an AUTHORIZED request token and its verifier for an access token.

        Success payload: :class:`AccessTokenGrant`.
        """
        return await self._respond(
            "access_token",
            self._access_token,
            callback,
            method=method,
            scheme=scheme,
            host=host,
            url=url,
            headers=headers,
            params=params,
        )

    async def _access_token(self, request: OAuthRequest) -> AuthorizationResult:
        signed = self.gate.parse(request, "oauth_token", "oauth_verifier")
        self.gate.check_timestamp(signed)

        consumer = await call_store(
            "access_token", self.store.token_by_consumer(signed.consumer_key)
        )
        if consumer is None:
            raise OAuthUnauthorizedError("Unknown consumer")

        token = await call_store(
            "access_token", self.store.previous_request_token(signed.token)
        )
        if token is None or token.consumer_key != consumer.consumer_key:
            raise OAuthUnauthorizedError("Unknown request token")

        if not signature.verify(signed.materials, consumer.consumer_secret, token.token_secret):
            raise OAuthUnauthorizedError("Invalid signature")

        if token.state is not TokenState.AUTHORIZED:
            raise OAuthUnauthorizedError(f"Request token is {token.state}, not AUTHORIZED")

        verifier = signed.oauth["oauth_verifier"]
        if token.verifier is None or not hmac.compare_digest(
            token.verifier.encode(), verifier.encode()
        ):
            raise OAuthUnauthorizedError("Invalid verifier")

        access = await call_store("access_token", self.store.generate_access_token(token))
        if access is None:
            raise OAuthUnauthorizedError("Request token has already been exchanged")

        logger.info("Exchanged request token for consumer %s", consumer.consumer_key)
        return AuthorizationResult.ok(
            AccessTokenGrant(access_token=access.access_token, token_secret=access.token_secret)
        )

    # Protected resources

    async def authorize(
        self,
        method: str,
        scheme: str,
        host: str,
        url: str,
        headers: dict[str, str] | None = None,
        params: dict[str, str | list[str]] | None = None,
        *,
        callback: ResultCallback | None = None,
    ) -> AuthorizationResult:
        """Gate a request for a protected endpoint.

        An OK result carries no payload: the caller lets the request through.
        Anything else must short-circuit the request.
        """
        return await self._respond(
            "authorize",
            self._authorize,
            callback,
            method=method,
            scheme=scheme,
            host=host,
            url=url,
            headers=headers,
            params=params,
        )

    async def _authorize(self, request: OAuthRequest) -> AuthorizationResult:
        await self.gate.authorize(request)
        return AuthorizationResult.ok()

    def protect(
        self,
        handler: Callable[Concatenate[OAuthRequest, P], Awaitable[R]],
    ) -> Callable[Concatenate[OAuthRequest, P], Awaitable[R | AuthorizationResult]]:
        """Decorator gating a protected handler.

        The handler runs only when :meth:`authorize` succeeds; otherwise the
        failure result is returned and the handler is never invoked.

        Usage:
            @services.protect
            async def profile(request: OAuthRequest) -> dict[str, str]:
                ...
        """

        @wraps(handler)
        async def wrapper(
            request: OAuthRequest, *args: P.args, **kwargs: P.kwargs
        ) -> R | AuthorizationResult:
            result = await self.authorize(
                request.method,
                request.scheme,
                request.host,
                request.url,
                request.headers,
                request.params,
            )
            if not result.is_ok:
                return result
            return await handler(request, *args, **kwargs)

        return wrapper

    # Maintenance

    async def clean_request_tokens(self) -> int:
        """Run the credential store's retention sweep.

        Raises:
            OAuthProviderError: If the store fails
        """
        removed = await call_store("clean_request_tokens", self.store.clean_request_tokens())
        logger.info("Removed %d stale request tokens", removed)
        return removed
