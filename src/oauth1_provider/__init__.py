"""OAuth 1.0a provider core.

Issues request and access tokens, drives the three-legged authorization
handshake and gates protected endpoints by verifying signed requests.

Example:
    from oauth1_provider import InMemoryCredentialStore, OAuthServices

    store = InMemoryCredentialStore()
    alice = store.add_user("alice", "correct-pw")
    consumer = store.add_consumer(alice)

    services = OAuthServices(store)

    # Routing layer: POST /oauth/request_token
    result = await services.request_token(method, scheme, host, url, headers, params)
    if result.is_ok:
        respond(200, encode_result(result))
    else:
        respond(result.status, result.message)

    # Protected endpoint
    @services.protect
    async def profile(request: OAuthRequest) -> dict[str, str]:
        ...
"""

from oauth1_provider.config import ProviderConfig
from oauth1_provider.consumer import OAuth1Auth, OAuth1Signer
from oauth1_provider.exceptions import (
    CredentialStoreConfigError,
    OAuthBadRequestError,
    OAuthError,
    OAuthProviderError,
    OAuthUnauthorizedError,
    ProviderConfigError,
    TokenStateError,
)
from oauth1_provider.ledger import TokenLedger
from oauth1_provider.models import (
    AccessToken,
    AccessTokenGrant,
    AuthorizationResult,
    Consumer,
    OAuthRequest,
    RequestToken,
    RequestTokenGrant,
    ResultKind,
    TokenState,
    User,
    UserGrant,
)
from oauth1_provider.services import OAuthServices
from oauth1_provider.store import CredentialStore, InMemoryCredentialStore
from oauth1_provider.wire import authorization_redirect, encode_result

__version__ = "0.1.0"

__all__ = [
    # Façade
    "OAuthServices",
    "ProviderConfig",
    # Credential store
    "CredentialStore",
    "InMemoryCredentialStore",
    "TokenLedger",
    # Models
    "AccessToken",
    "AccessTokenGrant",
    "AuthorizationResult",
    "Consumer",
    "OAuthRequest",
    "RequestToken",
    "RequestTokenGrant",
    "ResultKind",
    "TokenState",
    "User",
    "UserGrant",
    # Wire
    "authorization_redirect",
    "encode_result",
    # Consumer side
    "OAuth1Auth",
    "OAuth1Signer",
    # Exceptions
    "CredentialStoreConfigError",
    "OAuthBadRequestError",
    "OAuthError",
    "OAuthProviderError",
    "OAuthUnauthorizedError",
    "ProviderConfigError",
    "TokenStateError",
]
