"""Pydantic models for the OAuth 1.0a provider."""

from oauth1_provider.models.requests import OAuthRequest, SignatureMaterials
from oauth1_provider.models.results import (
    AccessTokenGrant,
    AuthorizationResult,
    RequestTokenGrant,
    ResultKind,
    UserGrant,
)
from oauth1_provider.models.tokens import (
    OUT_OF_BAND,
    AccessToken,
    Consumer,
    RequestToken,
    TokenState,
    User,
)

__all__ = [
    "OUT_OF_BAND",
    # Credentials
    "AccessToken",
    "Consumer",
    "RequestToken",
    "TokenState",
    "User",
    # Requests
    "OAuthRequest",
    "SignatureMaterials",
    # Results
    "AccessTokenGrant",
    "AuthorizationResult",
    "RequestTokenGrant",
    "ResultKind",
    "UserGrant",
]
