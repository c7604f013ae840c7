"""Result models handed back to the routing layer."""

from enum import StrEnum
from typing import Any, Self

from pydantic import BaseModel, Field

from oauth1_provider.exceptions import (
    OAuthBadRequestError,
    OAuthProviderError,
    OAuthUnauthorizedError,
)


class ResultKind(StrEnum):
    """Outcome of a protocol operation."""

    OK = "Ok"
    UNAUTHORIZED = "Unauthorized"
    BAD_REQUEST = "BadRequest"
    PROVIDER_ERROR = "ProviderError"


class RequestTokenGrant(BaseModel):
    """Payload of a successful request token issuance."""

    token: str = Field(description="Request token value")
    token_secret: str = Field(description="Request token secret")
    oauth_callback_confirmed: bool = Field(default=True, description="Always true for 1.0a")


class UserGrant(BaseModel):
    """Payload of a successful user authorization."""

    token: str = Field(description="Authorized request token")
    verifier: str = Field(description="One-time verifier required at exchange time")
    callback: str = Field(description="Stored callback URL or 'oob'")


class AccessTokenGrant(BaseModel):
    """Payload of a successful access token exchange."""

    access_token: str = Field(description="Access token value")
    token_secret: str = Field(description="Access token secret")


Payload = RequestTokenGrant | UserGrant | AccessTokenGrant


class AuthorizationResult(BaseModel):
    """Either a success payload or a classified failure.

    ``kind`` is the discriminator. Failures carry an HTTP-style ``status`` and a
    ``message``; an ``OK`` result may carry no payload (the gate falls through,
    or a user authorization produced no grant).
    """

    kind: ResultKind
    status: int = 200
    message: str | None = None
    payload: Payload | None = None

    @classmethod
    def ok(cls, payload: Payload | None = None) -> Self:
        return cls(kind=ResultKind.OK, payload=payload)

    @classmethod
    def failure(cls, kind: ResultKind, status: int, message: str) -> Self:
        return cls(kind=kind, status=status, message=message)

    @classmethod
    def from_error(
        cls,
        error: OAuthUnauthorizedError | OAuthBadRequestError | OAuthProviderError,
    ) -> Self:
        """Classify a raised provider error."""
        return cls.failure(ResultKind(error.kind), error.status_code, error.message)

    @property
    def is_ok(self) -> bool:
        """Check whether the operation succeeded."""
        return self.kind is ResultKind.OK

    @property
    def is_granted(self) -> bool:
        """Check whether the operation produced token material."""
        return self.is_ok and self.payload is not None

    def wire_params(self) -> dict[str, Any]:
        """Payload as wire-level ``oauth_*`` parameters."""
        match self.payload:
            case RequestTokenGrant() as grant:
                return {
                    "oauth_token": grant.token,
                    "oauth_token_secret": grant.token_secret,
                    "oauth_callback_confirmed": grant.oauth_callback_confirmed,
                }
            case AccessTokenGrant() as grant:
                return {
                    "oauth_token": grant.access_token,
                    "oauth_token_secret": grant.token_secret,
                }
            case UserGrant() as grant:
                return {"oauth_token": grant.token, "oauth_verifier": grant.verifier}
            case _:
                return {}
