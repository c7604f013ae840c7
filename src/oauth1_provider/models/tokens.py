"""Consumer, user and token models, plus the request token state machine."""

from datetime import UTC, datetime
from enum import StrEnum
from typing import Any, Self

from pydantic import BaseModel, ConfigDict, Field

from oauth1_provider.exceptions import TokenStateError

OUT_OF_BAND = "oob"


def _utcnow() -> datetime:
    return datetime.now(UTC)


class TokenState(StrEnum):
    """Lifecycle of a request token."""

    ISSUED = "ISSUED"
    AUTHORIZED = "AUTHORIZED"
    EXCHANGED = "EXCHANGED"


# Forward only; EXCHANGED is terminal.
TRANSITIONS: dict[TokenState, frozenset[TokenState]] = {
    TokenState.ISSUED: frozenset({TokenState.AUTHORIZED}),
    TokenState.AUTHORIZED: frozenset({TokenState.EXCHANGED}),
    TokenState.EXCHANGED: frozenset(),
}


def can_transition(source: TokenState, target: TokenState) -> bool:
    """Check whether ``source -> target`` is a legal request token transition."""
    return target in TRANSITIONS[source]


class Consumer(BaseModel):
    """Registered client application."""

    model_config = ConfigDict(frozen=True)

    consumer_key: str = Field(description="Public consumer identifier")
    consumer_secret: str = Field(description="Shared signing secret", repr=False)
    owner_id: str | None = Field(default=None, description="User that registered the consumer")
    active: bool = Field(default=True, description="False once the consumer is revoked")


class User(BaseModel):
    """End user resolved by the credential store."""

    model_config = ConfigDict(frozen=True)

    user_id: str = Field(description="Opaque user identity")
    username: str = Field(description="Login name")


class RequestToken(BaseModel):
    """Short-lived credential carrying a user through the handshake."""

    model_config = ConfigDict(frozen=True)

    token: str = Field(description="Request token value")
    token_secret: str = Field(description="Request token secret", repr=False)
    consumer_key: str = Field(description="Consumer the token was issued to")
    callback_url: str = Field(default=OUT_OF_BAND, description="Redirect URL or 'oob'")
    state: TokenState = Field(default=TokenState.ISSUED)
    created_at: datetime = Field(default_factory=_utcnow)
    user_id: str | None = Field(default=None, description="Set once authorized")
    verifier: str | None = Field(default=None, description="Set once authorized", repr=False)

    def advance(self, target: TokenState, **changes: Any) -> Self:
        """Return a copy moved to ``target``.

        Raises:
            TokenStateError: If the transition is not allowed from the current state.
        """
        if not can_transition(self.state, target):
            raise TokenStateError(
                f"Request token cannot move from {self.state} to {target}",
                token=self.token,
                state=self.state,
                target=target,
            )
        return self.model_copy(update={**changes, "state": target})

    def authorize(self, user_id: str, verifier: str) -> Self:
        """ISSUED -> AUTHORIZED, binding the user and verifier."""
        return self.advance(TokenState.AUTHORIZED, user_id=user_id, verifier=verifier)

    def exchange(self) -> Self:
        """AUTHORIZED -> EXCHANGED."""
        return self.advance(TokenState.EXCHANGED)

    def is_expired(self, ttl_seconds: float, *, now: datetime | None = None) -> bool:
        """Check whether the token outlived its time to live."""
        now = now or _utcnow()
        return (now - self.created_at).total_seconds() > ttl_seconds

    @property
    def is_out_of_band(self) -> bool:
        return self.callback_url == OUT_OF_BAND


class AccessToken(BaseModel):
    """Long-lived credential minted from an exchanged request token."""

    model_config = ConfigDict(frozen=True)

    access_token: str = Field(description="Access token value")
    token_secret: str = Field(description="Access token secret", repr=False)
    consumer_key: str = Field(description="Consumer the token was issued to")
    user_id: str = Field(description="User the consumer acts on behalf of")
    created_at: datetime = Field(default_factory=_utcnow)
