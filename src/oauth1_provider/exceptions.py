"""Typed exceptions for the OAuth 1.0a provider core."""


class OAuthError(Exception):
    """Base exception for all provider errors."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class OAuthUnauthorizedError(OAuthError):
    """Signature invalid, consumer/token unknown, token in the wrong state, or replay."""

    kind = "Unauthorized"
    status_code = 401


class OAuthBadRequestError(OAuthError):
    """Missing or malformed protocol parameters."""

    kind = "BadRequest"
    status_code = 400

    def __init__(self, message: str, *, parameter: str | None = None) -> None:
        self.parameter = parameter  # e.g., "oauth_consumer_key"
        super().__init__(message)


class OAuthProviderError(OAuthError):
    """Credential store failure (storage unavailable, unexpected exception)."""

    kind = "ProviderError"
    status_code = 500


class TokenStateError(OAuthUnauthorizedError):
    """A request token was asked to make a transition its state does not allow."""

    def __init__(self, message: str, *, token: str, state: str, target: str) -> None:
        self.token = token
        self.state = state
        self.target = target
        super().__init__(message)


class CredentialStoreConfigError(OAuthError):
    """The credential store lacks capabilities the provider needs."""

    def __init__(self, message: str, *, missing: list[str] | None = None) -> None:
        self.missing = missing or []
        super().__init__(message)


class ProviderConfigError(OAuthError):
    """Provider settings are invalid (unknown signature method, bad window)."""

    def __init__(self, message: str, *, setting: str | None = None) -> None:
        self.setting = setting  # e.g., "timestamp_skew"
        super().__init__(message)


CLASSIFIED_ERRORS = (OAuthUnauthorizedError, OAuthBadRequestError, OAuthProviderError)
