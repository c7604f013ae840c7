"""Request authorization gate.

Extracts the OAuth protocol parameters from an inbound request, checks that
they are complete and well formed, and validates access-token-signed requests
against the credential store.
"""

import logging
import time
from collections import Counter
from collections.abc import Callable
from dataclasses import dataclass

from oauth1_provider.config import ProviderConfig
from oauth1_provider.exceptions import OAuthBadRequestError, OAuthUnauthorizedError
from oauth1_provider.models.requests import OAuthRequest, SignatureMaterials
from oauth1_provider.signature import (
    base_string_uri,
    flatten_params,
    parse_authorization_header,
    query_params,
)
from oauth1_provider.store import CredentialStore, call_store

logger = logging.getLogger(__name__)

REQUIRED_PARAMS = (
    "oauth_consumer_key",
    "oauth_signature",
    "oauth_signature_method",
    "oauth_nonce",
    "oauth_timestamp",
)


@dataclass(frozen=True, slots=True)
class SignedRequest:
    """OAuth parameters of a request together with its signature materials."""

    oauth: dict[str, str]
    materials: SignatureMaterials

    @property
    def consumer_key(self) -> str:
        return self.oauth["oauth_consumer_key"]

    @property
    def token(self) -> str:
        return self.oauth.get("oauth_token", "")


def _header(headers: dict[str, str], name: str) -> str | None:
    for key, value in headers.items():
        if key.lower() == name.lower():
            return value
    return None


def collect_params(request: OAuthRequest) -> list[tuple[str, str]]:
    """All parameters of a request: Authorization header, query string and body.

    ``request.params`` may or may not repeat the query string already present in
    ``request.url``; pairs found in both are counted once.
    """
    pairs: list[tuple[str, str]] = []
    header = _header(request.headers, "Authorization")
    if header and header.strip().lower().startswith("oauth "):
        pairs.extend(parse_authorization_header(header))

    from_query = query_params(request.url)
    pairs.extend(from_query)
    already_seen = Counter(from_query)
    for pair in flatten_params(request.params):
        if already_seen[pair] > 0:
            already_seen[pair] -= 1
            continue
        pairs.append(pair)
    return pairs


class RequestAuthorizationGate:
    """Validates inbound signed requests before they reach protected logic.

    Args:
        store: Credential store whose ``valid_token`` check is authoritative
        config: Provider configuration (signature methods, timestamp skew)
        time_source: Returns the current Unix time; injectable for tests
    """

    def __init__(
        self,
        store: CredentialStore,
        config: ProviderConfig,
        *,
        time_source: Callable[[], float] = time.time,
    ) -> None:
        self.store = store
        self.config = config
        self._time = time_source

    def parse(self, request: OAuthRequest, *required: str) -> SignedRequest:
        """Extract OAuth parameters and signature materials.

        Args:
            request: The inbound request
            required: Protocol parameters needed on top of the common ones

        Raises:
            OAuthBadRequestError: On missing, duplicated or malformed parameters
        """
        pairs = collect_params(request)

        oauth: dict[str, str] = {}
        for key, value in pairs:
            if not key.startswith("oauth_"):
                continue
            if key in oauth:
                raise OAuthBadRequestError(f"Duplicated parameter: {key}", parameter=key)
            oauth[key] = value

        for name in (*REQUIRED_PARAMS, *required):
            if not oauth.get(name):
                raise OAuthBadRequestError(f"Missing required parameter: {name}", parameter=name)

        signature_method = oauth["oauth_signature_method"]
        if signature_method not in self.config.signature_methods:
            raise OAuthBadRequestError(
                f"Unsupported signature method: {signature_method}",
                parameter="oauth_signature_method",
            )

        version = oauth.get("oauth_version")
        if version is not None and version != "1.0":
            raise OAuthBadRequestError(
                f"Unsupported OAuth version: {version}",
                parameter="oauth_version",
            )

        try:
            timestamp = int(oauth["oauth_timestamp"])
        except ValueError:
            raise OAuthBadRequestError(
                "oauth_timestamp must be an integer",
                parameter="oauth_timestamp",
            ) from None

        materials = SignatureMaterials(
            method=request.method.upper(),
            base_url=base_string_uri(request.scheme, request.host, request.url),
            params=[(k, v) for k, v in pairs if k != "oauth_signature"],
            signature=oauth["oauth_signature"],
            signature_method=signature_method,
            nonce=oauth["oauth_nonce"],
            timestamp=timestamp,
        )
        return SignedRequest(oauth=oauth, materials=materials)

    def check_timestamp(self, signed: SignedRequest) -> None:
        """Reject requests signed too far from the server clock.

        Raises:
            OAuthUnauthorizedError: If the timestamp is outside the configured skew
        """
        drift = abs(self._time() - signed.materials.timestamp)
        if drift > self.config.timestamp_skew:
            raise OAuthUnauthorizedError("Request timestamp outside the accepted window")

    async def authorize(self, request: OAuthRequest) -> SignedRequest:
        """Validate a request for a protected endpoint.

        Never mutates token state; nonce and timestamp replay rejection belong
        to the credential store's ``valid_token`` check.

        Raises:
            OAuthBadRequestError: On missing or malformed parameters
            OAuthUnauthorizedError: If the store rejects the request
            OAuthProviderError: If the store fails
        """
        signed = self.parse(request, "oauth_token")
        valid = await call_store(
            "authorize",
            self.store.valid_token(signed.token, signed.consumer_key, signed.materials),
        )
        if not valid:
            logger.warning("Rejected protected request from consumer %s", signed.consumer_key)
            raise OAuthUnauthorizedError("Invalid or expired access token, or bad signature")
        logger.debug("Authorized protected request from consumer %s", signed.consumer_key)
        return signed
