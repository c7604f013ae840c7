"""Consumer-side OAuth 1.0a request signing.

Used to talk to a provider built on this package: the CLI ``sign`` command,
the demo handshake and the tests drive the provider through these helpers.
"""

import secrets
import time
from collections.abc import Callable, Generator
from urllib.parse import parse_qsl, quote

import httpx

from oauth1_provider.signature import (
    HMAC_SHA1,
    base_string_uri,
    query_params,
    sign,
    signature_base_string,
)
from oauth1_provider.wire import FORM_CONTENT_TYPE


class OAuth1Signer:
    """Signs requests on behalf of a consumer.

    Args:
        consumer_key: Consumer identifier
        consumer_secret: Consumer signing secret
        token: Request or access token, if any
        token_secret: Secret belonging to ``token``
        signature_method: HMAC-SHA1 (default) or PLAINTEXT
        time_source: Returns the current Unix time used for oauth_timestamp
    """

    def __init__(
        self,
        consumer_key: str,
        consumer_secret: str,
        *,
        token: str | None = None,
        token_secret: str = "",
        signature_method: str = HMAC_SHA1,
        time_source: Callable[[], float] = time.time,
    ) -> None:
        self.consumer_key = consumer_key
        self.consumer_secret = consumer_secret
        self.token = token
        self.token_secret = token_secret
        self.signature_method = signature_method
        self._time = time_source

    def build_oauth_params(self, **extra: str) -> dict[str, str]:
        """Build base OAuth parameters, plus ``oauth_*`` extras (callback, verifier)."""
        params = {
            "oauth_consumer_key": self.consumer_key,
            "oauth_nonce": secrets.token_hex(16),
            "oauth_signature_method": self.signature_method,
            "oauth_timestamp": str(int(self._time())),
            "oauth_version": "1.0",
        }
        if self.token:
            params["oauth_token"] = self.token
        params.update({f"oauth_{key}": value for key, value in extra.items()})
        return params

    def generate_signature(
        self,
        method: str,
        url: str,
        params: list[tuple[str, str]],
    ) -> str:
        """Generate the signature for ``params`` (query parameters of ``url`` included)."""
        base_string = signature_base_string(
            method,
            base_string_uri("", "", url),
            [*query_params(url), *params],
        )
        return sign(self.signature_method, base_string, self.consumer_secret, self.token_secret)

    def sign_request(
        self,
        method: str,
        url: str,
        params: dict[str, str] | None = None,
        **extra: str,
    ) -> dict[str, str]:
        """Generate OAuth headers for a request.

        Args:
            method: HTTP method (GET, POST, PUT, DELETE)
            url: Full request URL, query string included
            params: Form body parameters
            extra: Additional protocol parameters without the ``oauth_`` prefix

        Returns:
            Headers dict with Authorization header
        """
        oauth_params = self.build_oauth_params(**extra)
        all_params = [*oauth_params.items(), *(params or {}).items()]
        oauth_params["oauth_signature"] = self.generate_signature(method, url, all_params)
        return {"Authorization": self.build_auth_header(oauth_params)}

    @staticmethod
    def build_auth_header(oauth_params: dict[str, str]) -> str:
        """Build OAuth Authorization header."""
        auth_parts = [f'{k}="{quote(v, safe="~")}"' for k, v in sorted(oauth_params.items())]
        return "OAuth " + ", ".join(auth_parts)


class OAuth1Auth(httpx.Auth):
    """httpx authentication flow signing every request with an :class:`OAuth1Signer`.

    Usage:
        signer = OAuth1Signer(key, secret)
        auth = OAuth1Auth(signer, callback="oob")
        response = await client.post(request_token_url, auth=auth)
    """

    requires_request_body = True

    def __init__(self, signer: OAuth1Signer, **extra: str) -> None:
        self.signer = signer
        self.extra = extra

    def auth_flow(self, request: httpx.Request) -> Generator[httpx.Request, httpx.Response]:
        body_params: dict[str, str] = {}
        if request.headers.get("Content-Type", "").startswith(FORM_CONTENT_TYPE):
            body_params = dict(parse_qsl(request.content.decode(), keep_blank_values=True))

        headers = self.signer.sign_request(
            request.method,
            str(request.url),
            body_params or None,
            **self.extra,
        )
        request.headers.update(headers)
        yield request
