"""Tests for consumer-side signing and the httpx auth flow."""

from urllib.parse import parse_qsl

import httpx
import pytest

from oauth1_provider import OAuthServices
from oauth1_provider.consumer import OAuth1Auth, OAuth1Signer
from oauth1_provider.models.requests import SignatureMaterials
from oauth1_provider.signature import PLAINTEXT, parse_authorization_header, verify
from oauth1_provider.wire import FORM_CONTENT_TYPE, encode_result
from tests.conftest import CALLBACK, HOST, SCHEME, ConsumerClient

NOW = 1_700_000_000


def signer(**kwargs: object) -> OAuth1Signer:
    return OAuth1Signer("client-key", "client-secret", time_source=lambda: NOW, **kwargs)  # type: ignore[arg-type]


def header_params(headers: dict[str, str]) -> dict[str, str]:
    return dict(parse_authorization_header(headers["Authorization"]))


class TestOAuth1Signer:
    """Tests for OAuth1Signer."""

    def test_build_oauth_params(self) -> None:
        """Should include every protocol parameter."""
        params = signer().build_oauth_params()

        assert params["oauth_consumer_key"] == "client-key"
        assert params["oauth_signature_method"] == "HMAC-SHA1"
        assert params["oauth_timestamp"] == str(NOW)
        assert params["oauth_version"] == "1.0"
        assert len(params["oauth_nonce"]) == 32
        assert "oauth_token" not in params

    def test_token_and_extras(self) -> None:
        """Tokens and extra parameters are prefixed with oauth_."""
        params = signer(token="tok").build_oauth_params(verifier="v", callback="oob")

        assert params["oauth_token"] == "tok"
        assert params["oauth_verifier"] == "v"
        assert params["oauth_callback"] == "oob"

    def test_nonces_are_unique(self) -> None:
        """Each request gets a new nonce."""
        s = signer()

        assert s.build_oauth_params()["oauth_nonce"] != s.build_oauth_params()["oauth_nonce"]

    def test_signature_verifies(self) -> None:
        """The signed header verifies against the same secrets."""
        url = "https://provider.test/api/profile?x=1"
        headers = signer(token="tok", token_secret="tok-secret").sign_request(
            "POST", url, {"name": "alice"}
        )
        params = header_params(headers)
        signed = [
            *((k, v) for k, v in params.items() if k != "oauth_signature"),
            ("x", "1"),
            ("name", "alice"),
        ]
        materials = SignatureMaterials(
            method="POST",
            base_url="https://provider.test/api/profile",
            params=signed,
            signature=params["oauth_signature"],
            signature_method=params["oauth_signature_method"],
            nonce=params["oauth_nonce"],
            timestamp=int(params["oauth_timestamp"]),
        )

        assert verify(materials, "client-secret", "tok-secret")
        assert not verify(materials, "client-secret", "other")

    def test_plaintext(self) -> None:
        """PLAINTEXT signatures are the signing key."""
        headers = signer(token_secret="tok&secret", signature_method=PLAINTEXT).sign_request(
            "GET", "https://provider.test/"
        )

        assert header_params(headers)["oauth_signature"] == "client-secret&tok%26secret"

    def test_build_auth_header(self) -> None:
        """Parameters are sorted and percent-encoded."""
        header = OAuth1Signer.build_auth_header({"oauth_b": "x y", "oauth_a": "1/2"})

        assert header == 'OAuth oauth_a="1%2F2", oauth_b="x%20y"'


def provider_transport(services: OAuthServices) -> httpx.MockTransport:
    """Route httpx requests straight into the provider operations."""

    async def handler(request: httpx.Request) -> httpx.Response:
        params: dict[str, str | list[str]] = {}
        if request.headers.get("Content-Type", "").startswith(FORM_CONTENT_TYPE):
            params = dict(parse_qsl(request.content.decode(), keep_blank_values=True))
        args = (
            request.method,
            request.url.scheme,
            request.url.host,
            request.url.raw_path.decode(),
            dict(request.headers),
            params,
        )
        if request.url.path == "/oauth/request_token":
            result = await services.request_token(*args)
        elif request.url.path == "/oauth/access_token":
            result = await services.access_token(*args)
        else:
            result = await services.authorize(*args)
        return httpx.Response(result.status, text=encode_result(result))

    return httpx.MockTransport(handler)


class TestOAuth1Auth:
    """Tests for the httpx auth flow against a live provider."""

    @pytest.fixture
    def http(self, services: OAuthServices) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            transport=provider_transport(services),
            base_url=f"{SCHEME}://{HOST}",
        )

    async def test_full_handshake(
        self,
        http: httpx.AsyncClient,
        services: OAuthServices,
        client: ConsumerClient,
    ) -> None:
        """Request token, user authorization, exchange and a protected call."""
        key, secret = client.consumer.consumer_key, client.consumer.consumer_secret
        async with http:
            response = await http.post(
                "/oauth/request_token",
                auth=OAuth1Auth(OAuth1Signer(key, secret), callback=CALLBACK),
            )
            assert response.status_code == 200
            request_token = dict(parse_qsl(response.text))
            assert request_token["oauth_callback_confirmed"] == "true"

            grant = await services.authenticate_user(
                "alice", "correct-pw", request_token["oauth_token"]
            )
            assert grant.payload is not None

            response = await http.post(
                "/oauth/access_token",
                auth=OAuth1Auth(
                    OAuth1Signer(
                        key,
                        secret,
                        token=request_token["oauth_token"],
                        token_secret=request_token["oauth_token_secret"],
                    ),
                    verifier=grant.payload.verifier,  # type: ignore[union-attr]
                ),
            )
            assert response.status_code == 200
            access = dict(parse_qsl(response.text))

            protected = OAuth1Signer(
                key,
                secret,
                token=access["oauth_token"],
                token_secret=access["oauth_token_secret"],
            )
            response = await http.get(
                "/api/profile", params={"x": "1"}, auth=OAuth1Auth(protected)
            )
            assert response.status_code == 200

            response = await http.post(
                "/api/profile", data={"name": "alice"}, auth=OAuth1Auth(protected)
            )
            assert response.status_code == 200

    async def test_wrong_secret_is_unauthorized(
        self,
        http: httpx.AsyncClient,
        client: ConsumerClient,
    ) -> None:
        """A consumer signing with the wrong secret is rejected."""
        auth = OAuth1Auth(OAuth1Signer(client.consumer.consumer_key, "wrong"), callback=CALLBACK)
        async with http:
            response = await http.post("/oauth/request_token", auth=auth)

        assert response.status_code == 401
        assert response.text == "Invalid signature"
