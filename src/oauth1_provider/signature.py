"""OAuth 1.0a signature primitives (RFC 5849, section 3.4)."""

import base64
import hashlib
import hmac
import re
from collections.abc import Iterable, Mapping
from urllib.parse import parse_qsl, quote, unquote, urlsplit

from oauth1_provider.exceptions import OAuthBadRequestError
from oauth1_provider.models.requests import SignatureMaterials

HMAC_SHA1 = "HMAC-SHA1"
PLAINTEXT = "PLAINTEXT"

_DEFAULT_PORTS = {"http": 80, "https": 443}
_HEADER_PARAM = re.compile(r'\s*([^=\s]+)\s*=\s*"([^"]*)"\s*(?:,|$)')


def escape(value: str) -> str:
    """Percent-encode per RFC 3986 (only unreserved characters left as-is)."""
    return quote(value, safe="~")


def parse_authorization_header(header: str) -> list[tuple[str, str]]:
    """Parse an ``Authorization: OAuth ...`` header into parameter pairs.

    The ``realm`` parameter is dropped since it is never signed.

    Raises:
        OAuthBadRequestError: If the header is not a well-formed OAuth header
    """
    scheme, _, rest = header.strip().partition(" ")
    if scheme.lower() != "oauth":
        raise OAuthBadRequestError("Authorization header is not an OAuth header")

    pairs: list[tuple[str, str]] = []
    pos = 0
    rest = rest.strip()
    while pos < len(rest):
        match = _HEADER_PARAM.match(rest, pos)
        if match is None:
            raise OAuthBadRequestError("Malformed OAuth Authorization header")
        key, value = unquote(match.group(1)), unquote(match.group(2))
        if key != "realm":
            pairs.append((key, value))
        pos = match.end()
    return pairs


def flatten_params(params: Mapping[str, str | list[str]]) -> list[tuple[str, str]]:
    """Expand multi-valued parameters into pairs."""
    pairs: list[tuple[str, str]] = []
    for key, value in params.items():
        if isinstance(value, list):
            pairs.extend((key, v) for v in value)
        else:
            pairs.append((key, value))
    return pairs


def base_string_uri(scheme: str, host: str, url: str) -> str:
    """Build the base string URI: lowercase scheme/host, no default port, no query."""
    parts = urlsplit(url)
    if parts.scheme and parts.netloc:
        scheme, host, path = parts.scheme, parts.netloc, parts.path
    else:
        path = parts.path

    scheme = scheme.lower()
    host = host.lower()
    hostname, _, port = host.partition(":")
    if port and port.isdigit() and _DEFAULT_PORTS.get(scheme) == int(port):
        host = hostname
    return f"{scheme}://{host}{path or '/'}"


def query_params(url: str) -> list[tuple[str, str]]:
    """Parameters carried in the URL query string."""
    return parse_qsl(urlsplit(url).query, keep_blank_values=True)


def normalize_params(params: Iterable[tuple[str, str]]) -> str:
    """Encode, sort and join parameters (signature excluded by the caller)."""
    encoded = sorted((escape(k), escape(v)) for k, v in params)
    return "&".join(f"{k}={v}" for k, v in encoded)


def signature_base_string(method: str, base_url: str, params: Iterable[tuple[str, str]]) -> str:
    """Build the signature base string."""
    return "&".join(
        [
            method.upper(),
            escape(base_url),
            escape(normalize_params(params)),
        ]
    )


def signing_key(consumer_secret: str, token_secret: str = "") -> str:
    """Build the signing key from the client and token secrets."""
    return f"{escape(consumer_secret)}&{escape(token_secret)}"


def sign(
    signature_method: str,
    base_string: str,
    consumer_secret: str,
    token_secret: str = "",
) -> str:
    """Compute a signature.

    Raises:
        OAuthBadRequestError: For signature methods other than HMAC-SHA1 and PLAINTEXT
    """
    key = signing_key(consumer_secret, token_secret)
    if signature_method == PLAINTEXT:
        return key
    if signature_method == HMAC_SHA1:
        digest = hmac.new(key.encode(), base_string.encode(), hashlib.sha1).digest()
        return base64.b64encode(digest).decode()
    raise OAuthBadRequestError(
        f"Unsupported signature method: {signature_method}",
        parameter="oauth_signature_method",
    )


def verify(materials: SignatureMaterials, consumer_secret: str, token_secret: str = "") -> bool:
    """Recompute the signature for ``materials`` and compare in constant time."""
    base_string = signature_base_string(materials.method, materials.base_url, materials.params)
    expected = sign(materials.signature_method, base_string, consumer_secret, token_secret)
    return hmac.compare_digest(expected.encode(), materials.signature.encode())
