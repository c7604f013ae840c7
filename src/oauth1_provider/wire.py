"""Wire encoding of results for an OAuth 1.0a compatible endpoint."""

from urllib.parse import urlencode, urlsplit

from oauth1_provider.models.results import AuthorizationResult, UserGrant
from oauth1_provider.models.tokens import OUT_OF_BAND

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


def _wire_value(value: object) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def encode_result(result: AuthorizationResult) -> str:
    """Encode a result as a response body.

    Successes become ``oauth_token=...&oauth_token_secret=...`` form bodies;
    failures become their message.
    """
    if not result.is_ok:
        return result.message or result.kind
    params = {key: _wire_value(value) for key, value in result.wire_params().items()}
    return urlencode(params)


def authorization_redirect(grant: UserGrant) -> str | None:
    """URL to send the user back to the consumer after authorization.

    Returns None for out-of-band consumers; the verifier is then shown to the
    user instead.
    """
    if grant.callback == OUT_OF_BAND:
        return None
    separator = "&" if urlsplit(grant.callback).query else "?"
    query = urlencode({"oauth_token": grant.token, "oauth_verifier": grant.verifier})
    return f"{grant.callback}{separator}{query}"
