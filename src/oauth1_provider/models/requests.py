"""Inbound request models."""

from pydantic import BaseModel, Field


class OAuthRequest(BaseModel):
    """Signed request as handed over by the routing layer."""

    method: str = Field(description="HTTP method")
    scheme: str = Field(default="http", description="URL scheme")
    host: str = Field(description="Host header, including any port")
    url: str = Field(description="Request path or full URL, with query string")
    headers: dict[str, str] = Field(default_factory=dict)
    params: dict[str, str | list[str]] = Field(
        default_factory=dict,
        description="Query and form parameters",
    )


class SignatureMaterials(BaseModel):
    """Everything needed to recompute and check a request signature."""

    method: str = Field(description="Upper-cased HTTP method")
    base_url: str = Field(description="Normalized base string URI")
    params: list[tuple[str, str]] = Field(description="All signed parameters, signature excluded")
    signature: str = Field(description="Signature presented by the client")
    signature_method: str = Field(description="HMAC-SHA1 or PLAINTEXT")
    nonce: str
    timestamp: int
