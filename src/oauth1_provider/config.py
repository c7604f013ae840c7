"""Configuration management for the OAuth 1.0a provider."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path

from oauth1_provider.exceptions import ProviderConfigError

SUPPORTED_SIGNATURE_METHODS = frozenset({"HMAC-SHA1", "PLAINTEXT"})


def _get_config_dir() -> Path:
    """Get XDG-compliant config directory."""
    xdg_config = os.environ.get("XDG_CONFIG_HOME")
    if xdg_config:
        return Path(xdg_config) / "oauth1-provider"
    return Path.home() / ".config" / "oauth1-provider"


@dataclass(frozen=True, slots=True)
class ProviderConfig:
    """OAuth provider configuration.

    The endpoint paths are not used by the core itself; they are handed to
    whatever registers the protocol operations with a router.
    """

    request_token_url: str = "/oauth/request_token"
    authorize_url: str = "/oauth/authorize"
    access_token_url: str = "/oauth/access_token"

    signature_methods: frozenset[str] = SUPPORTED_SIGNATURE_METHODS
    timestamp_skew: int = 300  # seconds either side of the server clock
    request_token_ttl: int = 600  # seconds before an unexchanged request token lapses

    def __post_init__(self) -> None:
        unsupported = set(self.signature_methods) - SUPPORTED_SIGNATURE_METHODS
        if unsupported:
            msg = f"Unsupported signature methods: {', '.join(sorted(unsupported))}"
            raise ProviderConfigError(msg, setting="signature_methods")
        for name in ("timestamp_skew", "request_token_ttl"):
            if getattr(self, name) <= 0:
                msg = f"{name} must be positive"
                raise ProviderConfigError(msg, setting=name)

    @classmethod
    def from_env(cls) -> ProviderConfig:
        """Create config from environment variables.

        Recognized env vars (all optional):
        - OAUTH1_PROVIDER_REQUEST_TOKEN_URL
        - OAUTH1_PROVIDER_AUTHORIZE_URL
        - OAUTH1_PROVIDER_ACCESS_TOKEN_URL
        - OAUTH1_PROVIDER_SIGNATURE_METHODS (comma separated)
        - OAUTH1_PROVIDER_TIMESTAMP_SKEW
        - OAUTH1_PROVIDER_REQUEST_TOKEN_TTL

        Raises:
            ValueError: If none of them is set
        """
        prefix = "OAUTH1_PROVIDER_"
        values = {
            name: os.environ[prefix + name.upper()]
            for name in (
                "request_token_url",
                "authorize_url",
                "access_token_url",
                "signature_methods",
                "timestamp_skew",
                "request_token_ttl",
            )
            if prefix + name.upper() in os.environ
        }
        if not values:
            msg = f"No {prefix}* environment variables set"
            raise ValueError(msg)
        return cls._from_mapping(values)

    @classmethod
    def from_file(cls, path: Path | None = None) -> ProviderConfig:
        """Load config from JSON file.

        Default path: ~/.config/oauth1-provider/config.json

        Expected format (every key optional):
        {
            "request_token_url": "/oauth/request_token",
            "signature_methods": ["HMAC-SHA1"],
            "timestamp_skew": 300
        }
        """
        if path is None:
            path = _get_config_dir() / "config.json"

        if not path.exists():
            msg = f"Config file not found: {path}"
            raise FileNotFoundError(msg)

        with path.open() as f:
            data = json.load(f)

        return cls._from_mapping(data)

    @classmethod
    def load(cls, path: Path | None = None) -> ProviderConfig:
        """Load config from environment or file (env takes precedence).

        Falls back to defaults when neither is present.
        """
        try:
            return cls.from_env()
        except ValueError:
            pass
        try:
            return cls.from_file(path)
        except FileNotFoundError:
            return cls()

    @classmethod
    def _from_mapping(cls, data: dict[str, object]) -> ProviderConfig:
        kwargs: dict[str, object] = {}
        for key in ("request_token_url", "authorize_url", "access_token_url"):
            if key in data:
                kwargs[key] = str(data[key])
        if "signature_methods" in data:
            methods = data["signature_methods"]
            if isinstance(methods, str):
                methods = [m.strip() for m in methods.split(",") if m.strip()]
            kwargs["signature_methods"] = frozenset(str(m).upper() for m in methods)  # type: ignore[union-attr]
        for key in ("timestamp_skew", "request_token_ttl"):
            if key in data:
                try:
                    kwargs[key] = int(data[key])  # type: ignore[call-overload]
                except (TypeError, ValueError) as e:
                    msg = f"{key} must be an integer, got {data[key]!r}"
                    raise ProviderConfigError(msg, setting=key) from e
        return cls(**kwargs)  # type: ignore[arg-type]
