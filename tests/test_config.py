"""Tests for provider configuration loading."""

import json
from pathlib import Path

import pytest

from oauth1_provider.config import ProviderConfig
from oauth1_provider.exceptions import ProviderConfigError

ENV_VARS = (
    "OAUTH1_PROVIDER_REQUEST_TOKEN_URL",
    "OAUTH1_PROVIDER_AUTHORIZE_URL",
    "OAUTH1_PROVIDER_ACCESS_TOKEN_URL",
    "OAUTH1_PROVIDER_SIGNATURE_METHODS",
    "OAUTH1_PROVIDER_TIMESTAMP_SKEW",
    "OAUTH1_PROVIDER_REQUEST_TOKEN_TTL",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Isolate tests from the developer's environment and config dir."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))


class TestDefaults:
    """Tests for default configuration."""

    def test_defaults(self) -> None:
        """Should use the conventional endpoint paths and windows."""
        config = ProviderConfig()

        assert config.request_token_url == "/oauth/request_token"
        assert config.authorize_url == "/oauth/authorize"
        assert config.access_token_url == "/oauth/access_token"
        assert config.signature_methods == frozenset({"HMAC-SHA1", "PLAINTEXT"})
        assert config.timestamp_skew == 300
        assert config.request_token_ttl == 600

    def test_rejects_unknown_signature_method(self) -> None:
        """Only HMAC-SHA1 and PLAINTEXT are supported."""
        with pytest.raises(ProviderConfigError) as exc_info:
            ProviderConfig(signature_methods=frozenset({"RSA-SHA1"}))

        assert exc_info.value.setting == "signature_methods"

    @pytest.mark.parametrize("field", ["timestamp_skew", "request_token_ttl"])
    def test_rejects_non_positive_windows(self, field: str) -> None:
        """Windows must be positive."""
        with pytest.raises(ProviderConfigError) as exc_info:
            ProviderConfig(**{field: 0})  # type: ignore[arg-type]

        assert exc_info.value.setting == field


class TestFromEnv:
    """Tests for environment configuration."""

    def test_reads_variables(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Set variables override defaults; others keep them."""
        monkeypatch.setenv("OAUTH1_PROVIDER_SIGNATURE_METHODS", "hmac-sha1, ")
        monkeypatch.setenv("OAUTH1_PROVIDER_TIMESTAMP_SKEW", "60")
        monkeypatch.setenv("OAUTH1_PROVIDER_AUTHORIZE_URL", "/login")

        config = ProviderConfig.from_env()

        assert config.signature_methods == frozenset({"HMAC-SHA1"})
        assert config.timestamp_skew == 60
        assert config.authorize_url == "/login"
        assert config.request_token_ttl == 600

    def test_requires_some_variable(self) -> None:
        """Should raise when nothing is configured."""
        with pytest.raises(ValueError, match="OAUTH1_PROVIDER_"):
            ProviderConfig.from_env()

    def test_rejects_non_integer(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Numeric settings must parse."""
        monkeypatch.setenv("OAUTH1_PROVIDER_REQUEST_TOKEN_TTL", "ten minutes")

        with pytest.raises(ProviderConfigError, match="request_token_ttl"):
            ProviderConfig.from_env()


class TestFromFile:
    """Tests for file configuration."""

    def test_reads_json(self, tmp_path: Path) -> None:
        """Should read every key from JSON."""
        path = tmp_path / "config.json"
        path.write_text(
            json.dumps({"signature_methods": ["PLAINTEXT"], "request_token_ttl": 120})
        )

        config = ProviderConfig.from_file(path)

        assert config.signature_methods == frozenset({"PLAINTEXT"})
        assert config.request_token_ttl == 120

    def test_default_path(self, tmp_path: Path) -> None:
        """Should look under XDG_CONFIG_HOME by default."""
        config_dir = tmp_path / "xdg" / "oauth1-provider"
        config_dir.mkdir(parents=True)
        (config_dir / "config.json").write_text(json.dumps({"timestamp_skew": 30}))

        assert ProviderConfig.from_file().timestamp_skew == 30

    def test_missing_file(self, tmp_path: Path) -> None:
        """Should raise when the file does not exist."""
        with pytest.raises(FileNotFoundError):
            ProviderConfig.from_file(tmp_path / "missing.json")


class TestLoad:
    """Tests for layered loading."""

    def test_env_takes_precedence(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        """Environment wins over the file."""
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"timestamp_skew": 30}))
        monkeypatch.setenv("OAUTH1_PROVIDER_TIMESTAMP_SKEW", "90")

        assert ProviderConfig.load(path).timestamp_skew == 90

    def test_falls_back_to_file(self, tmp_path: Path) -> None:
        """The file is used when no env vars are set."""
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"timestamp_skew": 30}))

        assert ProviderConfig.load(path).timestamp_skew == 30

    def test_falls_back_to_defaults(self, tmp_path: Path) -> None:
        """Defaults are used when nothing is configured."""
        assert ProviderConfig.load(tmp_path / "missing.json") == ProviderConfig()
