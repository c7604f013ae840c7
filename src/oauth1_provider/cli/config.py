"""CLI configuration with XDG-compliant paths and environment variable overrides."""

import logging
import os
from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path

from oauth1_provider.config import ProviderConfig


class OutputFormat(StrEnum):
    """Output format options."""

    TABLE = "table"
    JSON = "json"


def _default_config_path() -> Path:
    """Get the XDG-compliant provider config file.

    Uses XDG_CONFIG_HOME if set, otherwise ~/.config/oauth1-provider/config.json.
    """
    xdg_config = os.environ.get("XDG_CONFIG_HOME")
    base = Path(xdg_config) if xdg_config else Path.home() / ".config"
    return base / "oauth1-provider" / "config.json"


@dataclass
class CLIConfig:
    """Configuration passed through Typer context.

    Attributes:
        verbose: Enable debug logging.
        config_path: Provider config file; OAUTH1_PROVIDER_* variables take precedence.
    """

    verbose: bool = False
    config_path: Path = field(default_factory=_default_config_path)

    def configure_logging(self) -> None:
        """Send library logging to stderr (debug level when verbose)."""
        logging.basicConfig(
            level=logging.DEBUG if self.verbose else logging.WARNING,
            format="%(levelname)s %(name)s: %(message)s",
        )

    def provider_config(self) -> ProviderConfig:
        """Load the provider configuration (env, then file, then defaults)."""
        return ProviderConfig.load(self.config_path)
