"""Main Typer application."""

from pathlib import Path

import typer

from oauth1_provider.cli.config import CLIConfig

# Create main app
app = typer.Typer(
    name="oauth1-provider",
    help="OAuth 1.0a provider tools.",
    no_args_is_help=True,
)


@app.callback()
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable debug logging.",
    ),
    config_path: Path | None = typer.Option(
        None,
        "--config",
        "-c",
        help="Provider config file (default: ~/.config/oauth1-provider/config.json).",
        envvar="OAUTH1_PROVIDER_CONFIG",
    ),
) -> None:
    """OAuth 1.0a provider tools.

    Inspect configuration, sign requests as a consumer, and run a
    demonstration handshake against an in-memory credential store.
    """
    config = CLIConfig(verbose=verbose)
    if config_path is not None:
        config.config_path = config_path
    config.configure_logging()
    ctx.obj = config
