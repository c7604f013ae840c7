"""Command-line interface for the OAuth 1.0a provider."""

from oauth1_provider.cli.app import app

# Import command modules to register them with the app
from oauth1_provider.cli.commands import demo, tools

# Register sub-apps
app.add_typer(tools.app, name="tools", help="Configuration and signing tools.")
app.add_typer(demo.app, name="demo", help="Demonstration handshakes.")


def main() -> None:
    """Entry point for the CLI."""
    app()


__all__ = ["app", "main"]
