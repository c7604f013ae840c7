"""Rendering of provider configuration and handshake results."""

import json
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from rich.console import Console
from rich.table import Table

from oauth1_provider.cli.config import OutputFormat
from oauth1_provider.config import ProviderConfig
from oauth1_provider.models.results import AuthorizationResult, ResultKind
from oauth1_provider.wire import encode_result

console = Console()
error_console = Console(stderr=True)

KIND_STYLES = {
    ResultKind.OK: "green",
    ResultKind.UNAUTHORIZED: "red",
    ResultKind.BAD_REQUEST: "yellow",
    ResultKind.PROVIDER_ERROR: "bold magenta",
}


@dataclass(frozen=True, slots=True)
class HandshakeStep:
    """One protocol call made during a handshake."""

    step: str
    result: AuthorizationResult
    detail: str | None = None  # overrides the encoded response body

    def as_dict(self) -> dict[str, Any]:
        return {
            "step": self.step,
            "kind": self.result.kind.value,
            "status": self.result.status,
            "detail": self.detail if self.detail is not None else encode_result(self.result),
        }


def config_settings(config: ProviderConfig) -> dict[str, Any]:
    """Provider settings as displayed by ``tools config``."""
    return {
        "request_token_url": config.request_token_url,
        "authorize_url": config.authorize_url,
        "access_token_url": config.access_token_url,
        "signature_methods": ", ".join(sorted(config.signature_methods)),
        "timestamp_skew": config.timestamp_skew,
        "request_token_ttl": config.request_token_ttl,
    }


def format_config(config: ProviderConfig, output_format: OutputFormat) -> None:
    """Print the effective provider configuration."""
    settings = config_settings(config)
    if output_format == OutputFormat.JSON:
        console.print_json(json.dumps(settings))
        return

    table = Table(title="Provider configuration", show_header=True, header_style="bold")
    table.add_column("Setting")
    table.add_column("Value")
    for name, value in settings.items():
        table.add_row(name, str(value))
    console.print(table)


def format_results(steps: Sequence[HandshakeStep], output_format: OutputFormat) -> None:
    """Print handshake steps; failed steps stand out by result kind."""
    rows = [step.as_dict() for step in steps]
    if output_format == OutputFormat.JSON:
        console.print_json(json.dumps(rows))
        return

    table = Table(title="Handshake", show_header=True, header_style="bold")
    table.add_column("Step")
    table.add_column("Result")
    table.add_column("Status", justify="right")
    table.add_column("Detail", overflow="fold")
    for step, row in zip(steps, rows, strict=True):
        style = KIND_STYLES[step.result.kind]
        table.add_row(
            row["step"],
            f"[{style}]{row['kind']}[/{style}]",
            str(row["status"]),
            row["detail"],
        )
    console.print(table)


def print_error(message: str) -> None:
    """Print an error message to stderr."""
    error_console.print(f"[red]Error:[/red] {message}")


def print_status(message: str, *, ok: bool = True) -> None:
    """Print a progress line, marked as a success or a note."""
    marker = "[green]✓[/green]" if ok else "[blue]i[/blue]"
    console.print(f"{marker} {message}")
