"""Configuration and signing commands."""

import typer

from oauth1_provider.cli.config import CLIConfig, OutputFormat
from oauth1_provider.cli.formatters import console, format_config, print_error
from oauth1_provider.consumer import OAuth1Signer
from oauth1_provider.exceptions import OAuthBadRequestError, ProviderConfigError

app = typer.Typer(no_args_is_help=True)


@app.command("config")
def show_config(
    ctx: typer.Context,
    output: OutputFormat = typer.Option(
        OutputFormat.TABLE,
        "--output",
        "-o",
        help="Output format.",
    ),
) -> None:
    """Show the effective provider configuration."""
    config: CLIConfig = ctx.obj

    try:
        provider_config = config.provider_config()
    except ProviderConfigError as e:
        print_error(e.message)
        raise typer.Exit(1) from None

    format_config(provider_config, output)


def _parse_pairs(values: list[str]) -> dict[str, str]:
    pairs: dict[str, str] = {}
    for item in values:
        key, sep, value = item.partition("=")
        if not sep or not key:
            raise typer.BadParameter(f"Expected key=value, got {item!r}")
        pairs[key] = value
    return pairs


@app.command("sign")
def sign(
    url: str = typer.Argument(..., help="Full request URL, query string included."),
    consumer_key: str = typer.Option(
        ...,
        "--consumer-key",
        envvar="OAUTH1_CONSUMER_KEY",
        help="Consumer key.",
    ),
    consumer_secret: str = typer.Option(
        ...,
        "--consumer-secret",
        envvar="OAUTH1_CONSUMER_SECRET",
        help="Consumer secret.",
    ),
    method: str = typer.Option("POST", "--method", "-X", help="HTTP method."),
    token: str | None = typer.Option(None, "--token", help="Request or access token."),
    token_secret: str = typer.Option("", "--token-secret", help="Token secret."),
    callback: str | None = typer.Option(None, "--callback", help="oauth_callback value."),
    verifier: str | None = typer.Option(None, "--verifier", help="oauth_verifier value."),
    signature_method: str = typer.Option(
        "HMAC-SHA1",
        "--signature-method",
        help="HMAC-SHA1 or PLAINTEXT.",
    ),
    data: list[str] | None = typer.Option(
        None,
        "--data",
        "-d",
        help="Form body parameter as key=value (repeatable).",
    ),
) -> None:
    """Print the Authorization header a consumer would send."""
    extra: dict[str, str] = {}
    if callback is not None:
        extra["callback"] = callback
    if verifier is not None:
        extra["verifier"] = verifier

    signer = OAuth1Signer(
        consumer_key,
        consumer_secret,
        token=token,
        token_secret=token_secret,
        signature_method=signature_method.upper(),
    )
    try:
        headers = signer.sign_request(method, url, _parse_pairs(data or []) or None, **extra)
    except OAuthBadRequestError as e:
        print_error(e.message)
        raise typer.Exit(1) from None

    console.print(f"Authorization: {headers['Authorization']}", soft_wrap=True, highlight=False)
