"""Demonstration handshake against an in-memory credential store."""

import typer

from oauth1_provider.cli.async_runner import async_command
from oauth1_provider.cli.config import CLIConfig, OutputFormat
from oauth1_provider.cli.formatters import (
    HandshakeStep,
    format_results,
    print_error,
    print_status,
)
from oauth1_provider.consumer import OAuth1Signer
from oauth1_provider.ledger import TokenLedger
from oauth1_provider.models.results import UserGrant
from oauth1_provider.services import OAuthServices
from oauth1_provider.store import InMemoryCredentialStore
from oauth1_provider.wire import authorization_redirect

app = typer.Typer(no_args_is_help=True)

HOST = "provider.local"
SCHEME = "https"


@app.command("handshake")
@async_command
async def handshake(
    ctx: typer.Context,
    username: str = typer.Option("alice", "--username", help="Demo user name."),
    password: str = typer.Option("correct-pw", "--password", help="Demo user password."),
    callback: str = typer.Option(
        "http://client/cb",
        "--callback",
        help="Consumer callback URL, or 'oob'.",
    ),
    protected_path: str = typer.Option(
        "/api/profile",
        "--protected-path",
        help="Path of the protected endpoint called with the access token.",
    ),
    output: OutputFormat = typer.Option(
        OutputFormat.TABLE,
        "--output",
        "-o",
        help="Output format.",
    ),
) -> None:
    """Run the three-legged handshake end to end.

    1. Consumer obtains a request token
    2. User authorizes it with username and password
    3. Consumer exchanges it for an access token
    4. Consumer calls a protected endpoint
    5. A replayed exchange is rejected
    """
    config: CLIConfig = ctx.obj
    provider_config = config.provider_config()

    store = InMemoryCredentialStore(
        TokenLedger(request_token_ttl=provider_config.request_token_ttl),
        timestamp_skew=provider_config.timestamp_skew,
    )
    user = store.add_user(username, password)
    consumer = store.add_consumer(user)
    services = OAuthServices(store, provider_config)
    print_status(
        f"Registered user {user.username} and consumer {consumer.consumer_key}", ok=False
    )

    steps: list[HandshakeStep] = []

    # Step 1: Request token
    path = provider_config.request_token_url
    signer = OAuth1Signer(consumer.consumer_key, consumer.consumer_secret)
    headers = signer.sign_request("POST", f"{SCHEME}://{HOST}{path}", callback=callback)
    issued = await services.request_token("POST", SCHEME, HOST, path, headers)
    steps.append(HandshakeStep("request_token", issued))
    if not issued.is_granted:
        format_results(steps, output)
        print_error("Request token was not issued")
        raise typer.Exit(1)
    request_token = issued.payload.token  # type: ignore[union-attr]
    request_secret = issued.payload.token_secret  # type: ignore[union-attr]

    # Step 2: User authorization
    granted = await services.authenticate_user(username, password, request_token)
    grant = granted.payload
    if not isinstance(grant, UserGrant):
        steps.append(HandshakeStep("authenticate_user", granted, "no grant"))
        format_results(steps, output)
        print_error("User authorization produced no grant")
        raise typer.Exit(1)
    redirect = authorization_redirect(grant)
    detail = redirect or f"oob verifier {grant.verifier}"
    steps.append(HandshakeStep("authenticate_user", granted, detail))

    # Step 3: Access token
    path = provider_config.access_token_url
    signer = OAuth1Signer(
        consumer.consumer_key,
        consumer.consumer_secret,
        token=request_token,
        token_secret=request_secret,
    )
    headers = signer.sign_request("POST", f"{SCHEME}://{HOST}{path}", verifier=grant.verifier)
    exchanged = await services.access_token("POST", SCHEME, HOST, path, headers)
    steps.append(HandshakeStep("access_token", exchanged))

    # Step 4: Protected endpoint
    if exchanged.is_granted:
        signer = OAuth1Signer(
            consumer.consumer_key,
            consumer.consumer_secret,
            token=exchanged.payload.access_token,  # type: ignore[union-attr]
            token_secret=exchanged.payload.token_secret,  # type: ignore[union-attr]
        )
        headers = signer.sign_request("GET", f"{SCHEME}://{HOST}{protected_path}")
        gated = await services.authorize("GET", SCHEME, HOST, protected_path, headers)
        steps.append(HandshakeStep("authorize", gated, "handler runs" if gated.is_ok else None))

    # Step 5: Replayed exchange
    signer = OAuth1Signer(
        consumer.consumer_key,
        consumer.consumer_secret,
        token=request_token,
        token_secret=request_secret,
    )
    path = provider_config.access_token_url
    headers = signer.sign_request("POST", f"{SCHEME}://{HOST}{path}", verifier=grant.verifier)
    replayed = await services.access_token("POST", SCHEME, HOST, path, headers)
    steps.append(HandshakeStep("access_token (replay)", replayed))

    format_results(steps, output)
    if exchanged.is_granted and not replayed.is_ok:
        print_status("Handshake completed; replayed exchange rejected")
    else:
        print_error("Handshake did not behave as expected")
        raise typer.Exit(1)
