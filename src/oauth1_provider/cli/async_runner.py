"""Async command support for Typer."""

import asyncio
from collections.abc import Callable, Coroutine
from functools import wraps
from typing import Any, TypeVar

import typer

from oauth1_provider.exceptions import OAuthError

T = TypeVar("T")


def async_command(f: Callable[..., Coroutine[Any, Any, T]]) -> Callable[..., T]:
    """Decorator to run async Typer commands.

    Provider errors are reported on stderr and end the command with exit code 1.

    Usage:
        @app.command()
        @async_command
        async def my_command(ctx: typer.Context):
            result = await services.request_token(...)
            ...
    """

    @wraps(f)
    def wrapper(*args: Any, **kwargs: Any) -> T:
        async def run_with_error_handling() -> T:
            try:
                return await f(*args, **kwargs)
            except OAuthError as e:
                from oauth1_provider.cli.formatters import print_error

                print_error(e.message)
                raise typer.Exit(1) from None

        return asyncio.run(run_with_error_handling())

    return wrapper
