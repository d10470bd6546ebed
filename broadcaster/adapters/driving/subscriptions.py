"""Command line for managing the subscribed channel list."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Optional, TypeVar

import typer

from broadcaster.adapters.driven.config.settings import load_database_url
from broadcaster.adapters.driven.logging.logging_config import configure_logs
from broadcaster.adapters.driven.store.sql_store import SqlSubscriberStore
from broadcaster.ports.store import StoreError, SubscriberStorePort

__all__ = ["app"]

logger = logging.getLogger(__name__)

T = TypeVar("T")

app = typer.Typer(
    name="broadcaster-subscribe",
    help="Manage the channels that receive broadcasts.",
    no_args_is_help=True,
)


@app.callback()
def main(
    ctx: typer.Context,
    database_url: Optional[str] = typer.Option(
        None,
        "--database-url",
        help="Subscriber store URL (default: DATABASE_URL, else local SQLite file).",
    ),
    log_level: str = typer.Option("WARNING", "--log-level", help="Broadcaster log level."),
) -> None:
    configure_logs(log_level)
    ctx.obj = database_url or load_database_url()


def _with_store(
    ctx: typer.Context, operation: Callable[[SubscriberStorePort], Awaitable[T]]
) -> T:
    """Open the store, run one operation on it, and close it again.

    Store failures end the command with exit code 1.
    """

    async def _run() -> T:
        async with SqlSubscriberStore(ctx.obj) as store:
            return await operation(store)

    try:
        return asyncio.run(_run())
    except StoreError as e:
        logger.debug(f"Store operation failed on {ctx.obj}", exc_info=True)
        typer.echo(f"Subscriber store error: {e}", err=True)
        raise typer.Exit(1) from e


@app.command("subscribe")
def subscribe(
    ctx: typer.Context,
    channel_id: int = typer.Argument(..., min=1, help="Channel to start broadcasting to."),
) -> None:
    """Add a channel to the broadcast list."""
    _with_store(ctx, lambda store: store.add(channel_id))
    typer.echo(f"Thanks! Channel {channel_id} will receive broadcasts.")


@app.command("unsubscribe")
def unsubscribe(
    ctx: typer.Context,
    channel_id: int = typer.Argument(..., min=1, help="Channel to stop broadcasting to."),
) -> None:
    """Remove a channel from the broadcast list."""

    async def _remove(store: SubscriberStorePort) -> bool:
        if not await store.exists(channel_id):
            return False
        await store.remove(channel_id)
        return True

    if _with_store(ctx, _remove):
        typer.echo(f"I'll stop sending messages to channel {channel_id}.")
    else:
        typer.echo(f"Channel {channel_id} was not subscribed.")


@app.command("check")
def check(
    ctx: typer.Context,
    channel_id: int = typer.Argument(..., min=1, help="Channel to look up."),
) -> None:
    """Tell whether a channel is subscribed; exits 1 when it is not."""
    if _with_store(ctx, lambda store: store.exists(channel_id)):
        typer.echo(f"Channel {channel_id} is subscribed.")
        return
    typer.echo(f"Channel {channel_id} is not subscribed.")
    raise typer.Exit(1)


@app.command("list")
def list_channels(ctx: typer.Context) -> None:
    """Print every subscribed channel, one per line."""
    destinations = _with_store(ctx, lambda store: store.all())
    if not destinations:
        typer.echo("No subscribed channels.")
        return
    for destination in destinations:
        typer.echo(destination)


if __name__ == "__main__":
    app()
