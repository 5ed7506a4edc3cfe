from typing import Optional

import typer

from kit_sync.config import SyncConfig
from kit_sync.deps import SyncContext
from kit_sync.utils import setup_logging


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:  # pragma: no cover
        import kit_sync

        typer.echo(f"kit-sync version: {kit_sync.__version__}")
        raise typer.Exit()


app = typer.Typer(name="kit-sync", no_args_is_help=True)


@app.callback()
def app_callback(
    ctx: typer.Context,
    no_color: bool = typer.Option(
        False,
        "--no-color",
        help="Disable colored output.",
        envvar="NO_COLOR",
    ),
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
) -> None:
    """kit-sync - install and update kit files without clobbering your edits."""

    # Build the context once per invocation and hand it to subcommands
    if ctx.invoked_subcommand is not None and ctx.obj is None:
        config = SyncConfig()
        if no_color:
            config = config.model_copy(update={"color": False})
        setup_logging(config)
        ctx.obj = SyncContext.create(config)


def get_context(ctx: typer.Context) -> SyncContext:
    if ctx.obj is None:  # pragma: no cover
        config = SyncConfig()
        setup_logging(config)
        ctx.obj = SyncContext.create(config)
    return ctx.obj
