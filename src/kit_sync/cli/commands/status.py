"""Status command: tracked items and whether they changed on disk."""

import asyncio
from typing import List, Tuple

import typer
from loguru import logger
from rich.table import Table
from rich.text import Text

from kit_sync.cli.app import app, get_context
from kit_sync.deps import SyncContext
from kit_sync.repository import BaselineRecord
from kit_sync.services.exceptions import SyncError
from kit_sync.sync import LocalStateScanner, sanitize_terminal_text

STATUS_STYLES = {
    "unchanged": "green",
    "modified": "yellow",
    "missing": "red",
    "unreadable": "red",
}


async def get_status(context: SyncContext) -> List[Tuple[BaselineRecord, str]]:
    """Pair every baseline record with its local status."""
    records = sorted(
        await context.baseline_repository.find_all(), key=lambda r: r.target_path
    )
    scan = await LocalStateScanner().scan(record.to_item() for record in records)

    statuses = []
    for record in records:
        state = scan.states.get(record.target_path)
        if state is None:
            status = "unreadable"
        elif not state.exists:
            status = "missing"
        elif state.checksum == record.checksum:
            status = "unchanged"
        else:
            status = "modified"
        statuses.append((record, status))
    return statuses


def display_status(context: SyncContext, statuses: List[Tuple[BaselineRecord, str]]) -> None:
    console = context.console
    color = context.config.color
    if not statuses:
        console.print("No tracked items")
        return

    table = Table(title="Tracked items")
    table.add_column("Kind")
    table.add_column("Item")
    table.add_column("Provider")
    table.add_column("Target")
    table.add_column("Status")
    for record, status in statuses:
        table.add_row(
            record.kind.value,
            Text(sanitize_terminal_text(record.item_id)),
            Text(f"{sanitize_terminal_text(record.provider)} ({record.scope.value})"),
            Text(sanitize_terminal_text(record.target_path)),
            Text(status, style=STATUS_STYLES[status] if color else ""),
        )
    console.print(table)


@app.command()
def status(ctx: typer.Context) -> None:
    """Show tracked items and whether they were edited locally."""
    context = get_context(ctx)
    try:
        statuses = asyncio.run(get_status(context))
    except SyncError as e:
        logger.exception("Error checking status")
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)
    display_status(context, statuses)
