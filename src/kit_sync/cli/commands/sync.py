"""Command module for kit-sync plan and apply operations."""

import asyncio
import json
import sys
from pathlib import Path
from typing import Dict

import typer
from loguru import logger

from kit_sync.cli.app import app, get_context
from kit_sync.cli.commands.command_utils import (
    build_kit_plan,
    display_execution_summary,
    display_plan,
)
from kit_sync.deps import SyncContext
from kit_sync.schemas import ActionKind, Plan, Resolution, Scope
from kit_sync.services.exceptions import SyncError
from kit_sync.sync import ConflictResolver

SOURCE_ARGUMENT = typer.Argument(..., help="Kit source directory.", exists=True, file_okay=False)
TARGET_ARGUMENT = typer.Argument(..., help="Directory the kit is installed into.", file_okay=False)
PROVIDER_OPTION = typer.Option("claude", "--provider", "-p", help="Provider the items are for.")
GLOBAL_OPTION = typer.Option(False, "--global", "-g", help="Use the global install scope.")
JSON_OPTION = typer.Option(False, "--json", help="Print machine-readable JSON.")


def is_interactive() -> bool:
    return sys.stdin.isatty() and sys.stdout.isatty()


def resolve_conflicts(
    context: SyncContext, plan: Plan, interactive: bool
) -> Dict[str, Resolution]:
    """Resolve conflicts one at a time, in plan order."""
    resolver = ConflictResolver(console=context.console, color=context.config.color)
    return {
        action.key: resolver.resolve(action, interactive)
        for action in plan.actions_of(ActionKind.CONFLICT)
    }


async def run_plan(
    context: SyncContext,
    source: Path,
    target: Path,
    provider: str,
    scope: Scope,
    json_output: bool = False,
    verbose: bool = False,
) -> int:
    """Build and display a plan without changing anything."""
    plan = await build_kit_plan(context, source, target, provider, scope)
    if json_output:
        typer.echo(plan.model_dump_json(indent=2))
    else:
        display_plan(
            plan,
            context.console,
            max_items=context.config.max_display_items,
            verbose=verbose,
            color=context.config.color,
        )
    return 1 if plan.errors else 0


async def run_apply(
    context: SyncContext,
    source: Path,
    target: Path,
    provider: str,
    scope: Scope,
    yes: bool = False,
    dry_run: bool = False,
    json_output: bool = False,
) -> int:
    """
    Build, resolve and execute a plan under the sync lock.

    Returns:
        Exit code: 1 if any item failed, or if conflicts were left unresolved
        because no human could be asked
    """
    interactive = not yes and not json_output and is_interactive()

    async with context.sync_lock():
        plan = await build_kit_plan(context, source, target, provider, scope)
        if not json_output:
            display_plan(
                plan,
                context.console,
                max_items=context.config.max_display_items,
                color=context.config.color,
            )

        resolutions = resolve_conflicts(context, plan, interactive)

        pending = [a for a in plan.actions if a.kind != ActionKind.SKIP]
        if interactive and not dry_run and pending:
            if not typer.confirm(f"Apply {len(pending)} change(s)?", default=True):
                context.console.print("Cancelled")
                return 0

        result = await context.plan_executor().execute(plan, resolutions, dry_run=dry_run)

    if json_output:
        payload = {
            "plan": plan.model_dump(mode="json"),
            "result": result.model_dump(mode="json"),
        }
        typer.echo(json.dumps(payload, indent=2))
    else:
        display_execution_summary(plan, result, context.console, color=context.config.color)

    if not result.success or plan.errors:
        return 1
    if result.unresolved_conflicts and not interactive and not dry_run:
        logger.warning(f"{len(result.unresolved_conflicts)} conflicts left unresolved")
        if not json_output:
            context.console.print(
                "Conflicts were kept as-is. Re-run interactively to review them."
            )
        return 1
    return 0


def _run(coro) -> None:
    try:
        code = asyncio.run(coro)
    except SyncError as e:
        logger.exception("kit-sync failed")
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)
    if code:
        raise typer.Exit(code)


@app.command()
def plan(
    ctx: typer.Context,
    source: Path = SOURCE_ARGUMENT,
    target: Path = TARGET_ARGUMENT,
    provider: str = PROVIDER_OPTION,
    global_scope: bool = GLOBAL_OPTION,
    json_output: bool = JSON_OPTION,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show reasons for every item."),
) -> None:
    """Show what apply would do."""
    scope = Scope.GLOBAL if global_scope else Scope.LOCAL
    _run(run_plan(get_context(ctx), source, target, provider, scope, json_output, verbose))


@app.command()
def apply(
    ctx: typer.Context,
    source: Path = SOURCE_ARGUMENT,
    target: Path = TARGET_ARGUMENT,
    provider: str = PROVIDER_OPTION,
    global_scope: bool = GLOBAL_OPTION,
    yes: bool = typer.Option(
        False, "--yes", "-y", help="Do not prompt; conflicts keep the local version."
    ),
    dry_run: bool = typer.Option(False, "--dry-run", help="Show the result without writing."),
    json_output: bool = JSON_OPTION,
) -> None:
    """Install and update kit items, keeping user edits unless told otherwise."""
    scope = Scope.GLOBAL if global_scope else Scope.LOCAL
    _run(
        run_apply(
            get_context(ctx), source, target, provider, scope, yes, dry_run, json_output
        )
    )
