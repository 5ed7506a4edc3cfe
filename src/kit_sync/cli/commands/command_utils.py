"""Shared display and orchestration helpers for kit-sync commands."""

from pathlib import Path
from typing import Dict, List, Tuple

from rich.console import Console
from rich.text import Text
from rich.tree import Tree

from kit_sync.deps import SyncContext
from kit_sync.schemas import Action, ActionKind, ExecutionResult, ItemKind, Plan, Scope
from kit_sync.sync import discover_items, find_orphans, sanitize_terminal_text

# label, marker, style - one entry per ActionKind, in display order
ACTION_DISPLAY: Dict[ActionKind, Tuple[str, str, str]] = {
    ActionKind.INSTALL: ("Install", "+", "green"),
    ActionKind.UPDATE: ("Update", "~", "yellow"),
    ActionKind.CONFLICT: ("Conflict", "!", "red"),
    ActionKind.DELETE: ("Delete", "-", "magenta"),
    ActionKind.SKIP: ("Skip", " ", "dim"),
}

KIND_LABELS: Dict[ItemKind, str] = {
    ItemKind.CONFIG: "Config",
    ItemKind.AGENT: "Agents",
    ItemKind.COMMAND: "Commands",
    ItemKind.RULE: "Rules",
    ItemKind.SKILL: "Skills",
}


async def build_kit_plan(
    context: SyncContext, source: Path, target: Path, provider: str, scope: Scope
) -> Plan:
    """Discover kit items, add orphaned baselines, and build the plan."""
    items = discover_items(source, target, provider=provider, scope=scope)
    repository = context.baseline_repository
    records = await repository.find_all()
    items.extend(
        find_orphans(items, records, provider, scope, target_root=target.expanduser().resolve())
    )
    return await context.plan_builder().build_plan(items, await repository.checksums())


def _styled(text: str, style: str, color: bool) -> Text:
    return Text(text, style=style if color else "")


def _group_by_kind(actions: List[Action]) -> Dict[ItemKind, List[Action]]:
    groups: Dict[ItemKind, List[Action]] = {}
    for action in actions:
        groups.setdefault(action.item.kind, []).append(action)
    return groups


def display_plan(
    plan: Plan, console: Console, max_items: int = 20, verbose: bool = False, color: bool = True
) -> None:
    """Display a plan grouped by action, then by item kind.

    Each action group lists at most `max_items` entries, the rest is
    summarized as a count.
    """
    console.print()
    console.print(_styled("Plan", "bold", color))

    groups = plan.grouped()
    for kind, (label, marker, style) in ACTION_DISPLAY.items():
        actions = groups[kind]
        if not actions:
            continue

        tree = Tree(_styled(f"[{marker}] {label} ({len(actions)})", style, color))
        shown = 0
        for item_kind, kind_actions in _group_by_kind(actions).items():
            branch = tree.add(
                _styled(f"{KIND_LABELS[item_kind]} ({len(kind_actions)})", "dim", color)
            )
            remaining = max_items - shown
            visible = kind_actions[: max(remaining, 0)]
            for action in visible:
                entry = Text(f"{marker} {sanitize_terminal_text(action.item.label)}")
                if verbose or kind in (ActionKind.CONFLICT, ActionKind.DELETE):
                    entry.append(
                        f"  {sanitize_terminal_text(action.reason)}", style="dim" if color else ""
                    )
                branch.add(entry)
            shown += len(visible)
            hidden = len(kind_actions) - len(visible)
            if hidden > 0:
                branch.add(
                    _styled(f"... and {hidden} more {KIND_LABELS[item_kind].lower()}", "dim", color)
                )
        console.print(tree)

    if plan.errors:
        tree = Tree(_styled(f"[x] Errors ({len(plan.errors)})", "bold red", color))
        for error in plan.errors:
            tree.add(
                Text(
                    f"{sanitize_terminal_text(error.item.label)}: "
                    f"{sanitize_terminal_text(error.error)}"
                )
            )
        console.print(tree)

    summary = plan.summary
    console.print()
    console.print(
        f"Summary: {summary.install} install, {summary.update} update, {summary.skip} skip, "
        f"{summary.conflict} conflict, {summary.delete} delete",
        highlight=False,
    )


def display_execution_summary(
    plan: Plan, result: ExecutionResult, console: Console, color: bool = True
) -> None:
    """Display a one-line-per-outcome summary after executing a plan."""
    console.print()
    if result.dry_run:
        console.print(_styled("Dry run complete, no files written", "green", color))

    applied = {kind: 0 for kind in ActionKind}
    for item_result in result.results:
        if item_result.applied:
            applied[item_result.action] += 1

    lines = [
        (applied[ActionKind.INSTALL], "installed", "green"),
        (applied[ActionKind.UPDATE], "updated", "green"),
        (applied[ActionKind.DELETE], "deleted", "magenta"),
        (applied[ActionKind.CONFLICT], "overwritten", "yellow"),
        (result.skipped, "unchanged", "dim"),
        (result.failed, "failed", "red"),
    ]
    for count, label, style in lines:
        if count:
            console.print(_styled(f"  {count} {label}", style, color))

    conflicts = [r for r in result.results if r.action == ActionKind.CONFLICT]
    if conflicts:
        console.print("Conflicts:")
        for r in conflicts:
            resolution = r.resolution.value if r.resolution else "keep"
            console.print(Text(f"  {sanitize_terminal_text(str(r.target_path))}: {resolution}"))

    for failure in result.failures:
        console.print(
            _styled(
                f"  failed {sanitize_terminal_text(str(failure.target_path))}: "
                f"{sanitize_terminal_text(failure.error or '')}",
                "red",
                color,
            )
        )

    if not plan.errors and all(a.kind == ActionKind.SKIP for a in plan.actions):
        console.print(_styled("Everything up to date", "green", color))
