"""Interactive, bounded resolution of conflicting plan actions.

Each conflict is a tiny state machine: it starts in `prompting` and ends in
`resolved(keep|overwrite)`. Anything other than an explicit overwrite ends in
keep, so no destructive action ever happens without a human decision.
"""

from enum import Enum
from typing import Callable, Optional

from loguru import logger
from rich.console import Console
from rich.prompt import Prompt
from rich.text import Text

from kit_sync.schemas import Action, ActionKind, Resolution
from kit_sync.sync.diff import render_diff, sanitize_terminal_text

MAX_PROMPT_ATTEMPTS = 5


class ConflictChoice(str, Enum):
    KEEP = "keep"
    OVERWRITE = "overwrite"
    SHOW_DIFF = "diff"


# Returns the user's choice, or None when the prompt was cancelled.
PromptFn = Callable[[Action], Optional[ConflictChoice]]


def rich_prompt(console: Console) -> PromptFn:
    """Default prompt asking on the console with rich."""

    def ask(action: Action) -> Optional[ConflictChoice]:
        answer = Prompt.ask(
            "Keep your version, overwrite with the new one, or show the diff?",
            choices=[choice.value for choice in ConflictChoice],
            default=ConflictChoice.KEEP.value,
            console=console,
        )
        return ConflictChoice(answer) if answer else None

    return ask


class ConflictResolver:
    """Turns one conflict action into a Resolution."""

    def __init__(
        self,
        prompt: Optional[PromptFn] = None,
        console: Optional[Console] = None,
        color: bool = True,
    ):
        self.console = console or Console()
        self.prompt = prompt or rich_prompt(self.console)
        self.color = color

    def show_context(self, action: Action) -> None:
        """Show what is in conflict before any choice is offered."""
        target = sanitize_terminal_text(str(action.target_path))
        label = sanitize_terminal_text(action.item.label)
        reason = sanitize_terminal_text(action.reason)
        self.console.print()
        self.console.print(Text(f"Conflict: {label}", style="bold red" if self.color else ""))
        self.console.print(Text(f"  {target}"))
        self.console.print(Text(f"  {reason}", style="dim" if self.color else ""))

    def resolve(self, action: Action, interactive: bool) -> Resolution:
        """
        Resolve a conflict.

        Args:
            action: A plan action of kind conflict
            interactive: Whether a human can be asked

        Returns:
            Resolution, keep unless the user explicitly chose overwrite
        """
        if action.kind != ActionKind.CONFLICT:
            raise ValueError(f"Not a conflict: {action.kind.value} for {action.key}")

        if not interactive:
            logger.info(f"Non-interactive, keeping local version of {action.key}")
            return Resolution.keep()

        self.show_context(action)
        for attempt in range(1, MAX_PROMPT_ATTEMPTS + 1):
            try:
                choice = self.prompt(action)
            except (KeyboardInterrupt, EOFError):
                logger.info(f"Prompt cancelled for {action.key}, keeping local version")
                return Resolution.keep()
            except Exception as e:
                logger.warning(f"Prompt failed for {action.key}: {e}, keeping local version")
                return Resolution.keep()

            if choice is None:
                logger.info(f"Prompt cancelled for {action.key}, keeping local version")
                return Resolution.keep()
            if choice == ConflictChoice.KEEP:
                return Resolution.keep()
            if choice == ConflictChoice.OVERWRITE:
                logger.info(f"User chose to overwrite {action.key}")
                return Resolution.overwrite()

            logger.debug(f"Showing diff for {action.key} (attempt {attempt})")
            render_diff(action.diff, self.console, color=self.color)

        logger.warning(
            f"No decision for {action.key} after {MAX_PROMPT_ATTEMPTS} prompts, keeping local version"
        )
        return Resolution.keep()


def resolve_conflict(
    action: Action,
    interactive: bool,
    prompt: Optional[PromptFn] = None,
    console: Optional[Console] = None,
    color: bool = True,
) -> Resolution:
    """Resolve a single conflict with a one-off resolver."""
    return ConflictResolver(prompt=prompt, console=console, color=color).resolve(
        action, interactive
    )
