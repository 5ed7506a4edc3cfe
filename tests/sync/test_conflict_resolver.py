"""Tests for interactive conflict resolution."""

from pathlib import Path
from typing import List, Optional

import pytest

from kit_sync.schemas import Action, ActionKind, ResolutionKind
from kit_sync.sync.conflict_resolver import (
    MAX_PROMPT_ATTEMPTS,
    ConflictChoice,
    ConflictResolver,
    resolve_conflict,
)
from conftest import make_item


class ScriptedPrompt:
    """Prompt returning queued answers and counting calls."""

    def __init__(self, answers: List[Optional[ConflictChoice]]):
        self.answers = list(answers)
        self.calls = 0

    def __call__(self, action: Action) -> Optional[ConflictChoice]:
        self.calls += 1
        if self.answers:
            return self.answers.pop(0)
        return ConflictChoice.SHOW_DIFF


class RaisingPrompt:
    def __init__(self, error: BaseException):
        self.error = error
        self.calls = 0

    def __call__(self, action: Action) -> Optional[ConflictChoice]:
        self.calls += 1
        raise self.error


@pytest.fixture
def conflict(tmp_path: Path) -> Action:
    item = make_item(tmp_path / "agents" / "planner.md", "new\n", item_id="planner")
    return Action(
        kind=ActionKind.CONFLICT,
        item=item,
        target_path=item.target_path,
        reason="Both source and local copy modified",
        diff="--- a/planner.md\n+++ b/planner.md\n@@ -1 +1 @@\n-mine\n+new\n",
    )


def test_non_interactive_keeps_without_prompting(conflict, console):
    test_console, output = console
    prompt = ScriptedPrompt([ConflictChoice.OVERWRITE])
    resolution = ConflictResolver(prompt=prompt, console=test_console).resolve(
        conflict, interactive=False
    )
    assert resolution.kind == ResolutionKind.KEEP
    assert prompt.calls == 0
    assert output.getvalue() == ""


def test_overwrite(conflict, console):
    test_console, output = console
    prompt = ScriptedPrompt([ConflictChoice.OVERWRITE])
    resolution = resolve_conflict(conflict, True, prompt=prompt, console=test_console)
    assert resolution.kind == ResolutionKind.OVERWRITE
    assert prompt.calls == 1
    assert "Conflict: agent/planner -> claude" in output.getvalue()


def test_keep(conflict, console):
    test_console, _ = console
    prompt = ScriptedPrompt([ConflictChoice.KEEP])
    resolution = resolve_conflict(conflict, True, prompt=prompt, console=test_console)
    assert resolution.kind == ResolutionKind.KEEP
    assert prompt.calls == 1


def test_diff_then_overwrite(conflict, console):
    test_console, output = console
    prompt = ScriptedPrompt([ConflictChoice.SHOW_DIFF, ConflictChoice.OVERWRITE])
    resolution = resolve_conflict(conflict, True, prompt=prompt, console=test_console)
    assert resolution.kind == ResolutionKind.OVERWRITE
    assert prompt.calls == 2
    assert "+new" in output.getvalue()
    assert "-mine" in output.getvalue()


def test_endless_show_diff_is_bounded(conflict, console):
    test_console, output = console
    prompt = ScriptedPrompt([])
    resolution = resolve_conflict(conflict, True, prompt=prompt, console=test_console)
    assert resolution.kind == ResolutionKind.KEEP
    assert prompt.calls == MAX_PROMPT_ATTEMPTS == 5
    assert output.getvalue().count("+new") == MAX_PROMPT_ATTEMPTS


def test_cancelled_prompt_keeps(conflict, console):
    test_console, _ = console
    prompt = ScriptedPrompt([None])
    resolution = resolve_conflict(conflict, True, prompt=prompt, console=test_console)
    assert resolution.kind == ResolutionKind.KEEP
    assert prompt.calls == 1


@pytest.mark.parametrize("error", [KeyboardInterrupt(), EOFError(), RuntimeError("tty gone")])
def test_prompt_failure_keeps(conflict, console, error):
    test_console, _ = console
    prompt = RaisingPrompt(error)
    resolution = resolve_conflict(conflict, True, prompt=prompt, console=test_console)
    assert resolution.kind == ResolutionKind.KEEP
    assert prompt.calls == 1


def test_missing_diff_is_reported(conflict, console):
    test_console, output = console
    conflict.diff = None
    prompt = ScriptedPrompt([ConflictChoice.SHOW_DIFF, ConflictChoice.KEEP])
    resolve_conflict(conflict, True, prompt=prompt, console=test_console)
    assert "(no diff available)" in output.getvalue()


def test_context_is_sanitized(tmp_path, console):
    test_console, output = console
    item = make_item(tmp_path / "evil.md", "x", item_id="\x1b]0;pwned\x07evil")
    action = Action(
        kind=ActionKind.CONFLICT, item=item, target_path=item.target_path, reason="r"
    )
    resolve_conflict(action, True, prompt=ScriptedPrompt([None]), console=test_console)
    assert "\x1b" not in output.getvalue()
    assert "agent/evil" in output.getvalue()


def test_rejects_non_conflicts(conflict):
    conflict.kind = ActionKind.UPDATE
    with pytest.raises(ValueError):
        ConflictResolver(prompt=ScriptedPrompt([])).resolve(conflict, interactive=True)
