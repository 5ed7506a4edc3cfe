from .classifier import ChangeFacts, classify_change
from .conflict_resolver import MAX_PROMPT_ATTEMPTS, ConflictChoice, ConflictResolver, resolve_conflict
from .diff import generate_diff, render_diff, sanitize_terminal_text
from .discovery import discover_items
from .executor import PlanExecutor
from .local_state_scanner import LocalStateScanner
from .lock import SyncLock
from .plan_builder import PlanBuilder, find_orphans

__all__ = [
    "ChangeFacts",
    "ConflictChoice",
    "ConflictResolver",
    "LocalStateScanner",
    "MAX_PROMPT_ATTEMPTS",
    "PlanBuilder",
    "PlanExecutor",
    "SyncLock",
    "classify_change",
    "discover_items",
    "find_orphans",
    "generate_diff",
    "render_diff",
    "resolve_conflict",
    "sanitize_terminal_text",
]
