"""Unified diffs for conflicting items, and sanitized terminal rendering.

Diff text is stored as produced. Sanitization happens at display time: any
terminal control sequence embedded in file content is stripped before a line
reaches the console, and styling is added afterwards by rich, so content can
never inject escape sequences of its own.
"""

import difflib
import re
from pathlib import Path
from typing import Iterable, List, Optional, Union

from rich.console import Console
from rich.text import Text

from kit_sync.ignore_utils import list_content_files

CONTEXT_LINES = 3

# ESC [ params intermediates final
_CSI_RE = re.compile(r"(?:\x1b\[|\x9b)[0-?]*[ -/]*[@-~]")
# ESC ] ... terminated by BEL or ST, or running to the end of the text
_OSC_RE = re.compile(r"(?:\x1b\]|\x9d).*?(?:\x07|\x1b\\|\x9c|$)", re.DOTALL)
# ESC P ... ST
_DCS_RE = re.compile(r"(?:\x1bP|\x90).*?(?:\x1b\\|\x9c|$)", re.DOTALL)
# whatever is left: other escapes, lone ESC, C0/C1 controls except tab
_ESC_PAIR_RE = re.compile(r"\x1b[ -/]*[0-~]?")
_CONTROL_RE = re.compile(r"[\x00-\x08\x0a-\x1f\x7f-\x9f]")

_LINE_STYLES = (
    ("+++", "bold"),
    ("---", "bold"),
    ("@@", "cyan"),
    ("\\", "dim"),
    ("+", "green"),
    ("-", "red"),
)


NO_NEWLINE_MARKER = "\\ No newline at end of file"


def _to_text(content: Union[str, bytes, None]) -> str:
    if content is None:
        return ""
    if isinstance(content, bytes):
        return content.decode("utf-8", errors="replace")
    return content


def _split_lines(text: str) -> List[str]:
    """Split on "\\n" only, keeping terminators so a missing final newline or a CR shows up."""
    lines = [line + "\n" for line in text.split("\n")]
    lines[-1] = lines[-1][:-1]
    if not lines[-1]:
        lines.pop()
    return lines


def generate_diff(
    old_content: Union[str, bytes, None],
    new_content: Union[str, bytes, None],
    name: str,
) -> str:
    """
    Produce a unified diff between two versions of one item.

    Headers are `--- a/<name>` and `+++ b/<name>` with no timestamps, and
    hunks carry 3 lines of context. Identical inputs yield just the headers.
    Lines are compared with their terminators: a CR stays part of the line,
    and a last line without a newline is followed by the
    `\\ No newline at end of file` marker, as in `diff -u`.

    Args:
        old_content: Current local content
        new_content: Proposed content
        name: Display name used in the headers

    Returns:
        Diff text, newline separated
    """
    old_lines = _split_lines(_to_text(old_content))
    new_lines = _split_lines(_to_text(new_content))

    lines = [f"--- a/{name}", f"+++ b/{name}"]
    body = difflib.unified_diff(
        old_lines,
        new_lines,
        fromfile=f"a/{name}",
        tofile=f"b/{name}",
        n=CONTEXT_LINES,
        lineterm="",
    )
    # difflib repeats the two header lines when there is any change
    for i, line in enumerate(body):
        if i < 2:
            continue
        if line.startswith("@@"):
            lines.append(line)
        elif line.endswith("\n"):
            lines.append(line[:-1])
        else:
            lines.append(line)
            lines.append(NO_NEWLINE_MARKER)
    return "\n".join(lines) + "\n"


def generate_tree_diff(old_dir: Optional[Path], new_dir: Optional[Path], name: str) -> str:
    """Concatenate per-file diffs of two directory trees (either may be absent)."""
    old_files = set(list_content_files(old_dir)) if old_dir and old_dir.is_dir() else set()
    new_files = set(list_content_files(new_dir)) if new_dir and new_dir.is_dir() else set()

    parts: List[str] = []
    for rel_path in sorted(old_files | new_files):
        old = (old_dir / rel_path).read_bytes() if rel_path in old_files else None
        new = (new_dir / rel_path).read_bytes() if rel_path in new_files else None
        if old == new:
            continue
        parts.append(generate_diff(old, new, f"{name}/{rel_path}"))
    return "".join(parts)


def has_changes(diff: str) -> bool:
    """True if a diff contains any added or removed content line."""
    for line in diff.split("\n"):
        if line.startswith(("+++", "---")):
            continue
        if line.startswith(("+", "-")):
            return True
    return False


def sanitize_terminal_text(text: str) -> str:
    """Strip terminal control sequences (CSI, OSC, DCS) and stray controls."""
    text = _OSC_RE.sub("", text)
    text = _DCS_RE.sub("", text)
    text = _CSI_RE.sub("", text)
    text = _ESC_PAIR_RE.sub("", text)
    return _CONTROL_RE.sub("", text)


def colorize_diff_line(line: str, color: bool = True) -> Text:
    """Sanitize one diff line and style it by its leading characters.

    Carriage returns are shown as `^M` so line-ending changes stay visible.
    """
    clean = sanitize_terminal_text(line.replace("\r", "^M"))
    if not color:
        return Text(clean)
    for prefix, style in _LINE_STYLES:
        if clean.startswith(prefix):
            return Text(clean, style=style)
    return Text(clean)


def render_diff_lines(diff: str, color: bool = True) -> Iterable[Text]:
    for line in diff.rstrip("\n").split("\n"):
        yield colorize_diff_line(line, color=color)


def render_diff(diff: Optional[str], console: Console, color: bool = True) -> None:
    """Print a diff to the console, one sanitized line at a time.

    A diff with headers only (contents differ in bytes the text decoding
    hides) gets a note instead of an empty body.
    """
    if not diff:
        console.print(Text("(no diff available)", style="dim" if color else ""))
        return
    for text in render_diff_lines(diff, color=color):
        console.print(text, highlight=False, markup=False, emoji=False, soft_wrap=True)
    if not has_changes(diff):
        console.print(Text("(no line differences)", style="dim" if color else ""))
