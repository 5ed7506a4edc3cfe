"""Core pydantic models for managed kit items.

An item is one file-like artifact kit-sync manages on behalf of a provider:
a config file, an agent, a command, a rule, or a skill directory.

Key Concepts:
1. Every item has exactly one target path, unique within a plan
2. The candidate is the content the kit proposes for that path
3. An item with no candidate means the kit no longer ships it
"""

from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from kit_sync.utils import to_posix_key


class ItemKind(str, Enum):
    """Kinds of managed items."""

    CONFIG = "config"
    AGENT = "agent"
    COMMAND = "command"
    SKILL = "skill"
    RULE = "rule"


class Scope(str, Enum):
    """Install scope: inside a project or in the user's global config."""

    LOCAL = "local"
    GLOBAL = "global"


class Item(BaseModel):
    """A managed item and the source of its candidate content.

    The candidate comes either from inline `content` or from `source_path`,
    which may be a single file or a directory (skills). Content is read on
    demand by the plan builder and is never serialized.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    kind: ItemKind
    provider: str
    scope: Scope = Scope.LOCAL
    target_path: Path
    content: Optional[bytes] = Field(default=None, exclude=True, repr=False)
    source_path: Optional[Path] = None

    @model_validator(mode="after")
    def check_single_source(self) -> "Item":
        if self.content is not None and self.source_path is not None:
            raise ValueError("Item takes either inline content or a source_path, not both")
        return self

    @property
    def key(self) -> str:
        """Target path as used for registry and resolution lookups."""
        return to_posix_key(self.target_path)

    @property
    def has_candidate(self) -> bool:
        return self.content is not None or self.source_path is not None

    @property
    def is_directory(self) -> bool:
        """True for tree-backed items, whose checksums are tree checksums."""
        if self.source_path is not None:
            return self.source_path.is_dir()
        if self.content is None:
            return self.kind == ItemKind.SKILL or self.target_path.is_dir()
        return False

    @property
    def label(self) -> str:
        scope = " (global)" if self.scope == Scope.GLOBAL else ""
        return f"{self.kind.value}/{self.id} -> {self.provider}{scope}"
