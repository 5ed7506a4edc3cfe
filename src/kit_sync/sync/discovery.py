"""Discover kit items in a source directory and map them onto a target directory.

Source layout:
    agents/**/*.md      -> agent items
    commands/**/*.md    -> command items
    rules/**/*.md       -> rule items
    skills/<name>/      -> skill items (whole directory)
    CLAUDE.md, AGENTS.md at the root -> config items

Each item lands at the same relative path below the target directory.
"""

from pathlib import Path
from typing import Dict, List

from loguru import logger

from kit_sync.ignore_utils import list_content_files, should_ignore_path
from kit_sync.schemas import Item, ItemKind, Scope

KIND_DIRECTORIES: Dict[ItemKind, str] = {
    ItemKind.AGENT: "agents",
    ItemKind.COMMAND: "commands",
    ItemKind.RULE: "rules",
}
SKILLS_DIRECTORY = "skills"
CONFIG_FILE_NAMES = ("CLAUDE.md", "AGENTS.md")
ITEM_SUFFIX = ".md"


def _discover_markdown(
    source_dir: Path, target_dir: Path, kind: ItemKind, provider: str, scope: Scope
) -> List[Item]:
    kind_dir = source_dir / KIND_DIRECTORIES[kind]
    if not kind_dir.is_dir():
        return []

    items = []
    for rel_path in list_content_files(kind_dir):
        if not rel_path.endswith(ITEM_SUFFIX):
            logger.debug(f"Skipping non-markdown {kind.value} file: {rel_path}")
            continue
        items.append(
            Item(
                id=rel_path[: -len(ITEM_SUFFIX)],
                kind=kind,
                provider=provider,
                scope=scope,
                target_path=target_dir / KIND_DIRECTORIES[kind] / rel_path,
                source_path=kind_dir / rel_path,
            )
        )
    return items


def _discover_skills(
    source_dir: Path, target_dir: Path, provider: str, scope: Scope
) -> List[Item]:
    skills_dir = source_dir / SKILLS_DIRECTORY
    if not skills_dir.is_dir():
        return []

    items = []
    for entry in sorted(skills_dir.iterdir()):
        if not entry.is_dir() or entry.is_symlink():
            continue
        if should_ignore_path(entry, skills_dir):
            continue
        items.append(
            Item(
                id=entry.name,
                kind=ItemKind.SKILL,
                provider=provider,
                scope=scope,
                target_path=target_dir / SKILLS_DIRECTORY / entry.name,
                source_path=entry,
            )
        )
    return items


def discover_items(
    source_dir: Path,
    target_dir: Path,
    provider: str = "claude",
    scope: Scope = Scope.LOCAL,
) -> List[Item]:
    """
    Discover all kit items below `source_dir`.

    Args:
        source_dir: Root of the kit source
        target_dir: Root the items are installed into
        provider: Provider name recorded on every item
        scope: Install scope recorded on every item

    Returns:
        Items ordered config, agents, commands, rules, skills
    """
    source_dir = source_dir.expanduser().resolve()
    target_dir = target_dir.expanduser().resolve()
    logger.debug(f"Discovering items in {source_dir} for {target_dir}")

    items: List[Item] = []
    for name in CONFIG_FILE_NAMES:
        config_file = source_dir / name
        if config_file.is_file() and not config_file.is_symlink():
            items.append(
                Item(
                    id=Path(name).stem,
                    kind=ItemKind.CONFIG,
                    provider=provider,
                    scope=scope,
                    target_path=target_dir / name,
                    source_path=config_file,
                )
            )

    for kind in (ItemKind.AGENT, ItemKind.COMMAND, ItemKind.RULE):
        items.extend(_discover_markdown(source_dir, target_dir, kind, provider, scope))
    items.extend(_discover_skills(source_dir, target_dir, provider, scope))

    logger.info(f"Discovered {len(items)} items in {source_dir}")
    return items
