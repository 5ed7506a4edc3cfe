"""Repository for baseline records: the checksums kit-sync itself last wrote."""

from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Iterable, List, Literal, Optional, Union

from loguru import logger
from pydantic import BaseModel, Field, ValidationError

from kit_sync import file_utils
from kit_sync.schemas import BaselineUpdate, Item, ItemKind, Scope
from kit_sync.services.exceptions import RegistryError
from kit_sync.utils import to_posix_key


def _now() -> datetime:
    return datetime.now(timezone.utc)


class BaselineRecord(BaseModel):
    """Last tool-written state of one target path."""

    target_path: str
    checksum: str
    item_id: str
    kind: ItemKind
    provider: str
    scope: Scope = Scope.LOCAL
    installed_at: datetime = Field(default_factory=_now)

    def to_item(self) -> Item:
        """Candidate-less item standing for this record, used for orphan detection."""
        return Item(
            id=self.item_id,
            kind=self.kind,
            provider=self.provider,
            scope=self.scope,
            target_path=Path(self.target_path),
        )


class RegistryFile(BaseModel):
    version: Literal["1.0"] = "1.0"
    last_reconciled: Optional[datetime] = None
    records: Dict[str, BaselineRecord] = Field(default_factory=dict)


class BaselineRepository:
    """
    JSON-file store mapping target path -> BaselineRecord.

    The file is loaded lazily and written atomically on `save()`.
    """

    def __init__(self, registry_path: Path):
        self.registry_path = registry_path
        self._registry: Optional[RegistryFile] = None

    async def load(self) -> RegistryFile:
        """Load the registry from disk, an absent file is an empty registry.

        Raises:
            RegistryError: If the file exists but is unreadable or invalid
        """
        if self._registry is not None:
            return self._registry

        if not self.registry_path.exists():
            logger.debug(f"No registry at {self.registry_path}, starting empty")
            self._registry = RegistryFile()
            return self._registry

        try:
            raw = await file_utils.read_file_bytes(self.registry_path)
            self._registry = RegistryFile.model_validate_json(raw)
        except (file_utils.FileError, ValidationError) as e:
            logger.error(f"Failed to load registry {self.registry_path}: {e}")
            raise RegistryError(f"Failed to load registry {self.registry_path}: {e}") from e

        logger.debug(f"Loaded {len(self._registry.records)} baseline records")
        return self._registry

    def reset(self) -> None:
        """Drop the cached registry so the next access re-reads the file."""
        self._registry = None

    async def find_all(self) -> List[BaselineRecord]:
        registry = await self.load()
        return list(registry.records.values())

    async def get(self, target_path: Union[str, Path]) -> Optional[BaselineRecord]:
        registry = await self.load()
        return registry.records.get(to_posix_key(target_path))

    async def checksums(self) -> Dict[str, str]:
        """Baseline lookup for the plan builder: target path -> checksum."""
        registry = await self.load()
        return {key: record.checksum for key, record in registry.records.items()}

    async def upsert(self, record: BaselineRecord) -> BaselineRecord:
        registry = await self.load()
        key = to_posix_key(record.target_path)
        record = record.model_copy(update={"target_path": key})
        registry.records[key] = record
        return record

    async def remove(self, target_path: Union[str, Path]) -> bool:
        registry = await self.load()
        return registry.records.pop(to_posix_key(target_path), None) is not None

    async def apply_updates(
        self, updates: Iterable[BaselineUpdate], items: Iterable[Item]
    ) -> None:
        """
        Apply executor baseline updates.

        Args:
            updates: New checksums or removals per target path
            items: Items of the executed plan, for record metadata
        """
        by_key = {item.key: item for item in items}
        for update in updates:
            key = to_posix_key(update.target_path)
            if update.removed:
                await self.remove(key)
                logger.debug(f"Removed baseline: {key}")
                continue

            item = by_key.get(key)
            existing = await self.get(key)
            if item is None and existing is None:
                logger.warning(f"No item or record for baseline update {key}, skipping")
                continue

            if item is not None:
                record = BaselineRecord(
                    target_path=key,
                    checksum=update.checksum,
                    item_id=item.id,
                    kind=item.kind,
                    provider=item.provider,
                    scope=item.scope,
                )
            else:
                record = existing.model_copy(
                    update={"checksum": update.checksum, "installed_at": _now()}
                )
            await self.upsert(record)
            logger.debug(f"Recorded baseline: {key} ({update.checksum[:8]})")

    async def save(self) -> None:
        """Write the registry atomically.

        Raises:
            RegistryError: If the write fails
        """
        registry = await self.load()
        registry.last_reconciled = _now()
        try:
            await file_utils.ensure_directory(self.registry_path.parent)
            await file_utils.write_file_atomic(
                self.registry_path, registry.model_dump_json(indent=2)
            )
        except file_utils.FileError as e:
            raise RegistryError(f"Failed to save registry {self.registry_path}: {e}") from e
        logger.debug(f"Saved {len(registry.records)} baseline records")
