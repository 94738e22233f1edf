"""
Named configuration store for questionnaire presets.

A preset is a named snapshot of an answer set for one questionnaire.
The store is asynchronous by contract and persists through a swappable
storage adapter:

- InMemoryPresetStorage: process-local, for tests and embedding.
- JsonFilePresetStorage: a versioned JSON envelope on disk.
- SQLitePresetStorage: one row per preset in a SQLite database.

Reads degrade to an empty result when the backing data is missing or
corrupt; writes propagate their failures to the caller.
"""

import copy
import logging
import sqlite3
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any, Iterator, Protocol

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from polyform.core.errors import PresetImportError

if TYPE_CHECKING:
    from polyform.core.form_state import FormEngine

logger = logging.getLogger(__name__)

ENVELOPE_VERSION = "1.0"

UPDATABLE_FIELDS = {"name", "questionnaire_id", "answers", "description", "tags"}


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime | None) -> datetime | None:
    """Naive timestamps are taken as UTC."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


# --- Models ---


class _PersistedModel(BaseModel):
    """Serialised with camelCase keys; reads accept either spelling."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Preset(_PersistedModel):
    """A named, persisted answer set for one questionnaire."""

    id: str
    name: str = Field(..., min_length=1)
    questionnaire_id: str = Field(..., min_length=1)
    answers: dict[str, Any] = Field(default_factory=dict)
    description: str | None = None
    tags: list[str] | None = None
    created_at: datetime
    updated_at: datetime

    @field_validator("created_at", "updated_at")
    @classmethod
    def normalize_timestamps(cls, value: datetime) -> datetime:
        return _as_utc(value)


class PresetMetadata(_PersistedModel):
    """Listing view of a preset, without its answers."""

    id: str
    name: str
    questionnaire_id: str
    description: str | None = None
    tags: list[str] | None = None
    created_at: datetime
    updated_at: datetime
    answer_count: int


class PresetEnvelope(_PersistedModel):
    """Persistence and export format: ``{version, updatedAt, presets}``."""

    version: str = ENVELOPE_VERSION
    updated_at: datetime | None = None
    presets: list[Preset] = Field(default_factory=list)

    @field_validator("updated_at")
    @classmethod
    def normalize_timestamp(cls, value: datetime | None) -> datetime | None:
        return _as_utc(value)


# --- Storage adapters ---


class PresetStorage(Protocol):
    """Minimal persistence contract the store needs from a backend."""

    async def load(self) -> list[Preset]:
        ...

    async def save(self, presets: list[Preset]) -> None:
        ...


class InMemoryPresetStorage:
    """Keeps presets in process memory. Nothing survives the process."""

    def __init__(self, presets: list[Preset] | None = None):
        self._presets = [p.model_copy(deep=True) for p in presets or []]

    async def load(self) -> list[Preset]:
        return [p.model_copy(deep=True) for p in self._presets]

    async def save(self, presets: list[Preset]) -> None:
        self._presets = [p.model_copy(deep=True) for p in presets]


class JsonFilePresetStorage:
    """Stores the preset envelope as a pretty-printed JSON file.

    A missing or empty file reads as no presets; so does a corrupt one,
    with a warning. Write failures propagate.
    """

    def __init__(self, path: str | Path, create_directories: bool = True):
        self.path = Path(path).expanduser()
        self.create_directories = create_directories

    async def load(self) -> list[Preset]:
        if not self.path.exists():
            return []

        try:
            content = self.path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Failed to read presets from %s: %s", self.path, e)
            return []

        if not content.strip():
            return []

        try:
            envelope = PresetEnvelope.model_validate_json(content)
        except ValidationError as e:
            logger.warning("Ignoring corrupt preset file %s: %s", self.path, e)
            return []
        return envelope.presets

    async def save(self, presets: list[Preset]) -> None:
        if self.create_directories:
            self.path.parent.mkdir(parents=True, exist_ok=True)
        envelope = PresetEnvelope(updated_at=_now(), presets=presets)
        self.path.write_text(envelope.model_dump_json(indent=2, by_alias=True), encoding="utf-8")


class SQLitePresetStorage:
    """SQLite-backed preset storage.

    Useful when presets should live next to other durable state without
    introducing external infrastructure.
    """

    def __init__(self, db_path: str | Path):
        self._db_path = str(Path(db_path).expanduser())
        self._ensure_schema()

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        try:
            with conn:
                yield conn
        finally:
            conn.close()

    def _ensure_schema(self) -> None:
        Path(self._db_path).parent.mkdir(parents=True, exist_ok=True)
        with self._connect() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS presets (
                    id TEXT PRIMARY KEY,
                    position INTEGER NOT NULL,
                    questionnaire_id TEXT NOT NULL,
                    preset_json TEXT NOT NULL
                )
                """
            )

    async def load(self) -> list[Preset]:
        try:
            with self._connect() as conn:
                rows = conn.execute(
                    "SELECT id, preset_json FROM presets ORDER BY position"
                ).fetchall()
        except sqlite3.Error as e:
            logger.warning("Failed to read presets from %s: %s", self._db_path, e)
            return []

        presets = []
        for row in rows:
            try:
                presets.append(Preset.model_validate_json(row["preset_json"]))
            except ValidationError as e:
                logger.warning("Skipping corrupt preset row '%s': %s", row["id"], e)
        return presets

    async def save(self, presets: list[Preset]) -> None:
        with self._connect() as conn:
            conn.execute("DELETE FROM presets")
            conn.executemany(
                """
                INSERT INTO presets (id, position, questionnaire_id, preset_json)
                VALUES (?, ?, ?, ?)
                """,
                [
                    (p.id, position, p.questionnaire_id, p.model_dump_json(by_alias=True))
                    for position, p in enumerate(presets)
                ],
            )


# --- Store ---


class PresetStore:
    """Saves, finds and manages presets through a storage adapter.

    Args:
        storage: The persistence backend.
        max_presets: Capacity bound. When a save would exceed it, the
            oldest presets by creation time are evicted first. None
            means unbounded.
    """

    def __init__(self, storage: PresetStorage, max_presets: int | None = None):
        if max_presets is not None and max_presets < 1:
            raise ValueError("max_presets must be at least 1 (or None for unbounded)")
        self.storage = storage
        self.max_presets = max_presets

    async def save(
        self,
        name: str,
        answers: dict[str, Any],
        questionnaire_id: str,
        description: str | None = None,
        tags: list[str] | None = None,
    ) -> Preset:
        """Save a new preset. Always mints a fresh ID and timestamps."""
        now = _now()
        preset = Preset(
            id=f"preset_{uuid.uuid4().hex}",
            name=name,
            questionnaire_id=questionnaire_id,
            answers=copy.deepcopy(answers),
            description=description,
            tags=list(tags) if tags is not None else None,
            created_at=now,
            updated_at=now,
        )

        presets = await self.storage.load()
        self._evict_for_insert(presets)
        presets.append(preset)
        await self.storage.save(presets)

        logger.info("Saved preset '%s' (%s) for '%s'", name, preset.id, questionnaire_id)
        return preset

    async def update(self, preset_id: str, **changes: Any) -> Preset | None:
        """Apply changes to an existing preset.

        ``id`` and ``created_at`` cannot change; ``updated_at`` is refreshed.

        Returns:
            The updated preset, or None if no preset has this ID.
        """
        unknown = set(changes) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update preset field(s): {sorted(unknown)}")

        presets = await self.storage.load()
        for index, preset in enumerate(presets):
            if preset.id != preset_id:
                continue
            data = preset.model_dump()
            data.update(copy.deepcopy(changes))
            data["updated_at"] = _now()
            updated = Preset.model_validate(data)
            presets[index] = updated
            await self.storage.save(presets)
            return updated
        return None

    async def get(self, preset_id: str) -> Preset | None:
        for preset in await self.storage.load():
            if preset.id == preset_id:
                return preset
        return None

    async def list_all(self) -> list[Preset]:
        return await self.storage.load()

    async def list_for_questionnaire(self, questionnaire_id: str) -> list[Preset]:
        return [p for p in await self.storage.load() if p.questionnaire_id == questionnaire_id]

    async def list_metadata(self) -> list[PresetMetadata]:
        """Return presets without their answers, for listings."""
        return [
            PresetMetadata(
                **preset.model_dump(exclude={"answers"}),
                answer_count=len(preset.answers),
            )
            for preset in await self.storage.load()
        ]

    async def count(self) -> int:
        return len(await self.storage.load())

    async def delete(self, preset_id: str) -> bool:
        """Delete a preset. Returns True if it existed."""
        presets = await self.storage.load()
        remaining = [p for p in presets if p.id != preset_id]
        if len(remaining) == len(presets):
            return False
        await self.storage.save(remaining)
        logger.info("Deleted preset %s", preset_id)
        return True

    async def delete_for_questionnaire(self, questionnaire_id: str) -> int:
        """Delete every preset of one questionnaire. Returns the number removed."""
        presets = await self.storage.load()
        remaining = [p for p in presets if p.questionnaire_id != questionnaire_id]
        deleted = len(presets) - len(remaining)
        if deleted:
            await self.storage.save(remaining)
            logger.info("Deleted %d preset(s) for '%s'", deleted, questionnaire_id)
        return deleted

    async def clear(self) -> None:
        await self.storage.save([])

    async def search(self, query: str) -> list[Preset]:
        """Case-insensitive substring search over name, description and tags."""
        term = query.lower()
        return [
            preset for preset in await self.storage.load()
            if term in preset.name.lower()
            or (preset.description is not None and term in preset.description.lower())
            or any(term in tag.lower() for tag in preset.tags or [])
        ]

    async def export(self) -> str:
        """Serialize every preset into the versioned JSON envelope."""
        envelope = PresetEnvelope(updated_at=_now(), presets=await self.storage.load())
        return envelope.model_dump_json(indent=2, by_alias=True)

    async def import_presets(self, payload: str, merge: bool = True) -> int:
        """Import presets from an exported envelope.

        Args:
            payload: JSON produced by export().
            merge: Keep existing presets and skip incoming IDs that already
                exist. When False, the store's contents are replaced.

        Returns:
            The number of presets added.

        Raises:
            PresetImportError: If the payload is not a valid envelope.
        """
        try:
            envelope = PresetEnvelope.model_validate_json(payload)
        except ValidationError as e:
            raise PresetImportError(f"Failed to import presets: {e}") from e

        if not merge:
            await self.storage.save(envelope.presets)
            logger.info("Replaced preset store with %d imported preset(s)", len(envelope.presets))
            return len(envelope.presets)

        existing = await self.storage.load()
        existing_ids = {p.id for p in existing}
        added = []
        for preset in envelope.presets:
            if preset.id not in existing_ids:
                added.append(preset)
                existing_ids.add(preset.id)

        await self.storage.save(existing + added)
        logger.info("Imported %d new preset(s), skipped %d", len(added), len(envelope.presets) - len(added))
        return len(added)

    async def load_into(self, engine: "FormEngine", preset_id: str) -> Preset | None:
        """Load a stored preset into a wizard session.

        Returns:
            The loaded preset, or None if no preset has this ID.

        Raises:
            PresetMismatchError: If the preset belongs to another questionnaire.
        """
        preset = await self.get(preset_id)
        if preset is None:
            return None
        engine.load_preset(preset)
        return preset

    # -----------------------------------------------------------------
    # Internal helpers
    # -----------------------------------------------------------------

    def _evict_for_insert(self, presets: list[Preset]) -> None:
        """Drop the oldest presets until one more fits under the capacity bound."""
        if self.max_presets is None:
            return
        while presets and len(presets) >= self.max_presets:
            oldest_index = min(range(len(presets)), key=lambda i: presets[i].created_at)
            evicted = presets.pop(oldest_index)
            logger.info("Evicted oldest preset '%s' (%s)", evicted.name, evicted.id)
