"""Local record store (JSON documents + fcntl.flock + atomic write).

Each entity kind is persisted as one whole-collection document under a
fixed logical key, mirroring a simple key-value storage API.
"""

import fcntl
import json
import os
import tempfile
from contextlib import contextmanager
from datetime import datetime
from enum import StrEnum
from pathlib import Path
from typing import Any

import structlog
from pydantic import BaseModel, TypeAdapter, ValidationError

from study_tracker.models.stats import StudyStats
from study_tracker.models.study import KeyPoint, Mistake, StudyRecord

logger = structlog.get_logger()

STATS_KEY = "study_track:stats"


class EntityKind(StrEnum):
    """Entity collections and their storage keys."""

    STUDY_RECORDS = "study_track:study_records"
    MISTAKES = "study_track:mistakes"
    KEY_POINTS = "study_track:key_points"


ENTITY_TYPES: dict[EntityKind, type[BaseModel]] = {
    EntityKind.STUDY_RECORDS: StudyRecord,
    EntityKind.MISTAKES: Mistake,
    EntityKind.KEY_POINTS: KeyPoint,
}

ALL_KEYS = [kind.value for kind in EntityKind] + [STATS_KEY]


class StorageError(Exception):
    """Raised when a document cannot be read, decoded or written."""


class JsonKeyValueStore:
    """Key-value storage with one JSON file per key.

    Args:
        data_dir: Directory holding the documents. Created if missing.
    """

    def __init__(self, data_dir: Path):
        self.data_dir = Path(data_dir)
        self.data_dir.mkdir(parents=True, exist_ok=True)

    def path_for(self, key: str) -> Path:
        return self.data_dir / f"{key.replace(':', '__')}.json"

    @contextmanager
    def _locked(self, key: str, mode: int):
        """Hold the per-key lock file shared by readers and writers."""
        with open(self.path_for(key).with_suffix(".lock"), "a") as lock_file:
            fcntl.flock(lock_file, mode)
            try:
                yield
            finally:
                fcntl.flock(lock_file, fcntl.LOCK_UN)

    def get_item(self, key: str) -> Any | None:
        """Return the decoded document for key, or None if it was never set."""
        path = self.path_for(key)
        if not path.exists():
            return None
        try:
            with self._locked(key, fcntl.LOCK_SH), open(path, encoding="utf-8") as f:
                return json.load(f)
        except FileNotFoundError:
            return None
        except (OSError, json.JSONDecodeError) as e:
            raise StorageError(f"Failed to read {key}: {e}") from e

    def set_item(self, key: str, value: Any) -> None:
        """Replace the document for key atomically."""
        path = self.path_for(key)
        tmp_name = None
        try:
            with self._locked(key, fcntl.LOCK_EX):
                with tempfile.NamedTemporaryFile(
                    "w", dir=self.data_dir, delete=False, suffix=".json", encoding="utf-8"
                ) as tmp:
                    tmp_name = tmp.name
                    json.dump(value, tmp, ensure_ascii=False, indent=2)
                os.replace(tmp_name, path)
        except (OSError, TypeError, ValueError) as e:
            if tmp_name is not None:
                Path(tmp_name).unlink(missing_ok=True)
            raise StorageError(f"Failed to write {key}: {e}") from e

    def remove_items(self, keys: list[str]) -> None:
        for key in keys:
            path = self.path_for(key)
            try:
                path.unlink(missing_ok=True)
                path.with_suffix(".lock").unlink(missing_ok=True)
            except OSError as e:
                raise StorageError(f"Failed to remove {key}: {e}") from e


class RecordStore:
    """Entity-level CRUD over a JsonKeyValueStore.

    Args:
        data_dir: Directory holding the collection documents.
        clock: Source of creation/modification instants.
    """

    def __init__(self, data_dir: Path, clock=datetime.now):
        self.kv = JsonKeyValueStore(data_dir)
        self._clock = clock

    def load_all(self, kind: EntityKind) -> list[Any]:
        """Load every entity of a kind. A missing collection is empty."""
        data = self.kv.get_item(kind.value)
        if not data:
            return []
        adapter = TypeAdapter(list[ENTITY_TYPES[kind]])
        try:
            return adapter.validate_python(data)
        except ValidationError as e:
            raise StorageError(f"Invalid document for {kind.value}: {e}") from e

    def get(self, kind: EntityKind, entity_id: str) -> Any | None:
        return next((e for e in self.load_all(kind) if e.id == entity_id), None)

    def upsert(self, kind: EntityKind, entity: BaseModel) -> Any:
        """Insert the entity if its id is unseen, else replace it.

        Inserts stamp created_at and updated_at; replacements stamp
        updated_at and keep the stored created_at.

        Returns:
            The entity as stored.
        """
        entities = self.load_all(kind)
        now = self._clock()
        for index, existing in enumerate(entities):
            if existing.id == entity.id:
                stored = entity.model_copy(
                    update={"created_at": existing.created_at, "updated_at": now}
                )
                entities[index] = stored
                break
        else:
            stored = entity.model_copy(update={"created_at": now, "updated_at": now})
            entities.append(stored)

        self._write(kind, entities)
        logger.debug("entity_saved", kind=kind.value, entity_id=stored.id)
        return stored

    def delete(self, kind: EntityKind, entity_id: str) -> bool:
        """Delete by id. Returns False if no entity had that id."""
        entities = self.load_all(kind)
        remaining = [e for e in entities if e.id != entity_id]
        if len(remaining) == len(entities):
            return False
        self._write(kind, remaining)
        logger.debug("entity_deleted", kind=kind.value, entity_id=entity_id)
        return True

    def load_stats(self) -> StudyStats:
        data = self.kv.get_item(STATS_KEY)
        if not data:
            return StudyStats()
        try:
            return StudyStats.model_validate(data)
        except ValidationError as e:
            raise StorageError(f"Invalid document for {STATS_KEY}: {e}") from e

    def save_stats(self, stats: StudyStats) -> None:
        self.kv.set_item(STATS_KEY, stats.model_dump(mode="json"))

    def clear_all(self) -> None:
        self.kv.remove_items(ALL_KEYS)
        logger.info("store_cleared", data_dir=str(self.kv.data_dir))

    def export_data(self) -> str:
        """Dump every collection and the cached stats as one JSON document."""
        payload = {
            "records": self._dump(self.load_all(EntityKind.STUDY_RECORDS)),
            "mistakes": self._dump(self.load_all(EntityKind.MISTAKES)),
            "key_points": self._dump(self.load_all(EntityKind.KEY_POINTS)),
            "stats": self.load_stats().model_dump(mode="json"),
        }
        return json.dumps(payload, ensure_ascii=False, indent=2)

    def _write(self, kind: EntityKind, entities: list[BaseModel]) -> None:
        self.kv.set_item(kind.value, self._dump(entities))

    @staticmethod
    def _dump(entities: list[BaseModel]) -> list[dict]:
        return [e.model_dump(mode="json") for e in entities]
