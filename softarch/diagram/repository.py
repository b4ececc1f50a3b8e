"""Named-document storage for diagram records.

The pipeline depends only on the :class:`DiagramRepository` protocol.
:class:`JsonDiagramRepository` satisfies it with one JSON document per
record under a directory.
"""

from __future__ import annotations

import asyncio
import uuid
from pathlib import Path
from typing import Protocol

from pydantic import ValidationError

from softarch.architecture.models import DiagramRecord
from softarch.errors import RepositoryError
from softarch.utils import print_warning, utc_now


class DiagramRepository(Protocol):
    """Store of :class:`DiagramRecord`, unique by name."""

    async def find_by_name(self, name: str) -> DiagramRecord | None: ...

    async def save(self, record: DiagramRecord) -> DiagramRecord:
        """Create, or replace the record with the same name keeping its id."""
        ...

    async def find_recent(self, limit: int = 10) -> list[DiagramRecord]:
        """Records sorted by creation time, newest first."""
        ...

    async def delete_by_id(self, record_id: str) -> bool: ...


class JsonDiagramRepository:
    """File-backed repository: ``<root>/<id>.json`` per record.

    Name lookups are case-insensitive. Writes go to a temporary file that
    then replaces the target.
    """

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)

    # ------------------------------------------------------------------
    # Internal helpers (run in a worker thread)
    # ------------------------------------------------------------------

    def _load_all(self) -> list[DiagramRecord]:
        if not self.root.is_dir():
            return []
        records: list[DiagramRecord] = []
        for path in sorted(self.root.glob("*.json")):
            try:
                records.append(DiagramRecord.model_validate_json(path.read_text(encoding="utf-8")))
            except (OSError, ValidationError) as exc:
                print_warning(f"Skipping unreadable diagram record {path.name}: {exc}")
        return records

    def _find_by_name(self, name: str) -> DiagramRecord | None:
        wanted = name.lower()
        for record in self._load_all():
            if record.name.lower() == wanted:
                return record
        return None

    def _write(self, record: DiagramRecord) -> None:
        self.root.mkdir(parents=True, exist_ok=True)
        target = self.root / f"{record.id}.json"
        tmp = target.with_suffix(".json.tmp")
        tmp.write_text(record.model_dump_json(by_alias=True, indent=2), encoding="utf-8")
        tmp.replace(target)

    def _save(self, record: DiagramRecord) -> DiagramRecord:
        stored = record.model_copy(deep=True)
        existing = self._find_by_name(record.name)
        now = utc_now()
        if existing is not None:
            stored.id = existing.id
            stored.created_at = existing.created_at
        else:
            stored.id = stored.id or uuid.uuid4().hex
            stored.created_at = stored.created_at or now
        stored.updated_at = now
        self._write(stored)
        return stored

    def _delete(self, record_id: str) -> bool:
        path = self.root / f"{record_id}.json"
        if not path.is_file():
            return False
        path.unlink()
        return True

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def find_by_name(self, name: str) -> DiagramRecord | None:
        try:
            return await asyncio.to_thread(self._find_by_name, name)
        except OSError as exc:
            raise RepositoryError(f"Could not read diagrams from {self.root}: {exc}") from exc

    async def save(self, record: DiagramRecord) -> DiagramRecord:
        try:
            return await asyncio.to_thread(self._save, record)
        except OSError as exc:
            raise RepositoryError(f"Could not save diagram '{record.name}': {exc}") from exc

    async def find_recent(self, limit: int = 10) -> list[DiagramRecord]:
        try:
            records = await asyncio.to_thread(self._load_all)
        except OSError as exc:
            raise RepositoryError(f"Could not read diagrams from {self.root}: {exc}") from exc
        records.sort(key=lambda record: record.created_at, reverse=True)
        return records[:limit]

    async def delete_by_id(self, record_id: str) -> bool:
        try:
            return await asyncio.to_thread(self._delete, record_id)
        except OSError as exc:
            raise RepositoryError(f"Could not delete diagram {record_id}: {exc}") from exc
