"""
Persistence boundary for the committed record table.

The store always loads and saves the whole table; there is no partial
update and no merge.  Two writers racing on one store end with whichever
table was saved last.
"""

import asyncio
import json
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Protocol

from ..core.config import STORE_FORMAT_VERSION
from ..core.errors import StoreUnavailable
from ..core.models import PersonalRecordTable
from .serializers import ValidationError, dict_to_table, table_to_dict


class RecordStore(Protocol):
    """Asynchronous load/save of the full record table."""

    async def load(self) -> PersonalRecordTable:
        """
        Return the stored table; an empty table when nothing was saved yet.

        Raises StoreUnavailable on failure.  Controllers also survive any
        other exception here and treat it as a failed load.
        """
        ...

    async def save(self, table: PersonalRecordTable) -> None:
        """Replace the stored table.  Raises StoreUnavailable on failure."""
        ...


def records_document(table: PersonalRecordTable) -> dict:
    """Wrap a table in the on-disk document format."""
    return {
        "version": STORE_FORMAT_VERSION,
        "records": table_to_dict(table),
        "last_updated": datetime.now(timezone.utc).isoformat(),
    }


def table_from_document(data: object) -> PersonalRecordTable:
    """
    Extract the table from a stored document.

    Accepts the versioned document and, for files written by hand or by
    older tools, a bare {exercise: record} mapping.

    Raises:
        ValidationError: If the document is not a recognized format
    """
    if not isinstance(data, dict):
        raise ValidationError("Records document must be a JSON object")
    if "records" in data and "version" in data:
        return dict_to_table(data["records"])
    return dict_to_table(data)


class JsonRecordStore:
    """
    Record table stored as a single JSON document.

    File access runs in a worker thread so the event loop is never blocked.
    Saves go through a temporary file and os.replace, so a reader sees
    either the old or the new table, never half of one.
    """

    def __init__(self, path: str | Path):
        """
        Initialize the store.

        Args:
            path: Path to the records JSON file
        """
        self.path = Path(path)

    def exists(self) -> bool:
        """Check if the records file exists."""
        return self.path.exists()

    async def load(self) -> PersonalRecordTable:
        return await asyncio.to_thread(self._read)

    async def save(self, table: PersonalRecordTable) -> None:
        await asyncio.to_thread(self._write, table)

    def _read(self) -> PersonalRecordTable:
        if not self.path.exists():
            return {}

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
            return table_from_document(data)
        except OSError as e:
            raise StoreUnavailable(f"Cannot read {self.path}: {e}") from e
        except (json.JSONDecodeError, ValidationError) as e:
            raise StoreUnavailable(f"Corrupt records file {self.path}: {e}") from e

    def _write(self, table: PersonalRecordTable) -> None:
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(records_document(table), f, indent=2)
            os.replace(tmp_path, self.path)
        except OSError as e:
            tmp_path.unlink(missing_ok=True)
            raise StoreUnavailable(f"Cannot write {self.path}: {e}") from e


class MemoryRecordStore:
    """
    In-process store.

    Keeps a serialized copy, so callers can never reach into the stored
    table through a reference they still hold.
    """

    def __init__(self, table: PersonalRecordTable | None = None):
        self._data: dict = table_to_dict(table or {})
        self.save_count = 0

    async def load(self) -> PersonalRecordTable:
        return dict_to_table(self._data)

    async def save(self, table: PersonalRecordTable) -> None:
        self._data = table_to_dict(table)
        self.save_count += 1
