"""
Data store collaborator contract and the in-memory implementation.
"""

from __future__ import annotations

import copy
import itertools
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Protocol

from ..domain.exceptions import RecordNotFoundError, StoreError

logger = logging.getLogger(__name__)

TABLES = ("clients", "employees", "services", "appointments")

SAMPLE_DATA_FILE = Path(__file__).parent / "sample_data.json"

Record = Dict[str, Any]


class DataStore(Protocol):
    """Protocol describing the table operations the services rely on."""

    def query(self, table: str, **filters: Any) -> List[Record]:
        """Return rows of ``table`` whose columns equal every filter value."""

    def insert(self, table: str, record: Record) -> str:
        """Insert a row and return its id."""

    def update(self, table: str, record_id: str, patch: Record) -> None:
        """Apply ``patch`` to the row with ``record_id``."""

    def delete(self, table: str, record_id: str) -> None:
        """Remove the row with ``record_id``."""


class InMemoryStore:
    """
    Dict-backed store for tests, demos and the ``--sample`` CLI mode.

    Rows are deep-copied on the way in and out so callers never share state
    with the store.
    """

    def __init__(self, tables: Dict[str, List[Record]] | None = None):
        self._tables: Dict[str, Dict[str, Record]] = {name: {} for name in TABLES}
        self._ids = itertools.count(1)

        for table, rows in (tables or {}).items():
            for row in rows:
                self.insert(table, row)

    @classmethod
    def from_json_file(cls, path: Path) -> "InMemoryStore":
        """
        Load a store from a JSON file mapping table names to row lists.

        Raises:
            FileNotFoundError: If the file doesn't exist
            StoreError: If the file is not valid JSON of the expected shape
        """
        with open(path, "r", encoding="utf-8") as f:
            try:
                data = json.load(f)
            except json.JSONDecodeError as exc:
                raise StoreError(f"Invalid JSON in {path}: {exc}") from exc

        if not isinstance(data, dict):
            raise StoreError(f"{path} must contain an object keyed by table name.")

        return cls(tables=data)

    @classmethod
    def with_sample_data(cls) -> "InMemoryStore":
        """Store pre-filled with the bundled sample barbershop."""
        return cls.from_json_file(SAMPLE_DATA_FILE)

    def _table(self, table: str) -> Dict[str, Record]:
        if table not in self._tables:
            raise StoreError(f"Unknown table: {table}")
        return self._tables[table]

    def query(self, table: str, **filters: Any) -> List[Record]:
        rows = self._table(table).values()
        return [
            copy.deepcopy(row)
            for row in rows
            if all(row.get(column) == value for column, value in filters.items())
        ]

    def insert(self, table: str, record: Record) -> str:
        rows = self._table(table)
        row = copy.deepcopy(record)

        record_id = str(row.get("id") or "")
        if not record_id:
            record_id = str(next(self._ids))
            while record_id in rows:
                record_id = str(next(self._ids))
        elif record_id in rows:
            raise StoreError(f"Duplicate id {record_id} in {table}")

        row["id"] = record_id
        rows[record_id] = row
        logger.debug("Inserted %s/%s", table, record_id)
        return record_id

    def update(self, table: str, record_id: str, patch: Record) -> None:
        rows = self._table(table)
        if record_id not in rows:
            raise RecordNotFoundError(f"No record {record_id} in {table}")

        changes = {key: value for key, value in copy.deepcopy(patch).items() if key != "id"}
        rows[record_id].update(changes)
        logger.debug("Updated %s/%s: %s", table, record_id, sorted(changes))

    def delete(self, table: str, record_id: str) -> None:
        rows = self._table(table)
        if rows.pop(record_id, None) is None:
            raise RecordNotFoundError(f"No record {record_id} in {table}")
        logger.debug("Deleted %s/%s", table, record_id)
