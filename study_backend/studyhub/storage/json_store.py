import json
import logging
import os
import tempfile
import threading
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional

logger = logging.getLogger(__name__)

DEFAULT_DATA_FILE = "./data/study.json"

TABLES = (
    "subjects",
    "notes",
    "tags",
    "note_tags",
    "quiz_sessions",
    "flashcards",
    "study_activity",
    "deadlines",
    "reading_items",
    "goals",
)


class RecordNotFoundError(LookupError):
    """Raised when a record id does not exist in a table."""

    def __init__(self, table: str, record_id: str) -> None:
        super().__init__(f"{table} record '{record_id}' not found")
        self.table = table
        self.record_id = record_id


def _empty_document() -> Dict[str, List[Dict[str, Any]]]:
    return {table: [] for table in TABLES}


def _matches(record: Dict[str, Any], filters: Dict[str, Any]) -> bool:
    return all(record.get(key) == value for key, value in filters.items())


class StudyJsonStore:
    """
    A JSON file store for all study tables with safe atomic write operations.

    Data model:
    {
        "subjects": [ {...}, ... ],
        "notes": [ {...}, ... ],
        ...one list per name in TABLES
    }

    Every public method takes the store lock, so the store may be shared between
    threads (the async repositories call it through asyncio.to_thread).
    """

    # PUBLIC_INTERFACE
    def __init__(self, path: Optional[str] = None) -> None:
        """
        Initialize the JSON store.

        - Determines the storage path from the provided argument, the STUDY_DATA_FILE
          environment variable, or falls back to DEFAULT_DATA_FILE.
        - Ensures the parent directory exists.
        """
        env_path = os.getenv("STUDY_DATA_FILE")
        self.path = os.path.abspath(path or env_path or DEFAULT_DATA_FILE)
        self._lock = threading.RLock()

        parent_dir = os.path.dirname(self.path) or "."
        os.makedirs(parent_dir, exist_ok=True)

    # PUBLIC_INTERFACE
    def load_all(self) -> Dict[str, List[Dict[str, Any]]]:
        """
        Load and return the entire document from the JSON file.
        If the file does not exist, it is created with every table empty.
        Missing tables are added; a corrupted file is reset.

        Returns:
            dict: The data in the form {"<table>": [ ... ], ...}.
        """
        with self._lock:
            if not os.path.exists(self.path):
                data = _empty_document()
                self._atomic_write(data)
                return data

            try:
                with open(self.path, "r", encoding="utf-8") as f:
                    data = json.load(f)
            except json.JSONDecodeError:
                logger.warning("Data file %s is corrupted, resetting to an empty document", self.path)
                data = _empty_document()
                self._atomic_write(data)
                return data

            if not isinstance(data, dict):
                logger.warning("Data file %s has an unexpected shape, resetting", self.path)
                data = _empty_document()
                self._atomic_write(data)
                return data

            for table in TABLES:
                if not isinstance(data.get(table), list):
                    data[table] = []
            return data

    # PUBLIC_INTERFACE
    def save_all(self, data: Dict[str, Any]) -> None:
        """
        Persist the provided document to the JSON file using an atomic write.

        Args:
            data (dict): The full document to persist.
        """
        if not isinstance(data, dict):
            raise ValueError("Data must be a dict")
        for table in TABLES:
            if not isinstance(data.get(table), list):
                raise ValueError(f"Data must contain '{table}' as a list")

        with self._lock:
            self._atomic_write(data)

    @contextmanager
    def transaction(self) -> Iterator[Dict[str, List[Dict[str, Any]]]]:
        """
        Hold the store lock, yield the loaded document and save it on a clean exit.
        Nothing is written when the block raises.
        """
        with self._lock:
            data = self.load_all()
            yield data
            self.save_all(data)

    # PUBLIC_INTERFACE
    def list_records(self, table: str, **filters: Any) -> List[Dict[str, Any]]:
        """
        Return records of a table whose fields equal every given filter value,
        in insertion order.
        """
        self._check_table(table)
        data = self.load_all()
        return [r for r in data[table] if isinstance(r, dict) and _matches(r, filters)]

    # PUBLIC_INTERFACE
    def find_record(self, table: str, **filters: Any) -> Optional[Dict[str, Any]]:
        """Return the first record matching every filter, or None."""
        for record in self.list_records(table, **filters):
            return record
        return None

    # PUBLIC_INTERFACE
    def get_record(self, table: str, record_id: str) -> Dict[str, Any]:
        """
        Retrieve a record by its identifier.

        Raises:
            RecordNotFoundError: if no record has that id.
        """
        record = self.find_record(table, id=str(record_id))
        if record is None:
            raise RecordNotFoundError(table, record_id)
        return record

    # PUBLIC_INTERFACE
    def insert_record(self, table: str, record: Dict[str, Any]) -> Dict[str, Any]:
        """Append a record to a table and persist. Returns the record."""
        self._check_table(table)
        with self.transaction() as data:
            data[table].append(record)
        return record

    # PUBLIC_INTERFACE
    def update_record(self, table: str, record_id: str, updates: Dict[str, Any]) -> Dict[str, Any]:
        """
        Merge updates into the record with the given id and persist.

        Raises:
            RecordNotFoundError: if no record has that id.
        """
        self._check_table(table)
        with self.transaction() as data:
            for record in data[table]:
                if isinstance(record, dict) and str(record.get("id")) == str(record_id):
                    record.update(updates)
                    return dict(record)
            raise RecordNotFoundError(table, record_id)

    # PUBLIC_INTERFACE
    def delete_where(self, table: str, **filters: Any) -> int:
        """Delete every record matching the filters. Returns how many were removed."""
        self._check_table(table)
        if not filters:
            raise ValueError("delete_where requires at least one filter")
        with self.transaction() as data:
            kept = [r for r in data[table] if not (isinstance(r, dict) and _matches(r, filters))]
            removed = len(data[table]) - len(kept)
            data[table] = kept
        return removed

    def _check_table(self, table: str) -> None:
        if table not in TABLES:
            raise ValueError(f"Unknown table '{table}'")

    def _atomic_write(self, data: Dict[str, Any]) -> None:
        """
        Write JSON to a temporary file and atomically replace the target.

        This ensures that readers never see a partially-written file.
        """
        directory = os.path.dirname(self.path) or "."
        fd, tmp_path = tempfile.mkstemp(prefix=".study.", suffix=".tmp", dir=directory, text=True)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as tmp_file:
                json.dump(data, tmp_file, indent=2, ensure_ascii=False)
                tmp_file.flush()
                os.fsync(tmp_file.fileno())
            os.replace(tmp_path, self.path)
        finally:
            # If os.replace succeeded, tmp_path no longer exists
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
