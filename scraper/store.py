# scraper/store.py
import json
import os
import logging
from pydantic import ValidationError

from .config import (
    CHANGELOG_MAX_ENTRIES,
    CHANGELOG_PATH,
    RUN_LOG_MAX_ENTRIES,
    RUN_LOG_PATH,
    SNAPSHOT_PATH,
)
from .errors import SnapshotError, SnapshotNotFound
from .models import ScrapeSnapshot
from .utils import read_json_list, write_json_atomic

logger = logging.getLogger("scraper.store")


class SnapshotStore:
    """
    The current beer list on disk.

    ``save`` always replaces the whole file through a temp file and
    ``os.replace``; two overlapping runs end with the last writer's snapshot.
    """

    def __init__(self, path=SNAPSHOT_PATH):
        self.path = path

    def exists(self):
        return os.path.exists(self.path)

    def load_raw(self):
        """
        Read the snapshot file as plain JSON.

        Raises:
            SnapshotNotFound: the file does not exist
            SnapshotError: the file cannot be read or is not valid JSON
        """
        if not os.path.exists(self.path):
            raise SnapshotNotFound(f"{self.path} not found")
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                return json.load(f)
        except (OSError, ValueError) as e:
            raise SnapshotError(f"Cannot read {self.path}: {e}") from e

    def load(self):
        """Read and validate the snapshot into a ScrapeSnapshot."""
        data = self.load_raw()
        try:
            return ScrapeSnapshot.model_validate(data)
        except ValidationError as e:
            raise SnapshotError(f"Invalid snapshot in {self.path}: {e}") from e

    def save(self, snapshot):
        write_json_atomic(self.path, snapshot.model_dump(mode="json"))
        logger.info(f"Saved {self.path} with {snapshot.count} items")


class RunLog:
    """Rolling audit trail of pipeline runs, newest first."""

    def __init__(self, path=RUN_LOG_PATH, max_entries=RUN_LOG_MAX_ENTRIES):
        self.path = path
        self.max_entries = max_entries

    def read(self, limit=None):
        entries = read_json_list(self.path)
        return entries if limit is None else entries[:limit]

    def append(self, entry):
        """
        Prepend ``entry`` and keep only the ``max_entries`` most recent.

        Args:
            entry (RunLogEntry): the run to record

        Returns:
            int: number of entries now in the log
        """
        entries = [entry.model_dump(mode="json", exclude_none=True)]
        entries.extend(read_json_list(self.path))
        entries = entries[: self.max_entries]
        write_json_atomic(self.path, entries)
        return len(entries)


class ChangelogStore:
    """Rolling list of snapshot diffs stored as ``{"changes": [...]}``."""

    def __init__(self, path=CHANGELOG_PATH, max_entries=CHANGELOG_MAX_ENTRIES):
        self.path = path
        self.max_entries = max_entries

    def read(self, limit=None):
        changes = read_json_list(self.path, key="changes")
        return changes if limit is None else changes[:limit]

    def record(self, entry):
        changes = [entry.model_dump(mode="json")]
        changes.extend(read_json_list(self.path, key="changes"))
        write_json_atomic(self.path, {"changes": changes[: self.max_entries]})
