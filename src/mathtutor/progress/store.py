"""Lesson-completion progress store.

Responsibilities:
- Track the set of completed knowledge-node ids and a completion record
  for each of them
- Persist both to a single key of a KeyValueStorage after every mutation
- Report progress against a fixed total node count
- Export/import progress snapshots as JSON

Persisted blob (one storage key):
    {"completed": [id, ...],
     "nodeProgress": {id: {"completed": true, "completedAt": "<ISO-8601>"}}}

Load and save are best-effort: failures are logged and reported through
StoreResult, never raised. In-memory state stays authoritative for the
session.
"""

from __future__ import annotations

import json
import math
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable

import structlog

from mathtutor.progress.storage import KeyValueStorage, StorageError

logger = structlog.get_logger(__name__)

# =============================================================================
# CONSTANTS
# =============================================================================

STORAGE_KEY = "math-progress"
DEFAULT_TOTAL_NODES = 86

# =============================================================================
# DATA CLASSES
# =============================================================================


@dataclass
class ProgressRecord:
    """Completion metadata for one node."""

    completed_at: str
    completed: bool = True

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {"completed": self.completed, "completedAt": self.completed_at}

    @classmethod
    def from_dict(cls, data: Any) -> ProgressRecord | None:
        """Parse a persisted record; None if it is not usable.

        Records are always loaded as completed; a stored "completed" flag
        other than true is reported by ProgressStore when reconciling.
        """
        if not isinstance(data, dict):
            return None
        completed_at = data.get("completedAt")
        if not isinstance(completed_at, str):
            return None
        return cls(completed_at=completed_at)


@dataclass
class StoreResult:
    """Outcome of a persistence operation."""

    success: bool
    error: str | None = None


def _utc_timestamp(now: datetime) -> str:
    """ISO-8601 UTC timestamp with milliseconds and a Z suffix."""
    stamp = now.astimezone(timezone.utc).isoformat(timespec="milliseconds")
    return stamp.replace("+00:00", "Z")


# =============================================================================
# PROGRESS STORE
# =============================================================================


class ProgressStore:
    """Completed-node tracking synchronized to one storage key.

    Call load() once at start-up. Operations before load() start from an
    empty state and overwrite the stored blob on their first save.
    """

    def __init__(
        self,
        storage: KeyValueStorage,
        storage_key: str = STORAGE_KEY,
        total_nodes: int = DEFAULT_TOTAL_NODES,
        clock: Callable[[], datetime] | None = None,
    ):
        """Initialize an empty store.

        Args:
            storage: Backend holding the persisted blob
            storage_key: Key owned by this store
            total_nodes: Denominator for progress_percent
            clock: Source of the current time (defaults to UTC now)
        """
        self.storage = storage
        self.storage_key = storage_key
        self.total_nodes = total_nodes
        self._clock = clock or (lambda: datetime.now(timezone.utc))

        self._completed: set[str] = set()
        self._node_progress: dict[str, ProgressRecord] = {}

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    @property
    def completed_nodes(self) -> frozenset[str]:
        """Ids of completed nodes."""
        return frozenset(self._completed)

    @property
    def node_progress(self) -> dict[str, ProgressRecord]:
        """Copy of the id -> record mapping."""
        return dict(self._node_progress)

    @property
    def completed_count(self) -> int:
        return len(self._completed)

    @property
    def progress_percent(self) -> int:
        """Completed share of total_nodes, rounded half up to 0..100."""
        if self.total_nodes == 0:
            return 0
        return math.floor(self.completed_count / self.total_nodes * 100 + 0.5)

    def is_completed(self, node_id: str) -> bool:
        return node_id in self._completed

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    def _timestamp(self) -> str:
        return _utc_timestamp(self._clock())

    def _parse_blob(self, data: Any) -> tuple[set[str], dict[str, ProgressRecord]]:
        """Convert a decoded blob into state, keeping set and mapping in sync.

        Ids listed as completed without a usable record get a record stamped
        now; records for ids not listed as completed are dropped. Records
        whose "completed" flag is not true are kept as completed.

        Raises:
            ValueError: If the blob does not have the expected shape
        """
        if not isinstance(data, dict):
            raise ValueError(f"Progress blob must be an object, got {type(data).__name__}")

        completed_raw = data.get("completed")
        progress_raw = data.get("nodeProgress")
        if completed_raw is None:
            completed_raw = []
        if progress_raw is None:
            progress_raw = {}
        if not isinstance(completed_raw, list):
            raise ValueError("'completed' must be a list")
        if not isinstance(progress_raw, dict):
            raise ValueError("'nodeProgress' must be an object")

        completed = {str(node_id) for node_id in completed_raw}
        node_progress: dict[str, ProgressRecord] = {}
        backfilled = []
        coerced = []

        for node_id in sorted(completed):
            record = ProgressRecord.from_dict(progress_raw.get(node_id))
            if record is None:
                record = ProgressRecord(completed_at=self._timestamp())
                backfilled.append(node_id)
            elif progress_raw[node_id].get("completed") is not True:
                coerced.append(node_id)
            node_progress[node_id] = record

        dropped = [node_id for node_id in progress_raw if node_id not in completed]
        if backfilled or dropped or coerced:
            logger.warning(
                "progress_blob_reconciled",
                backfilled=backfilled,
                dropped=dropped,
                coerced=coerced,
            )

        return completed, node_progress

    def _to_blob(self) -> dict[str, Any]:
        return {
            "completed": sorted(self._completed),
            "nodeProgress": {
                node_id: record.to_dict()
                for node_id, record in sorted(self._node_progress.items())
            },
        }

    def load(self) -> StoreResult:
        """Replace in-memory state from storage.

        Missing data loads as empty state. On read or parse failure the
        state is reset to empty and the failure is returned, not raised.
        """
        try:
            raw = self.storage.get_item(self.storage_key)
            if raw is None:
                completed, node_progress = set(), {}
            else:
                completed, node_progress = self._parse_blob(json.loads(raw))
        except (StorageError, ValueError, RecursionError) as e:
            logger.error("progress_load_failed", key=self.storage_key, error=str(e))
            self._completed, self._node_progress = set(), {}
            return StoreResult(success=False, error=str(e))

        self._completed, self._node_progress = completed, node_progress
        logger.debug("progress_loaded", key=self.storage_key, completed=len(completed))
        return StoreResult(success=True)

    def save(self) -> StoreResult:
        """Write current state to storage; failures are logged and returned."""
        try:
            self.storage.set_item(
                self.storage_key,
                json.dumps(self._to_blob(), ensure_ascii=False),
            )
        except StorageError as e:
            logger.error("progress_save_failed", key=self.storage_key, error=str(e))
            return StoreResult(success=False, error=str(e))
        return StoreResult(success=True)

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def mark_completed(self, node_id: str) -> StoreResult:
        """Mark a node completed (refreshes the timestamp if already done)."""
        self._completed.add(node_id)
        self._node_progress[node_id] = ProgressRecord(completed_at=self._timestamp())
        logger.info("node_marked_completed", node_id=node_id)
        return self.save()

    def unmark_completed(self, node_id: str) -> StoreResult:
        """Clear a node's completion; no-op beyond saving if absent."""
        self._completed.discard(node_id)
        self._node_progress.pop(node_id, None)
        logger.info("node_unmarked_completed", node_id=node_id)
        return self.save()

    def reset(self) -> StoreResult:
        """Forget all progress and persist the empty state."""
        self._completed, self._node_progress = set(), {}
        logger.info("progress_reset", key=self.storage_key)
        return self.save()

    # -------------------------------------------------------------------------
    # Snapshots
    # -------------------------------------------------------------------------

    def export_snapshot(self) -> str:
        """Render progress plus an export timestamp as indented JSON."""
        snapshot = self._to_blob()
        snapshot["exportedAt"] = self._timestamp()
        return json.dumps(snapshot, indent=2, ensure_ascii=False)

    def import_snapshot(self, text: str) -> bool:
        """Replace progress from an exported snapshot.

        Returns:
            True if imported and persisted; False if text is not a valid
            snapshot, in which case state is left untouched
        """
        try:
            completed, node_progress = self._parse_blob(json.loads(text))
        except (ValueError, TypeError, RecursionError) as e:
            logger.error("progress_import_failed", error=str(e))
            return False

        self._completed, self._node_progress = completed, node_progress
        logger.info("progress_imported", completed=len(completed))
        self.save()
        return True
