# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Mirrowel

"""
Quota History Log.

Bounded, de-duplicated snapshot history per account, persisted as one
JSON list of {"account_name", "snapshots"} records.
"""

import logging
from pathlib import Path
from typing import List

from ..core.errors import StorageIOError
from ..core.types import QuotaHistory, QuotaSnapshot
from .documents import load_json_document, write_json_document

lib_logger = logging.getLogger("tokstat_library")

MAX_HISTORY_SIZE = 100


class QuotaHistoryLog:
    def __init__(self, path: Path, max_size: int = MAX_HISTORY_SIZE):
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        self.path = path
        self.max_size = max_size

    def _load(self) -> List[QuotaHistory]:
        data = load_json_document(self.path, [])
        try:
            return [QuotaHistory.from_dict(entry) for entry in data]
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise StorageIOError(f"Failed to parse quota history: {e}") from e

    def _save(self, histories: List[QuotaHistory]) -> None:
        write_json_document(self.path, [h.to_dict() for h in histories])

    def append_if_changed(self, account_name: str, snapshot: QuotaSnapshot) -> bool:
        """
        Append `snapshot` unless it matches the last stored one.

        Returns:
            True if the history changed (and was written), False otherwise
        """
        histories = self._load()
        record = next((h for h in histories if h.account_name == account_name), None)

        if record is None:
            histories.append(QuotaHistory(account_name=account_name, snapshots=[snapshot]))
        else:
            if record.snapshots and not snapshot.has_changed_from(record.snapshots[-1]):
                return False
            record.snapshots.append(snapshot)
            # FIFO eviction down to the cap
            overflow = len(record.snapshots) - self.max_size
            if overflow > 0:
                del record.snapshots[:overflow]

        self._save(histories)
        return True

    def history(self, account_name: str) -> List[QuotaSnapshot]:
        for record in self._load():
            if record.account_name == account_name:
                return list(record.snapshots)
        return []

    def rename(self, old_name: str, new_name: str) -> bool:
        """Move old_name's record to new_name. Returns False if none existed."""
        histories = self._load()
        record = next((h for h in histories if h.account_name == old_name), None)
        if record is None:
            return False
        # A stale record under the new name would break the one-record-per-account rule
        histories = [h for h in histories if h.account_name != new_name]
        record.account_name = new_name
        self._save(histories)
        return True

    def remove(self, account_name: str) -> bool:
        """
        Best-effort removal of an account's history.

        Never raises; failures are logged and reported as False.
        """
        try:
            histories = self._load()
            remaining = [h for h in histories if h.account_name != account_name]
            if len(remaining) == len(histories):
                return False
            self._save(remaining)
            return True
        except StorageIOError as e:
            lib_logger.warning(f"Could not remove quota history for '{account_name}': {e}")
            return False
