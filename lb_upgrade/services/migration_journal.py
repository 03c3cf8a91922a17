"""
Migration journal.

Append-only JSONL record of every step a migration started, completed or
failed. A run has no checkpoint/resume of its own; the journal is what an
operator reads to finish or undo a partial migration by hand.

Entries form a SHA-256 hash chain, so edits to the file are detectable.
"""

import hashlib
import json
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

GENESIS_HASH = "0" * 64


class JournalStatus:
    STARTED = "started"
    COMPLETED = "completed"
    FAILED = "failed"
    WARNING = "warning"


@dataclass
class JournalEntry:
    """Single journal entry."""

    step: str
    status: str
    timestamp: float
    details: Dict[str, Any]
    previous_hash: str
    hash: str

    @property
    def resource(self) -> Optional[str]:
        return self.details.get("resource")


class MigrationJournal:
    """
    Append-only, hash-chained log of migration steps.

    Each entry contains:
    - step: MigrationStep value
    - status: started | completed | failed | warning
    - timestamp: Unix timestamp
    - details: Step-specific data (resource names, IDs, errors)
    - previous_hash / hash: chain links
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        self._last_hash: Optional[str] = None

    def _compute_entry_hash(self, entry: Dict[str, Any]) -> str:
        entry_copy = {k: v for k, v in entry.items() if k != "hash"}
        entry_json = json.dumps(entry_copy, sort_keys=True, default=str)
        return hashlib.sha256(entry_json.encode()).hexdigest()

    def _read_lines(self) -> List[str]:
        if not self.path.exists():
            return []
        with open(self.path) as f:
            return [line for line in f.readlines() if line.strip()]

    def _previous_hash(self) -> str:
        if self._last_hash is None:
            lines = self._read_lines()
            self._last_hash = json.loads(lines[-1])["hash"] if lines else GENESIS_HASH
        return self._last_hash

    def record(
        self, step: str, status: str, details: Optional[Dict[str, Any]] = None
    ) -> JournalEntry:
        """
        Append an entry.

        Args:
            step: Step name
            status: One of JournalStatus
            details: Step-specific details

        Returns:
            The appended entry
        """
        entry: Dict[str, Any] = {
            "step": step,
            "status": status,
            "timestamp": time.time(),
            "details": details or {},
            "previous_hash": self._previous_hash(),
        }
        entry["hash"] = self._compute_entry_hash(entry)

        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "a") as f:
            f.write(json.dumps(entry, default=str) + "\n")

        self._last_hash = entry["hash"]
        return JournalEntry(**entry)

    def entries(
        self, step: Optional[str] = None, status: Optional[str] = None
    ) -> List[JournalEntry]:
        """Get journal entries, optionally filtered by step and status."""
        result = []
        for line in self._read_lines():
            entry = JournalEntry(**json.loads(line))
            if step and entry.step != step:
                continue
            if status and entry.status != status:
                continue
            result.append(entry)
        return result

    def completed_steps(self) -> List[str]:
        """Human-readable list of completed steps, in order."""
        return [
            f"{e.step}:{e.resource}" if e.resource else e.step
            for e in self.entries(status=JournalStatus.COMPLETED)
        ]

    def last_failure(self) -> Optional[JournalEntry]:
        failures = self.entries(status=JournalStatus.FAILED)
        return failures[-1] if failures else None

    def verify_integrity(self) -> bool:
        """
        Verify the hash chain of the whole journal.

        Raises:
            ValueError: If any entry was modified, removed or reordered
        """
        previous_hash = GENESIS_HASH
        for i, line in enumerate(self._read_lines()):
            entry = json.loads(line)
            stored_hash = entry.get("hash")
            if stored_hash != self._compute_entry_hash(entry):
                raise ValueError(f"Journal entry {i} hash mismatch")
            if entry.get("previous_hash") != previous_hash:
                raise ValueError(f"Journal entry {i} breaks the hash chain")
            previous_hash = stored_hash
        return True
