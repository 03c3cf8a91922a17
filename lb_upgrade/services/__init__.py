from .migration_journal import JournalStatus, MigrationJournal
from .snapshot_reader import SnapshotReader

__all__ = ["JournalStatus", "MigrationJournal", "SnapshotReader"]
