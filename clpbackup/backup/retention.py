"""
Retention policy enforcement for the local archive tree.

Deletes artifacts older than the retention window, then prunes the
directories left empty. Cleanup is best-effort: a file or directory that
cannot be removed is logged and skipped.
"""

import logging
from datetime import datetime, timedelta
from pathlib import Path
from typing import Dict, Any, Optional

from .audit import AuditLog
from .storage import ArchiveStorage, StorageError


logger = logging.getLogger(__name__)


class RetentionError(Exception):
    """Raised when a single retention cleanup item fails."""
    pass


class RetentionManager:
    """
    Manages retention policy enforcement for a backup root.

    A retention window of 0 days disables cleanup entirely.
    """

    def __init__(
        self,
        backup_dir: str,
        retention_days: int,
        extension: str,
        audit: Optional[AuditLog] = None
    ):
        """
        Initialize retention manager.

        Args:
            backup_dir: Backup root directory
            retention_days: Days to keep artifacts (0 = disabled)
            extension: Artifact extension without leading dot
            audit: Audit log receiving cleanup records
        """
        self.storage = ArchiveStorage(backup_dir)
        self.retention_days = retention_days
        self.extension = extension
        self.audit = audit
        self.logs = []

    def enforce(self) -> Dict[str, Any]:
        """
        Delete expired artifacts and prune empty directories.

        Returns:
            Dict with summary of cleanup operations:
            {
                'files_deleted': int,
                'dirs_removed': int,
                'errors': List[str]
            }
        """
        summary = {
            'files_deleted': 0,
            'dirs_removed': 0,
            'errors': []
        }

        if self.retention_days <= 0:
            self._log("Backup rotation not configured, skipping")
            return summary

        self._log(
            f"Starting backup rotation. Retaining backups from the last "
            f"{self.retention_days} day(s)."
        )

        cutoff_date = datetime.now() - timedelta(days=self.retention_days)

        try:
            artifacts = self.storage.list_artifacts(self.extension)
        except StorageError as e:
            summary['errors'].append(str(e))
            self._log(f"Failed to list backups: {e}", level=logging.ERROR)
            artifacts = []

        # Filter files older than cutoff
        to_delete = [
            a for a in artifacts
            if a['modified'] < cutoff_date
        ]

        for artifact in to_delete:
            try:
                self._delete_artifact(artifact['path'])
                summary['files_deleted'] += 1
            except RetentionError as e:
                summary['errors'].append(str(e))
                self._log(str(e), level=logging.ERROR)

        for directory in self.storage.empty_directories():
            try:
                self._remove_directory(directory)
                summary['dirs_removed'] += 1
            except RetentionError as e:
                summary['errors'].append(str(e))
                self._log(str(e), level=logging.ERROR)

        self._log(
            f"Backup rotation completed. "
            f"Deleted: {summary['files_deleted']}, "
            f"Empty directories removed: {summary['dirs_removed']}, "
            f"Failures: {len(summary['errors'])}"
        )

        return summary

    def _delete_artifact(self, path: Path):
        try:
            self.storage.delete(path)
        except StorageError as e:
            raise RetentionError(f"Failed to delete old backup {path}: {e}")
        self._log(f"Deleted old backup: {path}")

    def _remove_directory(self, path: Path):
        try:
            self.storage.remove_directory(path)
        except StorageError as e:
            raise RetentionError(f"Failed to remove empty directory {path}: {e}")
        logger.debug(f"Removed empty directory: {path}")

    def _log(self, message: str, level: int = logging.INFO):
        """
        Add a log message.

        Args:
            message: Log message
            level: Logging level
        """
        self.logs.append(message)
        if self.audit is not None:
            self.audit.record(message, level=level)
        else:
            logger.log(level, message)
