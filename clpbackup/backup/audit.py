"""
Append-only audit trail for backup runs.

Each record is one line, ``YYYY-MM-DD HH:MM:SS - message``, appended to
``<backup_dir>/backup.log``. The audit log never creates directories: while
the backup root does not exist yet, records are kept in memory and written
out with the first record made after the root appears.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Optional, List


logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = '%Y-%m-%d %H:%M:%S'


def format_record(message: str, when: Optional[datetime] = None) -> str:
    """
    Format an audit record line (without trailing newline).

    Args:
        message: Record message
        when: Record time (defaults to now, local time)
    """
    when = when or datetime.now()
    return f"{when.strftime(TIMESTAMP_FORMAT)} - {message}"


class AuditLog:
    """
    Timestamped, append-only message sink.

    Every record is also echoed through the application logger.
    """

    def __init__(self, path: Optional[str]):
        """
        Initialize audit log.

        Args:
            path: Audit log file path, or None to only echo records to the logger
        """
        self.path = Path(path) if path else None
        self.lines: List[str] = []
        self._written = 0

    @classmethod
    def for_backup_dir(cls, backup_dir: str, filename: str = 'backup.log') -> 'AuditLog':
        """Create the audit log stored at the root of a backup directory."""
        if not backup_dir:
            return cls(None)
        return cls(str(Path(backup_dir) / filename))

    def record(self, message: str, level: int = logging.INFO) -> str:
        """
        Append a record.

        Args:
            message: Record message
            level: Level used when echoing to the application logger

        Returns:
            The formatted record line
        """
        line = format_record(message)
        self.lines.append(line)
        logger.log(level, message)

        if self.path is not None and self.path.parent.is_dir():
            self._flush()

        return line

    def _flush(self):
        """Append every record not yet written to the file."""
        pending = self.lines[self._written:]
        try:
            with open(self.path, 'a', encoding='utf-8') as f:
                f.write(''.join(f"{line}\n" for line in pending))
        except OSError as e:
            logger.error(f"Failed to append to audit log {self.path}: {e}")
            return
        self._written = len(self.lines)

    def error(self, message: str) -> str:
        """Append a record with an ``Error:`` prefix."""
        return self.record(f"Error: {message}", level=logging.ERROR)
