"""
Local archive tree.

Artifacts are stored as:
{backup_dir}/{YYYY}/{MM}/{DD}/{database_name}_{YYYY-MM-DD-HH-MM-SS}.{extension}
"""

import os
from pathlib import Path
from datetime import datetime
from typing import Optional, Tuple, List, Dict, Any, Iterator


TIMESTAMP_FORMAT = '%Y-%m-%d-%H-%M-%S'


class StorageError(Exception):
    """Raised when an archive tree operation fails."""
    pass


def plan_archive_path(
    root: str,
    now: datetime,
    database_name: str,
    extension: str
) -> Tuple[Path, Path]:
    """
    Plan the destination of a new artifact and create its directory.

    If an artifact with the same name already exists (two runs in the same
    second), a numeric suffix is appended instead of overwriting it.

    Args:
        root: Backup root directory
        now: Time the artifact is produced
        database_name: Database identifier
        extension: Artifact extension without leading dot (e.g. 'sql.gz')

    Returns:
        Tuple of (destination directory, artifact path)

    Raises:
        StorageError: If the destination directory cannot be created
    """
    dest_dir = Path(root) / f"{now.year:04d}" / f"{now.month:02d}" / f"{now.day:02d}"

    try:
        dest_dir.mkdir(parents=True, exist_ok=True)
    except PermissionError as e:
        raise StorageError(f"Permission denied creating {dest_dir}: {e}")
    except OSError as e:
        raise StorageError(f"Failed to create archive directory {dest_dir}: {e}")

    stem = f"{database_name}_{now.strftime(TIMESTAMP_FORMAT)}"
    artifact_path = dest_dir / f"{stem}.{extension}"

    counter = 1
    while artifact_path.exists():
        artifact_path = dest_dir / f"{stem}_{counter}.{extension}"
        counter += 1

    return dest_dir, artifact_path


class ArchiveStorage:
    """
    Handler for the dated archive tree under a backup root.
    """

    def __init__(self, base_path: str):
        """
        Initialize archive storage handler.

        Args:
            base_path: Backup root directory
        """
        self.base_path = Path(base_path)

    def plan(self, database_name: str, extension: str, now: Optional[datetime] = None) -> Tuple[Path, Path]:
        """Plan a new artifact path for today (see plan_archive_path)."""
        return plan_archive_path(str(self.base_path), now or datetime.now(), database_name, extension)

    def list_artifacts(self, extension: str) -> List[Dict[str, Any]]:
        """
        List all artifact files under the backup root.

        Args:
            extension: Artifact extension without leading dot

        Returns:
            List of dicts with 'path' and 'modified' keys

        Raises:
            StorageError: If listing fails
        """
        if not self.base_path.exists():
            return []

        suffix = f".{extension}"

        try:
            files = []

            for file_path in self.base_path.rglob(f"*{suffix}"):
                if file_path.is_file():
                    stat = file_path.stat()

                    files.append({
                        'path': file_path,
                        'modified': datetime.fromtimestamp(stat.st_mtime)
                    })

            return files

        except OSError as e:
            raise StorageError(f"Failed to list archive files: {e}")

    def delete(self, path: Path):
        """
        Delete an artifact file.

        Args:
            path: Artifact path

        Raises:
            StorageError: If deletion fails
        """
        try:
            if path.exists():
                path.unlink()
        except PermissionError as e:
            raise StorageError(f"Permission denied deleting {path}: {e}")
        except OSError as e:
            raise StorageError(f"Failed to delete {path}: {e}")

    def empty_directories(self) -> Iterator[Path]:
        """
        Walk the tree bottom-up and yield directories that are empty when visited.

        Directories are visited children first (DAY before MONTH before YEAR),
        so a parent emptied by removing its children is reported too. The
        backup root itself is never reported.
        """
        for dirpath, _dirnames, _filenames in os.walk(self.base_path, topdown=False):
            directory = Path(dirpath)
            if directory == self.base_path:
                continue
            if not any(directory.iterdir()):
                yield directory

    def remove_directory(self, path: Path):
        """
        Remove an empty directory.

        Raises:
            StorageError: If removal fails
        """
        if path == self.base_path:
            raise StorageError("Refusing to remove the backup root")
        try:
            path.rmdir()
        except OSError as e:
            raise StorageError(f"Failed to remove directory {path}: {e}")
