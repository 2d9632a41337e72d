"""
Export handlers for backup operations.

Supports:
- ClpctlExporter: Export a MySQL database with CloudPanel's clpctl tool
"""

from typing import List

from clpbackup.utils.process import command_exists, run_command


class ExportError(Exception):
    """Raised when the database export fails."""
    pass


class ClpctlExporter:
    """
    Handler for CloudPanel database exports.

    Writes a gzip-compressed SQL dump of one database to a given file.
    """

    extension = 'sql.gz'

    def __init__(self, command: str = 'clpctl'):
        """
        Initialize clpctl exporter.

        Args:
            command: clpctl executable name or path
        """
        self.command = command

    def is_available(self) -> bool:
        """Check that the clpctl command can be found."""
        return command_exists(self.command)

    def build_command(self, database_name: str, dest_path: str) -> List[str]:
        return [
            self.command,
            'db:export',
            f'--databaseName={database_name}',
            f'--file={dest_path}',
        ]

    def export(self, database_name: str, dest_path: str) -> int:
        """
        Export a database to ``dest_path``.

        Args:
            database_name: Name of the database to export
            dest_path: Artifact file to write

        Returns:
            Exit code of clpctl

        Raises:
            OSError: If clpctl cannot be started
        """
        return run_command(
            self.build_command(database_name, str(dest_path)),
            description='database export'
        )


def create_exporter(export_type: str = 'clpctl', command: str = None):
    """
    Factory function to create the export handler.

    Args:
        export_type: Only 'clpctl' is supported
        command: Optional executable override

    Returns:
        Exporter instance

    Raises:
        ValueError: If export_type is invalid
    """
    if export_type == 'clpctl':
        return ClpctlExporter(command or 'clpctl')
    else:
        raise ValueError(f"Invalid export type: {export_type}")
