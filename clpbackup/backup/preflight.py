"""
Preflight validation of a backup run.

All checks are read-only and run before anything is written to the
archive tree. The first failing check raises ConfigurationError.
"""

import os
from pathlib import Path

import paramiko

from clpbackup.config import RunConfig, ConfigurationError


class PreflightValidator:
    """
    Checks required settings and collaborator availability.
    """

    def __init__(self, exporter, replicator, host_profiles):
        """
        Initialize preflight validator.

        Args:
            exporter: Export collaborator (needs ``is_available()`` and ``command``)
            replicator: Sync collaborator (needs ``is_available()`` and ``command``)
            host_profiles: Host alias lookup (needs ``has_profile(host)``)
        """
        self.exporter = exporter
        self.replicator = replicator
        self.host_profiles = host_profiles

    def validate(self, run_config: RunConfig):
        """
        Run all checks in order.

        Args:
            run_config: Configuration for the run

        Raises:
            ConfigurationError: On the first failing check
        """
        self._check_required_fields(run_config)
        self._check_exporter()
        if run_config.enable_rsync:
            self._check_sync(run_config)

    def _check_required_fields(self, run_config: RunConfig):
        if not run_config.backup_dir:
            raise ConfigurationError("Backup directory is required.")

        if not run_config.database_name:
            raise ConfigurationError("Database name is required.")

        backup_dir = Path(run_config.backup_dir)
        if backup_dir.exists():
            if not backup_dir.is_dir():
                raise ConfigurationError(f"Backup directory '{backup_dir}' is not a directory.")
            if not os.access(backup_dir, os.W_OK | os.X_OK):
                raise ConfigurationError(f"Backup directory '{backup_dir}' is not writable.")
            return

        # Not created yet: the nearest existing ancestor must allow it
        ancestor = backup_dir.absolute().parent
        while not ancestor.exists():
            ancestor = ancestor.parent
        if not ancestor.is_dir() or not os.access(ancestor, os.W_OK | os.X_OK):
            raise ConfigurationError(
                f"Backup directory '{backup_dir}' cannot be created: '{ancestor}' is not writable."
            )

    def _check_exporter(self):
        if not self.exporter.is_available():
            raise ConfigurationError(f"'{self.exporter.command}' command not found.")

    def _check_sync(self, run_config: RunConfig):
        if not self.replicator.is_available():
            raise ConfigurationError(f"'{self.replicator.command}' command not found.")

        if not run_config.rsync_target_dir or not run_config.remote_host:
            raise ConfigurationError(
                "RSYNC_TARGET_DIR and REMOTE_HOST must be specified when rsync is enabled."
            )

        try:
            known_host = self.host_profiles.has_profile(run_config.remote_host)
        except paramiko.ConfigParseError as e:
            raise ConfigurationError(f"Could not read SSH config: {e}")

        if not known_host:
            raise ConfigurationError(
                f"SSH config for host '{run_config.remote_host}' not found in "
                f"{getattr(self.host_profiles, 'config_path', 'the SSH config')}."
            )
