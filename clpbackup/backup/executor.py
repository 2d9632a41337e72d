"""
Backup executor - orchestrates the complete backup workflow.

Workflow:
1. Preflight checks (no side effects)
2. Export the database into today's archive directory
3. Enforce retention (if a retention window is set)
4. Replicate the archive tree to the remote host (if rsync is enabled)

A failing stage stops every later stage. Each state transition is written
to the audit log.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Optional, List, Dict, Any

from clpbackup.config import Config, RunConfig, ConfigurationError
from clpbackup.utils.ssh_config import SSHHostProfiles
from .audit import AuditLog
from .preflight import PreflightValidator
from .exporter import create_exporter, ExportError
from .storage import ArchiveStorage, StorageError
from .retention import RetentionManager
from .replication import RsyncReplicator, ReplicationError


class RunState(Enum):
    INIT = 'init'
    PREFLIGHT = 'preflight'
    EXPORTING = 'exporting'
    RETENTION_PENDING = 'retention_pending'
    SYNC_PENDING = 'sync_pending'
    DONE = 'done'
    TERMINAL = 'terminal'


class RunOutcome(Enum):
    """Terminal outcome of a run; the value is the process exit code."""
    SUCCESS = 0
    PREFLIGHT_FAILED = 3
    EXPORT_FAILED = 4
    REPLICATION_FAILED = 5

    @property
    def exit_code(self) -> int:
        return self.value


@dataclass
class RunResult:
    """Record of one orchestration pass."""
    started_at: datetime
    state: RunState = RunState.INIT
    outcome: Optional[RunOutcome] = None
    completed_at: Optional[datetime] = None
    artifact_path: Optional[Path] = None
    retention: Optional[Dict[str, Any]] = None
    error_message: Optional[str] = None
    logs: List[str] = field(default_factory=list)

    @property
    def exit_code(self) -> int:
        return self.outcome.exit_code if self.outcome else RunOutcome.PREFLIGHT_FAILED.exit_code


class BackupExecutor:
    """
    Orchestrates the complete backup workflow for one database.
    """

    def __init__(
        self,
        run_config: RunConfig,
        app_config=Config,
        exporter=None,
        replicator=None,
        host_profiles=None,
        audit: Optional[AuditLog] = None
    ):
        """
        Initialize backup executor.

        Args:
            run_config: Resolved configuration for this run
            app_config: Application settings class
            exporter: Export collaborator (defaults to clpctl)
            replicator: Sync collaborator (defaults to rsync)
            host_profiles: SSH host alias lookup (defaults to the SSH config)
            audit: Audit log (defaults to backup.log in the backup directory)
        """
        self.run_config = run_config
        self.exporter = exporter or create_exporter('clpctl', app_config.EXPORT_COMMAND)
        self.replicator = replicator or RsyncReplicator(app_config.SYNC_COMMAND, app_config.RSYNC_OPTIONS)
        self.host_profiles = host_profiles or SSHHostProfiles(app_config.SSH_CONFIG_PATH)
        self.audit = audit or AuditLog.for_backup_dir(run_config.backup_dir, app_config.AUDIT_LOG_NAME)
        self.validator = PreflightValidator(self.exporter, self.replicator, self.host_profiles)
        self.result = None

    def execute(self) -> RunResult:
        """
        Execute the backup run.

        Returns:
            RunResult with the terminal outcome
        """
        self.result = RunResult(started_at=datetime.now())
        self.audit.record(f"Starting backup run for database '{self.run_config.database_name}'.")

        # Preflight
        self._transition(RunState.PREFLIGHT)
        try:
            self.validator.validate(self.run_config)
        except ConfigurationError as e:
            return self._fail(RunOutcome.PREFLIGHT_FAILED, str(e))

        # Export
        self._transition(RunState.EXPORTING)
        try:
            self.result.artifact_path = self._export()
        except ExportError as e:
            return self._fail(RunOutcome.EXPORT_FAILED, str(e))

        # Retention (failures inside are logged, never fatal)
        if self.run_config.retention_enabled:
            self._transition(RunState.RETENTION_PENDING)
            self.result.retention = self._enforce_retention()

        # Replication
        if self.run_config.enable_rsync:
            self._transition(RunState.SYNC_PENDING)
            try:
                self._replicate()
            except ReplicationError as e:
                return self._fail(RunOutcome.REPLICATION_FAILED, str(e))

        self._transition(RunState.DONE)
        self.audit.record("Backup script completed successfully.")
        return self._finish(RunOutcome.SUCCESS)

    def _export(self) -> Path:
        """
        Export the database into today's archive directory.

        Returns:
            Path of the new artifact

        Raises:
            ExportError: If planning the path or the export itself fails
        """
        database_name = self.run_config.database_name
        storage = ArchiveStorage(self.run_config.backup_dir)

        try:
            _dest_dir, artifact_path = storage.plan(database_name, self.exporter.extension)
        except StorageError as e:
            raise ExportError(str(e))

        self.audit.record(f"Starting database export for '{database_name}'.")

        try:
            exit_code = self.exporter.export(database_name, str(artifact_path))
        except OSError as e:
            raise ExportError(f"Failed to run database export: {e}")

        if exit_code != 0:
            raise ExportError(f"Database export failed (exit code {exit_code}).")

        self.audit.record(f"Database export completed successfully. Dump file: {artifact_path}")
        return artifact_path

    def _enforce_retention(self) -> Dict[str, Any]:
        manager = RetentionManager(
            self.run_config.backup_dir,
            self.run_config.retention_days,
            self.exporter.extension,
            audit=self.audit
        )
        return manager.enforce()

    def _replicate(self):
        """
        Push the archive tree to the remote host.

        Raises:
            ReplicationError: If rsync fails
        """
        host = self.run_config.remote_host
        target = self.run_config.rsync_target_dir
        mirror_deletes = self.run_config.rsync_delete

        self.audit.record(f"Starting rsync synchronization to '{host}:{target}'.")
        if mirror_deletes:
            self.audit.record("Rsync will delete files on remote server that no longer exist locally.")

        try:
            exit_code = self.replicator.sync(
                self.run_config.backup_dir, host, target, mirror_deletes=mirror_deletes
            )
        except OSError as e:
            raise ReplicationError(f"Failed to run rsync: {e}")

        if exit_code != 0:
            raise ReplicationError(f"Rsync synchronization failed (exit code {exit_code}).")

        self.audit.record("Rsync synchronization completed successfully.")

    def _transition(self, new_state: RunState):
        self.audit.record(f"State: {self.result.state.name} -> {new_state.name}")
        self.result.state = new_state

    def _fail(self, outcome: RunOutcome, message: str) -> RunResult:
        self.result.error_message = message
        self.audit.error(message)
        return self._finish(outcome)

    def _finish(self, outcome: RunOutcome) -> RunResult:
        self.result.outcome = outcome
        self._transition(RunState.TERMINAL)
        self.audit.record(f"Run finished: {outcome.name} (exit code {outcome.exit_code})")
        self.result.completed_at = datetime.now()
        self.result.logs = list(self.audit.lines)
        return self.result


def run_backup(run_config: RunConfig, app_config=Config) -> RunResult:
    """
    Execute a backup run with the real collaborators.

    Args:
        run_config: Resolved configuration for this run
        app_config: Application settings class

    Returns:
        RunResult with the terminal outcome
    """
    executor = BackupExecutor(run_config, app_config=app_config)
    return executor.execute()
