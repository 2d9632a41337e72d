"""
Backup module for clpbackup.

This module handles the core backup functionality including:
- Preflight validation
- Database export (clpctl)
- Dated archive tree storage
- Retention policy enforcement
- Replication (rsync)
- Execution orchestration and the audit log
"""

from .audit import AuditLog
from .executor import BackupExecutor, RunOutcome, RunResult, RunState, run_backup
from .exporter import ClpctlExporter, ExportError
from .preflight import PreflightValidator
from .replication import RsyncReplicator, ReplicationError
from .retention import RetentionManager, RetentionError
from .storage import ArchiveStorage, StorageError, plan_archive_path

__all__ = [
    'AuditLog',
    'BackupExecutor',
    'RunOutcome',
    'RunResult',
    'RunState',
    'run_backup',
    'ClpctlExporter',
    'ExportError',
    'PreflightValidator',
    'RsyncReplicator',
    'ReplicationError',
    'RetentionManager',
    'RetentionError',
    'ArchiveStorage',
    'StorageError',
    'plan_archive_path'
]
