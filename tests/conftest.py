"""
Shared pytest fixtures for clpbackup tests.

This module provides fixtures for:
- Backup root directories and run configurations
- Spy collaborators for export, rsync and SSH host lookup
- SSH config files
- Seeding the archive tree with aged artifacts
"""

import os
import time
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from clpbackup.config import RunConfig
from clpbackup.backup.audit import AuditLog


@pytest.fixture
def backup_root(tmp_path):
    """Backup root directory (created)."""
    root = tmp_path / 'backups'
    root.mkdir()
    return root


@pytest.fixture
def make_run_config(backup_root):
    """
    Factory for RunConfig instances.

    Defaults to database 'app' stored in backup_root, rsync and retention off.
    """
    def _make(**overrides):
        values = {
            'database_name': 'app',
            'backup_dir': str(backup_root),
        }
        values.update(overrides)
        return RunConfig(**values)

    return _make


@pytest.fixture
def fake_exporter():
    """
    Spy export collaborator.

    Writes a small file to the requested path and reports success.
    """
    exporter = MagicMock()
    exporter.command = 'clpctl'
    exporter.extension = 'sql.gz'
    exporter.is_available.return_value = True

    def _export(database_name, dest_path):
        Path(dest_path).write_bytes(b'fake dump of ' + database_name.encode())
        return 0

    exporter.export.side_effect = _export
    return exporter


@pytest.fixture
def fake_replicator():
    """Spy sync collaborator reporting success."""
    replicator = MagicMock()
    replicator.command = 'rsync'
    replicator.is_available.return_value = True
    replicator.sync.return_value = 0
    return replicator


@pytest.fixture
def host_profiles():
    """Host alias lookup that knows every host."""
    profiles = MagicMock()
    profiles.config_path = '~/.ssh/config'
    profiles.has_profile.return_value = True
    return profiles


@pytest.fixture
def audit_log(backup_root):
    """Audit log stored in the backup root."""
    return AuditLog.for_backup_dir(str(backup_root))


@pytest.fixture
def ssh_config_file(tmp_path):
    """
    SSH client config with one alias, one wildcard and one multi-host entry.
    """
    path = tmp_path / 'ssh_config'
    path.write_text(
        "Host backup-server\n"
        "    HostName backup.example.com\n"
        "    User backup\n"
        "    IdentityFile ~/.ssh/id_rsa\n"
        "\n"
        "Host mirror1 Mirror2\n"
        "    HostName mirror.example.com\n"
        "\n"
        "Host *.internal\n"
        "    User admin\n"
        "\n"
        "Host *\n"
        "    ServerAliveInterval 60\n"
    )
    return path


@pytest.fixture
def seed_artifact():
    """
    Create a file under a root with its mtime set ``days_old`` days in the past.
    """
    def _seed(root, relative_path, days_old=0, content=b'dump'):
        path = Path(root) / relative_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
        mtime = time.time() - days_old * 86400
        os.utime(path, (mtime, mtime))
        return path

    return _seed
