"""
Unit tests for preflight validation (clpbackup/backup/preflight.py).
"""

import os

import pytest

from clpbackup.config import ConfigurationError
from clpbackup.backup.preflight import PreflightValidator
from clpbackup.utils.ssh_config import SSHHostProfiles


@pytest.fixture
def validator(fake_exporter, fake_replicator, host_profiles):
    return PreflightValidator(fake_exporter, fake_replicator, host_profiles)


class TestRequiredFields:
    """Test required settings checks."""

    def test_valid_config_passes(self, validator, make_run_config):
        """Test a complete configuration passes."""
        validator.validate(make_run_config())

    def test_missing_backup_dir(self, validator, make_run_config):
        """Test empty backup directory fails."""
        with pytest.raises(ConfigurationError, match='Backup directory is required'):
            validator.validate(make_run_config(backup_dir=''))

    def test_missing_database_name(self, validator, make_run_config, backup_root):
        """Test empty database name fails without touching the backup root."""
        with pytest.raises(ConfigurationError, match='Database name is required'):
            validator.validate(make_run_config(database_name=''))

        assert list(backup_root.iterdir()) == []

    def test_backup_dir_not_yet_created(self, validator, make_run_config, tmp_path):
        """Test a creatable backup directory passes and is not created."""
        target = tmp_path / 'later' / 'backups'

        validator.validate(make_run_config(backup_dir=str(target)))

        assert not target.exists()

    def test_backup_dir_is_a_file(self, validator, make_run_config, tmp_path):
        """Test a backup path that is a regular file fails."""
        not_a_dir = tmp_path / 'file'
        not_a_dir.write_text('x')

        with pytest.raises(ConfigurationError, match='not a directory'):
            validator.validate(make_run_config(backup_dir=str(not_a_dir)))

    @pytest.mark.skipif(os.geteuid() == 0, reason='root ignores directory permissions')
    def test_backup_dir_not_writable(self, validator, make_run_config, tmp_path):
        """Test a read-only backup directory fails."""
        read_only = tmp_path / 'ro'
        read_only.mkdir()
        read_only.chmod(0o500)

        try:
            with pytest.raises(ConfigurationError, match='not writable'):
                validator.validate(make_run_config(backup_dir=str(read_only)))
        finally:
            read_only.chmod(0o700)


class TestCollaboratorChecks:
    """Test external command availability checks."""

    def test_exporter_missing(self, validator, make_run_config, fake_exporter):
        """Test missing clpctl fails."""
        fake_exporter.is_available.return_value = False

        with pytest.raises(ConfigurationError, match="'clpctl' command not found"):
            validator.validate(make_run_config())

    def test_rsync_not_checked_when_disabled(self, validator, make_run_config, fake_replicator, host_profiles):
        """Test sync checks are skipped when rsync is disabled."""
        fake_replicator.is_available.return_value = False

        validator.validate(make_run_config(enable_rsync=False))

        fake_replicator.is_available.assert_not_called()
        host_profiles.has_profile.assert_not_called()

    def test_rsync_missing(self, validator, make_run_config, fake_replicator):
        """Test missing rsync fails when rsync is enabled."""
        fake_replicator.is_available.return_value = False

        with pytest.raises(ConfigurationError, match="'rsync' command not found"):
            validator.validate(make_run_config(
                enable_rsync=True, rsync_target_dir='/srv', remote_host='backup-server'
            ))


class TestSyncSettings:
    """Test rsync target and host alias checks."""

    @pytest.mark.parametrize('target,host', [
        ('', 'backup-server'),
        ('/srv/backups', ''),
        ('', ''),
    ])
    def test_missing_sync_fields(self, validator, make_run_config, target, host):
        """Test rsync requires both target directory and remote host."""
        with pytest.raises(ConfigurationError, match='must be specified when rsync is enabled'):
            validator.validate(make_run_config(
                enable_rsync=True, rsync_target_dir=target, remote_host=host
            ))

    def test_unknown_host(self, validator, make_run_config, host_profiles):
        """Test a host without SSH profile fails."""
        host_profiles.has_profile.return_value = False

        with pytest.raises(ConfigurationError, match="SSH config for host 'nowhere' not found"):
            validator.validate(make_run_config(
                enable_rsync=True, rsync_target_dir='/srv', remote_host='nowhere'
            ))

        host_profiles.has_profile.assert_called_once_with('nowhere')

    def test_with_real_ssh_config(self, fake_exporter, fake_replicator, make_run_config, ssh_config_file):
        """Test alias lookup against an SSH config file."""
        validator = PreflightValidator(
            fake_exporter, fake_replicator, SSHHostProfiles(str(ssh_config_file))
        )

        validator.validate(make_run_config(
            enable_rsync=True, rsync_target_dir='/srv', remote_host='backup-server'
        ))

        with pytest.raises(ConfigurationError):
            validator.validate(make_run_config(
                enable_rsync=True, rsync_target_dir='/srv', remote_host='db.internal'
            ))
