"""
Command-line entry point.

Exports a MySQL database using CloudPanel's export tool and optionally
synchronizes the backups to a remote server using rsync, with rotation of
old backups.
"""

import logging

import click

from clpbackup import configure_logging
from clpbackup.config import config, build_run_config, ConfigurationError
from clpbackup.backup.audit import AuditLog
from clpbackup.backup.executor import run_backup, RunOutcome


logger = logging.getLogger(__name__)

EPILOG = """\b
Notes:
  - Backups are stored as BACKUP_DIR/YEAR/MONTH/DAY/<db>_<timestamp>.sql.gz
  - The backup log is stored at BACKUP_DIR/backup.log.
  - Requires 'clpctl', and 'rsync' when synchronization is enabled.
  - The remote host must be defined in ~/.ssh/config (public key auth).
  - Command-line options override config file settings.

\b
Config file keys (KEY=value):
  DATABASE_NAME, BACKUP_DIR, RSYNC_TARGET_DIR, REMOTE_HOST,
  ENABLE_RSYNC (true/false), RSYNC_DELETE (true/false), RETENTION_DAYS
"""


@click.command(
    context_settings={'help_option_names': ['-?', '--help']},
    epilog=EPILOG
)
@click.option('-b', '--backup-dir', help='Backup directory.')
@click.option('-d', '--database-name', help='Database name to export.')
@click.option('-r', '--rsync-target-dir', help='Remote rsync target directory.')
@click.option('-h', '--remote-host', help='Remote host (configured in ~/.ssh/config).')
@click.option('-c', '--config-file', type=click.Path(dir_okay=False), help='Path to a KEY=value config file.')
@click.option('--enable-rsync', is_flag=True, help='Enable rsync synchronization after backup.')
@click.option('--rsync-delete', is_flag=True, help='Delete files on the remote server that were deleted locally.')
@click.option('--retention-days', type=click.IntRange(min=0), help='Days to keep backups (0 disables rotation).')
@click.option('--debug', is_flag=True, help='Enable debug logging.')
@click.pass_context
def main(ctx, backup_dir, database_name, rsync_target_dir, remote_host, config_file,
         enable_rsync, rsync_delete, retention_days, debug):
    """Back up a CloudPanel MySQL database into a dated archive tree."""
    app_config = config['development' if debug else 'default']
    configure_logging(app_config)

    # Flags can only switch a setting on; unset options keep file values
    cli_values = {
        'backup_dir': backup_dir,
        'database_name': database_name,
        'rsync_target_dir': rsync_target_dir,
        'remote_host': remote_host,
        'enable_rsync': True if enable_rsync else None,
        'rsync_delete': True if rsync_delete else None,
        'retention_days': retention_days,
    }

    try:
        run_config = build_run_config(cli_values, config_file=config_file)
    except ConfigurationError as e:
        if backup_dir:
            AuditLog.for_backup_dir(backup_dir, app_config.AUDIT_LOG_NAME).error(str(e))
        click.echo(f"Error: {e}", err=True)
        ctx.exit(RunOutcome.PREFLIGHT_FAILED.exit_code)

    result = run_backup(run_config, app_config=app_config)

    if result.outcome is not RunOutcome.SUCCESS:
        logger.debug(f"Run ended in state {result.state.name}: {result.error_message}")

    ctx.exit(result.exit_code)


if __name__ == '__main__':
    main()
