"""
Replication of the local archive tree to a remote host.

Local is always the source of truth: files are pushed, never pulled.
"""

import shlex
from typing import List

from clpbackup.utils.process import command_exists, run_command


class ReplicationError(Exception):
    """Raised when synchronization to the remote host fails."""
    pass


class RsyncReplicator:
    """
    Handler for mirroring the backup root with rsync over SSH.

    The remote host is an alias resolved by ssh through the user's SSH config.
    """

    def __init__(self, command: str = 'rsync', options: str = '-avz'):
        """
        Initialize rsync replicator.

        Args:
            command: rsync executable name or path
            options: Base rsync options
        """
        self.command = command
        self.options = shlex.split(options)

    def is_available(self) -> bool:
        """Check that the rsync command can be found."""
        return command_exists(self.command)

    def build_command(self, local_dir: str, remote_host: str, remote_dir: str, mirror_deletes: bool) -> List[str]:
        args = [self.command] + self.options
        if mirror_deletes:
            args.append('--delete')

        # Trailing slash copies the contents of the root, keeping YYYY/MM/DD
        source = str(local_dir).rstrip('/') + '/'
        args.extend([source, f'{remote_host}:{remote_dir}'])
        return args

    def sync(self, local_dir: str, remote_host: str, remote_dir: str, mirror_deletes: bool = False) -> int:
        """
        Push ``local_dir`` recursively to ``remote_host:remote_dir``.

        Args:
            local_dir: Local backup root
            remote_host: SSH host alias
            remote_dir: Target directory on the remote host
            mirror_deletes: Delete remote files that no longer exist locally

        Returns:
            Exit code of rsync

        Raises:
            OSError: If rsync cannot be started
        """
        return run_command(
            self.build_command(local_dir, remote_host, remote_dir, mirror_deletes),
            description='rsync synchronization'
        )
