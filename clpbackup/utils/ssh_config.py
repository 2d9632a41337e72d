"""
Read-only lookup of host aliases in the SSH client configuration.

rsync resolves the remote host through ssh, so a host is only usable when
it is declared as a ``Host`` entry in the user's SSH config.
"""

from pathlib import Path
from typing import Set

import paramiko


class SSHHostProfiles:
    """
    Host aliases declared in an SSH client config file.
    """

    def __init__(self, config_path: str):
        """
        Initialize host profile lookup.

        Args:
            config_path: Path to the SSH config file (``~`` is expanded)
        """
        self.config_path = Path(config_path).expanduser()

    def aliases(self) -> Set[str]:
        """
        Return the literal (non-wildcard) host aliases, lowercased.

        A missing config file yields an empty set.
        """
        if not self.config_path.is_file():
            return set()

        ssh_config = paramiko.SSHConfig.from_path(str(self.config_path))

        # get_hostnames() raises KeyError on Match blocks, which have no host list
        names = set()
        for entry in ssh_config._config:
            names.update(entry.get('host', []))

        return {
            name.lower()
            for name in names
            if not any(c in name for c in '*?!')
        }

    def has_profile(self, host: str) -> bool:
        """
        Check whether ``host`` is declared as a Host alias.

        Args:
            host: Remote host identifier

        Returns:
            True if a matching alias exists
        """
        if not host:
            return False
        return host.lower() in self.aliases()
