import os
from dataclasses import dataclass, fields, replace
from typing import Optional, Dict, Any

from dotenv import dotenv_values


class ConfigurationError(Exception):
    """Raised when the run configuration is missing or invalid."""
    pass


class Config:
    """Base configuration"""

    # Logging
    LOG_DIR = os.environ.get('CLPBACKUP_LOG_DIR')
    LOG_LEVEL = os.environ.get('CLPBACKUP_LOG_LEVEL', 'INFO')
    DEBUG = False

    # SSH client config holding the trusted host aliases
    SSH_CONFIG_PATH = os.environ.get('CLPBACKUP_SSH_CONFIG') or os.path.join('~', '.ssh', 'config')

    # Archive tree
    AUDIT_LOG_NAME = 'backup.log'

    # External collaborators
    EXPORT_COMMAND = os.environ.get('CLPBACKUP_EXPORT_COMMAND') or 'clpctl'
    SYNC_COMMAND = os.environ.get('CLPBACKUP_SYNC_COMMAND') or 'rsync'
    RSYNC_OPTIONS = '-avz'


class DevelopmentConfig(Config):
    """Development configuration"""
    DEBUG = True
    LOG_LEVEL = 'DEBUG'


class ProductionConfig(Config):
    """Production configuration"""
    DEBUG = False


# Configuration dictionary
config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'default': ProductionConfig
}


# Config file keys mapped to RunConfig fields
FILE_KEYS = {
    'DATABASE_NAME': 'database_name',
    'BACKUP_DIR': 'backup_dir',
    'RSYNC_TARGET_DIR': 'rsync_target_dir',
    'REMOTE_HOST': 'remote_host',
    'ENABLE_RSYNC': 'enable_rsync',
    'RSYNC_DELETE': 'rsync_delete',
    'RETENTION_DAYS': 'retention_days',
}

_TRUE_VALUES = ('true', 'yes', '1', 'on')
_FALSE_VALUES = ('false', 'no', '0', 'off', '')


@dataclass(frozen=True)
class RunConfig:
    """
    Resolved settings for a single backup run.

    Built once per invocation by merging defaults, the config file and the
    command line, in that order of increasing priority.
    """

    database_name: str = ''
    backup_dir: str = ''
    enable_rsync: bool = False
    rsync_target_dir: str = ''
    remote_host: str = ''
    retention_days: int = 0
    rsync_delete: bool = False

    @property
    def retention_enabled(self) -> bool:
        return self.retention_days > 0

    def merged(self, overrides: Dict[str, Any]) -> 'RunConfig':
        """
        Return a copy with the non-None values of ``overrides`` applied.

        Args:
            overrides: Mapping of RunConfig field names to values

        Returns:
            New RunConfig instance

        Raises:
            ConfigurationError: If a key is unknown or a value is malformed
        """
        known = {f.name for f in fields(self)}
        changes = {}

        for key, value in overrides.items():
            if key not in known:
                raise ConfigurationError(f"Unknown configuration option: {key}")
            if value is None:
                continue
            changes[key] = _coerce(key, value)

        return replace(self, **changes)


def _coerce(key: str, value: Any) -> Any:
    """Convert a raw option value to the type of its RunConfig field."""
    if key in ('enable_rsync', 'rsync_delete'):
        if isinstance(value, bool):
            return value
        text = str(value).strip().lower()
        if text in _TRUE_VALUES:
            return True
        if text in _FALSE_VALUES:
            return False
        raise ConfigurationError(f"Invalid boolean for {key}: {value!r}")

    if key == 'retention_days':
        try:
            days = int(str(value).strip() or 0)
        except ValueError:
            raise ConfigurationError(f"Invalid number of retention days: {value!r}")
        if days < 0:
            raise ConfigurationError(f"Retention days must be zero or positive, got {days}")
        return days

    return str(value).strip()


def load_config_file(path: str) -> Dict[str, Any]:
    """
    Read a ``KEY=value`` config file.

    Args:
        path: Path to the config file

    Returns:
        Dict of RunConfig field names to raw string values

    Raises:
        ConfigurationError: If the file does not exist
    """
    if not os.path.isfile(path):
        raise ConfigurationError(f"Config file '{path}' not found.")

    values = dotenv_values(path)

    # Unrelated keys are tolerated, the file may be shared with other tools
    return {
        FILE_KEYS[key]: value
        for key, value in values.items()
        if key in FILE_KEYS and value is not None
    }


def build_run_config(
    cli_values: Optional[Dict[str, Any]] = None,
    config_file: Optional[str] = None
) -> RunConfig:
    """
    Build the RunConfig for one run.

    Merge order: defaults, then config file, then command line.

    Args:
        cli_values: Options given on the command line (None means not given)
        config_file: Optional path to a ``KEY=value`` config file

    Returns:
        Immutable RunConfig

    Raises:
        ConfigurationError: If the config file is missing or a value is invalid
    """
    run_config = RunConfig()

    if config_file:
        run_config = run_config.merged(load_config_file(config_file))

    if cli_values:
        run_config = run_config.merged(cli_values)

    return run_config
