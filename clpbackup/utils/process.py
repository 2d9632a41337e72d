"""
Helpers for running the external command-line collaborators.
"""

import shutil
import logging
import subprocess
from typing import List, Optional


logger = logging.getLogger(__name__)


def command_exists(name: str) -> bool:
    """
    Check whether a command can be found on PATH.

    Args:
        name: Command name or path

    Returns:
        True if the command is executable
    """
    return shutil.which(name) is not None


def run_command(args: List[str], description: Optional[str] = None) -> int:
    """
    Run a command to completion and return its exit code.

    Output is captured and forwarded to the logger: stdout at DEBUG,
    stderr at WARNING. No timeout is applied.

    Args:
        args: Command and arguments
        description: Optional label used in log messages

    Returns:
        Process exit code

    Raises:
        OSError: If the command cannot be started
    """
    desc = f" ({description})" if description else ""
    logger.debug(f"Running command{desc}: {' '.join(args)}")

    result = subprocess.run(args, capture_output=True, text=True)

    if result.stdout:
        logger.debug(f"STDOUT: {result.stdout.strip()}")
    if result.stderr:
        logger.warning(f"STDERR: {result.stderr.strip()}")

    return result.returncode
