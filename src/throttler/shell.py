"""
Shell execution helpers used by the throttling backends.
"""

import logging
import shutil
import subprocess
from typing import Optional, Sequence

from .exceptions import CommandFailedError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0


def run_command(
    cmd: Sequence[str],
    *,
    sudo: bool = False,
    timeout: float = DEFAULT_TIMEOUT,
    input_text: Optional[str] = None,
    check: bool = True,
) -> subprocess.CompletedProcess:
    """
    Execute a command and capture its output.

    Args:
        cmd: Command and arguments.
        sudo: Run through non-interactive sudo.
        timeout: Seconds before the command is abandoned.
        input_text: Data written to the command's stdin.
        check: Raise on a non-zero exit status.

    Returns:
        The completed process with text stdout/stderr.

    Raises:
        CommandFailedError: On non-zero exit (when check is set), timeout,
            or a missing executable.
    """
    argv = (["sudo", "-n"] if sudo else []) + list(cmd)
    cmd_str = " ".join(argv)
    logger.debug(f"Running: {cmd_str}")

    try:
        result = subprocess.run(
            argv,
            input=input_text,
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired:
        logger.error(f"Command timed out: {cmd_str}")
        raise CommandFailedError(cmd_str, -1, f"timed out after {timeout}s")
    except OSError as e:
        logger.error(f"Command error: {e}")
        raise CommandFailedError(cmd_str, -1, str(e))

    if check and result.returncode != 0:
        logger.error(f"Command failed: {result.stderr}")
        raise CommandFailedError(cmd_str, result.returncode, result.stderr.strip())

    return result


def check_sudo(timeout: float = 5.0) -> bool:
    """
    Check if sudo is available without password.

    Returns:
        True if passwordless sudo is available.
    """
    try:
        result = subprocess.run(
            ["sudo", "-n", "true"], capture_output=True, timeout=timeout
        )
    except (OSError, subprocess.TimeoutExpired):
        return False
    return result.returncode == 0


def command_available(name: str) -> bool:
    """Check if an executable is on PATH."""
    return shutil.which(name) is not None
