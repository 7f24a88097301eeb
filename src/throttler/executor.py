"""
Executor capability shared by all throttling backends.

An executor applies or removes a ThrottlerConfig through a host tool and
reports every outcome as a Result; command failures never escape as
exceptions.
"""

import logging
import subprocess
from abc import ABC, abstractmethod
from typing import Any, Callable, Mapping, Optional

from .config import ThrottlerConfig
from .results import Result
from .shell import DEFAULT_TIMEOUT, check_sudo, command_available, run_command

logger = logging.getLogger(__name__)

Runner = Callable[..., subprocess.CompletedProcess]


class Executor(ABC):
    """
    Base class for throttling backends.

    Subclasses implement start/stop/list/exists; check() verifies the
    required tools and privileges are present.
    """

    name = "executor"
    required_commands: tuple[str, ...] = ()

    def __init__(
        self,
        use_sudo: bool = True,
        timeout: float = DEFAULT_TIMEOUT,
        runner: Runner = run_command,
        sudo_check: Callable[[], bool] = check_sudo,
        which: Callable[[str], bool] = command_available,
    ):
        """
        Initialize the executor.

        Args:
            use_sudo: Run mutating commands through "sudo -n".
            timeout: Upper bound in seconds for each command.
            runner: Command runner, run_command() unless replaced in tests.
            sudo_check: Check for passwordless sudo.
            which: Look up an executable on PATH.
        """
        self.use_sudo = use_sudo
        self.timeout = timeout
        self._runner = runner
        self._sudo_check = sudo_check
        self._which = which

    def _run(
        self,
        *cmd: str,
        sudo: Optional[bool] = None,
        check: bool = True,
        input_text: Optional[str] = None,
    ) -> subprocess.CompletedProcess:
        return self._runner(
            list(cmd),
            sudo=self.use_sudo if sudo is None else sudo,
            timeout=self.timeout,
            input_text=input_text,
            check=check,
        )

    @abstractmethod
    def start(self, config: "ThrottlerConfig | Mapping[str, Any]") -> Result:
        """Apply the configuration."""

    @abstractmethod
    def stop(self, config: "ThrottlerConfig | Mapping[str, Any]") -> Result:
        """Remove the rules applied for the configuration."""

    @abstractmethod
    def list(self) -> Result:
        """Return the tool's view of the active rules as the message."""

    @abstractmethod
    def exists(self) -> Result:
        """Success if throttling rules are currently installed."""

    def check(self) -> Result:
        """Verify required tools and privileges are available."""
        missing = [cmd for cmd in self.required_commands if not self._which(cmd)]
        if missing:
            return Result.failed(f"Required command(s) not found: {', '.join(missing)}")
        if self.use_sudo and not self._sudo_check():
            return Result.failed("Sudo access is required for network throttling")
        return Result.success(f"{self.name} is available")
