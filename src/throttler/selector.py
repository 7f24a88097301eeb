"""
Maps the host operating system to a throttling backend.
"""

import platform
from typing import Optional

from .exceptions import UnsupportedPlatformError
from .executor import Executor
from .pf import PacketFilterExecutor
from .tc import TcExecutor

EXECUTORS: dict[str, type[Executor]] = {
    "linux": TcExecutor,
    "darwin": PacketFilterExecutor,
    "freebsd": PacketFilterExecutor,
}


def current_platform() -> str:
    return platform.system()


def select_executor(platform_name: Optional[str] = None, **options) -> Executor:
    """
    Create the executor for a platform.

    Args:
        platform_name: OS name as reported by platform.system(). Defaults
            to the running host.
        **options: Passed to the executor constructor (use_sudo, timeout, ...).

    Returns:
        TcExecutor on Linux, PacketFilterExecutor on Darwin and FreeBSD.

    Raises:
        UnsupportedPlatformError: For any other platform.
    """
    if platform_name is None:
        platform_name = current_platform()

    executor_cls = EXECUTORS.get((platform_name or "").lower())
    if executor_cls is None:
        raise UnsupportedPlatformError(platform_name)
    return executor_cls(**options)
