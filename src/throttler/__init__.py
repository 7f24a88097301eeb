"""
throttler - network condition emulation control for a single host.

Applies latency, jitter, bandwidth caps and packet loss, duplication or
corruption through tc/netem on Linux or dummynet/pf on macOS and FreeBSD,
and persists whether throttling is active so a restarted process resumes
with the right state.

Example:
    >>> from throttler import FileStatusStore, ThrottlerController
    >>> controller = ThrottlerController(FileStatusStore("conf/throttler_status.json"))
    >>> controller.init({"throttlerProfiles": []})
    >>> controller.start({"latency": 100, "bandwidth": 1000,
    ...                   "packetLoss": 1.0, "netInterface": "eth0"}).message
    'Throttler was started'
    >>> controller.stop().message
    'Throttler was stopped'
"""

from .config import ThrottlerConfig, ThrottlerSettings, ThrottlerStatus
from .controller import ThrottlerController
from .exceptions import (
    BackendError,
    CommandFailedError,
    InvalidOperationError,
    PersistenceCorruptionError,
    SettingsLoadError,
    ThrottlerError,
    UnsupportedPlatformError,
    ValidationError,
)
from .executor import Executor
from .pf import PacketFilterExecutor
from .results import Result, ResultStatus
from .selector import select_executor
from .store import FileStatusStore, MemoryStatusStore, StatusRecord, StatusStore
from .tc import TcExecutor
from .validation import is_valid_network_interface, validate_config

__version__ = "0.1.0"

__all__ = [
    # Core classes
    "ThrottlerController",
    "ThrottlerConfig",
    "ThrottlerSettings",
    "ThrottlerStatus",
    "Result",
    "ResultStatus",
    # Executors
    "Executor",
    "TcExecutor",
    "PacketFilterExecutor",
    "select_executor",
    # Persistence
    "StatusStore",
    "FileStatusStore",
    "MemoryStatusStore",
    "StatusRecord",
    # Validation
    "validate_config",
    "is_valid_network_interface",
    # Exceptions
    "ThrottlerError",
    "ValidationError",
    "BackendError",
    "CommandFailedError",
    "UnsupportedPlatformError",
    "PersistenceCorruptionError",
    "InvalidOperationError",
    "SettingsLoadError",
    # Version
    "__version__",
]
